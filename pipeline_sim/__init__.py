from .errors import (
    SimulatorException, InvalidRegisterIndex, MemoryOutOfBounds,
    UnalignedOversizeAccess, DivisionByZero, ImmediateOverflow, ErrorLog,
)
from .registers import RegisterFile
from .memory import Memory
from .program import Program, ProgramLine
from .instruction import Instruction, Operand, OperandKind, WRITE_BACK_OPS
from .core import Core
from .config import load_config
from .simulator import Simulator, State
