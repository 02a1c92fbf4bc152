import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .errors import ImmediateOverflow

NOP = "NOP"
MASK32 = 0xFFFFFFFF

# Opcodes whose result is written to rd in the write back stage.
WRITE_BACK_OPS = frozenset([
    "ADD", "ADDI", "SUB", "SUBI", "MUL", "MULU", "DIV", "DIVU",
    "AND", "ANDI", "OR", "ORI", "XOR", "XORI", "NOR",
    "SLL", "SRL",
    "MFHI",
    "LW", "LI", "LUI",
])

REGISTER_RE = re.compile(r"^\$(\d+)$")
SOURCE_REGISTER_RE = re.compile(r"\$(\d+)")
_INT_RE = {
    10: re.compile(r"^\s*([+-]?\d+)"),
    16: re.compile(r"^\s*([+-]?(?:0[xX])?[0-9A-Fa-f]+)"),
}


class OperandKind(Enum):
    REGISTER = auto()
    VALUE = auto()
    LITERAL = auto()


@dataclass(frozen=True)
class Operand:
    """
    An instruction operand: a register index, a resolved value, or literal
    immediate text whose radix is decided by the opcode that consumes it.
    """
    kind: OperandKind
    value: int = 0
    text: str = ""

    @classmethod
    def register(cls, index):
        return cls(OperandKind.REGISTER, value=index)

    @classmethod
    def resolved(cls, value):
        return cls(OperandKind.VALUE, value=value)

    @classmethod
    def literal(cls, text):
        return cls(OperandKind.LITERAL, text=text)

    @property
    def is_register(self):
        return self.kind is OperandKind.REGISTER

    def as_int(self, base=10):
        """Numeric value; literals parse in `base`, unparseable text is 0."""
        if self.kind is OperandKind.LITERAL:
            parsed = parse_int(self.text, base)
            return 0 if parsed is None else parsed
        return self.value

    def __str__(self):
        if self.kind is OperandKind.REGISTER:
            return f"${self.value}"
        if self.kind is OperandKind.LITERAL:
            return self.text
        return str(self.value)


ZERO = Operand.resolved(0)


@dataclass
class Instruction:
    """An instruction as it travels through the stage latches."""
    address: str = ""
    raw: str = NOP
    opcode: str = NOP
    rs: Operand = ZERO
    rt: Operand = ZERO
    rd: Operand = ZERO
    immediate: int = 0
    result: Optional[int] = None
    memory_address: Optional[int] = None
    memory_value: Optional[int] = None
    branch_comparand: Optional[int] = None

    @property
    def line(self):
        return int(self.address, 16) if self.address else None

    @property
    def is_nop(self):
        return self.raw == NOP

    def writes_register(self):
        return self.opcode in WRITE_BACK_OPS and self.rd.is_register


def parse_int(text, base=10):
    """Parse the leading integer of `text`, ignoring trailing junk. None if there is none."""
    match = _INT_RE[base].match(text)
    if match is None:
        return None
    return int(match.group(1), base)


def sign_extend16(value):
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def to_signed32(value):
    value &= MASK32
    return value - 0x100000000 if value & 0x80000000 else value


def tokenize(raw):
    return raw.replace(",", " ").split()


def parse_operand(token, report=None):
    """
    `$N` becomes a register operand; anything else is kept as literal text.
    Hex-looking literals wider than 4 characters are cut to their first 4.
    """
    if not token:
        return ZERO
    match = REGISTER_RE.match(token)
    if match:
        return Operand.register(int(match.group(1)))
    if parse_int(token, 16) is not None and len(token) > 4 and "(" not in token:
        truncated = token[:4]
        if report is not None:
            report(ImmediateOverflow(
                f"Immediate value '{token}' exceeds 16 bits. Truncated to '{truncated}'"))
        token = truncated
    return Operand.literal(token)


def source_registers(raw):
    """Every register index named anywhere in an instruction's operands."""
    parts = tokenize(raw)
    return {int(index) for part in parts[1:] for index in SOURCE_REGISTER_RE.findall(part)}
