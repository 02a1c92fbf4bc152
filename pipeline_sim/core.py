import logging

from .errors import ErrorLog, DivisionByZero, InvalidRegisterIndex, MemoryOutOfBounds, SimulatorException
from .instruction import (
    Instruction, Operand, MASK32, NOP, WRITE_BACK_OPS,
    parse_int, parse_operand, sign_extend16, source_registers, to_signed32, tokenize,
)
from .memory import Memory
from .program import Program
from .registers import RegisterFile

logger = logging.getLogger(__name__)

STAGES = ("IF", "ID", "EX", "MEM")


class Core:
    """
    Five stage pipeline: IF -> ID -> EX -> MEM -> WB.

    Each latch in `pipeline_reg` holds the instruction a stage produced last
    cycle. A cycle runs the stages back to front so every stage consumes the
    latch contents from the previous cycle before they are replaced.
    """

    def __init__(self, program: Program = None, registers: RegisterFile = None, memory: Memory = None,
                 errors: ErrorLog = None, forwarding=True, cycle_limit=2000000):
        self.errors = errors if errors is not None else ErrorLog()
        self.program = program if program is not None else Program()
        self.registers = registers if registers is not None else RegisterFile(self.errors)
        self.memory = memory if memory is not None else Memory()
        self.forwarding = forwarding
        self.cycle_limit = cycle_limit
        self.reset_pipeline()

    def reset_pipeline(self):
        self.pipeline_reg = {stage: Instruction() for stage in STAGES}
        self.retired = Instruction()
        self.pc = 0
        self.hi = 0
        self.current_line = None
        self.cycles = 0
        self.stalled = False

        self.stall_count = 0
        self.pipeline_flush_count = 0
        self.inst_executed = 0

    def get_ipc(self):
        if self.cycles == 0:
            return 0.0
        return self.inst_executed / self.cycles

    def pipeline_empty(self):
        """Return True if every latch holds a NOP."""
        return all(inst.is_nop for inst in self.pipeline_reg.values())

    def halt_reason(self):
        """Why the pipeline must stop now, or None to keep going."""
        if self.cycles >= self.cycle_limit:
            return "cycle limit"
        if self.pc >= len(self.program) and self.pipeline_empty():
            return "completed"
        return None

    def flush_pipeline(self):
        """Squash the instruction fetched behind a taken branch."""
        self.pipeline_flush_count += 1
        self.pipeline_reg["IF"] = Instruction()

    def _report(self, error: SimulatorException, inst: Instruction):
        error.set_line(inst.line)
        self.errors.report(error)

    # --- Operand access ---
    def _forward_operand(self, reg_index):
        # Newest older instruction first: EX holds the one executed this cycle.
        if reg_index != 0:
            for stage in ("EX", "MEM"):
                inst = self.pipeline_reg[stage]
                if inst.writes_register() and inst.rd.value == reg_index and inst.result is not None:
                    return inst.result & MASK32
        return self.registers.read(reg_index)

    def read_register(self, reg_index):
        if self.forwarding:
            return self._forward_operand(reg_index)
        return self.registers.read(reg_index)

    def _resolve(self, operand: Operand):
        if operand.is_register:
            return Operand.resolved(self.read_register(operand.value))
        return operand

    def detect_load_use_hazard(self, inst: Instruction):
        """A load in EX has not read memory yet, so its consumer must wait a cycle."""
        if not self.forwarding:
            return False
        ex = self.pipeline_reg["EX"]
        if ex.opcode != "LW" or not ex.rd.is_register or ex.rd.value == 0:
            return False
        return ex.rd.value in source_registers(inst.raw)

    # --- Pipeline Stages ---
    def WB(self):
        inst = self.pipeline_reg["MEM"]
        if inst.writes_register():
            self.registers.write(inst.rd.value, inst.result if inst.result is not None else 0)
        elif inst.opcode in WRITE_BACK_OPS:
            self._report(InvalidRegisterIndex(f"'{inst.rd}' is not a destination register"), inst)
        if not inst.is_nop:
            self.inst_executed += 1
        self.retired = inst

    def MEM(self):
        inst = self.pipeline_reg["EX"]
        if inst.opcode in ("LW", "SW") and inst.memory_address is not None:
            address = inst.rt.value
            try:
                if inst.opcode == "LW":
                    inst.result = self.memory.read_word(address)
                else:
                    self.memory.write_word(address, inst.result if inst.result is not None else 0)
            except MemoryOutOfBounds as e:
                self._report(e, inst)
                if inst.opcode == "LW":
                    inst.result = 0
        self.pipeline_reg["MEM"] = inst

    def EX(self):
        inst = self.pipeline_reg["ID"]
        op = inst.opcode
        rs = inst.rs.as_int()
        rt = inst.rt.as_int()

        if op == "ADD":
            inst.result = (rs + rt) & MASK32
        elif op == "ADDI":
            inst.result = (rs + sign_extend16(inst.rt.as_int(16))) & MASK32
        elif op == "SUB":
            inst.result = (rs - rt) & MASK32
        elif op == "SUBI":
            inst.result = (rs - sign_extend16(inst.rt.as_int(16))) & MASK32
        elif op == "MUL":
            inst.result = (to_signed32(rs) * to_signed32(rt)) & MASK32
        elif op == "MULU":
            inst.result = ((rs & MASK32) * (rt & MASK32)) & MASK32
        elif op == "DIV":
            self._divide(inst, to_signed32(rs), to_signed32(rt))
        elif op == "DIVU":
            self._divide(inst, rs & MASK32, rt & MASK32)
        elif op == "MFHI":
            inst.result = self.hi
        elif op == "SLL":
            inst.result = (rs << (rt & 0x1F)) & MASK32
        elif op == "SRL":
            inst.result = (rs & MASK32) >> (rt & 0x1F)
        elif op == "AND":
            inst.result = (rs & rt) & MASK32
        elif op == "ANDI":
            inst.result = (rs & inst.rt.as_int(16)) & MASK32
        elif op == "OR":
            inst.result = (rs | rt) & MASK32
        elif op == "ORI":
            inst.result = (rs | inst.rt.as_int(16)) & MASK32
        elif op == "XOR":
            inst.result = (rs ^ rt) & MASK32
        elif op == "XORI":
            inst.result = (rs ^ inst.rt.as_int(16)) & MASK32
        elif op == "NOR":
            inst.result = ~(rs | rt) & MASK32
        elif op in ("BEQ", "BNE"):
            equal = rs == inst.branch_comparand
            if (op == "BEQ" and equal) or (op == "BNE" and not equal):
                self.pc = inst.line + sign_extend16(inst.rt.as_int(16))
                self.flush_pipeline()
        elif op == "LW":
            if inst.memory_address is not None:
                inst.rt = Operand.resolved(inst.memory_address)
        elif op == "SW":
            if inst.memory_address is not None:
                inst.result = inst.memory_value
                inst.rt = Operand.resolved(inst.memory_address)
        elif op == "LI":
            inst.result = sign_extend16(inst.rs.as_int(16)) & MASK32
        elif op == "LUI":
            inst.result = (inst.rs.as_int(16) & 0xFFFF) << 16
        elif op != NOP:
            logger.debug("undefined operation in EX stage: %s", op)

        self.pipeline_reg["EX"] = inst

    def _divide(self, inst, dividend, divisor):
        if divisor == 0:
            self._report(DivisionByZero("Division by zero attempted, result set to 0"), inst)
            inst.result = 0
            self.hi = 0
            return
        inst.result = (dividend // divisor) & MASK32
        # HI takes the sign of the dividend.
        remainder = abs(dividend) % abs(divisor)
        self.hi = (-remainder if dividend < 0 else remainder) & MASK32

    def ID(self):
        inst = self.pipeline_reg["IF"]
        if inst.is_nop:
            self.pipeline_reg["ID"] = inst
            return

        if self.detect_load_use_hazard(inst):
            # Keep the instruction in IF and send a bubble down the pipeline.
            self.stall_count += 1
            self.stalled = True
            self.pipeline_reg["ID"] = Instruction()
            return

        self._decode(inst)
        self.pipeline_reg["ID"] = inst

    def _decode(self, inst: Instruction):
        def report(error):
            self._report(error, inst)

        parts = tokenize(inst.raw)
        inst.opcode = parts[0] if parts else NOP

        if len(parts) == 4:
            inst.rd = parse_operand(parts[1], report)
            if inst.rd.is_register:
                inst.branch_comparand = self.read_register(inst.rd.value)
            inst.rs = self._resolve(parse_operand(parts[2], report))
            inst.rt = self._resolve(parse_operand(parts[3], report))
        elif len(parts) == 3:
            inst.rd = parse_operand(parts[1], report)
            if "(" in parts[2]:
                offset_text, _, base_text = parts[2].partition("(")
                offset = 0
                if offset_text:
                    offset = parse_operand(offset_text, report).as_int(16)
                base = parse_int(base_text.replace(")", "").replace("$", "")) or 0
                inst.memory_address = self.read_register(base) + sign_extend16(offset)
                if inst.rd.is_register:
                    inst.memory_value = self.read_register(inst.rd.value)
                else:
                    self._report(InvalidRegisterIndex(f"'{parts[1]}' is not a register"), inst)
                    inst.memory_value = 0
            else:
                inst.rs = parse_operand(parts[2], report)
                if parts[2].startswith("$"):
                    inst.rs = self._resolve(inst.rs)
                else:
                    inst.immediate = parse_int(parts[2]) or 0
        elif len(parts) == 2:
            if parts[1].startswith("$"):
                inst.rd = parse_operand(parts[1], report)
            else:
                inst.immediate = parse_int(parts[1]) or 0

    def IF(self):
        if self.stalled:
            self.stalled = False
            return self.current_line

        line = self.program.fetch(self.pc)
        if line is None:
            inst = Instruction()
            self.current_line = None
        else:
            instruction = line.instruction or NOP
            tokens = instruction.split()
            inst = Instruction(address=line.address, raw=instruction, opcode=tokens[0].upper())
            self.current_line = line.index

        self.pipeline_reg["IF"] = inst
        self.pc += 1
        return self.current_line

    def pipeline_cycle(self):
        """
        Execute one full pipeline cycle.
        Returns the source line fetched this cycle, or None when nothing was fetched.
        """
        self.WB()
        self.MEM()
        self.EX()
        self.ID()
        line = self.IF()
        self.cycles += 1
        return line

    def stage_view(self):
        """Raw text of the instruction occupying each of the five stages."""
        return {
            "IF": self.pipeline_reg["IF"].raw,
            "ID": self.pipeline_reg["ID"].raw,
            "EX": self.pipeline_reg["EX"].raw,
            "MEM": self.pipeline_reg["MEM"].raw,
            "WB": self.retired.raw,
        }
