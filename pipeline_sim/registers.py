from .errors import ErrorLog, InvalidRegisterIndex

MASK32 = 0xFFFFFFFF


class RegisterFile:
    """32 general purpose registers. $0 always reads as zero."""

    def __init__(self, errors: ErrorLog = None, count=32):
        self.errors = errors if errors is not None else ErrorLog()
        self.registers = [0] * count
        self.baseline = [0] * count

    def __len__(self):
        return len(self.registers)

    def _valid(self, index):
        if 0 <= index < len(self.registers):
            return True
        self.errors.report(InvalidRegisterIndex(f"Invalid register index: {index}"))
        return False

    def read(self, index: int) -> int:
        if index == 0 or not self._valid(index):
            return 0
        return self.registers[index]

    def write(self, index: int, value: int):
        if index == 0 or not self._valid(index):
            return
        self.registers[index] = value & MASK32

    def reset(self):
        self.registers = [0] * len(self.registers)

    def snapshot_as_baseline(self):
        self.baseline = list(self.registers)
        self.baseline[0] = 0

    def restore_from_baseline(self):
        self.registers = list(self.baseline)
        self.registers[0] = 0

    def values(self):
        """Copy of all register values, $0 included."""
        return list(self.registers)
