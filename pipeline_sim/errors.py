import logging
from collections import deque

logger = logging.getLogger(__name__)


class SimulatorException(Exception):
    """Recoverable simulation error. Reported, never fatal."""
    level = logging.ERROR

    def __init__(self, message: str, line: int = None):
        super().__init__(message)
        self.line = line

    def set_line(self, line):
        if self.line is None:
            self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {super().__str__()}"
        return super().__str__()


class InvalidRegisterIndex(SimulatorException):
    pass


class MemoryOutOfBounds(SimulatorException):
    pass


class UnalignedOversizeAccess(MemoryOutOfBounds):
    """A word access that starts in bounds but runs past the end of memory."""


class DivisionByZero(SimulatorException):
    pass


class ImmediateOverflow(SimulatorException):
    level = logging.WARNING


class ErrorLog:
    """
    Collects reported errors for the caller and logs them.
    Keeps at most `limit` entries, oldest dropped first.
    """

    def __init__(self, limit=1000):
        self.entries = deque(maxlen=limit)

    def report(self, error: SimulatorException):
        logger.log(error.level, "%s: %s", type(error).__name__, error)
        self.entries.append(error)

    def drain(self):
        """Return every entry and empty the log."""
        entries = list(self.entries)
        self.entries.clear()
        return entries

    def clear(self):
        self.entries.clear()

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)
