from dataclasses import dataclass


@dataclass
class ProgramLine:
    address: str
    instruction: str

    @property
    def index(self):
        return int(self.address, 16)


def clean_line(line):
    """Drop a trailing '#' comment, trim and upper-case."""
    return line.split("#")[0].strip().upper()


class Program:
    """Ordered source lines, each bound to its line index as a 4 digit hex address."""

    def __init__(self, lines=()):
        self.lines = []
        self.load(lines)

    @classmethod
    def from_text(cls, text):
        return cls(text.splitlines())

    def load(self, lines):
        self.lines = [
            ProgramLine(address=f"{index:04X}", instruction=clean_line(line))
            for index, line in enumerate(lines)
        ]

    def fetch(self, pc):
        """The line at `pc`, or None outside the program."""
        if 0 <= pc < len(self.lines):
            return self.lines[pc]
        return None

    def __len__(self):
        return len(self.lines)

    def __getitem__(self, index):
        return self.lines[index]

    def __iter__(self):
        return iter(self.lines)
