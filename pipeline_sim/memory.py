import numpy as np

from .errors import MemoryOutOfBounds, UnalignedOversizeAccess

MASK32 = 0xFFFFFFFF


class Memory:
    """
    Byte addressable memory stored as 32-bit words.

    Byte `a` lives in bits 8*(a & 3) .. 8*(a & 3) + 7 of word a >> 2, so a
    word read at an unaligned address takes its low bytes from the high end
    of the first word and its high bytes from the low end of the next one.
    """

    def __init__(self, size=8192):
        if size <= 0 or size % 4:
            raise ValueError(f"memory size must be a positive multiple of 4, got {size}")
        self.size = size
        self.memory = np.zeros(size // 4, dtype=np.uint32)
        self.baseline = self.memory.copy()

    def _check_word(self, address):
        if address < 0:
            raise MemoryOutOfBounds(f"Negative memory address {address:X} is invalid")
        if address >= self.size:
            raise MemoryOutOfBounds(
                f"Memory address {address:X} is out of bounds. Maximum address is {self.size - 1:X}")
        if address + 4 > self.size:
            raise UnalignedOversizeAccess(f"Word operation at address {address:X} would exceed memory bounds")

    def _check_byte(self, address):
        if not 0 <= address < self.size:
            raise MemoryOutOfBounds(f"Byte address {address:X} is out of bounds")

    def read_word(self, address: int) -> int:
        self._check_word(address)
        start = address & ~0x3
        end = (address + 3) & ~0x3
        offset = address & 0x3

        first = int(self.memory[start >> 2])
        if start == end:
            return first

        second = int(self.memory[end >> 2])
        bytes_from_first = 4 - offset
        upper = first >> (offset * 8)
        lower = second & ((1 << (offset * 8)) - 1)
        return (upper | (lower << (bytes_from_first * 8))) & MASK32

    def write_word(self, address: int, value: int):
        self._check_word(address)
        value &= MASK32
        start = address & ~0x3
        end = (address + 3) & ~0x3
        offset = address & 0x3

        if start == end:
            self.memory[start >> 2] = value
            return

        keep_mask = (1 << (offset * 8)) - 1
        bytes_to_replace = 4 - offset

        first = int(self.memory[start >> 2])
        first = (first & keep_mask) | ((value << (offset * 8)) & ~keep_mask & MASK32)
        self.memory[start >> 2] = first

        second = int(self.memory[end >> 2])
        second = (second & ~keep_mask & MASK32) | ((value >> (bytes_to_replace * 8)) & keep_mask)
        self.memory[end >> 2] = second

    def read_byte(self, address: int) -> int:
        self._check_byte(address)
        word = int(self.memory[address >> 2])
        return (word >> ((address & 0x3) * 8)) & 0xFF

    def write_byte(self, address: int, value: int):
        self._check_byte(address)
        shift = (address & 0x3) * 8
        word = int(self.memory[address >> 2])
        word = (word & ~(0xFF << shift) & MASK32) | ((value & 0xFF) << shift)
        self.memory[address >> 2] = word

    def reset(self):
        self.memory.fill(0)

    def snapshot_as_baseline(self):
        self.baseline = self.memory.copy()

    def restore_from_baseline(self):
        self.memory = self.baseline.copy()

    def dump(self, start=0, count=None):
        """(byte address, word value) pairs for display, starting at the word holding `start`."""
        first = max(start, 0) >> 2
        last = len(self.memory) if count is None else min(first + count, len(self.memory))
        return [(index * 4, int(self.memory[index])) for index in range(first, last)]
