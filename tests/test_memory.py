import numpy as np
import pytest

from pipeline_sim import Memory, MemoryOutOfBounds, UnalignedOversizeAccess


@pytest.mark.parametrize("address", [0, 1, 2, 3, 4, 5, 6, 7, 4093, 8185, 8186, 8187, 8188])
def test_word_round_trip(address):
    memory = Memory(8192)
    memory.write_word(address, 0x12345678)
    assert memory.read_word(address) == 0x12345678
    memory.write_word(address, 0x1_FFFF_FFFE)
    assert memory.read_word(address) == 0xFFFFFFFE


def test_unaligned_write_places_bytes_little_endian():
    memory = Memory(64)
    memory.write_word(1, 0xAABBCCDD)
    assert [memory.read_byte(a) for a in range(6)] == [0x00, 0xDD, 0xCC, 0xBB, 0xAA, 0x00]
    assert int(memory.memory[0]) == 0xBBCCDD00
    assert int(memory.memory[1]) == 0x000000AA


def test_unaligned_write_keeps_neighbouring_bytes():
    memory = Memory(64)
    memory.write_word(0, 0x11111111)
    memory.write_word(4, 0x22222222)
    memory.write_word(2, 0xAABBCCDD)
    assert memory.read_word(0) == 0xCCDD1111
    assert memory.read_word(4) == 0x2222AABB
    assert memory.read_word(2) == 0xAABBCCDD


@pytest.mark.parametrize("address", [0, 4, 8188])
def test_bytewise_writes_match_word_write(address):
    by_word = Memory(8192)
    by_word.write_word(address, 0x12345678)

    by_byte = Memory(8192)
    for i, byte in enumerate([0x78, 0x56, 0x34, 0x12]):
        by_byte.write_byte(address + i, byte)

    assert by_byte.read_word(address) == 0x12345678
    assert np.array_equal(by_word.memory, by_byte.memory)


def test_out_of_bounds_accesses_raise():
    memory = Memory(8192)
    with pytest.raises(MemoryOutOfBounds):
        memory.read_word(-1)
    with pytest.raises(MemoryOutOfBounds):
        memory.read_word(8192)
    with pytest.raises(UnalignedOversizeAccess):
        memory.read_word(8189)
    with pytest.raises(UnalignedOversizeAccess):
        memory.write_word(8190, 1)
    with pytest.raises(MemoryOutOfBounds):
        memory.read_byte(8192)
    assert not memory.memory.any()


def test_size_must_be_word_multiple():
    with pytest.raises(ValueError):
        Memory(10)
    with pytest.raises(ValueError):
        Memory(0)


def test_reset_and_baseline():
    memory = Memory(64)
    memory.write_word(8, 5)
    memory.snapshot_as_baseline()
    memory.write_word(8, 6)
    memory.reset()
    assert not memory.memory.any()

    memory.restore_from_baseline()
    assert memory.read_word(8) == 5
    memory.write_word(8, 7)
    memory.restore_from_baseline()
    assert memory.read_word(8) == 5


def test_dump():
    memory = Memory(64)
    memory.write_word(4, 7)
    assert memory.dump(0, 2) == [(0, 0), (4, 7)]
    assert memory.dump(5, 1) == [(4, 7)]
    assert len(memory.dump()) == 16
