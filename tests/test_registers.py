from pipeline_sim import ErrorLog, InvalidRegisterIndex, RegisterFile


def test_register_zero_is_hardwired():
    registers = RegisterFile()
    registers.write(0, 5)
    assert registers.read(0) == 0


def test_write_masks_to_32_bits():
    registers = RegisterFile()
    registers.write(1, 0x1_0000_0005)
    registers.write(2, -1)
    assert registers.read(1) == 5
    assert registers.read(2) == 0xFFFFFFFF


def test_out_of_range_index_is_reported():
    errors = ErrorLog()
    registers = RegisterFile(errors)
    assert registers.read(32) == 0
    assert registers.read(-1) == 0
    registers.write(32, 1)
    assert len(errors) == 3
    assert all(isinstance(error, InvalidRegisterIndex) for error in errors)
    assert registers.values() == [0] * 32


def test_reset():
    registers = RegisterFile()
    registers.write(4, 9)
    registers.reset()
    assert registers.values() == [0] * 32


def test_baseline_is_a_copy():
    registers = RegisterFile()
    registers.write(3, 9)
    registers.snapshot_as_baseline()
    registers.write(3, 1)
    registers.restore_from_baseline()
    assert registers.read(3) == 9

    registers.write(3, 2)
    registers.restore_from_baseline()
    assert registers.read(3) == 9


def test_restore_zeroes_register_zero():
    registers = RegisterFile()
    registers.baseline[0] = 7
    registers.restore_from_baseline()
    assert registers.registers[0] == 0
    assert registers.read(0) == 0
