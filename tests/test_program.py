from pipeline_sim import Program


def test_load_strips_comments_and_uppercases():
    program = Program(["  addi $1, $0, 5   # five", "", "# only a comment"])
    assert [line.instruction for line in program] == ["ADDI $1, $0, 5", "", ""]
    assert [line.address for line in program] == ["0000", "0001", "0002"]


def test_addresses_are_hex_line_indexes():
    program = Program(["nop"] * 27)
    assert program[26].address == "001A"
    assert program[26].index == 26


def test_fetch_outside_program():
    program = Program(["add $1, $2, $3"])
    assert program.fetch(0).instruction == "ADD $1, $2, $3"
    assert program.fetch(1) is None
    assert program.fetch(-1) is None


def test_load_replaces_lines():
    program = Program.from_text("li $1, 1\nli $2, 2")
    assert len(program) == 2
    program.load(["sub $1, $1, $1"])
    assert len(program) == 1
    assert program[0].instruction == "SUB $1, $1, $1"
