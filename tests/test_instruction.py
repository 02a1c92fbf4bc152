from dataclasses import fields

import pytest

from pipeline_sim import ImmediateOverflow, Instruction, Operand, OperandKind
from pipeline_sim.instruction import (
    parse_int, parse_operand, sign_extend16, source_registers, to_signed32, tokenize,
)


def test_tokenize_ignores_commas():
    assert tokenize("ADDI $1, $0, 5") == ["ADDI", "$1", "$0", "5"]
    assert tokenize("SW $5,4($2)") == ["SW", "$5", "4($2)"]


@pytest.mark.parametrize("text, base, expected", [
    ("12G", 16, 0x12),
    ("0x1F", 16, 31),
    ("-1", 16, -1),
    ("FFFE", 16, 0xFFFE),
    ("0x10", 10, 0),
    ("42abc", 10, 42),
    ("abc", 10, None),
    ("", 16, None),
])
def test_parse_int_reads_leading_number(text, base, expected):
    assert parse_int(text, base) == expected


def test_sign_extend16():
    assert sign_extend16(0xFFFF) == -1
    assert sign_extend16(0x7FFF) == 0x7FFF
    assert sign_extend16(0x8000) == -32768
    assert sign_extend16(0x1FFFE) == -2
    assert to_signed32(0xFFFFFFFF) == -1
    assert to_signed32(5) == 5


def test_parse_operand_kinds():
    assert parse_operand("$7") == Operand.register(7)
    assert parse_operand("5") == Operand.literal("5")
    assert parse_operand("") == Operand.resolved(0)
    assert parse_operand("$7").kind is OperandKind.REGISTER


def test_wide_hex_literal_is_truncated_and_reported():
    reported = []
    operand = parse_operand("123456", reported.append)
    assert operand == Operand.literal("1234")
    assert len(reported) == 1
    assert isinstance(reported[0], ImmediateOverflow)


def test_short_or_non_hex_literal_is_kept():
    reported = []
    assert parse_operand("0x10", reported.append) == Operand.literal("0x10")
    assert parse_operand("HELLO", reported.append) == Operand.literal("HELLO")
    assert reported == []


def test_operand_as_int():
    assert Operand.literal("10").as_int() == 10
    assert Operand.literal("10").as_int(16) == 16
    assert Operand.literal("zz").as_int() == 0
    assert Operand.resolved(5).as_int(16) == 5
    assert str(Operand.register(3)) == "$3"


def test_source_registers():
    assert source_registers("SW $5, 4($2)") == {5, 2}
    assert source_registers("ADD $3, $1, $1") == {3, 1}
    assert source_registers("NOP") == set()


def test_instruction_defaults():
    inst = Instruction()
    assert inst.is_nop
    assert inst.line is None
    assert not inst.writes_register()

    inst = Instruction(address="000A", raw="LI $1, 1", opcode="LI", rd=Operand.register(1))
    assert inst.line == 10
    assert inst.writes_register()


def test_decoded_record_carries_only_pipeline_fields():
    assert [f.name for f in fields(Instruction)] == [
        "address", "raw", "opcode", "rs", "rt", "rd", "immediate",
        "result", "memory_address", "memory_value", "branch_comparand",
    ]
