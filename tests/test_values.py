"""Tests for value display and literal construction."""

from decimal import Decimal

import pytest

from plc.errors import MALFORMED_AST, PlcError
from plc.interpreter import decimal_divide
from plc.values import (
    NIL,
    VBool,
    VChar,
    VDecimal,
    VInt,
    VIterable,
    VString,
    parse_character,
    parse_decimal,
    parse_integer,
    parse_string,
    unescape,
)


def test_display_forms():
    assert NIL.to_string() == "nil"
    assert VBool(True).to_string() == "true"
    assert VBool(False).to_string() == "false"
    assert VChar("c").to_string() == "c"
    assert VString("hi").to_string() == "hi"
    assert VInt(-7).to_string() == "-7"
    assert VDecimal(Decimal("1.50")).to_string() == "1.50"


def test_kinds():
    assert NIL.kind() == "Nil"
    assert VInt(1).kind() == "Integer"
    assert VDecimal(Decimal("1")).kind() == "Decimal"
    assert VIterable((1, 2)).kind() == "IntegerIterable"


def test_iterable_is_restartable():
    it = VIterable((1, 2, 3))
    assert list(it) == [VInt(1), VInt(2), VInt(3)]
    assert list(it) == [VInt(1), VInt(2), VInt(3)]


def test_char_must_be_single():
    with pytest.raises(ValueError):
        VChar("ab")


def test_parse_integer_keeps_precision():
    assert parse_integer("123456789012345678901234567890").value == 123456789012345678901234567890


def test_parse_decimal_keeps_scale():
    d = parse_decimal("1.000000000000000000000000000001")
    assert d.to_string() == "1.000000000000000000000000000001"


@pytest.mark.parametrize("text", ["abc", "NaN", "Infinity", ""])
def test_parse_decimal_rejects(text):
    with pytest.raises(PlcError) as exc:
        parse_decimal(text)
    assert exc.value.kind == MALFORMED_AST


def test_parse_integer_rejects():
    with pytest.raises(PlcError) as exc:
        parse_integer("1.5")
    assert exc.value.kind == MALFORMED_AST


def test_escapes_resolved_once():
    assert unescape(r"a\nb\tc") == "a\nb\tc"
    assert unescape(r"\\n") == "\\n"
    assert parse_string(r'"say \"hi\""').value == 'say "hi"'
    assert parse_character(r"'\''").value == "'"
    assert parse_character("'x'").value == "x"


def test_all_escapes():
    assert unescape(r"\b\n\r\t\\\"\'") == "\b\n\r\t\\\"'"


def test_bad_escape():
    with pytest.raises(PlcError) as exc:
        unescape(r"\q")
    assert exc.value.kind == MALFORMED_AST


def test_character_literal_length():
    with pytest.raises(PlcError) as exc:
        parse_character("'ab'")
    assert exc.value.kind == MALFORMED_AST


def test_string_needs_quotes():
    with pytest.raises(PlcError) as exc:
        parse_string("abc")
    assert exc.value.kind == MALFORMED_AST


# ── Decimal division ──────────────────────────────────────────


@pytest.mark.parametrize(
    "left,right,expected",
    [
        ("1.0", "3.0", "0.3"),
        ("1.00", "3.0", "0.33"),
        ("2.0", "3.0", "0.7"),
        ("0.5", "2", "0.2"),
        ("1.5", "2", "0.8"),
        ("-1.5", "2", "-0.8"),
        ("-2.5", "2", "-1.2"),
        ("10", "4", "2"),
        ("7.50", "2.5", "3.00"),
    ],
)
def test_decimal_divide_half_even(left, right, expected):
    got = decimal_divide(Decimal(left), Decimal(right))
    assert str(got) == expected


def test_decimal_divide_is_deterministic():
    results = {str(decimal_divide(Decimal("1.0"), Decimal("3.0"))) for _ in range(5)}
    assert results == {"0.3"}


def test_decimal_divide_by_zero():
    with pytest.raises(ZeroDivisionError):
        decimal_divide(Decimal("1.0"), Decimal("0.00"))
