"""PLC values: literal payloads and runtime values.

Literals and runtime values share one closed set of variants. The parser
builds literals through the ``parse_*`` helpers below so that numbers keep
full precision and escapes are resolved exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Iterator

from .errors import MALFORMED_AST, PlcError

if TYPE_CHECKING:
    from .environment import Members, Type


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value tagged with the name of its PLC type."""

    def kind(self) -> str:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class VNil(Value):
    def kind(self) -> str:
        return "Nil"

    def to_string(self) -> str:
        return "nil"


@dataclass(frozen=True)
class VBool(Value):
    value: bool

    def kind(self) -> str:
        return "Boolean"

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class VChar(Value):
    value: str  # len == 1

    def __post_init__(self) -> None:
        if len(self.value) != 1:
            raise ValueError("character must be length 1")

    def kind(self) -> str:
        return "Character"

    def to_string(self) -> str:
        return self.value


@dataclass(frozen=True)
class VString(Value):
    value: str

    def kind(self) -> str:
        return "String"

    def to_string(self) -> str:
        return self.value


@dataclass(frozen=True)
class VInt(Value):
    value: int

    def kind(self) -> str:
        return "Integer"

    def to_string(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VDecimal(Value):
    value: Decimal

    def kind(self) -> str:
        return "Decimal"

    def to_string(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VIterable(Value):
    """A finite, restartable sequence of integers."""

    items: tuple[int, ...]

    def __iter__(self) -> Iterator[VInt]:
        for i in self.items:
            yield VInt(i)

    def kind(self) -> str:
        return "IntegerIterable"

    def to_string(self) -> str:
        return "[" + ", ".join(str(i) for i in self.items) + "]"


@dataclass(eq=False)
class VObject(Value):
    """A host-provided object; its own members hold fields and methods."""

    type: Type
    members: Members

    def kind(self) -> str:
        return self.type.name

    def to_string(self) -> str:
        return "<" + self.type.name + ">"


NIL: VNil = VNil()


# ============================================================
# Literal construction
# ============================================================


_ESCAPES: dict[str, str] = {
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def unescape(text: str) -> str:
    """Resolve backslash escapes in the body of a character or string literal."""
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(text) or text[i + 1] not in _ESCAPES:
            raise PlcError(MALFORMED_AST, "invalid escape sequence in " + repr(text))
        out.append(_ESCAPES[text[i + 1]])
        i += 2
    return "".join(out)


def _strip_quotes(text: str, quote: str) -> str:
    if len(text) < 2 or text[0] != quote or text[-1] != quote:
        raise PlcError(MALFORMED_AST, "expected " + quote + "-quoted literal, got " + repr(text))
    return text[1:-1]


def parse_integer(text: str) -> VInt:
    try:
        return VInt(int(text, 10))
    except ValueError:
        raise PlcError(MALFORMED_AST, "invalid integer literal " + repr(text)) from None


def parse_decimal(text: str) -> VDecimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise PlcError(MALFORMED_AST, "invalid decimal literal " + repr(text)) from None
    if not value.is_finite():
        raise PlcError(MALFORMED_AST, "invalid decimal literal " + repr(text))
    return VDecimal(value)


def parse_character(text: str) -> VChar:
    """'c' or an escape such as '\\n', quotes included."""
    body = unescape(_strip_quotes(text, "'"))
    if len(body) != 1:
        raise PlcError(MALFORMED_AST, "character literal must hold one character: " + repr(text))
    return VChar(body)


def parse_string(text: str) -> VString:
    """A double-quoted string literal, quotes included."""
    return VString(unescape(_strip_quotes(text, '"')))
