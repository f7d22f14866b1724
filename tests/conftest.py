"""Pytest configuration and tree builders for the PLC test suite."""

import sys
from decimal import Decimal
from pathlib import Path

# Add src directory to path for plc imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from plc.ast import (  # noqa: E402
    Access,
    Binary,
    Call,
    Declaration,
    Expr,
    ExpressionStmt,
    Field,
    Literal,
    Method,
    Return,
    Source,
    Stmt,
)
from plc.values import NIL, VBool, VChar, VDecimal, VInt, VString  # noqa: E402


def lit(v: object) -> Literal:
    """Literal from a Python value: None, bool, int, Decimal, or str.

    One-character strings wrapped as ("c",) become Characters.
    """
    if v is None:
        return Literal(NIL)
    if isinstance(v, bool):
        return Literal(VBool(v))
    if isinstance(v, int):
        return Literal(VInt(v))
    if isinstance(v, Decimal):
        return Literal(VDecimal(v))
    if isinstance(v, tuple):
        return Literal(VChar(v[0]))
    assert isinstance(v, str)
    return Literal(VString(v))


def dec(text: str) -> Literal:
    return Literal(VDecimal(Decimal(text)))


def var(name: str, receiver: Expr | None = None) -> Access:
    return Access(receiver, name)


def call(name: str, *args: Expr, receiver: Expr | None = None) -> Call:
    return Call(receiver, name, list(args))


def binary(op: str, left: Expr, right: Expr) -> Binary:
    return Binary(op, left, right)


def stmt(e: Expr) -> ExpressionStmt:
    return ExpressionStmt(e)


def let(name: str, type_name: str | None = None, value: Expr | None = None) -> Declaration:
    return Declaration(name, type_name, value)


def ret(e: Expr) -> Return:
    return Return(e)


def method(
    name: str,
    body: list[Stmt],
    params: list[tuple[str, str]] | None = None,
    returns: str | None = "Integer",
) -> Method:
    params = params or []
    return Method(name, [p[0] for p in params], [p[1] for p in params], returns, body)


def program(*methods: Method, fields: list[Field] | None = None) -> Source:
    return Source(fields or [], list(methods))


def main(*body: Stmt) -> Source:
    """A program whose only method is main/0 returning Integer."""
    return program(method("main", list(body)))
