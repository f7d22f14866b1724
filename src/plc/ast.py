"""PLC AST: node definitions produced by the parser.

Nodes are built once and never restructured. The Analyzer fills the
annotation slots (``type``, ``variable``, ``function``); they are excluded
from ``__init__`` and from equality, so two trees compare structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from .environment import Function, Type, Variable
    from .values import VBool, VChar, VDecimal, VInt, VNil, VString


def _slot():
    return field(default=None, init=False, repr=False, compare=False)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions. `type` is set by the Analyzer."""

    type: Type | None = _slot()


@dataclass
class Literal(Expr):
    """NIL, TRUE, 1, 1.0, 'c', "string"."""

    value: VNil | VBool | VChar | VString | VInt | VDecimal


@dataclass
class Group(Expr):
    """(expression). Only a Binary may be grouped."""

    expression: Expr


@dataclass
class Binary(Expr):
    """left operator right. Operators: AND OR < <= > >= == != + - * /."""

    operator: str
    left: Expr
    right: Expr


@dataclass
class Access(Expr):
    """name or receiver.name."""

    receiver: Expr | None
    name: str
    variable: Variable | None = _slot()


@dataclass
class Call(Expr):
    """name(arguments) or receiver.name(arguments)."""

    receiver: Expr | None
    name: str
    arguments: list[Expr]
    function: Function | None = _slot()


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""


@dataclass
class ExpressionStmt(Stmt):
    """expression;"""

    expression: Expr


@dataclass
class Declaration(Stmt):
    """LET name (: Type)? (= value)?;"""

    name: str
    type_name: str | None
    value: Expr | None
    variable: Variable | None = _slot()


@dataclass
class Assignment(Stmt):
    """receiver = value;"""

    receiver: Expr
    value: Expr


@dataclass
class If(Stmt):
    """IF condition DO ... (ELSE ...)? END"""

    condition: Expr
    then_statements: list[Stmt]
    else_statements: list[Stmt]


@dataclass
class For(Stmt):
    """FOR name IN value DO ... END"""

    name: str
    value: Expr
    statements: list[Stmt]


@dataclass
class While(Stmt):
    """WHILE condition DO ... END"""

    condition: Expr
    statements: list[Stmt]


@dataclass
class Return(Stmt):
    """RETURN value;"""

    value: Expr


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class Field:
    """LET name: Type (= value)?; at top level."""

    name: str
    type_name: str | None
    value: Expr | None
    variable: Variable | None = _slot()


@dataclass
class Method:
    """DEF name(p: T, ...) (: R)? DO ... END"""

    name: str
    parameters: list[str]
    parameter_type_names: list[str]
    return_type_name: str | None
    statements: list[Stmt]
    function: Function | None = _slot()


@dataclass
class Source:
    """Top-level program: fields first, then methods."""

    fields: list[Field]
    methods: list[Method]


Node = Source | Field | Method | Stmt | Expr


# ============================================================
# TRAVERSAL
# ============================================================


def children(node: Node) -> list[Node]:
    """Direct children of a node, in source order."""
    if isinstance(node, Source):
        return [*node.fields, *node.methods]
    if isinstance(node, (Field, Declaration)):
        return [node.value] if node.value is not None else []
    if isinstance(node, Method):
        return list(node.statements)
    if isinstance(node, ExpressionStmt):
        return [node.expression]
    if isinstance(node, Assignment):
        return [node.receiver, node.value]
    if isinstance(node, If):
        return [node.condition, *node.then_statements, *node.else_statements]
    if isinstance(node, For):
        return [node.value, *node.statements]
    if isinstance(node, While):
        return [node.condition, *node.statements]
    if isinstance(node, Return):
        return [node.value]
    if isinstance(node, Group):
        return [node.expression]
    if isinstance(node, Binary):
        return [node.left, node.right]
    if isinstance(node, Access):
        return [node.receiver] if node.receiver is not None else []
    if isinstance(node, Call):
        out: list[Node] = []
        if node.receiver is not None:
            out.append(node.receiver)
        out.extend(node.arguments)
        return out
    return []


def walk(node: Node) -> Iterator[Node]:
    """Yield `node` and every descendant, depth-first in source order."""
    yield node
    for child in children(node):
        yield from walk(child)
