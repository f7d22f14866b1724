"""PLC environment: bindings, scopes, types and assignability.

Both passes share these structures. The Analyzer stores declared types in
variables; the Interpreter stores live values (and leaves ``type`` as None).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from .errors import (
    ARITY_MISMATCH,
    DUPLICATE_FUNCTION,
    DUPLICATE_NAME,
    TYPE_MISMATCH,
    UNDEFINED_NAME,
    PlcError,
)
from .values import Value


# ============================================================
# BINDINGS
# ============================================================


@dataclass(eq=False)
class Variable:
    name: str
    target_name: str
    type: Type | None
    value: Value


@dataclass(eq=False)
class Function:
    """A callable binding, identified by (name, arity)."""

    name: str
    target_name: str
    parameter_types: tuple[Type, ...]
    return_type: Type
    implementation: Callable[[list[Value]], Value] | None = None

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def invoke(self, arguments: list[Value]) -> Value:
        if self.implementation is None:
            raise PlcError(UNDEFINED_NAME, "function '" + self.name + "' has no implementation")
        return self.implementation(arguments)


# ============================================================
# MEMBER TABLES
# ============================================================


class Members:
    """A flat table of variables and functions, with no enclosing table.

    Used directly as the capability table of a type or object, and as the
    local table of a lexical Scope.
    """

    def __init__(self) -> None:
        self.variables: dict[str, Variable] = {}
        self.functions: dict[tuple[str, int], Function] = {}

    def declare_variable(
        self, name: str, typ: Type | None, value: Value, target_name: str | None = None
    ) -> Variable:
        if name in self.variables:
            raise PlcError(DUPLICATE_NAME, "'" + name + "' already declared")
        var = Variable(name, target_name or name, typ, value)
        self.variables[name] = var
        return var

    def declare_function(
        self,
        name: str,
        parameter_types: Sequence[Type],
        return_type: Type,
        implementation: Callable[[list[Value]], Value] | None = None,
        target_name: str | None = None,
    ) -> Function:
        key = (name, len(parameter_types))
        if key in self.functions:
            raise PlcError(
                DUPLICATE_FUNCTION,
                "function '" + name + "/" + str(key[1]) + "' already declared",
            )
        fn = Function(name, target_name or name, tuple(parameter_types), return_type, implementation)
        self.functions[key] = fn
        return fn

    def has_function_named(self, name: str) -> bool:
        for fn_name, _ in self.functions:
            if fn_name == name:
                return True
        return False

    def lookup_variable(self, name: str) -> Variable:
        if name not in self.variables:
            raise PlcError(UNDEFINED_NAME, "undefined member '" + name + "'")
        return self.variables[name]

    def lookup_function(self, name: str, arity: int) -> Function:
        key = (name, arity)
        if key in self.functions:
            return self.functions[key]
        if self.has_function_named(name):
            raise PlcError(
                ARITY_MISMATCH,
                "no overload of '" + name + "' takes " + str(arity) + " arguments",
            )
        raise PlcError(UNDEFINED_NAME, "undefined member function '" + name + "'")


# ============================================================
# SCOPES
# ============================================================


class Scope:
    """Lexical environment. The parent link is non-owning."""

    def __init__(self, parent: Scope | None = None) -> None:
        self.parent = parent
        self.members = Members()

    def declare_variable(
        self, name: str, typ: Type | None, value: Value, target_name: str | None = None
    ) -> Variable:
        return self.members.declare_variable(name, typ, value, target_name)

    def declare_function(
        self,
        name: str,
        parameter_types: Sequence[Type],
        return_type: Type,
        implementation: Callable[[list[Value]], Value] | None = None,
        target_name: str | None = None,
    ) -> Function:
        return self.members.declare_function(
            name, parameter_types, return_type, implementation, target_name
        )

    def lookup_variable(self, name: str) -> Variable:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.members.variables:
                return scope.members.variables[name]
            scope = scope.parent
        raise PlcError(UNDEFINED_NAME, "undefined name '" + name + "'")

    def lookup_function(self, name: str, arity: int) -> Function:
        seen_name = False
        scope: Scope | None = self
        while scope is not None:
            key = (name, arity)
            if key in scope.members.functions:
                return scope.members.functions[key]
            if scope.members.has_function_named(name):
                seen_name = True
            scope = scope.parent
        if seen_name:
            raise PlcError(
                ARITY_MISMATCH,
                "no overload of '" + name + "' takes " + str(arity) + " arguments",
            )
        raise PlcError(UNDEFINED_NAME, "undefined function '" + name + "'")


# ============================================================
# TYPES
# ============================================================


@dataclass(frozen=True, eq=False)
class Type:
    name: str
    target_name: str
    members: Members = field(default_factory=Members, repr=False)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Type) and self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name


ANY_T: Type = Type("Any", "Object")
NIL_T: Type = Type("Nil", "Void")
INTEGER_ITERABLE_T: Type = Type("IntegerIterable", "Iterable<Integer>")
COMPARABLE_T: Type = Type("Comparable", "Comparable")
BOOLEAN_T: Type = Type("Boolean", "boolean")
INTEGER_T: Type = Type("Integer", "int")
DECIMAL_T: Type = Type("Decimal", "double")
CHARACTER_T: Type = Type("Character", "char")
STRING_T: Type = Type("String", "String")

BUILTIN_TYPES: tuple[Type, ...] = (
    ANY_T,
    NIL_T,
    INTEGER_ITERABLE_T,
    COMPARABLE_T,
    BOOLEAN_T,
    INTEGER_T,
    DECIMAL_T,
    CHARACTER_T,
    STRING_T,
)

COMPARABLE_TYPES: frozenset[str] = frozenset({"Integer", "Decimal", "Character", "String"})


class TypeRegistry:
    """Named types known to a pass: the built-ins plus host registrations."""

    def __init__(self) -> None:
        self._types: dict[str, Type] = {}
        # Each registry owns the member tables of its built-ins.
        for t in BUILTIN_TYPES:
            self._types[t.name] = Type(t.name, t.target_name, Members())

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def get(self, name: str) -> Type:
        if name not in self._types:
            raise PlcError(UNDEFINED_NAME, "unknown type '" + name + "'")
        return self._types[name]

    def register(
        self, name: str, target_name: str | None = None, members: Members | None = None
    ) -> Type:
        if name in self._types:
            raise PlcError(DUPLICATE_NAME, "type '" + name + "' already registered")
        typ = Type(name, target_name or name, members if members is not None else Members())
        self._types[name] = typ
        return typ


# ============================================================
# ASSIGNABILITY
# ============================================================


def is_assignable(target: Type, source: Type) -> bool:
    """Can a value of type `source` be stored in a slot of type `target`?"""
    if target.name == source.name:
        return True
    if target.name == ANY_T.name:
        return True
    if target.name == COMPARABLE_T.name:
        return source.name in COMPARABLE_TYPES
    return False


def require_assignable(target: Type, source: Type) -> None:
    if not is_assignable(target, source):
        raise PlcError(TYPE_MISMATCH, "cannot assign " + source.name + " to " + target.name)
