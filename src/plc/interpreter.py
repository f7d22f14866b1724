"""PLC interpreter: executes a Source tree directly.

Statements return ``Returned`` when a RETURN has run and None when they
complete normally; only a method call consumes ``Returned``. The active
scope is passed to every method, and each block, iteration and call gets a
child scope that goes out of reach when the call that made it returns.
"""

from __future__ import annotations

import decimal
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import TextIO

from .ast import (
    Access,
    Assignment,
    Binary,
    Call,
    Declaration,
    Expr,
    ExpressionStmt,
    Field,
    For,
    Group,
    If,
    Literal,
    Method,
    Return,
    Source,
    Stmt,
    While,
)
from .environment import ANY_T, NIL_T, Members, Scope, TypeRegistry
from .errors import (
    DIVIDE_BY_ZERO,
    INVALID_ASSIGNMENT_TARGET,
    INVALID_STATEMENT,
    RUNTIME_TYPE_ERROR,
    UNKNOWN_OPERATOR,
    EvaluationError,
)
from .values import (
    NIL,
    Value,
    VBool,
    VChar,
    VDecimal,
    VInt,
    VIterable,
    VObject,
    VString,
)

logger = logging.getLogger(__name__)

# Wide enough that + - * never round.
_EXACT = decimal.Context(
    prec=decimal.MAX_PREC, Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN
)


@dataclass(frozen=True)
class Returned:
    """A RETURN ran; carries its value up to the method-call boundary."""

    value: Value


Outcome = Returned | None


# ============================================================
# ARITHMETIC HELPERS
# ============================================================


def _int_div_trunc(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q


def _unscaled(d: Decimal) -> tuple[int, int]:
    """Split a finite decimal into (coefficient, exponent)."""
    sign, digits, exp = d.as_tuple()
    assert isinstance(exp, int)
    coeff = 0
    for digit in digits:
        coeff = coeff * 10 + digit
    return (-coeff if sign else coeff, exp)


def _round_half_even(n: int, d: int) -> int:
    if d < 0:
        n, d = -n, -d
    q, r = divmod(n, d)
    if 2 * r > d or (2 * r == d and q % 2 == 1):
        q += 1
    return q


def decimal_divide(left: Decimal, right: Decimal) -> Decimal:
    """left / right rounded half-even to the exponent of `left`.

    1.0 / 3.0 == 0.3, 1.00 / 3.0 == 0.33, 5 / 2 == 2.
    """
    a, exp = _unscaled(left)
    b, rexp = _unscaled(right)
    if b == 0:
        raise ZeroDivisionError
    if rexp >= 0:
        q = _round_half_even(a, b * 10**rexp)
    else:
        q = _round_half_even(a * 10**-rexp, b)
    return Decimal(str(q) + "E" + str(exp))


def _value_eq(left: Value, right: Value) -> bool:
    # Decimals are equal only at the same scale: 1.0 != 1.00.
    if isinstance(left, VDecimal) and isinstance(right, VDecimal):
        a, b = left.value, right.value
        return a == b and a.as_tuple().exponent == b.as_tuple().exponent
    return type(left) is type(right) and left == right


def _cmp(op: str, a: object, b: object) -> bool:
    if op == "<":
        return a < b  # type: ignore[operator]
    if op == "<=":
        return a <= b  # type: ignore[operator]
    if op == ">":
        return a > b  # type: ignore[operator]
    return a >= b  # type: ignore[operator]


# ============================================================
# INTERPRETER
# ============================================================


class Interpreter:
    def __init__(
        self,
        parent: Scope | None = None,
        types: TypeRegistry | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.types = types if types is not None else TypeRegistry()
        self.out = out if out is not None else sys.stdout
        self.scope = Scope(parent)
        self.scope.declare_function(
            "print", [ANY_T], NIL_T, self._print, target_name="System.out.println"
        )

    def _print(self, args: list[Value]) -> Value:
        self.out.write(args[0].to_string() + "\n")
        return NIL

    def evaluate(self, source: Source) -> Value:
        """Run a program and return the value of main/0."""
        for f in source.fields:
            self._declare_field(f, self.scope)
        for m in source.methods:
            self._declare_method(m, self.scope)
        main = self.scope.lookup_function("main", 0)
        logger.debug("invoking main/0")
        result = main.invoke([])
        logger.debug("main/0 returned %s", result.to_string())
        return result

    # ---- Declarations ------------------------------------------------------

    def _declare_field(self, f: Field, scope: Scope) -> None:
        value = self._eval_expr(f.value, scope) if f.value is not None else NIL
        scope.declare_variable(f.name, None, value)

    def _declare_method(self, m: Method, scope: Scope) -> None:
        def invoke(args: list[Value]) -> Value:
            return self._call_method(m, scope, args)

        scope.declare_function(m.name, [ANY_T] * len(m.parameters), ANY_T, invoke)
        logger.debug("registered method %s/%d", m.name, len(m.parameters))

    def _call_method(self, m: Method, declaring: Scope, args: list[Value]) -> Value:
        frame = Scope(declaring)
        for name, value in zip(m.parameters, args):
            frame.declare_variable(name, None, value)
        outcome = self._exec_stmts(m.statements, frame)
        if isinstance(outcome, Returned):
            return outcome.value
        return NIL

    # ---- Statements --------------------------------------------------------

    def _exec_stmts(self, stmts: list[Stmt], scope: Scope) -> Outcome:
        for st in stmts:
            outcome = self._exec_stmt(st, scope)
            if outcome is not None:
                return outcome
        return None

    def _exec_stmt(self, st: Stmt, scope: Scope) -> Outcome:
        if isinstance(st, ExpressionStmt):
            self._eval_expr(st.expression, scope)
            return None

        if isinstance(st, Declaration):
            value = self._eval_expr(st.value, scope) if st.value is not None else NIL
            scope.declare_variable(st.name, None, value)
            return None

        if isinstance(st, Assignment):
            self._exec_assignment(st, scope)
            return None

        if isinstance(st, If):
            if self._require_bool(self._eval_expr(st.condition, scope)):
                return self._exec_stmts(st.then_statements, Scope(scope))
            return self._exec_stmts(st.else_statements, Scope(scope))

        if isinstance(st, For):
            iterable = self._eval_expr(st.value, scope)
            if not isinstance(iterable, VIterable):
                raise EvaluationError(
                    RUNTIME_TYPE_ERROR, "cannot iterate over " + iterable.kind()
                )
            for item in iterable:
                body = Scope(scope)
                body.declare_variable(st.name, None, item)
                outcome = self._exec_stmts(st.statements, body)
                if outcome is not None:
                    return outcome
            return None

        if isinstance(st, While):
            while self._require_bool(self._eval_expr(st.condition, scope)):
                outcome = self._exec_stmts(st.statements, Scope(scope))
                if outcome is not None:
                    return outcome
            return None

        if isinstance(st, Return):
            return Returned(self._eval_expr(st.value, scope))

        raise EvaluationError(
            INVALID_STATEMENT, "unhandled statement " + type(st).__name__
        )

    def _exec_assignment(self, st: Assignment, scope: Scope) -> None:
        target = st.receiver
        if not isinstance(target, Access):
            raise EvaluationError(
                INVALID_ASSIGNMENT_TARGET, "cannot assign to " + type(target).__name__
            )
        if target.receiver is not None:
            owner = self._eval_expr(target.receiver, scope)
            var = self._members_of(owner).lookup_variable(target.name)
        else:
            var = scope.lookup_variable(target.name)
        var.value = self._eval_expr(st.value, scope)

    # ---- Expressions -------------------------------------------------------

    def _eval_expr(self, expr: Expr, scope: Scope) -> Value:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Group):
            return self._eval_expr(expr.expression, scope)
        if isinstance(expr, Binary):
            return self._eval_binary_expr(expr, scope)
        if isinstance(expr, Access):
            if expr.receiver is not None:
                owner = self._eval_expr(expr.receiver, scope)
                return self._members_of(owner).lookup_variable(expr.name).value
            return scope.lookup_variable(expr.name).value
        if isinstance(expr, Call):
            return self._eval_call(expr, scope)
        raise EvaluationError(
            INVALID_STATEMENT, "unhandled expression " + type(expr).__name__
        )

    def _eval_call(self, expr: Call, scope: Scope) -> Value:
        if expr.receiver is not None:
            owner = self._eval_expr(expr.receiver, scope)
            args = [self._eval_expr(a, scope) for a in expr.arguments]
            fn = self._members_of(owner).lookup_function(expr.name, len(args) + 1)
            return fn.invoke([owner, *args])
        args = [self._eval_expr(a, scope) for a in expr.arguments]
        fn = scope.lookup_function(expr.name, len(args))
        return fn.invoke(args)

    def _members_of(self, value: Value) -> Members:
        if isinstance(value, VObject):
            return value.members
        return self.types.get(value.kind()).members

    def _require_bool(self, value: Value) -> bool:
        if not isinstance(value, VBool):
            raise EvaluationError(
                RUNTIME_TYPE_ERROR, "expected Boolean, got " + value.kind()
            )
        return value.value

    def _eval_binary_expr(self, expr: Binary, scope: Scope) -> Value:
        op = expr.operator
        if op == "AND":
            if not self._require_bool(self._eval_expr(expr.left, scope)):
                return VBool(False)
            return VBool(self._require_bool(self._eval_expr(expr.right, scope)))
        if op == "OR":
            if self._require_bool(self._eval_expr(expr.left, scope)):
                return VBool(True)
            return VBool(self._require_bool(self._eval_expr(expr.right, scope)))
        left = self._eval_expr(expr.left, scope)
        right = self._eval_expr(expr.right, scope)
        return self._eval_binary(op, left, right)

    def _eval_binary(self, op: str, left: Value, right: Value) -> Value:
        if op == "==":
            return VBool(_value_eq(left, right))
        if op == "!=":
            return VBool(not _value_eq(left, right))

        if op in ("<", "<=", ">", ">="):
            match (left, right):
                case (
                    (VInt(a), VInt(b))
                    | (VDecimal(a), VDecimal(b))
                    | (VChar(a), VChar(b))
                    | (VString(a), VString(b))
                ):
                    return VBool(_cmp(op, a, b))
            raise EvaluationError(
                RUNTIME_TYPE_ERROR,
                "cannot compare " + left.kind() + " with " + right.kind(),
            )

        if op == "+" and (isinstance(left, VString) or isinstance(right, VString)):
            return VString(left.to_string() + right.to_string())

        if op in ("+", "-", "*", "/"):
            match (left, right):
                case (VInt(a), VInt(b)):
                    if op == "+":
                        return VInt(a + b)
                    if op == "-":
                        return VInt(a - b)
                    if op == "*":
                        return VInt(a * b)
                    try:
                        return VInt(_int_div_trunc(a, b))
                    except ZeroDivisionError:
                        raise EvaluationError(DIVIDE_BY_ZERO, "division by zero") from None
                case (VDecimal(a), VDecimal(b)):
                    if op == "+":
                        return VDecimal(_EXACT.add(a, b))
                    if op == "-":
                        return VDecimal(_EXACT.subtract(a, b))
                    if op == "*":
                        return VDecimal(_EXACT.multiply(a, b))
                    try:
                        return VDecimal(decimal_divide(a, b))
                    except ZeroDivisionError:
                        raise EvaluationError(DIVIDE_BY_ZERO, "division by zero") from None
            raise EvaluationError(
                RUNTIME_TYPE_ERROR,
                "operator " + op + " not defined on " + left.kind() + " and " + right.kind(),
            )

        raise EvaluationError(UNKNOWN_OPERATOR, "unknown operator '" + op + "'")
