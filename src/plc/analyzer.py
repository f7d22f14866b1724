"""PLC static analyzer: scope resolution and type checking.

One pass over a Source tree. Every expression gets its ``type`` annotation;
declarations, accesses and calls get their resolved binding. The first
violation raises AnalysisError and aborts the pass.
"""

from __future__ import annotations

import logging
import math

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
from .environment import (
    ANY_T,
    BOOLEAN_T,
    CHARACTER_T,
    COMPARABLE_T,
    DECIMAL_T,
    INTEGER_ITERABLE_T,
    INTEGER_T,
    NIL_T,
    STRING_T,
    Members,
    Scope,
    Type,
    TypeRegistry,
    is_assignable,
)
from .errors import (
    AMBIGUOUS_TYPE,
    EMPTY_BRANCH,
    INVALID_ASSIGNMENT_TARGET,
    INVALID_ENTRY_POINT_SIGNATURE,
    INVALID_RECEIVER,
    INVALID_STATEMENT,
    LITERAL_OUT_OF_RANGE,
    MALFORMED_AST,
    MISSING_CONTEXT,
    MISSING_ENTRY_POINT,
    NOT_ITERABLE,
    REDUNDANT_GROUP,
    TYPE_MISMATCH,
    UNKNOWN_OPERATOR,
    AnalysisError,
)
from .values import NIL, VBool, VChar, VDecimal, VInt, VNil, VString

logger = logging.getLogger(__name__)

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

LOGICAL_OPS = frozenset({"AND", "OR"})
COMPARISON_OPS = frozenset({"<", "<=", ">", ">=", "==", "!="})
ARITHMETIC_OPS = frozenset({"-", "*", "/"})


def _fits_double(value: VDecimal) -> bool:
    return not math.isinf(float(value.value))


class Analyzer:
    def __init__(self, parent: Scope | None = None, types: TypeRegistry | None = None) -> None:
        self.types = types if types is not None else TypeRegistry()
        self.scope = Scope(parent)
        self.scope.declare_function(
            "print", [ANY_T], NIL_T, target_name="System.out.println"
        )
        self.method: Method | None = None

    def require_assignable(self, target: Type, source: Type) -> None:
        if not is_assignable(target, source):
            raise AnalysisError(
                TYPE_MISMATCH, "cannot assign " + source.name + " to " + target.name
            )

    def resolve_type(self, name: str | None) -> Type:
        """Resolve a type name; an absent name means Nil."""
        if name is None:
            return NIL_T
        return self.types.get(name)

    def analyze(self, source: Source) -> None:
        self.check_source(source, self.scope)
        logger.debug(
            "analysis complete: %d fields, %d methods",
            len(source.fields),
            len(source.methods),
        )

    # ── Declarations ──────────────────────────────────────────

    def check_source(self, source: Source, scope: Scope) -> None:
        main: Method | None = None
        for m in source.methods:
            if m.name == "main" and len(m.parameters) == 0:
                main = m
        if main is None:
            raise AnalysisError(MISSING_ENTRY_POINT, "no main/0 method")
        if main.return_type_name != INTEGER_T.name:
            raise AnalysisError(
                INVALID_ENTRY_POINT_SIGNATURE,
                "main/0 must return Integer, not " + (main.return_type_name or NIL_T.name),
            )
        for f in source.fields:
            self.check_field(f, scope)
        for m in source.methods:
            self.check_method(m, scope)

    def check_field(self, f: Field, scope: Scope) -> None:
        typ = self._declared_type(f.name, f.type_name, f.value, scope)
        f.variable = scope.declare_variable(f.name, typ, NIL)

    def _declared_type(
        self, name: str, type_name: str | None, value: Expr | None, scope: Scope
    ) -> Type:
        if value is None:
            if type_name is None:
                raise AnalysisError(
                    AMBIGUOUS_TYPE, "'" + name + "' needs a type or an initial value"
                )
            return self.types.get(type_name)
        declared = self.types.get(type_name) if type_name is not None else None
        val_type = self.check_expr(value, scope)
        if declared is None:
            return val_type
        self.require_assignable(declared, val_type)
        return declared

    def check_method(self, m: Method, scope: Scope) -> None:
        if len(m.parameters) != len(m.parameter_type_names):
            raise AnalysisError(
                MALFORMED_AST,
                "method '" + m.name + "' has "
                + str(len(m.parameters))
                + " parameters but "
                + str(len(m.parameter_type_names))
                + " parameter types",
            )
        param_types = [self.types.get(n) for n in m.parameter_type_names]
        ret = self.resolve_type(m.return_type_name)
        m.function = scope.declare_function(m.name, param_types, ret)
        logger.debug("registered method %s/%d", m.name, len(param_types))
        body = Scope(scope)
        for pname, ptype in zip(m.parameters, param_types):
            body.declare_variable(pname, ptype, NIL)
        saved = self.method
        self.method = m
        try:
            self.check_stmts(m.statements, body)
        finally:
            self.method = saved

    # ── Statement checking ────────────────────────────────────

    def check_stmts(self, stmts: list[Stmt], scope: Scope) -> None:
        for s in stmts:
            self.check_stmt(s, scope)

    def check_stmt(self, stmt: Stmt, scope: Scope) -> None:
        if isinstance(stmt, ExpressionStmt):
            self.check_expression_stmt(stmt, scope)
        elif isinstance(stmt, Declaration):
            typ = self._declared_type(stmt.name, stmt.type_name, stmt.value, scope)
            stmt.variable = scope.declare_variable(stmt.name, typ, NIL)
        elif isinstance(stmt, Assignment):
            self.check_assignment(stmt, scope)
        elif isinstance(stmt, If):
            self.check_if(stmt, scope)
        elif isinstance(stmt, For):
            self.check_for(stmt, scope)
        elif isinstance(stmt, While):
            self.check_condition(stmt.condition, scope)
            self.check_stmts(stmt.statements, Scope(scope))
        elif isinstance(stmt, Return):
            self.check_return(stmt, scope)
        else:
            raise AnalysisError(
                INVALID_STATEMENT, "unhandled statement " + type(stmt).__name__
            )

    def check_expression_stmt(self, stmt: ExpressionStmt, scope: Scope) -> None:
        if not isinstance(stmt.expression, Call):
            raise AnalysisError(
                INVALID_STATEMENT,
                "expression statement must be a call, got "
                + type(stmt.expression).__name__,
            )
        self.check_expr(stmt.expression, scope)

    def check_assignment(self, stmt: Assignment, scope: Scope) -> None:
        if not isinstance(stmt.receiver, Access):
            raise AnalysisError(
                INVALID_ASSIGNMENT_TARGET,
                "cannot assign to " + type(stmt.receiver).__name__,
            )
        target = self.check_expr(stmt.receiver, scope)
        val_type = self.check_expr(stmt.value, scope)
        self.require_assignable(target, val_type)

    def check_condition(self, cond: Expr, scope: Scope) -> None:
        self.require_assignable(BOOLEAN_T, self.check_expr(cond, scope))

    def check_if(self, stmt: If, scope: Scope) -> None:
        self.check_condition(stmt.condition, scope)
        if len(stmt.then_statements) == 0:
            raise AnalysisError(EMPTY_BRANCH, "IF has an empty then branch")
        self.check_stmts(stmt.then_statements, Scope(scope))
        if len(stmt.else_statements) > 0:
            self.check_stmts(stmt.else_statements, Scope(scope))

    def check_for(self, stmt: For, scope: Scope) -> None:
        iter_type = self.check_expr(stmt.value, scope)
        if iter_type != INTEGER_ITERABLE_T:
            raise AnalysisError(
                NOT_ITERABLE, "cannot iterate over " + iter_type.name
            )
        if len(stmt.statements) == 0:
            raise AnalysisError(EMPTY_BRANCH, "FOR has an empty body")
        body = Scope(scope)
        body.declare_variable(stmt.name, INTEGER_T, NIL)
        self.check_stmts(stmt.statements, body)

    def check_return(self, stmt: Return, scope: Scope) -> None:
        if self.method is None:
            raise AnalysisError(MISSING_CONTEXT, "RETURN outside of a method")
        expected = self.resolve_type(self.method.return_type_name)
        val_type = self.check_expr(stmt.value, scope)
        if not is_assignable(expected, val_type):
            raise AnalysisError(
                TYPE_MISMATCH,
                "cannot return "
                + val_type.name
                + " from method returning "
                + expected.name,
            )

    # ── Expression checking ───────────────────────────────────

    def check_expr(self, expr: Expr, scope: Scope) -> Type:
        """Check an expression, annotate it, and return its type."""
        if isinstance(expr, Literal):
            typ = self.check_literal(expr)
        elif isinstance(expr, Group):
            if not isinstance(expr.expression, Binary):
                raise AnalysisError(
                    REDUNDANT_GROUP,
                    "only binary expressions may be grouped, got "
                    + type(expr.expression).__name__,
                )
            typ = self.check_expr(expr.expression, scope)
        elif isinstance(expr, Binary):
            left = self.check_expr(expr.left, scope)
            right = self.check_expr(expr.right, scope)
            typ = self.check_binary_op_types(expr.operator, left, right)
        elif isinstance(expr, Access):
            typ = self.check_access(expr, scope)
        elif isinstance(expr, Call):
            typ = self.check_call(expr, scope)
        else:
            raise AnalysisError(
                INVALID_STATEMENT, "unhandled expression " + type(expr).__name__
            )
        expr.type = typ
        return typ

    def check_literal(self, expr: Literal) -> Type:
        match expr.value:
            case VNil():
                return NIL_T
            case VBool():
                return BOOLEAN_T
            case VChar():
                return CHARACTER_T
            case VString():
                return STRING_T
            case VInt(value=n):
                if n < INT_MIN or n > INT_MAX:
                    raise AnalysisError(
                        LITERAL_OUT_OF_RANGE, "integer literal " + str(n) + " out of range"
                    )
                return INTEGER_T
            case VDecimal() as d:
                if not _fits_double(d):
                    raise AnalysisError(
                        LITERAL_OUT_OF_RANGE,
                        "decimal literal " + d.to_string() + " out of range",
                    )
                return DECIMAL_T
        raise AnalysisError(
            TYPE_MISMATCH, "unsupported literal " + type(expr.value).__name__
        )

    def check_binary_op_types(self, op: str, left: Type, right: Type) -> Type:
        """Result type of a binary operator on checked operand types."""
        if op in LOGICAL_OPS:
            self.require_assignable(BOOLEAN_T, left)
            self.require_assignable(BOOLEAN_T, right)
            return BOOLEAN_T
        if op in COMPARISON_OPS:
            self.require_assignable(COMPARABLE_T, left)
            self.require_assignable(COMPARABLE_T, right)
            if left != right:
                raise AnalysisError(
                    TYPE_MISMATCH,
                    "cannot compare " + left.name + " with " + right.name,
                )
            return BOOLEAN_T
        if op == "+" and (left == STRING_T or right == STRING_T):
            return STRING_T
        if op == "+" or op in ARITHMETIC_OPS:
            if left == INTEGER_T or left == DECIMAL_T:
                if right != left:
                    raise AnalysisError(
                        TYPE_MISMATCH,
                        "operator " + op + " cannot mix " + left.name + " and " + right.name,
                    )
                return left
            raise AnalysisError(
                TYPE_MISMATCH, "operator " + op + " not defined on " + left.name
            )
        raise AnalysisError(UNKNOWN_OPERATOR, "unknown operator '" + op + "'")

    def _receiver_type(self, receiver: Expr, scope: Scope) -> Type:
        if not isinstance(receiver, Access):
            raise AnalysisError(
                INVALID_RECEIVER,
                "receiver must be a field or variable access, got "
                + type(receiver).__name__,
            )
        return self.check_expr(receiver, scope)

    def _members_of(self, owner: Type) -> Members:
        if owner.name in self.types:
            return self.types.get(owner.name).members
        return owner.members

    def check_access(self, expr: Access, scope: Scope) -> Type:
        if expr.receiver is not None:
            owner = self._receiver_type(expr.receiver, scope)
            var = self._members_of(owner).lookup_variable(expr.name)
        else:
            var = scope.lookup_variable(expr.name)
        if var.type is None:
            raise AnalysisError(
                TYPE_MISMATCH, "'" + expr.name + "' has no declared type"
            )
        expr.variable = var
        return var.type

    def check_call(self, expr: Call, scope: Scope) -> Type:
        arg_types = [self.check_expr(a, scope) for a in expr.arguments]
        if expr.receiver is not None:
            owner = self._receiver_type(expr.receiver, scope)
            fn = self._members_of(owner).lookup_function(expr.name, len(arg_types) + 1)
            params = fn.parameter_types[1:]
        else:
            fn = scope.lookup_function(expr.name, len(arg_types))
            params = fn.parameter_types
        for param, arg in zip(params, arg_types):
            self.require_assignable(param, arg)
        expr.function = fn
        return fn.return_type
