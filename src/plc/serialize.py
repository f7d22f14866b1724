"""JSON interchange for PLC trees.

``load_source`` builds a Source from the dict form an external parser
emits; ``serialize`` turns any node (annotations included) back into
JSON-compatible data for emitters and tooling.
"""

from __future__ import annotations

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
from .environment import Function, Type, Variable
from .errors import MALFORMED_AST, PlcError
from .values import (
    NIL,
    Value,
    VBool,
    VChar,
    VDecimal,
    VInt,
    VNil,
    VString,
    parse_decimal,
    parse_integer,
)


# ============================================================
# SERIALIZE
# ============================================================


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, Type):
        return obj.name
    if isinstance(obj, Value):
        return _serialize_value(obj)
    if isinstance(obj, Variable):
        return {
            "_type": "Variable",
            "name": obj.name,
            "target_name": obj.target_name,
            "type": serialize(obj.type),
        }
    if isinstance(obj, Function):
        return {
            "_type": "Function",
            "name": obj.name,
            "target_name": obj.target_name,
            "parameter_types": serialize(obj.parameter_types),
            "return_type": serialize(obj.return_type),
        }
    if isinstance(obj, Expr):
        return _serialize_expr(obj)
    if isinstance(obj, Stmt):
        return _serialize_stmt(obj)
    if isinstance(obj, Source):
        return {
            "_type": "Source",
            "fields": serialize(obj.fields),
            "methods": serialize(obj.methods),
        }
    if isinstance(obj, Field):
        return {
            "_type": "Field",
            "name": obj.name,
            "type_name": obj.type_name,
            "value": serialize(obj.value),
            "variable": serialize(obj.variable),
        }
    if isinstance(obj, Method):
        return {
            "_type": "Method",
            "name": obj.name,
            "parameters": list(obj.parameters),
            "parameter_type_names": list(obj.parameter_type_names),
            "return_type_name": obj.return_type_name,
            "statements": serialize(obj.statements),
            "function": serialize(obj.function),
        }
    raise TypeError("cannot serialize " + type(obj).__name__)


def _serialize_value(v: Value) -> dict[str, object]:
    match v:
        case VNil():
            return {"kind": "Nil", "value": None}
        case VBool(b):
            return {"kind": "Boolean", "value": b}
        case VInt() | VDecimal():
            return {"kind": v.kind(), "value": v.to_string()}
        case VChar(c) | VString(c):
            return {"kind": v.kind(), "value": c}
    raise TypeError("cannot serialize value of kind " + v.kind())


def _serialize_expr(e: Expr) -> dict[str, object]:
    out: dict[str, object]
    if isinstance(e, Literal):
        out = {"_type": "Literal", "value": _serialize_value(e.value)}
    elif isinstance(e, Group):
        out = {"_type": "Group", "expression": serialize(e.expression)}
    elif isinstance(e, Binary):
        out = {
            "_type": "Binary",
            "operator": e.operator,
            "left": serialize(e.left),
            "right": serialize(e.right),
        }
    elif isinstance(e, Access):
        out = {
            "_type": "Access",
            "receiver": serialize(e.receiver),
            "name": e.name,
            "variable": serialize(e.variable),
        }
    elif isinstance(e, Call):
        out = {
            "_type": "Call",
            "receiver": serialize(e.receiver),
            "name": e.name,
            "arguments": serialize(e.arguments),
            "function": serialize(e.function),
        }
    else:
        raise TypeError("cannot serialize " + type(e).__name__)
    out["type"] = serialize(e.type)
    return out


def _serialize_stmt(s: Stmt) -> dict[str, object]:
    if isinstance(s, ExpressionStmt):
        return {"_type": "ExpressionStmt", "expression": serialize(s.expression)}
    if isinstance(s, Declaration):
        return {
            "_type": "Declaration",
            "name": s.name,
            "type_name": s.type_name,
            "value": serialize(s.value),
            "variable": serialize(s.variable),
        }
    if isinstance(s, Assignment):
        return {
            "_type": "Assignment",
            "receiver": serialize(s.receiver),
            "value": serialize(s.value),
        }
    if isinstance(s, If):
        return {
            "_type": "If",
            "condition": serialize(s.condition),
            "then_statements": serialize(s.then_statements),
            "else_statements": serialize(s.else_statements),
        }
    if isinstance(s, For):
        return {
            "_type": "For",
            "name": s.name,
            "value": serialize(s.value),
            "statements": serialize(s.statements),
        }
    if isinstance(s, While):
        return {
            "_type": "While",
            "condition": serialize(s.condition),
            "statements": serialize(s.statements),
        }
    if isinstance(s, Return):
        return {"_type": "Return", "value": serialize(s.value)}
    raise TypeError("cannot serialize " + type(s).__name__)


# ============================================================
# LOAD
# ============================================================


def _malformed(msg: str) -> PlcError:
    return PlcError(MALFORMED_AST, msg)


def _node(d: object, *allowed: str) -> dict:
    if not isinstance(d, dict) or "_type" not in d:
        raise _malformed("expected a node object, got " + type(d).__name__)
    if d["_type"] not in allowed:
        raise _malformed(
            "expected " + " or ".join(allowed) + ", got " + str(d["_type"])
        )
    return d


def _req(d: dict, key: str) -> object:
    if key not in d:
        raise _malformed(str(d["_type"]) + " is missing '" + key + "'")
    return d[key]


def _str(d: dict, key: str) -> str:
    v = _req(d, key)
    if not isinstance(v, str):
        raise _malformed(str(d["_type"]) + "." + key + " must be a string")
    return v


def _opt_str(d: dict, key: str) -> str | None:
    v = d.get(key)
    if v is not None and not isinstance(v, str):
        raise _malformed(str(d["_type"]) + "." + key + " must be a string or null")
    return v


def _list(d: dict, key: str) -> list:
    v = d.get(key, [])
    if not isinstance(v, list):
        raise _malformed(str(d["_type"]) + "." + key + " must be a list")
    return v


def _str_list(d: dict, key: str) -> list[str]:
    items = _list(d, key)
    for item in items:
        if not isinstance(item, str):
            raise _malformed(str(d["_type"]) + "." + key + " must hold strings")
    return items


def load_value(d: object) -> Value:
    """A literal payload: {"kind": ..., "value": ...}."""
    if not isinstance(d, dict) or "kind" not in d:
        raise _malformed("literal value must be an object with a 'kind'")
    kind = d["kind"]
    raw = d.get("value")
    if kind == "Nil":
        return NIL
    if kind == "Boolean" and isinstance(raw, bool):
        return VBool(raw)
    if kind == "Integer" and isinstance(raw, str):
        return parse_integer(raw)
    if kind == "Decimal" and isinstance(raw, str):
        return parse_decimal(raw)
    if kind == "Character" and isinstance(raw, str) and len(raw) == 1:
        return VChar(raw)
    if kind == "String" and isinstance(raw, str):
        return VString(raw)
    raise _malformed("invalid " + str(kind) + " literal: " + repr(raw))


def load_expr(d: object) -> Expr:
    node = _node(d, "Literal", "Group", "Binary", "Access", "Call")
    t = node["_type"]
    if t == "Literal":
        return Literal(load_value(_req(node, "value")))
    if t == "Group":
        return Group(load_expr(_req(node, "expression")))
    if t == "Binary":
        return Binary(
            _str(node, "operator"),
            load_expr(_req(node, "left")),
            load_expr(_req(node, "right")),
        )
    receiver = node.get("receiver")
    rexpr = load_expr(receiver) if receiver is not None else None
    if t == "Access":
        return Access(rexpr, _str(node, "name"))
    return Call(rexpr, _str(node, "name"), [load_expr(a) for a in _list(node, "arguments")])


def _opt_expr(d: dict, key: str) -> Expr | None:
    v = d.get(key)
    return load_expr(v) if v is not None else None


def load_stmt(d: object) -> Stmt:
    node = _node(
        d,
        "ExpressionStmt",
        "Declaration",
        "Assignment",
        "If",
        "For",
        "While",
        "Return",
    )
    t = node["_type"]
    if t == "ExpressionStmt":
        return ExpressionStmt(load_expr(_req(node, "expression")))
    if t == "Declaration":
        return Declaration(_str(node, "name"), _opt_str(node, "type_name"), _opt_expr(node, "value"))
    if t == "Assignment":
        return Assignment(load_expr(_req(node, "receiver")), load_expr(_req(node, "value")))
    if t == "If":
        return If(
            load_expr(_req(node, "condition")),
            _load_stmts(node, "then_statements"),
            _load_stmts(node, "else_statements"),
        )
    if t == "For":
        return For(_str(node, "name"), load_expr(_req(node, "value")), _load_stmts(node, "statements"))
    if t == "While":
        return While(load_expr(_req(node, "condition")), _load_stmts(node, "statements"))
    return Return(load_expr(_req(node, "value")))


def _load_stmts(d: dict, key: str) -> list[Stmt]:
    return [load_stmt(s) for s in _list(d, key)]


def load_source(d: object) -> Source:
    """Build a Source from its JSON dict form."""
    node = _node(d, "Source")
    fields: list[Field] = []
    for f in _list(node, "fields"):
        fn = _node(f, "Field")
        fields.append(Field(_str(fn, "name"), _opt_str(fn, "type_name"), _opt_expr(fn, "value")))
    methods: list[Method] = []
    for m in _list(node, "methods"):
        mn = _node(m, "Method")
        params = _str_list(mn, "parameters")
        param_types = _str_list(mn, "parameter_type_names")
        if len(params) != len(param_types):
            raise _malformed(
                "method '" + _str(mn, "name") + "' has mismatched parameter lists"
            )
        methods.append(
            Method(
                _str(mn, "name"),
                params,
                param_types,
                _opt_str(mn, "return_type_name"),
                _load_stmts(mn, "statements"),
            )
        )
    return Source(fields, methods)
