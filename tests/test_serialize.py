"""Tests for the JSON AST loader and serializer."""

import json
from decimal import Decimal

import pytest
from conftest import binary, call, lit, main, ret, stmt

from plc.analyzer import Analyzer
from plc.ast import Access, Binary, Call, For, Literal, Source
from plc.errors import MALFORMED_AST, PlcError
from plc.serialize import load_source, load_value, serialize
from plc.values import NIL, VChar, VDecimal, VInt


def _lit(kind, value):
    return {"_type": "Literal", "value": {"kind": kind, "value": value}}


def _main_doc(*statements):
    return {
        "_type": "Source",
        "fields": [],
        "methods": [
            {
                "_type": "Method",
                "name": "main",
                "parameters": [],
                "parameter_type_names": [],
                "return_type_name": "Integer",
                "statements": list(statements),
            }
        ],
    }


def test_load_minimal_program():
    doc = _main_doc({"_type": "Return", "value": _lit("Integer", "3")})
    src = load_source(doc)
    assert isinstance(src, Source)
    assert src == main(ret(lit(3)))


def test_load_through_json_text():
    doc = _main_doc(
        {
            "_type": "ExpressionStmt",
            "expression": {
                "_type": "Call",
                "receiver": None,
                "name": "print",
                "arguments": [
                    {
                        "_type": "Binary",
                        "operator": "+",
                        "left": _lit("String", "x="),
                        "right": {"_type": "Access", "receiver": None, "name": "x"},
                    }
                ],
            },
        },
        {"_type": "Return", "value": _lit("Integer", "0")},
    )
    src = load_source(json.loads(json.dumps(doc)))
    expr = src.methods[0].statements[0].expression
    assert isinstance(expr, Call)
    assert isinstance(expr.arguments[0], Binary)
    assert isinstance(expr.arguments[0].right, Access)


def test_load_fields_and_loops():
    doc = _main_doc(
        {
            "_type": "For",
            "name": "i",
            "value": {"_type": "Access", "name": "range"},
            "statements": [],
        },
        {"_type": "Return", "value": _lit("Integer", "0")},
    )
    doc["fields"] = [{"_type": "Field", "name": "d", "type_name": "Decimal", "value": _lit("Decimal", "2.50")}]
    src = load_source(doc)
    assert src.fields[0].value == Literal(VDecimal(Decimal("2.50")))
    assert isinstance(src.methods[0].statements[0], For)


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"kind": "Nil"}, NIL),
        ({"kind": "Integer", "value": "99999999999999999999"}, VInt(99999999999999999999)),
        ({"kind": "Character", "value": "\n"}, VChar("\n")),
    ],
)
def test_load_value(payload, expected):
    assert load_value(payload) == expected


@pytest.mark.parametrize(
    "payload",
    [
        {"kind": "Integer", "value": 3},
        {"kind": "Character", "value": "ab"},
        {"kind": "Boolean", "value": "true"},
        {"kind": "Decimal", "value": "NaN"},
        {"kind": "Rational", "value": "1/2"},
        {"value": "1"},
    ],
)
def test_load_value_rejects(payload):
    with pytest.raises(PlcError) as exc:
        load_value(payload)
    assert exc.value.kind == MALFORMED_AST


@pytest.mark.parametrize(
    "doc",
    [
        [],
        {"_type": "Method"},
        _main_doc({"_type": "Goto"}),
        _main_doc({"_type": "Return"}),
        _main_doc({"_type": "Declaration", "name": 5}),
    ],
)
def test_load_source_rejects(doc):
    with pytest.raises(PlcError) as exc:
        load_source(doc)
    assert exc.value.kind == MALFORMED_AST


def test_load_rejects_mismatched_parameters():
    doc = _main_doc()
    doc["methods"][0]["parameters"] = ["a"]
    with pytest.raises(PlcError) as exc:
        load_source(doc)
    assert exc.value.kind == MALFORMED_AST


def test_serialize_includes_annotations():
    src = main(stmt(call("print", binary("+", lit("n="), lit(1)))), ret(lit(0)))
    Analyzer().analyze(src)
    data = serialize(src)
    m = data["methods"][0]
    assert m["function"]["name"] == "main"
    assert m["function"]["return_type"] == "Integer"
    c = m["statements"][0]["expression"]
    assert c["_type"] == "Call"
    assert c["type"] == "Nil"
    assert c["function"]["target_name"] == "System.out.println"
    assert c["function"]["parameter_types"] == ["Any"]
    assert c["arguments"][0]["type"] == "String"
    assert c["arguments"][0]["right"]["value"] == {"kind": "Integer", "value": "1"}


def test_serialize_unannotated_tree_has_nulls():
    data = serialize(main(ret(lit(Decimal("1.5")))))
    value = data["methods"][0]["statements"][0]["value"]
    assert value["type"] is None
    assert value["value"] == {"kind": "Decimal", "value": "1.5"}
    assert data["methods"][0]["function"] is None


def test_serialize_then_load_keeps_structure():
    src = main(stmt(call("print", lit(("c",)))), ret(binary("-", lit(3), lit(1))))
    text = json.dumps(serialize(src))
    assert load_source(json.loads(text)) == src


def test_serialize_rejects_unknown_objects():
    with pytest.raises(TypeError):
        serialize(object())
