"""PLC semantic core: analyzer and interpreter, public API."""

from __future__ import annotations

from typing import TextIO

from .analyzer import Analyzer as Analyzer
from .ast import Source, walk as walk
from .environment import Scope as Scope, TypeRegistry as TypeRegistry
from .errors import (
    RUNTIME_TYPE_ERROR,
    AnalysisError as AnalysisError,
    EvaluationError,
    PlcError as PlcError,
)
from .interpreter import Interpreter as Interpreter
from .serialize import load_source as load_source, serialize as serialize
from .values import Value, VInt


def analyze(
    source: Source, types: TypeRegistry | None = None, parent: Scope | None = None
) -> None:
    """Type-check `source` in place, annotating every node."""
    Analyzer(parent, types).analyze(source)


def evaluate(
    source: Source,
    out: TextIO | None = None,
    types: TypeRegistry | None = None,
    parent: Scope | None = None,
) -> Value:
    """Run `source` and return the value of main/0."""
    return Interpreter(parent, types, out).evaluate(source)


def run(
    source: Source,
    out: TextIO | None = None,
    types: TypeRegistry | None = None,
    parent: Scope | None = None,
) -> int:
    """Check and run `source`; returns main's Integer as an exit status.

    Host variables in `parent` carry both a declared type and a value.
    """
    analyze(source, types, parent)
    result = evaluate(source, out, types, parent)
    if not isinstance(result, VInt):
        raise EvaluationError(
            RUNTIME_TYPE_ERROR, "main/0 returned " + result.kind() + ", not Integer"
        )
    return result.value
