"""PLC diagnostics: a single exception family tagged by kind."""

from __future__ import annotations


# Structural
MISSING_ENTRY_POINT: str = "MissingEntryPoint"
INVALID_ENTRY_POINT_SIGNATURE: str = "InvalidEntryPointSignature"
DUPLICATE_NAME: str = "DuplicateName"
DUPLICATE_FUNCTION: str = "DuplicateFunction"
AMBIGUOUS_TYPE: str = "AmbiguousType"
EMPTY_BRANCH: str = "EmptyBranch"
INVALID_ASSIGNMENT_TARGET: str = "InvalidAssignmentTarget"
REDUNDANT_GROUP: str = "RedundantGroup"
INVALID_STATEMENT: str = "InvalidStatement"
INVALID_RECEIVER: str = "InvalidReceiver"
MISSING_CONTEXT: str = "MissingContext"
UNKNOWN_OPERATOR: str = "UnknownOperator"

# Type
TYPE_MISMATCH: str = "TypeMismatch"
NOT_ITERABLE: str = "NotIterable"
LITERAL_OUT_OF_RANGE: str = "LiteralOutOfRange"

# Lookup
UNDEFINED_NAME: str = "UndefinedName"
ARITY_MISMATCH: str = "ArityMismatch"

# Runtime only
RUNTIME_TYPE_ERROR: str = "RuntimeTypeError"
DIVIDE_BY_ZERO: str = "DivideByZero"

# Interchange
MALFORMED_AST: str = "MalformedAst"


class PlcError(Exception):
    """Base error for analysis and evaluation."""

    def __init__(self, kind: str, msg: str):
        super().__init__(f"{kind}: {msg}")
        self.kind = kind
        self.msg = msg


class AnalysisError(PlcError):
    """Static check failure."""


class EvaluationError(PlcError):
    """Failure while executing a program."""
