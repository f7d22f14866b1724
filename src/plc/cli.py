"""PLC CLI: check and run a program given as a JSON AST."""

from __future__ import annotations

import json
import logging
import sys

from . import Analyzer, Interpreter
from .errors import (
    RUNTIME_TYPE_ERROR,
    AnalysisError,
    EvaluationError,
    PlcError,
)
from .serialize import load_source
from .values import VInt

logger = logging.getLogger(__name__)


USAGE: str = """\
plc [OPTIONS] FILE.json

Check and run a PLC program given as a JSON AST.

Options:
  --no-check    Run without static analysis
  --check-only  Analyze and exit without running
  --verbose     Log pass progress to stderr
  --help        Show this help message

Exit status is the Integer returned by main/0. It is 1 on errors, and also
when main/0 returns a value outside 0..255. Usage errors exit with 2.
"""


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    no_check = False
    check_only = False
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--no-check":
            no_check = True
            i += 1
        elif arg == "--check-only":
            check_only = True
            i += 1
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("plc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("plc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if filepath == "":
        print("plc: missing file argument", file=sys.stderr)
        return 2
    if no_check and check_only:
        print("plc: --no-check and --check-only are exclusive", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        with open(filepath, encoding="utf-8") as f:
            doc = json.load(f)
    except FileNotFoundError:
        print("plc: " + filepath + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("plc: " + filepath + ": " + str(e), file=sys.stderr)
        return 1
    except ValueError as e:
        print("plc: " + filepath + ": invalid JSON: " + str(e), file=sys.stderr)
        return 1

    try:
        source = load_source(doc)
        if not no_check:
            Analyzer().analyze(source)
            logger.debug("%s: analysis passed", filepath)
        if check_only:
            return 0
        result = Interpreter().evaluate(source)
    except AnalysisError as e:
        print("plc: analysis error: " + str(e), file=sys.stderr)
        return 1
    except EvaluationError as e:
        print("plc: runtime error: " + str(e), file=sys.stderr)
        return 1
    except PlcError as e:
        print("plc: error: " + str(e), file=sys.stderr)
        return 1
    sys.stdout.flush()

    if not isinstance(result, VInt):
        print(
            "plc: runtime error: "
            + RUNTIME_TYPE_ERROR
            + ": main/0 returned "
            + result.kind(),
            file=sys.stderr,
        )
        return 1
    if result.value < 0 or result.value > 255:
        print(
            "plc: main/0 returned "
            + str(result.value)
            + ", outside the exit status range 0..255",
            file=sys.stderr,
        )
        return 1
    return result.value


if __name__ == "__main__":
    sys.exit(main())
