"""
flogger_lint — find Flogger log calls that drop the exception's stack trace
============================================================================

Flogger renders format arguments with ``toString()``.  An exception passed
as a plain argument to ``log(...)`` loses its stack trace unless it is
attached with ``withCause(...)`` earlier in the fluent chain.  This package
parses Java with tree-sitter, resolves static types against a small class
hierarchy model, flags such calls and proposes the ``withCause`` fix.

Package layout
--------------
::

    flogger_lint/
    ├── __init__.py        ← this file
    ├── __main__.py        ← ``python -m flogger_lint``
    ├── main.py            ← command-line interface
    ├── checkers.py        ← checker framework + the FloggerWithoutCause rule
    ├── matchers.py        ← method-invocation matchers
    ├── type_analysis.py   ← type oracle and class hierarchy
    ├── java_frontend.py   ← tree-sitter parsing and tree navigation
    ├── fixes.py           ← suggested fixes and their application
    ├── plus_reporter.py   ← terminal / SARIF / HTML rendering
    ├── location.py
    └── errors.py

Quick start
-----------
>>> from flogger_lint import check_source
>>> results = check_source(java_text, "Foo.java")
>>> print(results.to_gcc_format())
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "1.0.0"
__license__ = "MIT"

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

from flogger_lint.checkers import (  # noqa: E402
    NO_MATCH,
    CheckerRunner,
    CheckerRunResults,
    Diagnostic,
    DiagnosticSeverity,
    FloggerWithoutCauseChecker,
    MatchResult,
    VisitorState,
    check_source,
    evaluate,
)
from flogger_lint.errors import FloggerLintError  # noqa: E402
from flogger_lint.fixes import SuggestedFix, apply_fixes  # noqa: E402
from flogger_lint.java_frontend import parse_file, parse_source  # noqa: E402
from flogger_lint.type_analysis import ClassHierarchy, JavaTypeOracle  # noqa: E402

__all__: List[str] = [
    "__version__",
    "NO_MATCH",
    "CheckerRunner",
    "CheckerRunResults",
    "ClassHierarchy",
    "Diagnostic",
    "DiagnosticSeverity",
    "FloggerLintError",
    "FloggerWithoutCauseChecker",
    "JavaTypeOracle",
    "MatchResult",
    "SuggestedFix",
    "VisitorState",
    "apply_fixes",
    "check_source",
    "evaluate",
    "parse_file",
    "parse_source",
]
