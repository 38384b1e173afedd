# flogger_lint/errors.py
"""
Error types raised by the flogger-lint infrastructure.

Hierarchy
─────────
┌──────────────────────────────────────────────────────────────┐
│  FloggerLintError (base)                                     │
│  ├── SourceReadError     - input file missing / undecodable  │
│  ├── JavaSyntaxError     - strict parse found error nodes    │
│  ├── TypeResolutionError - incomplete symbol information     │
│  ├── FixConflictError    - overlapping replacements          │
│  └── ConfigurationError  - bad CLI / runner options          │
└──────────────────────────────────────────────────────────────┘

Error codes follow the pattern ``FLG-XXXX``:
  - 0001-0999: input errors
  - 1000-1999: parse errors
  - 2000-2999: fix application errors
  - 3000-3999: configuration errors

The rule itself never raises: type-resolution trouble is downgraded to
"no match" inside :mod:`flogger_lint.checkers`.  These exceptions only
surface from the front-end, the fix applier and the CLI.
"""

from __future__ import annotations

from typing import Optional

from flogger_lint.location import SourceLocation


class FloggerLintError(Exception):
    """Base class for all flogger-lint errors."""

    code: str = "FLG-0000"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location
        self.hint = hint

    def __str__(self) -> str:
        parts = []
        if self.location is not None:
            parts.append(f"{self.location}: ")
        parts.append(f"[{self.code}] {self.message}")
        if self.hint:
            parts.append(f" (hint: {self.hint})")
        return "".join(parts)


class SourceReadError(FloggerLintError):
    """A Java source file could not be read or decoded."""

    code = "FLG-0001"


class JavaSyntaxError(FloggerLintError):
    """The parser produced error nodes and strict parsing was requested."""

    code = "FLG-1001"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: str = "",
        error_count: int = 1,
    ) -> None:
        super().__init__(message, location, hint)
        self.error_count = error_count


class TypeResolutionError(FloggerLintError):
    """
    Symbol information needed to answer a type query is incomplete.

    Type oracles may raise this from ``type_of`` / ``is_subtype``; the rule
    treats it as "this candidate does not match".
    """

    code = "FLG-1101"


class FixConflictError(FloggerLintError):
    """Two suggested replacements overlap and cannot both be applied."""

    code = "FLG-2001"


class ConfigurationError(FloggerLintError):
    """Invalid option passed to the runner or the CLI."""

    code = "FLG-3001"


__all__ = [
    "FloggerLintError",
    "SourceReadError",
    "JavaSyntaxError",
    "TypeResolutionError",
    "FixConflictError",
    "ConfigurationError",
]
