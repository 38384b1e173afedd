"""Source positions shared by the front-end, the diagnostics and the errors."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code (1-based line and column)."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class SourceSpan:
    """
    A half-open byte range ``[start, end)`` plus its line/column endpoints.

    ``end_column`` is exclusive, matching the reporter's caret rendering.
    """
    file: str
    start: int
    end: int
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @property
    def start_location(self) -> SourceLocation:
        return SourceLocation(self.file, self.start_line, self.start_column)

    @property
    def end_location(self) -> SourceLocation:
        return SourceLocation(self.file, self.end_line, self.end_column)


__all__ = ["SourceLocation", "SourceSpan"]
