"""
flogger_lint/fixes.py
═════════════════════

Suggested source edits.

A :class:`SuggestedFix` is an immutable bundle of byte-range
:class:`Replacement` s against the original source of one compilation
unit.  Fixes are built from tree nodes (``postfix_with``, ``prefix_with``,
``replace``, ``delete``) and applied to raw bytes, right-to-left so that
earlier offsets stay valid.

    fix = SuggestedFix.postfix_with(receiver_node, ".withCause(e)")
    patched = fix.apply(unit.source)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from tree_sitter import Node

from flogger_lint.errors import FixConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Replacement:
    """Replace ``source[start:end]`` with ``text``; ``start == end`` inserts."""
    start: int
    end: int
    text: str

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid replacement range [{self.start}, {self.end})")

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: Replacement) -> bool:
        if self.is_insertion and other.is_insertion:
            return self.start == other.start
        if self.is_insertion:
            return other.start < self.start < other.end
        if other.is_insertion:
            return self.start < other.start < self.end
        return self.start < other.end and other.start < self.end

    def to_json_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass(frozen=True)
class SuggestedFix:
    """An ordered, immutable set of replacements plus a short description."""
    replacements: Tuple[Replacement, ...] = ()
    description: str = ""

    # ── construction ─────────────────────────────────────────────────

    @classmethod
    def postfix_with(cls, node: Node, text: str, description: str = "") -> SuggestedFix:
        """Insert *text* immediately after *node*'s source span."""
        return cls((Replacement(node.end_byte, node.end_byte, text),), description)

    @classmethod
    def prefix_with(cls, node: Node, text: str, description: str = "") -> SuggestedFix:
        return cls((Replacement(node.start_byte, node.start_byte, text),), description)

    @classmethod
    def replace(cls, node: Node, text: str, description: str = "") -> SuggestedFix:
        return cls((Replacement(node.start_byte, node.end_byte, text),), description)

    @classmethod
    def delete(cls, node: Node, description: str = "") -> SuggestedFix:
        return cls.replace(node, "", description)

    def merge(self, other: SuggestedFix) -> SuggestedFix:
        description = "; ".join(d for d in (self.description, other.description) if d)
        return SuggestedFix(self.replacements + other.replacements, description)

    # ── inspection ───────────────────────────────────────────────────

    def is_empty(self) -> bool:
        return not self.replacements

    @property
    def insertion_offset(self) -> int:
        """Start of the first replacement (-1 when empty)."""
        return self.replacements[0].start if self.replacements else -1

    @property
    def replacement_text(self) -> str:
        return "".join(r.text for r in self.replacements)

    def to_json_dict(self) -> dict:
        return {
            "description": self.description,
            "replacements": [r.to_json_dict() for r in self.replacements],
        }

    # ── application ──────────────────────────────────────────────────

    def apply(self, source: bytes) -> bytes:
        return apply_fixes(source, [self])


def _normalise(replacements: Iterable[Replacement]) -> List[Replacement]:
    """Sort, drop exact duplicates and reject overlaps."""
    unique = sorted(set(replacements))
    for prev, cur in zip(unique, unique[1:]):
        if prev.overlaps(cur):
            raise FixConflictError(
                f"replacements overlap: [{prev.start}, {prev.end}) {prev.text!r} "
                f"and [{cur.start}, {cur.end}) {cur.text!r}",
                hint="apply the fixes in separate passes",
            )
    return unique


def apply_fixes(source: bytes, fixes: Sequence[SuggestedFix]) -> bytes:
    """
    Apply every replacement of *fixes* to *source*.

    Identical replacements coalesce; overlapping ones raise
    :class:`FixConflictError`.  Offsets refer to the original *source*.
    """
    replacements = _normalise(r for fix in fixes for r in fix.replacements)
    out = bytearray(source)
    for r in reversed(replacements):
        if r.end > len(source):
            raise FixConflictError(
                f"replacement [{r.start}, {r.end}) is outside a {len(source)}-byte source"
            )
        out[r.start:r.end] = r.text.encode("utf-8")
    logger.debug("applied %d replacement(s)", len(replacements))
    return bytes(out)


__all__ = ["Replacement", "SuggestedFix", "apply_fixes"]
