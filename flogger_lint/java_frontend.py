#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
flogger_lint/java_frontend.py
═════════════════════════════

Java parsing and tree navigation for flogger-lint.

Wraps the ``tree-sitter`` Java grammar and offers the small, read-only
toolkit the rule needs on top of the concrete syntax tree:

    ┌─────────────────────────────────────────────────────────────────┐
    │  Parsing                                                        │
    │    • parse_source / parse_file → CompilationUnit                │
    │    • package, single-type and on-demand imports                 │
    ├─────────────────────────────────────────────────────────────────┤
    │  Source rendering                                               │
    │    • exact original text of any node (comments preserved)       │
    │    • byte spans → line/column locations                         │
    ├─────────────────────────────────────────────────────────────────┤
    │  Traversal                                                      │
    │    • pre-order iteration, parent chain walking                  │
    │    • method invocation view (CallSite)                          │
    │    • receiver chain of a fluent call (bounded)                  │
    └─────────────────────────────────────────────────────────────────┘

Design Principles
─────────────────
1. **Non-invasive**: Trees are never modified; every function is a query.

2. **Defensive**: Missing fields yield ``None`` / empty sequences rather
   than exceptions; the receiver walk carries a depth guard.

3. **Exact text**: ``text_of`` slices the original bytes, so rendered
   expressions keep the user's formatting and inline comments.

Usage Example
─────────────
    from flogger_lint.java_frontend import parse_source, CallSite

    unit = parse_source(java_text, path="Foo.java")
    for node in unit.iter_method_invocations():
        call = CallSite(node, unit)
        print(call.method_name(), [unit.text_of(a) for a in call.arguments()])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Dict,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

import tree_sitter_java
from tree_sitter import Language, Node, Parser, Tree

from flogger_lint.errors import JavaSyntaxError, SourceReadError
from flogger_lint.location import SourceLocation, SourceSpan

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tree_sitter_java.language())

# Node types tree-sitter attaches as "extras" anywhere in the tree.
COMMENT_TYPES = frozenset({"line_comment", "block_comment", "comment"})

# Guard against runaway receiver walks on malformed input.
MAX_CHAIN_DEPTH = 256


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — COMPILATION UNIT
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CompilationUnit:
    """
    One parsed Java source file.

    Attributes
    ----------
    path              : file name used in diagnostics
    source            : the raw UTF-8 bytes that were parsed
    tree              : the tree-sitter ``Tree``
    package_name      : declared package ("" for the default package)
    imports           : simple name → fully qualified name
    wildcard_imports  : packages / types imported on demand
    """
    path: str
    source: bytes
    tree: Tree
    package_name: str = ""
    imports: Dict[str, str] = field(default_factory=dict)
    wildcard_imports: List[str] = field(default_factory=list)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    # ── source rendering ─────────────────────────────────────────────

    def text_of(self, node: Optional[Node]) -> str:
        """Exact original source text of *node* ("" for ``None``)."""
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode(
            "utf-8", errors="replace"
        )

    def _column(self, row: int, byte_col: int) -> int:
        """Convert a tree-sitter byte column into a 1-based character column."""
        line = self._line_bytes(row + 1)
        return len(line[:byte_col].decode("utf-8", errors="replace")) + 1

    def _line_bytes(self, line: int) -> bytes:
        lines = self.source.split(b"\n")
        if 1 <= line <= len(lines):
            return lines[line - 1].rstrip(b"\r")
        return b""

    def line_text(self, line: int) -> str:
        """Text of the 1-based *line* without its terminator."""
        return self._line_bytes(line).decode("utf-8", errors="replace")

    def location_of(self, node: Node) -> SourceLocation:
        row, col = node.start_point
        return SourceLocation(self.path, row + 1, self._column(row, col))

    def span_of(self, node: Node) -> SourceSpan:
        srow, scol = node.start_point
        erow, ecol = node.end_point
        return SourceSpan(
            file=self.path,
            start=node.start_byte,
            end=node.end_byte,
            start_line=srow + 1,
            start_column=self._column(srow, scol),
            end_line=erow + 1,
            end_column=self._column(erow, ecol),
        )

    # ── traversal ────────────────────────────────────────────────────

    def iter_method_invocations(self) -> Iterator[Node]:
        """Every ``method_invocation`` node, in pre-order."""
        for node in iter_preorder(self.root):
            if node.type == "method_invocation":
                yield node

    def error_nodes(self) -> List[Node]:
        """``ERROR`` and ``MISSING`` nodes produced by error recovery."""
        if not self.root.has_error:
            return []
        return [
            n for n in iter_preorder(self.root)
            if n.is_error or n.is_missing
        ]


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — PARSING
# ═════════════════════════════════════════════════════════════════════════

def parse_source(
    source: Union[str, bytes],
    path: str = "<string>",
    strict: bool = False,
) -> CompilationUnit:
    """
    Parse Java *source* into a :class:`CompilationUnit`.

    tree-sitter always produces a tree; with ``strict=True`` any error
    node raises :class:`JavaSyntaxError`, otherwise the damage is logged
    and analysis proceeds on the recovered tree.
    """
    data = source.encode("utf-8") if isinstance(source, str) else source
    parser = Parser(JAVA_LANGUAGE)
    tree = parser.parse(data)

    unit = CompilationUnit(path=path, source=data, tree=tree)
    _read_header(unit)

    errors = unit.error_nodes()
    if errors:
        first = unit.location_of(errors[0])
        if strict:
            raise JavaSyntaxError(
                f"{len(errors)} syntax error(s) in {path}",
                location=first,
                error_count=len(errors),
            )
        logger.warning(
            "%s: %d syntax error(s), first at line %d; analysing recovered tree",
            path, len(errors), first.line,
        )
    return unit


def parse_file(path: Union[str, Path], strict: bool = False) -> CompilationUnit:
    """Read and parse a ``.java`` file."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise SourceReadError(f"cannot read {p}: {exc.strerror or exc}") from exc
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SourceReadError(
            f"{p} is not valid UTF-8 (byte {exc.start})",
            hint="re-encode the file as UTF-8",
        ) from exc
    return parse_source(data, path=str(path), strict=strict)


def _read_header(unit: CompilationUnit) -> None:
    """Fill in package name and imports from the top-level declarations."""
    for child in unit.root.named_children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("scoped_identifier", "identifier"):
                    unit.package_name = unit.text_of(part)
        elif child.type == "import_declaration":
            is_static = any(c.type == "static" for c in child.children)
            is_wildcard = any(c.type == "asterisk" for c in child.children)
            name_node = next(
                (c for c in child.named_children
                 if c.type in ("scoped_identifier", "identifier")),
                None,
            )
            if name_node is None:
                continue
            name = unit.text_of(name_node)
            if is_wildcard:
                if not is_static:
                    unit.wildcard_imports.append(name)
            elif not is_static:
                unit.imports[name.rsplit(".", 1)[-1]] = name


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — TREE TRAVERSAL HELPERS
# ═════════════════════════════════════════════════════════════════════════

def iter_preorder(root: Optional[Node]) -> Iterator[Node]:
    """Pre-order walk over named and anonymous nodes."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_parents(node: Optional[Node]) -> Iterator[Node]:
    """Strict ancestors of *node*, innermost first."""
    parent = node.parent if node is not None else None
    while parent is not None:
        yield parent
        parent = parent.parent


def is_comment(node: Node) -> bool:
    return node.type in COMMENT_TYPES


def strip_parens(node: Optional[Node]) -> Optional[Node]:
    """Unwrap ``parenthesized_expression`` layers."""
    depth = 0
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if not is_comment(c)]
        node = inner[0] if inner else None
        depth += 1
        if depth > MAX_CHAIN_DEPTH:
            return None
    return node


def get_receiver(node: Optional[Node]) -> Optional[Node]:
    """
    Receiver of a member access.

    ``a.b(...)`` → ``a``;  ``a.b`` → ``a``;  an unqualified call or any
    other expression → ``None``.
    """
    node = strip_parens(node)
    if node is None:
        return None
    if node.type == "method_invocation":
        return node.child_by_field_name("object")
    if node.type == "field_access":
        return node.child_by_field_name("object")
    return None


def iter_receivers(
    node: Optional[Node],
    max_depth: int = MAX_CHAIN_DEPTH,
) -> Iterator[Node]:
    """
    The receiver chain of *node*, outermost first, excluding *node*.

    For ``logger.atInfo().withCause(e).log("m")`` the chain is
    ``logger.atInfo().withCause(e)``, ``logger.atInfo()``, ``logger``.
    Parenthesised receivers are unwrapped.  Stops after *max_depth*
    links, logging a warning.
    """
    receiver = strip_parens(get_receiver(node))
    depth = 0
    while receiver is not None:
        if depth >= max_depth:
            logger.warning(
                "receiver chain deeper than %d links at byte %d; truncated",
                max_depth, receiver.start_byte,
            )
            return
        yield receiver
        receiver = strip_parens(get_receiver(receiver))
        depth += 1


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CALL SITE VIEW
# ═════════════════════════════════════════════════════════════════════════

class CallSite:
    """
    Read-only view of a ``method_invocation`` node:
    ``receiver.method(args...)``.
    """

    __slots__ = ("node", "unit")

    def __init__(self, node: Node, unit: CompilationUnit) -> None:
        self.node = node
        self.unit = unit

    @classmethod
    def wrap(cls, node: Optional[Node], unit: CompilationUnit) -> Optional[CallSite]:
        """A ``CallSite`` for *node* if it is a method invocation, else ``None``."""
        node = strip_parens(node)
        if node is None or node.type != "method_invocation":
            return None
        return cls(node, unit)

    def is_method_call(self) -> bool:
        return self.node.type == "method_invocation"

    def method_name(self) -> str:
        return self.unit.text_of(self.node.child_by_field_name("name"))

    def arguments(self) -> Tuple[Node, ...]:
        """Argument expressions in source order (comments skipped)."""
        arg_list = self.node.child_by_field_name("arguments")
        if arg_list is None:
            return ()
        return tuple(c for c in arg_list.named_children if not is_comment(c))

    def receiver(self) -> Optional[Node]:
        """The explicit receiver expression, as written (may be parenthesised)."""
        return self.node.child_by_field_name("object")

    def receiver_call(self) -> Optional[CallSite]:
        """The receiver, when it is itself a method invocation."""
        return CallSite.wrap(self.receiver(), self.unit)

    def span(self) -> SourceSpan:
        return self.unit.span_of(self.node)

    def location(self) -> SourceLocation:
        return self.unit.location_of(self.node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallSite):
            return NotImplemented
        return (
            self.unit is other.unit
            and self.node.start_byte == other.node.start_byte
            and self.node.end_byte == other.node.end_byte
        )

    def __hash__(self) -> int:
        return hash((id(self.unit), self.node.start_byte, self.node.end_byte))

    def __repr__(self) -> str:
        return f"<CallSite {self.unit.text_of(self.node)!r}>"


def node_key(node: Node) -> Tuple[int, int, str]:
    """Stable identity for a node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


__all__ = [
    "JAVA_LANGUAGE",
    "MAX_CHAIN_DEPTH",
    "CompilationUnit",
    "CallSite",
    "parse_source",
    "parse_file",
    "iter_preorder",
    "iter_parents",
    "iter_receivers",
    "get_receiver",
    "strip_parens",
    "is_comment",
    "node_key",
]
