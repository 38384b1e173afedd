"""
flogger_lint/matchers.py
════════════════════════

Composable predicates over method invocations.

    LOG_METHOD = (
        instance_method()
        .on_descendant_of("com.google.common.flogger.LoggingApi")
        .named("log")
    )
    if LOG_METHOD.matches(call_node, state):
        ...

A matcher is immutable; every builder step returns a new matcher.  The
type questions go through ``state.oracle`` (see
:class:`flogger_lint.checkers.TypeOracle`), so any oracle honouring
that protocol can drive the same matchers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, FrozenSet, Optional

from tree_sitter import Node

from flogger_lint.java_frontend import CallSite, strip_parens
from flogger_lint.type_analysis import Subtyping, TypeKind

if TYPE_CHECKING:
    from flogger_lint.checkers import VisitorState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodMatcher:
    """
    Matches ``method_invocation`` nodes by receiver kind, receiver type and
    method name.

    Attributes
    ----------
    instance_only : reject calls whose receiver names a class (static calls)
    owner         : FQN the receiver's static type must descend from
    names         : accepted method names (empty → any name)
    """
    instance_only: bool = False
    owner: Optional[str] = None
    names: FrozenSet[str] = frozenset()

    # ── builder ──────────────────────────────────────────────────────

    def on_descendant_of(self, fqn: str) -> MethodMatcher:
        return replace(self, owner=fqn)

    def named(self, name: str) -> MethodMatcher:
        return replace(self, names=frozenset({name}))

    def named_any(self, *names: str) -> MethodMatcher:
        return replace(self, names=frozenset(names))

    # ── evaluation ───────────────────────────────────────────────────

    def matches(self, node: Optional[Node], state: VisitorState) -> bool:
        """
        True when *node* is a method invocation satisfying every
        constraint.  Unresolvable receiver types never match.
        """
        call = CallSite.wrap(node, state.unit)
        if call is None:
            return False
        if self.names and call.method_name() not in self.names:
            return False
        if not self.instance_only and self.owner is None:
            return True

        receiver = strip_parens(call.receiver())
        oracle = state.oracle
        try:
            if receiver is not None:
                recv_type = oracle.type_of(receiver)
            else:
                recv_type = oracle.receiver_type(call)
            if recv_type.kind is not TypeKind.CLASS:
                return False
            if self.instance_only and recv_type.is_type_name:
                return False
            if self.owner is None:
                return True
            return oracle.is_subtype(recv_type, self.owner) is Subtyping.YES
        except Exception as exc:
            logger.debug("receiver of %r unresolved: %s", call, exc)
            return False

    def __str__(self) -> str:
        kind = "instanceMethod" if self.instance_only else "anyMethod"
        owner = f".onDescendantOf({self.owner})" if self.owner else ""
        names = f".named({'|'.join(sorted(self.names))})" if self.names else ""
        return f"{kind}(){owner}{names}"


def instance_method() -> MethodMatcher:
    """Matcher for calls dispatched on an object instance."""
    return MethodMatcher(instance_only=True)


def any_method() -> MethodMatcher:
    return MethodMatcher()


__all__ = ["MethodMatcher", "instance_method", "any_method"]
