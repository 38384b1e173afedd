# tests/test_matchers.py
"""
Tests for method-invocation matchers.
"""

from unittest.mock import MagicMock

from flogger_lint.errors import TypeResolutionError
from flogger_lint.matchers import MethodMatcher, any_method, instance_method
from tests.conftest import (
    LOG_WITHOUT_CAUSE_JAVA,
    NON_FLOGGER_LOG_JAVA,
    find_call,
    make_state,
)

LOGGING_API = "com.google.common.flogger.LoggingApi"
LOG = instance_method().on_descendant_of(LOGGING_API).named("log")


class TestBuilder:

    def test_builder_is_immutable(self):
        base = instance_method()
        named = base.named("log")
        assert base.names == frozenset()
        assert named.names == frozenset({"log"})
        assert named.instance_only

    def test_str(self):
        assert str(LOG) == f"instanceMethod().onDescendantOf({LOGGING_API}).named(log)"
        assert str(any_method().named_any("b", "a")) == "anyMethod().named(a|b)"


class TestMatching:

    def test_flogger_log_matches(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        assert LOG.matches(find_call(state.unit, "log").node, state)

    def test_other_method_name(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        assert not LOG.matches(find_call(state.unit, "atWarning").node, state)

    def test_unrelated_log_method(self):
        state = make_state(NON_FLOGGER_LOG_JAVA)
        assert not LOG.matches(find_call(state.unit, "log").node, state)

    def test_static_call_is_not_instance(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        call = find_call(state.unit, "forEnclosingClass")
        assert not instance_method().named("forEnclosingClass").matches(call.node, state)
        assert any_method().named("forEnclosingClass").matches(call.node, state)

    def test_non_invocation_never_matches(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        assert not LOG.matches(None, state)
        assert not LOG.matches(state.unit.root, state)

    def test_unresolved_receiver(self):
        state = make_state(
            "class X { void f(Exception e) { mystery.atInfo().log(\"m\", e); } }"
        )
        assert not LOG.matches(find_call(state.unit, "log").node, state)

    def test_oracle_failure_is_no_match(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        state.oracle = MagicMock()
        state.oracle.type_of.side_effect = TypeResolutionError("incomplete classpath")
        assert not LOG.matches(find_call(state.unit, "log").node, state)

    def test_unqualified_call_uses_enclosing_class(self):
        state = make_state(
            "class Helper { void log(String m) {} void f() { log(\"m\"); } }"
        )
        call = find_call(state.unit, "log")
        assert MethodMatcher(instance_only=True, owner="Helper").matches(call.node, state)

    def test_any_oracle_exception_is_no_match(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        state.oracle = MagicMock()
        state.oracle.type_of.side_effect = KeyError("com.example.Missing")
        assert not LOG.matches(find_call(state.unit, "log").node, state)
