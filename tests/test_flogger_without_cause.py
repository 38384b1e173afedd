# tests/test_flogger_without_cause.py
"""
Tests for the FloggerWithoutCause rule: which log statements are flagged
and what fix is proposed for them.
"""

from unittest.mock import MagicMock

import pytest

from flogger_lint.checkers import (
    ERROR_ID,
    NO_MATCH,
    SUMMARY,
    build_fix,
    chain_already_has_cause,
    check_source,
    evaluate,
    find_exception_argument,
)
from flogger_lint.errors import TypeResolutionError
from flogger_lint.java_frontend import parse_source
from flogger_lint.type_analysis import JavaType, Subtyping
from tests.conftest import (
    LOG_NULL_EXCEPTION_JAVA,
    LOG_TWO_EXCEPTIONS_JAVA,
    LOG_WITH_CAUSE_JAVA,
    LOG_WITH_RATE_LIMIT_JAVA,
    LOG_WITHOUT_CAUSE_JAVA,
    LOG_WITHOUT_EXCEPTION_JAVA,
    NON_FLOGGER_LOG_JAVA,
    find_call,
    java_class,
    make_state,
)


def _evaluate_log(source: str, nth: int = 0):
    state = make_state(source)
    return state, evaluate(find_call(state.unit, "log", nth), state)


def _fixed(source: str) -> str:
    state, result = _evaluate_log(source)
    assert result.matched
    return result.fix.apply(state.unit.source).decode("utf-8")


class TestFlagged:

    def test_exception_as_format_argument(self):
        state, result = _evaluate_log(LOG_WITHOUT_CAUSE_JAVA)
        assert result.matched
        assert result.anchor == find_call(state.unit, "log").node
        assert result.replacement_text == ".withCause(e)"
        assert state.text_of(result.argument) == "e"
        assert 'logger.atWarning().withCause(e).log("failed: %s", e);' in \
            _fixed(LOG_WITHOUT_CAUSE_JAVA)

    def test_insertion_point_is_end_of_receiver(self):
        state, result = _evaluate_log(LOG_WITHOUT_CAUSE_JAVA)
        receiver = find_call(state.unit, "log").receiver()
        assert result.insertion_offset == receiver.end_byte

    def test_rightmost_exception_wins(self):
        fixed = _fixed(LOG_TWO_EXCEPTIONS_JAVA)
        assert 'logger.atSevere().withCause(second).log("%s then %s", first, second);' \
            in fixed

    def test_through_rate_limiting_calls(self):
        fixed = _fixed(LOG_WITH_RATE_LIMIT_JAVA)
        assert ".atMostEvery(5, TimeUnit.SECONDS).withCause(e).log(" in fixed

    def test_complex_argument_text_is_copied(self):
        src = java_class("""\
            void run(java.util.concurrent.ExecutionException e) {
              logger.atInfo().log("boom %s", e.getCause());
            }
        """)
        assert ".withCause(e.getCause()).log(" in _fixed(src)

    def test_comment_before_argument_is_not_copied(self):
        src = java_class("""\
            void run(Exception e) {
              logger.atInfo().log("boom %s", /* the failure */ e);
            }
        """)
        state, result = _evaluate_log(src)
        assert result.replacement_text == ".withCause(e)"

    def test_comments_inside_argument_are_preserved(self):
        src = java_class("""\
            RuntimeException wrap(Throwable t) {
              return new RuntimeException(t);
            }

            void run(Exception e) {
              logger.atInfo().log("boom %s", wrap(/* why */ e));
            }
        """)
        state, result = _evaluate_log(src)
        assert result.replacement_text == ".withCause(wrap(/* why */ e))"

    def test_instanceof_pattern_binding(self):
        src = java_class("""\
            void run(Throwable t) {
              if (t instanceof java.io.IOException ioe) {
                logger.atInfo().log("io %s", ioe);
              }
            }
        """)
        assert ".withCause(ioe).log(" in _fixed(src)

    def test_switch_type_pattern_binding(self):
        src = java_class("""\
            void run(Object o) {
              switch (o) {
                case IllegalStateException ise -> logger.atInfo().log("bad %s", ise);
                default -> {}
              }
            }
        """)
        assert ".withCause(ise).log(" in _fixed(src)

    def test_custom_source_renderer(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        state.renderer = MagicMock()
        state.renderer.text_of.return_value = "err"
        result = evaluate(find_call(state.unit, "log"), state)
        assert result.replacement_text == ".withCause(err)"

    def test_parenthesised_receiver(self):
        src = java_class("""\
            void run(Exception e) {
              (logger.atInfo()).log("boom %s", e);
            }
        """)
        assert '(logger.atInfo()).withCause(e).log("boom %s", e);' in _fixed(src)

    def test_logger_in_local_variable(self):
        src = java_class("""\
            void run(Exception e) {
              FluentLogger.Api api = logger.atInfo();
              api.log("boom %s", e);
            }
        """)
        assert 'api.withCause(e).log("boom %s", e);' in _fixed(src)

    def test_declared_exception_subclass(self):
        src = java_class("""\
            static class BadThing extends IllegalStateException {}

            void run(BadThing bad) {
              logger.atInfo().log("boom %s", bad);
            }
        """)
        assert ".withCause(bad).log(" in _fixed(src)

    def test_new_exception_argument(self):
        src = java_class("""\
            void run() {
              logger.atInfo().log("boom %s", new RuntimeException("x"));
            }
        """)
        assert '.withCause(new RuntimeException("x")).log(' in _fixed(src)


class TestNotFlagged:

    def test_cause_already_attached(self):
        _, result = _evaluate_log(LOG_WITH_CAUSE_JAVA)
        assert result is NO_MATCH

    def test_cause_attached_before_rate_limit(self):
        src = java_class("""\
            void run(Exception e) {
              logger.atInfo().withCause(e).every(10).log("boom %s", e);
            }
        """)
        state, result = _evaluate_log(src)
        assert not result
        assert chain_already_has_cause(find_call(state.unit, "log"), state)

    def test_no_exception_argument(self):
        _, result = _evaluate_log(LOG_WITHOUT_EXCEPTION_JAVA)
        assert not result.matched

    def test_null_exception_argument(self):
        _, result = _evaluate_log(LOG_NULL_EXCEPTION_JAVA)
        assert not result.matched

    def test_non_flogger_log(self):
        _, result = _evaluate_log(NON_FLOGGER_LOG_JAVA)
        assert not result.matched

    def test_unresolvable_argument_type(self):
        src = java_class("""\
            void run(Widget w) {
              logger.atInfo().log("widget %s", w);
            }
        """)
        _, result = _evaluate_log(src)
        assert not result.matched

    def test_non_log_method(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        assert evaluate(find_call(state.unit, "atWarning"), state) is NO_MATCH

    def test_non_invocation_node(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        assert evaluate(state.unit.root, state) is NO_MATCH

    def test_log_without_receiver(self):
        src = (
            "import com.google.common.flogger.LoggingApi;\n"
            "abstract class Api implements LoggingApi<Api> {\n"
            "  void run(Exception e) { log(\"boom %s\", e); }\n"
            "}\n"
        )
        state = make_state(src)
        call = find_call(state.unit, "log")
        assert find_exception_argument(call, state) is not None
        assert evaluate(call, state) is NO_MATCH
        with pytest.raises(ValueError):
            build_fix(call, call.arguments()[-1], state)


class TestOracleFailures:

    def test_resolution_error_skips_argument(self):
        state = make_state(LOG_TWO_EXCEPTIONS_JAVA)
        call = find_call(state.unit, "log")
        real = state.oracle
        second = call.arguments()[-1]

        def type_of(node):
            if node == second:
                raise TypeResolutionError("no classpath for second")
            return real.type_of(node)

        oracle = MagicMock()
        oracle.type_of.side_effect = type_of
        oracle.is_null_type.return_value = False
        oracle.is_subtype.side_effect = real.is_subtype
        state.oracle = oracle

        arg = find_exception_argument(call, state)
        assert state.text_of(arg) == "first"

    def test_unexpected_oracle_exception_skips_argument(self):
        state = make_state(LOG_TWO_EXCEPTIONS_JAVA)
        call = find_call(state.unit, "log")
        real = state.oracle
        second = call.arguments()[-1]

        def type_of(node):
            if node == second:
                raise KeyError("missing symbol for second")
            return real.type_of(node)

        oracle = MagicMock()
        oracle.type_of.side_effect = type_of
        oracle.is_null_type.return_value = False
        oracle.is_subtype.side_effect = real.is_subtype
        state.oracle = oracle

        arg = find_exception_argument(call, state)
        assert state.text_of(arg) == "first"

    def test_unknown_subtyping_is_no_match(self):
        state = make_state(LOG_WITHOUT_CAUSE_JAVA)
        call = find_call(state.unit, "log")
        oracle = MagicMock()
        oracle.type_of.return_value = JavaType.of_class("x.Unknown")
        oracle.is_null_type.return_value = False
        oracle.is_subtype.return_value = Subtyping.UNKNOWN
        state.oracle = oracle
        assert find_exception_argument(call, state) is None


class TestIdempotence:

    def test_fixed_source_is_clean(self):
        fixed = _fixed(LOG_WITHOUT_CAUSE_JAVA)
        state = make_state(fixed)
        assert not evaluate(find_call(state.unit, "log"), state)

    def test_check_source_end_to_end(self):
        results = check_source(LOG_WITHOUT_CAUSE_JAVA, path="Foo.java")
        assert len(results.diagnostics) == 1
        diag = results.diagnostics[0]
        assert diag.error_id == ERROR_ID
        assert diag.message == SUMMARY
        assert diag.extra == "e"
        assert diag.location.line == 12
        assert diag.evidence["replacement"] == ".withCause(e)"

        patched = diag.fix.apply(parse_source(LOG_WITHOUT_CAUSE_JAVA).source)
        assert check_source(patched, path="Foo.java").diagnostics == []
