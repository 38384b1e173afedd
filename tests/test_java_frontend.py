# tests/test_java_frontend.py
"""
Tests for the tree-sitter Java front-end: parsing, header extraction,
source rendering and fluent-chain navigation.
"""

import pytest

from flogger_lint.errors import JavaSyntaxError, SourceReadError
from flogger_lint.java_frontend import (
    CallSite,
    get_receiver,
    iter_preorder,
    iter_receivers,
    parse_file,
    parse_source,
    strip_parens,
)
from tests.conftest import LOG_WITHOUT_CAUSE_JAVA, find_call


class TestParsing:

    def test_package_and_imports(self):
        unit = parse_source(
            "package a.b;\n"
            "import com.google.common.flogger.FluentLogger;\n"
            "import java.util.*;\n"
            "import static java.util.Objects.requireNonNull;\n"
            "class X {}\n"
        )
        assert unit.package_name == "a.b"
        assert unit.imports == {"FluentLogger": "com.google.common.flogger.FluentLogger"}
        assert unit.wildcard_imports == ["java.util"]

    def test_default_package(self):
        unit = parse_source("class X {}")
        assert unit.package_name == ""
        assert unit.error_nodes() == []

    def test_accepts_bytes_and_str(self):
        assert parse_source(b"class X {}").source == parse_source("class X {}").source

    def test_recovers_from_syntax_errors(self):
        unit = parse_source("class X { void f() { int = ; } }")
        assert unit.error_nodes()

    def test_strict_parse_raises(self):
        with pytest.raises(JavaSyntaxError) as info:
            parse_source("class X { void f() { int = ; } }", path="X.java", strict=True)
        assert info.value.error_count >= 1
        assert info.value.location.file == "X.java"
        assert "FLG-1001" in str(info.value)

    def test_parse_file(self, java_file):
        path = java_file(LOG_WITHOUT_CAUSE_JAVA)
        unit = parse_file(path)
        assert unit.path == str(path)
        assert unit.package_name == "com.example"

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(SourceReadError):
            parse_file(tmp_path / "Nope.java")

    def test_parse_non_utf8_file(self, tmp_path):
        path = tmp_path / "Latin.java"
        path.write_bytes(b"class X { String s = \"\xe9\"; }")
        with pytest.raises(SourceReadError) as info:
            parse_file(path)
        assert "UTF-8" in str(info.value)


class TestSourceRendering:

    def test_text_of_keeps_comments(self):
        unit = parse_source('class X { void f() { g(/* why */ e); } }')
        call = find_call(unit, "g")
        assert unit.text_of(call.node) == "g(/* why */ e)"
        assert unit.text_of(None) == ""

    def test_locations_are_one_based(self):
        unit = parse_source("class X {\n  void f() { g(); }\n}\n", path="X.java")
        loc = find_call(unit, "g").location()
        assert (loc.file, loc.line, loc.column) == ("X.java", 2, 14)

    def test_columns_count_characters_not_bytes(self):
        unit = parse_source('class X { String s = "é"; void f() { g(); } }')
        call = find_call(unit, "g")
        line = unit.line_text(1)
        assert call.location().column == line.index("g();") + 1

    def test_span_end_is_exclusive(self):
        unit = parse_source("class X { void f() { g(); } }")
        span = find_call(unit, "g").span()
        assert span.end - span.start == len("g()")
        assert span.end_column - span.start_column == len("g()")


class TestCallSite:

    def test_parts(self):
        unit = parse_source(LOG_WITHOUT_CAUSE_JAVA)
        call = find_call(unit, "log")
        assert call.is_method_call()
        assert call.method_name() == "log"
        assert [unit.text_of(a) for a in call.arguments()] == ['"failed: %s"', "e"]
        assert unit.text_of(call.receiver()) == "logger.atWarning()"
        assert call.receiver_call().method_name() == "atWarning"

    def test_arguments_skip_comments(self):
        unit = parse_source("class X { void f() { g(a, /* note */ b); } }")
        call = find_call(unit, "g")
        assert [unit.text_of(a) for a in call.arguments()] == ["a", "b"]

    def test_unqualified_call_has_no_receiver(self):
        unit = parse_source("class X { void f() { g(1); } }")
        call = find_call(unit, "g")
        assert call.receiver() is None
        assert call.receiver_call() is None

    def test_wrap_rejects_non_invocations(self):
        unit = parse_source("class X { int f() { return 1; } }")
        assert CallSite.wrap(None, unit) is None
        assert CallSite.wrap(unit.root, unit) is None

    def test_wrap_strips_parens(self):
        unit = parse_source("class X { void f() { (a.b()).c(); } }")
        outer = find_call(unit, "c")
        inner = CallSite.wrap(outer.receiver(), unit)
        assert inner is not None
        assert inner.method_name() == "b"

    def test_equality_by_span(self):
        unit = parse_source("class X { void f() { g(); } }")
        a = find_call(unit, "g")
        b = find_call(unit, "g")
        assert a == b
        assert len({a, b}) == 1


class TestReceiverChain:

    def test_chain_outermost_first(self):
        unit = parse_source(
            "class X { void f() { logger.atInfo().withCause(e).log(\"m\"); } }"
        )
        log = find_call(unit, "log")
        chain = [unit.text_of(r) for r in iter_receivers(log.node)]
        assert chain == [
            "logger.atInfo().withCause(e)",
            "logger.atInfo()",
            "logger",
        ]

    def test_chain_through_parens(self):
        unit = parse_source("class X { void f() { (logger.atInfo()).log(\"m\"); } }")
        log = find_call(unit, "log")
        chain = [unit.text_of(r) for r in iter_receivers(log.node)]
        assert chain == ["logger.atInfo()", "logger"]

    def test_chain_depth_guard(self):
        unit = parse_source(
            "class X { void f() { a.b().c().d().e(); } }"
        )
        e = find_call(unit, "e")
        assert len(list(iter_receivers(e.node, max_depth=2))) == 2

    def test_get_receiver_of_field_access(self):
        unit = parse_source("class X { void f() { int n = a.b.length; } }")
        node = next(n for n in iter_preorder(unit.root) if n.type == "field_access")
        assert unit.text_of(get_receiver(node)) == "a.b"

    def test_strip_parens(self):
        unit = parse_source("class X { void f() { g(((e))); } }")
        arg = find_call(unit, "g").arguments()[0]
        assert unit.text_of(strip_parens(arg)) == "e"
        assert strip_parens(None) is None
