# tests/test_type_analysis.py
"""
Tests for the Java type oracle: the class hierarchy model, name
resolution against imports and declarations, and expression typing.
"""

import pytest

from flogger_lint.java_frontend import parse_source
from flogger_lint.type_analysis import (
    ERROR_TYPE,
    NULL_TYPE,
    ClassHierarchy,
    JavaType,
    JavaTypeOracle,
    Subtyping,
    TypeKind,
)
from tests.conftest import (
    LOG_WITHOUT_CAUSE_JAVA,
    find_call,
    find_identifier,
    java_class,
)


def _oracle(source: str):
    unit = parse_source(source, path="Foo.java")
    return unit, JavaTypeOracle(unit)


def _type_of_arg(source: str, method: str = "log", index: int = -1) -> JavaType:
    unit, oracle = _oracle(source)
    return oracle.type_of(find_call(unit, method).arguments()[index])


class TestJavaType:

    def test_str(self):
        assert str(JavaType.primitive("int")) == "int"
        assert str(JavaType.array_of(JavaType.of_class("java.lang.String"), 2)) == \
            "java.lang.String[][]"
        generic = JavaType.of_class("java.util.List", [JavaType.of_class("java.lang.String")])
        assert str(generic) == "java.util.List<java.lang.String>"

    def test_kinds(self):
        assert NULL_TYPE.is_null and NULL_TYPE.is_reference
        assert ERROR_TYPE.is_error
        assert not JavaType.primitive("int").is_reference
        assert JavaType.of_class("a.B").simple_name == "B"

    def test_type_name_round_trip(self):
        t = JavaType.of_class("a.B")
        assert t.as_type_name().is_type_name
        assert t.as_type_name().as_instance() == t


class TestClassHierarchy:

    @pytest.fixture
    def hierarchy(self):
        return ClassHierarchy.with_builtins().child()

    def test_builtin_throwables(self, hierarchy):
        assert hierarchy.is_subtype("java.io.FileNotFoundException",
                                    "java.lang.Throwable") is Subtyping.YES
        assert hierarchy.is_subtype("java.lang.String",
                                    "java.lang.Throwable") is Subtyping.NO

    def test_reflexive_and_object(self, hierarchy):
        assert hierarchy.is_subtype("x.Unknown", "x.Unknown") is Subtyping.YES
        assert hierarchy.is_subtype("x.Unknown", "java.lang.Object") is Subtyping.YES

    def test_unknown_ancestor(self, hierarchy):
        hierarchy.declare("com.acme.Thing", ("com.acme.Base",))
        assert hierarchy.is_subtype("com.acme.Thing",
                                    "java.lang.Throwable") is Subtyping.UNKNOWN

    def test_child_does_not_leak(self, hierarchy):
        hierarchy.declare("com.acme.BadThing", ("java.lang.RuntimeException",))
        assert "com.acme.BadThing" in hierarchy
        assert "com.acme.BadThing" not in ClassHierarchy.with_builtins()

    def test_ancestors_breadth_first(self, hierarchy):
        ancestors = hierarchy.ancestors("java.lang.RuntimeException")
        assert ancestors[:3] == [
            "java.lang.RuntimeException",
            "java.lang.Exception",
            "java.lang.Throwable",
        ]

    def test_flogger_api(self, hierarchy):
        api = "com.google.common.flogger.FluentLogger.Api"
        assert hierarchy.is_subtype(
            api, "com.google.common.flogger.LoggingApi") is Subtyping.YES
        assert hierarchy.lookup_method(api, "withCause") == "<self>"
        assert hierarchy.lookup_method(
            "com.google.common.flogger.FluentLogger", "atInfo") == api

    def test_cycle_terminates(self, hierarchy):
        hierarchy.declare("a.A", ("a.B",))
        hierarchy.declare("a.B", ("a.A",))
        assert hierarchy.is_subtype("a.A", "java.lang.Throwable") is Subtyping.NO


class TestNameResolution:

    def test_import_and_java_lang(self):
        unit, oracle = _oracle(LOG_WITHOUT_CAUSE_JAVA)
        assert oracle.resolver.resolve("FluentLogger") == \
            "com.google.common.flogger.FluentLogger"
        assert oracle.resolver.resolve("Exception") == "java.lang.Exception"
        assert oracle.resolver.resolve("Nope") is None

    def test_declared_classes_are_qualified(self):
        _, oracle = _oracle(
            "package p;\n"
            "class Outer { static class Inner {} void f() { class Local {} } }\n"
        )
        assert oracle.declared_classes() == ["p.Outer", "p.Outer.Inner"]

    def test_wildcard_import_of_known_type(self):
        _, oracle = _oracle("import java.io.*;\nclass X {}\n")
        assert oracle.resolver.resolve("IOException") == "java.io.IOException"

    def test_qualified_name(self):
        _, oracle = _oracle("class X {}")
        assert oracle.resolver.resolve("java.io.IOException") == "java.io.IOException"


class TestExpressionTypes:

    def test_logger_chain(self):
        unit, oracle = _oracle(LOG_WITHOUT_CAUSE_JAVA)
        log = find_call(unit, "log")
        recv = oracle.receiver_type(log)
        assert recv.name == "com.google.common.flogger.FluentLogger.Api"
        assert oracle.is_subtype(recv, "com.google.common.flogger.LoggingApi") \
            is Subtyping.YES

    def test_catch_parameter(self):
        t = _type_of_arg(LOG_WITHOUT_CAUSE_JAVA)
        assert t.name == "java.lang.Exception"

    def test_multi_catch_least_upper_bound(self):
        src = java_class("""\
            void run() {
              try { work(); } catch (java.io.IOException | IllegalStateException e) {
                logger.atInfo().log("x %s", e);
              }
            }
        """)
        assert _type_of_arg(src).name == "java.lang.Exception"

    def test_unknown_caught_type_is_throwable(self):
        src = java_class("""\
            void run() {
              try { work(); } catch (com.vendor.WeirdFailure e) {
                logger.atInfo().log("x %s", e);
              }
            }
        """)
        unit, oracle = _oracle(src)
        t = oracle.type_of(find_call(unit, "log").arguments()[-1])
        assert oracle.is_subtype(t, "java.lang.Throwable") is Subtyping.YES

    def test_declared_exception_class(self):
        src = java_class("""\
            static class BadThing extends RuntimeException {}

            void run(BadThing b) {
              logger.atInfo().log("x %s", b);
            }
        """)
        unit, oracle = _oracle(src)
        t = oracle.type_of(find_call(unit, "log").arguments()[-1])
        assert t.name == "com.example.Foo.BadThing"
        assert oracle.is_subtype(t, "java.lang.Throwable") is Subtyping.YES

    def test_var_is_inferred(self):
        src = java_class("""\
            void run() {
              var e = new IllegalArgumentException("bad");
              logger.atInfo().log("x %s", e);
            }
        """)
        assert _type_of_arg(src).name == "java.lang.IllegalArgumentException"

    def test_type_parameter_uses_bound(self):
        src = java_class("""\
            <T extends Exception> void run(T failure) {
              logger.atInfo().log("x %s", failure);
            }
        """)
        assert _type_of_arg(src).name == "java.lang.Exception"

    def test_null_and_cast_null(self):
        src = java_class("""\
            void run() {
              logger.atInfo().log("x %s %s", null, (RuntimeException) null);
            }
        """)
        unit, oracle = _oracle(src)
        args = find_call(unit, "log").arguments()
        assert oracle.type_of(args[1]) is NULL_TYPE
        assert oracle.is_null_type(oracle.type_of(args[2]))

    def test_literals_and_operators(self):
        src = java_class("""\
            void run(int n) {
              logger.atInfo().log("x", 1, 2L, 1.5f, 'c', "a" + n, n > 1, new int[3]);
            }
        """)
        unit, oracle = _oracle(src)
        kinds = [str(oracle.type_of(a)) for a in find_call(unit, "log").arguments()]
        assert kinds == [
            "java.lang.String", "int", "long", "float", "char",
            "java.lang.String", "boolean", "int[]",
        ]

    def test_method_return_types(self):
        src = java_class("""\
            Exception failure() { return null; }

            void run(Exception e) {
              logger.atInfo().log("x %s %s", failure(), e.getCause());
            }
        """)
        unit, oracle = _oracle(src)
        args = find_call(unit, "log").arguments()
        assert oracle.type_of(args[1]).name == "java.lang.Exception"
        assert oracle.type_of(args[2]).name == "java.lang.Throwable"

    def test_class_name_reference(self):
        unit, oracle = _oracle(LOG_WITHOUT_CAUSE_JAVA)
        ident = find_identifier(unit, "FluentLogger", nth=1)
        t = oracle.type_of(ident)
        assert t.is_type_name
        assert t.name == "com.google.common.flogger.FluentLogger"

    def test_unresolved_is_error_type(self):
        src = java_class("""\
            void run() {
              logger.atInfo().log("x %s", mystery);
            }
        """)
        unit, oracle = _oracle(src)
        t = oracle.type_of(find_call(unit, "log").arguments()[-1])
        assert t.kind is TypeKind.ERROR
        assert oracle.is_subtype(t, "java.lang.Throwable") is Subtyping.UNKNOWN

    def test_arrays_subtype_object_only(self):
        _, oracle = _oracle("class X {}")
        arr = JavaType.array_of(JavaType.of_class("java.lang.Exception"))
        assert oracle.is_subtype(arr, "java.lang.Object") is Subtyping.YES
        assert oracle.is_subtype(arr, "java.lang.Throwable") is Subtyping.NO
