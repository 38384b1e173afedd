# tests/conftest.py
"""
Shared Java snippets and helpers for the flogger-lint test-suite.

Snippets are complete compilation units so that the type oracle sees the
same imports and declarations a real file would give it.
"""

import textwrap

import pytest

from flogger_lint.checkers import VisitorState
from flogger_lint.java_frontend import CallSite, CompilationUnit, iter_preorder, parse_source
from flogger_lint.type_analysis import JavaTypeOracle


# ---------------------------------------------------------------------------
#  Java sources
# ---------------------------------------------------------------------------

def java_class(body: str, imports: str = "", package: str = "com.example") -> str:
    """Wrap *body* in a class ``Foo`` that owns a ``FluentLogger logger``."""
    return (
        f"package {package};\n"
        "\n"
        "import com.google.common.flogger.FluentLogger;\n"
        f"{textwrap.dedent(imports)}"
        "\n"
        "class Foo {\n"
        "  private static final FluentLogger logger = FluentLogger.forEnclosingClass();\n"
        "\n"
        f"{textwrap.indent(textwrap.dedent(body), '  ')}"
        "}\n"
    )


LOG_WITHOUT_CAUSE_JAVA = java_class("""\
    void run() {
      try {
        work();
      } catch (Exception e) {
        logger.atWarning().log("failed: %s", e);
      }
    }
""")

LOG_WITH_CAUSE_JAVA = java_class("""\
    void run() {
      try {
        work();
      } catch (Exception e) {
        logger.atWarning().withCause(e).log("failed");
      }
    }
""")

LOG_WITHOUT_EXCEPTION_JAVA = java_class("""\
    void run(String user, int n) {
      logger.atInfo().log("user %s did %d things", user, n);
    }
""")

LOG_NULL_EXCEPTION_JAVA = java_class("""\
    void run() {
      logger.atInfo().log("nothing: %s", (Exception) null);
    }
""")

LOG_TWO_EXCEPTIONS_JAVA = java_class("""\
    void run(RuntimeException first, IllegalStateException second) {
      logger.atSevere().log("%s then %s", first, second);
    }
""")

LOG_WITH_RATE_LIMIT_JAVA = java_class("""\
    void run(java.io.IOException e) {
      logger.atWarning().atMostEvery(5, TimeUnit.SECONDS).log("io: %s", e);
    }
""", imports="import java.util.concurrent.TimeUnit;\n")

NON_FLOGGER_LOG_JAVA = """\
package com.example;

class Foo {
  static class Journal {
    void log(String msg, Object arg) {}
  }

  private final Journal journal = new Journal();

  void run(Exception e) {
    journal.log("failed: %s", e);
  }
}
"""


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def make_state(source: str, path: str = "Foo.java") -> VisitorState:
    unit = parse_source(source, path=path)
    return VisitorState(unit=unit, oracle=JavaTypeOracle(unit))


def find_call(unit: CompilationUnit, method: str, nth: int = 0) -> CallSite:
    """The *nth* invocation of *method* in *unit*, in source order."""
    calls = [
        CallSite(node, unit)
        for node in unit.iter_method_invocations()
        if CallSite(node, unit).method_name() == method
    ]
    return calls[nth]


def find_identifier(unit: CompilationUnit, name: str, nth: int = 0):
    """The *nth* ``identifier`` node spelled *name*."""
    matches = [
        n for n in iter_preorder(unit.root)
        if n.type == "identifier" and unit.text_of(n) == name
    ]
    return matches[nth]


# ---------------------------------------------------------------------------
#  Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def state_for():
    """Factory fixture: Java source → :class:`VisitorState`."""
    return make_state


@pytest.fixture
def java_file(tmp_path):
    """Factory fixture writing a Java file under ``tmp_path``."""
    def _write(source: str, name: str = "Foo.java"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path
    return _write
