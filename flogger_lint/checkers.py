"""
flogger_lint/checkers.py
════════════════════════

Checker framework and the ``FloggerWithoutCause`` rule.

Flogger attaches an exception to a log statement through
``withCause(...)``; passing the exception as a plain format argument only
renders its ``toString()`` and loses the stack trace.  This module finds
``log(...)`` calls on the Flogger API that receive a Throwable argument
without a ``withCause`` earlier in the same fluent chain, and proposes
appending ``.withCause(<arg>)`` right after the chain's receiver:

    logger.atWarning().log("oops", e)
        →  logger.atWarning().withCause(e).log("oops", e)

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │          parse_file → JavaTypeOracle → VisitorState     │
  │  ┌───────────────────────────────────────────────────┐  │
  │  │            FloggerWithoutCauseChecker             │  │
  │  │  evaluate(call, state) for every invocation       │  │
  │  │    1. log entry point?      (MethodMatcher)       │  │
  │  │    2. exception argument?   (reverse scan)        │  │
  │  │    3. withCause in chain?   (receiver walk)       │  │
  │  │    4. SuggestedFix.postfix_with(receiver, ...)    │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  // flogger-lint-suppress │ @SuppressWarnings │ … │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │   Diagnostic Formatter (JSON / GCC / reporter)    │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read options
  2. **collect_evidence()** — evaluate call sites
  3. **diagnose()**         — turn matches into Diagnostics
  4. **report()**           — emit Diagnostics (filtered by suppressions)
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from fnmatch import fnmatch
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    Type,
    Union,
)

from tree_sitter import Node

from flogger_lint.errors import FloggerLintError
from flogger_lint.fixes import SuggestedFix
from flogger_lint.java_frontend import (
    CallSite,
    CompilationUnit,
    is_comment,
    iter_preorder,
    iter_receivers,
    parse_file,
    parse_source,
)
from flogger_lint.location import SourceLocation
from flogger_lint.matchers import instance_method
from flogger_lint.type_analysis import (
    ClassHierarchy,
    JavaType,
    JavaTypeOracle,
    Subtyping,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """Severity levels, ordered as compilers usually report them."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   — every type on the path was resolved from declarations
    MEDIUM — resolution leaned on the builtin JDK / Flogger model
    LOW    — heuristic
    """
    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "FloggerWithoutCause")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    end_location : End of the flagged span (exclusive column)
    confidence   : Confidence level
    checker_name : Name of the checker that produced this
    addon        : Tool name carried into JSON output
    extra        : Additional context string
    fix          : Proposed source edit, if any
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    end_location: Optional[SourceLocation] = None
    confidence: Confidence = Confidence.MEDIUM
    checker_name: str = ""
    addon: str = "flogger-lint"
    extra: str = ""
    fix: Optional[SuggestedFix] = None
    evidence: Dict[str, Any] = field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "file": self.location.file,
            "linenr": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "addon": self.addon,
            "errorId": self.error_id,
            "extra": self.extra,
        }
        if self.end_location is not None:
            result["endLinenr"] = self.end_location.line
            result["endColumn"] = self.end_location.column
        if self.fix is not None and not self.fix.is_empty():
            result["fix"] = self.fix.to_json_dict()
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json_dict())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_INLINE_MARKER = re.compile(r"flogger-lint-suppress\b[\s:]*([\w*,\s-]*)")
_ID_SPLIT = re.compile(r"[\s,]+")


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``// flogger-lint-suppress errorId``
         (same line or the line before)
      2. ``@SuppressWarnings("errorId")`` on an enclosing declaration
      3. File-level suppressions (fnmatch patterns, passed programmatically)
      4. Global suppressions (command line)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(unit)
    >>> sm.add_file_suppression("FloggerWithoutCause", "legacy/*.java")
    >>> sm.add_global_suppression("checkerInternalError")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # (file, line) → error_ids suppressed at that line
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file → [(first_line, last_line, error_ids)] from annotations
        self._scoped: Dict[str, List[Tuple[int, int, FrozenSet[str]]]] = defaultdict(list)
        # file pattern → error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        self._global: Set[str] = set()

    def load_inline_suppressions(self, unit: CompilationUnit) -> None:
        """Scan *unit* for suppression comments and annotations."""
        for node in iter_preorder(unit.root):
            if is_comment(node):
                self._load_comment(unit, node)
            elif node.type == "annotation":
                self._load_annotation(unit, node)

    def _load_comment(self, unit: CompilationUnit, node: Node) -> None:
        text = unit.text_of(node)
        if text.endswith("*/"):
            text = text[:-2]
        m = _INLINE_MARKER.search(text)
        if m is None:
            return
        ids = {i for i in _ID_SPLIT.split(m.group(1).strip()) if i}
        line = node.start_point[0] + 1
        self._inline[(unit.path, line)].update(ids or {"*"})

    def _load_annotation(self, unit: CompilationUnit, node: Node) -> None:
        name = unit.text_of(node.child_by_field_name("name"))
        if name not in ("SuppressWarnings", "java.lang.SuppressWarnings"):
            return
        ids = set()
        for part in iter_preorder(node.child_by_field_name("arguments")):
            if part.type == "string_literal":
                ids.add(unit.text_of(part).strip('"'))
        if "all" in ids:
            ids.add("*")
        modifiers = node.parent
        target = modifiers.parent if modifiers is not None and modifiers.type == "modifiers" \
            else modifiers
        if target is None or not ids:
            return
        self._scoped[unit.path].append(
            (target.start_point[0] + 1, target.end_point[0] + 1, frozenset(ids))
        )

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location

        # Inline (exact line match, or line-1 for preceding-line suppress)
        for line_offset in (0, 1):
            suppressed_ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if eid in suppressed_ids or "*" in suppressed_ids:
                return True

        for first, last, ids in self._scoped.get(loc.file, ()):
            if first <= loc.line <= last and (eid in ids or "*" in ids):
                return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "*" in ids:
                if pattern == loc.file or loc.file.endswith(pattern):
                    return True
                if fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — VISITOR STATE & COLLABORATOR PROTOCOLS
# ═════════════════════════════════════════════════════════════════════════

class TypeOracle(Protocol):
    """
    Static type questions the rule asks about expressions.

    Implementations may raise when symbol data is incomplete; the rule
    treats any exception from a query as "this expression does not match".
    """

    def type_of(self, node: Node) -> JavaType: ...

    def is_subtype(self, t: JavaType, root: str) -> Subtyping: ...

    def is_null_type(self, t: JavaType) -> bool: ...

    def receiver_type(self, call: CallSite) -> JavaType: ...


class SourceRenderer(Protocol):
    """Exact original source text of a tree node, comments included."""

    def text_of(self, node: Optional[Node]) -> str: ...


@dataclass
class VisitorState:
    """
    Per-file analysis state threaded through every rule function.

    *renderer* defaults to the compilation unit itself.
    """
    unit: CompilationUnit
    oracle: TypeOracle
    renderer: Optional[SourceRenderer] = None

    def __post_init__(self) -> None:
        if self.renderer is None:
            self.renderer = self.unit

    def text_of(self, node: Optional[Node]) -> str:
        return self.renderer.text_of(node)


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of evaluating one call site.

    ``anchor`` is the flagged ``log(...)`` invocation and ``fix`` the edit
    that attaches the cause; ``argument`` is the exception expression.
    All three are ``None`` for :data:`NO_MATCH`.
    """
    anchor: Optional[Node] = None
    fix: Optional[SuggestedFix] = None
    argument: Optional[Node] = None

    @property
    def matched(self) -> bool:
        return self.anchor is not None

    @property
    def replacement_text(self) -> str:
        return self.fix.replacement_text if self.fix is not None else ""

    @property
    def insertion_offset(self) -> int:
        return self.fix.insertion_offset if self.fix is not None else -1

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = MatchResult()


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``        — receive context, read options
      2. ``collect_evidence(ctx)``  — evaluate the unit
      3. ``diagnose(ctx)``          — turn evidence into diagnostics
      4. ``report(ctx)``            — yield final diagnostics

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []
        self._config: Dict[str, Any] = {}

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """Called before evidence collection. Default does nothing."""
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Append diagnostics to ``self._diagnostics``."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        location: SourceLocation,
        end_location: Optional[SourceLocation] = None,
        severity: Optional[DiagnosticSeverity] = None,
        confidence: Confidence = Confidence.MEDIUM,
        extra: str = "",
        fix: Optional[SuggestedFix] = None,
        evidence: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            location=location,
            end_location=end_location,
            confidence=confidence,
            checker_name=self.name,
            extra=extra,
            fix=fix,
            evidence=evidence or {},
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    unit         : the compilation unit under analysis
    oracle       : type oracle for ``unit``
    suppressions : SuppressionManager
    options      : user-provided options dict
    stats        : mutable dict for timing / counting statistics
    """
    unit: CompilationUnit
    oracle: TypeOracle
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    options: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> VisitorState:
        return VisitorState(self.unit, self.oracle)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers, looked up by name.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(FloggerWithoutCauseChecker)
    >>> checkers = registry.get_all()
    >>> registry.get_by_name("flogger-without-cause")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def get_all(self) -> List[Type[Checker]]:
        return list(self._checkers.values())

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — FLOGGER WITHOUT CAUSE
# ═════════════════════════════════════════════════════════════════════════

LOG_METHOD_NAME = "log"
WITH_CAUSE_METHOD_NAME = "withCause"
LOGGING_API = "com.google.common.flogger.LoggingApi"
THROWABLE = "java.lang.Throwable"

ERROR_ID = "FloggerWithoutCause"
SUMMARY = "Use withCause to associate Exceptions with log statements"

LOG_METHOD = instance_method().on_descendant_of(LOGGING_API).named(LOG_METHOD_NAME)
WITH_CAUSE = instance_method().on_descendant_of(LOGGING_API).named(WITH_CAUSE_METHOD_NAME)


def matches_log_entry_point(node: Optional[Node], state: VisitorState) -> bool:
    return LOG_METHOD.matches(node, state)


def matches_cause_attachment(node: Optional[Node], state: VisitorState) -> bool:
    return WITH_CAUSE.matches(node, state)


def find_exception_argument(call: CallSite, state: VisitorState) -> Optional[Node]:
    """
    The rightmost argument whose static type is a non-null Throwable.

    An argument whose type cannot be resolved is skipped and the scan
    continues leftwards.
    """
    oracle = state.oracle
    for arg in reversed(call.arguments()):
        try:
            arg_type = oracle.type_of(arg)
            if arg_type is None or oracle.is_null_type(arg_type):
                continue
            if oracle.is_subtype(arg_type, THROWABLE) is Subtyping.YES:
                return arg
        except Exception as exc:
            logger.debug("skipping argument %r: %s", state.text_of(arg), exc)
    return None


def chain_already_has_cause(call: CallSite, state: VisitorState) -> bool:
    """True when some receiver in the fluent chain of *call* is ``withCause(...)``."""
    return any(
        matches_cause_attachment(receiver, state)
        for receiver in iter_receivers(call.node)
    )


def build_fix(call: CallSite, exception_argument: Node, state: VisitorState) -> SuggestedFix:
    """Append ``.withCause(<arg>)`` right after the receiver of *call*."""
    receiver = call.receiver()
    if receiver is None:
        raise ValueError(f"{call!r} has no receiver to attach a cause to")
    arg_text = state.text_of(exception_argument)
    return SuggestedFix.postfix_with(
        receiver,
        f".{WITH_CAUSE_METHOD_NAME}({arg_text})",
        description=f"attach {arg_text} with withCause",
    )


def evaluate(node: Union[Node, CallSite], state: VisitorState) -> MatchResult:
    """
    Decide whether one call site is a ``log`` call missing ``withCause``.

    Never raises; every failure to establish a fact is a :data:`NO_MATCH`.
    """
    call = node if isinstance(node, CallSite) else CallSite.wrap(node, state.unit)
    if call is None or not matches_log_entry_point(call.node, state):
        return NO_MATCH

    arg = find_exception_argument(call, state)
    if arg is None:
        return NO_MATCH

    if chain_already_has_cause(call, state):
        logger.debug("%s: cause already attached", call.location())
        return NO_MATCH

    if call.receiver() is None:
        logger.debug("%s: log call without receiver, no fix anchor", call.location())
        return NO_MATCH

    fix = build_fix(call, arg, state)
    logger.debug("%s: %s", call.location(), fix.replacement_text)
    return MatchResult(anchor=call.node, fix=fix, argument=arg)


class FloggerWithoutCauseChecker(Checker):
    """
    Flags Flogger ``log(...)`` calls that pass an exception as an argument
    without attaching it through ``withCause``.
    """

    name: ClassVar[str] = "flogger-without-cause"
    description: ClassVar[str] = SUMMARY
    error_ids: ClassVar[FrozenSet[str]] = frozenset({ERROR_ID})
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        super().__init__()
        self._matches: List[Tuple[CallSite, MatchResult]] = []

    def collect_evidence(self, ctx: CheckerContext) -> None:
        state = ctx.state
        for node in ctx.unit.iter_method_invocations():
            result = evaluate(node, state)
            if result.matched:
                self._matches.append((CallSite(node, ctx.unit), result))
        ctx.stats[f"{self.name}_candidates"] = len(self._matches)

    def diagnose(self, ctx: CheckerContext) -> None:
        for call, result in self._matches:
            span = call.span()
            argument = ctx.unit.text_of(result.argument)
            self._emit(
                error_id=ERROR_ID,
                message=SUMMARY,
                location=span.start_location,
                end_location=span.end_location,
                confidence=Confidence.HIGH,
                extra=argument,
                fix=result.fix,
                evidence={
                    "exception": argument,
                    "replacement": result.replacement_text,
                    "offset": result.insertion_offset,
                },
            )


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(FloggerWithoutCauseChecker)


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    files                  : Files analysed, in order
    failures               : (path, error) for inputs that could not be analysed
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    failures: List[Tuple[str, FloggerLintError]] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    @property
    def finding_count(self) -> int:
        """Diagnostics other than the runner's own INFORMATION notes."""
        return sum(
            1 for d in self.diagnostics
            if d.severity != DiagnosticSeverity.INFORMATION
        )

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def fixes_by_file(self) -> Dict[str, List[SuggestedFix]]:
        fixes: Dict[str, List[SuggestedFix]] = defaultdict(list)
        for d in self.diagnostics:
            if d.fix is not None and not d.fix.is_empty():
                fixes[d.location.file].append(d.fix)
        return dict(fixes)

    def merge(self, other: CheckerRunResults) -> None:
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_checker.items():
            self.diagnostics_by_checker[name].extend(diags)
        for key, val in other.stats.items():
            if key in self.stats and isinstance(val, (int, float)):
                self.stats[key] += val
            else:
                self.stats[key] = val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        self.files.extend(other.files)
        self.failures.extend(other.failures)

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {len(self.files)} file(s), "
            f"{self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        for path, exc in self.failures:
            lines.append(f"  failed: {path}: {exc}")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against parsed compilation units.

    Usage
    -----
    >>> runner = CheckerRunner()
    >>> results = runner.run(parse_source(java_text, "Foo.java"))
    >>> print(results.summary())

    >>> results = runner.run_files(["src/main/java/Foo.java"])
    >>> for line in results.to_gcc_format().splitlines():
    ...     print(line)

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry — source of checker classes
    suppressions: SuppressionManager — pre-loaded suppression rules
    options     : dict — per-checker configuration (``strict_parse``)
    hierarchy   : ClassHierarchy shared by every unit's oracle
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
        hierarchy: Optional[ClassHierarchy] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}
        self.hierarchy = hierarchy or ClassHierarchy.with_builtins()

    def _select(self, checkers: Optional[Sequence[str]]) -> List[Type[Checker]]:
        if checkers is None:
            return self.registry.get_all()
        selected: List[Type[Checker]] = []
        for name in checkers:
            cls = self.registry.get_by_name(name)
            if cls is None:
                logger.warning("unknown checker %r ignored", name)
                continue
            selected.append(cls)
        return selected

    def run(
        self,
        unit: CompilationUnit,
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against a single compilation unit.

        Parameters
        ----------
        unit     : parsed Java source
        checkers : list of checker names to run (None = all registered)
        """
        results = CheckerRunResults(files=[unit.path])

        self.suppressions.load_inline_suppressions(unit)

        ctx = CheckerContext(
            unit=unit,
            oracle=JavaTypeOracle(unit, self.hierarchy),
            suppressions=self.suppressions,
            options=self.options,
        )

        for cls in self._select(checkers):
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                logger.exception("checker %s failed on %s", checker_name, unit.path)
                diags = self.suppressions.filter_diagnostics([Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(file=unit.path),
                    checker_name=checker_name,
                )])
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        results.stats.update(
            (k, v) for k, v in ctx.stats.items() if k not in results.stats
        )
        return results

    def run_files(
        self,
        paths: Iterable[Union[str, Path]],
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Parse and check every file in *paths*.

        Inputs that cannot be read or (with ``strict_parse``) parsed are
        recorded in ``failures`` and the run continues.
        """
        combined = CheckerRunResults()
        strict = bool(self.options.get("strict_parse", False))
        for path in paths:
            t0 = time.monotonic()
            try:
                unit = parse_file(path, strict=strict)
            except FloggerLintError as exc:
                logger.error("%s", exc)
                combined.failures.append((str(path), exc))
                continue
            partial = self.run(unit, checkers=checkers)
            combined.merge(partial)
            logger.info(
                "%s: %d diagnostic(s) in %.1fms",
                unit.path, partial.total_count, (time.monotonic() - t0) * 1000.0,
            )
        return combined


# ═════════════════════════════════════════════════════════════════════════
#  PART 8 — CONVENIENCE ENTRY POINT
# ═════════════════════════════════════════════════════════════════════════

def check_source(
    source: Union[str, bytes],
    path: str = "<string>",
    suppress: Optional[Sequence[str]] = None,
) -> CheckerRunResults:
    """Check a single Java source text with the default checkers."""
    sm = SuppressionManager()
    for eid in suppress or ():
        sm.add_global_suppression(eid)
    return CheckerRunner(suppressions=sm).run(parse_source(source, path=path))


__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticSeverity",
    "Confidence",
    "SourceLocation",
    # Suppression
    "SuppressionManager",
    # Checker framework
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    "TypeOracle",
    "SourceRenderer",
    "VisitorState",
    "MatchResult",
    "NO_MATCH",
    # The rule
    "LOG_METHOD_NAME",
    "WITH_CAUSE_METHOD_NAME",
    "LOGGING_API",
    "THROWABLE",
    "ERROR_ID",
    "SUMMARY",
    "matches_log_entry_point",
    "matches_cause_attachment",
    "find_exception_argument",
    "chain_already_has_cause",
    "build_fix",
    "evaluate",
    "FloggerWithoutCauseChecker",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
    "check_source",
]
