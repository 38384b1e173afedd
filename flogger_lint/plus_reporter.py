#!/usr/bin/env python3
"""
flogger_lint/plus_reporter.py
═════════════════════════════

Rust-style colourful diagnostic reporter for flogger-lint.

Output formats
──────────────
  • Terminal : colourful Rust-style rendering (TTY streams)
  • Plain    : one GCC-style line per diagnostic plus its help line
  • SARIF    : if a SARIF path is given or $REPORT_GENERATE_SARIF is set
  • HTML     : if an HTML path is given or $REPORT_GENERATE_HTML is set

Every diagnostic carrying a fix also gets a ``help:`` line showing the
source line as it would read with the fix applied.

Usage
─────
    from flogger_lint.plus_reporter import Reporter

    with Reporter(stream=sys.stdout) as rep:
        for diag in results.diagnostics:
            rep.report(diag)
"""

from __future__ import annotations

import enum
import json
import os
import sys
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    TextIO,
    Union,
)

import jinja2
from termcolor import colored, cprint

from flogger_lint.checkers import Diagnostic, DiagnosticSeverity
from flogger_lint.errors import FixConflictError
from flogger_lint.fixes import SuggestedFix
from flogger_lint.location import SourceLocation


# ═════════════════════════════════════════════════════════════════════════
#  SEVERITY ENUM
# ═════════════════════════════════════════════════════════════════════════

class Severity(enum.Enum):
    """
    Rendering attributes per diagnostic severity.

    Each carries:
      • label       — the string printed in headers
      • color       — termcolor colour name
      • sarif_level — SARIF 2.1.0 ``level`` string
    """

    ERROR = ("error", "red", "error")
    WARNING = ("warning", "yellow", "warning")
    STYLE = ("style", "cyan", "note")
    INFORMATION = ("information", "white", "note")

    def __init__(self, label: str, color: str, sarif_level: str) -> None:
        self.label = label
        self.color = color
        self.sarif_level = sarif_level

    @classmethod
    def from_string(cls, s: str) -> Severity:
        """Parse a severity from its label (case-insensitive)."""
        s_low = s.strip().lower()
        for member in cls:
            if member.label == s_low:
                return member
        return cls.WARNING

    @classmethod
    def of(cls, severity: DiagnosticSeverity) -> Severity:
        return cls.from_string(severity.value)


# ═════════════════════════════════════════════════════════════════════════
#  DATA STRUCTURES
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpanAnnotation:
    """
    An underlined span of source text with an optional label.

    Coordinates are 1-based.  ``end_col`` is exclusive.
    """
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    label: str = ""
    style: str = "^"


@dataclass
class ReportEntry:
    """A diagnostic prepared for rendering: header, spans, notes, helps."""
    severity: Severity
    error_id: str
    message: str
    location: Optional[SourceLocation] = None
    spans: List[SpanAnnotation] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    helps: List[str] = field(default_factory=list)
    fix: Optional[SuggestedFix] = None

    def one_line(self) -> str:
        """``file:line:col: severity: message [id]``."""
        loc = self.location or SourceLocation()
        return f"{loc}: {self.severity.label}: {self.message} [{self.error_id}]"


@dataclass
class ReporterStats:
    """Aggregate counts per severity."""
    error: int = 0
    warning: int = 0
    style: int = 0
    information: int = 0
    fixable: int = 0

    def record(self, entry: ReportEntry) -> None:
        attr = entry.severity.label
        setattr(self, attr, getattr(self, attr) + 1)
        if entry.fix is not None and not entry.fix.is_empty():
            self.fixable += 1

    @property
    def total(self) -> int:
        return self.error + self.warning + self.style + self.information

    def summary_line(self) -> str:
        parts: List[str] = []
        if self.error:
            parts.append(f"{self.error} error{'s' if self.error != 1 else ''}")
        if self.warning:
            parts.append(f"{self.warning} warning{'s' if self.warning != 1 else ''}")
        if self.style:
            parts.append(f"{self.style} style")
        if self.information:
            parts.append(f"{self.information} info")
        if not parts:
            return "no diagnostics emitted"
        line = "; ".join(parts) + f" ({self.total} total)"
        if self.fixable:
            line += f", {self.fixable} fixable with --fix"
        return line


# ═════════════════════════════════════════════════════════════════════════
#  SOURCE ACCESS
# ═════════════════════════════════════════════════════════════════════════

class _SourceCache:
    """Source bytes per file, from a caller-supplied mapping or the disk."""

    def __init__(self, sources: Optional[Mapping[str, bytes]] = None) -> None:
        self._data: Dict[str, Optional[bytes]] = dict(sources or {})

    def get(self, path: str) -> Optional[bytes]:
        if path not in self._data:
            try:
                self._data[path] = Path(path).read_bytes() if path else None
            except OSError:
                self._data[path] = None
        return self._data[path]

    def line(self, path: str, line: int) -> str:
        data = self.get(path)
        if data is None:
            return ""
        lines = data.split(b"\n")
        if 1 <= line <= len(lines):
            return lines[line - 1].rstrip(b"\r").decode("utf-8", errors="replace")
        return ""

    def fixed_line(self, path: str, fix: SuggestedFix) -> str:
        """The source line holding the fix's first edit, with the fix applied."""
        data = self.get(path)
        if data is None or fix.is_empty():
            return ""
        try:
            patched = fix.apply(data)
        except FixConflictError:
            return ""
        offset = fix.insertion_offset
        start = patched.rfind(b"\n", 0, offset) + 1
        end = patched.find(b"\n", offset + len(fix.replacement_text.encode("utf-8")))
        if end < 0:
            end = len(patched)
        return patched[start:end].rstrip(b"\r").decode("utf-8", errors="replace").strip()


# ═════════════════════════════════════════════════════════════════════════
#  TERMINAL RENDERER  (Rust-style colourful output)
# ═════════════════════════════════════════════════════════════════════════

class _TerminalRenderer:
    """Render diagnostics to a terminal with colours."""

    def __init__(self, stream: TextIO, sources: _SourceCache) -> None:
        self._stream = stream
        self._sources = sources

    def render(self, entry: ReportEntry) -> None:
        lines: List[str] = []

        sev_str = colored(
            f"{entry.severity.label}[{entry.error_id}]",
            entry.severity.color,
            attrs=["bold"],
        )
        lines.append(f"{sev_str}: {colored(entry.message, 'white', attrs=['bold'])}")

        loc = entry.location
        if loc:
            arrow = colored("-->", "blue", attrs=["bold"])
            lines.append(f"  {arrow} {loc}")

        if loc and entry.spans:
            lines.extend(self._render_spans(loc, entry.spans, entry.severity))

        for note in entry.notes:
            prefix = colored("note", "cyan", attrs=["bold"])
            lines.append(f"  = {prefix}: {note}")

        for hlp in entry.helps:
            prefix = colored("help", "green", attrs=["bold"])
            lines.append(f"  = {prefix}: {hlp}")

        lines.append("")
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()

    def _render_spans(
        self,
        loc: SourceLocation,
        spans: Sequence[SpanAnnotation],
        severity: Severity,
    ) -> List[str]:
        result: List[str] = []
        gutter_w = max(len(str(s.start_line)) for s in spans) + 1
        pipe = colored("|", "blue", attrs=["bold"])

        for sp in spans:
            line_num = str(sp.start_line).rjust(gutter_w)
            line_prefix = colored(line_num, "blue", attrs=["bold"])
            src_text = self._sources.line(loc.file, sp.start_line)
            result.append(f" {line_prefix} {pipe} {src_text}")

            pad = " " * (sp.start_col - 1) if sp.start_col > 0 else ""
            if sp.end_line == sp.start_line:
                span_len = max(sp.end_col - sp.start_col, 1)
            else:
                span_len = max(len(src_text) - sp.start_col + 1, 1)
            marker = (sp.style or "^") * span_len
            label_str = f" {sp.label}" if sp.label else ""

            marker_colored = colored(marker + label_str, severity.color, attrs=["bold"])
            blank_gutter = " " * (gutter_w + 1)
            result.append(f" {blank_gutter} {pipe} {pad}{marker_colored}")

        return result


# ═════════════════════════════════════════════════════════════════════════
#  PLAIN RENDERER  (for log files / non-TTY)
# ═════════════════════════════════════════════════════════════════════════

class _PlainRenderer:
    """Non-coloured renderer: one GCC-style line per diagnostic."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, entry: ReportEntry) -> None:
        self._stream.write(entry.one_line() + "\n")
        for note in entry.notes:
            self._stream.write(f"  note: {note}\n")
        for hlp in entry.helps:
            self._stream.write(f"  help: {hlp}\n")
        self._stream.flush()


# ═════════════════════════════════════════════════════════════════════════
#  SARIF 2.1.0 BUILDER
# ═════════════════════════════════════════════════════════════════════════

class _SarifBuilder:
    """Accumulates diagnostics and writes a SARIF 2.1.0 JSON file."""

    SARIF_VERSION = "2.1.0"
    SARIF_SCHEMA = (
        "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/"
        "Schemata/sarif-schema-2.1.0.json"
    )

    def __init__(self) -> None:
        self._results: List[Dict[str, Any]] = []
        self._rules: Dict[str, Dict[str, Any]] = {}

    def add(self, entry: ReportEntry) -> None:
        if entry.error_id not in self._rules:
            self._rules[entry.error_id] = {
                "id": entry.error_id,
                "shortDescription": {"text": entry.message},
                "defaultConfiguration": {"level": entry.severity.sarif_level},
            }

        loc = entry.location
        result: Dict[str, Any] = {
            "ruleId": entry.error_id,
            "level": entry.severity.sarif_level,
            "message": {"text": entry.message},
        }
        if loc:
            region: Dict[str, Any] = {"startLine": loc.line}
            if loc.column:
                region["startColumn"] = loc.column
            if entry.spans:
                region["endLine"] = entry.spans[0].end_line
                region["endColumn"] = entry.spans[0].end_col
            result["locations"] = [{
                "physicalLocation": {
                    "artifactLocation": {"uri": loc.file},
                    "region": region,
                }
            }]

        if entry.fix is not None and not entry.fix.is_empty() and loc:
            result["fixes"] = [{
                "description": {"text": entry.fix.description or entry.message},
                "artifactChanges": [{
                    "artifactLocation": {"uri": loc.file},
                    "replacements": [
                        {
                            "deletedRegion": {
                                "byteOffset": r.start,
                                "byteLength": r.end - r.start,
                            },
                            "insertedContent": {"text": r.text},
                        }
                        for r in entry.fix.replacements
                    ],
                }],
            }]

        self._results.append(result)

    def to_json(self, tool_name: str, tool_version: str) -> str:
        sarif: Dict[str, Any] = {
            "$schema": self.SARIF_SCHEMA,
            "version": self.SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": tool_name,
                            "version": tool_version,
                            "rules": list(self._rules.values()),
                        }
                    },
                    "results": self._results,
                }
            ],
        }
        return json.dumps(sarif, indent=2)

    def write(self, path: str, tool_name: str, tool_version: str) -> None:
        Path(path).write_text(self.to_json(tool_name, tool_version), encoding="utf-8")


# ═════════════════════════════════════════════════════════════════════════
#  HTML BUILDER
# ═════════════════════════════════════════════════════════════════════════

class _HtmlBuilder:
    """Accumulates diagnostics and renders to an HTML file via Jinja2."""

    def __init__(self, sources: _SourceCache) -> None:
        self._diagnostics: List[Dict[str, Any]] = []
        self._sources = sources

    def add(self, entry: ReportEntry) -> None:
        loc = entry.location
        fixed = ""
        if loc and entry.fix is not None:
            fixed = self._sources.fixed_line(loc.file, entry.fix)
        self._diagnostics.append({
            "severity": entry.severity.label,
            "error_id": entry.error_id,
            "message": entry.message,
            "file": loc.file if loc else "",
            "line": loc.line if loc else 0,
            "column": loc.column if loc else 0,
            "source": self._sources.line(loc.file, loc.line).strip() if loc else "",
            "fixed": fixed,
            "notes": list(entry.notes),
            "helps": list(entry.helps),
        })

    def render(self, template_path: Optional[str] = None) -> str:
        env = jinja2.Environment(autoescape=True)
        tmpl = env.from_string(self._load_template(template_path))
        return tmpl.render(diagnostics=self._diagnostics, total=len(self._diagnostics))

    def write(self, path: str, template_path: Optional[str] = None) -> None:
        Path(path).write_text(self.render(template_path), encoding="utf-8")

    @staticmethod
    def _load_template(template_path: Optional[str]) -> str:
        if template_path:
            return Path(template_path).read_text(encoding="utf-8")
        env_tmpl = os.environ.get("REPORT_HTML_TEMPLATE", "")
        if env_tmpl and Path(env_tmpl).is_file():
            return Path(env_tmpl).read_text(encoding="utf-8")
        return _DEFAULT_HTML_TEMPLATE


# ═════════════════════════════════════════════════════════════════════════
#  REPORTER  (main entry point)
# ═════════════════════════════════════════════════════════════════════════

class Reporter:
    """
    Central diagnostic dispatcher.

    Use as a context manager::

        with Reporter(stream=sys.stdout) as rep:
            for diag in results.diagnostics:
                rep.report(diag)
        # finish() is called automatically

    Parameters
    ----------
    stream       : where terminal / plain output goes
    colour       : force colour on or off (default: colour on TTYs)
    sarif_path   : SARIF output file (default: $REPORT_GENERATE_SARIF)
    html_path    : HTML output file (default: $REPORT_GENERATE_HTML)
    sources      : file → source bytes, used instead of reading the disk
    """

    def __init__(
        self,
        stream: TextIO = sys.stderr,
        colour: Optional[bool] = None,
        tool_name: str = "flogger-lint",
        tool_version: str = "1.0.0",
        sarif_path: Optional[str] = None,
        html_path: Optional[str] = None,
        sources: Optional[Mapping[str, bytes]] = None,
    ) -> None:
        self.tool_name = tool_name
        self.tool_version = tool_version
        self.stats = ReporterStats()
        self.entries: List[ReportEntry] = []
        self._stream = stream
        self._sources = _SourceCache(sources)

        use_colour = colour if colour is not None else hasattr(stream, "isatty") and stream.isatty()
        if use_colour:
            self._renderer: Union[_TerminalRenderer, _PlainRenderer] = \
                _TerminalRenderer(stream, self._sources)
        else:
            self._renderer = _PlainRenderer(stream)

        self._sarif_path = sarif_path or os.environ.get("REPORT_GENERATE_SARIF", "")
        self._sarif = _SarifBuilder() if self._sarif_path else None

        self._html_path = html_path or os.environ.get("REPORT_GENERATE_HTML", "")
        self._html = _HtmlBuilder(self._sources) if self._html_path else None

    def __enter__(self) -> Reporter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.finish()

    # ── entry construction ───────────────────────────────────────────

    def entry_for(self, diag: Diagnostic) -> ReportEntry:
        """Translate a checker :class:`Diagnostic` into a render entry."""
        entry = ReportEntry(
            severity=Severity.of(diag.severity),
            error_id=diag.error_id,
            message=diag.message,
            location=diag.location if diag.location.line else None,
            fix=diag.fix,
        )
        loc, end = diag.location, diag.end_location
        if loc.line:
            entry.spans.append(SpanAnnotation(
                loc.line, loc.column,
                end.line if end else loc.line,
                end.column if end else loc.column + 1,
                label=self._span_label(diag),
            ))
        if diag.fix is not None and not diag.fix.is_empty():
            fixed = self._sources.fixed_line(loc.file, diag.fix)
            if fixed:
                entry.helps.append(f"attach the exception as the cause: `{fixed}`")
            else:
                entry.helps.append(f"insert `{diag.fix.replacement_text}` before `.log(`")
        return entry

    @staticmethod
    def _span_label(diag: Diagnostic) -> str:
        exception = diag.evidence.get("exception") if diag.evidence else None
        if exception:
            return f"`{exception}` passed as a format argument"
        return ""

    def report(self, diag: Diagnostic) -> ReportEntry:
        entry = self.entry_for(diag)
        self._accept(entry)
        return entry

    def report_all(self, diagnostics: Sequence[Diagnostic]) -> None:
        for diag in diagnostics:
            self.report(diag)

    def _accept(self, entry: ReportEntry) -> None:
        """Route an entry to all active outputs; stats are recorded first."""
        self.stats.record(entry)
        self.entries.append(entry)
        self._renderer.render(entry)

        if self._sarif is not None:
            self._sarif.add(entry)

        if self._html is not None:
            self._html.add(entry)

    # ── finalisation ─────────────────────────────────────────────────

    def finish(self) -> ReporterStats:
        """
        Print the summary line and write SARIF / HTML if configured.

        Returns the final :class:`ReporterStats`.
        """
        summary = self.stats.summary_line()
        if isinstance(self._renderer, _TerminalRenderer):
            if self.stats.error:
                color = "red"
            elif self.stats.total:
                color = "yellow"
            else:
                color = "green"
            cprint(f"  ╰─ {summary}", color, attrs=["bold"], file=self._stream)
        else:
            print(f"  {summary}", file=self._stream)

        if self._sarif is not None:
            try:
                self._sarif.write(self._sarif_path, self.tool_name, self.tool_version)
            except OSError as exc:
                print(f"flogger-lint: failed to write SARIF: {exc}", file=sys.stderr)

        if self._html is not None:
            try:
                self._html.write(self._html_path)
            except OSError as exc:
                print(f"flogger-lint: failed to write HTML: {exc}", file=sys.stderr)

        return self.stats


# ═════════════════════════════════════════════════════════════════════════
#  DEFAULT HTML TEMPLATE
# ═════════════════════════════════════════════════════════════════════════

_DEFAULT_HTML_TEMPLATE = textwrap.dedent("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>flogger-lint report</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 2em auto; max-width: 72em;
           color: #1f2328; }
    h2 { font-size: 1.05em; margin-top: 2em; border-bottom: 1px solid #d0d7de; }
    table { border-collapse: collapse; width: 100%; }
    td { vertical-align: top; padding: 0.35em 0.6em; border-bottom: 1px solid #eaeef2; }
    td.pos { white-space: nowrap; color: #57606a; }
    .error { color: #cf222e; } .warning { color: #9a6700; }
    .style, .information { color: #0969da; }
    code.before, code.after { display: block; white-space: pre; padding: 0.2em 0.4em; }
    code.before { background: #ffebe9; } code.after { background: #dafbe1; }
    .note { color: #57606a; font-size: 0.9em; }
    footer { margin-top: 2em; color: #57606a; }
  </style>
</head>
<body>
  <h1>flogger-lint report</h1>
  {% for file, items in diagnostics | groupby("file") %}
  <h2>{{ file or "(no file)" }}</h2>
  <table>
    {% for d in items %}
    <tr>
      <td class="pos">{{ d.line }}{% if d.column %}:{{ d.column }}{% endif %}</td>
      <td class="{{ d.severity }}">{{ d.severity }}</td>
      <td>
        {{ d.message }} <code>[{{ d.error_id }}]</code>
        {% if d.source %}<code class="before">- {{ d.source }}</code>{% endif %}
        {% if d.fixed %}<code class="after">+ {{ d.fixed }}</code>{% endif %}
        {% for n in d.notes %}<div class="note">note: {{ n }}</div>{% endfor %}
        {% for h in d.helps %}<div class="note">help: {{ h }}</div>{% endfor %}
      </td>
    </tr>
    {% endfor %}
  </table>
  {% endfor %}
  <footer>{{ total }} diagnostic{{ 's' if total != 1 else '' }}.</footer>
</body>
</html>
""")


__all__ = [
    "Severity",
    "SpanAnnotation",
    "ReportEntry",
    "Reporter",
    "ReporterStats",
]
