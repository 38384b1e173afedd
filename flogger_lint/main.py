#!/usr/bin/env python3
"""flogger_lint/main.py — CLI entry-point for flogger-lint.

Usage examples
--------------
    # Check a source tree, coloured output on a terminal
    flogger-lint src/main/java

    # Machine-readable output
    flogger-lint --output json Foo.java Bar.java

    # Show what --fix would change, then apply it
    flogger-lint --diff src/
    flogger-lint --fix src/

    # SARIF for code-scanning uploads
    flogger-lint --sarif flogger.sarif src/

    # List available checkers
    flogger-lint --list-checkers

Exit codes
----------
    0   Success (no findings, or every finding fixed with ``--fix``).
    1   One or more findings were reported.
    2   Infrastructure failure (unreadable input, bad arguments, etc.).

The module doubles as ``python -m flogger_lint`` via the companion
``flogger_lint/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import difflib
import io
import logging
import sys
from fnmatch import fnmatch
from pathlib import Path
from typing import (
    Dict,
    List,
    Optional,
    Sequence,
    TextIO,
    Tuple,
)

from flogger_lint import __version__
from flogger_lint.checkers import (
    _DEFAULT_REGISTRY,
    CheckerRunner,
    CheckerRunResults,
    SuppressionManager,
)
from flogger_lint.errors import ConfigurationError, FixConflictError, FloggerLintError
from flogger_lint.fixes import SuggestedFix, apply_fixes
from flogger_lint.plus_reporter import Reporter

_log = logging.getLogger("flogger_lint")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2

OUTPUT_FORMATS = ("text", "json", "gcc", "summary")


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``flogger_lint`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("flogger_lint")
    root.setLevel(level)
    for old in [h for h in root.handlers if isinstance(h, logging.StreamHandler)]:
        root.removeHandler(old)
    root.addHandler(handler)


def _is_excluded(path: Path, exclude: Sequence[str]) -> bool:
    text = path.as_posix()
    return any(fnmatch(text, g) or fnmatch(path.name, g) for g in exclude)


def collect_java_files(
    paths: Sequence[str],
    exclude: Sequence[str] = (),
) -> List[Path]:
    """Expand *paths* into Java files; directories are walked recursively.

    Raises
    ------
    ConfigurationError
        If a path does not exist.
    """
    files: List[Path] = []
    seen = set()
    for raw in paths:
        p = Path(raw).expanduser()
        if p.is_dir():
            candidates = sorted(p.rglob("*.java"))
        elif p.is_file():
            candidates = [p]
        else:
            raise ConfigurationError(f"path not found: {raw}")
        for c in candidates:
            if c in seen or _is_excluded(c, exclude):
                continue
            seen.add(c)
            files.append(c)
    _log.info("%d Java file(s) to check", len(files))
    return files


def _emit_results(
    results: CheckerRunResults,
    fmt: str,
    stream: TextIO,
    sarif_path: Optional[str],
    html_path: Optional[str],
) -> None:
    """Write *results* to *stream* in the chosen format.

    SARIF / HTML files are produced through the reporter whatever the
    stream format is.
    """
    if fmt == "text" or sarif_path or html_path:
        rep_stream = stream if fmt == "text" else io.StringIO()
        with Reporter(
            stream=rep_stream,
            sarif_path=sarif_path,
            html_path=html_path,
            tool_version=__version__,
        ) as rep:
            rep.report_all(results.diagnostics)

    if fmt == "json":
        if results.diagnostics:
            stream.write(results.to_json_lines() + "\n")
    elif fmt == "gcc":
        if results.diagnostics:
            stream.write(results.to_gcc_format() + "\n")
    elif fmt == "summary":
        stream.write(results.summary() + "\n")


def _apply_fixes(
    fixes_by_file: Dict[str, List[SuggestedFix]],
    write: bool,
    diff_stream: Optional[TextIO],
) -> Tuple[int, List[str]]:
    """Apply fixes per file; print a unified diff and/or rewrite in place.

    A file whose fixes overlap is left untouched and the run moves on.
    Returns the number of files changed and the files left untouched.
    """
    changed = 0
    conflicted: List[str] = []
    for file, fixes in sorted(fixes_by_file.items()):
        path = Path(file)
        original = path.read_bytes()
        try:
            patched = apply_fixes(original, fixes)
        except FixConflictError as exc:
            _log.error("%s: fixes not applied: %s", file, exc)
            conflicted.append(file)
            continue
        if patched == original:
            continue
        changed += 1
        if diff_stream is not None:
            diff = difflib.unified_diff(
                original.decode("utf-8").splitlines(keepends=True),
                patched.decode("utf-8").splitlines(keepends=True),
                fromfile=f"a/{file}",
                tofile=f"b/{file}",
            )
            diff_stream.writelines(diff)
        if write:
            path.write_bytes(patched)
            _log.info("%s: applied %d fix(es)", file, len(fixes))
    return changed, conflicted


def _list_checkers(stream: TextIO) -> None:
    for name in _DEFAULT_REGISTRY.names:
        cls = _DEFAULT_REGISTRY.get_by_name(name)
        desc = cls.description if cls else ""
        ids = ", ".join(sorted(cls.error_ids)) if cls else ""
        stream.write(f"  {name:25s} {desc}\n")
        stream.write(f"  {'':25s} IDs: {ids}\n\n")


# ===========================================================================
# Argument parsing
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flogger-lint",
        description=(
            "Find Flogger log(...) calls that pass an exception as a format\n"
            "argument instead of attaching it with withCause(...)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v INFO, -vv DEBUG).",
    )
    parser.add_argument(
        "paths", nargs="*", metavar="PATH",
        help="Java files or directories to check.",
    )
    parser.add_argument(
        "--output", choices=OUTPUT_FORMATS, default="text",
        help="Output format (default: text).",
    )

    fix_group = parser.add_mutually_exclusive_group()
    fix_group.add_argument(
        "--fix", action="store_true",
        help="Rewrite files in place with all suggested fixes applied.",
    )
    fix_group.add_argument(
        "--diff", action="store_true",
        help="Print the suggested fixes as a unified diff.",
    )

    parser.add_argument(
        "--suppress", nargs="+", default=[], metavar="ID",
        help="Error IDs to suppress everywhere.",
    )
    parser.add_argument(
        "--exclude", nargs="+", default=[], metavar="GLOB",
        help="Skip files whose path or name matches GLOB.",
    )
    parser.add_argument("--sarif", metavar="FILE", help="Write a SARIF 2.1.0 report.")
    parser.add_argument("--html", metavar="FILE", help="Write an HTML report.")
    parser.add_argument(
        "--strict-parse", action="store_true",
        help="Treat Java syntax errors as failures instead of analysing "
             "the recovered tree.",
    )
    parser.add_argument(
        "--list-checkers", action="store_true",
        help="List available checkers and exit.",
    )
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def run(args: argparse.Namespace, stream: TextIO) -> int:
    """Execute a parsed command line; returns the exit code."""
    files = collect_java_files(args.paths, args.exclude)

    sm = SuppressionManager()
    for eid in args.suppress:
        sm.add_global_suppression(eid)
    runner = CheckerRunner(
        suppressions=sm,
        options={"strict_parse": args.strict_parse},
    )
    results = runner.run_files(files)

    _emit_results(results, args.output, stream, args.sarif, args.html)

    fixes = results.fixes_by_file()
    conflicted: List[str] = []
    if args.fix or args.diff:
        changed, conflicted = _apply_fixes(
            fixes, write=args.fix, diff_stream=stream if args.diff else None,
        )
        _log.info("%d file(s) %s", changed, "fixed" if args.fix else "would change")

    if results.failures:
        return EXIT_INFRA
    if args.fix:
        unfixable = sum(
            1 for d in results.diagnostics
            if d.error_id != "checkerInternalError"
            and (d.fix is None or d.location.file in conflicted)
        )
        return EXIT_FINDINGS if unfixable else EXIT_OK
    return EXIT_FINDINGS if results.finding_count else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the flogger-lint CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA

    _configure_logging(args.verbose)

    if args.list_checkers:
        _list_checkers(sys.stdout)
        return EXIT_OK

    if not args.paths:
        parser.print_usage(sys.stderr)
        _log.error("no PATH given")
        return EXIT_INFRA

    try:
        return run(args, sys.stdout)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except FloggerLintError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except OSError as exc:
        _log.error("I/O failure: %s", exc)
        return EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
