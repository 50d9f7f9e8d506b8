"""Render a ``BuildResult`` as concise text.

Build output looks like::

    Build failed (2 errors, 1 warning, 12.4s)

    Errors:
      Sources/Foo.swift:42:10 — cannot convert 'Int' to 'String'
      Sources/Bar.swift:15:5 — missing return in function

    Warnings:
      Sources/Baz.swift:88:3 — unused variable 'x'

Test output looks like::

    Tests failed (42 passed, 2 failed, 3.200s)

    Failures:
      MyTests.testLogin — Expected true, got false (Sources/MyTests.swift:55)

Blocks are separated by a blank line. Output is deterministic for a given
result.
"""

from __future__ import annotations

from collections.abc import Sequence

from buildlens.build.models import (
    BuildError,
    BuildResult,
    BuildWarning,
    FailedTest,
    LinkerError,
    SlowTest,
)
from buildlens.core.formatting import format_percent, pluralize

BLOCK_SEPARATOR = "\n\n"


def format_build_result(result: BuildResult, project_root: str | None = None) -> str:
    """Format a build result.

    Args:
        result: Parsed build result.
        project_root: When given, a failed build itemizes only warnings from
            files under this directory and counts the rest; a successful
            build itemizes no warnings (the header already counts them).
    """
    parts = [_build_header(result)]

    if result.errors:
        parts.append(_format_diagnostics("Errors:", result.errors))
    if result.linker_errors:
        parts.append(_format_linker_errors(result.linker_errors))

    if result.warnings:
        if project_root is None:
            parts.append(_format_diagnostics("Warnings:", result.warnings))
        elif not result.succeeded:
            local, external = partition_warnings(result.warnings, project_root)
            if local:
                parts.append(_format_diagnostics("Warnings:", local))
            if external:
                parts.append(f"(+{pluralize(external, 'warning')} from dependencies hidden)")

    return BLOCK_SEPARATOR.join(parts)


def format_test_result(result: BuildResult) -> str:
    """Format a test run: header, failures, build problems, timing and coverage."""
    parts = [_test_header(result)]

    if result.failed_tests:
        parts.append(_format_failures(result.failed_tests))
    if result.errors:
        parts.append(_format_diagnostics("Errors:", result.errors))
    if result.linker_errors:
        parts.append(_format_linker_errors(result.linker_errors))
    if result.slow_tests:
        parts.append(_format_slow_tests(result.slow_tests))
    if result.flaky_tests:
        lines = ["Flaky tests:"] + [f"  {name}" for name in sorted(result.flaky_tests)]
        parts.append("\n".join(lines))
    if result.coverage is not None:
        parts.append(f"Coverage: {format_percent(result.coverage.line_coverage)}")

    return BLOCK_SEPARATOR.join(parts)


def partition_warnings(
    warnings: Sequence[BuildWarning], project_root: str
) -> tuple[list[BuildWarning], int]:
    """Split warnings into project-local ones and a count of external ones.

    A warning is external when its file lies outside ``project_root``.
    Warnings without a file cannot be attributed and stay local.
    """
    root = project_root if project_root.endswith("/") else project_root + "/"
    local: list[BuildWarning] = []
    external = 0
    for warning in warnings:
        file = warning.file
        if file is not None and not file.startswith(root):
            external += 1
        else:
            local.append(warning)
    return local, external


# =============================================================================
# Headers
# =============================================================================


def _build_header(result: BuildResult) -> str:
    summary = result.summary
    header = "Build succeeded" if result.succeeded else "Build failed"

    details: list[str] = []
    if summary.errors:
        details.append(pluralize(summary.errors, "error"))
    if summary.linker_errors:
        details.append(pluralize(summary.linker_errors, "linker error"))
    if summary.warnings:
        details.append(pluralize(summary.warnings, "warning"))
    if summary.build_time:
        details.append(summary.build_time)

    if details:
        header += f" ({', '.join(details)})"
    return header


def _test_header(result: BuildResult) -> str:
    summary = result.summary
    passed = summary.passed_tests or 0
    failed = summary.failed_tests

    if failed:
        header = "Tests failed"
    elif passed:
        header = "Tests passed"
    else:
        header = "Test run completed"

    details: list[str] = []
    if passed:
        details.append(f"{passed} passed")
    if failed:
        details.append(f"{failed} failed")
    if summary.test_time:
        details.append(summary.test_time)

    if details:
        header += f" ({', '.join(details)})"
    return header


# =============================================================================
# Blocks
# =============================================================================


def _format_location(file: str | None, line: int | None, column: int | None) -> str:
    if file is None:
        return ""
    location = file
    if line is not None:
        location += f":{line}"
        if column is not None:
            location += f":{column}"
    return f"{location} — "


def _format_diagnostics(title: str, items: Sequence[BuildError | BuildWarning]) -> str:
    lines = [title]
    for item in items:
        lines.append(f"  {_format_location(item.file, item.line, item.column)}{item.message}")
    return "\n".join(lines)


def _format_linker_error(error: LinkerError) -> str:
    if error.symbol is None:
        return f"  {error.message or 'Linker error'}"

    arch = f" ({error.architecture})" if error.architecture else ""
    if error.conflicting_files:
        return f"  Duplicate symbol '{error.symbol}'{arch} in: {', '.join(error.conflicting_files)}"

    detail = f"  Undefined symbol '{error.symbol}'{arch}"
    if error.referenced_from:
        detail += f" referenced from {error.referenced_from}"
    return detail


def _format_linker_errors(errors: Sequence[LinkerError]) -> str:
    return "\n".join(["Linker errors:", *(_format_linker_error(e) for e in errors)])


def _format_failures(tests: Sequence[FailedTest]) -> str:
    lines = ["Failures:"]
    for test in tests:
        detail = f"  {test.test} — {test.message}"
        if test.file is not None:
            location = test.file if test.line is None else f"{test.file}:{test.line}"
            detail += f" ({location})"
        lines.append(detail)
    return "\n".join(lines)


def _format_slow_tests(tests: Sequence[SlowTest]) -> str:
    lines = ["Slow tests:"]
    lines.extend(f"  {test.test} ({test.duration:.3f}s)" for test in tests)
    return "\n".join(lines)
