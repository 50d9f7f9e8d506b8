"""Build output operations - extract_build_errors, extract_test_results, parse_output.

Thin entry points that combine parsing, optional coverage and formatting.
Configuration is passed in explicitly; nothing here reads config files.
"""

from __future__ import annotations

from pathlib import Path

from buildlens.build.formatter import format_build_result, format_test_result
from buildlens.build.models import BuildResult
from buildlens.build.parser import BuildOutputParser
from buildlens.config.models import BuildLensConfig
from buildlens.core.logging import get_logger
from buildlens.coverage.normalizer import parse_coverage_from_path

log = get_logger("build.ops")

_TESTMANAGERD_CRASH_MARKERS = (
    "crash",
    "SIGSEGV",
    "SIGABRT",
    "SIGBUS",
    "pointer auth",
    "EXC_BAD_ACCESS",
)
_TESTMANAGERD_EXIT_MARKERS = (
    "terminated unexpectedly",
    "exited unexpectedly",
    "lost connection",
)


def _parser_for(
    config: BuildLensConfig | None, coverage_path: str | Path | None = None
) -> BuildOutputParser:
    config = config or BuildLensConfig()
    coverage = None
    if coverage_path is not None:
        coverage = parse_coverage_from_path(
            coverage_path,
            test_bundle_suffixes=tuple(config.coverage.test_bundle_suffixes),
        )
    return BuildOutputParser(
        config.parser.slow_test_threshold_sec,
        coverage=coverage,
        parse_build_info=config.parser.parse_build_info,
        max_line_length=config.parser.max_line_length,
    )


def parse_output(
    text: str,
    *,
    config: BuildLensConfig | None = None,
    coverage_path: str | Path | None = None,
) -> BuildResult:
    """Parse build or test output into a structured result.

    Args:
        text: Raw console output.
        config: Parser and coverage settings. Defaults apply when omitted.
        coverage_path: Coverage JSON file or directory to attach, if any.
    """
    return _parser_for(config, coverage_path).parse(text)


def extract_build_errors(
    text: str,
    project_root: str | None = None,
    *,
    config: BuildLensConfig | None = None,
) -> str:
    """Parse build output and return the formatted build summary.

    ``project_root`` overrides ``config.formatter.project_root``.
    """
    result = parse_output(text, config=config)
    if project_root is None and config is not None:
        project_root = config.formatter.project_root
    log.debug("build_errors_extracted", status=result.status, project_root=project_root)
    return format_build_result(result, project_root=project_root)


def extract_test_results(
    text: str,
    *,
    config: BuildLensConfig | None = None,
    coverage_path: str | Path | None = None,
    stderr: str | None = None,
) -> str:
    """Parse test output and return the formatted test summary.

    When ``stderr`` is given, test infrastructure crashes found in it are
    appended as warnings.
    """
    result = parse_output(text, config=config, coverage_path=coverage_path)
    formatted = format_test_result(result)
    if stderr:
        warnings = detect_infrastructure_warnings(stderr)
        if warnings:
            formatted += "\n\n" + warnings
    log.debug("test_results_extracted", status=result.status)
    return formatted


def detect_infrastructure_warnings(stderr: str) -> str:
    """Report test-infrastructure crashes that make results unreliable.

    Returns an empty string when nothing was detected.
    """
    warnings: list[str] = []

    if "testmanagerd" in stderr:
        if any(marker in stderr for marker in _TESTMANAGERD_CRASH_MARKERS):
            warnings.append(
                "Warning: testmanagerd crashed during the test run. "
                "Test results may be incomplete or unreliable. Consider re-running the tests."
            )
        elif any(marker in stderr for marker in _TESTMANAGERD_EXIT_MARKERS):
            warnings.append(
                "Warning: testmanagerd terminated unexpectedly during the test run. "
                "Test results may be incomplete."
            )

    if "IDETestRunnerDaemon" in stderr and "crash" in stderr:
        warnings.append("Warning: The test runner daemon crashed during the test run.")

    return "\n".join(warnings)
