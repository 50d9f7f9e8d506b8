"""Build module - build/test output parsing and result formatting."""

from buildlens.build.formatter import format_build_result, format_test_result
from buildlens.build.linker import LinkerBlockReader
from buildlens.build.models import (
    BuildError,
    BuildInfo,
    BuildResult,
    BuildSummary,
    BuildWarning,
    ExecutableInfo,
    FailedTest,
    LinkerError,
    SlowTest,
    TargetBuildInfo,
    WarningKind,
)
from buildlens.build.ops import (
    detect_infrastructure_warnings,
    extract_build_errors,
    extract_test_results,
    parse_output,
)
from buildlens.build.parser import BuildOutputParser, parse_build_output
from buildlens.build.state import ParseState

__all__ = [
    # Models
    "BuildError",
    "BuildInfo",
    "BuildResult",
    "BuildSummary",
    "BuildWarning",
    "ExecutableInfo",
    "FailedTest",
    "LinkerError",
    "SlowTest",
    "TargetBuildInfo",
    "WarningKind",
    # Parsing
    "BuildOutputParser",
    "LinkerBlockReader",
    "ParseState",
    "parse_build_output",
    # Formatting
    "format_build_result",
    "format_test_result",
    # Operations
    "detect_infrastructure_warnings",
    "extract_build_errors",
    "extract_test_results",
    "parse_output",
]
