"""Line matchers for build and test output.

Each matcher inspects one line and returns a tagged event, or ``None`` when
the line is not its shape. Matchers are independent of each other and of parse
state; ``LINE_MATCHERS`` fixes the order in which the parser offers a line to
them (first hit wins). Multi-line linker blocks live in ``buildlens.build.linker``
because they need state.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from buildlens.build.models import (
    BuildError,
    BuildWarning,
    ExecutableInfo,
    FailedTest,
    WarningKind,
)
from buildlens.core.formatting import last_path_component

TestDialect = Literal["xctest", "swift-testing", "generic"]

# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    error: BuildError


@dataclass(frozen=True, slots=True)
class WarningEvent:
    warning: BuildWarning


@dataclass(frozen=True, slots=True)
class ScriptPhaseFailedEvent:
    """A build phase script exited non-zero; context comes from earlier lines."""

    line: str


@dataclass(frozen=True, slots=True)
class TestPassedEvent:
    name: str
    dialect: TestDialect
    duration: float | None = None


@dataclass(frozen=True, slots=True)
class TestFailedEvent:
    failure: FailedTest
    dialect: TestDialect


@dataclass(frozen=True, slots=True)
class TestRunSummaryEvent:
    """Run-level totals reported by one dialect."""

    dialect: TestDialect
    executed: int
    failed: int
    duration: float | None = None


@dataclass(frozen=True, slots=True)
class ParallelScheduleEvent:
    """``[n/TOTAL] Testing ...``: the scheduler announces the total test count."""

    total: int


@dataclass(frozen=True, slots=True)
class ExecutableEvent:
    executable: ExecutableInfo


@dataclass(frozen=True, slots=True)
class BuildTimeEvent:
    build_time: str


@dataclass(frozen=True, slots=True)
class BannerEvent:
    """``** TEST FAILED **`` style banner. Informational only."""

    text: str


@dataclass(frozen=True, slots=True)
class BuildPhaseEvent:
    target: str
    phase: str


@dataclass(frozen=True, slots=True)
class TargetTimingEvent:
    target: str
    duration: str


@dataclass(frozen=True, slots=True)
class DependencyTargetEvent:
    """Start of a target's entry in the dependency graph."""

    target: str
    no_dependencies: bool = False


@dataclass(frozen=True, slots=True)
class DependencyEvent:
    """Edge from the current dependency-graph target to ``dependency``."""

    dependency: str


LineEvent = (
    ErrorEvent
    | WarningEvent
    | ScriptPhaseFailedEvent
    | TestPassedEvent
    | TestFailedEvent
    | TestRunSummaryEvent
    | ParallelScheduleEvent
    | ExecutableEvent
    | BuildTimeEvent
    | BannerEvent
)

BuildInfoEvent = BuildPhaseEvent | TargetTimingEvent | DependencyTargetEvent | DependencyEvent

LineMatcher = Callable[[str], "LineEvent | None"]
BuildInfoMatcher = Callable[[str], "BuildInfoEvent | None"]

# =============================================================================
# Shared helpers
# =============================================================================

_LOCATION_RE = re.compile(r"^(?P<file>.*?):(?P<line>\d+)(?::(?P<column>\d+))?$")
_TOOL_NAME_RE = re.compile(r"^[\w.+-]+$")
_GUTTER_RE = re.compile(r"^\s*\d*\s*\|")
_CARET_RE = re.compile(r"^\s*\^[\s~^]*$")

SCRIPT_PHASE_FAILED_MARKER = "Command PhaseScriptExecution failed with a nonzero exit"


def split_location(prefix: str) -> tuple[str | None, int | None, int | None]:
    """Split ``path:line:col`` (line and column optional) into its parts.

    A prefix without numbers that looks like a bare tool name (``ld``,
    ``xcodebuild``) has no file.
    """
    match = _LOCATION_RE.match(prefix)
    if match:
        column = match.group("column")
        return (
            match.group("file") or None,
            int(match.group("line")),
            int(column) if column else None,
        )
    if not prefix or (_TOOL_NAME_RE.match(prefix) and "." not in prefix):
        return None, None, None
    return prefix, None, None


def normalize_test_name(name: str) -> str:
    """Strip the Objective-C ``-[Suite test]`` wrapper so dialect names compare equal."""
    if name.startswith("-[") and name.endswith("]"):
        return name[2:-1]
    return name


def _to_float(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        return float(text.strip(". \t"))
    except ValueError:
        return None


def is_visual_context_line(line: str) -> bool:
    """True for compiler source-context lines (gutters, carets, ``|`` markers)."""
    if _GUTTER_RE.match(line) or _CARET_RE.match(line):
        return True
    return line.startswith((" ", "\t")) and ("|" in line or "`" in line)


def is_json_like_line(line: str) -> bool:
    """True for lines that are fragments of JSON dumped into the log."""
    trimmed = line.strip()
    if trimmed.startswith(("{", "[", "}", "]")):
        return True
    if trimmed.startswith('"') and '" :' in trimmed:
        return True
    if '\\"' in line and ":" in line:
        return True
    if "error:" in line:
        if trimmed.startswith('"'):
            return True
        if not trimmed.startswith("error:"):
            has_escapes = "\\" in line and '"' in line
            has_source_location = any(ext in line for ext in ("file:", ".swift:", ".m:", ".h:"))
            if has_escapes and not has_source_location:
                return True
    return False


# =============================================================================
# Diagnostics
# =============================================================================

_SWIFTUI_WARNING_MARKERS = (
    "Accessing Environment",
    "Accessing StateObject",
    "StateObject's wrappedValue",
    "Publishing changes from background",
    "Publishing changes from within view",
    "Modifying state during view update",
    "will always read the default value",
)

_RUNTIME_WARNING_RE = re.compile(r"^(?P<file>/.*?\.swift):(?P<line>\d+) (?P<message>\S.*)$")
_FATAL_RE = re.compile(r"^(?P<prefix>.+?): Fatal error(?:: (?P<message>.*))?$")


def match_script_phase_failure(line: str) -> ScriptPhaseFailedEvent | None:
    if SCRIPT_PHASE_FAILED_MARKER in line:
        return ScriptPhaseFailedEvent(line=line)
    return None


def match_error(line: str) -> ErrorEvent | None:
    """``path:line:col: error: message`` and bare ``error: message`` lines."""
    if is_json_like_line(line) or is_visual_context_line(line):
        return None

    prefix, sep, message = line.partition(": error: ")
    if sep:
        file, line_no, column = split_location(prefix)
        return ErrorEvent(BuildError(message=message, file=file, line=line_no, column=column))

    if line.startswith("error: "):
        return ErrorEvent(BuildError(message=line[len("error: ") :]))
    return None


def match_warning(line: str) -> WarningEvent | None:
    """``path:line:col: warning: message`` and bare ``warning: message`` lines."""
    if is_json_like_line(line) or is_visual_context_line(line):
        return None

    prefix, sep, message = line.partition(": warning: ")
    if sep:
        file, line_no, column = split_location(prefix)
        return WarningEvent(BuildWarning(message=message, file=file, line=line_no, column=column))

    if line.startswith("warning: "):
        return WarningEvent(BuildWarning(message=line[len("warning: ") :]))
    return None


def match_fatal(line: str) -> ErrorEvent | None:
    """``path:line: Fatal error[: message]`` crash lines."""
    if " xctest[" in line:
        return None
    match = _FATAL_RE.match(line)
    if not match:
        return None
    file, line_no, _ = split_location(match.group("prefix"))
    if line_no is None and file is not None and "/" not in file:
        # "Thread 1: Fatal error: ..." names a thread, not a file
        file = None
    message = match.group("message")
    if message is None:
        # Without a message only a located crash is trustworthy
        if line_no is None:
            return None
        message = "Fatal error"
    return ErrorEvent(BuildError(message=message, file=file, line=line_no))


def match_cross_mark_error(line: str) -> ErrorEvent | None:
    """``❌ message`` lines that are not test failures."""
    if line.startswith("❌ "):
        return ErrorEvent(BuildError(message=line[2:]))
    return None


def match_runtime_warning(line: str) -> WarningEvent | None:
    """``/abs/File.swift:42 message`` runtime issues printed by the app under test."""
    if ": warning:" in line or ": error:" in line:
        return None
    if "|" in line or "`-" in line:
        return None
    match = _RUNTIME_WARNING_RE.match(line)
    if not match:
        return None
    message = match.group("message")
    kind = (
        WarningKind.SWIFTUI
        if any(marker in message for marker in _SWIFTUI_WARNING_MARKERS)
        else WarningKind.RUNTIME
    )
    return WarningEvent(
        BuildWarning(
            message=message,
            file=match.group("file"),
            line=int(match.group("line")),
            kind=kind,
        )
    )


# =============================================================================
# Tests - XCTest dialect
# =============================================================================

_XCTEST_CASE_RE = re.compile(
    r"^Test [Cc]ase '(?P<name>.+?)' (?P<outcome>passed|failed)"
    r"(?: on '(?P<device>.*)')? \((?P<duration>[\d.]+) seconds\)"
)
_XCTEST_ASSERTION_RE = re.compile(
    r"^(?P<prefix>.+?): error: -\[(?P<name>[^\]]+)\] : (?P<message>.*)$"
)
_XCTEST_ASSERT_FAILED_RE = re.compile(r"XCTAssert\w* failed")
_XCTEST_BRACKETED_NAME_RE = re.compile(r"-\[(?P<name>[^\]]+)\]")
_XCTEST_SUMMARY_RE = re.compile(
    r"^\s*Executed (?P<executed>\d+) tests?, with (?P<failed>\d+) failures?"
    r".*? in (?P<duration>[\d.]+)(?: \([\d.]+\))? seconds"
)
_PARALLEL_SCHEDULE_RE = re.compile(r"^\[(?P<index>\d+)/(?P<total>\d+)\] Testing ")


def match_xctest_case(line: str) -> TestPassedEvent | TestFailedEvent | None:
    """``Test Case '<name>' passed (0.01 seconds).`` and the parallel ``on '<device>'`` form."""
    match = _XCTEST_CASE_RE.match(line)
    if not match:
        return None
    name = match.group("name")
    duration = _to_float(match.group("duration"))
    if match.group("outcome") == "passed":
        return TestPassedEvent(name=name, dialect="xctest", duration=duration)
    message = f"{duration:.3f} seconds" if duration is not None else "failed"
    return TestFailedEvent(
        FailedTest(test=name, message=message, duration=duration),
        dialect="xctest",
    )


def match_xctest_assertion(line: str) -> TestFailedEvent | None:
    """``File.swift:12: error: -[Suite testX] : XCTAssertEqual failed: ...``."""
    match = _XCTEST_ASSERTION_RE.match(line)
    if match:
        file, line_no, _ = split_location(match.group("prefix"))
        return TestFailedEvent(
            FailedTest(
                test=match.group("name"),
                message=match.group("message"),
                file=file,
                line=line_no,
            ),
            dialect="xctest",
        )

    if not _XCTEST_ASSERT_FAILED_RE.search(line):
        return None
    bracketed = _XCTEST_BRACKETED_NAME_RE.search(line)
    name = bracketed.group("name") if bracketed else "Test assertion"
    return TestFailedEvent(FailedTest(test=name, message=line.strip()), dialect="xctest")


def match_xctest_summary(line: str) -> TestRunSummaryEvent | None:
    """``Executed 12 tests, with 1 failure (0 unexpected) in 0.5 (0.6) seconds``."""
    match = _XCTEST_SUMMARY_RE.match(line)
    if not match:
        return None
    return TestRunSummaryEvent(
        dialect="xctest",
        executed=int(match.group("executed")),
        failed=int(match.group("failed")),
        duration=_to_float(match.group("duration")),
    )


def match_parallel_schedule(line: str) -> ParallelScheduleEvent | None:
    match = _PARALLEL_SCHEDULE_RE.match(line)
    if not match:
        return None
    return ParallelScheduleEvent(total=int(match.group("total")))


# =============================================================================
# Tests - Swift Testing dialect
# =============================================================================

# A glyph (✔ ✘ ◇ or an SF Symbols private-use character) precedes every event
_SWIFT_TESTING_EVENT_RE = re.compile(
    r"^\s*[^\w\s]+\s+Test (?!run with )"
    r'(?:"(?P<quoted>[^"]*)"|(?P<bare>[^\s"].*?))'
    r" (?P<verb>passed|failed|recorded an issue|started)(?P<rest>.*)$"
)
_SWIFT_TESTING_AFTER_RE = re.compile(r"^ after (?P<duration>[\d.]+) seconds")
_SWIFT_TESTING_ISSUE_RE = re.compile(
    r"^ at (?P<file>[^:]+):(?P<line>\d+):(?:(?P<column>\d+):)? (?P<message>.*)$"
)
_SWIFT_TESTING_PASSED_SUMMARY_RE = re.compile(
    r"Test run with (?P<executed>\d+) tests?(?: in \d+ suites?)? passed after "
    r"(?P<duration>[\d.]+) seconds"
)
_SWIFT_TESTING_FAILED_SUMMARY_RE = re.compile(
    r"Test run with (?P<executed>\d+) tests?(?: in \d+ suites?)? failed after "
    r"(?P<duration>[\d.]+) seconds(?: with (?P<issues>\d+) issues?)?"
)
_SWIFT_TESTING_SPLIT_SUMMARY_RE = re.compile(
    r"Test run with (?P<failed>\d+) tests? failed, (?P<passed>\d+) tests? passed after "
    r"(?P<duration>[\d.]+) seconds"
)


def match_swift_testing_case(line: str) -> TestPassedEvent | TestFailedEvent | None:
    """``✔ Test "name" passed after 0.1 seconds.`` and its failed/issue variants."""
    match = _SWIFT_TESTING_EVENT_RE.match(line)
    if not match:
        return None
    name = match.group("quoted")
    if name is None:
        name = match.group("bare").strip()
    if not name:
        return None

    verb = match.group("verb")
    rest = match.group("rest")
    after = _SWIFT_TESTING_AFTER_RE.match(rest)
    duration = _to_float(after.group("duration")) if after else None

    if verb == "passed":
        return TestPassedEvent(name=name, dialect="swift-testing", duration=duration)

    if verb == "failed":
        return TestFailedEvent(
            FailedTest(test=name, message="Test failed", duration=duration),
            dialect="swift-testing",
        )

    if verb == "recorded an issue":
        issue = _SWIFT_TESTING_ISSUE_RE.match(rest)
        if issue:
            return TestFailedEvent(
                FailedTest(
                    test=name,
                    message=issue.group("message").strip(),
                    file=issue.group("file"),
                    line=int(issue.group("line")),
                ),
                dialect="swift-testing",
            )
        message = rest.strip().rstrip(".") or "Issue recorded"
        return TestFailedEvent(FailedTest(test=name, message=message), dialect="swift-testing")

    return None


def match_swift_testing_summary(line: str) -> TestRunSummaryEvent | None:
    """``Test run with N tests in M suites passed|failed after T seconds [with K issues].``"""
    if "Test run with " not in line:
        return None

    split = _SWIFT_TESTING_SPLIT_SUMMARY_RE.search(line)
    if split:
        failed = int(split.group("failed"))
        return TestRunSummaryEvent(
            dialect="swift-testing",
            executed=failed + int(split.group("passed")),
            failed=failed,
            duration=_to_float(split.group("duration")),
        )

    failed_match = _SWIFT_TESTING_FAILED_SUMMARY_RE.search(line)
    if failed_match:
        executed = int(failed_match.group("executed"))
        issues = failed_match.group("issues")
        return TestRunSummaryEvent(
            dialect="swift-testing",
            executed=executed,
            failed=int(issues) if issues is not None else executed,
            duration=_to_float(failed_match.group("duration")),
        )

    passed_match = _SWIFT_TESTING_PASSED_SUMMARY_RE.search(line)
    if passed_match:
        return TestRunSummaryEvent(
            dialect="swift-testing",
            executed=int(passed_match.group("executed")),
            failed=0,
            duration=_to_float(passed_match.group("duration")),
        )
    return None


# =============================================================================
# Tests - generic failure lines
# =============================================================================

_CROSS_MARK_TEST_RE = re.compile(r"^❌ (?P<name>.+?) \((?P<message>.*)\)$")
_PAREN_FAILED_RE = re.compile(r"^(?P<name>\S.*?) \((?P<message>.*)\) failed\.?$")


def match_generic_test_failure(line: str) -> TestFailedEvent | None:
    """``❌ name (message)`` and ``name (message) failed`` lines."""
    match = _CROSS_MARK_TEST_RE.match(line) or _PAREN_FAILED_RE.match(line)
    if not match:
        return None
    return TestFailedEvent(
        FailedTest(test=match.group("name"), message=match.group("message")),
        dialect="generic",
    )


# =============================================================================
# Executables, timing, banners
# =============================================================================

_EXECUTABLE_RE = re.compile(
    r"^(?:RegisterWithLaunchServices|Validate) (?P<path>.+?\.app) "
    r"\(in target '(?P<target>[^']+)' from project"
)
_XCODEBUILD_TIME_RE = re.compile(r"\*\* BUILD (?:SUCCEEDED|FAILED) \*\*.*\[(?P<time>[^\]]+)\]")
_SPM_COMPLETE_RE = re.compile(r"^Build complete! \((?P<time>[^)]+)\)")
_BUILD_DURATION_RE = re.compile(r"^Build (?:succeeded in|failed after) (?P<time>.+)$")
_TEST_BANNER_RE = re.compile(r"\*\* TEST (?P<status>FAILED|SUCCEEDED) \*\*")


def match_executable(line: str) -> ExecutableEvent | None:
    match = _EXECUTABLE_RE.match(line)
    if not match:
        return None
    path = match.group("path")
    return ExecutableEvent(
        ExecutableInfo(path=path, name=last_path_component(path), target=match.group("target"))
    )


def match_build_time(line: str) -> BuildTimeEvent | None:
    for pattern in (_XCODEBUILD_TIME_RE, _SPM_COMPLETE_RE, _BUILD_DURATION_RE):
        match = pattern.search(line)
        if match:
            return BuildTimeEvent(build_time=match.group("time").strip())
    return None


def match_test_banner(line: str) -> BannerEvent | None:
    match = _TEST_BANNER_RE.search(line)
    if not match:
        return None
    return BannerEvent(text=match.group(0))


# Order matters: test failures embed ": error: ", so they run before diagnostics
LINE_MATCHERS: tuple[LineMatcher, ...] = (
    match_parallel_schedule,
    match_executable,
    match_script_phase_failure,
    match_xctest_assertion,
    match_xctest_case,
    match_swift_testing_case,
    match_generic_test_failure,
    match_error,
    match_fatal,
    match_cross_mark_error,
    match_warning,
    match_runtime_warning,
    match_xctest_summary,
    match_swift_testing_summary,
    match_test_banner,
    match_build_time,
)

# =============================================================================
# Build info (opt-in)
# =============================================================================

_IN_TARGET_RE = re.compile(r"\(in target '(?P<target>[^']+)'")
_PHASE_PREFIXES: tuple[tuple[str, str], ...] = (
    ("CompileSwiftSources ", "CompileSwiftSources"),
    ("CompileC ", "CompileC"),
    ("Ld ", "Link"),
    ("CopySwiftLibs ", "CopySwiftLibs"),
    ("PhaseScriptExecution ", "PhaseScriptExecution"),
    ("LinkAssetCatalog ", "LinkAssetCatalog"),
    ("ProcessInfoPlistFile ", "ProcessInfoPlistFile"),
)
_SPM_COMPILING_RE = re.compile(r"\] Compiling (?P<target>\S+)")
_SPM_LINKING_RE = re.compile(r"\] Linking (?P<target>.+)$")
_DEPENDENCY_TARGET_RE = re.compile(r"^Target '(?P<target>[^']+)' in project '[^']*'(?P<rest>.*)$")
_DEPENDENCY_EDGE_RE = re.compile(r"dependency on target '(?P<dependency>[^']+)'")
_TARGET_TIMING_RE = re.compile(
    r"^Build target (?:'(?P<quoted>[^']+)' completed|(?P<bare>.+?) of project ).*"
    r"\((?P<duration>[^()]+)\)\s*$"
)


def match_build_phase(line: str) -> BuildPhaseEvent | None:
    target_match = _IN_TARGET_RE.search(line)
    if target_match:
        target = target_match.group("target")
        for prefix, phase in _PHASE_PREFIXES:
            if line.startswith(prefix):
                return BuildPhaseEvent(target=target, phase=phase)
        if "SwiftDriver" in line and "Compilation" in line:
            return BuildPhaseEvent(target=target, phase="SwiftCompilation")

    compiling = _SPM_COMPILING_RE.search(line)
    if compiling and compiling.group("target") != "plugin":
        return BuildPhaseEvent(target=compiling.group("target"), phase="Compiling")

    linking = _SPM_LINKING_RE.search(line)
    if linking and linking.group("target").strip():
        return BuildPhaseEvent(target=linking.group("target").strip(), phase="Linking")
    return None


def match_dependency_graph(line: str) -> DependencyTargetEvent | DependencyEvent | None:
    trimmed = line.strip()
    target = _DEPENDENCY_TARGET_RE.match(trimmed)
    if target:
        return DependencyTargetEvent(
            target=target.group("target"),
            no_dependencies=trimmed.endswith("(no dependencies)"),
        )
    edge = _DEPENDENCY_EDGE_RE.search(trimmed)
    if edge:
        return DependencyEvent(dependency=edge.group("dependency"))
    return None


def match_target_timing(line: str) -> TargetTimingEvent | None:
    match = _TARGET_TIMING_RE.match(line)
    if not match:
        return None
    target = match.group("quoted") or match.group("bare")
    return TargetTimingEvent(target=target, duration=match.group("duration"))


BUILD_INFO_MATCHERS: tuple[BuildInfoMatcher, ...] = (
    match_dependency_graph,
    match_build_phase,
    match_target_timing,
)
