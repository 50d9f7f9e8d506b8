"""Accumulator for one pass over build output.

``ParseState`` absorbs the events produced by the line matchers and turns
them into a ``BuildResult`` at the end. One instance belongs to exactly one
parse call.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from buildlens.build.matchers import (
    BannerEvent,
    BuildInfoEvent,
    BuildPhaseEvent,
    BuildTimeEvent,
    DependencyEvent,
    DependencyTargetEvent,
    ErrorEvent,
    ExecutableEvent,
    LineEvent,
    ParallelScheduleEvent,
    ScriptPhaseFailedEvent,
    TargetTimingEvent,
    TestDialect,
    TestFailedEvent,
    TestPassedEvent,
    TestRunSummaryEvent,
    WarningEvent,
    normalize_test_name,
)
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
)
from buildlens.core.formatting import format_seconds, pluralize
from buildlens.core.logging import get_logger
from buildlens.coverage.models import CodeCoverage

log = get_logger("build.state")

SUMMARY_DIALECTS: tuple[TestDialect, ...] = ("xctest", "swift-testing")
SCRIPT_CONTEXT_LINES = 3
SLOWEST_TARGET_LIMIT = 5


def _is_script_context(line: str) -> bool:
    if not line or line.startswith(("Warning:", "Run script build phase")):
        return False
    return not (": warning:" in line and "error:" not in line)


def _duration_seconds(duration: str | None) -> float:
    if not duration or not duration.endswith("s"):
        return 0.0
    try:
        return float(duration[:-1])
    except ValueError:
        return 0.0


@dataclass
class ParseState:
    """Everything learned so far from the lines already seen."""

    errors: list[BuildError] = field(default_factory=list)
    warnings: list[BuildWarning] = field(default_factory=list)
    executables: list[ExecutableInfo] = field(default_factory=list)
    build_time: str | None = None
    banner: str | None = None
    parallel_total: int | None = None

    _error_keys: set[tuple[str | None, int | None, str]] = field(default_factory=set)
    _warning_keys: set[tuple[str | None, int | None, str]] = field(default_factory=set)
    _executable_paths: set[str] = field(default_factory=set)
    _recent_lines: deque[str] = field(default_factory=lambda: deque(maxlen=SCRIPT_CONTEXT_LINES))

    # Tests are keyed by normalized name; dicts keep first-seen order
    _failed: dict[str, FailedTest] = field(default_factory=dict)
    _failed_dialects: dict[str, set[TestDialect]] = field(default_factory=dict)
    _passed: dict[str, float | None] = field(default_factory=dict)
    _passed_by_dialect: dict[TestDialect, set[str]] = field(default_factory=dict)
    _summaries: dict[TestDialect, TestRunSummaryEvent] = field(default_factory=dict)

    _target_order: list[str] = field(default_factory=list)
    _target_phases: dict[str, list[str]] = field(default_factory=dict)
    _target_durations: dict[str, str] = field(default_factory=dict)
    _target_dependencies: dict[str, list[str]] = field(default_factory=dict)
    _dependency_target: str | None = None

    # -------------------------------------------------------------------------
    # Line events
    # -------------------------------------------------------------------------

    def apply(self, event: LineEvent) -> None:
        if isinstance(event, ErrorEvent):
            self.add_error(event.error)
        elif isinstance(event, WarningEvent):
            self.add_warning(event.warning)
        elif isinstance(event, ScriptPhaseFailedEvent):
            self._add_script_phase_failure(event.line)
        elif isinstance(event, TestFailedEvent):
            self._add_failure(event.failure, event.dialect)
        elif isinstance(event, TestPassedEvent):
            self._add_pass(event)
        elif isinstance(event, TestRunSummaryEvent):
            current = self._summaries.get(event.dialect)
            # Nested suites repeat the totals; the outermost run has the largest count
            if current is None or event.executed >= current.executed:
                self._summaries[event.dialect] = event
        elif isinstance(event, ParallelScheduleEvent):
            if self.parallel_total is None:
                self.parallel_total = event.total
        elif isinstance(event, ExecutableEvent):
            if event.executable.path not in self._executable_paths:
                self._executable_paths.add(event.executable.path)
                self.executables.append(event.executable)
        elif isinstance(event, BuildTimeEvent):
            self.build_time = event.build_time
        elif isinstance(event, BannerEvent):
            self.banner = event.text
            log.debug("test_banner_seen", banner=event.text)

    def remember(self, line: str) -> None:
        """Keep ``line`` as possible context for a following script-phase failure."""
        self._recent_lines.append(line.strip())

    def add_error(self, error: BuildError) -> None:
        if error.dedup_key not in self._error_keys:
            self._error_keys.add(error.dedup_key)
            self.errors.append(error)

    def add_warning(self, warning: BuildWarning) -> None:
        if warning.dedup_key not in self._warning_keys:
            self._warning_keys.add(warning.dedup_key)
            self.warnings.append(warning)

    def _add_script_phase_failure(self, line: str) -> None:
        context = [text for text in self._recent_lines if _is_script_context(text)]
        message = " ".join([*context, line.strip()])
        self.add_error(BuildError(message=message))

    def _add_failure(self, failure: FailedTest, dialect: TestDialect) -> None:
        key = normalize_test_name(failure.test)
        self._failed_dialects.setdefault(key, set()).add(dialect)
        existing = self._failed.get(key)
        if existing is None:
            self._failed[key] = failure
            return
        # Later lines add location or timing to a failure already reported
        self._failed[key] = FailedTest(
            test=existing.test,
            message=failure.message if failure.file is not None else existing.message,
            file=failure.file if failure.file is not None else existing.file,
            line=failure.line if failure.line is not None else existing.line,
            duration=failure.duration if failure.duration is not None else existing.duration,
        )

    def _add_pass(self, event: TestPassedEvent) -> None:
        key = normalize_test_name(event.name)
        self._passed_by_dialect.setdefault(event.dialect, set()).add(key)
        if event.duration is not None or key not in self._passed:
            self._passed[key] = event.duration

    # -------------------------------------------------------------------------
    # Build info events
    # -------------------------------------------------------------------------

    def apply_build_info(self, event: BuildInfoEvent) -> None:
        if isinstance(event, BuildPhaseEvent):
            self._note_target(event.target)
            phases = self._target_phases.setdefault(event.target, [])
            if event.phase not in phases:
                phases.append(event.phase)
        elif isinstance(event, TargetTimingEvent):
            self._note_target(event.target)
            self._target_durations[event.target] = event.duration
        elif isinstance(event, DependencyTargetEvent):
            self._note_target(event.target)
            self._dependency_target = event.target
            if event.no_dependencies:
                self._target_dependencies[event.target] = []
        elif isinstance(event, DependencyEvent):
            if self._dependency_target is None:
                return
            deps = self._target_dependencies.setdefault(self._dependency_target, [])
            if event.dependency not in deps:
                deps.append(event.dependency)

    def _note_target(self, target: str) -> None:
        if target not in self._target_order:
            self._target_order.append(target)

    # -------------------------------------------------------------------------
    # Result assembly
    # -------------------------------------------------------------------------

    def failed_tests(self) -> tuple[FailedTest, ...]:
        """Individually reported failures plus placeholders for unreported ones."""
        failures = list(self._failed.values())
        reported_dialects = set().union(*self._failed_dialects.values())
        for dialect in SUMMARY_DIALECTS:
            summary = self._summaries.get(dialect)
            if summary is None or summary.failed == 0 or dialect in reported_dialects:
                continue
            failures.append(
                FailedTest(
                    test=f"{dialect} test run",
                    message=f"{pluralize(summary.failed, 'failure')} reported "
                    "without per-test details",
                )
            )
        return tuple(failures)

    def passed_test_count(self) -> int | None:
        """Reconcile per-dialect totals. None when no test evidence exists."""
        if not (self._summaries or self._passed or self._failed or self.parallel_total):
            return None

        total = 0
        for dialect in SUMMARY_DIALECTS:
            summary = self._summaries.get(dialect)
            if summary is not None:
                total += max(summary.executed - summary.failed, 0)
            elif dialect == "xctest" and self.parallel_total is not None:
                failed = sum(
                    1 for dialects in self._failed_dialects.values() if dialect in dialects
                )
                total += max(self.parallel_total - failed, 0)
            else:
                total += len(self._passed_by_dialect.get(dialect, ()))
        return total

    def test_time(self) -> str | None:
        durations = [s.duration for s in self._summaries.values() if s.duration is not None]
        if not durations:
            return None
        return format_seconds(sum(durations))

    def flaky_tests(self) -> frozenset[str]:
        return frozenset(self._passed.keys() & self._failed.keys())

    def slow_tests(self, threshold: float | None) -> tuple[SlowTest, ...]:
        if threshold is None:
            return ()
        slow = [
            SlowTest(test=name, duration=duration)
            for name, duration in self._passed.items()
            if duration is not None and duration >= threshold
        ]
        seen = {test.test for test in slow}
        for name, failure in self._failed.items():
            if name in seen or failure.duration is None or failure.duration < threshold:
                continue
            slow.append(SlowTest(test=name, duration=failure.duration))
        return tuple(sorted(slow, key=lambda t: (-t.duration, t.test)))

    def build_info(self) -> BuildInfo:
        targets = tuple(
            TargetBuildInfo(
                name=name,
                duration=self._target_durations.get(name),
                phases=tuple(self._target_phases.get(name, ())),
                depends_on=tuple(self._target_dependencies.get(name, ())),
            )
            for name in self._target_order
        )
        timed = [target for target in targets if target.duration is not None]
        timed.sort(key=lambda t: _duration_seconds(t.duration), reverse=True)
        return BuildInfo(
            targets=targets,
            slowest_targets=tuple(t.name for t in timed[:SLOWEST_TARGET_LIMIT]),
        )

    def to_result(
        self,
        linker_errors: tuple[LinkerError, ...],
        *,
        slow_threshold: float | None = None,
        coverage: CodeCoverage | None = None,
        include_build_info: bool = False,
    ) -> BuildResult:
        errors = tuple(self.errors)
        warnings = tuple(self.warnings)
        failed_tests = self.failed_tests()
        slow_tests = self.slow_tests(slow_threshold)
        flaky_tests = self.flaky_tests()
        executables = tuple(self.executables)

        failed = bool(errors or linker_errors or failed_tests or flaky_tests)
        summary = BuildSummary.derive(
            errors=errors,
            warnings=warnings,
            failed_tests=failed_tests,
            linker_errors=linker_errors,
            slow_tests=slow_tests,
            flaky_tests=flaky_tests,
            executables=executables,
            passed_tests=self.passed_test_count(),
            build_time=self.build_time,
            test_time=self.test_time(),
            coverage=coverage,
        )
        return BuildResult(
            status="failed" if failed else "success",
            summary=summary,
            errors=errors,
            warnings=warnings,
            failed_tests=failed_tests,
            linker_errors=linker_errors,
            slow_tests=slow_tests,
            flaky_tests=flaky_tests,
            executables=executables,
            coverage=coverage,
            build_info=self.build_info() if include_build_info else None,
        )
