"""Build output models - diagnostics, test outcomes, linker errors and results.

Every type here is frozen: a ``BuildResult`` is assembled once at the end of a
parse and never mutated. Counts in ``BuildSummary`` are derived from the
result's sequences by ``BuildSummary.derive``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal

from buildlens.coverage.models import CodeCoverage

BuildStatus = Literal["success", "failed"]


class WarningKind(Enum):
    """Where a warning came from."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    SWIFTUI = "swiftui"


@dataclass(frozen=True, slots=True)
class BuildError:
    """A compiler, fatal or script-phase error."""

    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def dedup_key(self) -> tuple[str | None, int | None, str]:
        return (self.file, self.line, self.message)


@dataclass(frozen=True, slots=True)
class BuildWarning:
    """A compiler or runtime warning."""

    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    kind: WarningKind = WarningKind.COMPILE

    @property
    def dedup_key(self) -> tuple[str | None, int | None, str]:
        return (self.file, self.line, self.message)


@dataclass(frozen=True, slots=True)
class FailedTest:
    """A test reported as failed by either test dialect."""

    test: str
    message: str
    file: str | None = None
    line: int | None = None
    duration: float | None = None  # seconds


@dataclass(frozen=True, slots=True)
class LinkerError:
    """An undefined/duplicate symbol or a missing framework/library.

    Symbol errors populate ``symbol``/``architecture``; errors that name no
    symbol ("framework not found Foo") carry only ``message``.
    """

    symbol: str | None = None
    architecture: str | None = None
    referenced_from: str | None = None
    message: str | None = None
    conflicting_files: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SlowTest:
    """A test whose duration met the slow threshold."""

    test: str
    duration: float


@dataclass(frozen=True, slots=True)
class ExecutableInfo:
    """An app bundle registered by the toolchain."""

    path: str
    name: str
    target: str


@dataclass(frozen=True, slots=True)
class TargetBuildInfo:
    """Phases, duration and dependencies observed for one build target."""

    name: str
    duration: str | None = None
    phases: tuple[str, ...] = ()
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BuildInfo:
    """Per-target build information, collected only on request."""

    targets: tuple[TargetBuildInfo, ...] = ()
    slowest_targets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BuildSummary:
    """Counts and timings for a build result."""

    errors: int
    warnings: int
    failed_tests: int
    linker_errors: int
    passed_tests: int | None = None
    build_time: str | None = None
    test_time: str | None = None
    coverage_percent: float | None = None
    slow_tests: int | None = None
    flaky_tests: int | None = None
    executables: int | None = None

    @classmethod
    def derive(
        cls,
        *,
        errors: tuple[BuildError, ...],
        warnings: tuple[BuildWarning, ...],
        failed_tests: tuple[FailedTest, ...],
        linker_errors: tuple[LinkerError, ...],
        slow_tests: tuple[SlowTest, ...] = (),
        flaky_tests: frozenset[str] = frozenset(),
        executables: tuple[ExecutableInfo, ...] = (),
        passed_tests: int | None = None,
        build_time: str | None = None,
        test_time: str | None = None,
        coverage: CodeCoverage | None = None,
    ) -> BuildSummary:
        """Project counts from the result sequences."""
        return cls(
            errors=len(errors),
            warnings=len(warnings),
            failed_tests=len(failed_tests),
            linker_errors=len(linker_errors),
            passed_tests=passed_tests,
            build_time=build_time,
            test_time=test_time,
            coverage_percent=coverage.line_coverage if coverage else None,
            slow_tests=len(slow_tests) or None,
            flaky_tests=len(flaky_tests) or None,
            executables=len(executables) or None,
        )


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Structured result of parsing one build/test output."""

    status: BuildStatus
    summary: BuildSummary
    errors: tuple[BuildError, ...] = ()
    warnings: tuple[BuildWarning, ...] = ()
    failed_tests: tuple[FailedTest, ...] = ()
    linker_errors: tuple[LinkerError, ...] = ()
    slow_tests: tuple[SlowTest, ...] = ()
    flaky_tests: frozenset[str] = field(default_factory=frozenset)
    executables: tuple[ExecutableInfo, ...] = ()
    coverage: CodeCoverage | None = None
    build_info: BuildInfo | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON consumers. Unset optional fields are dropped."""
        data = asdict(self)
        data["flaky_tests"] = sorted(self.flaky_tests)
        data["warnings"] = [
            {**w, "kind": warning.kind.value}
            for w, warning in zip(data["warnings"], self.warnings, strict=True)
        ]
        return _drop_none(data)


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list | tuple):
        return [_drop_none(v) for v in value]
    return value
