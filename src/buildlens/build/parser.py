"""Build output parser.

Single forward pass over raw build/test console output. Linker blocks are
offered to ``LinkerBlockReader`` first, then (when requested) the build-info
matchers, then the ordered line matchers; the first match wins and its event
goes into a fresh ``ParseState``.

Usage::

    result = parse_build_output(text, slow_threshold=1.0)
    if not result.succeeded:
        for error in result.errors:
            print(error.file, error.line, error.message)
"""

from __future__ import annotations

from buildlens.build.linker import LinkerBlockReader
from buildlens.build.matchers import BUILD_INFO_MATCHERS, LINE_MATCHERS
from buildlens.build.models import BuildResult
from buildlens.build.state import ParseState
from buildlens.core.errors import InputError
from buildlens.core.logging import get_logger
from buildlens.coverage.models import CodeCoverage

log = get_logger("build.parser")

DEFAULT_MAX_LINE_LENGTH = 5000


class BuildOutputParser:
    """Parses build output into a ``BuildResult``.

    The parser holds only options; each ``parse`` call works on its own
    state, so one instance can be reused and shared.
    """

    def __init__(
        self,
        slow_threshold: float | None = None,
        *,
        coverage: CodeCoverage | None = None,
        parse_build_info: bool = False,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ) -> None:
        if slow_threshold is not None and slow_threshold < 0:
            raise InputError.invalid_argument(
                "slow_threshold", slow_threshold, "must be non-negative"
            )
        if max_line_length <= 0:
            raise InputError.invalid_argument(
                "max_line_length", max_line_length, "must be positive"
            )
        self.slow_threshold = slow_threshold
        self.coverage = coverage
        self.parse_build_info = parse_build_info
        self.max_line_length = max_line_length

    def parse(self, text: str) -> BuildResult:
        if not isinstance(text, str):
            raise InputError.invalid_argument("text", type(text).__name__, "must be str")

        state = ParseState()
        linker = LinkerBlockReader()
        skipped = 0

        for line in text.splitlines():
            if len(line) > self.max_line_length:
                skipped += 1
                continue
            self._parse_line(line, state, linker)
            state.remember(line)

        result = state.to_result(
            linker.finish(),
            slow_threshold=self.slow_threshold,
            coverage=self.coverage,
            include_build_info=self.parse_build_info,
        )
        log.debug(
            "build_output_parsed",
            status=result.status,
            errors=result.summary.errors,
            warnings=result.summary.warnings,
            failed_tests=result.summary.failed_tests,
            passed_tests=result.summary.passed_tests,
            linker_errors=result.summary.linker_errors,
            skipped_lines=skipped,
        )
        return result

    def _parse_line(self, line: str, state: ParseState, linker: LinkerBlockReader) -> None:
        if not line.strip():
            return

        if linker.feed(line):
            return

        if self.parse_build_info:
            for info_matcher in BUILD_INFO_MATCHERS:
                info_event = info_matcher(line)
                if info_event is not None:
                    state.apply_build_info(info_event)
                    return

        for matcher in LINE_MATCHERS:
            event = matcher(line)
            if event is not None:
                state.apply(event)
                return


def parse_build_output(
    text: str,
    slow_threshold: float | None = None,
    *,
    coverage: CodeCoverage | None = None,
    parse_build_info: bool = False,
) -> BuildResult:
    """Parse raw build/test output.

    Never raises for ``str`` input: unrecognized text yields a successful
    result with nothing in it.

    Args:
        text: Complete console output of one build or test run.
        slow_threshold: Report tests taking at least this many seconds.
            None disables slow-test detection.
        coverage: Coverage to attach to the result, if already parsed.
        parse_build_info: Also collect per-target phases, timings and
            dependencies.

    Raises:
        InputError: If ``text`` is not a string or ``slow_threshold`` is negative.
    """
    parser = BuildOutputParser(
        slow_threshold,
        coverage=coverage,
        parse_build_info=parse_build_info,
    )
    return parser.parse(text)
