"""Unified coverage data model.

File-centric model: both supported JSON schemas convert to this
representation. Percentages are 0-100.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from buildlens.core.formatting import last_path_component


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


@dataclass(frozen=True, slots=True)
class FileCoverage:
    """Line coverage for a single source file."""

    path: str
    name: str
    line_coverage: float  # percent
    covered_lines: int
    executable_lines: int


@dataclass(frozen=True, slots=True)
class RawFileCoverage:
    """Per-file counts as read from a report, before aggregation."""

    path: str
    covered_lines: int
    executable_lines: int
    line_coverage: float  # percent


@dataclass(frozen=True, slots=True)
class CodeCoverage:
    """Aggregate line coverage across the included files."""

    line_coverage: float  # percent, weighted by executable lines
    files: tuple[FileCoverage, ...] = ()

    @property
    def covered_lines(self) -> int:
        return sum(f.covered_lines for f in self.files)

    @property
    def executable_lines(self) -> int:
        return sum(f.executable_lines for f in self.files)

    @classmethod
    def aggregate(cls, entries: Iterable[RawFileCoverage]) -> CodeCoverage | None:
        """Build a weighted aggregate; None when there are no entries.

        The overall rate is total covered over total executable lines, so a
        large file weighs more than a small one.
        """
        files = tuple(
            FileCoverage(
                path=entry.path,
                name=last_path_component(entry.path),
                line_coverage=entry.line_coverage,
                covered_lines=entry.covered_lines,
                executable_lines=entry.executable_lines,
            )
            for entry in entries
        )
        if not files:
            return None

        covered = sum(f.covered_lines for f in files)
        executable = sum(f.executable_lines for f in files)
        overall = covered / executable * 100.0 if executable > 0 else 0.0
        return cls(line_coverage=overall, files=files)
