"""xccov JSON report parser.

``xcrun xccov view --report --json`` produces per-target file coverage:

{
  "lineCoverage": 0.61,
  "targets": [
    {
      "name": "MyApp.app",
      "files": [
        {"path": "/src/MyApp/Model.swift", "lineCoverage": 0.5,
         "coveredLines": 50, "executableLines": 100},
        ...
      ]
    },
    {"name": "MyAppTests.xctest", "files": [...]}
  ]
}

``lineCoverage`` is a 0-1 fraction. Values above 1 are already percentages.
"""

from typing import Any

from buildlens.coverage.models import CoverageParseError, RawFileCoverage

from .base import is_finite_number


def is_test_bundle(name: str, suffixes: tuple[str, ...]) -> bool:
    """True when a target name denotes a test bundle."""
    return name.endswith(suffixes)


def _as_count(value: Any) -> int:
    return int(value) if is_finite_number(value) else 0


class XccovParser:
    """Parser for the ``targets[].files[]`` schema."""

    @property
    def format_id(self) -> str:
        return "xccov"

    def can_parse(self, data: Any) -> bool:
        return isinstance(data, dict) and isinstance(data.get("targets"), list)

    def parse(
        self,
        data: dict[str, Any],
        *,
        target_filter: str | None = None,
        test_bundle_suffixes: tuple[str, ...] = (".xctest",),
    ) -> list[RawFileCoverage]:
        targets = data.get("targets")
        if not isinstance(targets, list):
            raise CoverageParseError("xccov report has no 'targets' array")

        entries: list[RawFileCoverage] = []
        for target in targets:
            if not isinstance(target, dict):
                continue
            name = target.get("name")
            if isinstance(name, str) and is_test_bundle(name, test_bundle_suffixes):
                continue
            if target_filter is not None and not (
                isinstance(name, str) and target_filter in name
            ):
                continue

            files = target.get("files")
            if not isinstance(files, list):
                continue
            for file_data in files:
                entry = self._parse_file(file_data)
                if entry is not None:
                    entries.append(entry)
        return entries

    def _parse_file(self, file_data: Any) -> RawFileCoverage | None:
        if not isinstance(file_data, dict):
            return None
        path = file_data.get("path")
        if not isinstance(path, str):
            return None

        covered = _as_count(file_data.get("coveredLines"))
        executable = _as_count(file_data.get("executableLines"))

        fraction = file_data.get("lineCoverage")
        if is_finite_number(fraction):
            percent = float(fraction) if fraction > 1.0 else float(fraction) * 100.0
        elif executable > 0:
            percent = covered / executable * 100.0
        else:
            return None

        return RawFileCoverage(
            path=path,
            covered_lines=covered,
            executable_lines=executable,
            line_coverage=percent,
        )
