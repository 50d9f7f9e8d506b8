"""llvm-cov export JSON parser.

``llvm-cov export -format=text`` (what ``swift test --enable-code-coverage``
writes to ``.build/debug/codecov/*.json``) produces:

{
  "type": "llvm.coverage.json.export",
  "data": [
    {
      "files": [
        {"filename": "/src/Sources/Lib/Parser.swift",
         "summary": {"lines": {"count": 120, "covered": 90, "percent": 75.0}, ...}},
        ...
      ],
      "totals": {...}
    }
  ]
}

There are no targets in this schema, so target filtering does not apply.
"""

from typing import Any

from buildlens.coverage.models import CoverageParseError, RawFileCoverage

from .base import is_finite_number


class LlvmCovParser:
    """Parser for the ``data[].files[]`` schema."""

    @property
    def format_id(self) -> str:
        return "llvm-cov"

    def can_parse(self, data: Any) -> bool:
        return isinstance(data, dict) and isinstance(data.get("data"), list)

    def parse(
        self,
        data: dict[str, Any],
        *,
        target_filter: str | None = None,  # noqa: ARG002
        test_bundle_suffixes: tuple[str, ...] = (".xctest",),  # noqa: ARG002
    ) -> list[RawFileCoverage]:
        exports = data.get("data")
        if not isinstance(exports, list):
            raise CoverageParseError("llvm-cov export has no 'data' array")

        entries: list[RawFileCoverage] = []
        for export in exports:
            if not isinstance(export, dict):
                continue
            files = export.get("files")
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
        filename = file_data.get("filename")
        summary = file_data.get("summary")
        if not isinstance(filename, str) or not isinstance(summary, dict):
            return None
        lines = summary.get("lines")
        if not isinstance(lines, dict):
            return None

        covered = lines.get("covered")
        count = lines.get("count")
        if not isinstance(covered, int) or not isinstance(count, int):
            return None
        if not is_finite_number(covered) or not is_finite_number(count):
            return None

        percent = covered / count * 100.0 if count > 0 else 0.0
        return RawFileCoverage(
            path=filename,
            covered_lines=covered,
            executable_lines=count,
            line_coverage=percent,
        )
