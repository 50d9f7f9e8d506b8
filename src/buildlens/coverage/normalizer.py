"""Coverage normalization entry point.

Reads one coverage JSON file, detects which schema it uses and returns a
single weighted ``CodeCoverage``. Every failure mode (missing file, invalid
JSON, unknown shape, no files) yields ``None``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from buildlens.core.logging import get_logger
from buildlens.coverage.models import CodeCoverage, CoverageParseError
from buildlens.coverage.parsers import parse_document

log = get_logger("coverage.normalizer")

DEFAULT_TEST_BUNDLE_SUFFIXES: tuple[str, ...] = (".xctest",)


def _resolve_json_file(path: Path) -> Path | None:
    """Map a file or directory argument to the JSON file to read."""
    if path.is_file():
        return path
    if path.is_dir():
        candidates = sorted(p for p in path.glob("*.json") if p.is_file())
        return candidates[0] if candidates else None
    return None


def load_coverage_json(path: Path) -> object:
    """Read and decode a coverage JSON file.

    Raises:
        CoverageParseError: If the file cannot be read or decoded.
    """
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    # ValueError covers JSONDecodeError and integer literals over the digit limit
    except (OSError, ValueError, RecursionError) as e:
        raise CoverageParseError(f"Failed to read coverage JSON {path}: {e}") from e


def parse_coverage_from_path(
    path: str | Path,
    target_filter: str | None = None,
    *,
    test_bundle_suffixes: Sequence[str] = DEFAULT_TEST_BUNDLE_SUFFIXES,
) -> CodeCoverage | None:
    """Parse a coverage report into a weighted ``CodeCoverage``.

    Args:
        path: Coverage JSON file, or a directory whose first ``*.json`` file
            (by name) is read.
        target_filter: Only include targets whose name contains this
            substring. Test bundles are excluded regardless.
        test_bundle_suffixes: Target name suffixes that mark test bundles.

    Returns:
        Aggregated coverage, or None when nothing usable was found.
    """
    if not str(path):
        return None
    json_file = _resolve_json_file(Path(path))
    if json_file is None:
        log.debug("coverage_unavailable", path=str(path), reason="not found")
        return None

    try:
        data = load_coverage_json(json_file)
        format_id, entries = parse_document(
            data,
            target_filter=target_filter,
            test_bundle_suffixes=tuple(test_bundle_suffixes),
        )
    except CoverageParseError as e:
        log.debug("coverage_unavailable", path=str(json_file), reason=str(e))
        return None

    coverage = CodeCoverage.aggregate(entries)
    log.debug(
        "coverage_schema_detected",
        path=str(json_file),
        format=format_id,
        files=len(entries),
        target_filter=target_filter,
    )
    return coverage
