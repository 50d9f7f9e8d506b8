"""Coverage schema registry and auto-detection.

This module provides:
- PARSER_REGISTRY: All available schema parsers, in detection order
- detect_parser: Pick the parser whose schema matches a decoded document
- parse_document: Convenience function to detect and parse in one step
"""

from collections.abc import Sequence
from typing import Any

from buildlens.coverage.models import CoverageParseError, RawFileCoverage

from .base import CoverageSchemaParser
from .llvm_cov import LlvmCovParser
from .xccov import XccovParser, is_test_bundle

# Order matters: a document carrying both keys is read as xccov
PARSER_REGISTRY: Sequence[CoverageSchemaParser] = (
    XccovParser(),  # targets[].files[]
    LlvmCovParser(),  # data[].files[]
)

PARSER_BY_FORMAT: dict[str, CoverageSchemaParser] = {p.format_id: p for p in PARSER_REGISTRY}

__all__ = [
    "PARSER_REGISTRY",
    "PARSER_BY_FORMAT",
    "CoverageSchemaParser",
    "LlvmCovParser",
    "XccovParser",
    "detect_parser",
    "is_test_bundle",
    "parse_document",
]


def detect_parser(data: Any) -> CoverageSchemaParser | None:
    """Return the first registered parser that recognizes the document."""
    for parser in PARSER_REGISTRY:
        if parser.can_parse(data):
            return parser
    return None


def parse_document(
    data: Any,
    *,
    target_filter: str | None = None,
    test_bundle_suffixes: tuple[str, ...] = (".xctest",),
) -> tuple[str, list[RawFileCoverage]]:
    """Detect the schema of a decoded coverage document and parse it.

    Returns:
        The detected format id and the extracted per-file entries.

    Raises:
        CoverageParseError: If no registered schema matches.
    """
    parser = detect_parser(data)
    if parser is None:
        valid = ", ".join(sorted(PARSER_BY_FORMAT))
        raise CoverageParseError(f"Unrecognized coverage JSON shape. Supported formats: {valid}")
    entries = parser.parse(
        data,
        target_filter=target_filter,
        test_bundle_suffixes=test_bundle_suffixes,
    )
    return parser.format_id, entries
