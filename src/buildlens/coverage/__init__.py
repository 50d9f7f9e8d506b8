"""Coverage normalization.

This package provides:
- Schema detection for xccov (``targets[].files[]``) and llvm-cov export
  (``data[].files[]``) JSON reports
- Target filtering with test-bundle exclusion
- Weighted aggregation into a single ``CodeCoverage``

Usage:
    from buildlens.coverage import parse_coverage_from_path

    coverage = parse_coverage_from_path("coverage.json", target_filter="MyApp")
    if coverage is not None:
        print(coverage.line_coverage)
"""

from buildlens.coverage.models import (
    CodeCoverage,
    CoverageParseError,
    FileCoverage,
    RawFileCoverage,
)
from buildlens.coverage.normalizer import (
    DEFAULT_TEST_BUNDLE_SUFFIXES,
    load_coverage_json,
    parse_coverage_from_path,
)
from buildlens.coverage.parsers import (
    PARSER_BY_FORMAT,
    PARSER_REGISTRY,
    CoverageSchemaParser,
    detect_parser,
    parse_document,
)

__all__ = [
    # Models
    "CodeCoverage",
    "CoverageParseError",
    "FileCoverage",
    "RawFileCoverage",
    # Parsers
    "CoverageSchemaParser",
    "PARSER_BY_FORMAT",
    "PARSER_REGISTRY",
    "detect_parser",
    "parse_document",
    # Normalizer
    "DEFAULT_TEST_BUNDLE_SUFFIXES",
    "load_coverage_json",
    "parse_coverage_from_path",
]
