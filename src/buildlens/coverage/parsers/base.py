"""Coverage schema parser protocol."""

import math
from typing import Any, Protocol

from buildlens.coverage.models import RawFileCoverage

# Larger values cannot be line counts and overflow float arithmetic
MAX_LINE_COUNT = 2**53


def is_finite_number(value: Any) -> bool:
    """True for a JSON number usable in coverage arithmetic.

    Rejects booleans, NaN, infinities and magnitudes beyond ``MAX_LINE_COUNT``.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return abs(value) <= MAX_LINE_COUNT


class CoverageSchemaParser(Protocol):
    """Protocol for coverage JSON schema parsers.

    Each parser recognizes one JSON layout and extracts per-file counts from it.
    """

    @property
    def format_id(self) -> str:
        """Schema identifier (e.g., 'xccov', 'llvm-cov')."""
        ...

    def can_parse(self, data: Any) -> bool:
        """Check if the decoded JSON document has this parser's shape."""
        ...

    def parse(
        self,
        data: dict[str, Any],
        *,
        target_filter: str | None = None,
        test_bundle_suffixes: tuple[str, ...] = (".xctest",),
    ) -> list[RawFileCoverage]:
        """Extract per-file coverage entries.

        Args:
            data: Decoded JSON document accepted by can_parse.
            target_filter: Substring a target name must contain to be included.
                Schemas without targets ignore it.
            test_bundle_suffixes: Target name suffixes that mark test bundles,
                which are always excluded.

        Returns:
            Entries in report order. Malformed file records are skipped.

        Raises:
            CoverageParseError: If the document's structure is inconsistent.
        """
        ...
