"""Summary formatting utilities for consistent terminal output.

Design principles:
- Grammatically correct (1 error vs 2 errors)
- Durations rendered the same way everywhere
"""

from __future__ import annotations


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "error")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 error" or "3 errors"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def format_seconds(seconds: float) -> str:
    """Format accumulated seconds with millisecond precision.

    Examples:
        2.894 -> "2.894s"
        0.1 -> "0.100s"
    """
    if seconds < 0:
        raise ValueError("Duration must be non-negative")
    return f"{seconds:.3f}s"


def format_percent(value: float) -> str:
    """Format a 0-100 percentage with one decimal place."""
    return f"{value:.1f}%"


def last_path_component(path: str) -> str:
    """Return the final component of a POSIX-style path.

    Trailing slashes are ignored, so ``Foo.app/`` yields ``Foo.app``.
    """
    stripped = path.rstrip("/")
    if not stripped:
        return path
    return stripped.rsplit("/", 1)[-1]
