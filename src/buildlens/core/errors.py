"""buildlens error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Input (caller-side argument errors)

Bad build text or coverage data is never an error: parsers return an empty
result or ``None`` instead. These types cover caller mistakes and config.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Input (3xxx)
    INPUT_INVALID_ARGUMENT = 3001


@dataclass(frozen=True, slots=True)
class BuildLensError(Exception):
    """Base error with structured context for tool responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(BuildLensError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class InputError(BuildLensError):
    """Caller passed an argument the parsers cannot work with."""

    @classmethod
    def invalid_argument(cls, name: str, value: Any, reason: str) -> "InputError":
        return cls(
            code=ErrorCode.INPUT_INVALID_ARGUMENT,
            message=f"Invalid argument '{name}': {reason}",
            details={"argument": name, "value": repr(value), "reason": reason},
        )

