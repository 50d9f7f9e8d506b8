"""Core module exports."""

from buildlens.core.errors import (
    BuildLensError,
    ConfigError,
    ErrorCode,
    InputError,
)
from buildlens.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "BuildLensError",
    "ConfigError",
    "ErrorCode",
    "InputError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
