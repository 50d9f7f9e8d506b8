"""Config module exports."""

from buildlens.config.loader import BuildLensSettings, load_config
from buildlens.config.models import (
    BuildLensConfig,
    CoverageConfig,
    FormatterConfig,
    LoggingConfig,
    LogOutputConfig,
    ParserConfig,
)

__all__ = [
    "load_config",
    "BuildLensConfig",
    "BuildLensSettings",
    "CoverageConfig",
    "FormatterConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ParserConfig",
]
