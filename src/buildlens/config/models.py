"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (BUILDLENS__SECTION__KEY)
3. Repo YAML (.buildlens/config.yaml)
4. Global YAML (~/.config/buildlens/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    BUILDLENS__<SECTION>__<KEY>=<VALUE>

Examples:
    BUILDLENS__LOGGING__LEVEL=DEBUG
    BUILDLENS__PARSER__SLOW_TEST_THRESHOLD_SEC=2.5
    BUILDLENS__FORMATTER__PROJECT_ROOT=/Users/me/MyApp
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        BUILDLENS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs per-parse counts.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ParserConfig(BaseModel):
    """Build output parser configuration.

    Env vars:
        BUILDLENS__PARSER__SLOW_TEST_THRESHOLD_SEC: Report tests at or above this duration
        BUILDLENS__PARSER__MAX_LINE_LENGTH: Skip lines longer than this
        BUILDLENS__PARSER__PARSE_BUILD_INFO: Collect per-target phases and timing
    """

    slow_test_threshold_sec: float | None = Field(
        default=None,
        description="Tests taking at least this many seconds are reported as slow. "
        "None disables slow-test detection.",
    )
    max_line_length: int = Field(
        default=5000,
        description="Lines longer than this are skipped (embedded JSON blobs, base64 dumps).",
    )
    parse_build_info: bool = Field(
        default=False,
        description="Collect per-target build phases, durations and dependencies.",
    )

    @field_validator("slow_test_threshold_sec")
    @classmethod
    def validate_threshold(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError(f"Slow test threshold must be non-negative, got {v}")
        return v

    @field_validator("max_line_length")
    @classmethod
    def validate_max_line_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_line_length must be positive, got {v}")
        return v


class CoverageConfig(BaseModel):
    """Coverage normalizer configuration.

    Env vars:
        BUILDLENS__COVERAGE__TEST_BUNDLE_SUFFIXES: JSON list of target suffixes to exclude
    """

    test_bundle_suffixes: list[str] = Field(
        default_factory=lambda: [".xctest"],
        description="Targets whose names end in one of these suffixes are test bundles "
        "and never count toward coverage.",
    )


class FormatterConfig(BaseModel):
    """Result formatter configuration.

    Env vars:
        BUILDLENS__FORMATTER__PROJECT_ROOT: Hide warnings from files outside this root
    """

    project_root: str | None = Field(
        default=None,
        description="When set, warnings from files outside this directory are hidden "
        "on failed builds and only counted.",
    )


class BuildLensConfig(BaseModel):
    """Root configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)
