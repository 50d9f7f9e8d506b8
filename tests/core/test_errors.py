"""Tests for error types and codes."""

import pytest

from buildlens.core.errors import (
    BuildLensError,
    ConfigError,
    ErrorCode,
    InputError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.INPUT_INVALID_ARGUMENT, 3000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000


class TestBuildLensError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = BuildLensError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = BuildLensError(
            code=ErrorCode.INPUT_INVALID_ARGUMENT,
            message="Something broke",
        )

        # When
        result = str(error)

        # Then
        assert result == "[3001] INPUT_INVALID_ARGUMENT: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Errors are real exceptions."""
        with pytest.raises(BuildLensError) as exc_info:
            raise InputError.invalid_argument("text", 42, "must be str")

        assert exc_info.value.error_name == "INPUT_INVALID_ARGUMENT"


class TestConfigError:
    """ConfigError factory method tests."""

    @pytest.mark.parametrize(
        ("factory", "kwargs", "expected_code"),
        [
            (
                "parse_error",
                {"path": "/foo", "reason": "bad yaml"},
                ErrorCode.CONFIG_PARSE_ERROR,
            ),
            (
                "invalid_value",
                {"field": "parser.max_line_length", "value": -1, "reason": "negative"},
                ErrorCode.CONFIG_INVALID_VALUE,
            ),
        ],
    )
    def test_given_factory_when_called_then_correct_code(
        self, factory: str, kwargs: dict[str, object], expected_code: ErrorCode
    ) -> None:
        """Factory methods produce errors with correct error codes."""
        # Given
        factory_method = getattr(ConfigError, factory)

        # When
        error = factory_method(**kwargs)

        # Then
        assert error.code == expected_code

    def test_given_parse_error_when_created_then_path_in_details(self) -> None:
        """Parse error includes file path in details."""
        # Given
        path = "/config.yaml"
        reason = "invalid syntax"

        # When
        error = ConfigError.parse_error(path, reason)

        # Then
        assert error.details["path"] == path
        assert reason in error.message


class TestInputError:
    """InputError tests."""

    def test_given_invalid_argument_when_created_then_details_name_argument(self) -> None:
        """Invalid argument error records the argument, value and reason."""
        # Given
        name = "slow_threshold"

        # When
        error = InputError.invalid_argument(name, -1.0, "must be non-negative")

        # Then
        assert error.code == ErrorCode.INPUT_INVALID_ARGUMENT
        assert error.details == {
            "argument": "slow_threshold",
            "value": "-1.0",
            "reason": "must be non-negative",
        }
        assert "slow_threshold" in error.message
