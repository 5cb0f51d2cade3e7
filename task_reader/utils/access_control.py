"""
Argument validation and response helpers for tools.
"""

import json
from typing import Any, List

from task_reader.config.constants import MAX_QUERY_LENGTH
from task_reader.config.enums import ErrorCode
from task_reader.protocol.types import ToolResult


class AccessValidator:
    """Centralized argument validation for tools."""

    @classmethod
    def validate_string(
        cls,
        value: Any,
        field_name: str,
        min_length: int = 1,
        max_length: int | None = None,
        required: bool = True,
    ) -> tuple[bool, str]:
        """Validate string input with length constraints."""
        if required and not value:
            return False, f"{field_name} is required"

        if value is None and not required:
            return True, ""

        if not isinstance(value, str):
            return False, f"{field_name} must be a string"

        if len(value.strip()) < min_length:
            return False, f"{field_name} must be at least {min_length} characters"

        max_len = max_length or MAX_QUERY_LENGTH
        if len(value) > max_len:
            return False, f"{field_name} cannot exceed {max_len} characters"

        return True, ""

    @classmethod
    def validate_integer(
        cls,
        value: Any,
        field_name: str,
        min_value: int | None = None,
        max_value: int | None = None,
        required: bool = True,
    ) -> tuple[bool, str]:
        """Validate integer input with range constraints."""
        if required and value is None:
            return False, f"{field_name} is required"

        if value is None and not required:
            return True, ""

        if isinstance(value, bool) or not isinstance(value, int):
            return False, f"{field_name} must be an integer"

        if min_value is not None and value < min_value:
            return False, f"{field_name} must be at least {min_value}"

        if max_value is not None and value > max_value:
            return False, f"{field_name} cannot exceed {max_value}"

        return True, ""

    @classmethod
    def validate_enum(
        cls,
        value: Any,
        field_name: str,
        valid_values: list[str],
        required: bool = True,
    ) -> tuple[bool, str]:
        """Validate enum input against allowed values."""
        if required and not value:
            return False, f"{field_name} is required"

        if value is None and not required:
            return True, ""

        if not isinstance(value, str):
            return False, f"{field_name} must be a string"

        if value not in valid_values:
            return False, f"{field_name} must be one of: {', '.join(valid_values)}"

        return True, ""

    @classmethod
    def clamp_integer(
        cls, value: Any, default: int, minimum: int, maximum: int
    ) -> int:
        """Coerce an optional limit argument into [minimum, maximum].

        Non-integers fall back to the default, as the client may send numbers
        as strings or floats.
        """
        if value is None or isinstance(value, bool):
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        return max(minimum, min(maximum, number))

    @classmethod
    def create_error_response(
        cls, message: str, error_code: ErrorCode = ErrorCode.INVALID_ARGUMENTS
    ) -> List[ToolResult]:
        """Create a standardized error result."""
        payload = {"error": message, "error_code": error_code.value}
        return [
            ToolResult(
                text=json.dumps(payload, indent=2, ensure_ascii=False),
                data=payload,
                is_error=True,
            )
        ]

    @classmethod
    def create_success_response(cls, payload: dict[str, Any]) -> List[ToolResult]:
        """Create a standardized JSON success result."""
        return [
            ToolResult(
                text=json.dumps(payload, indent=2, ensure_ascii=False, default=str),
                data=payload,
            )
        ]
