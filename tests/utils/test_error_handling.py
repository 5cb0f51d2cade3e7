"""Test the tool error handling decorator."""

from pathlib import Path
from unittest.mock import patch

import pytest

from task_reader.core.exceptions import ReadFailed, ReadTimeoutError, TaskNotFound
from task_reader.utils.error_handling import handle_tool_errors


def failing(exc):
    @handle_tool_errors("sample_tool")
    async def tool():
        raise exc

    return tool


class TestHandleToolErrors:
    """Test handle_tool_errors."""

    @pytest.mark.asyncio
    async def test_passes_results_through(self):
        @handle_tool_errors("sample_tool")
        async def tool(value):
            return [value]

        assert await tool("ok") == ["ok"]
        assert tool.__name__ == "tool"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc, error_code",
        [
            (TaskNotFound("100", 2), "TASK_NOT_FOUND"),
            (ReadFailed(Path("x.json"), OSError("busy"), 3), "FILE_READ_ERROR"),
            (ReadTimeoutError("read", 5.0), "TIMEOUT_ERROR"),
            (ValueError("limit must not be negative"), "INVALID_ARGUMENTS"),
            (TypeError("bad type"), "INVALID_ARGUMENTS"),
        ],
    )
    async def test_error_codes(self, exc, error_code):
        """Test each failure maps to its error code."""
        result = await failing(exc)()

        assert result[0].is_error
        assert result[0].data["error_code"] == error_code

    @pytest.mark.asyncio
    async def test_unexpected_error_logs_traceback(self):
        """Test unexpected errors are logged with a traceback."""
        with patch("task_reader.utils.error_handling.log_error") as mock_log_error:
            result = await failing(RuntimeError("boom"))()

        assert result[0].data["error_code"] == "INTERNAL_ERROR"
        assert result[0].data["error"] == "Unexpected error in sample_tool: boom"
        assert "traceback" in mock_log_error.call_args[0][1]
