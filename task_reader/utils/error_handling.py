"""Error handling patterns for all tool functions."""

import traceback
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import List, ParamSpec

from task_reader.config.enums import ErrorCode
from task_reader.core.exceptions import TaskReaderError
from task_reader.protocol.types import ToolResult
from task_reader.utils.access_control import AccessValidator
from task_reader.utils.logger import log_error, log_info

P = ParamSpec("P")


def handle_tool_errors(
    operation_name: str,
) -> Callable[
    [Callable[P, Awaitable[List[ToolResult]]]],
    Callable[P, Awaitable[List[ToolResult]]],
]:
    """Decorator turning store exceptions raised by a tool into error results.

    Store errors keep their own error code. Bad arguments map to
    INVALID_ARGUMENTS and anything else to INTERNAL_ERROR with a traceback
    in the error log.
    """

    def decorator(
        func: Callable[P, Awaitable[List[ToolResult]]],
    ) -> Callable[P, Awaitable[List[ToolResult]]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> List[ToolResult]:
            try:
                return await func(*args, **kwargs)
            except TaskReaderError as e:
                log_info(
                    f"{operation_name} failed",
                    {"error_code": e.error_code.value, "error": str(e)},
                )
                return AccessValidator.create_error_response(str(e), e.error_code)
            except (ValueError, TypeError) as e:
                log_info(f"{operation_name} rejected arguments", {"error": str(e)})
                return AccessValidator.create_error_response(
                    f"Invalid arguments for {operation_name}: {e}",
                    ErrorCode.INVALID_ARGUMENTS,
                )
            except Exception as e:
                log_error(
                    f"Unexpected error in {operation_name}: {e}",
                    {"traceback": traceback.format_exc()},
                )
                return AccessValidator.create_error_response(
                    f"Unexpected error in {operation_name}: {e}",
                    ErrorCode.INTERNAL_ERROR,
                )

        return wrapper

    return decorator
