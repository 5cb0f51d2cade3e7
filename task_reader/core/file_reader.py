"""
Resilient file reading: bounded retries with exponential backoff, and a
timeout race for whole read operations.
"""

import asyncio
import functools
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from task_reader.config.constants import (
    READ_BASE_RETRY_DELAY_SECONDS,
    READ_MAX_ATTEMPTS,
    READ_TIMEOUT_SECONDS,
)
from task_reader.config.enums import ErrorCode
from task_reader.core.exceptions import ReadFailed, ReadTimeoutError
from task_reader.core.models import Message
from task_reader.utils.logger import log_debug, log_error

T = TypeVar("T")


def retry_delay(attempt: int, base_delay: float) -> float:
    """Backoff before the attempt following ``attempt`` (1-based)."""
    return base_delay * (2 ** (attempt - 1))


def read_with_retry(
    path: Path | str,
    max_attempts: int = READ_MAX_ATTEMPTS,
    base_delay: float = READ_BASE_RETRY_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Read a UTF-8 text file, retrying transient failures.

    Every OS or decoding error is treated as transient. After ``max_attempts``
    failures, ReadFailed is raised carrying the last underlying error.

    Args:
        path: File to read
        max_attempts: Total number of attempts, at least 1
        base_delay: Delay in seconds before the second attempt; doubles after
        sleep: Blocking sleep function

    Returns:
        The file contents
    """
    path = Path(path)
    attempts = max(1, max_attempts)
    last_error: BaseException | None = None

    for attempt in range(1, attempts + 1):
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            last_error = e
            if attempt < attempts:
                delay = retry_delay(attempt, base_delay)
                log_debug(
                    f"Read attempt {attempt} failed, retrying in {delay:.3f}s",
                    {"path": str(path), "error": str(e)},
                )
                sleep(delay)

    log_error(
        "File read failed after retries",
        {
            "error_code": ErrorCode.FILE_READ_ERROR.value,
            "path": str(path),
            "attempts": attempts,
            "error": str(last_error),
        },
    )
    raise ReadFailed(path, last_error, attempts) from last_error


async def run_with_timeout(
    func: Callable[[], T],
    timeout_seconds: float = READ_TIMEOUT_SECONDS,
    operation: str = "operation",
) -> T:
    """Run a blocking callable in a worker thread, bounded by a deadline.

    On timeout the worker is abandoned, not stopped, and ReadTimeoutError is
    raised immediately. Any other exception from ``func`` propagates.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, func)
    try:
        return await asyncio.wait_for(future, timeout_seconds)
    except asyncio.TimeoutError as e:
        raise ReadTimeoutError(operation, timeout_seconds) from e


async def read_with_timeout(
    read_messages: Callable[[Path, int], list[Message]],
    path: Path,
    limit: int,
    timeout_seconds: float = READ_TIMEOUT_SECONDS,
) -> list[Message]:
    """Read messages from path, returning an empty list if the deadline passes."""
    try:
        return await run_with_timeout(
            functools.partial(read_messages, path, limit),
            timeout_seconds,
            f"read {path.name}",
        )
    except ReadTimeoutError as e:
        log_error(
            "Message read timed out",
            {
                "error_code": ErrorCode.TIMEOUT_ERROR.value,
                "path": str(path),
                "limit": limit,
                "timeout_seconds": e.timeout_seconds,
            },
        )
        return []
