"""
Timing of store queries.

Store operations wrap their work in ``timed_operation`` so that slow reads
(large histories, retries, cross-conversation scans) show up in the debug
log as ``Performance: <operation> completed in <seconds>s``.
"""

import time
from contextlib import contextmanager

from task_reader.config.enums import LogLevel
from task_reader.utils.logger import log_debug, log_info


def start_timer() -> float:
    """Monotonic start mark for ``get_duration``."""
    return time.perf_counter()


def get_duration(start_time: float) -> float:
    """Seconds elapsed since a ``start_timer`` mark."""
    return time.perf_counter() - start_time


def log_operation_time(
    operation_name: str,
    start_time: float,
    log_level: str = LogLevel.DEBUG.value,
    extra_info: str = "",
) -> None:
    """Log how long an operation took.

    Args:
        operation_name: Operation label, usually the store method and task id
        start_time: Mark returned by ``start_timer``
        log_level: ``debug`` (default) or any other level, logged as info
        extra_info: Appended in parentheses, e.g. the number of roots scanned
    """
    message = f"Performance: {operation_name} completed in {get_duration(start_time):.3f}s"
    if extra_info:
        message = f"{message} ({extra_info})"

    log = log_debug if log_level == LogLevel.DEBUG.value else log_info
    log(message)


@contextmanager
def timed_operation(operation_name: str, log_level: str = LogLevel.DEBUG.value):
    """Time the enclosed block and log it on exit, including on error.

    Yields the start mark. Errors from the block propagate unchanged; errors
    raised while logging the duration are dropped.
    """
    start_time = start_timer()
    try:
        yield start_time
    finally:
        try:
            log_operation_time(operation_name, start_time, log_level)
        except (OSError, ValueError, TypeError, AttributeError):
            pass
