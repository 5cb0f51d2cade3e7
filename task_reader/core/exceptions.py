"""
Exceptions raised by the conversation store.

Parse failures are not represented here: they are repaired or degraded to an
empty result and logged.
"""

from pathlib import Path

from task_reader.config.enums import ErrorCode


class TaskReaderError(Exception):
    """Base class for conversation store errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR


class TaskNotFound(TaskReaderError):
    """No root contains the requested conversation."""

    error_code = ErrorCode.TASK_NOT_FOUND

    def __init__(self, conversation_id: str, searched: int = 0):
        self.conversation_id = conversation_id
        self.searched = searched
        super().__init__(
            f"Conversation {conversation_id} not found in {searched} task root(s)"
        )


class ReadFailed(TaskReaderError):
    """A file could not be read after all retry attempts."""

    error_code = ErrorCode.FILE_READ_ERROR

    def __init__(self, path: Path, cause: BaseException | None, attempts: int):
        self.path = path
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"Failed to read {path} after {attempts} attempt(s): {cause}")


class ReadTimeoutError(TaskReaderError, TimeoutError):
    """An operation did not finish before its deadline."""

    error_code = ErrorCode.TIMEOUT_ERROR

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} timed out after {timeout_seconds:.3f}s")
