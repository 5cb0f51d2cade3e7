"""
Enumeration definitions for the conversation store.
"""

from enum import Enum


class LogLevel(Enum):
    """Logging levels for the application."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ErrorCode(Enum):
    """Error codes reported by tool results."""

    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Variant(Enum):
    """Extension install identity a conversation was written by."""

    STANDARD = "standard"
    ENHANCED = "enhanced"


class MessageSource(Enum):
    """Which conversation file a message query reads."""

    AUTO = "auto"
    UI = "ui"
    API = "api"


class RecordFormat(Enum):
    """Shape of the records stored in a conversation file."""

    API = "api"
    UI = "ui"


class Role(Enum):
    """Normalized message roles."""

    HUMAN = "human"
    ASSISTANT = "assistant"
    SYSTEM = "system"
