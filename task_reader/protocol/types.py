"""
What conversation tools hand back to their caller.

Every tool returns a list of ``ToolResult``. ``text`` carries the JSON
rendering a client displays; ``data`` keeps the same payload as a dict so
callers inside the process (and tests) need not parse it back.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ToolResult:
    """One block of tool output.

    ``is_error`` marks payloads of the form ``{"error": ..., "error_code": ...}``
    where ``error_code`` is an ``ErrorCode`` name such as ``TASK_NOT_FOUND``.
    """

    type: str = "text"
    text: str = ""
    data: Optional[Dict[str, Any]] = None
    is_error: bool = False


@dataclass
class ToolDefinition:
    """Name, description and JSON Schema of a tool's arguments, as listed by the registry."""

    name: str
    description: str
    input_schema: Dict[str, Any]
