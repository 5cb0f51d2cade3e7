"""
Standardize raw conversation records into Message objects.

Two record formats are written by the extension:

- API history records: ``{"role": "user" | "assistant", "content": ...}``
  where content is a string, a list of typed parts, or an object.
- UI records: ``{"ts": 1700000000000, "type": "say", "say": "text", "text": ...}``.

Content is always rendered to a display string before it leaves this module.
"""

import json
import math
from typing import Any

from task_reader.config.enums import RecordFormat, Role
from task_reader.core.models import Message

VALID_ROLES = frozenset(role.value for role in Role)
ROLE_ALIASES = {"user": Role.HUMAN.value}


def format_content(content: Any) -> str:
    """Render message content as display text.

    Strings pass through. Lists of parts are joined with newlines: text parts
    contribute their text, image parts a placeholder, anything else its JSON.
    Objects are rendered as JSON.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(_format_part(part) for part in content)
    if isinstance(content, dict):
        return json.dumps(content, ensure_ascii=False)
    return str(content)


def _format_part(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict):
        part_type = part.get("type")
        if part_type == "text":
            return str(part.get("text", ""))
        if part_type == "image":
            source = part.get("source")
            kind = "unknown"
            if isinstance(source, dict):
                kind = source.get("media_type") or source.get("type") or kind
            return f"[Image: {kind}]"
    return json.dumps(part, ensure_ascii=False)


def normalize_role(role: Any) -> str | None:
    """Map a raw role onto human/assistant/system, or None if unknown."""
    if not isinstance(role, str):
        return None
    role = ROLE_ALIASES.get(role, role)
    return role if role in VALID_ROLES else None


def coerce_timestamp(value: Any) -> int | None:
    """Millisecond timestamp as int, or None if absent or not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def is_valid_record(record: Any) -> bool:
    """Check that an API record has a known role and some content."""
    return (
        isinstance(record, dict)
        and normalize_role(record.get("role")) is not None
        and record.get("content") is not None
    )


def from_api_record(record: Any) -> Message | None:
    """Standardize an API history record, or return None if invalid."""
    if not is_valid_record(record):
        return None

    timestamp = coerce_timestamp(record.get("timestamp", record.get("ts")))
    return Message(
        role=normalize_role(record["role"]),
        content=format_content(record["content"]),
        timestamp=timestamp,
    )


def from_ui_record(record: Any) -> Message | None:
    """Standardize a UI record, or return None if it is not an object."""
    if not isinstance(record, dict):
        return None

    role = Role.HUMAN.value if record.get("say") == "text" else Role.ASSISTANT.value
    return Message(
        role=role,
        content=format_content(record.get("text") or ""),
        timestamp=coerce_timestamp(record.get("ts")),
    )


def standardize_record(record: Any, record_format: RecordFormat) -> Message | None:
    """Standardize one raw record of the given format."""
    if record_format is RecordFormat.UI:
        return from_ui_record(record)
    return from_api_record(record)


def unwrap_message_array(data: Any) -> list[Any] | None:
    """Find the message array in a parsed API history document.

    Accepts a bare array or an object wrapping it under ``messages`` or
    ``conversation``.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("messages", "conversation"):
            if isinstance(data.get(key), list):
                return data[key]
    return None
