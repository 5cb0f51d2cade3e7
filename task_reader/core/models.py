"""
Data types shared across the conversation store.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from task_reader.config.constants import (
    API_HISTORY_FILE_NAME,
    ENHANCED_EXTENSION_LABEL,
    STANDARD_EXTENSION_LABEL,
    UI_MESSAGES_FILE_NAME,
)
from task_reader.config.enums import Variant


@dataclass(frozen=True)
class Message:
    """A normalized conversation message."""

    role: str
    content: str
    timestamp: int | None = None

    @property
    def sort_key(self) -> int:
        return self.timestamp if self.timestamp is not None else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ConversationLocation:
    """Where a conversation lives on disk."""

    conversation_id: str
    root_directory: Path
    variant: Variant

    @property
    def task_directory(self) -> Path:
        return self.root_directory / self.conversation_id

    @property
    def api_history_path(self) -> Path:
        return self.task_directory / API_HISTORY_FILE_NAME

    @property
    def ui_messages_path(self) -> Path:
        return self.task_directory / UI_MESSAGES_FILE_NAME

    @property
    def variant_label(self) -> str:
        if self.variant is Variant.ENHANCED:
            return ENHANCED_EXTENSION_LABEL
        return STANDARD_EXTENSION_LABEL


@dataclass(frozen=True)
class ActiveMarker:
    """An editor-reported active conversation under label A or B."""

    conversation_id: str
    label: str
    last_activated_at: int = 0
    variant: Variant = Variant.STANDARD

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.conversation_id,
            "label": self.label,
            "last_activated": self.last_activated_at,
            "variant": self.variant.value,
        }


@dataclass(frozen=True)
class ContextWindow:
    """The messages surrounding the first match of a term in a conversation."""

    conversation_id: str
    match_index: int
    window: tuple[Message, ...]
    start: int
    end: int
    total_messages: int

    @property
    def range(self) -> tuple[int, int]:
        return self.start, self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.conversation_id,
            "match_index": self.match_index,
            "context": [
                {**message.to_dict(), "index": self.start + offset}
                for offset, message in enumerate(self.window)
            ],
            "range": {"start": self.start, "end": self.end},
            "total_messages": self.total_messages,
        }


@dataclass(frozen=True)
class TaskMetadata:
    """Filesystem facts about one conversation directory."""

    task_id: str
    timestamp: int
    created: str
    modified: str
    has_api_conversation: bool
    has_ui_messages: bool
    api_conversation_size: int
    ui_messages_size: int
    variant: Variant
    extension_type: str
    root_directory: Path
    sizes_formatted: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.task_id,
            "timestamp": self.timestamp,
            "created": self.created,
            "modified": self.modified,
            "has_api_conversation": self.has_api_conversation,
            "has_ui_messages": self.has_ui_messages,
            "api_conversation_size": self.sizes_formatted.get("api", ""),
            "ui_messages_size": self.sizes_formatted.get("ui", ""),
            "api_conversation_bytes": self.api_conversation_size,
            "ui_messages_bytes": self.ui_messages_size,
            "variant": self.variant.value,
            "extension_type": self.extension_type,
            "root_directory": str(self.root_directory),
        }
