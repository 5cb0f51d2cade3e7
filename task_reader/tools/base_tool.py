"""
Base tool class for all conversation tools.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from task_reader.config.constants import ACTIVE_SENTINEL_A, ACTIVE_SENTINEL_B
from task_reader.config.enums import MessageSource
from task_reader.core.conversation_store import ConversationStore
from task_reader.protocol.types import ToolDefinition, ToolResult
from task_reader.utils.access_control import AccessValidator

TASK_ID_SCHEMA = {
    "type": "string",
    "description": (
        "Conversation id (task directory name), or "
        f"{ACTIVE_SENTINEL_A} / {ACTIVE_SENTINEL_B} for the active conversation "
        "with that label. Defaults to the active conversation."
    ),
}

SOURCE_SCHEMA = {
    "type": "string",
    "enum": [source.value for source in MessageSource],
    "description": "Message file to read: ui, api, or auto (ui when present)",
    "default": MessageSource.AUTO.value,
}


class BaseTool(ABC):
    """Base class for all tools."""

    def __init__(self, store: ConversationStore) -> None:
        self.store = store

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        pass

    def get_tool_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, input_schema=self.input_schema
        )

    @staticmethod
    def parse_task_id(args: Dict[str, Any], required: bool = False) -> str | None:
        """Validated task_id argument; None selects the active conversation."""
        value = args.get("task_id")
        if value == "" and not required:
            return None
        valid, error = AccessValidator.validate_string(
            value, "task_id", required=required
        )
        if not valid:
            raise ValueError(error)
        return value or None

    @staticmethod
    def parse_source(args: Dict[str, Any]) -> MessageSource:
        value = args.get("source")
        valid, error = AccessValidator.validate_enum(
            value, "source", [s.value for s in MessageSource], required=False
        )
        if not valid:
            raise ValueError(error)
        return MessageSource(value) if value else MessageSource.AUTO

    @staticmethod
    def parse_term(args: Dict[str, Any], field_name: str) -> str:
        value = args.get(field_name)
        valid, error = AccessValidator.validate_string(value, field_name)
        if not valid:
            raise ValueError(error)
        return value.strip()
