"""
Tools reading messages from a single conversation.
"""

from typing import Any, Dict, List

from task_reader.config.constants import (
    DEFAULT_MESSAGE_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    MAX_MESSAGE_LIMIT,
    MAX_SEARCH_LIMIT,
)
from task_reader.core.models import ActiveMarker, ConversationLocation, Message
from task_reader.protocol.types import ToolResult
from task_reader.tools.base_tool import SOURCE_SCHEMA, TASK_ID_SCHEMA, BaseTool
from task_reader.utils.access_control import AccessValidator
from task_reader.utils.error_handling import handle_tool_errors
from task_reader.utils.logger import log_info


def message_payload(
    location: ConversationLocation,
    marker: ActiveMarker | None,
    messages: List[Message],
    **extra: Any,
) -> Dict[str, Any]:
    """JSON payload shared by the message tools."""
    return {
        "task_id": location.conversation_id,
        "extension_type": location.variant_label,
        "active_label": marker.label if marker else None,
        **extra,
        "count": len(messages),
        "messages": [message.to_dict() for message in messages],
    }


class GetLastNMessagesTool(BaseTool):
    """Read the most recent messages of a conversation."""

    @property
    def name(self) -> str:
        return "get_last_n_messages"

    @property
    def description(self) -> str:
        return "Get the most recent messages of a conversation, oldest first"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "task_id": TASK_ID_SCHEMA,
                "limit": {
                    "type": "integer",
                    "description": f"Number of messages (default: {DEFAULT_MESSAGE_LIMIT}, max: {MAX_MESSAGE_LIMIT})",
                    "default": DEFAULT_MESSAGE_LIMIT,
                },
                "source": SOURCE_SCHEMA,
            },
        }

    @handle_tool_errors("get_last_n_messages")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        task_id = self.parse_task_id(args)
        source = self.parse_source(args)
        limit = AccessValidator.clamp_integer(
            args.get("limit"), DEFAULT_MESSAGE_LIMIT, 1, MAX_MESSAGE_LIMIT
        )

        location, marker = self.store.resolve_conversation(task_id)
        messages = await self.store.get_last_n_messages(
            location.conversation_id, limit, source
        )
        log_info(
            "get_last_n_messages served",
            {"task_id": location.conversation_id, "count": len(messages)},
        )
        return AccessValidator.create_success_response(
            message_payload(location, marker, messages, limit=limit)
        )


class GetMessagesSinceTool(BaseTool):
    """Read messages written at or after a timestamp."""

    @property
    def name(self) -> str:
        return "get_messages_since"

    @property
    def description(self) -> str:
        return "Get conversation messages at or after a millisecond timestamp"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "task_id": TASK_ID_SCHEMA,
                "since": {
                    "type": "integer",
                    "description": "Millisecond epoch timestamp",
                },
                "limit": {
                    "type": "integer",
                    "description": f"Maximum messages (default: {DEFAULT_MESSAGE_LIMIT}, max: {MAX_MESSAGE_LIMIT})",
                    "default": DEFAULT_MESSAGE_LIMIT,
                },
                "source": SOURCE_SCHEMA,
            },
            "required": ["since"],
        }

    @handle_tool_errors("get_messages_since")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        since = args.get("since")
        valid, error = AccessValidator.validate_integer(since, "since", min_value=0)
        if not valid:
            return AccessValidator.create_error_response(error)

        task_id = self.parse_task_id(args)
        source = self.parse_source(args)
        limit = AccessValidator.clamp_integer(
            args.get("limit"), DEFAULT_MESSAGE_LIMIT, 1, MAX_MESSAGE_LIMIT
        )

        location, marker = self.store.resolve_conversation(task_id)
        messages = await self.store.get_messages_since(
            location.conversation_id, since, limit, source
        )
        return AccessValidator.create_success_response(
            message_payload(location, marker, messages, since=since, limit=limit)
        )


class SearchMessagesTool(BaseTool):
    """Search one conversation for a term."""

    @property
    def name(self) -> str:
        return "search_messages"

    @property
    def description(self) -> str:
        return "Find the most recent messages of a conversation containing a term (case-insensitive)"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "task_id": TASK_ID_SCHEMA,
                "query": {"type": "string", "description": "Text to search for"},
                "limit": {
                    "type": "integer",
                    "description": f"Maximum matches (default: {DEFAULT_SEARCH_LIMIT}, max: {MAX_SEARCH_LIMIT})",
                    "default": DEFAULT_SEARCH_LIMIT,
                },
                "source": SOURCE_SCHEMA,
            },
            "required": ["query"],
        }

    @handle_tool_errors("search_messages")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        query = self.parse_term(args, "query")
        task_id = self.parse_task_id(args)
        source = self.parse_source(args)
        limit = AccessValidator.clamp_integer(
            args.get("limit"), DEFAULT_SEARCH_LIMIT, 1, MAX_SEARCH_LIMIT
        )

        location, marker = self.store.resolve_conversation(task_id)
        messages = await self.store.search_messages(
            location.conversation_id, query, limit, source
        )
        return AccessValidator.create_success_response(
            message_payload(location, marker, messages, query=query)
        )
