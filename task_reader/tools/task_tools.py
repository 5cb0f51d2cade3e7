"""
Tools describing conversations rather than their messages.
"""

from typing import Any, Dict, List

from task_reader.config.constants import (
    ACTIVE_LABEL_A,
    ACTIVE_LABEL_B,
    DEFAULT_RECENT_TASKS_LIMIT,
    DEFAULT_RECOVERY_SUMMARY_CHARS,
    MAX_RECENT_TASKS_LIMIT,
    MAX_RECOVERY_SUMMARY_CHARS,
)
from task_reader.config.enums import MessageSource
from task_reader.protocol.types import ToolResult
from task_reader.tools.base_tool import SOURCE_SCHEMA, TASK_ID_SCHEMA, BaseTool
from task_reader.utils.access_control import AccessValidator
from task_reader.utils.error_handling import handle_tool_errors


class ListRecentTasksTool(BaseTool):
    """List the newest conversations across all installs."""

    @property
    def name(self) -> str:
        return "list_recent_tasks"

    @property
    def description(self) -> str:
        return "List the most recent conversations with file sizes and extension type"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": f"Number of conversations (default: {DEFAULT_RECENT_TASKS_LIMIT}, max: {MAX_RECENT_TASKS_LIMIT})",
                    "default": DEFAULT_RECENT_TASKS_LIMIT,
                },
            },
        }

    @handle_tool_errors("list_recent_tasks")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        limit = AccessValidator.clamp_integer(
            args.get("limit"), DEFAULT_RECENT_TASKS_LIMIT, 1, MAX_RECENT_TASKS_LIMIT
        )
        tasks = self.store.list_recent_tasks(limit)
        return AccessValidator.create_success_response(
            {"count": len(tasks), "tasks": [task.to_dict() for task in tasks]}
        )


class GetTaskByIdTool(BaseTool):
    """Describe one conversation directory."""

    @property
    def name(self) -> str:
        return "get_task_by_id"

    @property
    def description(self) -> str:
        return "Get metadata of a conversation: timestamps, file sizes and extension type"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {"task_id": TASK_ID_SCHEMA},
            "required": ["task_id"],
        }

    @handle_tool_errors("get_task_by_id")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        task_id = self.parse_task_id(args, required=True)
        task = self.store.get_task(task_id)
        return AccessValidator.create_success_response(task.to_dict())


class GetConversationSummaryTool(BaseTool):
    """Summarize a conversation."""

    @property
    def name(self) -> str:
        return "get_conversation_summary"

    @property
    def description(self) -> str:
        return (
            "Summarize a conversation: message counts, preview, code blocks, "
            "file operations, commands and frequent topics"
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {"type": "object", "properties": {"task_id": TASK_ID_SCHEMA}}

    @handle_tool_errors("get_conversation_summary")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        task_id = self.parse_task_id(args)
        summary = self.store.get_conversation_summary(task_id)
        return AccessValidator.create_success_response(summary)


class GetActiveTaskTool(BaseTool):
    """Report which conversations the editor marks as active."""

    @property
    def name(self) -> str:
        return "get_active_task"

    @property
    def description(self) -> str:
        return "Get the active conversation, optionally for label A or B, and all active markers"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "label": {
                    "type": "string",
                    "enum": [ACTIVE_LABEL_A, ACTIVE_LABEL_B],
                    "description": "Active label to look up",
                },
            },
        }

    @handle_tool_errors("get_active_task")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        label = args.get("label")
        valid, error = AccessValidator.validate_enum(
            label, "label", [ACTIVE_LABEL_A, ACTIVE_LABEL_B], required=False
        )
        if not valid:
            return AccessValidator.create_error_response(error)

        sentinel = f"ACTIVE_{label}" if label else None
        active = self.store.get_active_task(sentinel)
        markers = self.store.get_all_active_tasks(label)
        return AccessValidator.create_success_response(
            {
                "label": label,
                "active_task": active,
                "active_tasks": [marker.to_dict() for marker in markers],
            }
        )


class RecoverCrashedChatTool(BaseTool):
    """Rebuild context from a conversation that stopped mid-task."""

    @property
    def name(self) -> str:
        return "recover_crashed_chat"

    @property
    def description(self) -> str:
        return (
            "Recover a crashed or truncated conversation: original request, "
            "summary, files, topics, code snippets, decision points, current "
            "status and recent messages, plus a ready-to-paste context"
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "task_id": TASK_ID_SCHEMA,
                "max_length": {
                    "type": "integer",
                    "description": f"Maximum summary length in characters (default: {DEFAULT_RECOVERY_SUMMARY_CHARS}, max: {MAX_RECOVERY_SUMMARY_CHARS})",
                    "default": DEFAULT_RECOVERY_SUMMARY_CHARS,
                },
                "include_code_snippets": {
                    "type": "boolean",
                    "description": "Include fenced code blocks from the conversation",
                    "default": True,
                },
                "source": {**SOURCE_SCHEMA, "default": MessageSource.API.value},
            },
        }

    @handle_tool_errors("recover_crashed_chat")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        task_id = self.parse_task_id(args)
        max_length = AccessValidator.clamp_integer(
            args.get("max_length"),
            DEFAULT_RECOVERY_SUMMARY_CHARS,
            1,
            MAX_RECOVERY_SUMMARY_CHARS,
        )
        include_code_snippets = args.get("include_code_snippets", True)
        if not isinstance(include_code_snippets, bool):
            return AccessValidator.create_error_response(
                "include_code_snippets must be a boolean"
            )
        source = self.parse_source(args) if args.get("source") else MessageSource.API

        recovery = self.store.recover_crashed_chat(
            task_id, max_length, include_code_snippets, source
        )
        return AccessValidator.create_success_response(recovery)
