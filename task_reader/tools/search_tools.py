"""
Tools searching across conversations.
"""

from typing import Any, Dict, List

from task_reader.config.constants import (
    DEFAULT_CONTEXT_LINES,
    DEFAULT_CONTEXT_RESULTS,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TASKS_TO_SEARCH,
    MAX_CONTEXT_LINES,
    MAX_CONTEXT_RESULTS,
    MAX_SEARCH_LIMIT,
    MAX_TASKS_TO_SEARCH,
)
from task_reader.protocol.types import ToolResult
from task_reader.tools.base_tool import TASK_ID_SCHEMA, BaseTool
from task_reader.utils.access_control import AccessValidator
from task_reader.utils.error_handling import handle_tool_errors
from task_reader.utils.logger import log_info

MAX_TASKS_SCHEMA = {
    "type": "integer",
    "description": f"Most recent conversations to search (default: {DEFAULT_TASKS_TO_SEARCH}, max: {MAX_TASKS_TO_SEARCH})",
    "default": DEFAULT_TASKS_TO_SEARCH,
}


class SearchConversationsTool(BaseTool):
    """Find snippets matching a query across recent conversations."""

    @property
    def name(self) -> str:
        return "search_conversations"

    @property
    def description(self) -> str:
        return "Search recent conversations for a term and return matching snippets"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to search for"},
                "limit": {
                    "type": "integer",
                    "description": f"Maximum results (default: {DEFAULT_SEARCH_LIMIT}, max: {MAX_SEARCH_LIMIT})",
                    "default": DEFAULT_SEARCH_LIMIT,
                },
                "max_tasks_to_search": MAX_TASKS_SCHEMA,
            },
            "required": ["query"],
        }

    @handle_tool_errors("search_conversations")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        query = self.parse_term(args, "query")
        limit = AccessValidator.clamp_integer(
            args.get("limit"), DEFAULT_SEARCH_LIMIT, 1, MAX_SEARCH_LIMIT
        )
        max_tasks = AccessValidator.clamp_integer(
            args.get("max_tasks_to_search"),
            DEFAULT_TASKS_TO_SEARCH,
            1,
            MAX_TASKS_TO_SEARCH,
        )

        results = await self.store.search_conversations(query, limit, max_tasks)
        log_info("search_conversations served", {"results": len(results)})
        return AccessValidator.create_success_response(
            {
                "query": query,
                "total_results": len(results),
                "results": results,
            }
        )


class SearchByContextTool(BaseTool):
    """Return the messages around the first match of a term."""

    @property
    def name(self) -> str:
        return "search_by_context"

    @property
    def description(self) -> str:
        return (
            "Find the first message mentioning a term in recent conversations "
            "and return it with the surrounding messages"
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "context_term": {"type": "string", "description": "Text to search for"},
                "context_lines": {
                    "type": "integer",
                    "description": f"Messages to include on each side (default: {DEFAULT_CONTEXT_LINES}, max: {MAX_CONTEXT_LINES})",
                    "default": DEFAULT_CONTEXT_LINES,
                },
                "max_results": {
                    "type": "integer",
                    "description": f"Maximum conversations to report (default: {DEFAULT_CONTEXT_RESULTS}, max: {MAX_CONTEXT_RESULTS})",
                    "default": DEFAULT_CONTEXT_RESULTS,
                },
                "task_id": {
                    **TASK_ID_SCHEMA,
                    "description": "Restrict the search to one conversation (id or sentinel)",
                },
                "max_tasks_to_search": MAX_TASKS_SCHEMA,
            },
            "required": ["context_term"],
        }

    @handle_tool_errors("search_by_context")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        term = self.parse_term(args, "context_term")
        context_lines = AccessValidator.clamp_integer(
            args.get("context_lines"), DEFAULT_CONTEXT_LINES, 0, MAX_CONTEXT_LINES
        )
        max_results = AccessValidator.clamp_integer(
            args.get("max_results"), DEFAULT_CONTEXT_RESULTS, 1, MAX_CONTEXT_RESULTS
        )
        max_tasks = AccessValidator.clamp_integer(
            args.get("max_tasks_to_search"),
            DEFAULT_TASKS_TO_SEARCH,
            1,
            MAX_TASKS_TO_SEARCH,
        )
        task_id = self.parse_task_id(args)

        windows = await self.store.search_with_context(
            term,
            context_lines=context_lines,
            max_results=max_results,
            conversation_id=task_id,
            max_tasks_to_search=max_tasks,
        )
        return AccessValidator.create_success_response(
            {
                "context_term": term,
                "context_lines": context_lines,
                "total_results": len(windows),
                "results": [window.to_dict() for window in windows],
            }
        )


class FindCodeDiscussionsTool(BaseTool):
    """List messages of a conversation that discuss code."""

    @property
    def name(self) -> str:
        return "find_code_discussions"

    @property
    def description(self) -> str:
        return "Find messages with code blocks or source file mentions, optionally for one file"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "task_id": TASK_ID_SCHEMA,
                "filename": {
                    "type": "string",
                    "description": "Only messages mentioning this file name",
                },
            },
        }

    @handle_tool_errors("find_code_discussions")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        args = arguments or {}
        task_id = self.parse_task_id(args)
        filename = args.get("filename")
        valid, error = AccessValidator.validate_string(
            filename, "filename", required=False
        )
        if not valid:
            return AccessValidator.create_error_response(error)

        location, _ = self.store.resolve_conversation(task_id)
        discussions = self.store.find_code_discussions(
            location.conversation_id, filename or None
        )
        return AccessValidator.create_success_response(
            {
                "task_id": location.conversation_id,
                "filename": filename or None,
                "count": len(discussions),
                "discussions": discussions,
            }
        )
