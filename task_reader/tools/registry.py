"""
Tool registry for managing all available tools.
"""

import traceback
from typing import Any, Dict, List

from task_reader.config.enums import ErrorCode
from task_reader.core.conversation_store import ConversationStore
from task_reader.protocol.types import ToolDefinition, ToolResult
from task_reader.tools.base_tool import BaseTool
from task_reader.tools.message_tools import (
    GetLastNMessagesTool,
    GetMessagesSinceTool,
    SearchMessagesTool,
)
from task_reader.tools.search_tools import (
    FindCodeDiscussionsTool,
    SearchByContextTool,
    SearchConversationsTool,
)
from task_reader.tools.task_tools import (
    GetActiveTaskTool,
    GetConversationSummaryTool,
    GetTaskByIdTool,
    ListRecentTasksTool,
    RecoverCrashedChatTool,
)
from task_reader.utils.access_control import AccessValidator
from task_reader.utils.logger import log_error


class ToolRegistry:
    """Registry for managing all available tools."""

    supported_tools = [
        GetLastNMessagesTool,
        GetMessagesSinceTool,
        SearchMessagesTool,
        SearchByContextTool,
        SearchConversationsTool,
        FindCodeDiscussionsTool,
        ListRecentTasksTool,
        GetTaskByIdTool,
        GetConversationSummaryTool,
        GetActiveTaskTool,
        RecoverCrashedChatTool,
    ]

    def __init__(self, store: ConversationStore | None = None) -> None:
        """Initialize the tool registry.

        Args:
            store: Store shared by every tool; a default store when omitted
        """
        self.store = store or ConversationStore()
        self._tools: Dict[str, BaseTool] = {}
        for tool in self.supported_tools:
            self.register_tool(tool(self.store))

    def register_tool(self, tool: BaseTool) -> None:
        """Register a tool in the registry.

        Args:
            tool: The tool instance to register
        """
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> BaseTool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def get_all_tools(self) -> List[ToolDefinition]:
        """Get all registered tools as definitions."""
        return [tool.get_tool_definition() for tool in self._tools.values()]

    async def execute_tool(
        self, name: str, arguments: Dict[str, Any] | None
    ) -> List[ToolResult]:
        """Execute a tool with the given arguments.

        Args:
            name: The name of the tool to execute
            arguments: The arguments to pass to the tool

        Returns:
            List of tool results
        """
        tool = self.get_tool(name)
        if tool is None:
            error_msg = f"Unknown tool: {name}"
            log_error(error_msg, {"available": self.list_tool_names()})
            return AccessValidator.create_error_response(error_msg)

        try:
            return await tool.execute(arguments)
        except Exception as e:
            error_msg = f"Unexpected tool execution error: {str(e)}"
            log_error(error_msg, {"traceback": traceback.format_exc()})
            return AccessValidator.create_error_response(
                error_msg, ErrorCode.INTERNAL_ERROR
            )

    def list_tool_names(self) -> List[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools
