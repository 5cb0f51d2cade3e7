"""
Tests for the cross-conversation search tools.
"""

import threading
from unittest.mock import patch

import pytest

from task_reader.tools.registry import ToolRegistry

BASE = 1_700_000_000_000


def ui_texts(*texts):
    return [
        {"ts": BASE + i, "type": "say", "say": "text" if i % 2 == 0 else "completion_result", "text": text}
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def registry(store, write_conversation):
    write_conversation("100", ui=ui_texts("set up the parser", "ok"))
    write_conversation("200", ui=ui_texts("hello", "edit main.py", "```py\nx = 1\n```", "the parser is broken"))
    write_conversation("300", ui=ui_texts("unrelated"))
    return ToolRegistry(store)


class TestSearchConversationsTool:
    """Test the search_conversations tool."""

    @pytest.mark.asyncio
    async def test_results_across_conversations(self, registry):
        """Test snippets come from every matching conversation, newest first."""
        result = await registry.execute_tool("search_conversations", {"query": "Parser"})

        payload = result[0].data
        assert payload["query"] == "Parser"
        assert payload["total_results"] == 2
        assert [r["task_id"] for r in payload["results"]] == ["200", "100"]
        assert payload["results"][0]["snippet"] == "the parser is broken"

    @pytest.mark.asyncio
    async def test_limit(self, registry):
        result = await registry.execute_tool(
            "search_conversations", {"query": "parser", "limit": 1}
        )

        assert result[0].data["total_results"] == 1

    @pytest.mark.asyncio
    async def test_max_tasks_to_search(self, registry):
        """Test only the newest conversations are searched."""
        result = await registry.execute_tool(
            "search_conversations", {"query": "parser", "max_tasks_to_search": 1}
        )

        assert result[0].data["total_results"] == 0

    @pytest.mark.asyncio
    async def test_blank_query(self, registry):
        result = await registry.execute_tool("search_conversations", {"query": "  "})

        assert result[0].data["error_code"] == "INVALID_ARGUMENTS"


class TestSearchByContextTool:
    """Test the search_by_context tool."""

    @pytest.mark.asyncio
    async def test_context_windows(self, registry):
        """Test each match is reported with its surrounding messages."""
        result = await registry.execute_tool(
            "search_by_context", {"context_term": "parser", "context_lines": 1}
        )

        payload = result[0].data
        assert payload["context_lines"] == 1
        assert payload["total_results"] == 2
        first = payload["results"][0]
        assert first["task_id"] == "200"
        assert first["match_index"] == 3
        assert first["range"] == {"start": 2, "end": 4}
        assert [m["index"] for m in first["context"]] == [2, 3]
        assert first["total_messages"] == 4

    @pytest.mark.asyncio
    async def test_single_conversation(self, registry):
        result = await registry.execute_tool(
            "search_by_context", {"context_term": "parser", "task_id": "100"}
        )

        assert [r["task_id"] for r in result[0].data["results"]] == ["100"]

    @pytest.mark.asyncio
    async def test_missing_term(self, registry):
        result = await registry.execute_tool("search_by_context", {})

        assert result[0].data["error_code"] == "INVALID_ARGUMENTS"

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self, registry, store):
        """Test a search exceeding the deadline reports TIMEOUT_ERROR."""
        store.timeout_seconds = 0.05
        release = threading.Event()

        def slow(*args, **kwargs):
            release.wait(5)
            return []

        try:
            with patch.object(store, "_search_with_context_sync", side_effect=slow):
                result = await registry.execute_tool(
                    "search_by_context", {"context_term": "parser"}
                )
        finally:
            release.set()

        assert result[0].is_error
        assert result[0].data["error_code"] == "TIMEOUT_ERROR"


class TestFindCodeDiscussionsTool:
    """Test the find_code_discussions tool."""

    @pytest.mark.asyncio
    async def test_all_code_discussions(self, registry):
        result = await registry.execute_tool("find_code_discussions", {"task_id": "200"})

        payload = result[0].data
        assert payload["filename"] is None
        assert payload["count"] == 2
        assert [d["index"] for d in payload["discussions"]] == [1, 2]

    @pytest.mark.asyncio
    async def test_filtered_by_filename(self, registry):
        result = await registry.execute_tool(
            "find_code_discussions", {"task_id": "200", "filename": "main.py"}
        )

        assert result[0].data["count"] == 1
        assert result[0].data["discussions"][0]["content"] == "edit main.py"
