"""
Tests for the task metadata and active task tools.
"""

import pytest

from task_reader.tools.registry import ToolRegistry

BASE = 1_700_000_000_000


@pytest.fixture
def registry(store):
    return ToolRegistry(store)


class TestListRecentTasksTool:
    """Test the list_recent_tasks tool."""

    @pytest.mark.asyncio
    async def test_lists_newest_first(
        self, registry, write_conversation, api_records, enhanced_provider
    ):
        """Test tasks from both installs are merged newest first."""
        write_conversation("1700000000000", api=api_records(2))
        write_conversation("1700000005000", api=api_records(2), provider=enhanced_provider)

        result = await registry.execute_tool("list_recent_tasks", {"limit": 10})

        payload = result[0].data
        assert payload["count"] == 2
        assert [t["id"] for t in payload["tasks"]] == ["1700000005000", "1700000000000"]
        assert payload["tasks"][0]["extension_type"] == "Cline Ultra"
        assert payload["tasks"][1]["has_ui_messages"] is False

    @pytest.mark.asyncio
    async def test_no_tasks(self, registry):
        result = await registry.execute_tool("list_recent_tasks", {})

        assert result[0].data == {"count": 0, "tasks": []}


class TestGetTaskByIdTool:
    """Test the get_task_by_id tool."""

    @pytest.mark.asyncio
    async def test_metadata(self, registry, write_conversation, ui_records):
        write_conversation("1700000000000", ui=ui_records(3))

        result = await registry.execute_tool("get_task_by_id", {"task_id": "1700000000000"})

        task = result[0].data
        assert task["id"] == "1700000000000"
        assert task["timestamp"] == 1_700_000_000_000
        assert task["has_ui_messages"] is True
        assert task["api_conversation_size"] == "0 Bytes"

    @pytest.mark.asyncio
    async def test_task_id_is_required(self, registry):
        result = await registry.execute_tool("get_task_by_id", {})

        assert result[0].data["error_code"] == "INVALID_ARGUMENTS"


class TestGetConversationSummaryTool:
    """Test the get_conversation_summary tool."""

    @pytest.mark.asyncio
    async def test_summary(self, registry, write_conversation, ui_records):
        write_conversation("100", ui=ui_records(30))

        result = await registry.execute_tool("get_conversation_summary", {"task_id": "100"})

        summary = result[0].data
        assert summary["total_messages"] == 30
        assert len(summary["preview"]) == 10
        assert summary["preview"][-1]["content"] == "ui message 29"
        assert summary["duration_ms"] == 29_000


class TestGetActiveTaskTool:
    """Test the get_active_task tool."""

    @pytest.mark.asyncio
    async def test_active_tasks(
        self, registry, write_conversation, write_active_tasks, standard_provider, ui_records
    ):
        """Test the preferred marker and all markers are reported."""
        write_conversation("100", ui=ui_records(1))
        write_conversation("200", ui=ui_records(1))
        write_active_tasks(
            standard_provider,
            [
                {"id": "100", "label": "A", "lastActivated": BASE},
                {"id": "200", "label": "B", "lastActivated": BASE + 10},
            ],
        )

        result = await registry.execute_tool("get_active_task", {})

        payload = result[0].data
        assert payload["label"] is None
        assert payload["active_task"]["marker"]["id"] == "100"
        assert payload["active_task"]["task"]["id"] == "100"
        assert [m["id"] for m in payload["active_tasks"]] == ["200", "100"]

    @pytest.mark.asyncio
    async def test_by_label(self, registry, write_active_tasks, standard_provider):
        write_active_tasks(
            standard_provider, [{"id": "200", "label": "B", "lastActivated": BASE}]
        )

        result = await registry.execute_tool("get_active_task", {"label": "B"})

        payload = result[0].data
        assert payload["active_task"]["marker"]["label"] == "B"
        assert payload["active_task"]["task"] is None

    @pytest.mark.asyncio
    async def test_no_active_task(self, registry):
        result = await registry.execute_tool("get_active_task", {"label": "A"})

        assert result[0].data["active_task"] is None
        assert result[0].data["active_tasks"] == []

    @pytest.mark.asyncio
    async def test_invalid_label(self, registry):
        result = await registry.execute_tool("get_active_task", {"label": "C"})

        assert result[0].data["error_code"] == "INVALID_ARGUMENTS"


class TestRecoverCrashedChatTool:
    """Test the recover_crashed_chat tool."""

    @pytest.mark.asyncio
    async def test_recovery(self, registry, write_conversation):
        write_conversation(
            "100",
            api=[
                {"role": "user", "content": "Add retries to fetch.py", "timestamp": BASE},
                {
                    "role": "assistant",
                    "content": "Done:\n```python\nretry(3)\n```",
                    "timestamp": BASE + 1000,
                },
            ],
        )

        result = await registry.execute_tool("recover_crashed_chat", {"task_id": "100"})

        recovery = result[0].data
        assert not result[0].is_error
        assert recovery["original_task"] == "Add retries to fetch.py"
        assert recovery["modified_files"] == ["fetch.py"]
        assert recovery["code_snippets"][0]["code"] == "retry(3)"
        assert "Add retries to fetch.py" in recovery["context"]

    @pytest.mark.asyncio
    async def test_without_code_snippets(self, registry, write_conversation):
        write_conversation(
            "100", api=[{"role": "assistant", "content": "```\nx\n```"}]
        )

        result = await registry.execute_tool(
            "recover_crashed_chat", {"task_id": "100", "include_code_snippets": False}
        )

        assert result[0].data["code_snippets"] == []

    @pytest.mark.asyncio
    async def test_ui_source(self, registry, write_conversation, ui_records):
        write_conversation("100", ui=ui_records(4))

        result = await registry.execute_tool(
            "recover_crashed_chat", {"task_id": "100", "source": "ui"}
        )

        assert result[0].data["message_count"]["recovered"] == 4

    @pytest.mark.asyncio
    async def test_summary_length_is_clamped(self, registry, write_conversation, api_records):
        write_conversation("100", api=api_records(10))

        result = await registry.execute_tool(
            "recover_crashed_chat", {"task_id": "100", "max_length": 0}
        )

        assert len(result[0].data["summary"]) == 1

    @pytest.mark.asyncio
    async def test_invalid_flag(self, registry):
        result = await registry.execute_tool(
            "recover_crashed_chat", {"include_code_snippets": "yes"}
        )

        assert result[0].data["error_code"] == "INVALID_ARGUMENTS"

    @pytest.mark.asyncio
    async def test_unknown_task(self, registry):
        result = await registry.execute_tool("recover_crashed_chat", {"task_id": "404"})

        assert result[0].data["error_code"] == "TASK_NOT_FOUND"
