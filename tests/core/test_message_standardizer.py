"""
Tests for record standardization.
"""

import json

import pytest

from task_reader.config.enums import RecordFormat
from task_reader.core.message_standardizer import (
    coerce_timestamp,
    format_content,
    from_api_record,
    from_ui_record,
    normalize_role,
    standardize_record,
    unwrap_message_array,
)
from task_reader.core.models import Message


class TestFormatContent:
    """Test format_content."""

    def test_string_passes_through(self):
        assert format_content("hello") == "hello"

    def test_none_is_empty(self):
        assert format_content(None) == ""

    def test_parts_are_joined(self):
        content = [
            {"type": "text", "text": "look at this"},
            {"type": "image", "source": {"type": "base64", "media_type": "image/png"}},
            "plain part",
        ]
        assert format_content(content) == "look at this\n[Image: image/png]\nplain part"

    def test_image_without_source(self):
        assert format_content([{"type": "image"}]) == "[Image: unknown]"

    def test_other_parts_are_serialized(self):
        part = {"type": "tool_use", "name": "execute_command", "input": {"command": "ls"}}
        assert json.loads(format_content([part])) == part

    def test_object_is_serialized(self):
        assert json.loads(format_content({"a": 1})) == {"a": 1}

    def test_scalars_are_stringified(self):
        assert format_content(12) == "12"


class TestRecords:
    """Test API and UI record conversion."""

    def test_api_record_user_becomes_human(self):
        message = from_api_record(
            {"role": "user", "content": "hi", "timestamp": 1700000000000}
        )
        assert message == Message("human", "hi", 1700000000000)

    def test_api_record_without_timestamp(self):
        message = from_api_record({"role": "assistant", "content": [{"type": "text", "text": "ok"}]})
        assert message == Message("assistant", "ok", None)
        assert message.sort_key == 0

    def test_api_record_with_overflowing_timestamp(self):
        """Test a timestamp that parses as infinity is kept as missing."""
        record = json.loads('{"role": "user", "content": "hi", "timestamp": 1e400}')

        assert from_api_record(record) == Message("human", "hi", None)

    @pytest.mark.parametrize(
        "record",
        [
            {"role": "tool", "content": "x"},
            {"role": "user"},
            {"content": "no role"},
            "not a dict",
            None,
        ],
    )
    def test_invalid_api_records(self, record):
        assert from_api_record(record) is None

    def test_ui_text_record_is_human(self):
        message = from_ui_record({"ts": 5, "type": "say", "say": "text", "text": "question"})
        assert message == Message("human", "question", 5)

    def test_ui_other_record_is_assistant(self):
        message = from_ui_record({"ts": 6, "type": "say", "say": "api_req_started"})
        assert message == Message("assistant", "", 6)

    def test_ui_non_dict_is_dropped(self):
        assert from_ui_record(["x"]) is None

    def test_standardize_dispatches_on_format(self):
        record = {"ts": 1, "say": "text", "text": "a", "role": "assistant", "content": "b"}
        assert standardize_record(record, RecordFormat.UI).content == "a"
        assert standardize_record(record, RecordFormat.API).content == "b"

    def test_to_dict(self):
        assert Message("human", "x", 3).to_dict() == {
            "role": "human",
            "content": "x",
            "timestamp": 3,
        }


class TestHelpers:
    """Test small helpers."""

    def test_normalize_role(self):
        assert normalize_role("user") == "human"
        assert normalize_role("system") == "system"
        assert normalize_role("robot") is None
        assert normalize_role(1) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            (5, 5),
            (5.9, 5),
            ("17", 17),
            (True, None),
            ("soon", None),
            (None, None),
            (float("inf"), None),
            (float("-inf"), None),
            (float("nan"), None),
        ],
    )
    def test_coerce_timestamp(self, value, expected):
        assert coerce_timestamp(value) == expected

    def test_unwrap_message_array(self):
        assert unwrap_message_array([1]) == [1]
        assert unwrap_message_array({"messages": [2]}) == [2]
        assert unwrap_message_array({"conversation": [3]}) == [3]
        assert unwrap_message_array({"other": [4]}) is None
        assert unwrap_message_array("text") is None
