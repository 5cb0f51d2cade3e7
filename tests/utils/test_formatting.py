"""Test display formatting helpers."""

import pytest

from task_reader.utils.formatting import (
    extract_snippet,
    format_file_size,
    format_timestamp,
    truncate,
)


class TestFormatFileSize:
    """Test format_file_size."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, "0 Bytes"),
            (512, "512 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5 MB"),
        ],
    )
    def test_sizes(self, size, expected):
        assert format_file_size(size) == expected


class TestExtractSnippet:
    """Test extract_snippet."""

    def test_short_content_is_returned_whole(self):
        assert extract_snippet("fix the Parser now", "parser") == "fix the Parser now"

    def test_long_content_is_cut_around_match(self):
        content = "a" * 150 + "needle" + "b" * 150

        snippet = extract_snippet(content, "NEEDLE", context_chars=10)

        assert snippet == "..." + "a" * 10 + "needle" + "b" * 10 + "..."

    def test_match_near_start(self):
        snippet = extract_snippet("needle" + "x" * 50, "needle", context_chars=5)
        assert snippet == "needlexxxxx..."

    def test_no_match_returns_start(self):
        content = "z" * 300
        assert extract_snippet(content, "needle", context_chars=10) == "z" * 20 + "..."


class TestMisc:
    """Test timestamp and truncation helpers."""

    def test_format_timestamp(self):
        assert format_timestamp(0) == "1970-01-01T00:00:00+00:00"

    def test_format_timestamp_out_of_range(self):
        huge = int(1e300)
        assert format_timestamp(huge) == str(huge)

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("a longer text", 6) == "a long..."
