"""Display formatting helpers."""

from datetime import datetime, timezone

from task_reader.config.constants import SNIPPET_CONTEXT_CHARS

SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(size_bytes: int) -> str:
    """Human-readable size, e.g. ``1.5 KB``."""
    if size_bytes <= 0:
        return "0 Bytes"

    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1

    return f"{round(size, 2):g} {SIZE_UNITS[unit_index]}"


def format_timestamp(timestamp_ms: float) -> str:
    """ISO 8601 UTC rendering of a millisecond epoch timestamp.

    Values outside the datetime range are rendered as the raw number.
    """
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, ValueError, OSError):
        return str(timestamp_ms)


def extract_snippet(
    content: str, term: str, context_chars: int = SNIPPET_CONTEXT_CHARS
) -> str:
    """Cut the text around the first case-insensitive occurrence of term.

    Elided text on either side is marked with ``...``. When the term does
    not occur, the start of the content is returned.
    """
    index = content.casefold().find(term.casefold()) if term else -1
    if index < 0:
        if len(content) <= context_chars * 2:
            return content
        return content[: context_chars * 2] + "..."

    start = max(0, index - context_chars)
    end = min(len(content), index + len(term) + context_chars)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet += "..."
    return snippet


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."
