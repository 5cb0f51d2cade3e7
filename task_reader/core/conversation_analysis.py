"""
Lightweight content analysis of a conversation.

Counts code blocks, tool-driven file operations and commands, collects
referenced file names, and ranks frequent words as topics.
"""

import re
from collections import Counter
from collections.abc import Iterable
from typing import Any

from task_reader.config.constants import (
    CODE_FILE_EXTENSIONS,
    COMMAND_TOOLS,
    FILE_WRITE_TOOLS,
    KEYWORD_MIN_LENGTH,
    KEYWORD_STOP_WORDS,
    SUMMARY_KEYWORD_COUNT,
)
from task_reader.config.enums import Role
from task_reader.core.models import Message
from task_reader.utils.formatting import format_timestamp

CODE_BLOCK_PATTERN = re.compile(r"```[\s\S]*?```")
FILE_REFERENCE_PATTERN = re.compile(
    r"[A-Za-z0-9_\-./]+\.(?:js|ts|py|html|css|json|md)\b"
)
WORD_PATTERN = re.compile(r"[a-z0-9_]+")
ACTION_PATTERNS = (
    re.compile(r"I've (?:created|updated|fixed|implemented|added) [^.!?\n]*", re.I),
    re.compile(r"\bI (?:created|updated|fixed|implemented|added) [^.!?\n]*", re.I),
)
MAX_KEY_ACTIONS = 10


def extract_keywords(text: str) -> list[str]:
    """Words of at least KEYWORD_MIN_LENGTH characters that are not stop words."""
    return [
        word
        for word in WORD_PATTERN.findall(text.lower())
        if len(word) >= KEYWORD_MIN_LENGTH
        and word not in KEYWORD_STOP_WORDS
        and not word.isdigit()
    ]


def extract_action(content: str) -> str | None:
    """First sentence fragment where the assistant reports a change it made."""
    for pattern in ACTION_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(0).strip()
    return None


def is_code_discussion(message: Message, filename: str | None = None) -> bool:
    """Whether a message contains code or mentions a source file."""
    content = message.content
    if filename and filename not in content:
        return False
    return "```" in content or any(ext in content for ext in CODE_FILE_EXTENSIONS)


def analyze_messages(
    messages: Iterable[Message], topic_count: int = SUMMARY_KEYWORD_COUNT
) -> dict[str, Any]:
    """Summarize what happened in a conversation.

    Args:
        messages: Standardized messages in any order
        topic_count: Number of top keywords to report

    Returns:
        Counts, referenced files, topics, key actions and time range
    """
    analysis: dict[str, Any] = {
        "message_count": 0,
        "human_messages": 0,
        "assistant_messages": 0,
        "code_blocks": 0,
        "file_operations": 0,
        "commands_executed": 0,
    }
    files: set[str] = set()
    topics: Counter[str] = Counter()
    key_actions: list[str] = []
    timestamps: list[int] = []

    for message in messages:
        analysis["message_count"] += 1
        if message.role == Role.HUMAN.value:
            analysis["human_messages"] += 1
        elif message.role == Role.ASSISTANT.value:
            analysis["assistant_messages"] += 1

        if message.timestamp is not None:
            timestamps.append(message.timestamp)

        content = message.content
        if not content:
            continue

        analysis["code_blocks"] += len(CODE_BLOCK_PATTERN.findall(content))
        if any(tool in content for tool in FILE_WRITE_TOOLS):
            analysis["file_operations"] += 1
        if any(tool in content for tool in COMMAND_TOOLS):
            analysis["commands_executed"] += 1

        files.update(FILE_REFERENCE_PATTERN.findall(content))
        topics.update(extract_keywords(content))

        if message.role == Role.ASSISTANT.value and len(key_actions) < MAX_KEY_ACTIONS:
            action = extract_action(content)
            if action:
                key_actions.append(action)

    analysis["files_referenced"] = sorted(files)
    analysis["topics"] = [
        {"topic": topic, "count": count}
        for topic, count in topics.most_common(topic_count)
    ]
    analysis["key_actions"] = key_actions

    if timestamps:
        analysis["time_range"] = {
            "start": format_timestamp(min(timestamps)),
            "end": format_timestamp(max(timestamps)),
        }

    return analysis
