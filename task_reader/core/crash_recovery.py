"""
Rebuild working context from a conversation that ended abruptly.

Given whatever messages survived, produce the pieces needed to pick the
work back up in a new conversation: the original request, a summary, the
files in play, topics, code snippets, decision points, a coarse timeline,
a guess at the state the conversation was in, and the last few messages.
``format_recovered_context`` renders all of it as one block of text.
"""

import math
import re
from collections.abc import Sequence
from typing import Any

from task_reader.config.constants import (
    DEFAULT_RECOVERY_SUMMARY_CHARS,
    RECOVERY_MAX_ACTIVE_FILES,
    RECOVERY_MAX_DECISION_POINTS,
    RECOVERY_MESSAGE_CHARS,
    RECOVERY_RECENT_MESSAGES,
    RECOVERY_TIMELINE_SEGMENTS,
    SNIPPET_CONTEXT_CHARS,
)
from task_reader.config.enums import Role
from task_reader.core.conversation_analysis import (
    FILE_REFERENCE_PATTERN,
    analyze_messages,
)
from task_reader.core.models import Message
from task_reader.utils.formatting import truncate

CODE_SNIPPET_PATTERN = re.compile(r"```([A-Za-z0-9_+-]*)\n([\s\S]*?)```")
QUESTION_WORDS = re.compile(
    r"^(?:what|how|why|when|where|who|which|can|could|would|should|is|are|"
    r"do|does|did|have|has|had)\s+",
    re.I,
)
OPTION_REQUEST_MARKERS = (
    "should i",
    "could we",
    "what if",
    "options",
    "alternatives",
    "approach",
)
DECISION_PATTERNS = (
    re.compile(r"\b(?:I|we) decided to [^.!?\n]+", re.I),
    re.compile(r"\blet's go with [^.!?\n]+", re.I),
    re.compile(r"\b(?:I|we)'ll choose [^.!?\n]+", re.I),
    re.compile(r"\b(?:I|we) prefer [^.!?\n]+", re.I),
)
RECOMMENDATION_PATTERNS = (
    re.compile(r"\bI (?:recommend|suggest) [^.!?\n]+", re.I),
    re.compile(r"\bThe (?:best|better) (?:approach|option) is [^.!?\n]+", re.I),
)
NEXT_STEP_PATTERN = re.compile(
    r"next,?\s+(?:we|you|I)\s+(?:should|could|will|would|can|need to)\s+([^.!?\n]+)",
    re.I,
)
STATUS_WINDOW = 5
QUESTION_TOPIC_CHARS = 50


def extract_code_snippets(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """Fenced code blocks with their language and the text leading into them."""
    snippets = []
    for index, message in enumerate(messages):
        for match in CODE_SNIPPET_PATTERN.finditer(message.content):
            context_start = max(0, match.start() - SNIPPET_CONTEXT_CHARS)
            snippets.append(
                {
                    "index": index,
                    "role": message.role,
                    "language": match.group(1) or "text",
                    "code": match.group(2).strip(),
                    "context": message.content[context_start : match.start()].strip(),
                }
            )
    return snippets


def find_active_files(
    messages: Sequence[Message], limit: int = RECOVERY_MAX_ACTIVE_FILES
) -> list[str]:
    """Referenced files, most recently mentioned first."""
    files: list[str] = []
    for message in reversed(messages):
        for name in FILE_REFERENCE_PATTERN.findall(message.content):
            if name not in files:
                files.append(name)
                if len(files) >= limit:
                    return files
    return files


def _first_match(patterns: Sequence[re.Pattern[str]], content: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(content)
        if match:
            return match.group(0).strip()
    return None


def find_decision_points(
    messages: Sequence[Message], limit: int = RECOVERY_MAX_DECISION_POINTS
) -> list[str]:
    """Questions about options, explicit decisions and recommendations.

    Duplicates are dropped; the first ``limit`` points in message order are
    kept.
    """
    points: list[str] = []

    for index, message in enumerate(messages):
        content = message.content
        lowered = content.lower()

        if message.role == Role.HUMAN.value:
            answered = (
                index + 1 < len(messages)
                and messages[index + 1].role == Role.ASSISTANT.value
            )
            if (
                "?" in content
                and answered
                and any(marker in lowered for marker in OPTION_REQUEST_MARKERS)
            ):
                question = content.split("?")[0].strip() + "?"
                points.append(f'Question: "{truncate(question, 100)}"')

            decision = _first_match(DECISION_PATTERNS, content)
            if decision:
                points.append(f"Decision: {decision}")

        elif message.role == Role.ASSISTANT.value:
            if "options" in lowered and (
                "option 1" in lowered or "1." in content or "first" in lowered
            ):
                points.append("Assistant presented multiple options")

            recommendation = _first_match(RECOMMENDATION_PATTERNS, content)
            if recommendation:
                points.append(f"Recommendation: {recommendation}")

    return list(dict.fromkeys(points))[:limit]


def question_topic(question: str) -> str:
    """A question with its leading question word and question marks removed."""
    topic = QUESTION_WORDS.sub("", question.replace("?", "").strip()).strip()
    return truncate(topic, QUESTION_TOPIC_CHARS)


def _first_by_role(messages: Sequence[Message], role: Role) -> Message | None:
    for message in messages:
        if message.role == role.value:
            return message
    return None


def _last_by_role(messages: Sequence[Message], role: Role) -> Message | None:
    for message in reversed(messages):
        if message.role == role.value:
            return message
    return None


def describe_current_status(messages: Sequence[Message]) -> str:
    """Guess what was happening when the conversation stopped."""
    if not messages:
        return "No conversation data available."

    window = messages[-STATUS_WINDOW:]
    assistant = _last_by_role(window, Role.ASSISTANT)
    human = _last_by_role(window, Role.HUMAN)

    if assistant and human:
        if "?" in human.content:
            status = (
                "The assistant was answering a question about "
                f"{question_topic(human.content)}."
            )
        elif "```" in assistant.content:
            status = "The assistant was writing code."
            snippets = extract_code_snippets([assistant])
            if snippets and snippets[0]["context"]:
                status += f" It was working on: {truncate(snippets[0]['context'], 100)}"
        else:
            topics = analyze_messages(window, topic_count=1)["topics"]
            subject = topics[0]["topic"] if topics else "various topics"
            status = f"The conversation was discussing {subject}."

        next_step = NEXT_STEP_PATTERN.search(assistant.content)
        if next_step:
            return f"{status} Next step: {next_step.group(1).strip()}."
        return f"{status} Next step: continue the implementation or discussion."

    if assistant:
        return "The assistant had replied and was waiting for the user."
    if human:
        return "The user had written and was waiting for a reply."
    return "The conversation was ongoing."


def build_timeline(
    messages: Sequence[Message], segments: int = RECOVERY_TIMELINE_SEGMENTS
) -> list[str]:
    """One line per slice of the conversation: topics, actions, code shared."""
    if not messages:
        return []

    size = max(1, math.ceil(len(messages) / segments))
    timeline = []
    for start in range(0, len(messages), size):
        segment = messages[start : start + size]
        analysis = analyze_messages(segment, topic_count=3)

        line = f"Messages {start + 1}-{start + len(segment)}:"
        if analysis["topics"]:
            topics = ", ".join(topic["topic"] for topic in analysis["topics"])
            line += f" Discussed {topics}."
        for action in analysis["key_actions"][:2]:
            line += f" {action}."
        blocks = analysis["code_blocks"]
        if blocks:
            line += f" Shared {blocks} code block{'s' if blocks > 1 else ''}."
        timeline.append(line)
    return timeline


def summarize(
    messages: Sequence[Message],
    analysis: dict[str, Any],
    max_length: int = DEFAULT_RECOVERY_SUMMARY_CHARS,
) -> str:
    """Prose summary built from the analysis, cut to ``max_length`` characters."""
    parts = [
        f"This conversation had {len(messages)} messages "
        f"({analysis['human_messages']} from human, "
        f"{analysis['assistant_messages']} from assistant)."
    ]
    if analysis["topics"]:
        topics = ", ".join(topic["topic"] for topic in analysis["topics"][:5])
        parts.append(f"The main topics discussed were: {topics}.")
    if analysis["file_operations"]:
        parts.append(f"There were {analysis['file_operations']} file operations.")
    if analysis["commands_executed"]:
        parts.append(f"{analysis['commands_executed']} commands were executed.")
    if analysis["code_blocks"]:
        parts.append(
            f"The conversation included {analysis['code_blocks']} code blocks."
        )
    if analysis["key_actions"]:
        parts.append(f"Key actions: {'; '.join(analysis['key_actions'])}.")

    summary = " ".join(parts)
    if len(summary) > max_length:
        if max_length > 3:
            summary = summary[: max_length - 3] + "..."
        else:
            summary = summary[:max_length]
    return summary


def recover_conversation(
    messages: Sequence[Message],
    max_length: int = DEFAULT_RECOVERY_SUMMARY_CHARS,
    include_code_snippets: bool = True,
    recent_count: int = RECOVERY_RECENT_MESSAGES,
) -> dict[str, Any]:
    """Assemble the recovery context for a list of surviving messages.

    Args:
        messages: Recovered messages in conversation order
        max_length: Character limit of the prose summary
        include_code_snippets: Whether to collect fenced code blocks
        recent_count: Number of trailing messages to include verbatim

    Returns:
        Dict with original_task, summary, modified_files, active_files,
        key_topics, main_topic, subtopics, code_snippets, timeline,
        decision_points, current_status, recent_messages and message_count
    """
    analysis = analyze_messages(messages)
    topics = [topic["topic"] for topic in analysis["topics"]]
    first_request = _first_by_role(messages, Role.HUMAN)
    recent = messages[-recent_count:] if recent_count > 0 else []

    return {
        "original_task": (
            truncate(first_request.content, RECOVERY_MESSAGE_CHARS)
            if first_request
            else ""
        ),
        "summary": summarize(messages, analysis, max_length),
        "modified_files": analysis["files_referenced"],
        "active_files": find_active_files(messages),
        "key_topics": topics,
        "main_topic": topics[0] if topics else "",
        "subtopics": topics[1:],
        "code_snippets": extract_code_snippets(messages) if include_code_snippets else [],
        "timeline": build_timeline(messages),
        "decision_points": find_decision_points(messages),
        "current_status": describe_current_status(messages),
        "recent_messages": [
            {
                "role": message.role,
                "content": truncate(message.content, RECOVERY_MESSAGE_CHARS),
                "timestamp": message.timestamp,
            }
            for message in recent
        ],
        "message_count": {
            "recovered": analysis["message_count"],
            "human": analysis["human_messages"],
            "assistant": analysis["assistant_messages"],
        },
    }


def _section(title: str, lines: Sequence[str]) -> list[str]:
    if not lines:
        return []
    return [title, *(f"- {line}" for line in lines), ""]


def format_recovered_context(recovery: dict[str, Any]) -> str:
    """Render a recovery context as text to paste into a new conversation."""
    main_topic = recovery.get("main_topic") or "an unknown topic"
    original_task = recovery.get("original_task") or f"a project related to {main_topic}"

    lines = [
        "CONVERSATION RECOVERY",
        "",
        f"This is a recovered conversation primarily about {main_topic}.",
        "",
        "PROJECT CONTEXT",
        f"You were working on: {original_task}",
        recovery.get("summary", ""),
        "",
    ]
    lines += _section("RELATED TOPICS", recovery.get("subtopics", [])[:10])
    lines += _section("ACTIVE FILES", recovery.get("active_files", []))
    lines += _section("TIMELINE", recovery.get("timeline", []))
    lines += _section("DECISION POINTS", recovery.get("decision_points", []))

    snippets = recovery.get("code_snippets", [])[-3:]
    if snippets:
        lines.append("RECENT CODE")
        for snippet in snippets:
            lines += [f"```{snippet['language']}", snippet["code"], "```"]
        lines.append("")

    lines += ["CURRENT STATUS", recovery.get("current_status", ""), ""]

    recent = recovery.get("recent_messages", [])
    if recent:
        lines.append("RECENT MESSAGES")
        for message in recent:
            speaker = "User" if message["role"] == Role.HUMAN.value else "Assistant"
            lines.append(f"{speaker}: {message['content']}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
