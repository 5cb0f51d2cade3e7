"""
Context-window search: locate the first message matching a term in each
candidate conversation and return it with its neighbours.
"""

from collections.abc import Callable, Iterable, Sequence

from task_reader.core.exceptions import ReadFailed, TaskNotFound
from task_reader.core.models import ContextWindow, Message
from task_reader.utils.logger import log_debug


def find_first_match(messages: Sequence[Message], term: str) -> int | None:
    """Index of the first message whose content contains term, ignoring case."""
    needle = term.casefold()
    for index, message in enumerate(messages):
        if needle in message.content.casefold():
            return index
    return None


def find_context_window(
    conversation_id: str,
    messages: Sequence[Message],
    term: str,
    context_lines: int,
) -> ContextWindow | None:
    """Window of ``context_lines`` messages on each side of the first match."""
    index = find_first_match(messages, term)
    if index is None:
        return None

    total = len(messages)
    start = max(0, index - context_lines)
    end = min(total, index + context_lines + 1)
    return ContextWindow(
        conversation_id=conversation_id,
        match_index=index,
        window=tuple(messages[start:end]),
        start=start,
        end=end,
        total_messages=total,
    )


def search_with_context(
    candidates: Iterable[str],
    load_messages: Callable[[str], Sequence[Message]],
    term: str,
    context_lines: int,
    max_results: int,
) -> list[ContextWindow]:
    """Collect context windows from candidate conversations in order.

    Candidates that vanished or cannot be read are skipped. Stops once
    ``max_results`` windows have been found.

    Raises:
        ValueError: empty term, negative context_lines or max_results < 1
    """
    if not term or not term.strip():
        raise ValueError("term must be a non-empty string")
    if context_lines < 0:
        raise ValueError("context_lines must not be negative")
    if max_results < 1:
        raise ValueError("max_results must be at least 1")

    results: list[ContextWindow] = []
    for conversation_id in candidates:
        try:
            messages = load_messages(conversation_id)
        except (TaskNotFound, ReadFailed) as e:
            log_debug(
                f"Skipping conversation {conversation_id} in context search",
                {"error": str(e)},
            )
            continue

        window = find_context_window(conversation_id, messages, term, context_lines)
        if window is None:
            continue

        results.append(window)
        if len(results) >= max_results:
            break

    return results
