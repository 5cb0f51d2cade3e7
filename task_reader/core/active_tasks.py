"""
Active conversation markers written by the editor extension.

Each extension install keeps ``active_tasks.json`` next to its tasks
directory::

    {"activeTasks": [{"id": "1700000000000", "label": "A", "lastActivated": 1700000100000}]}

Labels A and B let a user keep two conversations "active" at once. Which
marker wins when several exist is decided by ``select_active_marker``.
"""

import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from task_reader.config.constants import (
    ACTIVE_LABEL_A,
    ACTIVE_LABEL_B,
    ACTIVE_TASKS_KEY,
    READ_BASE_RETRY_DELAY_SECONDS,
    READ_MAX_ATTEMPTS,
    SENTINEL_LABELS,
)
from task_reader.config.paths import RootProvider
from task_reader.core.exceptions import ReadFailed
from task_reader.core.file_reader import read_with_retry
from task_reader.core.json_repair import parse_with_repair
from task_reader.core.message_standardizer import coerce_timestamp
from task_reader.core.models import ActiveMarker
from task_reader.core.result_cache import TTLCache
from task_reader.utils.logger import log_debug, log_warning

SNAPSHOT_CACHE_KEY = "active_markers"


def select_active_marker(
    markers: Iterable[ActiveMarker], label: str | None = None
) -> ActiveMarker | None:
    """Pick the marker a query for "the active conversation" refers to.

    With a label, the most recently activated marker carrying it. Without
    one, label A beats label B, and with neither present the most recently
    activated marker of any label is used.
    """
    markers = list(markers)
    if not markers:
        return None

    def most_recent(candidates: list[ActiveMarker]) -> ActiveMarker | None:
        if not candidates:
            return None
        # max() keeps the first of equal timestamps, i.e. provider order
        return max(candidates, key=lambda m: m.last_activated_at)

    if label is not None:
        return most_recent([m for m in markers if m.label == label])

    for preferred in (ACTIVE_LABEL_A, ACTIVE_LABEL_B):
        marker = most_recent([m for m in markers if m.label == preferred])
        if marker is not None:
            return marker

    return most_recent(markers)


def merge_markers(markers: Iterable[ActiveMarker]) -> list[ActiveMarker]:
    """Deduplicate by (id, label), keeping the most recent activation."""
    merged: dict[tuple[str, str], ActiveMarker] = {}
    for marker in markers:
        key = (marker.conversation_id, marker.label)
        current = merged.get(key)
        if current is None or marker.last_activated_at > current.last_activated_at:
            merged[key] = marker
    return list(merged.values())


def parse_markers(data: Any, provider: RootProvider) -> list[ActiveMarker]:
    """Convert a parsed active_tasks.json document into markers."""
    if not isinstance(data, dict):
        return []

    entries = data.get(ACTIVE_TASKS_KEY)
    if not isinstance(entries, list):
        return []

    markers = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        task_id = entry.get("id")
        if task_id is None or str(task_id) == "":
            continue
        markers.append(
            ActiveMarker(
                conversation_id=str(task_id),
                label=str(entry.get("label", "")),
                last_activated_at=coerce_timestamp(entry.get("lastActivated")) or 0,
                variant=provider.variant,
            )
        )
    return markers


class ActiveTaskRegistry:
    """Read and query active markers across all extension installs."""

    def __init__(
        self,
        providers: Sequence[RootProvider],
        cache: TTLCache,
        max_attempts: int = READ_MAX_ATTEMPTS,
        base_retry_delay: float = READ_BASE_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._providers = tuple(providers)
        self._cache = cache
        self.max_attempts = max_attempts
        self.base_retry_delay = base_retry_delay
        self.sleep = sleep

    def snapshot(self) -> tuple[ActiveMarker, ...]:
        """Merged markers from every install, cached for the TTL."""
        return self._cache.get_or_compute(SNAPSHOT_CACHE_KEY, self._load)

    def _load(self) -> tuple[ActiveMarker, ...]:
        collected: list[ActiveMarker] = []
        seen_files = set()

        for provider in self._providers:
            marker_file = provider.active_tasks_file
            if marker_file in seen_files or not marker_file.is_file():
                continue
            seen_files.add(marker_file)

            try:
                text = read_with_retry(
                    marker_file,
                    self.max_attempts,
                    self.base_retry_delay,
                    sleep=self.sleep,
                )
            except ReadFailed as e:
                log_warning(
                    "Skipping unreadable active tasks file",
                    {"path": str(marker_file), "error": str(e.cause)},
                )
                continue

            data = parse_with_repair(text, ACTIVE_TASKS_KEY, source=str(marker_file))
            markers = parse_markers(data, provider)
            log_debug(
                f"Loaded {len(markers)} active marker(s)", {"path": str(marker_file)}
            )
            collected.extend(markers)

        return tuple(merge_markers(collected))

    def get_all(self, label: str | None = None) -> list[ActiveMarker]:
        """All markers, most recently activated first, optionally by label."""
        markers = [m for m in self.snapshot() if label is None or m.label == label]
        return sorted(markers, key=lambda m: m.last_activated_at, reverse=True)

    def get_active(self, label: str | None = None) -> ActiveMarker | None:
        """The marker selected by the active-task policy."""
        return select_active_marker(self.snapshot(), label)

    def resolve_sentinel(self, value: str | None) -> tuple[str | None, ActiveMarker | None]:
        """Translate ACTIVE_A / ACTIVE_B / empty into a conversation id.

        Literal ids pass through unchanged with no marker. Returns (None, None)
        when a sentinel has no matching marker.
        """
        if value is None or value == "":
            marker = self.get_active()
        elif value in SENTINEL_LABELS:
            marker = self.get_active(SENTINEL_LABELS[value])
        else:
            return value, None

        if marker is None:
            return None, None
        return marker.conversation_id, marker
