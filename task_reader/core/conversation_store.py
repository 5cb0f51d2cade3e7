"""
Conversation store: the query surface over on-disk conversation logs.

Wires the location resolver, active task registry, bounded extractor and
result caches together. All state lives in the injected ``CacheSet``; two
stores built with separate cache sets share nothing.
"""

import functools
import time
from collections.abc import Callable, Iterator, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from task_reader.config.constants import (
    DEFAULT_CONTEXT_LINES,
    DEFAULT_CONTEXT_RESULTS,
    DEFAULT_MESSAGE_LIMIT,
    DEFAULT_RECENT_TASKS_LIMIT,
    DEFAULT_RECOVERY_SUMMARY_CHARS,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TASKS_TO_SEARCH,
    SUMMARY_PREVIEW_COUNT,
    SUMMARY_SAMPLE_CHARS,
)
from task_reader.config.enums import MessageSource, RecordFormat
from task_reader.config.paths import RootProvider, build_root_providers
from task_reader.config.settings import ReaderSettings, SettingsManager
from task_reader.core.active_tasks import ActiveTaskRegistry
from task_reader.core.array_extractor import BoundedArrayExtractor, ExtractOptions
from task_reader.core.context_search import search_with_context
from task_reader.core.conversation_analysis import analyze_messages, is_code_discussion
from task_reader.core.crash_recovery import format_recovered_context, recover_conversation
from task_reader.core.exceptions import ReadFailed, TaskNotFound
from task_reader.core.file_reader import read_with_timeout, run_with_timeout
from task_reader.core.location_resolver import LocationResolver
from task_reader.core.models import (
    ActiveMarker,
    ContextWindow,
    ConversationLocation,
    Message,
    TaskMetadata,
)
from task_reader.core.result_cache import CacheSet
from task_reader.utils.formatting import extract_snippet, format_file_size, truncate
from task_reader.utils.logger import log_debug, log_info
from task_reader.utils.performance import timed_operation


class ConversationStore:
    """Read-only access to conversations across all extension installs."""

    def __init__(
        self,
        providers: Sequence[RootProvider] | None = None,
        caches: CacheSet | None = None,
        settings: ReaderSettings | None = None,
        extractor: BoundedArrayExtractor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the store.

        Args:
            providers: Ordered task roots; platform defaults when omitted
            caches: Cache set owned by this store
            settings: Reader settings; the default instance when omitted
            extractor: Message extractor; built from settings when omitted
            sleep: Blocking sleep used between read retries
        """
        self.settings = settings or SettingsManager.get_default()
        if providers is None:
            providers = build_root_providers(extra_roots=self.settings.extra_roots)

        self.caches = caches or CacheSet.create(self.settings.cache_ttl_seconds)
        self.timeout_seconds = self.settings.timeout_seconds
        self.extractor = extractor or BoundedArrayExtractor(
            max_attempts=self.settings.max_attempts,
            base_retry_delay=self.settings.base_retry_delay_seconds,
            sleep=sleep,
        )
        self.resolver = LocationResolver(providers, self.caches.locations)
        self.active_tasks = ActiveTaskRegistry(
            providers,
            self.caches.active_markers,
            max_attempts=self.settings.max_attempts,
            base_retry_delay=self.settings.base_retry_delay_seconds,
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_conversation(
        self, conversation_id: str | None = None
    ) -> tuple[ConversationLocation, ActiveMarker | None]:
        """Resolve an id or sentinel (ACTIVE_A, ACTIVE_B, empty) to a location."""
        task_id, marker = self.active_tasks.resolve_sentinel(conversation_id)
        if task_id is None:
            raise TaskNotFound(
                conversation_id or "active conversation", len(self.resolver.providers)
            )
        return self.resolver.resolve(task_id), marker

    @staticmethod
    def message_file(
        location: ConversationLocation, source: MessageSource = MessageSource.AUTO
    ) -> tuple[Path, RecordFormat] | None:
        """The conversation file a query reads, or None if it does not exist."""
        candidates = {
            MessageSource.UI: [(location.ui_messages_path, RecordFormat.UI)],
            MessageSource.API: [(location.api_history_path, RecordFormat.API)],
            MessageSource.AUTO: [
                (location.ui_messages_path, RecordFormat.UI),
                (location.api_history_path, RecordFormat.API),
            ],
        }[source]

        for path, record_format in candidates:
            if path.is_file():
                return path, record_format
        return None

    # ------------------------------------------------------------------
    # Message queries
    # ------------------------------------------------------------------

    def _query_messages(
        self,
        path: Path,
        limit: int,
        record_format: RecordFormat,
        since: int | None = None,
        search: str | None = None,
    ) -> list[Message]:
        key = ("query", str(path), record_format.value, limit, since, search)
        options = ExtractOptions(limit=limit, since=since, search=search)
        cached = self.caches.messages.get_or_compute(
            key, lambda: tuple(self.extractor.extract(path, options, record_format))
        )
        return list(cached)

    def _load_full_messages(
        self, conversation_id: str, source: MessageSource = MessageSource.AUTO
    ) -> list[Message]:
        location = self.resolver.resolve(conversation_id)
        target = self.message_file(location, source)
        if target is None:
            return []

        path, record_format = target
        cached = self.caches.messages.get_or_compute(
            ("all", str(path), record_format.value),
            lambda: tuple(self.extractor.load_all(path, record_format)),
        )
        return list(cached)

    async def _read_messages(
        self,
        conversation_id: str | None,
        limit: int,
        source: MessageSource,
        since: int | None = None,
        search: str | None = None,
    ) -> list[Message]:
        if limit < 0:
            raise ValueError("limit must not be negative")

        location, _ = self.resolve_conversation(conversation_id)
        target = self.message_file(location, source)
        if target is None:
            log_debug(
                f"No {source.value} message file for {location.conversation_id}"
            )
            return []

        path, record_format = target
        read = functools.partial(
            self._query_messages,
            record_format=record_format,
            since=since,
            search=search,
        )
        with timed_operation(f"read messages {location.conversation_id}"):
            return await read_with_timeout(read, path, limit, self.timeout_seconds)

    async def get_last_n_messages(
        self,
        conversation_id: str | None = None,
        limit: int = DEFAULT_MESSAGE_LIMIT,
        source: MessageSource = MessageSource.AUTO,
    ) -> list[Message]:
        """The most recent ``limit`` messages, oldest first.

        Returns [] if the conversation has no file for the source or the read
        times out. Raises TaskNotFound and ReadFailed.
        """
        return await self._read_messages(conversation_id, limit, source)

    async def get_messages_since(
        self,
        conversation_id: str | None,
        since: int,
        limit: int = DEFAULT_MESSAGE_LIMIT,
        source: MessageSource = MessageSource.AUTO,
    ) -> list[Message]:
        """Messages at or after ``since`` (ms), most recent ``limit`` of them.

        Messages without a timestamp are never excluded by ``since``.
        """
        return await self._read_messages(conversation_id, limit, source, since=since)

    async def search_messages(
        self,
        conversation_id: str | None,
        term: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
        source: MessageSource = MessageSource.AUTO,
    ) -> list[Message]:
        """Most recent messages in one conversation containing ``term``."""
        if not term or not term.strip():
            raise ValueError("term must be a non-empty string")
        return await self._read_messages(conversation_id, limit, source, search=term)

    # ------------------------------------------------------------------
    # Cross-conversation search
    # ------------------------------------------------------------------

    def recent_conversation_ids(self, max_tasks: int) -> list[str]:
        """Most recently active conversations: active markers, then newest ids."""
        ordered: list[str] = []
        for marker in self.active_tasks.get_all():
            if marker.conversation_id not in ordered:
                ordered.append(marker.conversation_id)
        for conversation_id in self.resolver.list_conversation_ids():
            if conversation_id not in ordered:
                ordered.append(conversation_id)
        return ordered[:max_tasks]

    def _conversations_mentioning(self, term: str, max_tasks: int) -> Iterator[str]:
        for conversation_id in self.recent_conversation_ids(max_tasks):
            try:
                location = self.resolver.resolve(conversation_id)
                target = self.message_file(location)
                if target is None:
                    continue
                path, record_format = target
                if self._query_messages(path, 1, record_format, search=term):
                    yield conversation_id
            except (TaskNotFound, ReadFailed) as e:
                log_debug(
                    f"Skipping conversation {conversation_id}", {"error": str(e)}
                )

    def _search_with_context_sync(
        self,
        term: str,
        context_lines: int,
        max_results: int,
        conversation_id: str | None,
        max_tasks_to_search: int,
    ) -> list[ContextWindow]:
        if conversation_id:
            location, _ = self.resolve_conversation(conversation_id)
            candidates: Iterator[str] = iter([location.conversation_id])
        else:
            candidates = self._conversations_mentioning(term, max_tasks_to_search)

        return search_with_context(
            candidates, self._load_full_messages, term, context_lines, max_results
        )

    async def search_with_context(
        self,
        term: str,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        max_results: int = DEFAULT_CONTEXT_RESULTS,
        conversation_id: str | None = None,
        max_tasks_to_search: int = DEFAULT_TASKS_TO_SEARCH,
    ) -> list[ContextWindow]:
        """Context windows around the first match of ``term`` per conversation.

        Raises ReadTimeoutError when the whole search exceeds the timeout.
        """
        with timed_operation("search_with_context"):
            return await run_with_timeout(
                functools.partial(
                    self._search_with_context_sync,
                    term,
                    context_lines,
                    max_results,
                    conversation_id,
                    max_tasks_to_search,
                ),
                self.timeout_seconds,
                "search_with_context",
            )

    def _search_conversations_sync(
        self, term: str, limit: int, max_tasks_to_search: int
    ) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        for conversation_id in self._conversations_mentioning(term, max_tasks_to_search):
            location = self.resolver.resolve(conversation_id)
            target = self.message_file(location)
            if target is None:
                continue
            path, record_format = target
            matches = self._query_messages(path, limit, record_format, search=term)
            for message in reversed(matches):
                results.append(
                    {
                        "task_id": conversation_id,
                        "timestamp": message.timestamp,
                        "role": message.role,
                        "snippet": extract_snippet(message.content, term),
                    }
                )
                if len(results) >= limit:
                    return results
        return results

    async def search_conversations(
        self,
        term: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
        max_tasks_to_search: int = DEFAULT_TASKS_TO_SEARCH,
    ) -> list[dict[str, Any]]:
        """Matching snippets across recent conversations, newest first."""
        if not term or not term.strip():
            raise ValueError("term must be a non-empty string")
        with timed_operation("search_conversations"):
            return await run_with_timeout(
                functools.partial(
                    self._search_conversations_sync, term, limit, max_tasks_to_search
                ),
                self.timeout_seconds,
                "search_conversations",
            )

    # ------------------------------------------------------------------
    # Task metadata
    # ------------------------------------------------------------------

    def get_task(self, conversation_id: str | None) -> TaskMetadata:
        """Filesystem metadata of one conversation."""
        location, _ = self.resolve_conversation(conversation_id)
        stat = location.task_directory.stat()
        created = getattr(stat, "st_birthtime", stat.st_ctime)

        sizes = {}
        for key, path in (
            ("api", location.api_history_path),
            ("ui", location.ui_messages_path),
        ):
            try:
                sizes[key] = path.stat().st_size if path.is_file() else 0
            except OSError:
                sizes[key] = 0

        task_id = location.conversation_id
        return TaskMetadata(
            task_id=task_id,
            timestamp=int(task_id) if task_id.isdigit() else int(created * 1000),
            created=datetime.fromtimestamp(created, tz=timezone.utc).isoformat(),
            modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
            has_api_conversation=location.api_history_path.is_file(),
            has_ui_messages=location.ui_messages_path.is_file(),
            api_conversation_size=sizes["api"],
            ui_messages_size=sizes["ui"],
            variant=location.variant,
            extension_type=location.variant_label,
            root_directory=location.root_directory,
            sizes_formatted={k: format_file_size(v) for k, v in sizes.items()},
        )

    def list_recent_tasks(
        self, limit: int = DEFAULT_RECENT_TASKS_LIMIT
    ) -> list[TaskMetadata]:
        """Metadata of the newest conversations across all roots."""
        tasks = []
        for conversation_id in self.resolver.list_conversation_ids()[:limit]:
            try:
                tasks.append(self.get_task(conversation_id))
            except (TaskNotFound, OSError) as e:
                log_debug(f"Skipping task {conversation_id}", {"error": str(e)})
        return tasks

    def get_conversation_summary(
        self,
        conversation_id: str | None,
        source: MessageSource = MessageSource.AUTO,
    ) -> dict[str, Any]:
        """Counts, preview, samples and content analysis of a conversation."""
        with timed_operation("get_conversation_summary"):
            location, marker = self.resolve_conversation(conversation_id)
            metadata = self.get_task(location.conversation_id)
            messages = self._load_full_messages(location.conversation_id, source)
            analysis = analyze_messages(messages)

        timestamps = [m.timestamp for m in messages if m.timestamp is not None]

        def sample(message: Message | None) -> dict[str, Any] | None:
            if message is None:
                return None
            return {
                "role": message.role,
                "timestamp": message.timestamp,
                "content": truncate(message.content, SUMMARY_SAMPLE_CHARS),
            }

        summary = {
            "task": metadata.to_dict(),
            "active_label": marker.label if marker else None,
            "total_messages": len(messages),
            "human_messages": analysis["human_messages"],
            "assistant_messages": analysis["assistant_messages"],
            "duration_ms": max(timestamps) - min(timestamps) if timestamps else None,
            "first_message": sample(messages[0] if messages else None),
            "last_message": sample(messages[-1] if messages else None),
            "preview": [m.to_dict() for m in messages[-SUMMARY_PREVIEW_COUNT:]],
            "analysis": analysis,
        }
        log_info(
            f"Summarized conversation {location.conversation_id}",
            {"messages": len(messages)},
        )
        return summary

    def find_code_discussions(
        self,
        conversation_id: str | None,
        filename: str | None = None,
        source: MessageSource = MessageSource.AUTO,
    ) -> list[dict[str, Any]]:
        """Messages containing code blocks or source file mentions."""
        location, _ = self.resolve_conversation(conversation_id)
        messages = self._load_full_messages(location.conversation_id, source)
        return [
            {**message.to_dict(), "index": index}
            for index, message in enumerate(messages)
            if is_code_discussion(message, filename)
        ]

    def recover_crashed_chat(
        self,
        conversation_id: str | None,
        max_length: int = DEFAULT_RECOVERY_SUMMARY_CHARS,
        include_code_snippets: bool = True,
        source: MessageSource = MessageSource.API,
    ) -> dict[str, Any]:
        """Recovery context for a conversation that stopped mid-task.

        The file is parsed normally first. When that yields nothing from a
        non-empty file, every intact record object is salvaged instead, so a
        history cut off mid-write still recovers the messages before the cut.
        ``context`` holds the result rendered as text for a new conversation.
        """
        if max_length < 1:
            raise ValueError("max_length must be positive")

        with timed_operation("recover_crashed_chat"):
            location, marker = self.resolve_conversation(conversation_id)
            target = self.message_file(location, source)

            messages: list[Message] = []
            strategy = "none"
            if target is not None:
                path, record_format = target
                messages = self._load_full_messages(location.conversation_id, source)
                strategy = "parsed"
                if not messages and path.stat().st_size > 0:
                    salvaged = self.extractor.salvage_all(path, record_format)
                    if salvaged:
                        messages = salvaged
                        strategy = "salvaged"

            recovery = recover_conversation(messages, max_length, include_code_snippets)

        recovery.update(
            {
                "task_id": location.conversation_id,
                "active_label": marker.label if marker else None,
                "source_file": str(target[0]) if target else None,
                "recovery_strategy": strategy,
            }
        )
        recovery["context"] = format_recovered_context(recovery)
        log_info(
            f"Recovered conversation {location.conversation_id}",
            {"messages": len(messages), "strategy": strategy},
        )
        return recovery

    # ------------------------------------------------------------------
    # Active conversations
    # ------------------------------------------------------------------

    def get_active_task(self, conversation_id: str | None = None) -> dict[str, Any] | None:
        """The active marker a sentinel refers to, with task metadata.

        Returns None when no marker matches. ``task`` is None when the marker
        points to a conversation that no longer exists.
        """
        task_id, marker = self.active_tasks.resolve_sentinel(conversation_id)
        if task_id is None:
            return None

        try:
            task = self.get_task(task_id).to_dict()
        except TaskNotFound:
            task = None

        return {"marker": marker.to_dict() if marker else None, "task": task}

    def get_all_active_tasks(self, label: str | None = None) -> list[ActiveMarker]:
        """All active markers, most recently activated first."""
        return self.active_tasks.get_all(label)

    def clear_caches(self) -> None:
        self.caches.clear()
