"""
Resolve conversation identifiers to on-disk locations.

Roots are searched in the fixed order of the injected provider list and the
first root containing ``<root>/<conversation_id>/`` wins. Hits are cached;
misses are not, so a conversation created after a failed lookup is found on
the next call.
"""

from collections.abc import Sequence

from task_reader.config.paths import RootProvider
from task_reader.core.exceptions import TaskNotFound
from task_reader.core.models import ConversationLocation
from task_reader.core.result_cache import TTLCache
from task_reader.utils.logger import log_debug


class LocationResolver:
    """Locate conversations across an ordered list of task roots."""

    def __init__(self, providers: Sequence[RootProvider], cache: TTLCache):
        self._providers = tuple(providers)
        self._cache = cache

    @property
    def providers(self) -> tuple[RootProvider, ...]:
        """Root providers in search order."""
        return self._providers

    def existing_providers(self) -> list[RootProvider]:
        """Providers whose tasks directory currently exists."""
        return [p for p in self._providers if p.tasks_root.is_dir()]

    def resolve(self, conversation_id: str) -> ConversationLocation:
        """Find the directory holding a conversation.

        Raises:
            ValueError: conversation_id is empty or contains a path separator
            TaskNotFound: no root contains the conversation
        """
        validate_conversation_id(conversation_id)
        return self._cache.get_or_compute(
            conversation_id, lambda: self._search(conversation_id)
        )

    def _search(self, conversation_id: str) -> ConversationLocation:
        for provider in self._providers:
            if (provider.tasks_root / conversation_id).is_dir():
                log_debug(
                    f"Resolved conversation {conversation_id}",
                    {"root": str(provider.tasks_root), "source": provider.source},
                )
                return ConversationLocation(
                    conversation_id=conversation_id,
                    root_directory=provider.tasks_root,
                    variant=provider.variant,
                )

        raise TaskNotFound(conversation_id, len(self._providers))

    def list_conversation_ids(self) -> list[str]:
        """All conversation ids across roots, newest first.

        An id present under several roots is listed once. Only numeric
        directory names are considered conversations.
        """
        seen: set[str] = set()
        for provider in self.existing_providers():
            try:
                entries = list(provider.tasks_root.iterdir())
            except OSError as e:
                log_debug(
                    f"Cannot list {provider.tasks_root}", {"error": str(e)}
                )
                continue

            for entry in entries:
                if entry.name.isdigit() and entry.is_dir():
                    seen.add(entry.name)

        return sorted(seen, key=int, reverse=True)


def validate_conversation_id(conversation_id: str) -> None:
    """Reject ids that could not name a single task directory."""
    if not isinstance(conversation_id, str) or not conversation_id.strip():
        raise ValueError("conversation_id must be a non-empty string")
    if "/" in conversation_id or "\\" in conversation_id or conversation_id in (
        ".",
        "..",
    ):
        raise ValueError(f"Invalid conversation_id: {conversation_id!r}")
