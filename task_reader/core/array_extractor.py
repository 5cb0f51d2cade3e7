"""
Bounded extraction of the most recent matching messages from a JSON array.

Two strategies produce the same result:

- streaming (ijson): walks the array item by item and retains at most
  ``limit`` matching messages in a min-heap ordered by timestamp, so memory
  stays bounded regardless of file size;
- direct: reads the whole file (with retries), parses it (with repair),
  then filters, sorts and slices.

Streaming is tried first; any failure falls back to the direct strategy.
"""

import heapq
import itertools
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import ijson

from task_reader.config.constants import (
    READ_BASE_RETRY_DELAY_SECONDS,
    READ_MAX_ATTEMPTS,
)
from task_reader.config.enums import RecordFormat
from task_reader.core.file_reader import read_with_retry
from task_reader.core.json_repair import parse_with_repair, salvage_objects
from task_reader.core.message_standardizer import (
    standardize_record,
    unwrap_message_array,
)
from task_reader.core.models import Message
from task_reader.utils.logger import log_debug, log_info, log_warning

WRAPPED_ARRAY_KEYS = ("messages", "conversation")
SALVAGE_KEYS = {
    RecordFormat.API: ("role",),
    RecordFormat.UI: ("ts", "say", "type"),
}


@dataclass(frozen=True)
class ExtractOptions:
    """Filter and bound for one extraction."""

    limit: int
    since: int | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError("limit must not be negative")

    def matches(self, message: Message) -> bool:
        """Apply the since and search filters, in that order."""
        if (
            self.since is not None
            and message.timestamp is not None
            and message.timestamp < self.since
        ):
            return False
        if self.search:
            return self.search.casefold() in message.content.casefold()
        return True


class BoundedArrayExtractor:
    """Extract the most recent N matching messages from a conversation file."""

    def __init__(
        self,
        max_attempts: int = READ_MAX_ATTEMPTS,
        base_retry_delay: float = READ_BASE_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        streaming_enabled: bool = True,
    ):
        self.max_attempts = max_attempts
        self.base_retry_delay = base_retry_delay
        self.sleep = sleep
        self.streaming_enabled = streaming_enabled

    def extract(
        self,
        path: Path,
        options: ExtractOptions,
        record_format: RecordFormat = RecordFormat.API,
    ) -> list[Message]:
        """Return up to ``options.limit`` matching messages, oldest first.

        The result holds the most recent matches by timestamp; messages
        without a timestamp sort as 0 and keep their file order.
        """
        if options.limit == 0:
            return []

        if self.streaming_enabled:
            try:
                return self.stream_extract(path, options, record_format)
            except Exception as e:
                log_debug(
                    "Streaming extraction failed, falling back to direct read",
                    {"path": str(path), "error": f"{type(e).__name__}: {e}"},
                )

        return self.direct_extract(path, options, record_format)

    def stream_extract(
        self,
        path: Path,
        options: ExtractOptions,
        record_format: RecordFormat = RecordFormat.API,
    ) -> list[Message]:
        """Streaming strategy. Raises on I/O or JSON syntax errors."""
        heap: list[tuple[int, int, Message]] = []
        sequence = itertools.count()

        with open(path, "rb") as f:
            for record in iter_array_records(f):
                message = standardize_record(record, record_format)
                if message is None or not options.matches(message):
                    continue

                entry = (message.sort_key, next(sequence), message)
                if len(heap) < options.limit:
                    heapq.heappush(heap, entry)
                else:
                    heapq.heappushpop(heap, entry)

        return [message for _, _, message in sorted(heap)]

    def direct_extract(
        self,
        path: Path,
        options: ExtractOptions,
        record_format: RecordFormat = RecordFormat.API,
    ) -> list[Message]:
        """Direct strategy. Raises ReadFailed; degrades to [] on bad JSON."""
        if options.limit == 0:
            return []

        messages = [
            message
            for message in self.load_all(path, record_format)
            if options.matches(message)
        ]
        messages.sort(key=lambda message: message.sort_key)
        return messages[-options.limit :]

    def load_all(
        self, path: Path, record_format: RecordFormat = RecordFormat.API
    ) -> list[Message]:
        """Read and standardize every valid record, in file order."""
        text = read_with_retry(
            path, self.max_attempts, self.base_retry_delay, sleep=self.sleep
        )
        data = parse_with_repair(text, expected_key=None, source=str(path))
        records = unwrap_message_array(data)
        if records is None:
            if data is not None:
                log_warning(
                    "Conversation file holds no message array", {"path": str(path)}
                )
            return []

        messages: list[Message] = []
        dropped = 0
        for record in records:
            message = standardize_record(record, record_format)
            if message is None:
                dropped += 1
                continue
            messages.append(message)

        if dropped:
            log_debug(
                f"Dropped {dropped} invalid record(s)",
                {"path": str(path), "format": record_format.value},
            )
        return messages

    def salvage_all(
        self, path: Path, record_format: RecordFormat = RecordFormat.API
    ) -> list[Message]:
        """Standardize the records still intact in a damaged file.

        Unlike ``load_all`` this ignores the document structure and keeps
        every complete record object, so a file truncated mid-write still
        yields the messages written before the cut.
        """
        text = read_with_retry(
            path, self.max_attempts, self.base_retry_delay, sleep=self.sleep
        )
        messages = []
        for record in salvage_objects(text, SALVAGE_KEYS[record_format]):
            message = standardize_record(record, record_format)
            if message is not None:
                messages.append(message)

        log_info(
            f"Salvaged {len(messages)} message(s)",
            {"path": str(path), "format": record_format.value},
        )
        return messages


def _first_significant_byte(f: BinaryIO) -> bytes:
    """Peek at the first non-whitespace byte, leaving the file rewound."""
    first = b""
    while True:
        chunk = f.read(1)
        if not chunk or not chunk.isspace():
            first = chunk
            break
    f.seek(0)
    return first


def _wrapped_array_key(f: BinaryIO) -> str | None:
    """Name the top-level key holding the message array, scanning events only.

    ``messages`` wins over ``conversation`` whenever its value is an array,
    even an empty one; keys whose value is not an array are ignored.
    """
    arrays: set[str] = set()
    pending_key = None

    for prefix, event, value in ijson.parse(f, use_float=True):
        if prefix == "" and event == "map_key":
            pending_key = value if value in WRAPPED_ARRAY_KEYS else None
            continue
        if pending_key is not None and prefix == pending_key:
            if event == "start_array":
                if pending_key == WRAPPED_ARRAY_KEYS[0]:
                    return pending_key
                arrays.add(pending_key)
            pending_key = None

    for key in WRAPPED_ARRAY_KEYS:
        if key in arrays:
            return key
    return None


def iter_array_records(f: BinaryIO) -> Iterator[Any]:
    """Stream the records of a top-level or wrapped JSON message array.

    Raises ValueError when the document is neither an array nor an object.
    Syntax errors surface from ijson as they are reached.
    """
    first = _first_significant_byte(f)

    if first == b"[":
        yield from ijson.items(f, "item", use_float=True)
        return

    if first == b"{":
        key = _wrapped_array_key(f)
        f.seek(0)
        if key is not None:
            yield from ijson.items(f, f"{key}.item", use_float=True)
        return

    raise ValueError("document is not a JSON array or object")
