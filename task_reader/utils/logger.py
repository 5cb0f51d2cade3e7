"""
JSON-lines logging for conversation reads.

Each level gets its own file, ``<TASK_READER_LOG_DIR>/<level>.log``, one JSON
object per line with ``timestamp``, ``level``, ``message`` and, when given,
``data`` (task ids, paths, error text). Logging is off unless
``TASK_READER_LOG_DIR`` is set, and debug lines additionally need
``TASK_READER_DEBUG_LOGGING``. The host process owns stdout and stderr, so
nothing is ever printed.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from task_reader.config.constants import DEBUG_LOGGING, TASK_READER_LOG_DIR


def _format_entry(level: str, message: str, data: dict[str, Any] | None) -> str:
    entry: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "message": message,
    }
    if data:
        entry["data"] = data
    # Paths, enums and exceptions in data are written with str()
    return json.dumps(entry, default=str)


def write_log(level: str, message: str, data: dict[str, Any] | None = None) -> None:
    """Append one entry to the level's log file, if logging is configured.

    A log directory that cannot be created or written is ignored; a failed
    log line never fails the read that produced it.
    """
    if not TASK_READER_LOG_DIR:
        return

    logs_dir = Path(TASK_READER_LOG_DIR)
    line = _format_entry(level, message, data)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with open(logs_dir / f"{level}.log", "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        return


def log_debug(message: str, data: dict[str, Any] | None = None) -> None:
    """Per-file details: fallbacks taken, records dropped, cache misses."""
    if DEBUG_LOGGING:
        write_log("debug", message, data)


def log_info(message: str, data: dict[str, Any] | None = None) -> None:
    write_log("info", message, data)


def log_warning(message: str, data: dict[str, Any] | None = None) -> None:
    """Degraded results, such as an unparseable file read as empty."""
    write_log("warning", message, data)


def log_error(message: str, data: dict[str, Any] | None = None) -> None:
    write_log("error", message, data)
