"""Core constants and configuration values.

Limits, timeouts, on-disk names and environment overrides for the
conversation store.
"""

import os
from pathlib import Path
from typing import Final

# ============================================================================
# ENVIRONMENT
# ============================================================================

TASK_READER_HOME = Path(
    os.getenv("TASK_READER_HOME", str(Path.home() / ".task-reader"))
).expanduser()
TASK_READER_LOG_DIR = os.getenv("TASK_READER_LOG_DIR", "")
DEBUG_LOGGING = bool(os.getenv("TASK_READER_DEBUG_LOGGING"))

# Extra task roots, separated by os.pathsep, searched before platform roots
TASK_ROOTS_ENV_VAR: Final[str] = "TASK_READER_TASK_ROOTS"
SETTINGS_FILE_ENV_VAR: Final[str] = "TASK_READER_SETTINGS_FILE"
SETTINGS_FILE_NAME: Final[str] = "task-reader.yaml"
SETTINGS_FILE_PATH = Path(
    os.getenv(
        SETTINGS_FILE_ENV_VAR, str(TASK_READER_HOME / "config" / SETTINGS_FILE_NAME)
    )
).expanduser()

# ============================================================================
# EXTENSION LAYOUT
# ============================================================================

STANDARD_EXTENSION_ID: Final[str] = "saoudrizwan.claude-dev"
ENHANCED_EXTENSION_ID: Final[str] = "custom.claude-dev-ultra"
STANDARD_EXTENSION_LABEL: Final[str] = "Cline Regular"
ENHANCED_EXTENSION_LABEL: Final[str] = "Cline Ultra"

TASKS_DIR_NAME: Final[str] = "tasks"
API_HISTORY_FILE_NAME: Final[str] = "api_conversation_history.json"
UI_MESSAGES_FILE_NAME: Final[str] = "ui_messages.json"
ACTIVE_TASKS_FILE_NAME: Final[str] = "active_tasks.json"
ACTIVE_TASKS_KEY: Final[str] = "activeTasks"

# Sentinel conversation ids
ACTIVE_SENTINEL_A: Final[str] = "ACTIVE_A"
ACTIVE_SENTINEL_B: Final[str] = "ACTIVE_B"
ACTIVE_LABEL_A: Final[str] = "A"
ACTIVE_LABEL_B: Final[str] = "B"
SENTINEL_LABELS: Final[dict[str, str]] = {
    ACTIVE_SENTINEL_A: ACTIVE_LABEL_A,
    ACTIVE_SENTINEL_B: ACTIVE_LABEL_B,
}

# ============================================================================
# CACHE AND READER
# ============================================================================

CACHE_TTL_SECONDS: Final[float] = 30.0
READ_MAX_ATTEMPTS: Final[int] = 3
READ_BASE_RETRY_DELAY_SECONDS: Final[float] = 0.1  # 100ms
READ_TIMEOUT_SECONDS: Final[float] = 5.0

# ============================================================================
# QUERY LIMITS
# ============================================================================

DEFAULT_MESSAGE_LIMIT: Final[int] = 50
MAX_MESSAGE_LIMIT: Final[int] = 100
DEFAULT_SEARCH_LIMIT: Final[int] = 20
MAX_SEARCH_LIMIT: Final[int] = 50
DEFAULT_TASKS_TO_SEARCH: Final[int] = 10
MAX_TASKS_TO_SEARCH: Final[int] = 20
DEFAULT_RECENT_TASKS_LIMIT: Final[int] = 10
MAX_RECENT_TASKS_LIMIT: Final[int] = 50
DEFAULT_CONTEXT_LINES: Final[int] = 2
MAX_CONTEXT_LINES: Final[int] = 10
DEFAULT_CONTEXT_RESULTS: Final[int] = 3
MAX_CONTEXT_RESULTS: Final[int] = 10

# Characters of surrounding text kept on each side of a search snippet
SNIPPET_CONTEXT_CHARS: Final[int] = 100
SUMMARY_PREVIEW_COUNT: Final[int] = 10
SUMMARY_SAMPLE_CHARS: Final[int] = 200
SUMMARY_KEYWORD_COUNT: Final[int] = 10
MAX_QUERY_LENGTH: Final[int] = 1000

# Crash recovery
DEFAULT_RECOVERY_SUMMARY_CHARS: Final[int] = 2000
MAX_RECOVERY_SUMMARY_CHARS: Final[int] = 10000
RECOVERY_RECENT_MESSAGES: Final[int] = 15
RECOVERY_MESSAGE_CHARS: Final[int] = 500
RECOVERY_MAX_DECISION_POINTS: Final[int] = 10
RECOVERY_MAX_ACTIVE_FILES: Final[int] = 10
RECOVERY_TIMELINE_SEGMENTS: Final[int] = 5

# ============================================================================
# CONVERSATION ANALYSIS
# ============================================================================

CODE_FILE_EXTENSIONS: Final[tuple[str, ...]] = (
    ".js",
    ".ts",
    ".py",
    ".java",
    ".c",
    ".cpp",
    ".html",
    ".css",
)
FILE_WRITE_TOOLS: Final[frozenset[str]] = frozenset(
    {"write_to_file", "replace_in_file"}
)
COMMAND_TOOLS: Final[frozenset[str]] = frozenset({"execute_command"})

KEYWORD_MIN_LENGTH: Final[int] = 4
KEYWORD_STOP_WORDS: Final[frozenset[str]] = frozenset(
    {
        "about",
        "after",
        "also",
        "been",
        "before",
        "could",
        "does",
        "each",
        "from",
        "have",
        "here",
        "into",
        "just",
        "like",
        "make",
        "more",
        "need",
        "only",
        "other",
        "should",
        "some",
        "than",
        "that",
        "them",
        "then",
        "there",
        "these",
        "they",
        "this",
        "those",
        "were",
        "what",
        "when",
        "where",
        "which",
        "will",
        "with",
        "would",
        "your",
    }
)
