"""
Shared fixtures: on-disk task roots, conversation writers and a store wired
to a controllable clock.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from task_reader.config.constants import (
    ACTIVE_TASKS_FILE_NAME,
    API_HISTORY_FILE_NAME,
    ENHANCED_EXTENSION_ID,
    STANDARD_EXTENSION_ID,
    TASKS_DIR_NAME,
    UI_MESSAGES_FILE_NAME,
)
from task_reader.config.enums import Variant
from task_reader.config.paths import RootProvider
from task_reader.config.settings import ReaderSettings
from task_reader.core.conversation_store import ConversationStore
from task_reader.core.result_cache import CacheSet

BASE_TIMESTAMP = 1_700_000_000_000


class FakeClock:
    """Manually advanced time source for cache expiry tests."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_api_records(
    count: int, start: int = BASE_TIMESTAMP, step: int = 1_000
) -> list[dict[str, Any]]:
    """Alternating user/assistant API history records."""
    return [
        {
            "role": "user" if i % 2 == 0 else "assistant",
            "content": [{"type": "text", "text": f"api message {i}"}],
            "timestamp": start + i * step,
        }
        for i in range(count)
    ]


def build_ui_records(
    count: int, start: int = BASE_TIMESTAMP, step: int = 1_000
) -> list[dict[str, Any]]:
    """Alternating user text / assistant UI records."""
    return [
        {
            "ts": start + i * step,
            "type": "say",
            "say": "text" if i % 2 == 0 else "completion_result",
            "text": f"ui message {i}",
        }
        for i in range(count)
    ]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api_records() -> Callable[..., list[dict[str, Any]]]:
    return build_api_records


@pytest.fixture
def ui_records() -> Callable[..., list[dict[str, Any]]]:
    return build_ui_records


@pytest.fixture
def enhanced_provider(tmp_path: Path) -> RootProvider:
    root = tmp_path / "globalStorage" / ENHANCED_EXTENSION_ID / TASKS_DIR_NAME
    root.mkdir(parents=True)
    return RootProvider(root, Variant.ENHANCED, "test")


@pytest.fixture
def standard_provider(tmp_path: Path) -> RootProvider:
    root = tmp_path / "globalStorage" / STANDARD_EXTENSION_ID / TASKS_DIR_NAME
    root.mkdir(parents=True)
    return RootProvider(root, Variant.STANDARD, "test")


@pytest.fixture
def providers(
    enhanced_provider: RootProvider, standard_provider: RootProvider
) -> list[RootProvider]:
    return [enhanced_provider, standard_provider]


@pytest.fixture
def write_conversation(
    standard_provider: RootProvider,
) -> Callable[..., Path]:
    """Create a task directory holding the given conversation files.

    ``api`` / ``ui`` are JSON-serialized; ``raw_api`` / ``raw_ui`` are written
    verbatim. Defaults to the standard root.
    """

    def _write(
        conversation_id: str,
        api: Any = None,
        ui: Any = None,
        raw_api: str | None = None,
        raw_ui: str | None = None,
        provider: RootProvider | None = None,
    ) -> Path:
        task_dir = (provider or standard_provider).tasks_root / conversation_id
        task_dir.mkdir(parents=True, exist_ok=True)
        if api is not None:
            raw_api = json.dumps(api, indent=2)
        if ui is not None:
            raw_ui = json.dumps(ui, indent=2)
        if raw_api is not None:
            (task_dir / API_HISTORY_FILE_NAME).write_text(raw_api, encoding="utf-8")
        if raw_ui is not None:
            (task_dir / UI_MESSAGES_FILE_NAME).write_text(raw_ui, encoding="utf-8")
        return task_dir

    return _write


@pytest.fixture
def write_active_tasks() -> Callable[..., Path]:
    """Write an active_tasks.json document next to a provider's tasks root."""

    def _write(
        provider: RootProvider,
        markers: list[dict[str, Any]] | None = None,
        raw: str | None = None,
    ) -> Path:
        path = provider.extension_root / ACTIVE_TASKS_FILE_NAME
        if raw is None:
            raw = json.dumps({"activeTasks": markers or []}, indent=2)
        path.write_text(raw, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fast_settings() -> ReaderSettings:
    return ReaderSettings.from_dict(
        {"reader": {"base_retry_delay_ms": 0, "timeout_ms": 5_000}}
    )


@pytest.fixture
def store(
    providers: list[RootProvider],
    fake_clock: FakeClock,
    fast_settings: ReaderSettings,
) -> ConversationStore:
    return ConversationStore(
        providers=providers,
        caches=CacheSet.create(clock=fake_clock),
        settings=fast_settings,
        sleep=lambda seconds: None,
    )
