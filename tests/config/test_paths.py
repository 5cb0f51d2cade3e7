"""
Tests for platform task root providers.
"""

import os
from pathlib import Path

from task_reader.config.constants import (
    ENHANCED_EXTENSION_ID,
    STANDARD_EXTENSION_ID,
    TASK_ROOTS_ENV_VAR,
)
from task_reader.config.enums import Variant
from task_reader.config.paths import (
    RootProvider,
    build_root_providers,
    get_global_storage_dirs,
    infer_variant,
)

HOME = Path("/home/tester")


class TestBuildRootProviders:
    """Test build_root_providers."""

    def test_linux_order(self):
        providers = build_root_providers("linux", HOME, environ={})

        storage = HOME / ".config" / "Code" / "User" / "globalStorage"
        remote = HOME / ".vscode-server" / "data" / "User" / "globalStorage"
        assert [p.tasks_root for p in providers] == [
            storage / ENHANCED_EXTENSION_ID / "tasks",
            storage / STANDARD_EXTENSION_ID / "tasks",
            remote / ENHANCED_EXTENSION_ID / "tasks",
            remote / STANDARD_EXTENSION_ID / "tasks",
            HOME / ".vscode" / ENHANCED_EXTENSION_ID / "tasks",
            HOME / ".vscode" / STANDARD_EXTENSION_ID / "tasks",
        ]
        assert [p.variant for p in providers[:2]] == [Variant.ENHANCED, Variant.STANDARD]
        assert providers[-1].source == "legacy"

    def test_darwin_storage(self):
        providers = build_root_providers("darwin", HOME, environ={})

        assert providers[0].tasks_root == (
            HOME
            / "Library"
            / "Application Support"
            / "Code"
            / "User"
            / "globalStorage"
            / ENHANCED_EXTENSION_ID
            / "tasks"
        )
        assert providers[0].source == "darwin"

    def test_windows_uses_appdata(self):
        dirs = get_global_storage_dirs(
            "win32", HOME, {"APPDATA": "/c/Users/tester/AppData/Roaming"}
        )
        assert dirs == [
            ("win32", Path("/c/Users/tester/AppData/Roaming/Code/User/globalStorage"))
        ]

    def test_windows_without_appdata(self):
        dirs = get_global_storage_dirs("win32", HOME, {})
        assert dirs[0][1] == HOME / "AppData" / "Roaming" / "Code" / "User" / "globalStorage"

    def test_explicit_roots_come_first(self, tmp_path):
        env_root = tmp_path / "env" / ENHANCED_EXTENSION_ID / "tasks"
        extra_root = tmp_path / "extra"
        providers = build_root_providers(
            "linux",
            HOME,
            environ={TASK_ROOTS_ENV_VAR: f"{env_root}{os.pathsep} "},
            extra_roots=[extra_root],
        )

        assert providers[0] == RootProvider(env_root, Variant.ENHANCED, "env")
        assert providers[1] == RootProvider(extra_root, Variant.STANDARD, "settings")
        assert len(providers) == 8

    def test_duplicate_roots_are_dropped(self):
        duplicate = HOME / ".vscode" / STANDARD_EXTENSION_ID / "tasks"
        providers = build_root_providers(
            "linux", HOME, environ={}, extra_roots=[duplicate]
        )

        roots = [p.tasks_root for p in providers]
        assert roots.count(duplicate) == 1
        assert providers[0].source == "settings"


class TestRootProvider:
    """Test RootProvider helpers."""

    def test_active_tasks_file_sits_next_to_tasks(self):
        provider = RootProvider(
            HOME / "storage" / STANDARD_EXTENSION_ID / "tasks", Variant.STANDARD, "x"
        )
        assert provider.extension_root == HOME / "storage" / STANDARD_EXTENSION_ID
        assert provider.active_tasks_file == (
            HOME / "storage" / STANDARD_EXTENSION_ID / "active_tasks.json"
        )

    def test_infer_variant(self):
        assert infer_variant(Path("/x") / ENHANCED_EXTENSION_ID / "tasks") is Variant.ENHANCED
        assert infer_variant(Path("/x/tasks")) is Variant.STANDARD
