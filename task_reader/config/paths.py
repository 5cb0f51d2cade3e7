"""
Platform-specific task root locations.

Every root provider is one OS convention crossed with one extension variant.
The order of the returned list is the search order used by the resolver.
"""

import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from task_reader.config.constants import (
    ACTIVE_TASKS_FILE_NAME,
    ENHANCED_EXTENSION_ID,
    STANDARD_EXTENSION_ID,
    TASK_ROOTS_ENV_VAR,
    TASKS_DIR_NAME,
)
from task_reader.config.enums import Variant

# Variant search order within one OS convention
VARIANT_ORDER: tuple[tuple[Variant, str], ...] = (
    (Variant.ENHANCED, ENHANCED_EXTENSION_ID),
    (Variant.STANDARD, STANDARD_EXTENSION_ID),
)


@dataclass(frozen=True)
class RootProvider:
    """A directory that may contain conversation task directories."""

    tasks_root: Path
    variant: Variant
    source: str

    @property
    def extension_root(self) -> Path:
        return self.tasks_root.parent

    @property
    def active_tasks_file(self) -> Path:
        return self.extension_root / ACTIVE_TASKS_FILE_NAME


def infer_variant(path: Path) -> Variant:
    """Guess the variant of an explicitly configured root from its path."""
    if ENHANCED_EXTENSION_ID in path.parts:
        return Variant.ENHANCED
    return Variant.STANDARD


def get_global_storage_dirs(
    platform: str, home: Path, environ: Mapping[str, str]
) -> list[tuple[str, Path]]:
    """Editor global storage directories for a platform, in search order."""
    if platform == "win32":
        appdata = environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return [("win32", base / "Code" / "User" / "globalStorage")]

    if platform == "darwin":
        return [
            (
                "darwin",
                home
                / "Library"
                / "Application Support"
                / "Code"
                / "User"
                / "globalStorage",
            )
        ]

    return [
        ("linux", home / ".config" / "Code" / "User" / "globalStorage"),
        ("linux-remote", home / ".vscode-server" / "data" / "User" / "globalStorage"),
    ]


def build_root_providers(
    platform: str | None = None,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
    extra_roots: Iterable[Path] = (),
) -> list[RootProvider]:
    """Build the ordered root provider list for the running platform.

    Order: roots from the TASK_READER_TASK_ROOTS environment variable, then
    configured extra roots, then each platform storage directory with the
    enhanced variant ahead of the standard one, then the legacy
    ``~/.vscode/<extension>`` directories.
    """
    platform = platform or sys.platform
    home = home or Path.home()
    environ = os.environ if environ is None else environ

    providers: list[RootProvider] = []

    env_roots = environ.get(TASK_ROOTS_ENV_VAR, "")
    for raw in env_roots.split(os.pathsep):
        if raw.strip():
            path = Path(raw.strip()).expanduser()
            providers.append(RootProvider(path, infer_variant(path), "env"))

    for path in extra_roots:
        providers.append(RootProvider(Path(path), infer_variant(Path(path)), "settings"))

    for source, storage_dir in get_global_storage_dirs(platform, home, environ):
        for variant, extension_id in VARIANT_ORDER:
            providers.append(
                RootProvider(storage_dir / extension_id / TASKS_DIR_NAME, variant, source)
            )

    for variant, extension_id in VARIANT_ORDER:
        providers.append(
            RootProvider(
                home / ".vscode" / extension_id / TASKS_DIR_NAME, variant, "legacy"
            )
        )

    # Keep the first occurrence of any duplicated directory
    seen: set[Path] = set()
    unique: list[RootProvider] = []
    for provider in providers:
        if provider.tasks_root in seen:
            continue
        seen.add(provider.tasks_root)
        unique.append(provider)

    return unique
