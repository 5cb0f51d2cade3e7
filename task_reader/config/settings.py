"""
Reader settings for the conversation store.
Optional YAML overrides layered on top of the built-in constants.
"""

from pathlib import Path
from typing import Any

import yaml

from task_reader.config.constants import (
    CACHE_TTL_SECONDS,
    READ_BASE_RETRY_DELAY_SECONDS,
    READ_MAX_ATTEMPTS,
    READ_TIMEOUT_SECONDS,
    SETTINGS_FILE_PATH,
)
from task_reader.utils.logger import log_debug, log_error, log_warning

# key path -> (accepted types, minimum, default)
SETTINGS_SCHEMA: dict[str, tuple[tuple[type, ...], float | None, Any]] = {
    "cache.ttl_seconds": ((int, float), 0.001, CACHE_TTL_SECONDS),
    "reader.max_attempts": ((int,), 1, READ_MAX_ATTEMPTS),
    "reader.base_retry_delay_ms": ((int, float), 0, READ_BASE_RETRY_DELAY_SECONDS * 1000),
    "reader.timeout_ms": ((int, float), 1, READ_TIMEOUT_SECONDS * 1000),
    "roots.extra": ((list,), None, []),
}


def _lookup(config: dict[str, Any], path: str) -> tuple[bool, Any]:
    value: Any = config
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value:
            return False, None
        value = value[key]
    return True, value


def validate_settings(raw: dict[str, Any]) -> tuple[list[str], dict[str, Any]]:
    """Validate raw settings, returning errors and the resolved values.

    Invalid or missing entries fall back to their defaults, so the resolved
    mapping always holds every key of SETTINGS_SCHEMA.
    """
    errors: list[str] = []
    resolved: dict[str, Any] = {}

    for path, (types, minimum, default) in SETTINGS_SCHEMA.items():
        found, value = _lookup(raw, path)
        if not found:
            resolved[path] = default
            continue

        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, types):
            errors.append(f"{path}: expected {'/'.join(t.__name__ for t in types)}")
            resolved[path] = default
            continue

        if minimum is not None and value < minimum:
            errors.append(f"{path}: must be >= {minimum}")
            resolved[path] = default
            continue

        if path == "roots.extra" and not all(isinstance(v, str) for v in value):
            errors.append(f"{path}: expected a list of strings")
            resolved[path] = default
            continue

        resolved[path] = value

    return errors, resolved


class ReaderSettings:
    """Schema-validated reader settings loaded from an optional YAML file."""

    def __init__(self, settings_file: Path | None = None):
        self.settings_file = settings_file or SETTINGS_FILE_PATH
        raw_config = self._load_config_from_file(self.settings_file)
        self.validation_errors, self._values = validate_settings(raw_config)

        if self.validation_errors:
            log_warning(
                "Invalid reader settings, using defaults for affected keys",
                {"file": str(self.settings_file), "errors": self.validation_errors},
            )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ReaderSettings":
        """Build settings from an in-memory mapping instead of a file."""
        settings = cls.__new__(cls)
        settings.settings_file = None
        settings.validation_errors, settings._values = validate_settings(raw)
        return settings

    def _load_config_from_file(self, settings_file: Path) -> dict[str, Any]:
        """Load the settings from a specific YAML file."""
        try:
            if settings_file.exists():
                with open(settings_file, encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    return loaded
                log_warning(f"Settings file {settings_file} is not a mapping")
            else:
                log_debug(f"No settings file found at {settings_file}, using defaults")
        except (OSError, yaml.YAMLError) as e:
            log_error(
                f"Error loading settings from {settings_file}", {"error": str(e)}
            )

        return {}

    def get(self, path: str, default: Any = None) -> Any:
        """Get a resolved value using dot notation."""
        return self._values.get(path, default)

    @property
    def cache_ttl_seconds(self) -> float:
        return float(self._values["cache.ttl_seconds"])

    @property
    def max_attempts(self) -> int:
        return int(self._values["reader.max_attempts"])

    @property
    def base_retry_delay_seconds(self) -> float:
        return self._values["reader.base_retry_delay_ms"] / 1000

    @property
    def timeout_seconds(self) -> float:
        return self._values["reader.timeout_ms"] / 1000

    @property
    def extra_roots(self) -> list[Path]:
        return [Path(p).expanduser() for p in self._values["roots.extra"]]

    def has_validation_errors(self) -> bool:
        """Check if the settings file had validation errors."""
        return bool(self.validation_errors)


class SettingsManager:
    """Manages reader settings instances with dependency injection."""

    _default_instance: ReaderSettings | None = None

    @classmethod
    def get_default(cls) -> ReaderSettings:
        """Get the default settings instance."""
        if cls._default_instance is None:
            cls._default_instance = ReaderSettings()
        return cls._default_instance

    @classmethod
    def set_default(cls, settings: ReaderSettings) -> None:
        """Set the default settings instance."""
        cls._default_instance = settings

    @classmethod
    def reset(cls) -> None:
        """Drop the default instance so the next access reloads it."""
        cls._default_instance = None
