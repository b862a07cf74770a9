"""
gwarp Runtime Settings

Runtime parameters that are not part of a warping configuration: worker
counts for the shot-parallel loops and logging defaults.

Settings can be changed via:
1. Settings file (TOML or JSON)
2. Environment variables (GWARP_<SECTION>__<KEY>)
3. Programmatic access via the SettingsManager singleton
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Literal


# =============================================================================
# Settings Data Classes
# =============================================================================


@dataclass
class ExecutionSettings:
    """Parallel execution parameters."""

    # Worker threads for shot-parallel loops (None = os.cpu_count())
    max_workers: int | None = None

    # Below this many shots the loop runs inline without a thread pool
    min_parallel_shots: int = 2

    def resolve_workers(self, n_tasks: int, max_workers: int | None = None) -> int:
        """Number of workers to use for ``n_tasks`` independent tasks."""
        workers = max_workers if max_workers is not None else self.max_workers
        if workers is None:
            workers = os.cpu_count() or 1
        return max(1, min(int(workers), n_tasks))


@dataclass
class LoggingSettings:
    """Logging defaults."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    show_time: bool = True
    log_file: str | None = None


@dataclass
class ApplicationSettings:
    """Root settings container with all subsections."""

    execution: ExecutionSettings = field(default_factory=ExecutionSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApplicationSettings":
        """Create from nested dictionary."""
        return cls(
            execution=ExecutionSettings(**data.get("execution", {})),
            logging=LoggingSettings(**data.get("logging", {})),
        )


# =============================================================================
# Settings Manager - Singleton for Global Access
# =============================================================================


class SettingsManager:
    """
    Singleton manager for runtime settings.

    Usage:
        from gwarp.settings import get_settings

        s = get_settings()
        s.execution.max_workers = 4
    """

    _instance: "SettingsManager | None" = None
    _settings: ApplicationSettings
    _settings_path: Path | None = None

    def __new__(cls) -> "SettingsManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._settings = ApplicationSettings()
            cls._instance._settings_path = None
        return cls._instance

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings."""
        return self._settings

    @property
    def path(self) -> Path | None:
        """Get path of loaded settings file."""
        return self._settings_path

    def reset(self) -> None:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self._settings_path = None

    def update(self, **kwargs) -> None:
        """
        Update settings from keyword arguments.

        Nested keys use dots, e.g. ``update(**{"execution.max_workers": 4})``.

        Raises:
            AttributeError: for unknown keys
        """
        for key, value in kwargs.items():
            parts = key.split(".")
            obj = self._settings
            for part in parts[:-1]:
                obj = getattr(obj, part)
            if not hasattr(obj, parts[-1]):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(obj, parts[-1], value)

    def load_from_file(self, path: Path | str) -> None:
        """Load settings from TOML or JSON file."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        with open(path, "rb") as f:
            if path.suffix == ".toml":
                data = tomllib.load(f)
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {path.suffix}")

        self._settings = ApplicationSettings.from_dict(data)
        self._settings_path = path

    def load_from_env(self, environ: dict[str, str] | None = None) -> None:
        """Load settings from environment variables (GWARP_*)."""
        environ = os.environ if environ is None else environ
        for key, value in environ.items():
            if not key.startswith("GWARP_") or key == "GWARP_SETTINGS_PATH":
                continue
            # GWARP_EXECUTION__MAX_WORKERS -> execution.max_workers
            setting_key = key[6:].lower().replace("__", ".")

            parsed: Any = value
            if value.lower() in ("true", "false"):
                parsed = value.lower() == "true"
            elif value.lower() == "none":
                parsed = None
            else:
                try:
                    parsed = float(value) if "." in value else int(value)
                except ValueError:
                    pass  # Keep as string

            try:
                self.update(**{setting_key: parsed})
            except AttributeError:
                pass  # Ignore unknown settings

    def auto_load(self) -> bool:
        """
        Load settings from GWARP_SETTINGS_PATH if set, then apply env overrides.

        Returns:
            True if a settings file was loaded
        """
        loaded = False
        if "GWARP_SETTINGS_PATH" in os.environ:
            path = Path(os.environ["GWARP_SETTINGS_PATH"])
            if path.exists():
                self.load_from_file(path)
                loaded = True
        self.load_from_env()
        return loaded


# =============================================================================
# Module-Level Convenience Functions
# =============================================================================


_manager = SettingsManager()


def get_settings() -> ApplicationSettings:
    """Get current runtime settings."""
    return _manager.settings


def get_settings_manager() -> SettingsManager:
    """Get the settings manager instance."""
    return _manager


def load_settings(path: Path | str) -> ApplicationSettings:
    """Load settings from file."""
    _manager.load_from_file(path)
    return _manager.settings


def reset_settings() -> ApplicationSettings:
    """Reset to default settings."""
    _manager.reset()
    return _manager.settings


_manager.auto_load()
