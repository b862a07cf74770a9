"""
Tests for runtime settings.
"""

import json

import pytest

from gwarp.settings import (
    ApplicationSettings,
    ExecutionSettings,
    get_settings,
    get_settings_manager,
    load_settings,
    reset_settings,
)


class TestExecutionSettings:
    def test_explicit_workers_win(self):
        assert ExecutionSettings(max_workers=8).resolve_workers(100, max_workers=3) == 3

    def test_capped_by_task_count(self):
        assert ExecutionSettings(max_workers=8).resolve_workers(2) == 2

    def test_defaults_to_cpu_count(self, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 6)
        assert ExecutionSettings().resolve_workers(100) == 6

    def test_at_least_one(self):
        assert ExecutionSettings(max_workers=4).resolve_workers(0) == 1


class TestApplicationSettings:
    def test_round_trip(self):
        settings = ApplicationSettings()
        settings.execution.max_workers = 3
        settings.logging.level = "DEBUG"
        restored = ApplicationSettings.from_dict(settings.to_dict())
        assert restored == settings

    def test_partial_dict(self):
        settings = ApplicationSettings.from_dict({"execution": {"max_workers": 2}})
        assert settings.execution.max_workers == 2
        assert settings.logging.level == "INFO"


class TestSettingsManager:
    def test_singleton(self):
        assert get_settings_manager() is get_settings_manager()

    def test_update_dotted_key(self):
        get_settings_manager().update(**{"execution.max_workers": 5})
        assert get_settings().execution.max_workers == 5

    def test_update_unknown_key(self):
        with pytest.raises(AttributeError):
            get_settings_manager().update(**{"execution.threads": 5})

    def test_reset(self):
        get_settings().execution.min_parallel_shots = 10
        settings = reset_settings()
        assert settings.execution.min_parallel_shots == 2
        assert get_settings_manager().path is None

    def test_load_toml(self, tmp_path):
        path = tmp_path / "gwarp.toml"
        path.write_text('[execution]\nmax_workers = 4\n\n[logging]\nlevel = "WARNING"\n')
        settings = load_settings(path)
        assert settings.execution.max_workers == 4
        assert settings.logging.level == "WARNING"
        assert get_settings_manager().path == path

    def test_load_json(self, tmp_path):
        path = tmp_path / "gwarp.json"
        path.write_text(json.dumps({"execution": {"min_parallel_shots": 8}}))
        assert load_settings(path).execution.min_parallel_shots == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.toml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "gwarp.yaml"
        path.write_text("execution: {}")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_env_overrides(self):
        get_settings_manager().load_from_env(
            {
                "GWARP_EXECUTION__MAX_WORKERS": "3",
                "GWARP_LOGGING__SHOW_TIME": "false",
                "GWARP_LOGGING__LOG_FILE": "none",
                "GWARP_EXECUTION__UNKNOWN": "1",
                "OTHER_VARIABLE": "x",
            }
        )
        settings = get_settings()
        assert settings.execution.max_workers == 3
        assert settings.logging.show_time is False
        assert settings.logging.log_file is None

    def test_auto_load_from_path(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.toml"
        path.write_text("[execution]\nmax_workers = 2\n")
        monkeypatch.setenv("GWARP_SETTINGS_PATH", str(path))
        monkeypatch.setenv("GWARP_EXECUTION__MIN_PARALLEL_SHOTS", "5")
        assert get_settings_manager().auto_load()
        assert get_settings().execution.max_workers == 2
        assert get_settings().execution.min_parallel_shots == 5
