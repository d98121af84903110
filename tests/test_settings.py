"""
Unit tests for album_infra.settings and EditorSettings.
"""

import json
from pathlib import Path

import pytest

from album_app.session import EditorSettings
from album_infra.logging import get_data_directory
from album_infra.settings import JsonSettings


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "storage": {"albums_dir": "data/albums", "backups_dir": "/var/backups/albums"},
                "autosave": {"debounce_ms": 1500},
                "history": {"limit": 0},
                "editor": {"nudge_step": 2},
            }
        ),
        encoding="utf-8",
    )
    return path


class TestJsonSettings:
    """Tests for JsonSettings."""

    def test_get_when_dotted_key_then_nested_value(self, settings_file):
        settings = JsonSettings(settings_file)

        assert settings.get("autosave.debounce_ms") == 1500
        assert settings.path == settings_file

    def test_get_when_key_missing_then_default(self, settings_file):
        settings = JsonSettings(settings_file)

        assert settings.get("autosave.periodic_ms", 7) == 7
        assert settings.get("autosave.debounce_ms.deeper") is None

    def test_init_when_file_missing_then_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonSettings(tmp_path / "missing.json")

    def test_from_dict_when_built_in_memory_then_readable(self):
        settings = JsonSettings.from_dict({"a": {"b": 1}})

        assert settings.get("a.b") == 1

    def test_init_when_defaults_given_then_file_layered_over_them(self, settings_file):
        defaults = {"autosave": {"debounce_ms": 5000, "periodic_ms": 60000}, "x": 1}

        settings = JsonSettings(settings_file, defaults=defaults)

        assert settings.get("autosave.debounce_ms") == 1500
        assert settings.get("autosave.periodic_ms") == 60000
        assert settings.get("x") == 1
        assert defaults["autosave"]["debounce_ms"] == 5000

    def test_init_when_top_level_not_object_then_value_error(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError):
            JsonSettings(path)

    def test_get_path_when_blank_then_default(self):
        settings = JsonSettings.from_dict({"storage": {"albums_dir": ""}})

        assert settings.get_path("storage.albums_dir", Path("/fallback")) == Path("/fallback")


class TestEditorSettings:
    """Tests for EditorSettings.from_settings()."""

    def test_from_settings_when_relative_paths_then_resolved_against_base(
        self, settings_file, tmp_path
    ):
        editor = EditorSettings.from_settings(JsonSettings(settings_file), base_dir=tmp_path)

        assert editor.albums_dir == tmp_path / "data" / "albums"
        assert editor.backups_dir == Path("/var/backups/albums")

    def test_from_settings_when_values_given_then_overrides_defaults(self, settings_file):
        editor = EditorSettings.from_settings(JsonSettings(settings_file))

        assert editor.debounce_ms == 1500
        assert editor.periodic_ms == 120000
        assert editor.nudge_step == 2.0
        assert editor.nudge_step_large == 10.0

    def test_from_settings_when_history_limit_zero_then_clamped_to_one(self, settings_file):
        editor = EditorSettings.from_settings(JsonSettings(settings_file))

        assert editor.history_limit == 1

    def test_from_settings_when_storage_blank_then_user_data_directory(self):
        settings = JsonSettings.from_dict({"storage": {"albums_dir": ""}})

        editor = EditorSettings.from_settings(settings)

        assert editor.albums_dir == get_data_directory() / "albums"
        assert editor.backups_dir == get_data_directory() / "backups"
        assert editor.zoom_min == 0.25
        assert editor.zoom_max == 4.0
