"""
Tests for the JSON user settings store.
"""
from __future__ import annotations

import json
import threading
from pathlib import Path

from core.settings import UserSettings


class TestDefaults:
    """Defaults apply when no file exists."""

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        settings = UserSettings.load(tmp_path / "missing.json")
        assert settings.get_bool("refresh_before_extract") is False
        assert settings.get_string("sql_database") is None
        assert settings.get_string("cache_directory") is None

    def test_corrupt_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        settings = UserSettings.load(path)
        assert settings.get_bool("refresh_before_extract") is False

    def test_non_object_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert UserSettings.load(path).get_string("sql_database") is None


class TestPersistence:
    """Round trip through save/load."""

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "nested" / "settings.json"
        settings = UserSettings(path)
        settings.set("sql_database", "/data/rbx-storage.db")
        settings.set("refresh_before_extract", True)
        settings.set_asset_alias("abc123", "Lobby Music")
        settings.save()

        loaded = UserSettings.load(path)
        assert loaded.get_string("sql_database") == "/data/rbx-storage.db"
        assert loaded.get_bool("refresh_before_extract") is True
        assert loaded.get_asset_alias("abc123") == "Lobby Music"
        assert json.loads(path.read_text(encoding="utf-8"))["asset_aliases"] == {"abc123": "Lobby Music"}

    def test_save_without_path_is_noop(self):
        UserSettings().save()


class TestAccessors:
    """Typed accessors."""

    def test_get_bool_parses_strings(self):
        settings = UserSettings(values={"refresh_before_extract": "yes"})
        assert settings.get_bool("refresh_before_extract") is True
        settings.set("refresh_before_extract", "off")
        assert settings.get_bool("refresh_before_extract") is False

    def test_empty_string_is_none(self):
        settings = UserSettings(values={"cache_directory": ""})
        assert settings.get_string("cache_directory") is None

    def test_alias_removed_with_empty_value(self):
        settings = UserSettings()
        settings.set_asset_alias("abc", "name")
        settings.set_asset_alias("abc", None)
        assert settings.get_asset_alias("abc") is None

    def test_concurrent_alias_writes(self):
        settings = UserSettings()

        def writer(prefix: str) -> None:
            for i in range(200):
                settings.set_asset_alias(f"{prefix}{i}", f"alias-{prefix}{i}")

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for prefix in "abcd":
            assert settings.get_asset_alias(f"{prefix}199") == f"alias-{prefix}199"
