"""
Tests for YAML application configuration and logging setup.
"""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from core.config import load_app_config
from core.logging import LOG_FILE_NAME, configure_logging, get_logger


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_defaults_without_file(self, tmp_path: Path):
        config = load_app_config(tmp_path)
        assert config.logs_dir == tmp_path / "logs"
        assert config.settings_path == tmp_path / "config" / "settings.json"
        assert config.temp_directory is None
        assert config.locale == "en"
        assert config.logging.level == "INFO"
        assert config.logging.level_number == logging.INFO

    def test_overrides(self, tmp_path: Path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text(
            "locale: de\n"
            "temp_directory: '%Temp%/Scratch'\n"
            "logging:\n  level: debug\n  max_mb: 2\n  backup_count: 1\n",
            encoding="utf-8",
        )
        config = load_app_config(tmp_path)
        assert config.locale == "de"
        assert config.temp_directory == "%Temp%/Scratch"
        assert config.logging.level_number == logging.DEBUG
        assert config.logging.max_mb == 2

    def test_non_mapping_rejected(self, tmp_path: Path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_app_config(tmp_path)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_writes_log_file(self, tmp_path: Path):
        logger = configure_logging(tmp_path / "logs", level=logging.DEBUG, console=False)
        try:
            get_logger("tests").info("hello %s", "world")
            for handler in logger.handlers:
                handler.flush()
            text = (tmp_path / "logs" / LOG_FILE_NAME).read_text(encoding="utf-8")
            assert "INFO cachesifter.tests hello world" in text
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

    def test_child_logger_namespace(self):
        assert get_logger("extractors.engine").name == "cachesifter.extractors.engine"
        assert get_logger().name == "cachesifter"
