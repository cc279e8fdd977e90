from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "INFO"
    max_mb: int = 10
    backup_count: int = 3

    @property
    def level_number(self) -> int:
        value = logging.getLevelName(self.level.upper())
        return value if isinstance(value, int) else logging.INFO


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    base_dir: Path
    logs_dir: Path
    settings_path: Path
    temp_directory: Optional[str] = None
    locale: str = "en"
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle) or {}
        if not isinstance(content, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level.")
        return content


def load_app_config(base_dir: Path) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_dir = base_dir / "config"
    config_overrides = _load_yaml(config_dir / "config.yml")

    logs_dir = Path(config_overrides.get("logs_dir") or base_dir / "logs")
    settings_file = Path(config_overrides.get("settings_path") or config_dir / "settings.json")

    logging_cfg = config_overrides.get("logging") or {}
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")),
        max_mb=int(logging_cfg.get("max_mb", 10)),
        backup_count=int(logging_cfg.get("backup_count", 3)),
    )

    return AppConfig(
        base_dir=base_dir,
        logs_dir=logs_dir,
        settings_path=settings_file,
        temp_directory=config_overrides.get("temp_directory") or None,
        locale=str(config_overrides.get("locale", "en")),
        logging=logging_config,
    )
