"""Shared infrastructure: logging, configuration, settings, locales and paths."""

from .config import AppConfig, load_app_config  # noqa: F401
from .settings import UserSettings  # noqa: F401
