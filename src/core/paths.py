"""
Path helpers shared by the asset sources and the engine.

``resolve_path`` expands the placeholders used in default cache locations
and user settings. The temp-directory helpers own the scratch folder the
engine creates on start-up and removes on clean-up.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from .logging import get_logger

LOGGER = get_logger("core.paths")

TEMP_DIR_NAME = "CacheSifter"


def _local_appdata() -> str:
    value = os.environ.get("LOCALAPPDATA")
    if value:
        return value
    return str(Path.home() / "AppData" / "Local")


def resolve_path(directory: Union[str, Path]) -> str:
    """
    Expand ``%Temp%``, ``%localappdata%`` and ``~`` in a path string.

    Placeholders are matched case-insensitively for the Windows-style
    variables. A leading ``~`` expands to the current user's home.
    """
    text = str(directory)
    lowered = text.lower()
    for placeholder, value in (
        ("%temp%", tempfile.gettempdir()),
        ("%localappdata%", _local_appdata()),
    ):
        start = lowered.find(placeholder)
        while start != -1:
            text = text[:start] + value + text[start + len(placeholder):]
            lowered = text.lower()
            start = lowered.find(placeholder, start + len(value))
    if text.startswith("~"):
        text = os.path.expanduser(text)
    return text


def _is_unsafe_target(path: Path) -> bool:
    text = str(path).strip()
    if text in ("", ".", "/", "\\"):
        return True
    # Filesystem roots such as "/" or "C:\"
    return path.resolve() == Path(path.resolve().anchor)


def create_temp_dir(configured: Optional[str] = None) -> Path:
    """Create (if needed) and return the scratch directory."""
    if configured:
        path = Path(resolve_path(configured))
    else:
        path = Path(tempfile.gettempdir()) / TEMP_DIR_NAME
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.critical("Failed to create temporary directory %s: %s", path, exc)
    return path


def remove_tree(path: Path) -> bool:
    """
    Recursively delete ``path``, refusing empty, relative-dot and root paths.

    Returns:
        True if the directory was removed, False if it was refused or absent
    """
    if _is_unsafe_target(path):
        LOGGER.error("Refusing to delete %r", str(path))
        return False
    if not path.exists():
        return False
    LOGGER.info("Removing directory %s", path)
    shutil.rmtree(path)
    return True
