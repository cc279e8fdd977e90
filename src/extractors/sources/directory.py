"""
Directory-backed asset source.

The client keeps loose cache files in a directory tree: music under
``sounds/`` and everything else under ``http/``. File names are the asset
ids. Files are rewritten through temporary siblings and ``os.replace`` so a
reader never sees a half-written asset.
"""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

from core.logging import get_logger
from core.paths import resolve_path
from core.settings import UserSettings

from ..asset_signatures import Category
from ..callbacks import SourceCallbacks
from ..classification import determine_category, find_header
from ..decompression import maybe_decompress
from ..exceptions import AssetNotFoundError, HeaderNotFoundError, StorageError
from ..models import AssetInfo, AssetOrigin, timestamp_to_datetime
from .base import AssetSource, EmitFn

LOGGER = get_logger("extractors.sources.directory")

DEFAULT_DIRECTORIES = (
    "%Temp%/Roblox",
    "~/.var/app/org.vinegarhq.Sober/cache/sober",  # Sober (Linux)
)

MUSIC_FOLDER = "sounds"
HTTP_FOLDER = "http"

# Bytes read per file while listing
PREFIX_SIZE = 4096


def _folder_for(category: Category) -> str:
    return MUSIC_FOLDER if category is Category.MUSIC else HTTP_FOLDER


def _valid_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


class DirectorySource(AssetSource):
    """Asset source over the client's on-disk cache directory."""

    origin = AssetOrigin.DIRECTORY

    def __init__(self, settings: UserSettings, root: Optional[Path] = None):
        self._settings = settings
        self._root_override = root
        self._lock = threading.RLock()

    def cache_root(self) -> Optional[Path]:
        """Resolve the cache directory: override, then setting, then defaults."""
        if self._root_override is not None:
            return self._root_override
        configured = self._settings.get_string("cache_directory")
        candidates = [configured] if configured else list(DEFAULT_DIRECTORIES)
        for candidate in candidates:
            path = Path(resolve_path(candidate))
            if path.is_dir():
                return path
        return None

    def _require_root(self) -> Path:
        root = self.cache_root()
        if root is None:
            raise StorageError("Cache directory not found")
        return root

    def _path_for(self, asset: AssetInfo) -> Path:
        self._check_origin(asset)
        if not _valid_name(asset.name):
            raise AssetNotFoundError(asset.name, self.name)
        path = self._require_root() / _folder_for(asset.category) / asset.name
        if not path.is_file():
            raise AssetNotFoundError(asset.name, self.name)
        return path

    def _read_prefix(self, path: Path) -> bytes:
        with self._lock, path.open("rb") as handle:
            return handle.read(PREFIX_SIZE)

    def read(self, asset: AssetInfo) -> bytes:
        with self._lock:
            path = self._path_for(asset)
            try:
                return path.read_bytes()
            except OSError as exc:
                raise StorageError(f"Failed to read {path}: {exc}") from exc

    def enumerate(self, category: Category, emit: EmitFn, callbacks: SourceCallbacks) -> int:
        root = self.cache_root()
        if root is None:
            LOGGER.info("No cache directory found, skipping directory listing")
            return 0
        folder = root / _folder_for(category)
        if not folder.is_dir():
            LOGGER.info("Cache folder %s does not exist", folder)
            return 0

        entries = sorted(entry for entry in folder.iterdir() if entry.is_file())
        total = len(entries)
        emitted = 0
        for index, entry in enumerate(entries):
            if callbacks.is_cancelled():
                LOGGER.debug("Directory listing cancelled after %d of %d", index, total)
                break
            try:
                stat = entry.stat()
                prefix = maybe_decompress(self._read_prefix(entry), entry.name, partial=True)
            except OSError as exc:
                LOGGER.warning("Skipping unreadable cache file %s: %s", entry, exc)
                callbacks.on_progress(index + 1, total)
                continue

            try:
                find_header(category, prefix)
            except HeaderNotFoundError:
                callbacks.on_progress(index + 1, total)
                continue
            asset_category = determine_category(prefix) if category is Category.ALL else category

            emit(AssetInfo(
                name=entry.name,
                size=stat.st_size,
                last_modified=timestamp_to_datetime(stat.st_mtime),
                origin=self.origin,
                category=asset_category,
            ))
            emitted += 1
            callbacks.on_progress(index + 1, total)
        return emitted

    def lookup(self, asset_id: str, category: Category) -> Optional[AssetInfo]:
        if not _valid_name(asset_id):
            return None
        root = self.cache_root()
        if root is None:
            return None
        path = root / _folder_for(category) / asset_id
        try:
            stat = path.stat()
        except OSError:
            return None
        if not path.is_file():
            return None
        if category is Category.ALL:
            try:
                category = determine_category(maybe_decompress(self._read_prefix(path), asset_id, partial=True))
            except OSError as exc:
                LOGGER.warning("Could not classify %s: %s", path, exc)
        return AssetInfo(
            name=asset_id,
            size=stat.st_size,
            last_modified=timestamp_to_datetime(stat.st_mtime),
            origin=self.origin,
            category=category,
        )

    def _write_temp(self, directory: Path, data: bytes) -> Path:
        fd, temp_name = tempfile.mkstemp(dir=directory, prefix=".cachesifter-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return Path(temp_name)

    def swap(self, a: AssetInfo, b: AssetInfo) -> None:
        with self._lock:
            path_a = self._path_for(a)
            path_b = self._path_for(b)
            temps: List[Path] = []
            try:
                data_a = path_a.read_bytes()
                data_b = path_b.read_bytes()
                temp_for_a = self._write_temp(path_a.parent, data_b)
                temps.append(temp_for_a)
                temp_for_b = self._write_temp(path_b.parent, data_a)
                temps.append(temp_for_b)

                os.replace(temp_for_b, path_b)
                try:
                    os.replace(temp_for_a, path_a)
                except OSError:
                    # Put b back so neither file changes
                    restore = self._write_temp(path_b.parent, data_b)
                    temps.append(restore)
                    os.replace(restore, path_b)
                    raise
            except OSError as exc:
                raise StorageError(f"Failed to swap {a.name} and {b.name}: {exc}") from exc
            finally:
                for temp in temps:
                    temp.unlink(missing_ok=True)
        LOGGER.info("Swapped %s and %s in cache directory", a.name, b.name)

    def copy(self, a: AssetInfo, b: AssetInfo) -> None:
        with self._lock:
            path_a = self._path_for(a)
            path_b = self._path_for(b)
            temp: Optional[Path] = None
            try:
                temp = self._write_temp(path_b.parent, path_a.read_bytes())
                os.replace(temp, path_b)
            except OSError as exc:
                raise StorageError(f"Failed to copy {a.name} to {b.name}: {exc}") from exc
            finally:
                if temp is not None:
                    temp.unlink(missing_ok=True)
        LOGGER.info("Copied %s to %s in cache directory", a.name, b.name)

    def clear(self, callbacks: SourceCallbacks) -> None:
        root = self.cache_root()
        if root is None:
            LOGGER.info("No cache directory found, nothing to clear")
            return
        with self._lock:
            files = [
                entry
                for folder in (root / HTTP_FOLDER, root / MUSIC_FOLDER)
                if folder.is_dir()
                for entry in sorted(folder.iterdir())
                if entry.is_file()
            ]
            total = len(files)
            callbacks.on_progress(0, total, "deleting-files")
            for index, entry in enumerate(files, start=1):
                try:
                    entry.unlink()
                except OSError as exc:
                    LOGGER.error("Failed to delete %s: %s", entry, exc)
                    callbacks.on_error("failed-deleting-file", str(exc))
                callbacks.on_progress(index, total, "deleting-files")
        LOGGER.info("Cleared %d files from %s", total, root)
