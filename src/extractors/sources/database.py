"""
Database-backed asset source.

Newer clients store cached assets as rows of an SQLite database
(``rbx-storage.db``) with the schema ``files(id BLOB, size INTEGER,
ttl INTEGER, content BLOB)``. Asset names are the hex form of ``id``;
``ttl`` doubles as the last-modified epoch.

Connection lifecycle::

    UNRESOLVED --first use / reconnect()--> OPEN --clear() / close()--> CLOSED
    UNRESOLVED --resolution failed--------> CLOSED

A CLOSED source raises ``NoConnectionError`` on every call until
``reconnect()`` performs a fresh resolution.
"""

from __future__ import annotations

import sqlite3
import threading
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from core.logging import get_logger
from core.paths import remove_tree, resolve_path
from core.settings import UserSettings

from ..asset_signatures import Category
from ..callbacks import SourceCallbacks
from ..classification import determine_category, find_header
from ..decompression import maybe_decompress
from ..exceptions import (
    AssetNotFoundError,
    ConfigurationError,
    HeaderNotFoundError,
    NoConnectionError,
    StorageError,
)
from ..models import AssetInfo, AssetOrigin, timestamp_to_datetime
from .base import AssetSource, EmitFn

LOGGER = get_logger("extractors.sources.database")

DEFAULT_PATHS = (
    "%localappdata%/Roblox/rbx-storage.db",
    "~/.var/app/org.vinegarhq.Sober/data/sober/appData/rbx-storage.db",  # Sober (Linux)
)

DATABASE_FILE_NAME = "rbx-storage.db"
STORAGE_FOLDER_NAME = "rbx-storage"

# Rows fetched per listing page; the connection lock is held per page
PAGE_SIZE = 500
PREFIX_SIZE = 4096

_LIST_FIRST_PAGE = (
    "SELECT id, size, ttl, substr(content, 1, ?) FROM files "
    "ORDER BY id LIMIT ?"
)
_LIST_NEXT_PAGE = (
    "SELECT id, size, ttl, substr(content, 1, ?) FROM files "
    "WHERE id > ? ORDER BY id LIMIT ?"
)


class ConnectionState(Enum):
    UNRESOLVED = "unresolved"
    OPEN = "open"
    CLOSED = "closed"


class DatabaseLocationPrompt(Protocol):
    """Operator interaction used when the database cannot be found."""

    def notify_detection_failed(self) -> None:
        """Tell the operator no database was found."""
        ...

    def confirm_custom_location(self) -> bool:
        """Ask whether the operator wants to pick the location manually."""
        ...

    def ask_for_location(self) -> Optional[str]:
        """Return a path chosen by the operator, or None if cancelled."""
        ...


def validate_file(path: str) -> Path:
    """
    Resolve placeholders in ``path`` and require an existing regular file.

    Raises:
        FileNotFoundError: path does not exist
        ValueError: path exists but is not a regular file
    """
    resolved = Path(resolve_path(path))
    if not resolved.exists():
        raise FileNotFoundError(f"{resolved}: No such file")
    if not resolved.is_file():
        raise ValueError(f"{resolved}: Not a file")
    return resolved


def _decode_id(name: str) -> Optional[bytes]:
    try:
        return bytes.fromhex(name)
    except ValueError:
        return None


class DatabaseSource(AssetSource):
    """Asset source over the client's SQLite storage database."""

    origin = AssetOrigin.DATABASE

    def __init__(
        self,
        settings: UserSettings,
        prompt: Optional[DatabaseLocationPrompt] = None,
        path: Optional[Path] = None,
    ):
        self._settings = settings
        self._prompt = prompt
        self._path_override = path
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        self._path: Optional[Path] = None
        self._state = ConnectionState.UNRESOLVED

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def path(self) -> Optional[Path]:
        with self._lock:
            return self._path

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    def _resolve_path(self) -> Path:
        errors = []
        if self._path_override is not None:
            candidates = [str(self._path_override)]
        else:
            configured = self._settings.get_string("sql_database")
            candidates = ([configured] if configured else []) + list(DEFAULT_PATHS)

        while True:
            for candidate in candidates:
                try:
                    return validate_file(candidate)
                except (OSError, ValueError) as exc:
                    LOGGER.debug("Database candidate rejected: %s", exc)
                    errors.append(str(exc))

            chosen = self._ask_operator()
            if chosen is None:
                LOGGER.critical("Database detection failed! %s", "; ".join(errors))
                raise ConfigurationError("No storage database found")

            resolved = resolve_path(chosen)
            if Path(resolved).is_dir():
                resolved = str(Path(resolved) / DATABASE_FILE_NAME)
            self._settings.set("sql_database", resolved)
            try:
                self._settings.save()
            except OSError as exc:
                LOGGER.warning("Could not persist database location: %s", exc)
            candidates = [resolved]

    def _ask_operator(self) -> Optional[str]:
        if self._prompt is None:
            return None
        self._prompt.notify_detection_failed()
        if not self._prompt.confirm_custom_location():
            return None
        return self._prompt.ask_for_location()

    def _open(self, path: Path) -> None:
        self._conn = sqlite3.connect(str(path), check_same_thread=False, isolation_level=None)
        self._path = path
        self._state = ConnectionState.OPEN
        LOGGER.info("Connected to storage database %s", path)

    def _close_connection(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as exc:
                LOGGER.error("Failed disconnecting from database: %s", exc)
            self._conn = None
        self._state = ConnectionState.CLOSED

    def reconnect(self) -> None:
        """
        Close any open connection and resolve the database afresh.

        Raises:
            ConfigurationError: no database found and the operator declined
            StorageError: the database file could not be opened
        """
        with self._lock:
            self._close_connection()
            path = self._resolve_path()
            try:
                self._open(path)
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to open {path}: {exc}") from exc

    def _connection(self) -> sqlite3.Connection:
        # Caller holds self._lock
        if self._state is ConnectionState.UNRESOLVED:
            try:
                self.reconnect()
            except (ConfigurationError, StorageError) as exc:
                self._state = ConnectionState.CLOSED
                raise NoConnectionError(str(exc)) from exc
        if self._state is not ConnectionState.OPEN or self._conn is None:
            raise NoConnectionError("No SQL connection")
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._close_connection()

    # ------------------------------------------------------------------
    # AssetSource operations
    # ------------------------------------------------------------------

    def read(self, asset: AssetInfo) -> bytes:
        self._check_origin(asset)
        asset_id = _decode_id(asset.name)
        if asset_id is None:
            raise AssetNotFoundError(asset.name, self.name)
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute("SELECT content FROM files WHERE id = ?", (asset_id,)).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to read {asset.name}: {exc}") from exc
        if row is None:
            raise AssetNotFoundError(asset.name, self.name)
        return bytes(row[0] or b"")

    def enumerate(self, category: Category, emit: EmitFn, callbacks: SourceCallbacks) -> int:
        if category is Category.MUSIC:
            # Music is only kept in the cache directory
            return 0

        with self._lock:
            conn = self._connection()
            try:
                total = conn.execute("SELECT COUNT(*) FROM files").fetchone()[0]
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to count files: {exc}") from exc

        emitted = 0
        processed = 0
        last_id: Optional[bytes] = None
        while True:
            with self._lock:
                conn = self._connection()
                try:
                    if last_id is None:
                        rows = conn.execute(_LIST_FIRST_PAGE, (PREFIX_SIZE, PAGE_SIZE)).fetchall()
                    else:
                        rows = conn.execute(_LIST_NEXT_PAGE, (PREFIX_SIZE, last_id, PAGE_SIZE)).fetchall()
                except sqlite3.Error as exc:
                    raise StorageError(f"Failed to list files: {exc}") from exc
            if not rows:
                break

            for raw_id, size, ttl, prefix in rows:
                if callbacks.is_cancelled():
                    LOGGER.debug("Database listing cancelled after %d of %d", processed, total)
                    return emitted
                processed += 1
                last_id = raw_id
                name = bytes(raw_id).hex()
                data = maybe_decompress(bytes(prefix or b""), name, partial=True)
                try:
                    find_header(category, data)
                except HeaderNotFoundError:
                    callbacks.on_progress(processed, total, "filtering-files")
                    continue
                emit(AssetInfo(
                    name=name,
                    size=size or 0,
                    last_modified=timestamp_to_datetime(ttl),
                    origin=self.origin,
                    category=determine_category(data) if category is Category.ALL else category,
                ))
                emitted += 1
                callbacks.on_progress(processed, total, "filtering-files")

            if len(rows) < PAGE_SIZE:
                break
        return emitted

    def lookup(self, asset_id: str, category: Category) -> Optional[AssetInfo]:
        raw_id = _decode_id(asset_id)
        if raw_id is None:
            return None
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT size, ttl, substr(content, 1, ?) FROM files WHERE id = ?",
                    (PREFIX_SIZE, raw_id),
                ).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to look up {asset_id}: {exc}") from exc
        if row is None:
            return None
        size, ttl, prefix = row
        if category is Category.ALL:
            category = determine_category(maybe_decompress(bytes(prefix or b""), asset_id, partial=True))
        return AssetInfo(
            name=asset_id,
            size=size or 0,
            last_modified=timestamp_to_datetime(ttl),
            origin=self.origin,
            category=category,
        )

    def swap(self, a: AssetInfo, b: AssetInfo) -> None:
        self._check_origin(a)
        self._check_origin(b)
        id_a = _decode_id(a.name)
        id_b = _decode_id(b.name)
        if id_a is None:
            raise AssetNotFoundError(a.name, self.name)
        if id_b is None:
            raise AssetNotFoundError(b.name, self.name)

        with self._lock:
            conn = self._connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    row_a = conn.execute("SELECT content FROM files WHERE id = ?", (id_a,)).fetchone()
                    row_b = conn.execute("SELECT content FROM files WHERE id = ?", (id_b,)).fetchone()
                    if row_a is None:
                        raise AssetNotFoundError(a.name, self.name)
                    if row_b is None:
                        raise AssetNotFoundError(b.name, self.name)
                    conn.execute("UPDATE files SET content = ? WHERE id = ?", (row_b[0], id_a))
                    conn.execute("UPDATE files SET content = ? WHERE id = ?", (row_a[0], id_b))
                    conn.execute("COMMIT")
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to swap {a.name} and {b.name}: {exc}") from exc
        LOGGER.info("Swapped %s and %s in storage database", a.name, b.name)

    def copy(self, a: AssetInfo, b: AssetInfo) -> None:
        self._check_origin(a)
        self._check_origin(b)
        id_a = _decode_id(a.name)
        id_b = _decode_id(b.name)
        if id_a is None:
            raise AssetNotFoundError(a.name, self.name)
        if id_b is None:
            raise AssetNotFoundError(b.name, self.name)

        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute("SELECT content FROM files WHERE id = ?", (id_a,)).fetchone()
                if row is None:
                    raise AssetNotFoundError(a.name, self.name)
                cursor = conn.execute("UPDATE files SET content = ? WHERE id = ?", (row[0], id_b))
            except sqlite3.Error as exc:
                raise StorageError(f"Failed to copy {a.name} to {b.name}: {exc}") from exc
            if cursor.rowcount == 0:
                raise AssetNotFoundError(b.name, self.name)
        LOGGER.info("Copied %s to %s in storage database", a.name, b.name)

    def clear(self, callbacks: SourceCallbacks) -> None:
        with self._lock:
            callbacks.on_progress(0, 2, "deleting-files")
            try:
                self._connection()
            except NoConnectionError as exc:
                LOGGER.error("No SQL connection path found: %s", exc)
                callbacks.on_error("failed-deleting-file", str(exc))
                return

            path = self._path
            # Release our own handle so the delete is not blocked by it
            self._close_connection()
            LOGGER.info("Disconnected from database")

            try:
                path.unlink()
            except OSError as exc:
                LOGGER.error("Failed to delete file: %s", exc)
                callbacks.on_error("failed-deleting-file", str(exc))
            callbacks.on_progress(1, 2, "deleting-files")

            try:
                self._open(path)
                LOGGER.info("Reconnected to database at %s", path)
            except sqlite3.Error as exc:
                LOGGER.error("Failed to reconnect to database: %s", exc)

            storage_folder = path.parent / STORAGE_FOLDER_NAME
            try:
                remove_tree(storage_folder)
            except OSError as exc:
                LOGGER.error("Failed to delete storage folder: %s", exc)
                callbacks.on_error("failed-deleting-file", str(exc))
            callbacks.on_progress(2, 2, "deleted-files")
