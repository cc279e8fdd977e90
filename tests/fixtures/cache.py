"""Cache directory and storage database fixtures for tests."""
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import pytest

from core.settings import UserSettings

# Minimal payloads that carry each signature after some HTTP-ish metadata
HTTP_PREAMBLE = b"RBXH\x00\x00https://example.invalid/asset\x00content-type: binary/octet-stream\x00"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 16
OGG_BYTES = b"OggS\x00\x02" + b"\x00" * 26
KTX_BYTES = b"\xabKTX 11\xbb\r\n\x1a\n" + b"\x00" * 20
RBXM_BYTES = b"<roblox!\x89\xff\r\n\x1a\n" + b"\x00" * 16


@dataclass
class CacheDir:
    root: Path

    @property
    def http(self) -> Path:
        return self.root / "http"

    @property
    def sounds(self) -> Path:
        return self.root / "sounds"

    def add(self, name: str, data: bytes, folder: str = "http", mtime: Optional[float] = None) -> Path:
        path = self.root / folder / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path


@dataclass
class StorageDb:
    path: Path
    rows: Dict[str, bytes] = field(default_factory=dict)

    def add(self, hex_id: str, content: bytes, ttl: int = 1_700_000_000) -> None:
        with sqlite3.connect(self.path) as conn:
            conn.execute(
                "INSERT INTO files (id, size, ttl, content) VALUES (?, ?, ?, ?)",
                (bytes.fromhex(hex_id), len(content), ttl, content),
            )
        self.rows[hex_id] = content

    def content(self, hex_id: str) -> Optional[bytes]:
        conn = sqlite3.connect(self.path)
        try:
            row = conn.execute("SELECT content FROM files WHERE id = ?", (bytes.fromhex(hex_id),)).fetchone()
        finally:
            conn.close()
        return None if row is None else bytes(row[0])


@pytest.fixture
def settings(tmp_path: Path) -> UserSettings:
    """Settings backed by a temporary JSON file."""
    return UserSettings(tmp_path / "config" / "settings.json")


@pytest.fixture
def cache_dir(tmp_path: Path) -> CacheDir:
    """Empty cache directory with http/ and sounds/ folders."""
    root = tmp_path / "cache"
    (root / "http").mkdir(parents=True)
    (root / "sounds").mkdir(parents=True)
    return CacheDir(root)


@pytest.fixture
def storage_db_factory(tmp_path: Path) -> Callable[..., StorageDb]:
    """Create rbx-storage.db files with the client's ``files`` table."""

    def _create(name: str = "rbx-storage.db", rows: Tuple[Tuple[str, bytes], ...] = ()) -> StorageDb:
        directory = tmp_path / "appdata"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        with sqlite3.connect(path) as conn:
            conn.execute("CREATE TABLE files (id BLOB PRIMARY KEY, size INTEGER, ttl INTEGER, content BLOB)")
        db = StorageDb(path)
        for hex_id, content in rows:
            db.add(hex_id, content)
        return db

    return _create
