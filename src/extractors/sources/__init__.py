"""
Asset sources: the two storage backends the client caches assets in.

- directory.py  Loose files under the cache directory (http/ and sounds/)
- database.py   Rows of the rbx-storage.db SQLite database
- registry.py   Ordered collection used by the engine
"""

from .base import AssetSource
from .database import ConnectionState, DatabaseLocationPrompt, DatabaseSource
from .directory import DirectorySource
from .registry import SourceRegistry

__all__ = [
    "AssetSource",
    "ConnectionState",
    "DatabaseLocationPrompt",
    "DatabaseSource",
    "DirectorySource",
    "SourceRegistry",
]
