"""
Asset classification and extraction.

Modules:
- asset_signatures.py  Category enum and signature catalog
- classification.py    Header search, payload slicing, category detection
- decompression.py     Zstandard pass-through shim
- sources/             Directory and database backends
- engine.py            Shared index and task coordination
- workers.py           Background task handles
"""

from .asset_signatures import Category, headers_for
from .callbacks import SourceCallbacks
from .engine import Engine
from .exceptions import (
    AssetNotFoundError,
    ConfigurationError,
    ExtractorError,
    HeaderNotFoundError,
    NoConnectionError,
    StorageError,
)
from .models import AssetInfo, AssetOrigin
from .workers import TaskHandle

__all__ = [
    "AssetInfo",
    "AssetNotFoundError",
    "AssetOrigin",
    "Category",
    "ConfigurationError",
    "Engine",
    "ExtractorError",
    "HeaderNotFoundError",
    "NoConnectionError",
    "SourceCallbacks",
    "StorageError",
    "TaskHandle",
    "headers_for",
]
