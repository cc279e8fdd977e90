"""
Asset descriptors shared by sources and the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .asset_signatures import Category


class AssetOrigin(Enum):
    """Backend that stores an asset."""

    DIRECTORY = "directory"
    DATABASE = "database"


@dataclass(frozen=True, slots=True)
class AssetInfo:
    """
    Immutable description of one cached asset.

    ``origin`` is None for placeholders (such as the "no files" entry) and
    for ids that no source could resolve.
    """

    name: str
    size: int = 0
    last_modified: Optional[datetime] = None
    origin: Optional[AssetOrigin] = None
    category: Category = Category.ALL

    @property
    def is_placeholder(self) -> bool:
        return self.origin is None


def timestamp_to_datetime(value: Optional[float]) -> Optional[datetime]:
    """Convert epoch seconds to an aware UTC datetime (None on bad input)."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
