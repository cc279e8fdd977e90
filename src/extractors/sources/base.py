"""
Base asset source interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..asset_signatures import Category
from ..callbacks import SourceCallbacks
from ..exceptions import AssetNotFoundError
from ..models import AssetInfo, AssetOrigin

# Receives each asset as soon as a source has classified it
EmitFn = Callable[[AssetInfo], None]


class AssetSource(ABC):
    """
    Base class for a backend that stores cached assets.

    Each source owns its storage handle and an internal lock. Mutations
    (swap, copy, clear) hold the lock exclusively so readers going through
    the source never observe a half-applied change.

    Lifecycle:
        1. Engine enumerates each source on refresh
        2. Extraction reads raw bytes back through ``read``
        3. Swap/copy are offered to every source; ids unknown to a source fail
        4. ``close`` releases handles at shutdown
    """

    origin: AssetOrigin

    @property
    def name(self) -> str:
        return self.origin.value

    def _check_origin(self, asset: AssetInfo) -> None:
        # Assets routed from the other backend are unknown here
        if asset.origin is not None and asset.origin is not self.origin:
            raise AssetNotFoundError(asset.name, self.name)

    @abstractmethod
    def read(self, asset: AssetInfo) -> bytes:
        """
        Return the raw stored bytes of ``asset`` (before decompression).

        Raises:
            AssetNotFoundError: the id does not exist in this source
            StorageError: the store could not be read
        """
        pass

    @abstractmethod
    def enumerate(self, category: Category, emit: EmitFn, callbacks: SourceCallbacks) -> int:
        """
        Hand every asset matching ``category`` to ``emit`` as it is found.

        For ``Category.ALL`` each emitted asset carries its detected category.
        Progress is reported per item and ``callbacks.is_cancelled()`` is
        checked between items.

        Returns:
            Number of assets emitted
        """
        pass

    @abstractmethod
    def lookup(self, asset_id: str, category: Category) -> Optional[AssetInfo]:
        """Resolve an id directly, without a scan. None if it is unknown."""
        pass

    @abstractmethod
    def clear(self, callbacks: SourceCallbacks) -> None:
        """Irreversibly delete all stored content."""
        pass

    @abstractmethod
    def swap(self, a: AssetInfo, b: AssetInfo) -> None:
        """Exchange the contents of ``a`` and ``b``; both change or neither does."""
        pass

    @abstractmethod
    def copy(self, a: AssetInfo, b: AssetInfo) -> None:
        """Overwrite ``b`` with the content of ``a``; ``b`` is never left partial."""
        pass

    def close(self) -> None:
        """Release storage handles. Default: nothing to release."""
        pass
