"""
Registry of asset sources.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

from core.logging import get_logger

from ..models import AssetOrigin
from .base import AssetSource

LOGGER = get_logger("extractors.sources.registry")

# Refresh, lookup and clear visit sources in this order
SOURCE_ORDER = (AssetOrigin.DATABASE, AssetOrigin.DIRECTORY)


class SourceRegistry:
    """
    Ordered collection of asset sources.

    Sources are kept in a fixed order (database, then directory) regardless
    of registration order, so listings are stable between runs.

    Example:
        registry = SourceRegistry([DatabaseSource(settings), DirectorySource(settings)])
        for source in registry:  # database first
            ...
        registry.for_origin(AssetOrigin.DATABASE).read(asset)
    """

    def __init__(self, sources: Sequence[AssetSource] = ()):
        self._sources: List[AssetSource] = []
        for source in sources:
            self.register(source)

    def register(self, source: AssetSource) -> None:
        if self.for_origin(source.origin) is not None:
            raise ValueError(f"A {source.origin.value} source is already registered")
        self._sources.append(source)
        self._sources.sort(key=lambda s: SOURCE_ORDER.index(s.origin))
        LOGGER.debug("Registered %s source", source.name)

    def for_origin(self, origin: Optional[AssetOrigin]) -> Optional[AssetSource]:
        if origin is None:
            return None
        for source in self._sources:
            if source.origin is origin:
                return source
        return None

    def __iter__(self) -> Iterator[AssetSource]:
        return iter(list(self._sources))

    def __len__(self) -> int:
        return len(self._sources)

    def close_all(self) -> None:
        for source in self._sources:
            try:
                source.close()
            except Exception as exc:
                LOGGER.error("Failed to close %s source: %s", source.name, exc)
