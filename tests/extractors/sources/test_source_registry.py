"""
Tests for the source registry.
"""
from __future__ import annotations

import pytest

from extractors.models import AssetOrigin
from extractors.sources import DatabaseSource, DirectorySource, SourceRegistry


class TestSourceRegistry:
    """Tests for ordering and routing."""

    def test_database_first_regardless_of_registration(self, settings):
        directory = DirectorySource(settings)
        database = DatabaseSource(settings)
        registry = SourceRegistry([directory, database])
        assert list(registry) == [database, directory]
        assert len(registry) == 2

    def test_for_origin(self, settings):
        directory = DirectorySource(settings)
        registry = SourceRegistry([directory])
        assert registry.for_origin(AssetOrigin.DIRECTORY) is directory
        assert registry.for_origin(AssetOrigin.DATABASE) is None
        assert registry.for_origin(None) is None

    def test_duplicate_origin_rejected(self, settings):
        registry = SourceRegistry([DirectorySource(settings)])
        with pytest.raises(ValueError):
            registry.register(DirectorySource(settings))
