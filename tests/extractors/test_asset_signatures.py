"""
Tests for the asset signature catalog.
"""
from __future__ import annotations

import pytest

from extractors.asset_signatures import (
    CATEGORY_HEADERS,
    Category,
    extension_for,
    headers_for,
    offset_for,
)


class TestHeadersFor:
    """Tests for headers_for."""

    def test_concrete_categories(self):
        assert headers_for(Category.MUSIC) == [b"OggS", b"ID3"]
        assert headers_for(Category.SOUNDS) == [b"OggS", b"ID3"]
        assert headers_for(Category.IMAGES) == [b"PNG", b"WEBP"]
        assert headers_for(Category.KTX) == [b"KTX"]
        assert headers_for(Category.RBXM) == [b"<roblox!"]

    def test_all_is_deduplicated_union(self):
        union = headers_for(Category.ALL)
        assert union == [b"OggS", b"ID3", b"PNG", b"WEBP", b"KTX", b"<roblox!"]
        assert len(union) == len(set(union))

    def test_all_covers_every_category(self):
        union = set(headers_for(Category.ALL))
        for patterns in CATEGORY_HEADERS.values():
            assert set(patterns) <= union

    def test_no_empty_patterns(self):
        for category in Category:
            assert all(headers_for(category))

    def test_returns_copy(self):
        headers_for(Category.IMAGES).append(b"JUNK")
        assert headers_for(Category.IMAGES) == [b"PNG", b"WEBP"]


class TestOffsetsAndExtensions:
    """Tests for offset_for and extension_for."""

    @pytest.mark.parametrize("signature,offset", [
        (b"PNG", 1), (b"KTX", 1), (b"WEBP", 8), (b"OggS", 0), (b"ID3", 0), (b"<roblox!", 0),
    ])
    def test_offsets(self, signature: bytes, offset: int):
        assert offset_for(signature) == offset

    @pytest.mark.parametrize("signature,extension", [
        (b"OggS", "ogg"), (b"ID3", "mp3"), (b"PNG", "png"),
        (b"WEBP", "webp"), (b"KTX", "ktx"), (b"<roblox!", "rbxm"),
    ])
    def test_extensions(self, signature: bytes, extension: str):
        assert extension_for(signature) == extension

    def test_unknown_extension_defaults_to_ogg(self):
        assert extension_for(b"ZZZZ") == "ogg"


class TestCategoryParse:
    """Tests for Category.parse."""

    def test_case_insensitive(self):
        assert Category.parse("Images") is Category.IMAGES
        assert Category.parse(" rbxm ") is Category.RBXM

    def test_unknown(self):
        with pytest.raises(ValueError):
            Category.parse("videos")
