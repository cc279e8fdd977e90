"""
Asset Signature Catalog

Maps each asset category to the byte patterns that identify it. Patterns are
plain substrings searched anywhere in a buffer, since cached blobs often carry
HTTP metadata ahead of the payload.

Categories:
- Music (sounds sub-folder of the directory cache)
- Sounds (OGG, MP3)
- Images (PNG, WebP)
- KTX textures
- RBXM models
- All (union of the above)
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple


class Category(Enum):
    """Asset categories, in detection order."""

    MUSIC = "music"
    SOUNDS = "sounds"
    IMAGES = "images"
    KTX = "ktx"
    RBXM = "rbxm"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Look up a category by value or name, case-insensitively."""
        text = value.strip().lower()
        for category in cls:
            if category.value == text:
                return category
        raise ValueError(f"Unknown category: {value!r}")


# Signature patterns per concrete category, in match priority order
CATEGORY_HEADERS: Dict[Category, Tuple[bytes, ...]] = {
    Category.MUSIC: (b"OggS", b"ID3"),
    Category.SOUNDS: (b"OggS", b"ID3"),
    Category.IMAGES: (b"PNG", b"WEBP"),
    Category.KTX: (b"KTX",),
    Category.RBXM: (b"<roblox!",),
}

# Bytes between the start of a file and where each pattern appears
SIGNATURE_OFFSETS: Dict[bytes, int] = {
    b"PNG": 1,     # \x89PNG
    b"KTX": 1,     # \xabKTX 11
    b"WEBP": 8,    # RIFF....WEBP
}

SIGNATURE_EXTENSIONS: Dict[bytes, str] = {
    b"OggS": "ogg",
    b"ID3": "mp3",
    b"PNG": "png",
    b"WEBP": "webp",
    b"KTX": "ktx",
    b"<roblox!": "rbxm",
}

DEFAULT_EXTENSION = "ogg"


def _all_headers() -> Tuple[bytes, ...]:
    union: List[bytes] = []
    for category in Category:
        for pattern in CATEGORY_HEADERS.get(category, ()):
            if pattern and pattern not in union:
                union.append(pattern)
    return tuple(union)


_ALL_HEADERS = _all_headers()


def headers_for(category: Category) -> List[bytes]:
    """
    Return the signature patterns for a category.

    ``Category.ALL`` yields the de-duplicated union of every concrete
    category's patterns, in category order.
    """
    if category is Category.ALL:
        return list(_ALL_HEADERS)
    return list(CATEGORY_HEADERS[category])


def offset_for(signature: bytes) -> int:
    return SIGNATURE_OFFSETS.get(signature, 0)


def extension_for(signature: bytes) -> str:
    """Map a matched signature to a file extension (``ogg`` when unknown)."""
    return SIGNATURE_EXTENSIONS.get(signature, DEFAULT_EXTENSION)
