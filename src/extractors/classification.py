"""
Classification and payload slicing.

Cached blobs usually start with stored HTTP metadata, so the real file is
located by searching for its signature and slicing from there. Pattern order
in the catalog decides which signature wins, not byte position.
"""

from __future__ import annotations

from typing import Optional, Tuple

from core.logging import get_logger

from .asset_signatures import Category, extension_for, headers_for, offset_for
from .exceptions import HeaderNotFoundError

LOGGER = get_logger("extractors.classification")

# MP3 headers are common by accident; require this marker as well
ID3_CONFIRMATION = b"binary/"

# Categories scanned by determine_category, in order
_DETECTION_ORDER = tuple(
    category for category in Category
    if category not in (Category.ALL, Category.MUSIC)
)


def find_header(category: Category, data: bytes) -> bytes:
    """
    Return the first of ``category``'s patterns that occurs in ``data``.

    Raises:
        HeaderNotFoundError: if none of the patterns occur
    """
    for header in headers_for(category):
        if header in data:
            return header
    raise HeaderNotFoundError(f"No {category.value} header found in {len(data)} bytes")


def extract_payload(signature: bytes, data: bytes) -> bytes:
    """
    Slice ``data`` from the start of the file identified by ``signature``.

    The earliest occurrence is located and moved back by the signature's
    offset. If the signature is absent the input is returned unchanged.
    """
    index = data.find(signature) if signature else -1
    if index == -1:
        LOGGER.warning("Signature %r not found, returning %d bytes unchanged", signature, len(data))
        return data
    start = max(0, index - offset_for(signature))
    return data[start:]


def determine_category(data: bytes) -> Category:
    """Classify a buffer, falling back to ``Category.ALL`` when nothing matches."""
    for category in _DETECTION_ORDER:
        for header in headers_for(category):
            if header not in data:
                continue
            if header == b"ID3" and ID3_CONFIRMATION not in data:
                continue
            return category
    return Category.ALL


def slice_asset(category: Category, data: bytes) -> Tuple[bytes, Optional[str]]:
    """
    Locate and slice the payload for ``category``.

    Returns:
        Tuple of (payload, extension). Extension is None and the payload is
        the input unchanged when no signature matches.
    """
    try:
        header = find_header(category, data)
    except HeaderNotFoundError:
        return data, None
    return extract_payload(header, data), extension_for(header)
