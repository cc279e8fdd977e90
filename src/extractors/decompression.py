"""
Zstandard decompression shim.

Cache entries may be stored zstd-compressed. Buffers that start with the
zstd frame magic are decompressed; everything else passes through unchanged.
Failures never propagate: the original bytes are returned and the problem
is logged.
"""

from __future__ import annotations

from typing import Optional

import zstandard as zstd

from core.logging import get_logger

LOGGER = get_logger("extractors.decompression")

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


def is_zstd(data: bytes) -> bool:
    return data[:4] == ZSTD_MAGIC


def maybe_decompress(data: bytes, name: Optional[str] = None, *, partial: bool = False) -> bytes:
    """
    Decompress ``data`` if it starts with a zstd frame.

    Full reads decode every frame and reject incomplete input. Partial reads
    decode as much of the first frame as the prefix holds.

    Args:
        data: Raw stored bytes
        name: Asset name used in log messages
        partial: ``data`` is a truncated prefix (listing reads); failures are
            expected there and logged at debug level

    Returns:
        Decompressed bytes, or ``data`` itself when it is not compressed or
        decoding fails
    """
    if not is_zstd(data):
        return data

    log = LOGGER.debug if partial else LOGGER.warning
    try:
        if partial:
            # decompressobj copes with frames that omit the content size and
            # yields what it can from truncated input
            result = zstd.ZstdDecompressor().decompressobj().decompress(data)
        else:
            result = _decompress_frames(data)
    except zstd.ZstdError as exc:
        log("Failed to decompress %s: %s", name or "buffer", exc)
        return data

    if result is None:
        log("Compressed data in %s is truncated", name or "buffer")
        return data
    if not result:
        log("Decompressing %s produced no output", name or "buffer")
        return data
    return result


def _decompress_frames(data: bytes) -> Optional[bytes]:
    """Decode every frame in ``data``. None if a frame is incomplete."""
    output = bytearray()
    remaining = data
    while remaining:
        dobj = zstd.ZstdDecompressor().decompressobj()
        output += dobj.decompress(remaining)
        if not dobj.eof:
            return None
        remaining = dobj.unused_data
    return bytes(output)


def compress(data: bytes, level: int = 3) -> bytes:
    """Compress ``data`` into a single zstd frame."""
    return zstd.ZstdCompressor(level=level).compress(data)
