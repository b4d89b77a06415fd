"""
PSF Codec - zlib stream compression and CRC32 for the program section.
"""

from __future__ import annotations

import zlib

from psf2rom.errors import CodecError


def compress(data: bytes, level: int = 9) -> bytes:
    return zlib.compress(data, level)


def decompress(data: bytes, max_length: int = 0) -> bytes:
    """Inflate a complete zlib stream.

    With ``max_length`` set, inflation stops after that many output bytes
    and the rest of the stream is left unread. Raises CodecError on
    malformed or truncated input.
    """
    inflater = zlib.decompressobj()
    try:
        out = inflater.decompress(data, max_length)
        if max_length and len(out) >= max_length:
            return out
        out += inflater.flush()
    except zlib.error as e:
        raise CodecError(message=f"Malformed compressed stream: {e}") from e
    if not inflater.eof:
        raise CodecError(message="Compressed stream is truncated.")
    return out


def crc32(data: bytes) -> int:
    """Standard CRC32, as an unsigned 32-bit integer."""
    return zlib.crc32(data) & 0xFFFFFFFF
