"""
PSF Writer - Serializes PSFFile to .psf format.

The header fields are written exactly as stored: the CRC32 is never
recomputed here, so a parsed file round-trips bit-for-bit on its
mandatory area. Tags are re-expanded to one name=value line per value line.
"""

from __future__ import annotations

import io
import os
import tempfile
from typing import TYPE_CHECKING

from psf2rom.spec import (
    HEADER_STRUCT,
    MAX_U32,
    SIGNATURE,
    TAG_MARKER,
    encode_tag_text,
)

if TYPE_CHECKING:
    from psf2rom.document import PSFFile


class PSFWriter:

    @staticmethod
    def serialize(psf: PSFFile) -> bytes:
        """Serialize a PSFFile to bytes. Pure - does not mutate the input."""
        if not 0 <= psf.version <= 0xFF:
            raise ValueError(f"Version byte out of range: {psf.version}")
        if len(psf.reserved) > MAX_U32:
            raise ValueError("Reserved area exceeds 4 GiB")
        if len(psf.compressed_program) > MAX_U32:
            raise ValueError("Compressed program exceeds 4 GiB")
        if not 0 <= psf.compressed_program_crc32 <= MAX_U32:
            raise ValueError(
                f"CRC32 out of range: {psf.compressed_program_crc32}"
            )

        out = io.BytesIO()
        out.write(HEADER_STRUCT.pack(
            SIGNATURE,
            psf.version,
            len(psf.reserved),
            len(psf.compressed_program),
            psf.compressed_program_crc32,
        ))
        out.write(psf.reserved)
        out.write(psf.compressed_program)

        if psf.tags:
            out.write(TAG_MARKER)
            out.write(PSFWriter.serialize_tags(psf.tags))

        return out.getvalue()

    @staticmethod
    def serialize_tags(tags: dict[str, str]) -> bytes:
        """Serialize a tag map to tag-section bytes (without the [TAG] marker).

        A value with k embedded newlines is written as k+1 lines repeating
        the same name.
        """
        out = io.BytesIO()
        for name, value in tags.items():
            if "=" in name or "\n" in name:
                raise ValueError(f"Invalid tag name: {name!r}")
            key = encode_tag_text(name)
            for line in value.split("\n"):
                out.write(key + b"=" + encode_tag_text(line) + b"\n")
        return out.getvalue()

    @staticmethod
    def write(psf: PSFFile, path: str | os.PathLike) -> int:
        """Write a PSFFile to a file atomically. Returns bytes written."""
        return write_bytes(PSFWriter.serialize(psf), path)


def write_bytes(data: bytes, path: str | os.PathLike, mode: int = 0o644) -> int:
    """Write bytes to a file atomically. Returns bytes written.

    Uses write-to-temp-then-rename so the target file is never
    partially written.
    """
    path = os.fspath(path)
    dir_name = os.path.dirname(os.path.abspath(path)) or "."
    fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(data)
