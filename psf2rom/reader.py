"""
PSF Reader - Structural parser for .psf files.

Parsing is strictly sequential and checks every field as it is read:
  - Signature, version byte and the three u32 header fields
  - Declared section sizes against the real file size, before any section read
  - Reserved area and compressed program
  - Optional [TAG] section (absence or a bad marker simply means no tags)

The CRC32 of the compressed program is stored but not verified here;
integrity is checked when the program is actually loaded (see loader).
"""

from __future__ import annotations

import io
import struct
from pathlib import Path
from typing import BinaryIO

from psf2rom.document import PSFFile
from psf2rom.errors import (
    BadSignatureError,
    TooShortError,
    TruncatedError,
)
from psf2rom.spec import (
    HEADER_SIZE,
    SIGNATURE,
    SIGNATURE_SIZE,
    TAG_MARKER,
    TAG_MARKER_SIZE,
    decode_tag_text,
    split_tag_line,
)

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")


class PSFReader:
    """
    .psf file reader.

    Usage:
        psf = PSFReader.read("stage1.mini2sf")
        psf.tags["_lib"]

        psf = PSFReader.parse(data)
    """

    @staticmethod
    def is_psf(path: str | Path) -> bool:
        """Fast check if a file is PSF format. Reads only the signature."""
        with open(path, "rb") as f:
            head = f.read(SIGNATURE_SIZE)
        return head == SIGNATURE

    @staticmethod
    def is_psf_bytes(data: bytes) -> bool:
        """Fast check if bytes are PSF format."""
        return data[:SIGNATURE_SIZE] == SIGNATURE

    @classmethod
    def read(cls, path: str | Path) -> PSFFile:
        """Parse a .psf file from disk.

        Raises FormatError for structural problems; OSError propagates.
        """
        path = Path(path)
        file_size = path.stat().st_size
        with open(path, "rb") as f:
            return cls._parse_stream(f, file_size, path)

    @classmethod
    def parse(cls, data: bytes, path: str | Path | None = None) -> PSFFile:
        """Parse bytes into a PSFFile. ``path`` is only used in error messages."""
        return cls._parse_stream(io.BytesIO(data), len(data), path)

    @classmethod
    def _parse_stream(
        cls, handle: BinaryIO, file_size: int, path: str | Path | None
    ) -> PSFFile:
        signature = handle.read(SIGNATURE_SIZE)
        if signature != SIGNATURE:
            raise BadSignatureError(path)

        version = _read_int(handle, _U8, "version", path)
        reserved_size = _read_int(handle, _U32, "reserved_size", path)
        compressed_size = _read_int(handle, _U32, "compressed_size", path)
        crc32 = _read_int(handle, _U32, "crc32", path)

        # Check the size consistency before touching any section
        mandatory_size = HEADER_SIZE + reserved_size + compressed_size
        if mandatory_size > file_size:
            raise TooShortError(path)

        reserved = _read_exact(handle, reserved_size, "reserved", path)
        compressed = _read_exact(handle, compressed_size, "program", path)

        psf = PSFFile(
            version=version,
            reserved=reserved,
            compressed_program=compressed,
            compressed_program_crc32=crc32,
        )

        # Optional tag area
        if mandatory_size + TAG_MARKER_SIZE <= file_size:
            marker = handle.read(TAG_MARKER_SIZE)
            if marker == TAG_MARKER:
                tag_size = file_size - mandatory_size - TAG_MARKER_SIZE
                tag_data = handle.read(tag_size)
                cls._parse_tags_into(psf, tag_data)

        return psf

    @classmethod
    def parse_tags(cls, data: bytes) -> dict[str, str]:
        """Parse the bytes of a tag section (without the [TAG] marker)."""
        holder = PSFFile()
        cls._parse_tags_into(holder, data)
        return holder.tags

    @staticmethod
    def _parse_tags_into(psf: PSFFile, data: bytes) -> None:
        for line in data.split(b"\n"):
            pair = split_tag_line(line)
            if pair is None:
                # Blank lines and lines without "=" are ignored
                continue
            name, value = pair
            psf.add_tag(decode_tag_text(name), decode_tag_text(value))


def _read_exact(
    handle: BinaryIO, size: int, field: str, path: str | Path | None
) -> bytes:
    data = handle.read(size)
    if len(data) != size:
        raise TruncatedError(field, path)
    return data


def _read_int(
    handle: BinaryIO, fmt: struct.Struct, field: str, path: str | Path | None
) -> int:
    return fmt.unpack(_read_exact(handle, fmt.size, field, path))[0]
