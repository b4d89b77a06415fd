"""
PSF Format Specification
========================

Layout (all multi-byte fields little-endian):
    offset 0   "PSF"                   <- Signature (3 bytes, literal)
    offset 3   version                 <- Version byte (console/format variant)
    offset 4   reserved_size           <- u32
    offset 8   compressed_size         <- u32
    offset 12  compressed_crc32        <- u32, CRC32 of the compressed program
    offset 16  reserved[reserved_size]
    ...        compressed_program[compressed_size]
    [optional] "[TAG]" + name=value lines

Decompressed program payload:
    load_offset  u32
    load_size    u32
    data         load_size bytes

Tag Section:
    - One "name=value" per line, lines split on \\n (trailing newline optional)
    - Lines without "=" are ignored
    - Name and value are split at the first "="
    - Bytes 0x00-0x20 are whitespace and trimmed from both ends of each side
    - A name repeated on several lines is a multi-line value, joined with \\n
    - No charset is mandated; text is the latin-1 image of the raw bytes

Library Tags:
    - _lib, _lib2, _lib3, ... name other PSF files (psflibs)
    - Paths are relative to the directory of the file carrying the tag
    - Libraries are applied before the file that references them
"""

from __future__ import annotations

import struct

# Signature - first three bytes of every PSF file
SIGNATURE = b"PSF"
SIGNATURE_SIZE = len(SIGNATURE)

# Optional tag section marker
TAG_MARKER = b"[TAG]"
TAG_MARKER_SIZE = len(TAG_MARKER)

# Fixed header: signature + version + three u32 fields
HEADER_SIZE = 0x10
HEADER_STRUCT = struct.Struct("<3sBIII")

# Header of the decompressed program (load_offset, load_size)
PROGRAM_HEADER_STRUCT = struct.Struct("<II")
PROGRAM_HEADER_SIZE = PROGRAM_HEADER_STRUCT.size

# Resolution limits
MAX_NEST_LEVEL = 10                 # Max psflib nesting depth
MAX_ROM_SIZE = 128 * 1024 * 1024    # Addressable ROM of the target platform
MAX_U32 = 0xFFFFFFFF

# Library tag prefix (_lib, _lib2, _lib3, ...)
LIB_TAG = "_lib"

# Lossless byte <-> text mapping for tag names and values
TAG_ENCODING = "latin-1"

# Highest byte value treated as tag whitespace
TAG_WHITESPACE_MAX = 0x20

# Known version bytes (informational only, never enforced)
VERSION_NAMES = {
    0x01: "PlayStation",
    0x02: "PlayStation 2",
    0x11: "Sega Saturn",
    0x12: "Sega Dreamcast",
    0x13: "Sega Mega Drive",
    0x21: "Nintendo 64",
    0x22: "Game Boy Advance",
    0x23: "Super Nintendo",
    0x24: "Nintendo DS",
    0x25: "Game Boy",
    0x41: "Capcom QSound",
}

# Suffix appended to the input stem for extracted ROM images
ROM_SUFFIX = ".data.bin"


def lib_tag_name(index: int) -> str:
    """Return the library tag for a 1-based index: _lib, _lib2, _lib3, ..."""
    if index < 1:
        raise ValueError(f"Library index must be >= 1, got {index}")
    if index == 1:
        return LIB_TAG
    return f"{LIB_TAG}{index}"


def version_name(version: int) -> str:
    return VERSION_NAMES.get(version, f"unknown (0x{version:02X})")


def is_tag_whitespace(byte: int) -> bool:
    return byte <= TAG_WHITESPACE_MAX


def trim_tag_bytes(data: bytes) -> bytes:
    """Strip bytes 0x00-0x20 from both ends."""
    start = 0
    end = len(data)
    while end > start and is_tag_whitespace(data[end - 1]):
        end -= 1
    while start < end and is_tag_whitespace(data[start]):
        start += 1
    return data[start:end]


def split_tag_line(line: bytes) -> tuple[bytes, bytes] | None:
    """Split one tag line at the first '=' and trim both sides.

    Returns None for lines that are not of the form name=value.
    """
    sep = line.find(b"=")
    if sep < 0:
        return None
    return trim_tag_bytes(line[:sep]), trim_tag_bytes(line[sep + 1:])


def encode_tag_text(text: str) -> bytes:
    return text.encode(TAG_ENCODING)


def decode_tag_text(data: bytes) -> str:
    return data.decode(TAG_ENCODING)
