"""
PSF Converters - Render a PSF file's header and tags as JSON or tag text.

  - to_json: header fields, CRC status, tags and library list
  - to_txt / from_txt: the tag section as plain name=value text
"""

from __future__ import annotations

import json
from typing import Any

from psf2rom.document import PSFFile
from psf2rom.reader import PSFReader
from psf2rom.spec import TAG_ENCODING
from psf2rom.writer import PSFWriter


# =============================================================================
# JSON
# =============================================================================

def to_json(psf: PSFFile, indent: int = 2) -> str:
    """Convert a PSF file's header and tags to a JSON string."""
    data: dict[str, Any] = {
        "version": psf.version,
        "platform": psf.platform,
        "reserved_size": len(psf.reserved),
        "compressed_size": len(psf.compressed_program),
        "crc32": f"{psf.compressed_program_crc32:08x}",
        "crc32_actual": f"{psf.compute_crc32():08x}",
        "crc32_valid": psf.verify_crc32(),
        "tags": {name: psf.tag_text(name) for name in psf.tags},
        "libraries": [psf.tag_text(name) for name, _ in psf.library_tags()],
    }
    return json.dumps(data, indent=indent, ensure_ascii=False)


# =============================================================================
# TXT
# =============================================================================

def to_txt(psf: PSFFile, encoding: str = "utf-8") -> str:
    """Render the tag section as text, one name=value line per value line."""
    raw = PSFWriter.serialize_tags(psf.tags)
    return raw.decode(encoding, errors="replace")


def from_txt(txt_str: str, encoding: str = "utf-8") -> dict[str, str]:
    """Parse name=value text into a tag map, using the tag section rules.

    The text is encoded with ``encoding`` first, so the returned values
    hold the same raw bytes a tag section on disk would.
    """
    return PSFReader.parse_tags(txt_str.encode(encoding))


def to_tag_value(text: str, encoding: str = "utf-8") -> str:
    """Convert display text to the raw form stored in PSFFile.tags."""
    return text.encode(encoding).decode(TAG_ENCODING)


# =============================================================================
# Dispatch
# =============================================================================

CONVERTERS_TO = {
    "json": to_json,
    "txt": to_txt,
}


def convert_to(psf: PSFFile, fmt: str) -> str:
    """Convert a PSF file to the specified format."""
    fn = CONVERTERS_TO.get(fmt)
    if fn is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {', '.join(CONVERTERS_TO)}")
    return fn(psf)
