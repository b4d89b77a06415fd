"""
PSF Document - In-memory representation of a .psf file.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from psf2rom import codec
from psf2rom.spec import (
    PROGRAM_HEADER_STRUCT,
    TAG_ENCODING,
    lib_tag_name,
    version_name,
)


@dataclass
class PSFFile:
    """
    In-memory representation of a .psf file.

    Usage:
        psf = PSFFile.from_image(0x2000000, program_bytes, version=0x24)
        psf.add_tag("title", "Stage 1")
        psf.add_tag("_lib", "game.2sflib")
        psf.write("stage1.mini2sf")
    """

    # Version byte (console/format variant, informational)
    version: int = 0

    # Opaque reserved area
    reserved: bytes = b""

    # zlib-compressed program
    compressed_program: bytes = b""

    # CRC32 stored in the header (never recomputed implicitly)
    compressed_program_crc32: int = 0

    # name -> value, multi-line values joined with \n
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        program: bytes,
        version: int = 0,
        reserved: bytes = b"",
        tags: dict[str, str] | None = None,
        level: int = 9,
    ) -> PSFFile:
        """Create a PSF file from a decompressed program payload.

        The payload is compressed and its CRC32 is stored in the header.
        """
        compressed = codec.compress(program, level)
        return cls(
            version=version,
            reserved=bytes(reserved),
            compressed_program=compressed,
            compressed_program_crc32=codec.crc32(compressed),
            tags=dict(tags or {}),
        )

    @classmethod
    def from_image(cls, load_offset: int, data: bytes, **kwargs) -> PSFFile:
        """Create a PSF file whose program loads ``data`` at ``load_offset``."""
        header = PROGRAM_HEADER_STRUCT.pack(load_offset, len(data))
        return cls.create(header + bytes(data), **kwargs)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def add_tag(self, name: str, value: str) -> None:
        """Insert a tag, or append a line to an existing multi-line tag.

        ``value`` is the raw form kept in ``tags``: one character per byte
        (latin-1). Convert display text with ``converters.to_tag_value``
        first; ``tag_text`` decodes it back.
        """
        if name in self.tags:
            self.tags[name] = self.tags[name] + "\n" + value
        else:
            self.tags[name] = value

    def set_tag(self, name: str, value: str) -> None:
        """Set a tag, replacing any previous value."""
        self.tags[name] = value

    def remove_tag(self, name: str) -> bool:
        return self.tags.pop(name, None) is not None

    def get_tag(self, name: str) -> str | None:
        return self.tags.get(name)

    def tag_text(self, name: str, encoding: str = "utf-8") -> str | None:
        """Decode a tag value for display (tags are stored as raw latin-1 text)."""
        value = self.tags.get(name)
        if value is None:
            return None
        return value.encode(TAG_ENCODING).decode(encoding, errors="replace")

    def library_tags(self) -> list[tuple[str, str]]:
        """Return (tag, value) for _lib, _lib2, ... up to the first missing number."""
        libs = []
        index = 1
        while True:
            name = lib_tag_name(index)
            value = self.tags.get(name)
            if value is None:
                break
            libs.append((name, value))
            index += 1
        return libs

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def compute_crc32(self) -> int:
        """Compute CRC32 of the compressed program."""
        return codec.crc32(self.compressed_program)

    def verify_crc32(self) -> bool:
        return self.compute_crc32() == self.compressed_program_crc32

    def update_crc32(self) -> int:
        self.compressed_program_crc32 = self.compute_crc32()
        return self.compressed_program_crc32

    def decompress_program(self, max_length: int = 0) -> bytes:
        """Decompress the program section. Raises CodecError on bad data."""
        return codec.decompress(self.compressed_program, max_length)

    @property
    def platform(self) -> str:
        return version_name(self.version)

    def write(self, path: str) -> int:
        """Write this file to disk. Returns bytes written."""
        from psf2rom.writer import PSFWriter
        return PSFWriter.write(self, path)

    def to_bytes(self) -> bytes:
        """Serialize this file to bytes."""
        from psf2rom.writer import PSFWriter
        return PSFWriter.serialize(self)

    def __repr__(self) -> str:
        return (
            f"PSFFile(version=0x{self.version:02X}, reserved={len(self.reserved)}B, "
            f"program={len(self.compressed_program)}B, "
            f"crc32=0x{self.compressed_program_crc32:08X}, tags={list(self.tags)})"
        )
