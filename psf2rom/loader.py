"""
PSF Loader - Compose a ROM image from a PSF file and its psflibs.

Resolution order for one file:
  1. Parse the container and check the CRC32 of its compressed program
  2. Load _lib, _lib2, _lib3, ... (depth-first, ascending), each relative
     to the directory of the file that names it
  3. Decompress the program and copy it to load_offset in the ROM

The first program to be applied sizes the ROM buffer; every later one must
fit inside it. Files closer to the root are applied after their libraries,
so their bytes win where regions overlap.
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from psf2rom import codec
from psf2rom.errors import (
    ChecksumMismatchError,
    CodecError,
    ContainerFormatError,
    DecompressionFailedError,
    FormatError,
    HeaderTooShortError,
    ImageTooLargeError,
    NestTooDeepError,
    OutOfBoundsError,
    ProgramCorruptedError,
)
from psf2rom.reader import PSFReader
from psf2rom.spec import (
    MAX_NEST_LEVEL,
    MAX_ROM_SIZE,
    PROGRAM_HEADER_SIZE,
    PROGRAM_HEADER_STRUCT,
    TAG_ENCODING,
)


@dataclass
class LoadRecord:
    """One program applied to the ROM."""
    path: Path
    depth: int
    load_offset: int
    load_size: int


@dataclass
class _Composition:
    rom: bytearray = field(default_factory=bytearray)
    sized: bool = False


def library_path(base_dir: Path, value: str) -> Path:
    """Resolve a _libN tag value against the directory of the referencing file.

    Tag text is the latin-1 image of the raw bytes, so the original bytes
    are recovered and decoded the way the filesystem expects.
    """
    name = os.fsdecode(value.encode(TAG_ENCODING))
    return base_dir / name


class ROMLoader:
    """
    Recursive psflib resolver.

    Usage:
        loader = ROMLoader()
        rom = loader.load("stage1.mini2sf")
        for record in loader.history:
            print(record.path, hex(record.load_offset), record.load_size)
    """

    def __init__(
        self,
        decompress: Callable[[bytes], bytes] | None = None,
        max_nest_level: int = MAX_NEST_LEVEL,
        max_rom_size: int = MAX_ROM_SIZE,
    ) -> None:
        if decompress is None:
            # Nothing past the program header plus a full ROM is ever copied
            decompress = functools.partial(
                codec.decompress, max_length=PROGRAM_HEADER_SIZE + max_rom_size
            )
        self._decompress = decompress
        self.max_nest_level = max_nest_level
        self.max_rom_size = max_rom_size
        self.history: list[LoadRecord] = []

    def load(self, root_path: str | os.PathLike) -> bytearray:
        """Resolve ``root_path`` and all its libraries into a new ROM buffer."""
        self.history = []
        state = _Composition()
        root = Path(os.path.abspath(root_path))
        self._load(root, 0, state)
        return state.rom

    def _load(self, path: Path, depth: int, state: _Composition) -> None:
        if depth >= self.max_nest_level:
            raise NestTooDeepError(path)

        try:
            psf = PSFReader.read(path)
        except FormatError as e:
            raise ContainerFormatError(path, e) from e

        # Integrity covers the compressed program only
        actual = psf.compute_crc32()
        if actual != psf.compressed_program_crc32:
            raise ChecksumMismatchError(path, psf.compressed_program_crc32, actual)

        base_dir = path.parent
        for _tag, value in psf.library_tags():
            self._load(library_path(base_dir, value), depth + 1, state)

        try:
            exe = self._decompress(psf.compressed_program)
        except CodecError as e:
            raise DecompressionFailedError(path, e.message) from e
        if len(exe) < PROGRAM_HEADER_SIZE:
            raise HeaderTooShortError(path)

        load_offset, load_size = PROGRAM_HEADER_STRUCT.unpack_from(exe, 0)
        load_end = load_offset + load_size

        if load_end > self.max_rom_size:
            raise ImageTooLargeError(path)
        if not state.sized:
            state.rom = bytearray(load_end)
            state.sized = True
        elif load_end > len(state.rom):
            raise OutOfBoundsError(path)

        if len(exe) < PROGRAM_HEADER_SIZE + load_size:
            raise ProgramCorruptedError(path)

        state.rom[load_offset:load_end] = exe[PROGRAM_HEADER_SIZE:PROGRAM_HEADER_SIZE + load_size]
        self.history.append(LoadRecord(path, depth, load_offset, load_size))


def resolve(root_path: str | os.PathLike) -> bytearray:
    """Compose the ROM image for ``root_path``.

    Raises ResolutionError for any failure in the library tree; OSError
    propagates unchanged.
    """
    return ROMLoader().load(root_path)
