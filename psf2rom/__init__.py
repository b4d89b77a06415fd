"""
psf2rom - Portable Sound Format to ROM converter.

Parses PSF containers and composes the program of a file and all of its
psflibs into one flat ROM image.
"""

__version__ = "1.0.0"

from psf2rom.spec import SIGNATURE, TAG_MARKER, MAX_NEST_LEVEL, MAX_ROM_SIZE
from psf2rom.document import PSFFile
from psf2rom.reader import PSFReader
from psf2rom.writer import PSFWriter
from psf2rom.loader import ROMLoader, resolve
from psf2rom.errors import FormatError, ResolutionError
