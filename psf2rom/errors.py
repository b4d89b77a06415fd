"""
PSF Errors - Typed failures for parsing and library resolution.

  - FormatError: a single container is structurally invalid
  - ResolutionError: composing a ROM from a file and its psflibs failed
  - CodecError: the compressed program stream is malformed

All of them are ValueErrors and carry the offending path. Filesystem
failures are not wrapped; they surface as the usual OSError subclasses.
"""

from __future__ import annotations

import os
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


class PSFError(ValueError):
    """Base class for every PSF failure. ``path`` may be None for in-memory data."""

    default_message = "PSF error"

    def __init__(self, path: PathLike | None = None, message: str | None = None) -> None:
        self.path = os.fspath(path) if path is not None else None
        self.message = message or self.default_message
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.path}: {self.message}"


# =============================================================================
# Container format
# =============================================================================

class FormatError(PSFError):
    default_message = "Invalid PSF file."


class BadSignatureError(FormatError):
    default_message = "Invalid PSF signature."


class TruncatedError(FormatError):
    """A header field or section ended before its declared size."""

    def __init__(self, field: str, path: PathLike | None = None) -> None:
        self.field = field
        super().__init__(path, f"Unable to read the {field} field (file truncated).")


class TooShortError(FormatError):
    default_message = "File is shorter than its declared section sizes."


# =============================================================================
# Resolution
# =============================================================================

class ResolutionError(PSFError):
    default_message = "Unable to resolve PSF file."


class NestTooDeepError(ResolutionError):
    default_message = "Nest level error on psflib loading."


class ChecksumMismatchError(ResolutionError):

    def __init__(self, path: PathLike | None, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            path,
            f"CRC32 error at the compressed program "
            f"(stored 0x{expected:08X}, computed 0x{actual:08X}).",
        )


class DecompressionFailedError(ResolutionError):
    default_message = "Unable to decompress the program."


class HeaderTooShortError(ResolutionError):
    default_message = "Unable to read the program header."


class ImageTooLargeError(ResolutionError):
    default_message = "Load offset/size of the program is too large."


class OutOfBoundsError(ResolutionError):
    default_message = "Load offset/size of the program is out of bound."


class ProgramCorruptedError(ResolutionError):
    default_message = "Program data is corrupted."


class ContainerFormatError(ResolutionError):
    """A file in the library tree failed to parse. Wraps the FormatError."""

    def __init__(self, path: PathLike | None, format_error: FormatError) -> None:
        self.format_error = format_error
        super().__init__(path, format_error.message)


# =============================================================================
# Codec
# =============================================================================

class CodecError(PSFError):
    default_message = "Malformed compressed stream."
