"""
psf2rom CLI - Command-line interface for Portable Sound Format files.

Commands:
  psf2rom rom      - Compose the ROM image of a PSF file and its psflibs
  psf2rom inspect  - Show header fields, tags and libraries of a PSF file
  psf2rom validate - Validate a PSF file (structure, CRC32, library tree)
  psf2rom tags     - Print the tags of a PSF file (txt or json)
  psf2rom tag      - Set or remove tags and rewrite the file
  psf2rom identify - Quick check if a file is PSF format
  psf2rom view     - View a PSF file in the terminal (TUI)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def cmd_rom(args: argparse.Namespace) -> None:
    """Compose the ROM image and write it to disk."""
    from psf2rom.loader import ROMLoader
    from psf2rom.spec import ROM_SUFFIX
    from psf2rom.writer import write_bytes

    path = Path(args.path)
    output = Path(args.output) if args.output else path.with_name(path.stem + ROM_SUFFIX)

    loader = ROMLoader()
    try:
        rom = loader.load(path)
    except (ValueError, OSError) as e:
        _fail(str(e))

    if not args.quiet:
        for record in loader.history:
            indent = "  " * record.depth
            print(
                f"{indent}{record.path.name}: "
                f"offset=0x{record.load_offset:08X} size=0x{record.load_size:08X}"
            )

    try:
        nbytes = write_bytes(bytes(rom), output)
    except OSError as e:
        _fail(f"Unable to write {output}: {e}")
    print(f"Wrote {output} ({nbytes} bytes)")


def cmd_inspect(args: argparse.Namespace) -> None:
    """Inspect a PSF file - show header fields, tags and libraries."""
    from psf2rom.reader import PSFReader

    try:
        psf = PSFReader.read(args.path)
    except (ValueError, OSError) as e:
        _fail(str(e))

    print(f"PSF version 0x{psf.version:02X} ({psf.platform})")
    print()

    print("HEADER:")
    print(f"  reserved_size    {len(psf.reserved):>10d}")
    print(f"  compressed_size  {len(psf.compressed_program):>10d}")
    print(f"  crc32            0x{psf.compressed_program_crc32:08X}")
    print()

    print("TAGS:")
    for name in psf.tags:
        value = psf.tag_text(name) or ""
        for line in value.split("\n"):
            # Truncate long values
            display = line if len(line) <= 60 else line[:57] + "..."
            print(f"  {name:16s}  {display}")
    print()

    libs = psf.library_tags()
    if libs:
        print("LIBRARIES:")
        for name, _ in libs:
            print(f"  {name:8s}  {psf.tag_text(name)}")
        print()

    status = "VALID" if psf.verify_crc32() else "INVALID"
    print(f"CRC32: {status}")


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a PSF file and its whole library tree."""
    from psf2rom.loader import ROMLoader
    from psf2rom.reader import PSFReader

    path = args.path

    # Quick signature check
    try:
        if not PSFReader.is_psf(path):
            print(f"FAIL: {path} is not a valid PSF file (bad signature)")
            sys.exit(1)
    except OSError as e:
        print(f"FAIL: {e}")
        sys.exit(1)

    loader = ROMLoader()
    try:
        rom = loader.load(path)
    except (ValueError, OSError) as e:
        print(f"FAIL: {e}")
        sys.exit(1)

    print(f"OK: {path} is a valid PSF file")
    print(f"    Programs: {len(loader.history)}, ROM size: {len(rom)} bytes")


def cmd_tags(args: argparse.Namespace) -> None:
    """Print the tags of a PSF file."""
    from psf2rom.converters import convert_to
    from psf2rom.reader import PSFReader

    try:
        psf = PSFReader.read(args.path)
    except (ValueError, OSError) as e:
        _fail(str(e))

    print(convert_to(psf, args.format), end="" if args.format == "txt" else "\n")


def cmd_tag(args: argparse.Namespace) -> None:
    """Set or remove tags and rewrite the file."""
    from psf2rom.converters import to_tag_value
    from psf2rom.reader import PSFReader

    try:
        psf = PSFReader.read(args.path)
    except (ValueError, OSError) as e:
        _fail(str(e))

    for name in args.remove or []:
        if not psf.remove_tag(to_tag_value(name)):
            print(f"Warning: tag '{name}' not present", file=sys.stderr)

    for assignment in args.assignments:
        if "=" not in assignment:
            _fail(f"Expected NAME=VALUE, got {assignment!r}")
        name, value = assignment.split("=", 1)
        name = name.strip()
        if not name:
            _fail(f"Empty tag name in {assignment!r}")
        # Escaped newlines set multi-line values
        value = value.replace("\\n", "\n")
        psf.set_tag(to_tag_value(name), to_tag_value(value))

    output = args.output or args.path
    try:
        nbytes = psf.write(output)
    except (ValueError, OSError) as e:
        _fail(str(e))
    print(f"Wrote {output} ({nbytes} bytes, {len(psf.tags)} tags)")


def cmd_view(args: argparse.Namespace) -> None:
    """View a PSF file in the terminal."""
    try:
        from psf2rom.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install textual",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path)


def cmd_identify(args: argparse.Namespace) -> None:
    """Quick check if a file is PSF format."""
    from psf2rom.reader import PSFReader

    try:
        is_psf = PSFReader.is_psf(args.path)
    except OSError as e:
        _fail(str(e))
    if is_psf:
        print(f"{args.path}: PSF file")
    else:
        print(f"{args.path}: not PSF")
    sys.exit(0 if is_psf else 1)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="psf2rom",
        description="psf2rom - Extract ROM images from Portable Sound Format files.",
    )
    from psf2rom import __version__
    parser.add_argument("--version", action="version", version=f"psf2rom {__version__}")
    sub = parser.add_subparsers(dest="command")

    # rom
    p_rom = sub.add_parser("rom", help="Compose the ROM image of a PSF file")
    p_rom.add_argument("path", help="Path to PSF file")
    p_rom.add_argument("-o", "--output", help="Output file path (default: <stem>.data.bin)")
    p_rom.add_argument("-q", "--quiet", action="store_true", help="Do not list loaded programs")

    # inspect
    p_inspect = sub.add_parser("inspect", help="Inspect a PSF file")
    p_inspect.add_argument("path", help="Path to PSF file")

    # validate
    p_validate = sub.add_parser("validate", help="Validate a PSF file and its libraries")
    p_validate.add_argument("path", help="Path to PSF file")

    # tags
    p_tags = sub.add_parser("tags", help="Print the tags of a PSF file")
    p_tags.add_argument("path", help="Path to PSF file")
    p_tags.add_argument("--format", choices=["txt", "json"], default="txt", help="Output format (default: txt)")

    # tag
    p_tag = sub.add_parser("tag", help="Set or remove tags of a PSF file")
    p_tag.add_argument("path", help="Path to PSF file")
    p_tag.add_argument("assignments", nargs="*", metavar="NAME=VALUE", help="Tags to set (\\n for multi-line)")
    p_tag.add_argument("-r", "--remove", action="append", metavar="NAME", help="Tag to remove (repeatable)")
    p_tag.add_argument("-o", "--output", help="Output path (default: overwrite input)")

    # view
    p_view = sub.add_parser("view", help="View a PSF file (TUI)")
    p_view.add_argument("path", help="Path to PSF file")

    # identify
    p_identify = sub.add_parser("identify", help="Quick check if a file is PSF")
    p_identify.add_argument("path", help="Path to file")

    args = parser.parse_args()

    if not args.command:
        print("psf2rom - Portable Sound Format to ROM converter.\n")
        print("Usage:")
        print("  psf2rom rom song.mini2sf")
        print("  psf2rom rom song.mini2sf -o song.nds")
        print("  psf2rom inspect song.mini2sf")
        print("  psf2rom validate song.mini2sf")
        print("  psf2rom tags song.mini2sf --format json")
        print("  psf2rom tag song.mini2sf title=Overture -r comment")
        print("  psf2rom view song.mini2sf")
        print("  psf2rom identify song.mini2sf")
        print()
        print("Run 'psf2rom <command> --help' for details on any command.")
        print("Run 'psf2rom --version' for version info.")
        sys.exit(0)

    commands = {
        "rom": cmd_rom,
        "inspect": cmd_inspect,
        "validate": cmd_validate,
        "tags": cmd_tags,
        "tag": cmd_tag,
        "view": cmd_view,
        "identify": cmd_identify,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
