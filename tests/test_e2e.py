"""
End-to-End Tests - Full workflows through the CLI.
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest

from psf2rom.document import PSFFile
from psf2rom.reader import PSFReader

PROJECT_ROOT = str(Path(__file__).parent.parent)


def _run(*args):
    return subprocess.run(
        [sys.executable, "-m", "psf2rom.cli", *map(str, args)],
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
    )


@pytest.fixture
def song(tmp_path):
    """A minipsf with one library, the way rips are usually distributed."""
    lib = PSFFile.from_image(0, b"L" * 0x20, version=0x24)
    lib.add_tag("title", "Sound driver")
    lib.write(str(tmp_path / "game.2sflib"))

    mini = PSFFile.from_image(0x10, b"R" * 4, version=0x24)
    mini.add_tag("_lib", "game.2sflib")
    mini.add_tag("title", "Overture")
    mini.add_tag("comment", "first line")
    mini.add_tag("comment", "second line")
    path = tmp_path / "song.mini2sf"
    mini.write(str(path))
    return path


class TestFullWorkflow:

    def test_create_write_resolve_cycle(self, song):
        from psf2rom.loader import resolve

        loaded = PSFReader.read(song)
        assert loaded.tags["comment"] == "first line\nsecond line"
        assert loaded.library_tags() == [("_lib", "game.2sflib")]

        rom = resolve(song)
        assert rom == bytearray(b"L" * 0x10 + b"R" * 4 + b"L" * 0xC)

    def test_retag_keeps_program(self, song):
        psf = PSFReader.read(song)
        psf.set_tag("title", "Renamed")
        psf.write(str(song))

        again = PSFReader.read(song)
        assert again.tags["title"] == "Renamed"
        assert again.compressed_program == psf.compressed_program
        assert again.verify_crc32()


class TestCLI:
    """Test the CLI commands via subprocess."""

    def test_cli_help(self):
        result = _run("--help")
        assert result.returncode == 0
        assert "Portable Sound Format" in result.stdout

    def test_cli_version(self):
        from psf2rom import __version__
        result = _run("--version")
        assert result.returncode == 0
        assert __version__ in result.stdout

    def test_cli_no_command(self):
        result = _run()
        assert result.returncode == 0
        assert "Usage:" in result.stdout

    def test_cli_rom_default_output(self, song):
        result = _run("rom", song)
        assert result.returncode == 0, result.stderr

        output = song.with_name("song.data.bin")
        assert output.exists()
        assert output.read_bytes() == b"L" * 0x10 + b"R" * 4 + b"L" * 0xC
        assert "game.2sflib" in result.stdout
        assert "song.mini2sf" in result.stdout

    def test_cli_rom_explicit_output(self, song, tmp_path):
        output = tmp_path / "out" / "rom.nds"
        output.parent.mkdir()
        result = _run("rom", song, "-o", output, "-q")
        assert result.returncode == 0, result.stderr
        assert output.stat().st_size == 0x20
        assert "game.2sflib" not in result.stdout

    def test_cli_rom_missing_library(self, tmp_path):
        mini = PSFFile.from_image(0, b"R")
        mini.add_tag("_lib", "missing.2sflib")
        path = tmp_path / "song.mini2sf"
        mini.write(str(path))

        result = _run("rom", path)
        assert result.returncode == 1
        assert result.stderr.startswith("Error:")
        assert not path.with_name("song.data.bin").exists()

    def test_cli_rom_checksum_error(self, tmp_path):
        psf = PSFFile.from_image(0, b"R")
        psf.compressed_program_crc32 ^= 1
        path = tmp_path / "bad.2sf"
        psf.write(str(path))

        result = _run("rom", path)
        assert result.returncode == 1
        assert "CRC32" in result.stderr

    def test_cli_inspect(self, song):
        result = _run("inspect", song)
        assert result.returncode == 0
        assert "Nintendo DS" in result.stdout
        assert "Overture" in result.stdout
        assert "second line" in result.stdout
        assert "LIBRARIES:" in result.stdout
        assert "CRC32: VALID" in result.stdout

    def test_cli_inspect_bad_file(self, tmp_path):
        path = tmp_path / "junk.bin"
        path.write_bytes(b"junk")
        result = _run("inspect", path)
        assert result.returncode == 1
        assert "signature" in result.stderr

    def test_cli_validate(self, song):
        result = _run("validate", song)
        assert result.returncode == 0
        assert "OK" in result.stdout
        assert "Programs: 2" in result.stdout

    def test_cli_validate_not_psf(self, tmp_path):
        path = tmp_path / "junk.bin"
        path.write_bytes(b"RIFF1234")
        result = _run("validate", path)
        assert result.returncode == 1
        assert "FAIL" in result.stdout

    def test_cli_validate_broken_library(self, song):
        song.with_name("game.2sflib").write_bytes(b"PSF")
        result = _run("validate", song)
        assert result.returncode == 1
        assert "FAIL" in result.stdout

    def test_cli_tags_txt(self, song):
        result = _run("tags", song)
        assert result.returncode == 0
        assert "_lib=game.2sflib\n" in result.stdout
        assert "comment=first line\ncomment=second line\n" in result.stdout

    def test_cli_tags_json(self, song):
        result = _run("tags", song, "--format", "json")
        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["tags"]["title"] == "Overture"
        assert data["libraries"] == ["game.2sflib"]

    def test_cli_tag_set_and_remove(self, song):
        before = PSFReader.read(song)
        result = _run("tag", song, "title=New Title", "artist=Composer", "-r", "comment")
        assert result.returncode == 0, result.stderr

        after = PSFReader.read(song)
        assert after.tags["title"] == "New Title"
        assert after.tags["artist"] == "Composer"
        assert "comment" not in after.tags
        assert after.compressed_program_crc32 == before.compressed_program_crc32

    def test_cli_tag_multiline(self, song, tmp_path):
        output = tmp_path / "copy.mini2sf"
        result = _run("tag", song, "comment=one\\ntwo", "-o", output)
        assert result.returncode == 0, result.stderr
        assert PSFReader.read(output).tags["comment"] == "one\ntwo"

    def test_cli_tag_utf8(self, song):
        result = _run("tag", song, "title=Café")
        assert result.returncode == 0, result.stderr
        assert PSFReader.read(song).tag_text("title") == "Café"

    def test_cli_tag_bad_assignment(self, song):
        result = _run("tag", song, "no-equals-sign")
        assert result.returncode == 1
        assert "NAME=VALUE" in result.stderr

    def test_cli_identify(self, song, tmp_path):
        result = _run("identify", song)
        assert result.returncode == 0
        assert "PSF file" in result.stdout

        other = tmp_path / "other.bin"
        other.write_bytes(b"nope")
        result = _run("identify", other)
        assert result.returncode == 1
        assert "not PSF" in result.stdout
