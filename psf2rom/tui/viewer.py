"""PSF TUI Viewer - Main Textual app with 3-panel layout."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from psf2rom.document import PSFFile
from psf2rom.errors import CodecError
from psf2rom.reader import PSFReader
from psf2rom.spec import MAX_ROM_SIZE, PROGRAM_HEADER_SIZE, PROGRAM_HEADER_STRUCT
from psf2rom.tui.widgets import ContentPanel, EntryList, HeaderPanel, hex_dump

PROGRAM_ENTRY = "[program]"
DUMP_BYTES = 512


def describe_program(psf: PSFFile, dump_bytes: int = DUMP_BYTES) -> str:
    """Program header plus a hex dump of the start of the payload."""
    try:
        exe = psf.decompress_program(PROGRAM_HEADER_SIZE + MAX_ROM_SIZE)
    except CodecError as e:
        return f"Unable to decompress the program: {e.message}"
    if len(exe) < PROGRAM_HEADER_SIZE:
        return f"Program header truncated ({len(exe)} bytes)"
    load_offset, load_size = PROGRAM_HEADER_STRUCT.unpack_from(exe, 0)
    payload = exe[PROGRAM_HEADER_SIZE:PROGRAM_HEADER_SIZE + min(load_size, dump_bytes)]
    lines = [
        f"load_offset  0x{load_offset:08X}",
        f"load_size    0x{load_size:08X} ({load_size} bytes)",
        f"payload      {len(exe) - PROGRAM_HEADER_SIZE} bytes",
        "",
        hex_dump(payload, base=load_offset),
    ]
    return "\n".join(lines)


class PSFViewerApp(App):
    """TUI viewer for PSF files. 3-panel layout with keyboard navigation."""

    TITLE = "PSF Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Search", show=True),
        Binding("escape", "close_search", "Close search", show=False),
        Binding("j", "next_entry", "Next", show=True),
        Binding("k", "prev_entry", "Prev", show=True),
    ]

    def __init__(self, psf_path: str | Path, **kwargs) -> None:
        super().__init__(**kwargs)
        self._psf_path = Path(psf_path)
        self._psf: PSFFile | None = None
        self._all_entry_names: list[str] = []

    def compose(self) -> ComposeResult:
        self._psf = PSFReader.read(self._psf_path)
        self._all_entry_names = [PROGRAM_ENTRY] + list(self._psf.tags)

        self.title = f"PSF Viewer - {self._psf_path.name}"

        fields = {
            "version": f"0x{self._psf.version:02X}",
            "reserved": f"{len(self._psf.reserved)} bytes",
            "compressed": f"{len(self._psf.compressed_program)} bytes",
            "crc32": f"0x{self._psf.compressed_program_crc32:08X}",
        }
        for name, value in self._psf.library_tags():
            fields[name] = self._psf.tag_text(name) or value

        yield Header()

        with Horizontal(id="main-area"):
            yield HeaderPanel(
                fields=fields,
                crc_valid=self._psf.verify_crc32(),
                platform=self._psf.platform,
                id="header",
            )
            yield EntryList(entry_names=self._all_entry_names, id="entries")
            yield ContentPanel(id="content")

        yield Input(placeholder="Search tags... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Auto-select the program entry on mount."""
        self._show_entry(PROGRAM_ENTRY)
        self.query_one("#entries", EntryList).focus()

    def entry_content(self, name: str) -> str:
        if self._psf is None:
            return ""
        if name == PROGRAM_ENTRY:
            return describe_program(self._psf)
        return self._psf.tag_text(name) or ""

    def _show_entry(self, name: str) -> None:
        panel = self.query_one("#content", ContentPanel)
        panel.show_content(name, self.entry_content(name))

    def on_entry_list_entry_selected(self, event: EntryList.EntrySelected) -> None:
        self._show_entry(event.entry_name)

    def action_next_entry(self) -> None:
        self.query_one("#entries", EntryList).action_cursor_down()

    def action_prev_entry(self) -> None:
        self.query_one("#entries", EntryList).action_cursor_up()

    def action_toggle_search(self) -> None:
        """Show/hide the search bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            search.value = ""
            self._update_entry_list(self._all_entry_names)
            self.query_one("#entries", EntryList).focus()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._update_entry_list(self._all_entry_names)
        self.query_one("#entries", EntryList).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Filter entries by tag name or tag value."""
        if event.input.id != "search-bar":
            return
        query = event.value.lower().strip()
        if not query:
            self._update_entry_list(self._all_entry_names)
            return
        matches = [
            name for name in self._all_entry_names
            if name != PROGRAM_ENTRY
            and (query in name.lower() or query in self.entry_content(name).lower())
        ]
        self._update_entry_list(matches)

    def _update_entry_list(self, names: list[str]) -> None:
        """Replace the entry list with filtered names."""
        old = self.query_one("#entries", EntryList)
        new_list = EntryList(entry_names=names, id="entries")
        old.remove()
        self.query_one("#main-area", Horizontal).mount(new_list, before="#content")
        if names:
            self._show_entry(names[0])


def run_viewer(path: str | Path) -> None:
    """Launch the PSF TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    if not PSFReader.is_psf(path):
        print(f"Error: Not a PSF file: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        PSFReader.read(path)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = PSFViewerApp(path)
    app.run()
