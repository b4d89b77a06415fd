"""PSF TUI Widgets - Custom panels for the PSF viewer."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static


class HeaderPanel(Static):
    """Sidebar panel showing PSF header fields and CRC32 status."""

    DEFAULT_CSS = """
    HeaderPanel {
        width: 32;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    HeaderPanel .header-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    HeaderPanel .header-key {
        color: $text-muted;
    }
    HeaderPanel .header-val {
        color: $text;
    }
    HeaderPanel .crc-valid {
        color: $success;
        text-style: bold;
    }
    HeaderPanel .crc-invalid {
        color: $error;
        text-style: bold;
    }
    """

    def __init__(
        self,
        fields: dict[str, str],
        crc_valid: bool,
        platform: str,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._fields = fields
        self._crc_valid = crc_valid
        self._platform = platform

    def compose(self) -> ComposeResult:
        yield Label(self._platform, classes="header-title")

        if self._crc_valid:
            yield Label("CRC32: VALID", classes="crc-valid")
        else:
            yield Label("CRC32: INVALID", classes="crc-invalid")

        yield Label("")  # spacer

        for key, val in self._fields.items():
            display = val if len(val) <= 24 else val[:21] + "..."
            yield Label(f"{key}:", classes="header-key")
            yield Label(f"  {display}", classes="header-val")


class EntryList(ListView):
    """List of tags (plus the program entry). Supports keyboard navigation."""

    DEFAULT_CSS = """
    EntryList {
        width: 24;
        border: solid $accent;
    }
    EntryList > ListItem {
        padding: 0 1;
    }
    EntryList > ListItem.--highlight {
        background: $accent;
    }
    """

    class EntrySelected(Message):
        """Fired when an entry is selected."""

        def __init__(self, entry_name: str, entry_index: int) -> None:
            self.entry_name = entry_name
            self.entry_index = entry_index
            super().__init__()

    def __init__(self, entry_names: list[str], **kwargs) -> None:
        self._entry_names = entry_names
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for name in self._entry_names:
            yield ListItem(Label(name))

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._entry_names):
            self.post_message(self.EntrySelected(self._entry_names[idx], idx))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class ContentPanel(Static):
    """Main panel: tag text, or program header and hex dump."""

    DEFAULT_CSS = """
    ContentPanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ContentPanel .content-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ContentPanel .content-body {
        color: $text;
    }
    """

    current_entry = reactive("")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select an entry", classes="content-title")
        self._body_widget = Static("", classes="content-body", markup=False)
        yield self._title_widget
        yield self._body_widget

    def show_content(self, name: str, content: str) -> None:
        self.current_entry = name
        if self._title_widget:
            self._title_widget.update(f"--- {name} ---")
        if self._body_widget:
            self._body_widget.update(content)
        self.scroll_home()


def hex_dump(data: bytes, base: int = 0, width: int = 16) -> str:
    """Classic offset / hex / ASCII dump."""
    lines = []
    for pos in range(0, len(data), width):
        chunk = data[pos:pos + width]
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        text_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(f"{base + pos:08X}  {hex_part:<{width * 3 - 1}}  {text_part}")
    return "\n".join(lines)
