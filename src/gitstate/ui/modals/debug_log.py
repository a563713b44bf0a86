"""Modal showing the captured debug log."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Label, RichLog

from gitstate.debug_log import clear_log_buffer, get_buffer_generation, log_buffer

if TYPE_CHECKING:
    from textual.app import ComposeResult


class DebugLogModal(ModalScreen[None]):
    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("f12", "close", "Close", show=False),
        Binding("c", "clear", "Clear"),
    ]

    DEFAULT_CSS = """
    DebugLogModal {
        align: center middle;
    }
    #debug-log-container {
        width: 90%;
        height: 80%;
        border: thick $primary;
        background: $surface;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._generation = get_buffer_generation()
        self._shown = 0

    def compose(self) -> ComposeResult:
        with Vertical(id="debug-log-container"):
            yield Label("Debug log", classes="modal-title")
            yield RichLog(id="debug-log", wrap=True, markup=False)
        yield Footer()

    def on_mount(self) -> None:
        self._sync()
        self.set_interval(0.5, self._sync)

    def _sync(self) -> None:
        """Append entries recorded since the last sync."""
        output = self.query_one("#debug-log", RichLog)
        generation = get_buffer_generation()
        if generation != self._generation:
            output.clear()
            self._generation = generation
            self._shown = 0
        entries = list(log_buffer)
        # The ring buffer drops old entries once full, so only the tail is new.
        new = entries[self._shown :] if self._shown <= len(entries) else entries
        for entry in new:
            output.write(entry.format())
        self._shown = len(entries)

    def action_clear(self) -> None:
        clear_log_buffer()
        self._sync()

    def action_close(self) -> None:
        self.dismiss(None)
