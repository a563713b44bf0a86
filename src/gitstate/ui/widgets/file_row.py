"""A single file line in the status list."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.widgets import Label, ListItem

from gitstate.state.models import describe_status

if TYPE_CHECKING:
    from textual.app import ComposeResult

    from gitstate.state.models import FileEntry, Section


def format_row(entry: FileEntry, section: Section) -> str:
    path = entry.path
    if entry.orig_path:
        path = f"{entry.orig_path} -> {path}"
    return f"{section.value:<10} {entry.xy} {path}"


class FileRow(ListItem):
    DEFAULT_CSS = """
    FileRow {
        height: 1;
    }
    """

    def __init__(self, entry: FileEntry, section: Section) -> None:
        super().__init__(classes=f"file-row {section.value}")
        self.entry = entry
        self.section = section
        code = entry.worktree_status if entry.worktree_status != "." else entry.index_status
        self.tooltip = describe_status(code)

    @property
    def label_text(self) -> str:
        return format_row(self.entry, self.section)

    def compose(self) -> ComposeResult:
        yield Label(self.label_text, markup=False)
