"""The status screen: header plus one row per changed file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import on
from textual.binding import Binding
from textual.widgets import Footer, ListView

from gitstate.messages import StaleChanged, StatusChanged
from gitstate.state.models import Section
from gitstate.ui.screens.base import GitstateScreen
from gitstate.ui.widgets import FileRow, StatusHeader

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from textual.app import ComposeResult

    from gitstate.adapters.git.types import OperationResult

# Display order of sections.
SECTION_ORDER = (Section.CONFLICTED, Section.UNTRACKED, Section.UNSTAGED, Section.STAGED)


class StatusScreen(GitstateScreen):
    BINDINGS = [
        Binding("s", "stage", "Stage"),
        Binding("u", "unstage", "Unstage"),
        Binding("i", "stage_intent", "Intent to add"),
        Binding("S", "stage_all", "Stage all"),
        Binding("U", "unstage_all", "Unstage all"),
        Binding("x", "discard", "Discard"),
        Binding("g", "refresh", "Refresh"),
        Binding("q", "app.quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #file-list {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield StatusHeader(id="status-header")
        yield ListView(id="file-list")
        yield Footer()

    def on_mount(self) -> None:
        self._render_status()

    def on_screen_resume(self) -> None:
        # Updates posted while a modal was on top went to the modal.
        self._render_status()

    @on(StatusChanged)
    def _on_status_changed(self, _message: StatusChanged) -> None:
        self._render_status()

    @on(StaleChanged)
    def _on_stale_changed(self, _message: StaleChanged) -> None:
        self._render_header()

    # ------------------------------------------------------------------
    # Rendering

    def _render_header(self) -> None:
        coordinator = self.gitstate_app.coordinator
        header = self.query_one("#status-header", StatusHeader)
        if coordinator is None:
            header.show(None, refreshing=False, stale=False)
            return
        header.show(coordinator.status, refreshing=coordinator.refreshing, stale=coordinator.stale)

    def _render_status(self) -> None:
        self._render_header()
        self.run_worker(self._rebuild_rows(), group="rows", exclusive=True)

    def _build_rows(self) -> list[FileRow]:
        coordinator = self.gitstate_app.coordinator
        if coordinator is None or coordinator.status is None:
            return []
        status = coordinator.status
        return [
            FileRow(entry, section)
            for section in SECTION_ORDER
            for entry in status.section(section)
        ]

    async def _rebuild_rows(self) -> None:
        list_view = self.query_one("#file-list", ListView)
        previous = self.selected_row
        previous_key = (previous.entry.path, previous.section) if previous else None
        previous_index = list_view.index or 0

        rows = self._build_rows()
        await list_view.clear()
        if not rows:
            return
        await list_view.extend(rows)

        # Keep the cursor on the same file when it is still listed, otherwise near where it was.
        index = min(previous_index, len(rows) - 1)
        for i, row in enumerate(rows):
            if (row.entry.path, row.section) == previous_key:
                index = i
                break
        list_view.index = index

    @property
    def selected_row(self) -> FileRow | None:
        list_view = self.query_one("#file-list", ListView)
        child = list_view.highlighted_child
        return child if isinstance(child, FileRow) else None

    @property
    def rows(self) -> list[FileRow]:
        return list(self.query(FileRow))

    # ------------------------------------------------------------------
    # Actions

    def _run_operation(self, operation: Awaitable[OperationResult]) -> None:
        async def _runner() -> None:
            result = await operation
            if not result.ok:
                self.notify(result.error or "git operation failed", severity="error")

        self.run_worker(_runner(), group="operations")

    def action_stage(self) -> None:
        row = self.selected_row
        if row is None:
            return
        if row.section not in (Section.UNSTAGED, Section.UNTRACKED):
            self.notify("Only unstaged or untracked files can be staged", severity="warning")
            return
        self._run_operation(self.coordinator.stage(row.entry.path, row.section))

    def action_unstage(self) -> None:
        row = self.selected_row
        if row is None:
            return
        if row.section == Section.STAGED:
            self._run_operation(self.coordinator.unstage(row.entry.path))
        elif row.section == Section.UNSTAGED and row.entry.is_intent_to_add:
            self._run_operation(self.coordinator.unstage_intent(row.entry.path))
        else:
            self.notify("Only staged files can be unstaged", severity="warning")

    def action_stage_intent(self) -> None:
        row = self.selected_row
        if row is None or row.section != Section.UNTRACKED:
            return
        self._run_operation(self.coordinator.stage_intent(row.entry.path))

    def action_stage_all(self) -> None:
        self._run_operation(self.coordinator.stage_all())

    def action_unstage_all(self) -> None:
        self._run_operation(self.coordinator.unstage_all())

    def action_discard(self) -> None:
        row = self.selected_row
        if row is None or row.section == Section.CONFLICTED:
            return
        self._run_operation(self.coordinator.discard(row.entry.path, row.section))

    def action_refresh(self) -> None:
        self.coordinator.refresh_status(force=True)
