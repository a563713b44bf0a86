"""Main gitstate TUI application."""

from __future__ import annotations

from pathlib import Path

from textual.app import App
from textual.binding import Binding

from gitstate.config import GitstateConfig
from gitstate.constants import DEFAULT_CONFIG_PATH
from gitstate.debug_log import setup_debug_logging
from gitstate.messages import StaleChanged, StatusChanged
from gitstate.state.coordinator import RepoStateCoordinator, StateEvent
from gitstate.state.registry import RepoStateRegistry
from gitstate.ui.modals import DebugLogModal
from gitstate.ui.screens import StatusScreen
from gitstate.watcher import ChangeWatcher


class GitstateApp(App):
    """Live status view of a git repository."""

    TITLE = "gitstate"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("f12", "show_debug_log", "Debug log", show=False),
    ]

    def __init__(
        self,
        repo_path: str | Path = ".",
        config_path: str = DEFAULT_CONFIG_PATH,
        *,
        config: GitstateConfig | None = None,
        registry: RepoStateRegistry | None = None,
    ) -> None:
        super().__init__()
        self.repo_path = Path(repo_path)
        self.config_path = Path(config_path)
        self.config: GitstateConfig = config or GitstateConfig()
        self._config_given = config is not None
        self._repo_registry = registry
        self._coordinator: RepoStateCoordinator | None = None
        self._watcher: ChangeWatcher | None = None

    @property
    def coordinator(self) -> RepoStateCoordinator | None:
        return self._coordinator

    @property
    def watcher(self) -> ChangeWatcher | None:
        return self._watcher

    async def on_mount(self) -> None:
        setup_debug_logging()
        if not self._config_given:
            self.config = GitstateConfig.load(self.config_path)
            self.log("Config loaded", path=str(self.config_path))

        if self._repo_registry is None:
            self._repo_registry = RepoStateRegistry(config=self.config.status)
        coordinator = await self._repo_registry.get(self.repo_path)
        if coordinator is None:
            self.exit(return_code=1, message=f"Not a git repository: {self.repo_path}")
            return

        self._coordinator = coordinator
        coordinator.on(StateEvent.STATUS, self._notify_status_to_screen)
        coordinator.on(StateEvent.STALE, self._notify_stale_to_screen)

        if self.config.watcher.enabled:
            self._watcher = ChangeWatcher(coordinator, self.config.watcher)
            self._watcher.start()

        await self.push_screen(StatusScreen())
        coordinator.refresh_status(force=True)
        self.log("StatusScreen pushed, app ready", repo=str(coordinator.repo_root))

    def _notify_status_to_screen(self, _coordinator: RepoStateCoordinator) -> None:
        """Coordinator listener; forwards to the active screen.

        Not named ``on_*`` so Textual does not treat it as a message handler.
        """
        if self.screen:
            self.screen.post_message(StatusChanged())

    def _notify_stale_to_screen(self, coordinator: RepoStateCoordinator) -> None:
        if self.screen:
            self.screen.post_message(StaleChanged(coordinator.stale))

    def action_show_debug_log(self) -> None:
        if isinstance(self.screen, DebugLogModal):
            return
        self.push_screen(DebugLogModal())

    async def on_unmount(self) -> None:
        await self.cleanup()

    async def cleanup(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._coordinator is not None:
            self._coordinator.off(StateEvent.STATUS, self._notify_status_to_screen)
            self._coordinator.off(StateEvent.STALE, self._notify_stale_to_screen)
            self._coordinator = None
        if self._repo_registry is not None:
            await self._repo_registry.clear()
