"""Base screen class for gitstate screens."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from textual.screen import Screen

if TYPE_CHECKING:
    from gitstate.app import GitstateApp
    from gitstate.state.coordinator import RepoStateCoordinator


class GitstateScreen(Screen):
    """Base screen with typed app access."""

    @property
    def gitstate_app(self) -> GitstateApp:
        return cast("GitstateApp", self.app)

    @property
    def coordinator(self) -> RepoStateCoordinator:
        """The coordinator for the repository being shown.

        Raises:
            RuntimeError: If the app has not resolved a repository yet.
        """
        coordinator = self.gitstate_app.coordinator
        if coordinator is None:
            msg = "No repository loaded. Ensure the app has finished mounting."
            raise RuntimeError(msg)
        return coordinator
