"""One coordinator per repository root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gitstate.adapters.git.operations import GitOperationsAdapter
from gitstate.adapters.git.queries import GitQueryAdapter
from gitstate.state.coordinator import RepoStateCoordinator

if TYPE_CHECKING:
    from gitstate.config import StatusConfig

log = logging.getLogger(__name__)


class RepoStateRegistry:
    """Resolve paths to repository roots and hand out shared coordinators."""

    def __init__(
        self,
        *,
        queries: GitQueryAdapter | None = None,
        operations: GitOperationsAdapter | None = None,
        config: StatusConfig | None = None,
    ) -> None:
        self._queries = queries or GitQueryAdapter()
        self._operations = operations or GitOperationsAdapter()
        self._config = config
        self._coordinators: dict[Path, RepoStateCoordinator] = {}

    def __len__(self) -> int:
        return len(self._coordinators)

    async def get(self, path: Path | str) -> RepoStateCoordinator | None:
        """Return the coordinator for the repository containing ``path``.

        Returns ``None`` when ``path`` is not inside a git repository.
        """
        repo_root = await self._queries.repo_root(Path(path))
        if repo_root is None:
            return None
        repo_root = repo_root.resolve()
        existing = self._coordinators.get(repo_root)
        if existing is not None:
            return existing

        git_dir = await self._queries.git_dir(repo_root)
        if git_dir is None:
            return None
        coordinator = RepoStateCoordinator(
            repo_root,
            git_dir,
            queries=self._queries,
            operations=self._operations,
            config=self._config,
        )
        # Another caller may have won the race while we awaited git.
        coordinator = self._coordinators.setdefault(repo_root, coordinator)
        log.debug("Registered coordinator for %s", repo_root)
        return coordinator

    def get_cached(self, repo_root: Path) -> RepoStateCoordinator | None:
        return self._coordinators.get(repo_root.resolve())

    def mark_operation_time(self, path: Path) -> None:
        """Start the watcher cooldown for a repository touched outside the coordinator."""
        resolved = path.resolve()
        for root, coordinator in self._coordinators.items():
            if resolved == root or root in resolved.parents:
                coordinator.mark_operation_time()

    async def clear(self) -> None:
        coordinators = list(self._coordinators.values())
        self._coordinators.clear()
        for coordinator in coordinators:
            await coordinator.close()
