"""Per-repository state owner.

``RepoStateCoordinator`` holds the current ``StatusSnapshot`` and is the only
thing allowed to replace it. Git mutations go through it so that a successful
operation is reflected immediately (optimistically) through the reducer, while
refreshes reconcile with git in the background through a last-wins sequencer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import StrEnum
from typing import TYPE_CHECKING

from gitstate.adapters.git.operations import GitOperationsAdapter
from gitstate.adapters.git.queries import GitQueryAdapter
from gitstate.adapters.git.types import OperationResult
from gitstate.config import StatusConfig
from gitstate.constants import STATUS_CACHE_KEY
from gitstate.errors import report_error
from gitstate.state import reducer
from gitstate.state.cache import StatusCache
from gitstate.state.commands import (
    RemoveFile,
    StageAll,
    StageFile,
    StageIntentOnly,
    UnstageAll,
    UnstageFile,
    UnstageIntentOnly,
)
from gitstate.state.extended import ExtendedStatusFetcher
from gitstate.state.models import Section
from gitstate.state.sequencer import AsyncRequestSequencer
from gitstate.utils.background_tasks import BackgroundTasks

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from gitstate.state.commands import StatusCommand
    from gitstate.state.models import StatusSnapshot

log = logging.getLogger(__name__)

type Listener = Callable[[RepoStateCoordinator], None]
type FileRef = tuple[str, Section]


class StateEvent(StrEnum):
    STATUS = "status"
    STALE = "stale"


class CoordinatorPhase(StrEnum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    REFRESHING = "refreshing"


class RepoStateCoordinator:
    """Owns the snapshot, cache, sequencer and listeners for one repository."""

    def __init__(
        self,
        repo_root: Path,
        git_dir: Path,
        *,
        queries: GitQueryAdapter | None = None,
        operations: GitOperationsAdapter | None = None,
        config: StatusConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self.repo_root = repo_root
        self.git_dir = git_dir
        self.config = config or StatusConfig()
        self._queries = queries or GitQueryAdapter()
        self._operations = operations or GitOperationsAdapter()
        self._clock = clock
        self._tasks = tasks or BackgroundTasks()

        self.status: StatusSnapshot | None = None
        self.refreshing = False
        self.stale = False
        self.last_operation_time: float | None = None

        self.cache = StatusCache(git_dir)
        self._sequencer = AsyncRequestSequencer(
            self._on_refresh_result, tasks=self._tasks, name="status-refresh"
        )
        self._extended = ExtendedStatusFetcher(self._queries, repo_root, git_dir, self.config)
        self._listeners: dict[StateEvent, list[Listener]] = {event: [] for event in StateEvent}
        self._pending_callbacks: list[Callable[[], None]] = []
        self._replay_log: list[StatusCommand] = []
        self._operation_count = 0

    # ------------------------------------------------------------------
    # Introspection

    @property
    def phase(self) -> CoordinatorPhase:
        if self.status is None:
            return CoordinatorPhase.LOADING if self.refreshing else CoordinatorPhase.EMPTY
        return CoordinatorPhase.REFRESHING if self.refreshing else CoordinatorPhase.READY

    @property
    def sequencer(self) -> AsyncRequestSequencer:
        return self._sequencer

    # ------------------------------------------------------------------
    # Listeners

    def on(self, event: StateEvent, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: StateEvent, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def _notify(self, event: StateEvent) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener(self)
            except Exception:
                log.exception("%s listener %r failed", event, listener)

    # ------------------------------------------------------------------
    # Stale flag

    def mark_stale(self) -> None:
        """Flag the snapshot as possibly out of date without refreshing."""
        if self.stale:
            return
        self.stale = True
        self._notify(StateEvent.STALE)
        self._notify(StateEvent.STATUS)

    def clear_stale(self) -> None:
        if not self.stale:
            return
        self.stale = False
        self._notify(StateEvent.STALE)
        self._notify(StateEvent.STATUS)

    # ------------------------------------------------------------------
    # Refresh

    def refresh_status(
        self,
        force: bool = False,
        on_done: Callable[[], None] | None = None,
    ) -> int | None:
        """Refresh from cache or git.

        Returns the request id of a dispatched fetch, or ``None`` when a valid
        cache entry was used (``on_done`` has already run in that case).
        """
        if not force:
            cached, valid = self.cache.get(STATUS_CACHE_KEY)
            if valid and cached is not None:
                self.status = cached
                self._notify(StateEvent.STATUS)
                if on_done is not None:
                    on_done()
                return None

        if on_done is not None:
            self._pending_callbacks.append(on_done)
        was_stale, self.stale = self.stale, False
        self._replay_log.clear()
        self.refreshing = True
        if was_stale:
            self._notify(StateEvent.STALE)
        self._notify(StateEvent.STATUS)

        operations_at_start = self._operation_count
        return self._sequencer.dispatch(lambda: self._fetch_status(operations_at_start))

    async def refresh(self, force: bool = True) -> StatusSnapshot | None:
        """Refresh and wait until the snapshot has been updated."""
        loop = asyncio.get_running_loop()
        done: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not done.done():
                done.set_result(None)

        self.refresh_status(force=force, on_done=_resolve)
        await done
        return self.status

    def invalidate_and_refresh(self) -> int | None:
        self.cache.invalidate_all()
        return self.refresh_status(force=True)

    async def _fetch_status(self, operations_at_start: int) -> StatusSnapshot:
        base = await self._queries.status(self.repo_root)
        result = await self._extended.fetch(base)
        # A mutation that landed mid-fetch may not be in this result, but it has
        # already touched the watched mtimes; caching now would hide it.
        if self._operation_count == operations_at_start:
            self.cache.set(STATUS_CACHE_KEY, result)
        return result

    def _on_refresh_result(self, result: StatusSnapshot | None) -> None:
        self.refreshing = False
        if result is not None:
            if self.config.replay_optimistic and self._replay_log:
                log.debug("Replaying %d optimistic command(s)", len(self._replay_log))
                for cmd in self._replay_log:
                    result = reducer.apply(result, cmd)
            self.status = result
        self._replay_log.clear()
        self._notify(StateEvent.STATUS)
        self._run_pending_callbacks()

    def _run_pending_callbacks(self) -> None:
        callbacks, self._pending_callbacks = self._pending_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                log.exception("Refresh callback %r failed", callback)

    # ------------------------------------------------------------------
    # Optimistic updates

    def mark_operation_time(self) -> None:
        """Record that gitstate itself is about to touch the repository."""
        self.last_operation_time = self._clock()
        self._operation_count += 1

    def apply_command(self, cmd: StatusCommand) -> None:
        if self.status is None:
            return
        self.mark_operation_time()
        self.status = reducer.apply(self.status, cmd)
        self.cache.invalidate(STATUS_CACHE_KEY)
        if self.refreshing:
            self._replay_log.append(cmd)
        self._notify(StateEvent.STATUS)

    def _finish(
        self,
        operation: str,
        result: OperationResult,
        commands: Sequence[StatusCommand],
        *,
        needs_refresh: bool = False,
    ) -> OperationResult:
        if not result.ok:
            report_error(operation, result.error)
            return result
        for cmd in commands:
            self.apply_command(cmd)
        if needs_refresh:
            # git expands directories into files we cannot predict.
            self.refresh_status(force=True)
        return result

    # ------------------------------------------------------------------
    # Mutations

    async def stage(self, path: str, section: Section) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.stage(self.repo_root, path)
        if path.endswith("/"):
            return self._finish("stage", result, [], needs_refresh=True)
        return self._finish("stage", result, [StageFile(path, section)])

    async def stage_intent(self, path: str) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.stage_intent(self.repo_root, path)
        if path.endswith("/"):
            return self._finish("stage intent", result, [], needs_refresh=True)
        return self._finish("stage intent", result, [StageIntentOnly(path)])

    async def unstage(self, path: str) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.unstage(self.repo_root, path)
        return self._finish("unstage", result, [UnstageFile(path)])

    async def unstage_intent(self, path: str) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.unstage(self.repo_root, path)
        return self._finish("unstage intent", result, [UnstageIntentOnly(path)])

    async def stage_files(self, files: Sequence[FileRef]) -> OperationResult:
        if not files:
            return OperationResult.success()
        self.mark_operation_time()
        result = await self._operations.stage_files(self.repo_root, [path for path, _ in files])
        commands = [StageFile(path, section) for path, section in files if not path.endswith("/")]
        needs_refresh = len(commands) != len(files)
        return self._finish("stage files", result, commands, needs_refresh=needs_refresh)

    async def unstage_files(self, paths: Sequence[str]) -> OperationResult:
        if not paths:
            return OperationResult.success()
        self.mark_operation_time()
        result = await self._operations.unstage_files(self.repo_root, paths)
        return self._finish("unstage files", result, [UnstageFile(path) for path in paths])

    async def stage_all(self) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.stage_all(self.repo_root)
        return self._finish("stage all", result, [StageAll()])

    async def unstage_all(self) -> OperationResult:
        self.mark_operation_time()
        result = await self._operations.unstage_all(self.repo_root)
        return self._finish("unstage all", result, [UnstageAll()])

    def _is_intent_to_add(self, path: str, section: Section) -> bool:
        if self.status is None or section != Section.UNSTAGED:
            return False
        entry = self.status.find(section, path)
        return entry is not None and entry.is_intent_to_add

    async def discard(self, path: str, section: Section) -> OperationResult:
        """Throw away changes to a file.

        Untracked files are deleted, intent-to-add entries are dropped from the
        index (the file goes back to untracked), anything else is checked out
        from HEAD.
        """
        self.mark_operation_time()
        if section == Section.UNTRACKED:
            result = await self._operations.delete_untracked(self.repo_root, path)
            return self._finish("delete", result, [RemoveFile(path, section)])
        if self._is_intent_to_add(path, section):
            result = await self._operations.unstage(self.repo_root, path)
            return self._finish("discard", result, [UnstageIntentOnly(path)])
        result = await self._operations.discard(self.repo_root, path)
        return self._finish("discard", result, [RemoveFile(path, section)])

    async def discard_files(self, files: Sequence[FileRef]) -> OperationResult:
        if not files:
            return OperationResult.success()
        self.mark_operation_time()
        untracked = [path for path, section in files if section == Section.UNTRACKED]
        intent = [
            path
            for path, section in files
            if section != Section.UNTRACKED and self._is_intent_to_add(path, section)
        ]
        tracked = [
            (path, section)
            for path, section in files
            if section != Section.UNTRACKED and path not in intent
        ]

        deleted, checked_out = await asyncio.gather(
            self._operations.delete_untracked_files(self.repo_root, untracked),
            self._operations.discard_files(self.repo_root, [path for path, _ in tracked]),
        )
        # The reset has to run after the checkout has released the index lock.
        reset = await self._operations.unstage_files(self.repo_root, intent)

        results = [
            self._finish("delete", deleted, [RemoveFile(p, Section.UNTRACKED) for p in untracked]),
            self._finish("discard", checked_out, [RemoveFile(p, s) for p, s in tracked]),
            self._finish("discard", reset, [UnstageIntentOnly(p) for p in intent]),
        ]
        errors = [r.error for r in results if not r.ok]
        if errors:
            return OperationResult.failure("; ".join(e for e in errors if e))
        return OperationResult.success()

    # ------------------------------------------------------------------
    # Teardown

    async def close(self) -> None:
        self._sequencer.cancel_all()
        self.refreshing = False
        self._run_pending_callbacks()
        await self._tasks.shutdown()
