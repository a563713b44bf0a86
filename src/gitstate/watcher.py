"""Filesystem watcher that flags or refreshes status when git state changes.

Events arrive on watchdog's observer thread and are handed to the event loop
with ``call_soon_threadsafe``. On the loop they pass two gates:

* cooldown: events shortly after one of our own operations are dropped, so
  ``git add`` from the status screen does not flag the view as stale;
* debounce: a burst of events collapses into a single action.

The action is a forced refresh when auto-refresh is on, otherwise marking the
coordinator stale.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from gitstate.constants import WATCHER_IGNORED_FILES
from gitstate.utils.timing import Debouncer

if TYPE_CHECKING:
    from collections.abc import Callable

    from watchdog.observers.api import BaseObserver

    from gitstate.config import WatcherConfig
    from gitstate.state.coordinator import RepoStateCoordinator

log = logging.getLogger(__name__)

_TEMP_NAME_RE = re.compile(r"^\d{4}$")


def should_ignore(name: str | None) -> bool:
    """Whether a changed file name is git-internal noise."""
    if not name:
        return True
    if name in WATCHER_IGNORED_FILES:
        return True
    if name.endswith(".lock") or name.endswith("~"):
        return True
    return bool(_TEMP_NAME_RE.match(name))


class _ChangeHandler(FileSystemEventHandler):
    """Runs on the observer thread; forwards to the loop."""

    def __init__(self, watcher: ChangeWatcher, loop: asyncio.AbstractEventLoop) -> None:
        self._watcher = watcher
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed", "closed_no_write"):
            return
        path = event.src_path
        if isinstance(path, bytes):
            path = path.decode(errors="replace")
        try:
            self._loop.call_soon_threadsafe(self._watcher.notify, path, event.event_type)
        except RuntimeError:
            # Loop already closed during shutdown.
            pass


class ChangeWatcher:
    def __init__(
        self,
        coordinator: RepoStateCoordinator,
        config: WatcherConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._coordinator = coordinator
        self._config = config
        self._clock = clock
        self._git_dir = Path(coordinator.git_dir)
        self._worktree = Path(coordinator.repo_root)
        self._observer: BaseObserver | None = None
        self._running = False
        self._debouncer = Debouncer(self._fire, config.debounce_seconds)

    def is_running(self) -> bool:
        return self._running

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    def start(self) -> None:
        """Start watching. Must be called from the event loop; idempotent."""
        if self._running:
            return
        if not self._git_dir.is_dir():
            log.warning("Git dir not found, watcher disabled: %s", self._git_dir)
            return

        loop = asyncio.get_running_loop()
        handler = _ChangeHandler(self, loop)
        observer = Observer()
        observer.schedule(handler, str(self._git_dir), recursive=True)
        if self._config.watch_worktree:
            observer.schedule(handler, str(self._worktree), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        self._running = True
        log.info("Watching %s for changes", self._git_dir)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._debouncer.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=1.0)
            self._observer = None

    def _relevant(self, path: str) -> bool:
        target = Path(path)
        if should_ignore(target.name):
            return False
        if target.is_relative_to(self._git_dir):
            return True
        # Worktree event: anything under a .git directory is covered by the git dir watch.
        try:
            rel = target.relative_to(self._worktree)
        except ValueError:
            return False
        return ".git" not in rel.parts

    def in_cooldown(self) -> bool:
        last = self._coordinator.last_operation_time
        if last is None:
            return False
        return self._clock() - last < self._config.cooldown_seconds

    def notify(self, path: str, event_kind: str = "modified") -> None:
        """Handle one filesystem event on the loop thread."""
        if not self._running:
            return
        if not self._relevant(path):
            return
        if self.in_cooldown():
            log.debug("Ignoring %s %s during cooldown", event_kind, path)
            return
        if not (self._config.auto_refresh or self._config.stale_indicator):
            return
        self._debouncer.call()

    def _fire(self) -> None:
        if not self._running:
            return
        # An operation may have started while the debounce was pending.
        if self.in_cooldown():
            return
        if self._config.auto_refresh:
            log.debug("External change detected, refreshing")
            self._coordinator.refresh_status(force=True)
        elif self._config.stale_indicator:
            self._coordinator.mark_stale()
