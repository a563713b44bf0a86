"""mtime-keyed cache for status results.

An entry records the modification time of every file in the watch-set when it
was written. It stays valid only while all of those times are unchanged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from gitstate.constants import STATUS_WATCHED_FILES

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

log = logging.getLogger(__name__)

MISSING = -1


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamps: dict[str, int]


def _mtime_ns(path: Path) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return MISSING


class StatusCache:
    """Memoize values against the mtimes of files under a git dir."""

    def __init__(self, git_dir: Path, watched_files: Iterable[str] = STATUS_WATCHED_FILES) -> None:
        self.git_dir = git_dir
        self.watched_files = tuple(watched_files)
        self._entries: dict[str, CacheEntry] = {}

    def _capture(self) -> dict[str, int]:
        return {name: _mtime_ns(self.git_dir / name) for name in self.watched_files}

    def _entry_valid(self, entry: CacheEntry) -> bool:
        for name, captured in entry.timestamps.items():
            if _mtime_ns(self.git_dir / name) != captured:
                return False
        return True

    def get(self, key: str) -> tuple[Any | None, bool]:
        """Return ``(value, True)`` for a valid entry, ``(None, False)`` otherwise.

        A stale entry is evicted.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, False
        if not self._entry_valid(entry):
            log.debug("Cache entry %r is stale, evicting", key)
            del self._entries[key]
            return None, False
        return entry.data, True

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(data=value, timestamps=self._capture())

    def is_valid(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._entry_valid(entry)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        self._entries.clear()
