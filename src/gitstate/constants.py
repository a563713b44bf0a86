"""Shared constants for gitstate."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = str(Path.home() / ".config" / "gitstate" / "config.toml")

# Files under the git dir whose mtimes decide whether a cached status is still valid.
STATUS_WATCHED_FILES: tuple[str, ...] = (
    "HEAD",
    "index",
    "refs/heads",
    "MERGE_HEAD",
    "REBASE_HEAD",
    "CHERRY_PICK_HEAD",
    "REVERT_HEAD",
)

STATUS_CACHE_KEY = "status"

# Prepended to every git invocation. `--no-optional-locks` keeps read-only
# commands from rewriting the index, which the watcher would report as a change.
GIT_FLAGS: tuple[str, ...] = (
    "--no-pager",
    "--literal-pathspecs",
    "--no-optional-locks",
    "-c",
    "core.preloadindex=true",
    "-c",
    "color.ui=never",
)

# Transient git dir files that never indicate a meaningful state change.
WATCHER_IGNORED_FILES = frozenset({"ORIG_HEAD", "FETCH_HEAD", "COMMIT_EDITMSG"})

DEFAULT_COOLDOWN_MS = 1000
DEFAULT_STALE_DEBOUNCE_MS = 200
DEFAULT_AUTO_REFRESH_DEBOUNCE_MS = 500

DEFAULT_RECENT_COMMIT_COUNT = 10
DEFAULT_STASH_LIMIT = 10

STATUS_ARGS: tuple[str, ...] = (
    "status",
    "--porcelain=v2",
    "--branch",
    "--find-renames",
    "--untracked-files=normal",
)
