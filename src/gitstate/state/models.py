"""Immutable status snapshot types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from gitstate.adapters.git.types import (
    CommitInfo,
    MergeState,
    SequencerState,
    StashEntry,
    SubmoduleEntry,
    WorktreeEntry,
)


class StatusCode(StrEnum):
    """Single-column status codes from ``git status --porcelain=v2``."""

    UNMODIFIED = "."
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"
    UNTRACKED = "?"

    @property
    def description(self) -> str:
        return self.name.lower().replace("_", " ")


class Section(StrEnum):
    """Status sections a file entry can live in."""

    STAGED = "staged"
    UNSTAGED = "unstaged"
    UNTRACKED = "untracked"
    CONFLICTED = "conflicted"


def describe_status(code: str) -> str:
    """Return a human-readable description for a status code."""
    try:
        return StatusCode(code).description
    except ValueError:
        return "unknown"


@dataclass(frozen=True)
class FileEntry:
    """One file as reported by git status."""

    path: str
    index_status: str = StatusCode.UNMODIFIED
    worktree_status: str = StatusCode.UNMODIFIED
    orig_path: str | None = None
    submodule: str | None = None

    @property
    def xy(self) -> str:
        return f"{self.index_status}{self.worktree_status}"

    @property
    def is_intent_to_add(self) -> bool:
        """Whether the file was added with ``git add -N``."""
        return self.index_status == StatusCode.UNMODIFIED and self.worktree_status == StatusCode.ADDED

    @property
    def is_directory(self) -> bool:
        return self.path.endswith("/")


def untracked_entry(path: str) -> FileEntry:
    return FileEntry(path=path, index_status=StatusCode.UNTRACKED, worktree_status=StatusCode.UNTRACKED)


@dataclass(frozen=True)
class StatusSnapshot:
    """Repository status at one instant.

    Snapshots are never mutated: the reducer returns new instances and a
    refresh replaces the snapshot wholesale.
    """

    branch: str = ""
    head_oid: str = ""
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    staged: tuple[FileEntry, ...] = ()
    unstaged: tuple[FileEntry, ...] = ()
    untracked: tuple[FileEntry, ...] = ()
    conflicted: tuple[FileEntry, ...] = ()

    # Populated by the extended fetch.
    head_commit_msg: str | None = None
    upstream_commit_msg: str | None = None
    recent_commits: tuple[CommitInfo, ...] = ()
    unpulled_upstream: tuple[CommitInfo, ...] = ()
    unpushed_upstream: tuple[CommitInfo, ...] = ()
    push_remote: str | None = None
    push_commit_msg: str | None = None
    unpulled_push: tuple[CommitInfo, ...] = ()
    unpushed_push: tuple[CommitInfo, ...] = ()
    stashes: tuple[StashEntry, ...] = ()
    submodules: tuple[SubmoduleEntry, ...] = ()
    worktrees: tuple[WorktreeEntry, ...] = ()
    sequencer: SequencerState = field(default_factory=SequencerState)
    sequencer_head_subject: str | None = None
    merge: MergeState = field(default_factory=MergeState)
    merge_head_subject: str | None = None
    rebase_onto_abbrev: str | None = None
    rebase_onto_subject: str | None = None
    rebase_onto_name: str | None = None
    rebase_done_commits: tuple[CommitInfo, ...] = ()

    def section(self, section: Section) -> tuple[FileEntry, ...]:
        return getattr(self, section.value)

    def find(self, section: Section, path: str) -> FileEntry | None:
        for entry in self.section(section):
            if entry.path == path:
                return entry
        return None

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked or self.conflicted)

    @property
    def detached(self) -> bool:
        return self.branch == "(detached)"
