"""Shared git adapter data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating git operation."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> OperationResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str | None) -> OperationResult:
        return cls(ok=False, error=error or "unknown error")


@dataclass(frozen=True)
class CommitInfo:
    """A commit as shown by ``git log --oneline --decorate``."""

    hash: str
    subject: str
    refs: tuple[str, ...] = ()


@dataclass(frozen=True)
class StashEntry:
    """An entry from ``git stash list``."""

    index: int
    ref: str
    message: str


@dataclass(frozen=True)
class SubmoduleEntry:
    """An entry from ``git submodule status``.

    ``status`` is the leading marker: ``" "`` in sync, ``"+"`` checked out at a
    different commit, ``"-"`` not initialized, ``"U"`` merge conflicts.
    """

    path: str
    sha: str
    status: str = " "
    describe: str | None = None


@dataclass(frozen=True)
class WorktreeEntry:
    """A worktree from ``git worktree list --porcelain``."""

    path: str
    head: str | None = None
    branch: str | None = None
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False


@dataclass(frozen=True)
class SequencerState:
    """In-progress cherry-pick / revert / rebase / am markers."""

    cherry_pick_in_progress: bool = False
    revert_in_progress: bool = False
    rebase_in_progress: bool = False
    am_in_progress: bool = False
    am_current_patch: str | None = None
    am_last_patch: str | None = None
    sequencer_head_oid: str | None = None
    rebase_head_name: str | None = None
    rebase_onto: str | None = None
    rebase_stopped_sha: str | None = None
    rebase_todo: tuple[str, ...] = field(default_factory=tuple)
    rebase_done: tuple[str, ...] = field(default_factory=tuple)

    @property
    def in_progress(self) -> bool:
        return (
            self.cherry_pick_in_progress
            or self.revert_in_progress
            or self.rebase_in_progress
            or self.am_in_progress
        )


@dataclass(frozen=True)
class MergeState:
    """Merge-in-progress marker read from ``MERGE_HEAD``."""

    merge_in_progress: bool = False
    merge_head_oid: str | None = None
