"""Pure state reducer.

``apply(status, command) -> new_status`` has no side effects: the input
snapshot is never touched and a new snapshot is returned.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, assert_never

from gitstate.state.commands import (
    Refresh,
    RemoveFile,
    StageAll,
    StageFile,
    StageIntentOnly,
    UnstageAll,
    UnstageFile,
    UnstageIntentOnly,
)
from gitstate.state.models import FileEntry, Section, StatusCode, untracked_entry

if TYPE_CHECKING:
    from gitstate.state.commands import StatusCommand
    from gitstate.state.models import StatusSnapshot


@dataclass
class _Draft:
    """Mutable working copy of a snapshot's file sections."""

    staged: list[FileEntry]
    unstaged: list[FileEntry]
    untracked: list[FileEntry]
    conflicted: list[FileEntry]

    @classmethod
    def of(cls, status: StatusSnapshot) -> _Draft:
        return cls(
            staged=list(status.staged),
            unstaged=list(status.unstaged),
            untracked=list(status.untracked),
            conflicted=list(status.conflicted),
        )

    def build(self, status: StatusSnapshot) -> StatusSnapshot:
        return replace(
            status,
            staged=tuple(self.staged),
            unstaged=tuple(self.unstaged),
            untracked=tuple(self.untracked),
            conflicted=tuple(self.conflicted),
        )

    def section(self, section: Section) -> list[FileEntry]:
        return getattr(self, section.value)


def _index_of(entries: list[FileEntry], path: str) -> int | None:
    for i, entry in enumerate(entries):
        if entry.path == path:
            return i
    return None


def _pop(entries: list[FileEntry], path: str) -> FileEntry | None:
    idx = _index_of(entries, path)
    return entries.pop(idx) if idx is not None else None


def _stage_untracked(draft: _Draft, entry: FileEntry) -> None:
    draft.staged.append(
        FileEntry(path=entry.path, index_status=StatusCode.ADDED, worktree_status=StatusCode.UNMODIFIED)
    )


def _stage_unstaged(draft: _Draft, entry: FileEntry) -> None:
    idx = _index_of(draft.staged, entry.path)
    if idx is not None:
        # Partially staged: the worktree side is now fully in the index.
        draft.staged[idx] = replace(draft.staged[idx], worktree_status=StatusCode.UNMODIFIED)
        return
    draft.staged.append(
        FileEntry(
            path=entry.path,
            orig_path=entry.orig_path,
            index_status=entry.worktree_status,
            worktree_status=StatusCode.UNMODIFIED,
            submodule=entry.submodule,
        )
    )


def _unstage(draft: _Draft, entry: FileEntry) -> None:
    if entry.index_status == StatusCode.ADDED:
        # Never committed: nothing to diff against, so it is untracked again.
        _pop(draft.unstaged, entry.path)
        draft.untracked.append(untracked_entry(entry.path))
        return

    idx = _index_of(draft.unstaged, entry.path)
    if idx is not None:
        draft.unstaged[idx] = replace(draft.unstaged[idx], index_status=StatusCode.UNMODIFIED)
        return
    draft.unstaged.append(
        FileEntry(
            path=entry.path,
            orig_path=entry.orig_path,
            index_status=StatusCode.UNMODIFIED,
            worktree_status=entry.index_status,
            submodule=entry.submodule,
        )
    )


def _apply_stage_file(status: StatusSnapshot, path: str, from_section: Section) -> StatusSnapshot:
    draft = _Draft.of(status)
    if from_section == Section.UNTRACKED:
        entry = _pop(draft.untracked, path)
        if entry is not None:
            _stage_untracked(draft, entry)
    elif from_section == Section.UNSTAGED:
        entry = _pop(draft.unstaged, path)
        if entry is not None:
            _stage_unstaged(draft, entry)
    return draft.build(status)


def _apply_unstage_file(status: StatusSnapshot, path: str) -> StatusSnapshot:
    draft = _Draft.of(status)
    entry = _pop(draft.staged, path)
    if entry is not None:
        _unstage(draft, entry)
    return draft.build(status)


def _apply_stage_intent(status: StatusSnapshot, path: str) -> StatusSnapshot:
    draft = _Draft.of(status)
    entry = _pop(draft.untracked, path)
    if entry is not None:
        draft.unstaged.append(
            FileEntry(path=path, index_status=StatusCode.UNMODIFIED, worktree_status=StatusCode.ADDED)
        )
    return draft.build(status)


def _apply_unstage_intent(status: StatusSnapshot, path: str) -> StatusSnapshot:
    draft = _Draft.of(status)
    entry = _pop(draft.unstaged, path)
    if entry is not None:
        draft.untracked.append(untracked_entry(path))
    return draft.build(status)


def _apply_stage_all(status: StatusSnapshot) -> StatusSnapshot:
    draft = _Draft.of(status)
    for entry in draft.untracked:
        _stage_untracked(draft, entry)
    for entry in draft.unstaged:
        _stage_unstaged(draft, entry)
    draft.untracked = []
    draft.unstaged = []
    return draft.build(status)


def _apply_unstage_all(status: StatusSnapshot) -> StatusSnapshot:
    draft = _Draft.of(status)
    staged = draft.staged
    draft.staged = []
    for entry in staged:
        _unstage(draft, entry)
    return draft.build(status)


def _apply_remove_file(status: StatusSnapshot, path: str, from_section: Section) -> StatusSnapshot:
    draft = _Draft.of(status)
    _pop(draft.section(from_section), path)
    return draft.build(status)


def apply(status: StatusSnapshot, cmd: StatusCommand) -> StatusSnapshot:
    """Apply a command to a snapshot, returning the new snapshot."""
    match cmd:
        case Refresh():
            return cmd.status
        case StageFile():
            return _apply_stage_file(status, cmd.path, cmd.from_section)
        case UnstageFile():
            return _apply_unstage_file(status, cmd.path)
        case StageIntentOnly():
            return _apply_stage_intent(status, cmd.path)
        case UnstageIntentOnly():
            return _apply_unstage_intent(status, cmd.path)
        case StageAll():
            return _apply_stage_all(status)
        case UnstageAll():
            return _apply_unstage_all(status)
        case RemoveFile():
            return _apply_remove_file(status, cmd.path, cmd.from_section)
        case _:
            assert_never(cmd)
