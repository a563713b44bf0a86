"""Parsers for git porcelain output.

Uses ``--porcelain`` formats where available for stability.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from gitstate.adapters.git.types import CommitInfo, StashEntry, SubmoduleEntry, WorktreeEntry
from gitstate.state.models import FileEntry, StatusCode, StatusSnapshot, untracked_entry

if TYPE_CHECKING:
    from collections.abc import Iterable

# SGR colour sequences, present when the user forces colour through a more specific
# setting than color.ui.
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
_AB_RE = re.compile(r"^\+(\d+) -(\d+)$")
_ONELINE_RE = re.compile(r"^([0-9a-f]+)(?: \(([^)]*)\))?(?: (.*))?$")
_STASH_RE = re.compile(r"^(stash@\{(\d+)\}): (.*)$")
_SUBMODULE_RE = re.compile(r"^([ +\-U])([0-9a-f]+) (\S+)(?: \((.*)\))?$")


def parse_status(lines: Iterable[str]) -> StatusSnapshot:
    """Parse ``git status --porcelain=v2 --branch`` output into a snapshot."""
    branch = ""
    head_oid = ""
    upstream: str | None = None
    ahead = behind = 0
    staged: list[FileEntry] = []
    unstaged: list[FileEntry] = []
    untracked: list[FileEntry] = []
    conflicted: list[FileEntry] = []

    for line in lines:
        if line.startswith("# branch.head "):
            branch = line.removeprefix("# branch.head ")
        elif line.startswith("# branch.oid "):
            head_oid = line.removeprefix("# branch.oid ")
        elif line.startswith("# branch.upstream "):
            upstream = line.removeprefix("# branch.upstream ")
        elif line.startswith("# branch.ab "):
            match = _AB_RE.match(line.removeprefix("# branch.ab "))
            if match:
                ahead, behind = int(match.group(1)), int(match.group(2))
        elif line.startswith("1 "):
            # 1 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <path>
            parts = line.split(" ", 8)
            if len(parts) == 9:
                entry = _changed_entry(parts[1], parts[2], parts[8])
                _categorize(entry, staged, unstaged)
        elif line.startswith("2 "):
            # 2 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <X><score> <path><tab><origPath>
            parts = line.split(" ", 9)
            if len(parts) == 10 and "\t" in parts[9]:
                path, orig_path = parts[9].split("\t", 1)
                entry = _changed_entry(parts[1], parts[2], path, orig_path)
                _categorize(entry, staged, unstaged)
        elif line.startswith("u "):
            # u <XY> <sub> <m1> <m2> <m3> <mW> <h1> <h2> <h3> <path>
            parts = line.split(" ", 10)
            if len(parts) == 11:
                xy = parts[1]
                conflicted.append(FileEntry(path=parts[10], index_status=xy[0], worktree_status=xy[1]))
        elif line.startswith("? "):
            untracked.append(untracked_entry(line[2:]))

    return StatusSnapshot(
        branch=branch,
        head_oid=head_oid,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
        staged=tuple(staged),
        unstaged=tuple(unstaged),
        untracked=tuple(untracked),
        conflicted=tuple(conflicted),
    )


def _changed_entry(xy: str, sub: str, path: str, orig_path: str | None = None) -> FileEntry:
    return FileEntry(
        path=path,
        orig_path=orig_path,
        index_status=xy[0],
        worktree_status=xy[1],
        submodule=sub if sub.startswith("S") else None,
    )


def _categorize(entry: FileEntry, staged: list[FileEntry], unstaged: list[FileEntry]) -> None:
    # A partially staged file lands in both lists.
    if entry.index_status != StatusCode.UNMODIFIED:
        staged.append(entry)
    if entry.worktree_status != StatusCode.UNMODIFIED:
        unstaged.append(entry)


def parse_log_oneline(lines: Iterable[str]) -> list[CommitInfo]:
    """Parse ``git log --oneline --decorate`` output."""
    commits: list[CommitInfo] = []
    for raw in lines:
        line = _ANSI_RE.sub("", raw).strip()
        if not line:
            continue
        match = _ONELINE_RE.match(line)
        if match is None:
            continue
        refs = tuple(ref.strip() for ref in match.group(2).split(",")) if match.group(2) else ()
        commits.append(CommitInfo(hash=match.group(1), subject=match.group(3) or "", refs=refs))
    return commits


def parse_stash_list(lines: Iterable[str]) -> list[StashEntry]:
    """Parse ``git stash list`` output."""
    stashes: list[StashEntry] = []
    for line in lines:
        match = _STASH_RE.match(line.strip())
        if match:
            stashes.append(
                StashEntry(index=int(match.group(2)), ref=match.group(1), message=match.group(3))
            )
    return stashes


def parse_submodule_status(lines: Iterable[str]) -> list[SubmoduleEntry]:
    """Parse ``git submodule status`` output."""
    submodules: list[SubmoduleEntry] = []
    for line in lines:
        match = _SUBMODULE_RE.match(line.rstrip())
        if match:
            submodules.append(
                SubmoduleEntry(
                    path=match.group(3),
                    sha=match.group(2),
                    status=match.group(1),
                    describe=match.group(4),
                )
            )
    return submodules


def parse_worktree_list(lines: Iterable[str]) -> list[WorktreeEntry]:
    """Parse ``git worktree list --porcelain`` output."""
    worktrees: list[WorktreeEntry] = []
    current: dict[str, object] | None = None

    def flush() -> None:
        if current is not None and "path" in current:
            worktrees.append(WorktreeEntry(**current))  # type: ignore[arg-type]

    for raw in lines:
        line = raw.rstrip()
        if not line:
            flush()
            current = None
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            current = {"path": value}
        elif current is None:
            continue
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            current["branch"] = value.removeprefix("refs/heads/")
        elif key in ("bare", "detached", "locked", "prunable"):
            current[key] = True
    flush()
    return worktrees
