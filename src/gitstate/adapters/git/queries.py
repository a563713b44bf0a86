"""Read-only git queries used to build status snapshots."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from gitstate.adapters.git.base import GitAdapterBase
from gitstate.adapters.git.parse import (
    parse_log_oneline,
    parse_stash_list,
    parse_status,
    parse_submodule_status,
    parse_worktree_list,
)
from gitstate.adapters.git.types import CommitInfo, MergeState, SequencerState
from gitstate.constants import STATUS_ARGS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gitstate.adapters.git.types import StashEntry, SubmoduleEntry, WorktreeEntry
    from gitstate.state.models import StatusSnapshot

_FIELD_SEP = "\x1e"


class GitQueryAdapter(GitAdapterBase):
    """Informational git queries. Failures raise ``GitCommandError``."""

    async def status(self, cwd: Path) -> StatusSnapshot:
        result = await self._run_git(cwd, STATUS_ARGS)
        return parse_status(result.lines)

    async def commit_subject(self, cwd: Path, ref: str) -> str:
        result = await self._run_git(cwd, ["log", "-1", "--format=%s", ref])
        lines = result.lines
        return lines[0] if lines else ""

    async def commits_between(self, cwd: Path, base: str, target: str) -> list[CommitInfo]:
        """Commits reachable from ``target`` but not from ``base``."""
        result = await self._run_git(cwd, ["log", "--oneline", "--decorate", f"{base}..{target}"])
        return parse_log_oneline(result.lines)

    async def log(self, cwd: Path, args: Sequence[str]) -> list[CommitInfo]:
        result = await self._run_git(cwd, ["log", "--oneline", "--decorate", *args])
        return parse_log_oneline(result.lines)

    async def stash_list(self, cwd: Path) -> list[StashEntry]:
        result = await self._run_git(cwd, ["stash", "list"])
        return parse_stash_list(result.lines)

    async def submodule_status(self, cwd: Path) -> list[SubmoduleEntry]:
        result = await self._run_git(cwd, ["submodule", "status"])
        return parse_submodule_status(result.lines)

    async def worktree_list(self, cwd: Path) -> list[WorktreeEntry]:
        result = await self._run_git(cwd, ["worktree", "list", "--porcelain"])
        return parse_worktree_list(result.lines)

    async def abbrev_and_subject(self, cwd: Path, ref: str) -> tuple[str, str]:
        result = await self._run_git(cwd, ["log", "-1", "--format=%h%n%s", ref])
        lines = result.lines
        abbrev = lines[0] if lines else ""
        subject = lines[1] if len(lines) > 1 else ""
        return abbrev, subject

    async def commits_since(self, cwd: Path, base: str) -> list[CommitInfo]:
        """Commits in ``base..HEAD``, oldest first."""
        result = await self._run_git(
            cwd,
            ["log", f"--format=%h{_FIELD_SEP}%s", "--reverse", f"{base}..HEAD"],
        )
        commits = []
        for line in result.lines:
            if not line:
                continue
            abbrev, _, subject = line.partition(_FIELD_SEP)
            commits.append(CommitInfo(hash=abbrev, subject=subject))
        return commits

    async def name_rev(self, cwd: Path, ref: str) -> str | None:
        """Resolve a commit to a branch-like name (``main~2`` becomes ``main``)."""
        result = await self._run_git(
            cwd, ["name-rev", "--name-only", "--no-undefined", ref], check=False
        )
        if not result.ok or not result.lines:
            return None
        name = result.lines[0].strip()
        for sep in ("~", "^"):
            name = name.split(sep, 1)[0]
        return name or None

    async def default_remote(self, cwd: Path) -> str | None:
        result = await self._run_git(cwd, ["remote"], check=False)
        remotes = [line.strip() for line in result.lines if line.strip()]
        if len(remotes) == 1:
            return remotes[0]
        if "origin" in remotes:
            return "origin"
        return None

    async def push_remote(self, cwd: Path, branch: str) -> str | None:
        """Explicitly configured push remote: ``branch.<b>.pushRemote``, then ``remote.pushDefault``."""
        for key in (f"branch.{branch}.pushRemote", "remote.pushDefault"):
            result = await self._run_git(cwd, ["config", "--get", key], check=False)
            value = result.stdout.strip()
            if result.ok and value:
                return value
        return None

    async def repo_root(self, path: Path) -> Path | None:
        result = await self._run_git(path, ["rev-parse", "--show-toplevel"], check=False)
        value = result.stdout.strip()
        return Path(value) if result.ok and value else None

    async def git_dir(self, path: Path) -> Path | None:
        """Return the real git dir (worktree-aware)."""
        result = await self._run_git(path, ["rev-parse", "--absolute-git-dir"], check=False)
        value = result.stdout.strip()
        return Path(value) if result.ok and value else None

    async def sequencer_state(self, git_dir: Path) -> SequencerState:
        return await asyncio.to_thread(read_sequencer_state, git_dir)

    async def merge_state(self, git_dir: Path) -> MergeState:
        return await asyncio.to_thread(read_merge_state, git_dir)


def _first_line(path: Path) -> str | None:
    try:
        text = path.read_text()
    except OSError:
        return None
    stripped = text.strip()
    return stripped.splitlines()[0].strip() if stripped else None


def _oid(path: Path) -> str | None:
    line = _first_line(path)
    return line.split()[0] if line else None


def _todo_lines(path: Path) -> tuple[str, ...]:
    try:
        text = path.read_text()
    except OSError:
        return ()
    return tuple(
        line.strip() for line in text.splitlines() if line.strip() and not line.startswith("#")
    )


def read_sequencer_state(git_dir: Path) -> SequencerState:
    """Detect an in-progress cherry-pick, revert, rebase or am from the git dir."""
    if (git_dir / "CHERRY_PICK_HEAD").is_file():
        return SequencerState(
            cherry_pick_in_progress=True,
            sequencer_head_oid=_oid(git_dir / "CHERRY_PICK_HEAD"),
        )

    if (git_dir / "REVERT_HEAD").is_file():
        return SequencerState(
            revert_in_progress=True,
            sequencer_head_oid=_oid(git_dir / "REVERT_HEAD"),
        )

    rebase_merge = git_dir / "rebase-merge"
    if rebase_merge.is_dir():
        return SequencerState(
            rebase_in_progress=True,
            rebase_head_name=_head_name(rebase_merge),
            rebase_onto=_first_line(rebase_merge / "onto"),
            rebase_stopped_sha=_first_line(rebase_merge / "stopped-sha"),
            rebase_todo=_todo_lines(rebase_merge / "git-rebase-todo"),
            rebase_done=_todo_lines(rebase_merge / "done"),
        )

    rebase_apply = git_dir / "rebase-apply"
    if rebase_apply.is_dir():
        # rebase-apply/applying exists during `git am`, rebase-apply/rebasing during rebase.
        if (rebase_apply / "applying").is_file():
            return SequencerState(
                am_in_progress=True,
                am_current_patch=_first_line(rebase_apply / "next"),
                am_last_patch=_first_line(rebase_apply / "last"),
            )
        return SequencerState(
            rebase_in_progress=True,
            rebase_head_name=_head_name(rebase_apply),
            rebase_onto=_first_line(rebase_apply / "onto"),
        )

    return SequencerState()


def _head_name(state_dir: Path) -> str | None:
    name = _first_line(state_dir / "head-name")
    return name.removeprefix("refs/heads/") if name else None


def read_merge_state(git_dir: Path) -> MergeState:
    merge_head = git_dir / "MERGE_HEAD"
    if not merge_head.is_file():
        return MergeState()
    return MergeState(merge_in_progress=True, merge_head_oid=_oid(merge_head))
