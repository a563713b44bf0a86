"""In-memory stand-ins for the git adapters."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING

from gitstate.adapters.git.types import MergeState, OperationResult, SequencerState
from gitstate.state.models import StatusSnapshot

if TYPE_CHECKING:
    from pathlib import Path


class FakeQueries:
    """Query adapter whose ``status`` results are scripted.

    ``responses`` holds ``(gate, snapshot)`` pairs consumed one per call; a
    gate, when given, must be set before that call returns. With no scripted
    response left, ``snapshot`` is returned.
    """

    def __init__(self, snapshot: StatusSnapshot | None = None, root: Path | None = None) -> None:
        self.snapshot = snapshot or StatusSnapshot(branch="main", head_oid="abc1234")
        self.root = root
        self.responses: deque[tuple[asyncio.Event | None, StatusSnapshot]] = deque()
        self.fail_with: Exception | None = None
        self.status_calls = 0
        self.remote: str | None = None

    def script(self, snapshot: StatusSnapshot, *, gated: bool = False) -> asyncio.Event | None:
        gate = asyncio.Event() if gated else None
        self.responses.append((gate, snapshot))
        return gate

    async def status(self, cwd: Path) -> StatusSnapshot:
        self.status_calls += 1
        snapshot = self.snapshot
        if self.responses:
            gate, snapshot = self.responses.popleft()
            if gate is not None:
                await gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return snapshot

    async def commit_subject(self, cwd: Path, ref: str) -> str:
        return f"subject of {ref}"

    async def commits_between(self, cwd: Path, base: str, target: str) -> list:
        return []

    async def log(self, cwd: Path, args) -> list:
        return []

    async def stash_list(self, cwd: Path) -> list:
        return []

    async def submodule_status(self, cwd: Path) -> list:
        return []

    async def worktree_list(self, cwd: Path) -> list:
        return []

    async def abbrev_and_subject(self, cwd: Path, ref: str) -> tuple[str, str]:
        return ref[:7], f"subject of {ref}"

    async def commits_since(self, cwd: Path, base: str) -> list:
        return []

    async def name_rev(self, cwd: Path, ref: str) -> str | None:
        return None

    async def push_remote(self, cwd: Path, branch: str) -> str | None:
        return None

    async def default_remote(self, cwd: Path) -> str | None:
        return self.remote

    async def repo_root(self, path: Path) -> Path | None:
        return self.root

    async def git_dir(self, path: Path) -> Path | None:
        return self.root / ".git" if self.root else None

    async def sequencer_state(self, git_dir: Path) -> SequencerState:
        return SequencerState()

    async def merge_state(self, git_dir: Path) -> MergeState:
        return MergeState()


class FakeOperations:
    """Operations adapter that records calls and returns ``result``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.result = OperationResult.success()

    def _record(self, name: str, *args) -> OperationResult:
        self.calls.append((name, args))
        return self.result

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def stage(self, cwd, path):
        return self._record("stage", path)

    async def stage_files(self, cwd, paths):
        return self._record("stage_files", tuple(paths))

    async def stage_intent(self, cwd, path):
        return self._record("stage_intent", path)

    async def unstage(self, cwd, path):
        return self._record("unstage", path)

    async def unstage_files(self, cwd, paths):
        if not paths:
            return OperationResult.success()
        return self._record("unstage_files", tuple(paths))

    async def stage_all(self, cwd):
        return self._record("stage_all")

    async def unstage_all(self, cwd):
        return self._record("unstage_all")

    async def discard(self, cwd, path):
        return self._record("discard", path)

    async def discard_files(self, cwd, paths):
        if not paths:
            return OperationResult.success()
        return self._record("discard_files", tuple(paths))

    async def delete_untracked(self, cwd, path):
        return self._record("delete_untracked", path)

    async def delete_untracked_files(self, cwd, paths):
        if not paths:
            return OperationResult.success()
        return self._record("delete_untracked_files", tuple(paths))


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
