"""Mutating git operations backing the optimistic status updates."""

from __future__ import annotations

import asyncio
import shutil
from typing import TYPE_CHECKING

from gitstate.adapters.git.base import GitAdapterBase
from gitstate.adapters.git.types import OperationResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class GitOperationsAdapter(GitAdapterBase):
    """Single-purpose index and worktree operations.

    Every method reports success or failure through ``OperationResult`` and
    never raises for an ordinary git failure.
    """

    async def stage(self, cwd: Path, path: str) -> OperationResult:
        return await self._run_operation(cwd, ["add", "--", path])

    async def stage_files(self, cwd: Path, paths: Sequence[str]) -> OperationResult:
        if not paths:
            return OperationResult.success()
        return await self._run_operation(cwd, ["add", "--", *paths])

    async def stage_intent(self, cwd: Path, path: str) -> OperationResult:
        """Mark a file with ``git add -N`` so its content can be staged piecewise."""
        return await self._run_operation(cwd, ["add", "-N", "--", path])

    async def unstage(self, cwd: Path, path: str) -> OperationResult:
        return await self._run_operation(cwd, ["reset", "HEAD", "--", path])

    async def unstage_files(self, cwd: Path, paths: Sequence[str]) -> OperationResult:
        if not paths:
            return OperationResult.success()
        return await self._run_operation(cwd, ["reset", "HEAD", "--", *paths])

    async def stage_all(self, cwd: Path) -> OperationResult:
        return await self._run_operation(cwd, ["add", "-A"])

    async def unstage_all(self, cwd: Path) -> OperationResult:
        return await self._run_operation(cwd, ["reset", "HEAD"])

    async def discard(self, cwd: Path, path: str) -> OperationResult:
        return await self._run_operation(cwd, ["checkout", "HEAD", "--", path])

    async def discard_files(self, cwd: Path, paths: Sequence[str]) -> OperationResult:
        if not paths:
            return OperationResult.success()
        return await self._run_operation(cwd, ["checkout", "HEAD", "--", *paths])

    async def delete_untracked(self, cwd: Path, path: str) -> OperationResult:
        """Delete an untracked file, or a directory when ``path`` ends with ``/``."""
        error = await asyncio.to_thread(_delete_path, cwd, path)
        return OperationResult.failure(error) if error else OperationResult.success()

    async def delete_untracked_files(self, cwd: Path, paths: Sequence[str]) -> OperationResult:
        failed: list[str] = []
        for path in paths:
            error = await asyncio.to_thread(_delete_path, cwd, path)
            if error:
                failed.append(f"{path}: {error}")
        if failed:
            return OperationResult.failure("Failed to delete: " + ", ".join(failed))
        return OperationResult.success()


def _delete_path(cwd: Path, path: str) -> str | None:
    target = cwd / path.rstrip("/")
    try:
        if path.endswith("/"):
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as exc:
        return exc.strerror or str(exc)
    return None
