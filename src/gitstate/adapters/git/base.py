"""Shared git command runner and adapter base."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gitstate.adapters.git.types import OperationResult
from gitstate.constants import GIT_FLAGS
from gitstate.errors import GitCommandError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


@dataclass(frozen=True)
class GitCommandResult:
    """Result of a git command invocation."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> list[str]:
        return self.stdout.splitlines()


class GitCommandRunner:
    """Run git commands in subprocesses."""

    def __init__(self, *, timeout: float | None = None) -> None:
        self._timeout = timeout

    async def run(
        self,
        cwd: Path,
        args: Sequence[str],
        *,
        check: bool = True,
        stdin: str | None = None,
    ) -> GitCommandResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                "git",
                *GIT_FLAGS,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:  # pragma: no cover - environment dependent
            raise GitCommandError(args, 127, "git executable not found") from exc

        payload = stdin.encode() if stdin is not None else None
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(payload), timeout=self._timeout
            )
        except TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise GitCommandError(args, -1, f"timed out after {self._timeout}s") from exc

        returncode = proc.returncode if proc.returncode is not None else 1
        stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""

        if check and returncode != 0:
            err = stderr.strip() or stdout.strip() or "unknown git error"
            raise GitCommandError(args, returncode, err)

        return GitCommandResult(returncode=returncode, stdout=stdout, stderr=stderr)


class GitAdapterBase:
    """Base helper for git adapters with shared execution."""

    def __init__(self, runner: GitCommandRunner | None = None) -> None:
        self._runner = runner or GitCommandRunner()

    async def _run_git(
        self,
        cwd: Path,
        args: Sequence[str],
        *,
        check: bool = True,
    ) -> GitCommandResult:
        return await self._runner.run(cwd, args, check=check)

    async def _run_operation(self, cwd: Path, args: Sequence[str]) -> OperationResult:
        """Run a mutating command and fold its outcome into an OperationResult."""
        try:
            result = await self._runner.run(cwd, args, check=False)
        except GitCommandError as exc:
            return OperationResult.failure(str(exc))
        if result.ok:
            return OperationResult.success()
        return OperationResult.failure(result.stderr.strip() or result.stdout.strip() or None)
