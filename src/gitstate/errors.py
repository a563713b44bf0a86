"""Error types and reporting helpers for git operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

log = logging.getLogger(__name__)


class GitCommandError(RuntimeError):
    """A git subprocess exited non-zero or could not be started."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.git_args = tuple(args)
        self.returncode = returncode
        self.stderr = stderr
        cmd = " ".join(self.git_args)
        super().__init__(f"git {cmd} failed (rc={returncode}): {stderr or 'unknown git error'}")


def report_error(operation: str, err: str | None) -> None:
    """Log an operation failure with consistent formatting."""
    log.error("[gitstate] %s error: %s", operation, err or "unknown")
