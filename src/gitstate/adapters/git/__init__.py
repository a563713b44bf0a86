"""Git adapter contracts."""

from gitstate.adapters.git.base import GitAdapterBase, GitCommandResult, GitCommandRunner
from gitstate.adapters.git.types import (
    CommitInfo,
    MergeState,
    OperationResult,
    SequencerState,
    StashEntry,
    SubmoduleEntry,
    WorktreeEntry,
)

__all__ = [
    "CommitInfo",
    "GitAdapterBase",
    "GitCommandResult",
    "GitCommandRunner",
    "MergeState",
    "OperationResult",
    "SequencerState",
    "StashEntry",
    "SubmoduleEntry",
    "WorktreeEntry",
]
