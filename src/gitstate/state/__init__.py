"""Status state: immutable snapshots, commands and the pure reducer."""

from gitstate.state.commands import (
    Refresh,
    RemoveFile,
    StageAll,
    StageFile,
    StageIntentOnly,
    StatusCommand,
    UnstageAll,
    UnstageFile,
    UnstageIntentOnly,
)
from gitstate.state.models import FileEntry, Section, StatusCode, StatusSnapshot
from gitstate.state.reducer import apply

__all__ = [
    "FileEntry",
    "Refresh",
    "RemoveFile",
    "Section",
    "StageAll",
    "StageFile",
    "StageIntentOnly",
    "StatusCode",
    "StatusCommand",
    "StatusSnapshot",
    "UnstageAll",
    "UnstageFile",
    "UnstageIntentOnly",
    "apply",
]
