"""State commands: pure data describing snapshot transitions.

Commands are produced by user actions (after the backing git operation has
succeeded) or by a completed status fetch. They never reference the
coordinator or any async machinery.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitstate.state.models import Section, StatusSnapshot


@dataclass(frozen=True)
class StageFile:
    """Move a file from ``from_section`` (unstaged or untracked) to staged."""

    path: str
    from_section: Section


@dataclass(frozen=True)
class UnstageFile:
    """Move a staged file back to unstaged (or untracked if it was added)."""

    path: str


@dataclass(frozen=True)
class StageIntentOnly:
    """Untracked file marked with ``git add -N``."""

    path: str


@dataclass(frozen=True)
class UnstageIntentOnly:
    """Intent-to-add undone: the file goes back to untracked."""

    path: str


@dataclass(frozen=True)
class StageAll:
    pass


@dataclass(frozen=True)
class UnstageAll:
    pass


@dataclass(frozen=True)
class RemoveFile:
    """Drop a file from a section after a discard or delete succeeded."""

    path: str
    from_section: Section


@dataclass(frozen=True)
class Refresh:
    """Full replacement from a fresh git status."""

    status: StatusSnapshot


type StatusCommand = (
    StageFile
    | UnstageFile
    | StageIntentOnly
    | UnstageIntentOnly
    | StageAll
    | UnstageAll
    | RemoveFile
    | Refresh
)
