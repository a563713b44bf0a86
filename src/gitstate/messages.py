"""Textual messages posted from coordinator listeners."""

from __future__ import annotations

from dataclasses import dataclass

from textual.message import Message


@dataclass
class StatusChanged(Message):
    """The coordinator's snapshot or refreshing flag changed.

    Does not bubble: the app forwards it to the active screen only.
    """

    bubble = False


@dataclass
class StaleChanged(Message):
    """The stale flag was set or cleared."""

    stale: bool

    bubble = False
