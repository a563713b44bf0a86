"""Configuration loaded from ``config.toml``."""

from __future__ import annotations

import logging
import tomllib
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from gitstate.constants import (
    DEFAULT_AUTO_REFRESH_DEBOUNCE_MS,
    DEFAULT_COOLDOWN_MS,
    DEFAULT_RECENT_COMMIT_COUNT,
    DEFAULT_STALE_DEBOUNCE_MS,
    DEFAULT_STASH_LIMIT,
)

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)


class StatusConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recent_commit_count: int = Field(default=DEFAULT_RECENT_COMMIT_COUNT, ge=0)
    stash_limit: int = Field(default=DEFAULT_STASH_LIMIT, ge=0)
    # Re-apply optimistic commands issued while a refresh was in flight.
    replay_optimistic: bool = True


class WatcherConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    stale_indicator: bool = True
    auto_refresh: bool = False
    cooldown_ms: int = Field(default=DEFAULT_COOLDOWN_MS, ge=0)
    stale_debounce_ms: int = Field(default=DEFAULT_STALE_DEBOUNCE_MS, ge=0)
    auto_refresh_debounce_ms: int = Field(default=DEFAULT_AUTO_REFRESH_DEBOUNCE_MS, ge=0)
    watch_worktree: bool = False

    @property
    def debounce_seconds(self) -> float:
        ms = self.auto_refresh_debounce_ms if self.auto_refresh else self.stale_debounce_ms
        return ms / 1000

    @property
    def cooldown_seconds(self) -> float:
        return self.cooldown_ms / 1000


class GitstateConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: StatusConfig = Field(default_factory=StatusConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)

    @classmethod
    def load(cls, path: Path | None) -> GitstateConfig:
        """Load config from TOML. A missing file yields the defaults."""
        if path is None or not path.exists():
            return cls()
        with path.open("rb") as fh:
            data = tomllib.load(fh)
        log.debug("Loaded config from %s", path)
        return cls.model_validate(data)
