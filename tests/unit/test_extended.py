"""Tests for the push target chosen by the extended status fetch."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from gitstate.config import StatusConfig
from gitstate.state.extended import ExtendedStatusFetcher
from tests.helpers.snapshots import snapshot

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.unit


@pytest.fixture
def fetcher(fake_queries, tmp_path: Path) -> ExtendedStatusFetcher:
    return ExtendedStatusFetcher(fake_queries, tmp_path, tmp_path / ".git", StatusConfig())


async def test_unpublished_branch_pushes_to_default_remote(fetcher, fake_queries):
    fake_queries.remote = "origin"
    result = await fetcher.fetch(snapshot(branch="topic"))
    assert result.push_remote == "origin/topic"
    assert result.push_commit_msg == "subject of origin/topic"


async def test_no_remote_means_no_push_target(fetcher):
    result = await fetcher.fetch(snapshot(branch="topic"))
    assert result.push_remote is None


async def test_upstream_remote_wins_over_default(fetcher, fake_queries):
    fake_queries.remote = "fork"
    base = replace(snapshot(branch="topic"), upstream="origin/main")
    result = await fetcher.fetch(base)
    assert result.push_remote == "origin/topic"
