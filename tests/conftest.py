"""Pytest fixtures for gitstate tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from gitstate import debug_log
from gitstate.config import StatusConfig
from gitstate.state.coordinator import RepoStateCoordinator
from tests.helpers.fakes import FakeClock, FakeOperations, FakeQueries
from tests.helpers.git import init_repo

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolate_debug_logging():
    """Undo the process-global handler that ``setup_debug_logging`` installs."""
    package_logger = logging.getLogger("gitstate")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    initialized = debug_log._debug_logging_initialized
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    debug_log._debug_logging_initialized = initialized


# =============================================================================
# Unit fixtures (fake adapters, no git)
# =============================================================================


@pytest.fixture
def fake_queries(tmp_path: Path) -> FakeQueries:
    return FakeQueries(root=tmp_path)


@pytest.fixture
def fake_operations() -> FakeOperations:
    return FakeOperations()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def fake_coordinator(tmp_path: Path, fake_queries, fake_operations, clock):
    """Coordinator over fake adapters; its git dir is an empty temp directory."""
    git_dir = tmp_path / ".git"
    git_dir.mkdir()
    coordinator = RepoStateCoordinator(
        tmp_path,
        git_dir,
        queries=fake_queries,
        operations=fake_operations,
        config=StatusConfig(),
        clock=clock,
    )
    yield coordinator
    await coordinator.close()


# =============================================================================
# Integration fixtures (real git)
# =============================================================================


@pytest.fixture
async def git_repo(tmp_path: Path) -> Path:
    """A real repository on ``main`` with one committed README."""
    return await init_repo(tmp_path / "repo")


@pytest.fixture
async def repo_coordinator(git_repo: Path):
    coordinator = RepoStateCoordinator(git_repo, git_repo / ".git")
    yield coordinator
    await coordinator.close()
