"""CLI commands against a real repository."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from gitstate import __version__
from gitstate.__main__ import cli
from tests.helpers.git import init_repo

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.integration


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    return asyncio.run(init_repo(tmp_path / "repo"))


def _status(path: Path, tmp_path: Path):
    config = tmp_path / "missing.toml"
    return CliRunner().invoke(cli, ["status", str(path), "--config", str(config)])


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == f"gitstate {__version__}"


def test_status_clean_repo(repo: Path, tmp_path: Path):
    result = _status(repo, tmp_path)
    assert result.exit_code == 0, result.output
    assert "Head:     main  Initial commit" in result.output
    assert "Nothing to commit, working tree clean" in result.output


def test_status_lists_sections(repo: Path, tmp_path: Path):
    (repo / "new.txt").write_text("x\n")
    (repo / "README.md").write_text("changed\n")

    result = _status(repo, tmp_path)

    assert result.exit_code == 0, result.output
    assert "Untracked (1)" in result.output
    assert "Unstaged (1)" in result.output
    assert "new.txt" in result.output
    assert "README.md" in result.output
    assert "Staged" not in result.output


def test_status_from_subdirectory(repo: Path, tmp_path: Path):
    sub = repo / "pkg"
    sub.mkdir()
    (sub / "mod.py").write_text("x = 1\n")
    result = _status(sub, tmp_path)
    assert result.exit_code == 0, result.output
    assert "Untracked (1)" in result.output


def test_status_outside_repository_fails(tmp_path: Path):
    plain = tmp_path / "plain"
    plain.mkdir()
    result = _status(plain, tmp_path)
    assert result.exit_code != 0
    assert "Not a git repository" in result.output
