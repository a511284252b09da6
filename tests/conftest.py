"""
Shared pytest fixtures for verdocs tests.

This module provides:
- Throwaway on-disk git repositories (``git_repo``) with a bare remote
  (``bare_remote``) for the branch-resolution paths
- Fake documentation generators standing in for mkdocs/pdoc
- Environment and logging isolation between tests

Fixtures that need git skip the test when the ``git`` CLI is not installed.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from tests._support.gitrepo import GIT, FakeGenerator, commit_files, git, init_repo
from verdocs.config import PublishConfig
from verdocs.publish.git import GitRepository


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep VERDOCS_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("VERDOCS_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Repositories
# =============================================================================


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Repository on ``main`` with a README and a ``docs/`` landing page."""
    if GIT is None:
        pytest.skip("git CLI not available")
    root = init_repo(tmp_path / "project")
    commit_files(
        root,
        {
            "README.md": "# project\n",
            "docs/index.md": "# Custom landing\n",
            "docs/assets/style.css": "body { margin: 0; }\n",
        },
        "initial commit",
    )
    return root


@pytest.fixture
def repo(git_repo: Path) -> GitRepository:
    return GitRepository(git_repo)


@pytest.fixture
def bare_remote(tmp_path: Path, git_repo: Path) -> Path:
    """Bare repository registered as ``origin`` of ``git_repo``."""
    remote = tmp_path / "remote.git"
    git(tmp_path, "init", "-q", "--bare", str(remote))
    git(git_repo, "remote", "add", "origin", str(remote))
    return remote


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Parent directory for temporary working copies."""
    root = tmp_path / "work"
    root.mkdir()
    return root


# =============================================================================
# Configuration and collaborators
# =============================================================================


@pytest.fixture
def config() -> PublishConfig:
    return PublishConfig()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()
