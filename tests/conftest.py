"""
Shared pytest fixtures for git-tenure tests.
"""

import git
import pytest

from gittenure.history import Change

__author__ = "willmcginnis"

DAY = 86400
BASE_TIME = 1577836800  # 2020-01-01T00:00:00Z


class FakeHistory:
    """In-memory history provider; ``changes`` are given oldest first."""

    def __init__(self, changes):
        self._changes = list(changes)

    def all_changes(self):
        return list(self._changes)

    def changes_newest_first(self):
        return list(reversed(self._changes))

    def changes_oldest_first(self):
        return list(self._changes)


def build_git_repo(path, commits, branch=None):
    """Creates a repository at ``path`` with one commit per ``(author, unix_time)`` pair.

    Commits are made in the given order on a linear history. ``unix_time`` may also be
    a full git date string such as ``"1577836800 +0200"``.
    """
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    for i, (author, when) in enumerate(commits):
        date = when if isinstance(when, str) else f"{when} +0000"
        (path / "history.txt").write_text(f"change {i}\n")
        repo.index.add(["history.txt"])
        actor = git.Actor(author, f"{author.lower().replace(' ', '.')}@example.com")
        repo.index.commit(f"change {i}", author=actor, committer=actor, author_date=date, commit_date=date)

    return repo


@pytest.fixture
def fake_history():
    """Factory building a FakeHistory from ``(author, unix_time)`` pairs, oldest first."""

    def _make(commits):
        return FakeHistory(
            Change(author_name=author, authored_at=when, sha=f"{i:040x}") for i, (author, when) in enumerate(commits)
        )

    return _make


@pytest.fixture
def git_repo_factory(tmp_path):
    """Factory creating real git repositories under a shared parent directory."""
    parent = tmp_path / "repos"
    parent.mkdir()

    def _make(name, commits):
        repo = build_git_repo(parent / name, commits)
        repo.close()
        return parent / name

    _make.parent = parent
    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
