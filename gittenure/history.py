"""
.. module:: history
   :platform: Unix, Windows
   :synopsis: Read-only access to the authored change history of a single git repository

"""

import os
from typing import NamedTuple

from git import BadName, BadObject, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from gittenure.logging import get_logger

logger = get_logger("history")

_GIT_READ_ERRORS = (
    InvalidGitRepositoryError,
    NoSuchPathError,
    GitCommandError,
    BadName,
    BadObject,
    ValueError,
    OSError,
)


class GitTenureError(Exception):
    """Base exception for gittenure."""

    pass


class RepositoryUnreadable(GitTenureError):
    """Raised when a repository cannot be opened or its history cannot be read."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read repository at {path}: {reason}")


class Change(NamedTuple):
    """One authored commit, reduced to what span analysis needs."""

    author_name: str
    authored_at: int  # unix seconds, timezone offset already normalized away
    sha: str


def repo_name_from_path(path):
    """Returns the base name of a repository directory, the name used in reports."""
    return os.path.basename(os.path.normpath(str(path)))


class GitHistory:
    """Change history of one git repository, backed by GitPython.

    The history is walked from ``rev`` (HEAD by default) the first time any of the
    listing methods is called and kept for the lifetime of the object, so the three
    views below cost one ``git rev-list`` in total. ``git log --reverse`` is the exact
    reverse of the default output order, so the oldest-first view is derived from the
    newest-first one.

    Args:
        working_dir (str): Path to the repository.
        rev (str, optional): Revision to walk back from. Defaults to 'HEAD'.

    Raises:
        RepositoryUnreadable: If the path is missing or is not a git repository.

    Examples:
        >>> with GitHistory('/path/to/repo') as history:
        ...     newest = history.changes_newest_first()[0]
    """

    def __init__(self, working_dir, rev="HEAD"):
        self.git_dir = str(working_dir)
        self.rev = rev
        self._changes = None
        try:
            self.repo = Repo(self.git_dir)
        except _GIT_READ_ERRORS as e:
            raise RepositoryUnreadable(self.git_dir, f"{type(e).__name__}: {e}") from e
        logger.debug(f"Opened repository [{self.repo_name}] at {self.git_dir}")

    @property
    def repo_name(self):
        return repo_name_from_path(self.git_dir)

    def _load(self):
        if self._changes is not None:
            return self._changes

        try:
            if self.rev == "HEAD" and not self.repo.head.is_valid():
                # unborn branch: a freshly initialised repository without commits
                logger.debug(f"Repository [{self.repo_name}] has no commits")
                self._changes = []
                return self._changes

            self._changes = [
                Change(author_name=c.author.name, authored_at=int(c.authored_date), sha=c.hexsha)
                for c in self.repo.iter_commits(self.rev)
            ]
        except _GIT_READ_ERRORS as e:
            raise RepositoryUnreadable(self.git_dir, f"{type(e).__name__}: {e}") from e

        logger.debug(f"Loaded {len(self._changes)} changes from [{self.repo_name}]")
        return self._changes

    def all_changes(self):
        """Returns every change reachable from ``rev``, in git's default (newest first) order."""
        return list(self._load())

    def changes_newest_first(self):
        return list(self._load())

    def changes_oldest_first(self):
        return list(reversed(self._load()))

    def close(self):
        self.repo.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __str__(self):
        return f"git history: {self.repo_name} at: {self.git_dir} ({self.rev})"
