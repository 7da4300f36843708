from importlib.metadata import PackageNotFoundError, version

from gittenure.history import Change, GitHistory, GitTenureError, RepositoryUnreadable
from gittenure.pool import WorkerPool, WorkQueue, default_worker_count
from gittenure.project import ExperienceProject, analyze_repository
from gittenure.sink import ResultSink
from gittenure.spans import SpanCalculator
from gittenure.summary import REPORT_COLUMNS, RepositorySummary, summarize

try:
    __version__ = version("git-tenure")
except PackageNotFoundError:
    # running from a source checkout that was never installed
    __version__ = "0.1.0"

__author__ = "willmcginnis"

__all__ = [
    "Change",
    "GitHistory",
    "GitTenureError",
    "RepositoryUnreadable",
    "SpanCalculator",
    "RepositorySummary",
    "summarize",
    "REPORT_COLUMNS",
    "ResultSink",
    "WorkQueue",
    "WorkerPool",
    "default_worker_count",
    "ExperienceProject",
    "analyze_repository",
]
