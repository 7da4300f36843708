"""
.. module:: sink
   :platform: Unix, Windows
   :synopsis: Thread-safe collection of repository summaries

"""

import threading

import pandas as pd

from gittenure.logging import get_logger
from gittenure.summary import REPORT_COLUMNS

logger = get_logger("sink")


class ResultSink:
    """Holds one :class:`RepositorySummary` per repository name.

    Safe for concurrent ``insert`` from any number of worker threads. Inserting a
    second summary under a name already present replaces the first one and logs a
    warning; summaries under different names never interfere with each other.
    """

    def __init__(self):
        self._summaries = {}
        self._lock = threading.Lock()

    def insert(self, summary):
        """Stores ``summary`` and returns True if it replaced one with the same name."""
        with self._lock:
            replaced = summary.name in self._summaries
            self._summaries[summary.name] = summary
        if replaced:
            logger.warning(f"Replaced existing summary for repository '{summary.name}'")
        return replaced

    def snapshot(self):
        """Returns a copy of the stored summaries, in insertion order."""
        with self._lock:
            return list(self._summaries.values())

    def get(self, name, default=None):
        with self._lock:
            return self._summaries.get(name, default)

    def __len__(self):
        with self._lock:
            return len(self._summaries)

    def __contains__(self, name):
        with self._lock:
            return name in self._summaries

    def to_dataframe(self, sort=False):
        """Returns the stored summaries as a DataFrame.

        Args:
            sort (bool, optional): Order rows by repository name. Defaults to False, which
                keeps insertion (completion) order.

        Returns:
            pandas.DataFrame: One row per repository with the columns
                repo, authors, smallest, middle, largest, mean.
        """
        df = pd.DataFrame([s.as_row() for s in self.snapshot()], columns=REPORT_COLUMNS)
        if sort:
            df = df.sort_values("repo").reset_index(drop=True)
        return df

    def to_csv(self, path_or_buf, sort=False):
        """Writes the report as CSV with a ``repo,authors,smallest,middle,largest,mean`` header."""
        df = self.to_dataframe(sort=sort)
        logger.info(f"Writing report with {len(df)} repositories")
        return df.to_csv(path_or_buf, index=False)
