"""
.. module:: summary
   :platform: Unix, Windows
   :synopsis: Reduction of contributor spans into per-repository statistics

"""

from dataclasses import dataclass

import numpy as np

# Column order of every persisted report, kept stable for downstream consumers
REPORT_COLUMNS = ["repo", "authors", "smallest", "middle", "largest", "mean"]


@dataclass(frozen=True)
class RepositorySummary:
    """Experience statistics of one repository, all values in whole days.

    A repository that was read but had no eligible contributors has a
    ``considered_count`` of 0 and all four statistics set to 0.
    """

    name: str
    considered_count: int
    smallest: int
    median: int
    largest: int
    mean_floor: int
    total_days: int = 0

    def mean(self):
        """Unrounded mean span, 0.0 when no contributor was considered."""
        if self.considered_count == 0:
            return 0.0
        return self.total_days / self.considered_count

    def as_row(self):
        """Values in ``REPORT_COLUMNS`` order."""
        return [self.name, self.considered_count, self.smallest, self.median, self.largest, self.mean_floor]


def summarize(name, spans):
    """Reduces the eligible spans of a repository into a :class:`RepositorySummary`.

    The median is the upper-middle element of the sorted spans (index ``n // 2``),
    never an average of the two middle values, and the mean is floored with integer
    division.

    Args:
        name (str): Repository name.
        spans (list[int]): Eligible spans in days, in any order.

    Returns:
        RepositorySummary: The reduced statistics.

    Examples:
        >>> summarize("repo", [4, 1, 3, 2]).median
        3
    """
    count = len(spans)
    if count == 0:
        return RepositorySummary(name=name, considered_count=0, smallest=0, median=0, largest=0, mean_floor=0)

    ordered = np.sort(np.asarray(spans, dtype=np.int64))
    total = int(ordered.sum())
    return RepositorySummary(
        name=name,
        considered_count=count,
        smallest=int(ordered[0]),
        median=int(ordered[count // 2]),
        largest=int(ordered[-1]),
        mean_floor=total // count,
        total_days=total,
    )
