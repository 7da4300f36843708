"""
.. module:: spans
   :platform: Unix, Windows
   :synopsis: Per-contributor experience spans for a single repository

"""

from gittenure.logging import get_logger

logger = get_logger("spans")

SECONDS_PER_DAY = 86400
MIN_ELIGIBLE_DAYS = 1


def whole_days(seconds):
    """Converts a number of seconds to whole days, truncating toward zero."""
    days = abs(seconds) // SECONDS_PER_DAY
    return days if seconds >= 0 else -days


def _first_seen_by_author(changes):
    first_seen = {}
    for change in changes:
        if change.author_name not in first_seen:
            first_seen[change.author_name] = change
    return first_seen


class SpanCalculator:
    """Derives how long each contributor has been active in one repository.

    A contributor is a change author identified by display name only, so two people
    committing under the same name are counted as one contributor.

    The most recent change of a contributor is the first of theirs met walking the
    history newest first, and their earliest change is the first met walking oldest
    first. Both lookups are done for every contributor in a single pass per direction.
    Any of several changes sharing the extreme timestamp may be picked, which yields
    the same span.

    Args:
        min_days (int, optional): Smallest span, in whole days, that counts towards the
            repository statistics. Defaults to 1, so contributors whose first and last
            change fall within the same 24 hours have no measurable tenure.
    """

    def __init__(self, min_days=MIN_ELIGIBLE_DAYS):
        self.min_days = min_days

    def contributor_spans(self, history):
        """Returns the span of every contributor of a repository, eligible or not.

        Args:
            history: A history provider such as :class:`gittenure.history.GitHistory`.

        Returns:
            dict: Contributor display name to span in whole days.

        Raises:
            RepositoryUnreadable: If the history cannot be read.
        """
        authors = {change.author_name for change in history.all_changes()}
        if not authors:
            return {}

        latest = _first_seen_by_author(history.changes_newest_first())
        earliest = _first_seen_by_author(history.changes_oldest_first())

        spans = {}
        for author in authors:
            spans[author] = whole_days(latest[author].authored_at - earliest[author].authored_at)
        return spans

    def compute_eligible_spans(self, history):
        """Returns the spans that count towards a repository's summary.

        One entry per eligible contributor, so equal spans appear more than once.

        Args:
            history: A history provider such as :class:`gittenure.history.GitHistory`.

        Returns:
            list[int]: Spans of at least ``min_days`` days, in no particular order.
        """
        spans = self.contributor_spans(history)
        eligible = [span for span in spans.values() if span >= self.min_days]
        logger.debug(f"{len(eligible)} of {len(spans)} contributors have a span of at least {self.min_days} day(s)")
        return eligible
