"""
.. module:: project
   :platform: Unix, Windows
   :synopsis: Experience analysis over a directory of git repositories

"""

import os

from gittenure.history import GitHistory, repo_name_from_path
from gittenure.logging import logger
from gittenure.pool import WorkerPool, WorkQueue
from gittenure.sink import ResultSink
from gittenure.spans import MIN_ELIGIBLE_DAYS, SpanCalculator
from gittenure.summary import summarize


def analyze_repository(path, rev="HEAD", calculator=None):
    """Computes the experience summary of the repository at ``path``.

    Args:
        path (str): Path to the repository; its base name becomes the summary name.
        rev (str, optional): Revision to walk history back from. Defaults to 'HEAD'.
        calculator (Optional[SpanCalculator]): Span calculator to use.

    Returns:
        RepositorySummary: Statistics of the eligible contributor spans.

    Raises:
        RepositoryUnreadable: If the repository cannot be opened or read.
    """
    calculator = calculator or SpanCalculator()
    with GitHistory(path, rev=rev) as history:
        spans = calculator.compute_eligible_spans(history)
    return summarize(repo_name_from_path(path), spans)


class ExperienceProject:
    """Measures contributor experience spans across many git repositories.

    Args:
        working_dir (Union[str, List[str]]): Either a directory holding one repository per
            immediate subdirectory, or an explicit list of repository paths.
        ignore_repos (Optional[List[str]]): Repository names to leave out.
        n_workers (Optional[int]): Number of worker threads, defaults to the processor
            count minus two (at least one).
        rev (str, optional): Revision to analyze in every repository. Defaults to 'HEAD'.
        min_days (int, optional): Smallest span counted in the statistics. Defaults to 1.

    Attributes:
        repo_dirs (List[str]): Paths that will be analyzed
        results (ResultSink): Summaries of the last run, empty before the first one
        last_run (Optional[dict]): Report of the last run, see :meth:`WorkerPool.run`

    Examples:
        >>> project = ExperienceProject('/path/to/repos', n_workers=4)
        >>> df = project.experience()
        >>> project.to_csv('experience.csv')

    Note:
        Subdirectories are not checked for being git repositories up front. One that is
        not is reported as unreadable during the run and left out of the results.
    """

    def __init__(self, working_dir, ignore_repos=None, n_workers=None, rev="HEAD", min_days=MIN_ELIGIBLE_DAYS):
        logger.info(f"Initializing ExperienceProject with working_dir={working_dir}, ignore_repos={ignore_repos}")
        if isinstance(working_dir, list | tuple):
            repo_dirs = [str(r) for r in working_dir]
        else:
            repo_dirs = self._list_repo_dirs(str(working_dir))

        if ignore_repos is not None:
            repo_dirs = [r for r in repo_dirs if repo_name_from_path(r) not in ignore_repos]

        self.repo_dirs = repo_dirs
        self.rev = rev
        self.calculator = SpanCalculator(min_days=min_days)
        self.pool = WorkerPool(n_workers=n_workers)
        self.results = ResultSink()
        self.last_run = None
        logger.info(f"Initialized ExperienceProject with {len(self.repo_dirs)} repositories.")

    @staticmethod
    def _list_repo_dirs(working_dir):
        if not os.path.isdir(working_dir):
            raise NotADirectoryError(f"not a directory: {working_dir}")
        return [
            os.path.join(working_dir, entry)
            for entry in sorted(os.listdir(working_dir))
            if not entry.startswith(".") and os.path.isdir(os.path.join(working_dir, entry))
        ]

    def _analyze(self, path):
        return analyze_repository(path, rev=self.rev, calculator=self.calculator)

    def run(self):
        """Analyzes every repository and returns the run report.

        Results of a previous run are discarded first.

        Returns:
            dict: The report returned by :meth:`WorkerPool.run`.
        """
        self.results = ResultSink()
        self.last_run = self.pool.run(WorkQueue.from_paths(self.repo_dirs), self._analyze, self.results)
        return self.last_run

    def experience(self, sort=True):
        """Runs the analysis and returns one row of statistics per repository.

        Args:
            sort (bool, optional): Order rows by repository name. Defaults to True.

        Returns:
            pandas.DataFrame: A DataFrame with columns:
                - repo (str): Repository name
                - authors (int): Contributors with an eligible span
                - smallest (int): Shortest eligible span in days
                - middle (int): Upper-middle eligible span in days
                - largest (int): Longest eligible span in days
                - mean (int): Mean eligible span in days, floored

        Note:
            Repositories that could not be read are absent; a repository without any
            eligible contributor has a row of zeros.
        """
        self.run()
        return self.results.to_dataframe(sort=sort)

    def to_csv(self, path_or_buf, sort=True):
        """Runs the analysis and writes the report as CSV.

        Returns:
            dict: The run report.
        """
        report = self.run()
        self.results.to_csv(path_or_buf, sort=sort)
        return report

    def stop(self):
        """Stops a run in progress once each worker finishes its current repository."""
        self.pool.stop()

    def __repr__(self):
        return f"ExperienceProject({len(self.repo_dirs)} repositories, {self.pool.n_workers} workers)"
