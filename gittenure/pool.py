"""
.. module:: pool
   :platform: Unix, Windows
   :synopsis: A fixed pool of worker threads draining a queue of repository paths

"""

import os
import queue
import threading
import time

from gittenure.history import RepositoryUnreadable, repo_name_from_path
from gittenure.logging import get_logger

logger = get_logger("pool")

# Processors left free for the rest of the machine
HEADROOM_PROCESSORS = 2


def default_worker_count(processor_count=None):
    """Number of workers to run on a machine with ``processor_count`` processors.

    Leaves ``HEADROOM_PROCESSORS`` processors free when there is more than one, and
    never returns less than 1.
    """
    if processor_count is None:
        processor_count = os.cpu_count() or 1
    if processor_count > 1:
        processor_count -= HEADROOM_PROCESSORS
    return max(processor_count, 1)


class WorkQueue:
    """FIFO of repository paths, loaded once and then drained by the workers.

    Every path is handed out exactly once. ``pop`` never waits: nothing is added after
    loading, so an empty queue means the work is done.
    """

    def __init__(self, paths=None):
        self._queue = queue.Queue()
        for path in paths or []:
            self._queue.put(path)

    @classmethod
    def from_paths(cls, paths):
        return cls(paths)

    def pop(self):
        """Returns the next path, or None once the queue is exhausted."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def __len__(self):
        return self._queue.qsize()


class WorkerPool:
    """Runs a fixed number of worker threads over a :class:`WorkQueue`.

    Each worker pops a path, analyzes it and inserts the resulting summary into the
    sink, until the queue is empty. A repository that fails, whether unreadable or
    through any other exception, is logged and left out of the sink; the worker then
    carries on with the next path, so one bad repository never stops its siblings.

    Args:
        n_workers (Optional[int]): Number of worker threads. Defaults to
            :func:`default_worker_count`.

    Examples:
        >>> pool = WorkerPool(n_workers=4)
        >>> report = pool.run(WorkQueue(paths), analyze_repository, ResultSink())
    """

    def __init__(self, n_workers=None):
        if n_workers is None:
            n_workers = default_worker_count()
        if n_workers < 1:
            raise ValueError(f"n_workers must be at least 1, got {n_workers}")
        self.n_workers = n_workers
        self._stop_event = threading.Event()

    def stop(self):
        """Asks the workers of the current run to stop before picking up their next repository.

        A repository already being analyzed is finished and stored. The request only
        applies to the run in progress; the next call to :meth:`run` starts afresh.
        """
        logger.info("Stop requested, workers will exit after their current repository")
        self._stop_event.set()

    @property
    def stopped(self):
        return self._stop_event.is_set()

    def _work(self, work_queue, analyze_fn, sink, progress):
        thread_name = threading.current_thread().name
        while not self._stop_event.is_set():
            path = work_queue.pop()
            if path is None:
                break

            name = repo_name_from_path(path)
            try:
                summary = analyze_fn(path)
                replaced = sink.insert(summary)
            except RepositoryUnreadable as e:
                logger.warning(f"Skipping repository '{name}': {e.reason}")
                progress.failed(name, str(e))
                continue
            except Exception as e:
                logger.error(f"Unexpected error analyzing repository '{name}': {e}", exc_info=True)
                progress.failed(name, f"Unexpected error: {e}")
                continue

            progress.succeeded(replaced)
            logger.info(f"{thread_name}: {summary.name}, mean: {summary.mean_floor}")

    def run(self, work_queue, analyze_fn, sink):
        """Drains ``work_queue`` with the pool's workers and blocks until all of them exit.

        Args:
            work_queue (WorkQueue): Paths to analyze.
            analyze_fn (callable): Takes a path and returns a ``RepositorySummary``.
            sink (ResultSink): Receives one summary per successfully analyzed path.

        Returns:
            dict: Results with keys:
                - success (bool): False if any repository failed or the run was stopped early
                - workers (int): Number of worker threads run
                - repositories_processed (int): Repositories analyzed successfully
                - repositories_replaced (int): Of those, summaries that overwrote an earlier
                  one with the same name, so the sink holds processed - replaced new entries
                - repositories_failed (int): Repositories left out of the sink
                - repositories_remaining (int): Paths never picked up because of :meth:`stop`
                - stopped (bool): Whether :meth:`stop` was called during the run
                - failures (dict): Repository name to error message
                - execution_time (float): Wall time of the run in seconds
        """
        self._stop_event.clear()
        start_time = time.time()
        pending = len(work_queue)
        logger.info(f"Analyzing {pending} repositories with {self.n_workers} workers")

        progress = _Progress()
        threads = []
        for i in range(self.n_workers):
            thread = threading.Thread(
                target=self._work,
                args=(work_queue, analyze_fn, sink, progress),
                name=f"gittenure-worker-{i}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)

        for thread in threads:
            thread.join()

        result = progress.report()
        result["workers"] = self.n_workers
        result["stopped"] = self.stopped
        result["repositories_remaining"] = len(work_queue)
        result["success"] = result["success"] and not result["stopped"] and result["repositories_remaining"] == 0
        result["execution_time"] = time.time() - start_time

        if result["success"]:
            logger.info(
                f"Analyzed {result['repositories_processed']} repositories in {result['execution_time']:.2f} seconds"
            )
        else:
            logger.warning(
                f"Analyzed {result['repositories_processed']} repositories in {result['execution_time']:.2f} seconds, "
                f"{result['repositories_failed']} failed, {result['repositories_remaining']} not started"
                + (" (stopped)" if result["stopped"] else "")
            )
        return result


class _Progress:
    def __init__(self):
        self._lock = threading.Lock()
        self._processed = 0
        self._replaced = 0
        self._failed = 0
        self._failures = {}

    def succeeded(self, replaced=False):
        with self._lock:
            self._processed += 1
            if replaced:
                self._replaced += 1

    def failed(self, name, error):
        with self._lock:
            self._failed += 1
            self._failures[name] = error

    def report(self):
        with self._lock:
            return {
                "success": self._failed == 0,
                "repositories_processed": self._processed,
                "repositories_replaced": self._replaced,
                "repositories_failed": self._failed,
                "failures": dict(self._failures),
            }
