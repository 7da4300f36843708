"""
Tests for the worker pool and work queue.

These cover exactly-once delivery of queued paths, containment of failures inside a
single worker, and termination of every worker once the queue is drained.
"""

import threading
import time
from unittest.mock import patch

import pytest

from gittenure.history import RepositoryUnreadable
from gittenure.pool import WorkerPool, WorkQueue, default_worker_count
from gittenure.sink import ResultSink
from gittenure.summary import summarize


def _summarize_path(path):
    """Analysis stand-in: derives a deterministic summary from the path."""
    index = int(path.rsplit("_", 1)[-1])
    return summarize(path.rsplit("/", 1)[-1], list(range(1, index % 7 + 1)))


class TestDefaultWorkerCount:
    @pytest.mark.parametrize(
        "processors, expected",
        [(1, 1), (2, 1), (3, 1), (4, 2), (8, 6), (64, 62)],
    )
    def test_leaves_two_processors_free(self, processors, expected):
        assert default_worker_count(processors) == expected

    def test_zero_processors_still_gives_one_worker(self):
        assert default_worker_count(0) == 1

    def test_defaults_to_cpu_count(self):
        with patch("gittenure.pool.os.cpu_count", return_value=12):
            assert default_worker_count() == 10

    def test_unknown_cpu_count(self):
        with patch("gittenure.pool.os.cpu_count", return_value=None):
            assert default_worker_count() == 1


class TestWorkQueue:
    def test_fifo_and_exhaustion(self):
        wq = WorkQueue(["a", "b", "c"])
        assert len(wq) == 3
        assert [wq.pop(), wq.pop(), wq.pop()] == ["a", "b", "c"]
        assert wq.pop() is None
        assert wq.pop() is None

    def test_empty_queue_does_not_block(self):
        wq = WorkQueue()
        start = time.time()
        assert wq.pop() is None
        assert time.time() - start < 1.0

    def test_concurrent_pop_hands_out_each_item_once(self):
        items = [f"path_{i}" for i in range(1000)]
        wq = WorkQueue.from_paths(items)
        popped = []
        lock = threading.Lock()

        def worker():
            while (item := wq.pop()) is not None:
                with lock:
                    popped.append(item)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(popped) == sorted(items)


class TestWorkerPool:
    def test_rejects_non_positive_worker_count(self):
        with pytest.raises(ValueError):
            WorkerPool(n_workers=0)

    def test_default_size(self):
        with patch("gittenure.pool.os.cpu_count", return_value=6):
            assert WorkerPool().n_workers == 4

    @pytest.mark.parametrize("run", range(5))
    def test_fifty_repositories_eight_workers(self, run):
        paths = [f"/repos/repo_{i}" for i in range(50)]
        sink = ResultSink()

        result = WorkerPool(n_workers=8).run(WorkQueue(paths), _summarize_path, sink)

        names = [s.name for s in sink.snapshot()]
        assert len(names) == 50
        assert sorted(names) == sorted(f"repo_{i}" for i in range(50))
        assert result["success"] is True
        assert result["workers"] == 8
        assert result["repositories_processed"] == 50
        assert result["repositories_failed"] == 0

    def test_each_path_is_analyzed_once(self):
        paths = [f"/repos/repo_{i}" for i in range(200)]
        calls = []
        lock = threading.Lock()

        def analyze(path):
            with lock:
                calls.append(path)
            return _summarize_path(path)

        WorkerPool(n_workers=8).run(WorkQueue(paths), analyze, ResultSink())
        assert sorted(calls) == sorted(paths)

    def test_runs_workers_concurrently(self):
        n_workers = 4
        barrier = threading.Barrier(n_workers, timeout=10)

        def analyze(path):
            # only passes when all workers are inside analyze at the same time
            barrier.wait()
            return _summarize_path(path)

        paths = [f"/repos/repo_{i}" for i in range(n_workers)]
        sink = ResultSink()
        result = WorkerPool(n_workers=n_workers).run(WorkQueue(paths), analyze, sink)

        assert result["success"] is True
        assert len(sink) == n_workers

    def test_more_workers_than_paths(self):
        sink = ResultSink()
        result = WorkerPool(n_workers=16).run(WorkQueue(["/repos/repo_1"]), _summarize_path, sink)
        assert len(sink) == 1
        assert result["repositories_processed"] == 1

    def test_empty_queue(self):
        sink = ResultSink()
        result = WorkerPool(n_workers=3).run(WorkQueue(), _summarize_path, sink)
        assert len(sink) == 0
        assert result["success"] is True
        assert result["repositories_processed"] == 0


class TestFailureIsolation:
    def test_unreadable_repository_is_left_out(self, caplog):
        paths = [f"/repos/repo_{i}" for i in range(10)]

        def analyze(path):
            if path.endswith("_3"):
                raise RepositoryUnreadable(path, "InvalidGitRepositoryError: not a git repository")
            return _summarize_path(path)

        sink = ResultSink()
        with caplog.at_level("WARNING", logger="gittenure"):
            result = WorkerPool(n_workers=4).run(WorkQueue(paths), analyze, sink)

        assert len(sink) == 9
        assert "repo_3" not in sink
        assert result["success"] is False
        assert result["repositories_failed"] == 1
        assert "repo_3" in result["failures"]
        assert "Skipping repository 'repo_3'" in caplog.text

    def test_unexpected_error_does_not_stop_worker(self):
        paths = [f"/repos/repo_{i}" for i in range(20)]

        def analyze(path):
            if int(path.rsplit("_", 1)[-1]) % 5 == 0:
                raise RuntimeError("boom")
            return _summarize_path(path)

        sink = ResultSink()
        # a single worker has to survive every failure to reach the remaining paths
        result = WorkerPool(n_workers=1).run(WorkQueue(paths), analyze, sink)

        assert len(sink) == 16
        assert result["repositories_failed"] == 4
        assert result["failures"]["repo_5"] == "Unexpected error: boom"

    def test_slow_failure_does_not_block_others(self):
        release = threading.Event()

        def analyze(path):
            if path.endswith("_0"):
                release.wait(timeout=10)
                raise RepositoryUnreadable(path, "corrupt")
            result = _summarize_path(path)
            if path.endswith("_9"):
                release.set()
            return result

        paths = [f"/repos/repo_{i}" for i in range(10)]
        sink = ResultSink()
        result = WorkerPool(n_workers=2).run(WorkQueue(paths), analyze, sink)

        assert len(sink) == 9
        assert result["repositories_failed"] == 1


class TestStop:
    def test_stop_is_checked_between_repositories(self):
        paths = [f"/repos/repo_{i}" for i in range(10)]
        pool = WorkerPool(n_workers=1)

        def analyze(path):
            summary = _summarize_path(path)
            if path.endswith("_2"):
                pool.stop()
            return summary

        sink = ResultSink()
        pool.run(WorkQueue(paths), analyze, sink)

        # the repository in progress when stop was requested is still stored
        assert sorted(s.name for s in sink.snapshot()) == ["repo_0", "repo_1", "repo_2"]
        assert pool.stopped

    def test_stopped_run_reports_remaining_paths(self, caplog):
        paths = [f"/repos/repo_{i}" for i in range(5)]
        pool = WorkerPool(n_workers=1)

        def analyze(path):
            pool.stop()
            return _summarize_path(path)

        sink = ResultSink()
        with caplog.at_level("WARNING", logger="gittenure"):
            result = pool.run(WorkQueue(paths), analyze, sink)

        assert len(sink) == 1
        assert result["repositories_processed"] == 1
        assert result["repositories_remaining"] == 4
        assert result["stopped"] is True
        assert result["success"] is False
        assert "4 not started (stopped)" in caplog.text

    def test_next_run_ignores_earlier_stop(self):
        pool = WorkerPool(n_workers=2)
        pool.stop()

        sink = ResultSink()
        result = pool.run(WorkQueue([f"/repos/repo_{i}" for i in range(6)]), _summarize_path, sink)

        assert len(sink) == 6
        assert result["success"] is True
        assert result["stopped"] is False
        assert not pool.stopped


class TestReplacedSummaries:
    def test_same_base_name_is_counted_as_replaced(self):
        paths = ["/a/repo_1", "/b/repo_1", "/a/repo_2"]
        sink = ResultSink()

        result = WorkerPool(n_workers=1).run(WorkQueue(paths), _summarize_path, sink)

        assert result["repositories_processed"] == 3
        assert result["repositories_replaced"] == 1
        assert len(sink) == result["repositories_processed"] - result["repositories_replaced"]
