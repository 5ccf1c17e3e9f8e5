"""Concurrent cleaning of many target directories."""

from __future__ import annotations

import logging
import os
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from tempsweep.core.aggregator import ResultAggregator
from tempsweep.core.events import CleanupEvents, NullEvents, notify
from tempsweep.core.filesystem import LocalFilesystem
from tempsweep.core.policy import DeletionPolicy
from tempsweep.core.walker import DirectoryWalker
from tempsweep.models.cleanup_result import CleanupResult
from tempsweep.models.entry import DirectoryTarget

log = logging.getLogger(__name__)

MIN_WORKERS = 2
MAX_WORKERS = 8


def worker_count(cpu_count: int | None = None) -> int:
    """Clamp the available parallelism to the [2, 8] worker range."""
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    return max(MIN_WORKERS, min(MAX_WORKERS, cpu_count))


class Cleaner:
    """Fans target directories out to a fixed pool of worker threads.

    Each worker pulls one target at a time from a shared queue, cleans it with
    a :class:`DirectoryWalker` and publishes the partial result. The calling
    thread waits for every worker, then merges the results in arrival order.
    Worker count and dry-run mode are fixed for the lifetime of the instance.
    """

    def __init__(
        self,
        events: CleanupEvents | None = None,
        dry_run: bool = False,
        fs: LocalFilesystem | None = None,
        policy: DeletionPolicy | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.events = events or NullEvents()
        self.dry_run = dry_run
        self.max_workers = max_workers if max_workers is not None else worker_count()
        self.fs = fs or (policy.fs if policy else LocalFilesystem())
        self.walker = DirectoryWalker(
            policy=policy or DeletionPolicy(self.fs),
            events=self.events,
            fs=self.fs,
            dry_run=dry_run,
        )

    def clean_directories(self, targets: Sequence[DirectoryTarget]) -> CleanupResult:
        """Clean every target exactly once and return the aggregate result.

        Missing targets still produce a partial result recording a skipped
        directory. Duplicate targets are cleaned independently.
        """
        start = time.monotonic()
        log.info(
            "Starting cleanup of %d directories (workers: %d, dry-run: %s)",
            len(targets), self.max_workers, self.dry_run,
        )
        notify(self.events, "run_started", targets, self.max_workers, self.dry_run)

        work: queue.Queue[DirectoryTarget] = queue.Queue()
        for target in targets:
            work.put(target)
        results: queue.Queue[CleanupResult] = queue.Queue(maxsize=len(targets))

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tempsweep") as executor:
            futures = [executor.submit(self._work, work, results) for _ in range(self.max_workers)]
            for future in futures:
                future.result()

        aggregator = ResultAggregator()
        while True:
            try:
                aggregator.merge(results.get_nowait())
            except queue.Empty:
                break

        result = aggregator.result
        result.processing_time = time.monotonic() - start
        log.info("Cleanup completed in %.2fs", result.processing_time)
        notify(self.events, "run_finished", result)
        return result

    def _work(self, work: queue.Queue[DirectoryTarget], results: queue.Queue[CleanupResult]) -> None:
        """Worker loop: clean targets until the queue is exhausted."""
        while True:
            try:
                target = work.get_nowait()
            except queue.Empty:
                return
            results.put_nowait(self._clean_one(target))

    def _clean_one(self, target: DirectoryTarget) -> CleanupResult:
        try:
            return self.walker.clean(target)
        except Exception as e:
            log.exception("Worker failed while cleaning %s", target)
            return CleanupResult(error_messages=[f"Worker error for {target}: {e}"])
