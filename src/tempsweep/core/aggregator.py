"""Merges partial results into the run's aggregate result."""

from __future__ import annotations

import threading

from tempsweep.models.cleanup_result import COUNTER_FIELDS, CleanupResult


class ResultAggregator:
    """Owns the aggregate :class:`CleanupResult` of one run.

    Counter updates take a lock, so :meth:`add_counts` may be called from any
    worker thread. Appending error messages is not synchronized: :meth:`merge`
    must only be called from the single thread that drains the result queue.
    """

    def __init__(self, result: CleanupResult | None = None) -> None:
        self.result = result if result is not None else CleanupResult()
        self._lock = threading.Lock()

    def add_counts(self, source: CleanupResult) -> None:
        """Add every counter of *source* to the aggregate."""
        with self._lock:
            for name in COUNTER_FIELDS:
                setattr(self.result, name, getattr(self.result, name) + getattr(source, name))

    def merge(self, source: CleanupResult) -> None:
        """Fold one partial result into the aggregate. Single consumer only."""
        self.add_counts(source)
        self.result.error_messages.extend(source.error_messages)
