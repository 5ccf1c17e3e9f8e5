"""Cleanup result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Additive counters, in report order.
COUNTER_FIELDS = (
    "total_files",
    "total_dirs",
    "total_size",
    "deleted_files",
    "deleted_dirs",
    "deleted_size",
    "failed_files",
    "failed_dirs",
    "skipped_files",
    "skipped_dirs",
)


@dataclass(slots=True)
class CleanupResult:
    """Counters and error messages for one directory or one whole run.

    A partial result covers a single target directory; the aggregate result
    is the sum of all partial results plus the run's wall-clock duration.
    ``error_messages`` is in completion order, not input order.
    """

    total_files: int = 0
    total_dirs: int = 0
    total_size: int = 0
    deleted_files: int = 0
    deleted_dirs: int = 0
    deleted_size: int = 0
    failed_files: int = 0
    failed_dirs: int = 0
    skipped_files: int = 0
    skipped_dirs: int = 0
    processing_time: float = 0.0
    error_messages: list[str] = field(default_factory=list)

    def counters(self) -> dict[str, int]:
        """Return the additive counters keyed by field name."""
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.counters()
        data["processing_time"] = self.processing_time
        data["error_messages"] = list(self.error_messages)
        return data
