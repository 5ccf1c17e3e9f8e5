"""Tempsweep data models."""

from tempsweep.models.cleanup_result import COUNTER_FIELDS, CleanupResult
from tempsweep.models.entry import DirectoryTarget, EntryInfo

__all__ = [
    "COUNTER_FIELDS",
    "CleanupResult",
    "DirectoryTarget",
    "EntryInfo",
]
