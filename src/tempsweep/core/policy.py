"""Deletion safety rules applied to every traversed entry."""

from __future__ import annotations

import logging
import os

from tempsweep.config import Platform, current_platform
from tempsweep.core.filesystem import LocalFilesystem
from tempsweep.models.entry import EntryInfo

log = logging.getLogger(__name__)

# Shell metadata Windows regenerates per folder; compared case-insensitively.
WINDOWS_PROTECTED_NAMES = frozenset({"desktop.ini", "thumbs.db"})


def is_in_use(fs: LocalFilesystem, path: str) -> bool:
    """Best-effort check whether another process holds *path* open.

    Opens the file write-only and closes it straight away. A failure to open
    or to close is read as "in use". The answer can be stale by the time the
    file is deleted; deletion errors from that race are reported as regular
    failures by the walker.
    """
    try:
        handle = fs.open_for_write(path)
    except OSError as e:
        log.debug("Probe open failed for %s: %s", path, e)
        return True
    try:
        fs.close(handle)
    except OSError as e:
        log.debug("Probe close failed for %s: %s", path, e)
        return True
    return False


class DeletionPolicy:
    """Decides whether a single entry may be deleted.

    Rules, first match wins:

    1. Outside Windows, names starting with ``.`` are kept.
    2. On Windows, ``desktop.ini`` and ``thumbs.db`` are kept.
    3. Files that fail the in-use probe are kept.
    4. Everything else may be deleted.

    The platform is fixed at construction, so the policy holds no mutable
    state and is shared by all workers without locking.
    """

    def __init__(self, fs: LocalFilesystem | None = None, platform: Platform | None = None) -> None:
        self.fs = fs or LocalFilesystem()
        self.platform = platform or current_platform()

    def should_delete(self, path: str, info: EntryInfo) -> bool:
        return self.skip_reason(path, info) is None

    def skip_reason(self, path: str, info: EntryInfo) -> str | None:
        """Return why *path* must be kept, or None if it may be deleted."""
        name = os.path.basename(path)
        if self.platform is not Platform.WINDOWS:
            if name.startswith("."):
                return "hidden entry"
        elif name.lower() in WINDOWS_PROTECTED_NAMES:
            return "protected system file"

        if not info.is_dir and is_in_use(self.fs, path):
            return "file in use"
        return None
