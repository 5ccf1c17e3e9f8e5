"""Filesystem access used by the cleaning engine.

All lookups, traversal, probing and removal goes through :class:`LocalFilesystem`
so tests can substitute a subclass that fails on chosen paths.
"""

from __future__ import annotations

import os
import shutil

# Write-only without truncation. Non-blocking so a FIFO without a reader
# fails immediately instead of hanging the worker.
_PROBE_FLAGS = os.O_WRONLY | getattr(os, "O_NONBLOCK", 0) | getattr(os, "O_BINARY", 0)


class LocalFilesystem:
    """Thin wrapper over the ``os`` and ``shutil`` calls the engine needs."""

    def stat(self, path: str) -> os.stat_result:
        """Follows symlinks, so a link to a directory is a valid target."""
        return os.stat(path)

    def lstat(self, path: str) -> os.stat_result:
        return os.lstat(path)

    def listdir(self, path: str) -> list[str]:
        """Return entry names in lexical order."""
        return sorted(os.listdir(path))

    def open_for_write(self, path: str) -> int:
        return os.open(path, _PROBE_FLAGS)

    def close(self, handle: int) -> None:
        os.close(handle)

    def remove_file(self, path: str) -> None:
        os.remove(path)

    def remove_tree(self, path: str) -> None:
        shutil.rmtree(path)
