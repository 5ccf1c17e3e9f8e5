"""Filesystem entry dataclass."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass

# Absolute path of a directory to clean.
DirectoryTarget = str


@dataclass(frozen=True, slots=True)
class EntryInfo:
    """Single file or directory met during traversal.

    Built from ``lstat`` so symbolic links are reported as themselves and
    never followed. Not cached beyond the visit that produced it.
    """

    path: str
    size: int
    is_dir: bool

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> EntryInfo:
        is_dir = stat.S_ISDIR(st.st_mode)
        return cls(path=path, size=0 if is_dir else st.st_size, is_dir=is_dir)
