"""Shared utility functions."""

from __future__ import annotations

import os
from pathlib import Path

_UNIT_PREFIXES = "KMGTPE"


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def format_size(size_bytes: int) -> str:
    """Convert a byte count to a human-readable string using 1024-based units.

    >>> format_size(1023)
    '1023 B'
    >>> format_size(1536)
    '1.5 KB'
    """
    if size_bytes < 0:
        return f"-{format_size(-size_bytes)}"
    if size_bytes < 1024:
        return f"{size_bytes} B"

    divisor = 1024
    exponent = 0
    scaled = size_bytes // 1024
    while scaled >= 1024 and exponent < len(_UNIT_PREFIXES) - 1:
        divisor *= 1024
        exponent += 1
        scaled //= 1024
    return f"{size_bytes / divisor:.1f} {_UNIT_PREFIXES[exponent]}B"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
