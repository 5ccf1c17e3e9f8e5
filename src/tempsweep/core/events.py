"""Notifications the engine emits for every classified entry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from tempsweep.models.cleanup_result import CleanupResult

log = logging.getLogger(__name__)


class CleanupEvents(Protocol):
    """Receiver for per-entry and per-run outcomes. Calls are fire-and-forget."""

    def run_started(self, targets: Sequence[str], workers: int, dry_run: bool) -> None: ...

    def run_finished(self, result: CleanupResult) -> None: ...

    def deleted(self, path: str, size: int, is_dir: bool) -> None: ...

    def failed(self, path: str, error: BaseException) -> None: ...

    def skipped(self, path: str, reason: str) -> None: ...

    def processing(self, directory: str) -> None: ...


class NullEvents:
    """Event sink that discards everything."""

    def run_started(self, targets: Sequence[str], workers: int, dry_run: bool) -> None:
        pass

    def run_finished(self, result: CleanupResult) -> None:
        pass

    def deleted(self, path: str, size: int, is_dir: bool) -> None:
        pass

    def failed(self, path: str, error: BaseException) -> None:
        pass

    def skipped(self, path: str, reason: str) -> None:
        pass

    def processing(self, directory: str) -> None:
        pass


def notify(events: CleanupEvents, event: str, *args: object) -> None:
    """Forward an event to the sink; sink errors never reach the caller."""
    try:
        getattr(events, event)(*args)
    except Exception:
        log.exception("Event sink failed while reporting '%s'", event)
