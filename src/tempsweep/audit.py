"""Audit trail of every entry the cleaner touches."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Sequence

from tempsweep import __version__
from tempsweep.models.cleanup_result import CleanupResult

log = logging.getLogger(__name__)

AUDIT_LOGGER = "tempsweep.audit.trail"
_FORMAT = "%(asctime)s level=%(levelname)s msg=%(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class AuditLog:
    """Writes one ``key=value`` line per cleanup event to a log file.

    Besides per-entry outcomes the trail records the run itself: the target
    list, worker count and mode at the start and the final counters at the
    end, so an uploaded log stands on its own.

    The file is truncated on open. When it cannot be created the trail goes
    to stderr instead, so a run never fails because of its audit log.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._logger = logging.getLogger(AUDIT_LOGGER)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler = self._open_handler()
        self._logger.addHandler(self._handler)
        self._logger.info('"Temp sweep started" version=%s', __version__)

    @property
    def to_file(self) -> bool:
        return isinstance(self._handler, logging.FileHandler)

    def _open_handler(self) -> logging.Handler:
        handler: logging.Handler
        try:
            handler = logging.FileHandler(self.path, mode="w", encoding="utf-8")
        except OSError as e:
            log.warning("Failed to create log file %s: %s", self.path, e)
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        return handler

    def run_started(self, targets: Sequence[str], workers: int, dry_run: bool) -> None:
        self._logger.info('"Found directories to clean" count=%d', len(targets))
        for target in targets:
            self._logger.info('"Target directory" directory="%s"', target)
        self._logger.info(
            '"Starting cleanup" directories=%d workers=%d dry_run=%s',
            len(targets), workers, str(dry_run).lower(),
        )

    def run_finished(self, result: CleanupResult) -> None:
        counters = " ".join(f"{name}={value}" for name, value in result.counters().items())
        self._logger.info(
            '"Cleanup completed" duration=%.2fs %s errors=%d',
            result.processing_time, counters, len(result.error_messages),
        )

    def deleted(self, path: str, size: int, is_dir: bool) -> None:
        kind = "directory" if is_dir else "file"
        self._logger.info('Deleted path="%s" size=%d type=%s', path, size, kind)

    def failed(self, path: str, error: BaseException) -> None:
        self._logger.error('"Failed to delete" path="%s" error="%s"', path, error)

    def skipped(self, path: str, reason: str) -> None:
        self._logger.warning('Skipped path="%s" reason="%s"', path, reason)

    def processing(self, directory: str) -> None:
        self._logger.info('"Processing directory" directory="%s"', directory)

    def close(self) -> None:
        """Write the session end marker and release the file."""
        if self._handler not in self._logger.handlers:
            return
        self._logger.info('"Temp sweep session ended"')
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def __enter__(self) -> AuditLog:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
