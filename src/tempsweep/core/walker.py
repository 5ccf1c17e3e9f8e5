"""Per-directory traversal, classification and deletion."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from typing import Iterator

from tempsweep.core.events import CleanupEvents, NullEvents, notify
from tempsweep.core.filesystem import LocalFilesystem
from tempsweep.core.policy import DeletionPolicy
from tempsweep.models.cleanup_result import CleanupResult
from tempsweep.models.entry import EntryInfo

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _Frame:
    """One open directory on the walk stack."""

    path: str
    names: Iterator[str]
    info: EntryInfo | None = None
    cleared: bool = True


class DirectoryWalker:
    """Cleans the contents of one target directory.

    Every descendant is visited once, children before their parent, so a
    directory is only removed after its contents were handled. A directory
    still holding a kept or failed entry is itself kept; removing it would
    take protected entries with it. The target directory itself is never a
    deletion candidate.

    A walker owns no shared state: each :meth:`clean` call builds and returns
    a fresh partial result, so one walker can serve many worker threads.
    """

    def __init__(
        self,
        policy: DeletionPolicy | None = None,
        events: CleanupEvents | None = None,
        fs: LocalFilesystem | None = None,
        dry_run: bool = False,
    ) -> None:
        self.fs = fs or (policy.fs if policy else LocalFilesystem())
        self.policy = policy or DeletionPolicy(self.fs)
        self.events = events or NullEvents()
        self.dry_run = dry_run

    def clean(self, dir_path: str) -> CleanupResult:
        """Clean everything below *dir_path* and return the partial result."""
        result = CleanupResult()

        try:
            st = self.fs.stat(dir_path)
        except FileNotFoundError:
            self._notify("skipped", dir_path, "directory does not exist")
            result.skipped_dirs += 1
            return result
        except OSError as e:
            self._root_error(dir_path, e, result)
            return result

        if not stat.S_ISDIR(st.st_mode):
            self._notify("skipped", dir_path, "not a directory")
            result.skipped_dirs += 1
            return result

        self._notify("processing", dir_path)

        try:
            names = self.fs.listdir(dir_path)
        except OSError as e:
            self._root_error(dir_path, e, result)
            return result

        self._walk(dir_path, names, result)
        return result

    def _walk(self, root: str, names: list[str], result: CleanupResult) -> None:
        """Post-order walk below *root* driven by an explicit stack."""
        stack = [_Frame(root, iter(names))]
        while stack:
            frame = stack[-1]
            name = next(frame.names, None)

            if name is None:
                stack.pop()
                if frame.info is None:
                    continue  # target directory
                if not frame.cleared:
                    self._skip(frame.info, "directory not empty", result)
                    gone = False
                else:
                    gone = self._classify(frame.info, result)
                if not gone:
                    stack[-1].cleared = False
                continue

            path = os.path.join(frame.path, name)
            try:
                info = EntryInfo.from_stat(path, self.fs.lstat(path))
            except OSError as e:
                # Vanished or unreadable entry of unknown kind.
                self._record_walk_error(path, e, is_dir=False, result=result)
                frame.cleared = False
                continue

            if info.is_dir:
                result.total_dirs += 1
                try:
                    children = self.fs.listdir(path)
                except OSError as e:
                    self._record_walk_error(path, e, is_dir=True, result=result)
                    frame.cleared = False
                    continue
                stack.append(_Frame(path, iter(children), info))
                continue

            result.total_files += 1
            result.total_size += info.size
            if not self._classify(info, result):
                frame.cleared = False

    def _classify(self, info: EntryInfo, result: CleanupResult) -> bool:
        """Apply the policy to one entry. Return True if the entry is gone."""
        reason = self.policy.skip_reason(info.path, info)
        if reason is not None:
            self._skip(info, reason, result)
            return False
        return self._delete(info, result)

    def _delete(self, info: EntryInfo, result: CleanupResult) -> bool:
        if self.dry_run:
            log.info("DRY RUN: would delete %s", info.path)
            self._count_deleted(info, result)
            return True

        try:
            if info.is_dir:
                self.fs.remove_tree(info.path)
            else:
                self.fs.remove_file(info.path)
        except OSError as e:
            log.debug("Delete failed for %s: %s", info.path, e)
            self._notify("failed", info.path, e)
            if info.is_dir:
                result.failed_dirs += 1
            else:
                result.failed_files += 1
            result.error_messages.append(f"Delete error for {info.path}: {e}")
            return False

        self._notify("deleted", info.path, info.size, info.is_dir)
        self._count_deleted(info, result)
        return True

    @staticmethod
    def _count_deleted(info: EntryInfo, result: CleanupResult) -> None:
        if info.is_dir:
            result.deleted_dirs += 1
        else:
            result.deleted_files += 1
            result.deleted_size += info.size

    def _skip(self, info: EntryInfo, reason: str, result: CleanupResult) -> None:
        log.debug("Skipping %s: %s", info.path, reason)
        self._notify("skipped", info.path, reason)
        if info.is_dir:
            result.skipped_dirs += 1
        else:
            result.skipped_files += 1

    def _record_walk_error(self, path: str, error: OSError, *, is_dir: bool, result: CleanupResult) -> None:
        log.debug("Walk error for %s: %s", path, error)
        self._notify("failed", path, error)
        if is_dir:
            result.failed_dirs += 1
        else:
            result.total_files += 1
            result.failed_files += 1
        result.error_messages.append(f"Walk error for {path}: {error}")

    def _root_error(self, dir_path: str, error: OSError, result: CleanupResult) -> None:
        log.debug("Cannot walk %s: %s", dir_path, error)
        self._notify("failed", dir_path, error)
        result.error_messages.append(f"Directory walk error for {dir_path}: {error}")

    def _notify(self, event: str, *args: object) -> None:
        notify(self.events, event, *args)
