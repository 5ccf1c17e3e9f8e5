"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

from tempsweep.core.filesystem import LocalFilesystem


class RecordingEvents:
    """Event sink that keeps every notification for later assertions."""

    def __init__(self) -> None:
        self.deleted_paths: list[tuple[str, int, bool]] = []
        self.failed_paths: list[tuple[str, str]] = []
        self.skipped_paths: list[tuple[str, str]] = []
        self.processed: list[str] = []
        self.runs: list[tuple[list[str], int, bool]] = []
        self.finished: list = []

    def run_started(self, targets, workers, dry_run):
        self.runs.append((list(targets), workers, dry_run))

    def run_finished(self, result):
        self.finished.append(result)

    def deleted(self, path, size, is_dir):
        self.deleted_paths.append((path, size, is_dir))

    def failed(self, path, error):
        self.failed_paths.append((path, str(error)))

    def skipped(self, path, reason):
        self.skipped_paths.append((path, reason))

    def processing(self, directory):
        self.processed.append(directory)


class FlakyFilesystem(LocalFilesystem):
    """Real filesystem that raises on selected paths, independent of the user running the tests."""

    def __init__(
        self,
        unreadable: set[str] = frozenset(),
        busy: set[str] = frozenset(),
        unclosable: set[str] = frozenset(),
        undeletable: set[str] = frozenset(),
        unstattable: set[str] = frozenset(),
    ) -> None:
        self.unreadable = {str(p) for p in unreadable}
        self.busy = {str(p) for p in busy}
        self.unclosable = {str(p) for p in unclosable}
        self.undeletable = {str(p) for p in undeletable}
        self.unstattable = {str(p) for p in unstattable}
        self._handles: dict[int, str] = {}

    def stat(self, path):
        if path in self.unstattable:
            raise PermissionError(13, "Permission denied", path)
        return super().stat(path)

    def listdir(self, path):
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", path)
        return super().listdir(path)

    def open_for_write(self, path):
        if path in self.busy:
            raise PermissionError(13, "Resource busy", path)
        handle = super().open_for_write(path)
        self._handles[handle] = path
        return handle

    def close(self, handle):
        path = self._handles.pop(handle)
        super().close(handle)
        if path in self.unclosable:
            raise OSError(5, "Input/output error", path)

    def remove_file(self, path):
        if path in self.undeletable:
            raise PermissionError(13, "Operation not permitted", path)
        super().remove_file(path)

    def remove_tree(self, path):
        if path in self.undeletable:
            raise PermissionError(13, "Operation not permitted", path)
        super().remove_tree(path)


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def sample_tree(tmp_path):
    """Create a small temp directory with deletable and protected entries.

    Layout::

        target/
            a.txt           5 bytes
            .hidden         3 bytes
            empty/
            sub/
                b.txt       7 bytes
                .keep       0 bytes
    """
    root = tmp_path / "target"
    root.mkdir()
    (root / "a.txt").write_bytes(b"a" * 5)
    (root / ".hidden").write_bytes(b"h" * 3)
    (root / "empty").mkdir()
    sub = root / "sub"
    sub.mkdir()
    (sub / "b.txt").write_bytes(b"b" * 7)
    (sub / ".keep").write_bytes(b"")
    return root


def make_files(directory: os.PathLike, count: int, size: int = 10) -> None:
    """Fill *directory* with *count* plain files of *size* bytes."""
    os.makedirs(directory, exist_ok=True)
    for i in range(count):
        with open(os.path.join(directory, f"file_{i}.tmp"), "wb") as f:
            f.write(b"x" * size)


@pytest.fixture
def flaky_fs():
    """Factory for a :class:`FlakyFilesystem`."""
    return FlakyFilesystem


@pytest.fixture
def fill_dir():
    return make_files
