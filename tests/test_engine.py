"""Tests for the concurrent cleaning engine."""

from __future__ import annotations

import os
import sys
import threading

import pytest

from tempsweep.config import Platform
from tempsweep.core.engine import MAX_WORKERS, MIN_WORKERS, Cleaner, worker_count
from tempsweep.core.policy import DeletionPolicy
from tempsweep.core.walker import DirectoryWalker
from tempsweep.models.cleanup_result import COUNTER_FIELDS, CleanupResult


def _cleaner(**kwargs) -> Cleaner:
    kwargs.setdefault("policy", DeletionPolicy(platform=Platform.LINUX))
    return Cleaner(**kwargs)


class TestWorkerCount:
    @pytest.mark.parametrize(
        "cpus, expected",
        [(1, MIN_WORKERS), (2, 2), (4, 4), (8, 8), (64, MAX_WORKERS)],
    )
    def test_clamped(self, cpus, expected):
        assert worker_count(cpus) == expected

    def test_unknown_cpu_count(self, monkeypatch):
        monkeypatch.setattr("tempsweep.core.engine.os.cpu_count", lambda: None)
        assert worker_count() == MIN_WORKERS

    def test_default_from_host(self):
        assert MIN_WORKERS <= Cleaner().max_workers <= MAX_WORKERS


class TestCleanDirectories:
    def test_empty_target_list(self):
        result = _cleaner().clean_directories([])
        assert all(value == 0 for value in result.counters().values())
        assert result.error_messages == []
        assert result.processing_time >= 0

    def test_single_directory(self, sample_tree):
        result = _cleaner().clean_directories([str(sample_tree)])
        assert result.deleted_files == 2
        assert result.deleted_dirs == 1
        assert result.processing_time >= 0

    def test_missing_directory(self, tmp_path):
        result = _cleaner().clean_directories([str(tmp_path / "missing")])
        assert result.skipped_dirs == 1
        assert sum(result.counters().values()) == 1
        assert result.error_messages == []

    def test_every_target_processed_once(self, tmp_path, fill_dir, events):
        targets = []
        for i in range(12):
            d = tmp_path / f"dir{i}"
            fill_dir(d, 2)
            targets.append(str(d))

        result = _cleaner(events=events, max_workers=4).clean_directories(targets)

        assert sorted(events.processed) == sorted(targets)
        assert result.deleted_files == 24
        for target in targets:
            assert os.listdir(target) == []

    def test_matches_sequential_totals(self, tmp_path, fill_dir):
        targets = []
        for i in range(6):
            d = tmp_path / f"dir{i}"
            fill_dir(d, 5, size=i + 1)
            fill_dir(d / "nested", 3, size=2)
            (d / ".keep").write_text("x")
            targets.append(str(d))
        targets.append(str(tmp_path / "absent"))

        walker = DirectoryWalker(policy=DeletionPolicy(platform=Platform.LINUX), dry_run=True)
        expected = CleanupResult()
        for target in targets:
            partial = walker.clean(target)
            for name in COUNTER_FIELDS:
                setattr(expected, name, getattr(expected, name) + getattr(partial, name))

        result = _cleaner(dry_run=True, max_workers=4).clean_directories(targets)
        assert result.counters() == expected.counters()

    def test_duplicate_targets_counted_twice(self, tmp_path, fill_dir):
        d = tmp_path / "dup"
        fill_dir(d, 3)
        result = _cleaner(dry_run=True).clean_directories([str(d), str(d)])
        assert result.total_files == 6
        assert result.deleted_files == 6

    def test_dry_run_leaves_files(self, sample_tree):
        before = sorted(p.name for p in sample_tree.rglob("*"))
        result = _cleaner(dry_run=True).clean_directories([str(sample_tree)])
        assert sorted(p.name for p in sample_tree.rglob("*")) == before
        assert result.deleted_files == 2

    def test_errors_collected_from_all_workers(self, tmp_path, fill_dir, flaky_fs):
        targets = []
        locked = set()
        for i in range(4):
            d = tmp_path / f"dir{i}"
            fill_dir(d, 1)
            (d / "locked").mkdir()
            locked.add(str(d / "locked"))
            targets.append(str(d))

        fs = flaky_fs(unreadable=locked)
        cleaner = _cleaner(fs=fs, policy=DeletionPolicy(fs=fs, platform=Platform.LINUX), max_workers=3)
        result = cleaner.clean_directories(targets)

        assert result.failed_dirs == 4
        assert len(result.error_messages) == 4
        assert sorted(m.partition(": [Errno")[0] for m in result.error_messages) == sorted(
            f"Walk error for {p}" for p in locked
        )

    def test_worker_crash_does_not_drop_target(self, tmp_path, fill_dir, monkeypatch):
        good = tmp_path / "good"
        fill_dir(good, 2)
        cleaner = _cleaner(max_workers=2)
        real_clean = cleaner.walker.clean

        def clean(path):
            if path.endswith("bad"):
                raise RuntimeError("walker blew up")
            return real_clean(path)

        monkeypatch.setattr(cleaner.walker, "clean", clean)
        result = cleaner.clean_directories([str(good), str(tmp_path / "bad")])

        assert result.deleted_files == 2
        assert result.error_messages == [f"Worker error for {tmp_path / 'bad'}: walker blew up"]

    def test_runs_on_multiple_threads(self, tmp_path, fill_dir, monkeypatch):
        targets = []
        for i in range(8):
            d = tmp_path / f"dir{i}"
            fill_dir(d, 1)
            targets.append(str(d))

        seen: set[str] = set()
        barrier = threading.Barrier(2, timeout=5)
        cleaner = _cleaner(dry_run=True, max_workers=2)
        real_clean = cleaner.walker.clean

        def clean(path):
            seen.add(threading.current_thread().name)
            if path.endswith("dir0") or path.endswith("dir1"):
                barrier.wait()
            return real_clean(path)

        monkeypatch.setattr(cleaner.walker, "clean", clean)
        result = cleaner.clean_directories(targets)

        assert len(seen) == 2
        assert result.deleted_files == 8

    def test_deep_tree_is_cleaned_in_full(self, tmp_path):
        root = tmp_path / "t"
        root.mkdir()
        (root / "sibling.tmp").write_text("s")
        current = root
        for _ in range(sys.getrecursionlimit() + 100):
            current = current / "a"
            current.mkdir()
        (current / "leaf.tmp").write_text("leaf")

        result = _cleaner(max_workers=2).clean_directories([str(root)])

        assert result.error_messages == []
        assert result.deleted_files == 2
        assert list(root.iterdir()) == []

    def test_run_events_reported(self, sample_tree, events):
        cleaner = _cleaner(events=events, dry_run=True, max_workers=3)
        result = cleaner.clean_directories([str(sample_tree)])

        assert events.runs == [([str(sample_tree)], 3, True)]
        assert events.finished == [result]
