"""Tests for the polling file watcher."""

import os

from okr_dashboard.models import DatasetKey
from okr_dashboard.store import DatasetStore
from okr_dashboard.template import write_template
from okr_dashboard.watcher import ADDED, CHANGED, REMOVED, FileWatcher

KEY = DatasetKey("KAM", "FY26")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def bump_mtime(path, seconds=10):
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


class TestFileWatcher:
    def test_prime_suppresses_existing(self, sample_workbook, tmp_path):
        watcher = FileWatcher(tmp_path, debounce=0)
        watcher.prime()
        assert watcher.poll() == []

    def test_added(self, tmp_path):
        watcher = FileWatcher(tmp_path, debounce=0)
        watcher.prime()
        path = write_template(tmp_path, "KAM", "FY26")
        events = watcher.poll()
        assert [(e.kind, e.key, e.path) for e in events] == [(ADDED, KEY, path)]

    def test_changed(self, sample_workbook, tmp_path):
        watcher = FileWatcher(tmp_path, debounce=0)
        watcher.prime()
        bump_mtime(sample_workbook)
        events = watcher.poll()
        assert [(e.kind, e.key) for e in events] == [(CHANGED, KEY)]
        assert watcher.poll() == []

    def test_removed(self, sample_workbook, tmp_path):
        watcher = FileWatcher(tmp_path, debounce=0)
        watcher.prime()
        sample_workbook.unlink()
        events = watcher.poll()
        assert [(e.kind, e.key) for e in events] == [(REMOVED, KEY)]

    def test_debounce_waits_for_steady_file(self, tmp_path):
        clock = FakeClock()
        watcher = FileWatcher(tmp_path, debounce=1.5, clock=clock)
        watcher.prime()

        path = write_template(tmp_path, "KAM", "FY26")
        assert watcher.poll() == []

        clock.now = 1.0
        bump_mtime(path)
        assert watcher.poll() == []

        clock.now = 2.0
        assert watcher.poll() == []

        clock.now = 2.5
        assert [e.kind for e in watcher.poll()] == [ADDED]

    def test_apply_events(self, tmp_path):
        store = DatasetStore()
        watcher = FileWatcher(tmp_path, debounce=0)
        watcher.prime()

        path = write_template(tmp_path, "KAM", "FY26")
        (event,) = watcher.poll()
        assert watcher.apply(event, store, retries=0) is True
        assert KEY in store

        path.unlink()
        (event,) = watcher.poll()
        assert watcher.apply(event, store) is True
        assert KEY not in store
