"""
Polling watcher for the input workbooks.

Editors often write a file in several steps, so a change is only
reported once the file's (mtime, size) signature has held steady for the
debounce window. New files matching the naming pattern are picked up,
deleted files are reported as removed.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config import WATCH_DEBOUNCE_SECONDS
from .discovery import discover_files
from .ingest import refresh
from .models import DatasetKey
from .store import DatasetStore

logger = logging.getLogger(__name__)

ADDED = "added"
CHANGED = "changed"
REMOVED = "removed"


@dataclass(frozen=True)
class WatchEvent:
    kind: str
    key: DatasetKey
    path: Path


def _signature(path: Path) -> tuple[int, int] | None:
    try:
        stat = path.stat()
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size


class FileWatcher:
    """Tracks the input workbooks of one data directory."""

    def __init__(
        self,
        data_dir: str | Path,
        debounce: float = WATCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.data_dir = Path(data_dir)
        self.debounce = debounce
        self._clock = clock
        self._seen: dict[Path, tuple[DatasetKey, tuple[int, int]]] = {}
        self._pending: dict[Path, tuple[tuple[int, int], float]] = {}

    def _scan(self) -> dict[Path, tuple[DatasetKey, tuple[int, int]]]:
        current = {}
        for key, path in discover_files(self.data_dir).items():
            sig = _signature(path)
            if sig is not None:
                current[path] = (key, sig)
        return current

    def prime(self) -> None:
        """Record the current files as already loaded, without events."""
        self._seen = self._scan()
        self._pending.clear()

    def poll(self) -> list[WatchEvent]:
        """Compare the directory against the last snapshot."""
        now = self._clock()
        current = self._scan()
        events = []

        for path in list(self._seen):
            if path not in current:
                key, _ = self._seen.pop(path)
                self._pending.pop(path, None)
                logger.info("File removed: %s", path.name)
                events.append(WatchEvent(REMOVED, key, path))

        for path, (key, sig) in current.items():
            known = self._seen.get(path)
            if known is not None and known[1] == sig:
                self._pending.pop(path, None)
                continue

            pending = self._pending.get(path)
            if pending is None or pending[0] != sig:
                pending = (sig, now)
                self._pending[path] = pending

            if now - pending[1] >= self.debounce:
                kind = CHANGED if known is not None else ADDED
                self._seen[path] = (key, sig)
                del self._pending[path]
                logger.info("Excel file %s: %s (%s/%s)", kind, path.name, key.function, key.fiscal_year)
                events.append(WatchEvent(kind, key, path))

        return events

    def apply(self, event: WatchEvent, store: DatasetStore, **retry_kwargs) -> bool:
        """Carry an event over to the store. Returns True if the store changed."""
        if event.kind == REMOVED:
            return store.invalidate(event.key)
        return refresh(store, event.key, event.path, **retry_kwargs)
