"""
Ingestion boundary: workbook file -> Dataset -> store.

Failures stop here. A file that cannot be read (missing, locked by a
spreadsheet editor mid-save, corrupt) is retried a few times, then
logged; the store keeps serving the last good dataset for that key.
"""

import logging
import time
from pathlib import Path
from typing import Callable

from .config import READ_BACKOFF_SECONDS, READ_RETRIES
from .discovery import discover_files
from .loaders.workbook import WorkbookReadError, read_workbook_bytes, read_workbook_grids
from .models import Dataset, DatasetKey
from .store import DatasetStore
from .transforms import build_dataset

logger = logging.getLogger(__name__)


def load_dataset(path: str | Path) -> Dataset:
    """Parse one workbook into a Dataset. Raises WorkbookReadError."""
    data = read_workbook_bytes(path)
    dataset = build_dataset(read_workbook_grids(data))
    logger.info("Excel parsed successfully: %s", Path(path).name)
    return dataset


def load_dataset_with_retry(
    path: str | Path,
    retries: int = READ_RETRIES,
    backoff: float = READ_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dataset:
    """load_dataset with up to `retries` extra attempts.

    The n-th retry waits n * backoff seconds. A missing file is not
    retried.
    """
    path = Path(path)
    attempt = 0
    while True:
        if not path.exists():
            raise WorkbookReadError(f"Excel file not found at: {path}")
        try:
            return load_dataset(path)
        except WorkbookReadError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(
                "File may be locked (%s), retrying %s (%d/%d)", exc, path.name, attempt, retries
            )
            sleep(attempt * backoff)


def refresh(
    store: DatasetStore,
    key: DatasetKey,
    path: str | Path,
    retries: int = READ_RETRIES,
    backoff: float = READ_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Reload one workbook into the store.

    Returns True when the entry was replaced. On failure the previous
    entry is left untouched and False is returned.
    """
    try:
        dataset = load_dataset_with_retry(path, retries=retries, backoff=backoff, sleep=sleep)
    except WorkbookReadError:
        logger.exception(
            "Could not read %s for %s/%s, keeping last good data",
            Path(path).name, key.function, key.fiscal_year,
        )
        return False

    store.set(key, dataset)
    return True


def load_all(
    store: DatasetStore,
    data_dir: str | Path,
    retries: int = 0,
) -> list[DatasetKey]:
    """Discover and load every input workbook; return the keys loaded."""
    loaded = []
    for key, path in discover_files(data_dir).items():
        if refresh(store, key, path, retries=retries):
            loaded.append(key)

    if not loaded:
        logger.warning("No data files found in %s", data_dir)
    for func in store.functions():
        logger.info("  %s: %s", func, ", ".join(store.years(func)))
    return loaded
