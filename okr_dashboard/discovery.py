"""
Discovery of {Function}_Dashboard_FY{NN}.xlsx input files.
"""

import logging
from pathlib import Path

from .config import FALLBACK_FILE, FALLBACK_FUNCTION, FALLBACK_FY, FILE_PATTERN
from .models import DatasetKey

logger = logging.getLogger(__name__)


def parse_dataset_key(path: str | Path) -> DatasetKey | None:
    """Derive (function, FY) from a file name, or None if it does not match.

    "sales_dashboard_fy27.xlsx" -> DatasetKey("SALES", "FY27")
    """
    name = Path(path).name
    match = FILE_PATTERN.match(name)
    if match:
        return DatasetKey(match.group(1).upper(), f"FY{match.group(2)}")
    if name.lower() == FALLBACK_FILE.lower():
        return DatasetKey(FALLBACK_FUNCTION, FALLBACK_FY)
    return None


def discover_files(data_dir: str | Path) -> dict[DatasetKey, Path]:
    """Map every input workbook in data_dir to its dataset key.

    The legacy fallback file is only used when no patterned file exists.
    """
    data_dir = Path(data_dir)
    files: dict[DatasetKey, Path] = {}

    if not data_dir.is_dir():
        logger.warning("Data directory not found: %s", data_dir)
        return files

    for path in sorted(data_dir.iterdir()):
        if path.is_file() and FILE_PATTERN.match(path.name):
            files[parse_dataset_key(path)] = path

    if not files:
        fallback = data_dir / FALLBACK_FILE
        if fallback.is_file():
            files[DatasetKey(FALLBACK_FUNCTION, FALLBACK_FY)] = fallback

    return files
