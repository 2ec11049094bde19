"""
Cell-grid reader: turns workbook bytes into plain row grids.

The whole file is read into memory before openpyxl sees it, so the file
handle is released straight away and a spreadsheet editor can keep saving
while a parse is in flight.
"""

import logging
from io import BytesIO
from pathlib import Path

import openpyxl

logger = logging.getLogger(__name__)


class WorkbookReadError(Exception):
    """The source workbook could not be read or opened."""


def read_workbook_bytes(path: str | Path) -> bytes:
    """Read a workbook file fully into memory."""
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise WorkbookReadError(f"Cannot read workbook {path}: {exc}") from exc


def read_workbook_grids(source: str | Path | bytes) -> dict[str, list[list]]:
    """Load every sheet of a workbook as a list of rows.

    Parameters
    ----------
    source : Filesystem path or the raw .xlsx bytes.

    Returns
    -------
    Dict mapping sheet name to its rows. Blank cells are "" and formula
    cells carry their last cached value.
    """
    data = source if isinstance(source, bytes) else read_workbook_bytes(source)

    try:
        wb = openpyxl.load_workbook(BytesIO(data), data_only=True)
    except Exception as exc:
        raise WorkbookReadError(f"Cannot open workbook: {exc}") from exc

    grids: dict[str, list[list]] = {}
    try:
        for ws in wb.worksheets:
            grids[ws.title] = [
                ["" if val is None else val for val in row]
                for row in ws.iter_rows(values_only=True)
            ]
    finally:
        wb.close()

    logger.debug("Read %d sheets: %s", len(grids), list(grids))
    return grids
