"""
RAG (red/amber/green) status metrics, kept in a "RAG Metrics" sheet of the
input workbook and edited from the dashboard.

An edit rewrites only the RAG sheet part inside the .xlsx package. Every
other part is copied through byte for byte, so the cached results of
formula cells in the data sheets survive (openpyxl drops them on save).
"""

import logging
import os
import posixpath
import re
import tempfile
import xml.etree.ElementTree as ET
import zipfile
from io import BytesIO
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

from openpyxl.utils import get_column_letter

from .config import RAG_DATA_START_ROW, RAG_DEFAULT_ROWS, RAG_VALUES, SHEET_RAG
from .loaders.sheets import parse_rag_metrics
from .loaders.utils import cell, cell_text
from .loaders.workbook import WorkbookReadError, read_workbook_bytes, read_workbook_grids
from .models import RagMetric

logger = logging.getLogger(__name__)

NS_MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
NS_DOC_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
NS_PKG_REL = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKSHEET_REL_TYPE = NS_DOC_REL + "/worksheet"
WORKSHEET_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"

RAG_HEADERS = ["Key", "Label", "Value"]
RAG_COLUMN_WIDTHS = [20, 40, 10]


def load_rag_metrics(path: str | Path) -> list[RagMetric]:
    """Read the RAG Metrics sheet; empty list when the sheet is absent."""
    grids = read_workbook_grids(path)
    if SHEET_RAG not in grids:
        return []
    return parse_rag_metrics(grids[SHEET_RAG])


# ---------------------------------------------------------------------------
# Package part helpers
# ---------------------------------------------------------------------------
def _rels_part(part: str) -> str:
    folder, name = posixpath.split(part)
    return posixpath.join(folder, "_rels", name + ".rels")


def _resolve(base_part: str, target: str) -> str:
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join(posixpath.dirname(base_part), target))


def _workbook_part(parts: dict[str, bytes]) -> str:
    rels = ET.fromstring(parts["_rels/.rels"])
    for rel in rels.iter(f"{{{NS_PKG_REL}}}Relationship"):
        if rel.get("Type", "").endswith("/officeDocument"):
            return _resolve("", rel.get("Target", ""))
    return "xl/workbook.xml"


def _find_sheet_part(parts: dict[str, bytes], workbook_part: str, sheet_name: str) -> str | None:
    """Package path of a worksheet by its tab name, or None."""
    workbook = ET.fromstring(parts[workbook_part])
    rel_id = None
    for sheet in workbook.iter(f"{{{NS_MAIN}}}sheet"):
        if sheet.get("name") == sheet_name:
            rel_id = sheet.get(f"{{{NS_DOC_REL}}}id")
            break
    if rel_id is None:
        return None

    rels = ET.fromstring(parts[_rels_part(workbook_part)])
    for rel in rels.iter(f"{{{NS_PKG_REL}}}Relationship"):
        if rel.get("Id") == rel_id:
            return _resolve(workbook_part, rel.get("Target", ""))
    return None


def _insert_before_close(xml: bytes, tag: str, element: str) -> bytes:
    """Insert an element string just before the closing tag, keeping its prefix."""
    text = xml.decode("utf-8")
    matches = list(re.finditer(rf"</(\w+:)?{tag}>", text))
    if not matches:
        raise WorkbookReadError(f"Malformed workbook part: no </{tag}>")
    match = matches[-1]
    prefix = match.group(1) or ""
    element = element.replace("<@", f"<{prefix}")
    return (text[:match.start()] + element + text[match.start():]).encode("utf-8")


def _add_sheet_part(parts: dict[str, bytes], workbook_part: str, sheet_name: str) -> str:
    """Register a new worksheet part in the workbook, rels and content types."""
    folder = posixpath.dirname(workbook_part)
    n = 1
    while posixpath.join(folder, f"worksheets/sheet{n}.xml") in parts:
        n += 1
    part = posixpath.join(folder, f"worksheets/sheet{n}.xml")

    rels_part = _rels_part(workbook_part)
    rels = ET.fromstring(parts[rels_part])
    ids = {rel.get("Id") for rel in rels.iter(f"{{{NS_PKG_REL}}}Relationship")}
    i = len(ids) + 1
    while f"rId{i}" in ids:
        i += 1
    rel_id = f"rId{i}"

    workbook = ET.fromstring(parts[workbook_part])
    sheet_ids = [int(s.get("sheetId", 0)) for s in workbook.iter(f"{{{NS_MAIN}}}sheet")]
    sheet_id = max(sheet_ids, default=0) + 1

    parts[workbook_part] = _insert_before_close(
        parts[workbook_part], "sheets",
        f'<@sheet xmlns:r="{NS_DOC_REL}" name={quoteattr(sheet_name)} '
        f'sheetId="{sheet_id}" r:id="{rel_id}"/>',
    )
    parts[rels_part] = _insert_before_close(
        parts[rels_part], "Relationships",
        f'<@Relationship Id="{rel_id}" Type="{WORKSHEET_REL_TYPE}" '
        f'Target="{posixpath.relpath(part, folder or ".")}"/>',
    )
    parts["[Content_Types].xml"] = _insert_before_close(
        parts["[Content_Types].xml"], "Types",
        f'<@Override PartName="/{part}" ContentType="{WORKSHEET_CONTENT_TYPE}"/>',
    )
    return part


def _sheet_xml(rows: list[list[str]]) -> bytes:
    """Minimal worksheet part holding text cells as inline strings."""
    cols = "".join(
        f'<col min="{i}" max="{i}" width="{width}" customWidth="1"/>'
        for i, width in enumerate(RAG_COLUMN_WIDTHS, start=1)
    )
    body = []
    for r, row in enumerate(rows, start=1):
        cells = "".join(
            f'<c r="{get_column_letter(c)}{r}" t="inlineStr"><is><t>{escape(text)}</t></is></c>'
            for c, text in enumerate(row, start=1)
            if text
        )
        body.append(f'<row r="{r}">{cells}</row>')
    xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<worksheet xmlns="{NS_MAIN}"><cols>{cols}</cols>'
        f'<sheetData>{"".join(body)}</sheetData></worksheet>'
    )
    return xml.encode("utf-8")


def _write_package(path: Path, infos: list[zipfile.ZipInfo], parts: dict[str, bytes]) -> None:
    """Write the package next to the original, then swap it into place."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".~", suffix=".xlsx")
    try:
        with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED) as zout:
            written = set()
            for info in infos:
                zout.writestr(info, parts[info.filename])
                written.add(info.filename)
            for name in parts:
                if name not in written:
                    zout.writestr(name, parts[name])
        os.replace(tmp, path)
    except Exception:
        Path(tmp).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------
def update_rag_metric(path: str | Path, key: str, value: str) -> str:
    """Set one RAG metric in the workbook and save it.

    The sheet is created with the default metrics when missing. Only the
    RAG sheet is rewritten; the data sheets are left untouched.

    Raises
    ------
    ValueError : value is not red, amber or green.
    KeyError : no row carries the given key.
    WorkbookReadError : the file is not a readable .xlsx package.

    Returns
    -------
    The stored (lower-cased) value.
    """
    value = (value or "").strip().lower()
    if value not in RAG_VALUES:
        raise ValueError(f'Invalid value "{value}". Must be: {", ".join(RAG_VALUES)}')

    path = Path(path)
    data = read_workbook_bytes(path)
    grids = read_workbook_grids(data)

    if SHEET_RAG in grids:
        rows = [[cell_text(cell(row, i)) for i in range(3)] for row in grids[SHEET_RAG]]
    else:
        rows = [list(RAG_HEADERS)] + [list(row) for row in RAG_DEFAULT_ROWS]

    for row in rows[RAG_DATA_START_ROW:]:
        if row[0] == key:
            row[2] = value
            break
    else:
        raise KeyError(f'RAG metric key "{key}" not found in sheet')

    try:
        with zipfile.ZipFile(BytesIO(data)) as zin:
            infos = zin.infolist()
            parts = {info.filename: zin.read(info) for info in infos}
        workbook_part = _workbook_part(parts)
        sheet_part = _find_sheet_part(parts, workbook_part, SHEET_RAG)
        if sheet_part is None:
            sheet_part = _add_sheet_part(parts, workbook_part, SHEET_RAG)
            logger.info("Created '%s' sheet in %s", SHEET_RAG, path.name)
    except (zipfile.BadZipFile, KeyError, ET.ParseError) as exc:
        raise WorkbookReadError(f"Cannot update workbook {path}: {exc}") from exc

    parts[sheet_part] = _sheet_xml(rows)
    _write_package(path, infos, parts)

    logger.info("RAG updated: %s %s = %s", path.name, key, value)
    return value
