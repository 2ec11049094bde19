"""
Generator for blank or sample input workbooks.

Only the KAM function has a defined sheet structure. FY26 is written with
sample achievements; later years carry the same targets with empty
achievement cells for the team to fill in.
"""

import logging
import re
from pathlib import Path

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .config import (
    PRIMARY_FUNCTION,
    SHEET_ANNUAL,
    SHEET_ARR_SERVICE_REV,
    SHEET_BILLING,
    SHEET_COLLECTION,
    SHEET_HERO_STORIES,
    SHEET_INSTRUCTIONS,
    SHEET_OWNERS,
    SHEET_QBRS,
    SHEET_WEIGHTAGES,
)

logger = logging.getLogger(__name__)

SUPPORTED_FUNCTIONS = [PRIMARY_FUNCTION]

SAMPLE_FY = 26

_MONTH_NAMES = ["Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]

# ---------------------------------------------------------------------------
# Sample data (FY26)
# ---------------------------------------------------------------------------
_BILLING_ACH = [23, 30, 11, 33, 41, 11, 3, 1, 1, 33, None, None]
_COLLECTION_ACH = [32, 12, 32, 12, 22, 22, 23, 44, 30, 32, None, None]
_QBR_ACH = [22, 21, 20, 15]
_HERO_ACH = [22, 21, 20, 15]
_ARR_ACH = [5.2, 6.8, 4.53, 2.5]
_SERVICE_REV_ACH = [30.5, 31.2, 35.8, 23.5]
_OPEN_PIPELINE = 150

# label, target, sample achievement
_ANNUAL_KPIS = [
    ("NDR", 1.20, 1.15),
    ("GDR", 0.95, 0.88),
    ("NPS Score", 30, -11),
]

_OWNERS = [
    ("Ansu Jain", 0.78, 15.68, 15.82),
    ("Apoorv Anand", 2.09, 17.67, 20.75),
    ("Bhavik Solani", 0.70, 48.31, 50.37),
    ("Bhavna Sharma", 0, 22.27, 27.64),
    ("Neel Neogi", -0.85, 2.92, 3.45),
    ("Rajeswari Das", -0.40, 0, 0),
    ("Rushi", 1.20, 13.37, 16.02),
    ("Sachin Gupta", -2.42, 0.36, 1.84),
    ("Samprus Mascaren", -1.60, 13.54, 15.75),
    ("Vishwanath Gurav", 19.53, 65.99, 77.98),
]

_WEIGHTAGES = [
    ("arr", "ARR", 25),
    ("serviceRev", "Service Revenue", 20),
    ("ndr", "NDR", 10),
    ("gdr", "GDR", 10),
    ("nps", "NPS Score", 5),
    ("billing", "On-time Billing", 15),
    ("collection", "On-time Collection", 10),
    ("qbr", "QBRs Held", 3),
    ("heroStories", "Hero Stories", 2),
    ("pipelineCoverage", "Pipeline Coverage", 0),
]


def month_labels(fy: int) -> list[str]:
    """Apr'26 .. Dec'26, Jan'27 .. Mar'27 for FY26."""
    return [
        f"{name}'{fy if i < 9 else fy + 1}"
        for i, name in enumerate(_MONTH_NAMES)
    ]


def quarter_labels(fy: int) -> list[str]:
    return [f"Q{i} FY{fy}" for i in range(1, 5)]


def template_filename(function: str, fy_label: str) -> str:
    return f"{function.upper()}_Dashboard_{fy_label.upper()}.xlsx"


def _parse_fy(fy: str) -> int:
    match = re.fullmatch(r"FY(\d{2})", (fy or "").strip(), re.IGNORECASE)
    if not match:
        raise ValueError(f'Invalid FY format: "{fy}". Expected format: FY26, FY27, etc.')
    return int(match.group(1))


def _add_sheet(wb, name: str, title: str, headers: list[str], rows: list, widths: list[int]):
    """Title row, blank row, header row, then data rows."""
    ws = wb.create_sheet(name)
    ws.append([title])
    ws.append([])
    ws.append(headers)
    for row in rows:
        ws.append(list(row))

    ws["A1"].font = Font(bold=True, size=12)
    for cell in ws[3]:
        cell.font = Font(bold=True)
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
    for i, width in enumerate(widths):
        ws.column_dimensions[get_column_letter(i + 1)].width = width
    return ws


def build_template(function: str = PRIMARY_FUNCTION, fy: str = "FY26") -> openpyxl.Workbook:
    """Build the input workbook for one function and fiscal year.

    Raises
    ------
    ValueError : unsupported function or malformed FY label.
    """
    function = (function or "").upper()
    if function not in SUPPORTED_FUNCTIONS:
        raise ValueError(
            f'Function "{function}" is not yet supported. '
            f"Supported functions: {', '.join(SUPPORTED_FUNCTIONS)}"
        )
    fy_num = _parse_fy(fy)
    fy_label = f"FY{fy_num:02d}"
    sample = fy_num == SAMPLE_FY

    def ach(values):
        return values if sample else [None] * len(values)

    months = month_labels(fy_num)
    quarters = quarter_labels(fy_num)

    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    annual_rows = [(label, target, a if sample else None) for label, target, a in _ANNUAL_KPIS]
    annual_rows.append((None, None, None))
    annual_rows.append(("Open Pipeline as of Date (₹ Cr)", None, _OPEN_PIPELINE if sample else None))
    _add_sheet(
        wb, SHEET_ANNUAL, f"{function} Dashboard - Annual KPIs",
        ["Metric", f"Target {fy_label}", "Achievement Till Date"],
        annual_rows, [22, 18, 22],
    )

    _add_sheet(
        wb, SHEET_BILLING, "On-Time Billing (INR Cr)",
        ["Month", "Target INR Cr", "Achievement INR Cr"],
        zip(months, [25] * 12, ach(_BILLING_ACH)), [12, 18, 22],
    )
    _add_sheet(
        wb, SHEET_COLLECTION, "On-Time Collection (INR Cr)",
        ["Month", "Target INR Cr", "Achievement INR Cr"],
        zip(months, [30] * 12, ach(_COLLECTION_ACH)), [12, 18, 22],
    )
    _add_sheet(
        wb, SHEET_QBRS, "QBRs Held",
        ["Quarter", "Target", "Achievement"],
        zip(quarters, [25] * 4, ach(_QBR_ACH)), [12, 12, 14],
    )
    _add_sheet(
        wb, SHEET_HERO_STORIES, "Hero Stories",
        ["Quarter", "Target", "Achievement"],
        zip(quarters, [25] * 4, ach(_HERO_ACH)), [12, 12, 14],
    )
    _add_sheet(
        wb, SHEET_ARR_SERVICE_REV, "Quarterly ARR & Service Revenue (INR Cr)",
        ["Quarter", "ARR Target", "ARR Achievement", "Service Rev Target", "Service Rev Achievement"],
        zip(quarters, [14.35] * 4, ach(_ARR_ACH), [32.75] * 4, ach(_SERVICE_REV_ACH)),
        [12, 16, 18, 18, 22],
    )

    owner_rows = _OWNERS if sample else [(name, None, None, None) for name, *_ in _OWNERS]
    _add_sheet(
        wb, SHEET_OWNERS, "Account Owner Performance (YTD)",
        ["Account Owner", "ARR Achievement (Cr)", "Billing (Cr)", "Collection (Cr)"],
        owner_rows, [22, 22, 16, 18],
    )
    _add_sheet(
        wb, SHEET_WEIGHTAGES, "OKR Weightages (Must total 100)",
        ["Metric Key", "Metric Label", "Weight (%)"],
        _WEIGHTAGES, [18, 22, 14],
    )

    _add_instructions(wb, function, fy_label)
    return wb


def _add_instructions(wb, function: str, fy_label: str) -> None:
    lines = [
        f"{function} Dashboard - Input File Instructions",
        "",
        f"Generated for: {function} {fy_label}",
        "",
        "HOW TO UPDATE THE DASHBOARD:",
        "1. Edit the data in any of the sheets",
        "2. Save this Excel file",
        "3. The dashboard will automatically refresh within a few seconds",
        "",
        "IMPORTANT RULES:",
        "- Do NOT rename the sheets",
        "- Do NOT change the column headers (Row 3 in each sheet)",
        "- Keep the same row structure (months, quarters, etc.)",
        "- Leave cells EMPTY (not zero) for months with no data yet",
        "- Weightages should total 100",
        "",
        "FILE NAMING:",
        f"  This file: {template_filename(function, fy_label)}",
        "  Pattern: {FUNCTION}_Dashboard_FY{NN}.xlsx",
    ]
    ws = wb.create_sheet(SHEET_INSTRUCTIONS)
    for line in lines:
        ws.append([line])
    ws.column_dimensions["A"].width = 100


def write_template(
    output_dir: str | Path,
    function: str = PRIMARY_FUNCTION,
    fy: str = "FY26",
) -> Path:
    """Build and save a template; returns the written path."""
    wb = build_template(function, fy)
    path = Path(output_dir) / template_filename(function, f"FY{_parse_fy(fy):02d}")
    wb.save(path)
    logger.info("Template Excel file created for %s: %s", function.upper(), path)
    return path
