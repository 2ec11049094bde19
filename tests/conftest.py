"""Shared fixtures: in-memory grids and workbooks written to tmp_path."""

import re
import zipfile

import openpyxl
import pytest

from okr_dashboard.template import write_template


def sheet_grid(headers, rows, title="Title"):
    """Row grid in the title / blank / headers / data layout."""
    return [[title], [], list(headers)] + [list(r) for r in rows]


def write_workbook(path, sheets):
    """Write {sheet name: (headers, rows)} in the input workbook layout."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, (headers, rows) in sheets.items():
        ws = wb.create_sheet(name)
        ws.append([name])
        ws.append([])
        ws.append(list(headers))
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return path


def cache_formula_result(path, part, formula, value):
    """Store a calculated result next to a formula, the way Excel saves it.

    openpyxl writes formulas without results; spreadsheet editors keep the
    last calculated value in the same <c> element.
    """
    with zipfile.ZipFile(path) as zin:
        items = [(info, zin.read(info)) for info in zin.infolist()]

    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zout:
        for info, data in items:
            if info.filename == part:
                text, count = re.subn(
                    rf"<f>{re.escape(formula)}</f>(<v\s*/>|<v></v>)?",
                    f"<f>{formula}</f><v>{value}</v>",
                    data.decode("utf-8"),
                )
                assert count == 1
                data = text.encode("utf-8")
            zout.writestr(info, data)
    return path


@pytest.fixture
def sample_workbook(tmp_path):
    """KAM_Dashboard_FY26.xlsx with the sample figures."""
    return write_template(tmp_path, "KAM", "FY26")


@pytest.fixture
def formula_workbook(tmp_path):
    """Monthly Billing where May's target is =B4 with a stored result of 25."""
    path = write_workbook(tmp_path / "KAM_Dashboard_FY26.xlsx", {
        "Monthly Billing": (
            ["Month", "Target INR Cr", "Achievement INR Cr"],
            [["Apr'26", 25, 20], ["May'26", "=B4", 10]],
        ),
    })
    return cache_formula_result(path, "xl/worksheets/sheet1.xml", "B4", 25)
