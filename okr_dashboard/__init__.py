"""
OKR Dashboard — Business-Metrics Oversight Backend

Analytics backend that turns the per-function OKR input workbooks
({Function}_Dashboard_FY{NN}.xlsx) into dashboard-ready datasets and
serves them over HTTP/WebSocket.

Data flow:
    workbook bytes -> loaders.workbook (cell grids) -> loaders.sheets
    (typed records) -> transforms.build_dataset (totals, derived ARR,
    pipeline coverage) -> store.DatasetStore -> server / app.py

To add a new sheet:
    Add its name to config.SHEET_NAMES, write a parser in loaders.sheets
    following the title/blank/header/data row layout, then wire it into
    transforms.build_dataset and models.Dataset.to_dict.

To add a new annual KPI:
    Add its exact label to config.ANNUAL_LABEL_MAP and its unit to
    config.ANNUAL_UNIT_MAP. Unknown labels are ignored, never rejected.
"""

__version__ = "1.0.0"
