"""
Sheet parsers for the OKR input workbook.

Every data sheet shares one layout:
    row 0  free-text title (ignored)
    row 1  blank
    row 2  column headers (informative only, columns are positional)
    row 3+ data

A data row whose first cell is empty is a gap and produces no record.
Parsers never raise on malformed cells; see loaders.utils for the
coercion rules.
"""

import logging
from dataclasses import dataclass

from ..config import (
    ANNUAL_LABEL_MAP,
    ANNUAL_UNIT_MAP,
    DATA_START_ROW,
    PIPELINE_LABEL_FRAGMENT,
    RAG_DATA_START_ROW,
)
from ..models import (
    AnnualMetric,
    MonthlyMetric,
    OwnerPerformanceRecord,
    QuarterlyMetric,
    RagMetric,
    WeightRecord,
)
from .utils import cell, cell_text, coerce_number_or_null, coerce_number_or_zero, ratio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnualKpis:
    """Parsed "Annual KPIs" sheet: keyed metrics plus the open-pipeline scalar."""

    metrics: dict[str, AnnualMetric]
    open_pipeline: float


def _data_rows(grid: list[list], start: int = DATA_START_ROW):
    """Yield data rows, skipping gap rows with an empty first cell."""
    for row in grid[start:]:
        first = cell(row, 0)
        if not first or not cell_text(first):
            continue
        yield row


def _quarter(label: str, target_val, achievement_val) -> QuarterlyMetric:
    target = coerce_number_or_zero(target_val)
    achievement = coerce_number_or_zero(achievement_val)
    return QuarterlyMetric(
        quarter=label,
        target=target,
        achievement=achievement,
        percentage=ratio(achievement, target),
    )


def parse_monthly_sheet(grid: list[list]) -> list[MonthlyMetric]:
    """Parse a Month | Target | Achievement sheet.

    A blank achievement stays None ("not yet reported"); percentage is
    only set when the achievement is known and the target is positive.
    """
    records = []
    for row in _data_rows(grid):
        target = coerce_number_or_zero(cell(row, 1))
        achievement = coerce_number_or_null(cell(row, 2))
        percentage = achievement / target if achievement is not None and target > 0 else None
        records.append(MonthlyMetric(
            month=cell_text(row[0]),
            target=target,
            achievement=achievement,
            percentage=percentage,
        ))
    return records


def parse_quarterly_sheet(grid: list[list]) -> list[QuarterlyMetric]:
    """Parse a Quarter | Target | Achievement sheet. Blanks count as 0."""
    return [
        _quarter(cell_text(row[0]), cell(row, 1), cell(row, 2))
        for row in _data_rows(grid)
    ]


def parse_quarterly_pair(
    grid: list[list],
) -> tuple[list[QuarterlyMetric], list[QuarterlyMetric]]:
    """Parse the "Quarterly ARR & Service Rev" sheet.

    Columns
    -------
    0 quarter | 1 ARR target | 2 ARR achievement
              | 3 Service Rev target | 4 Service Rev achievement

    Returns
    -------
    (arr_series, service_rev_series), index-aligned.
    """
    arr, service_rev = [], []
    for row in _data_rows(grid):
        label = cell_text(row[0])
        arr.append(_quarter(label, cell(row, 1), cell(row, 2)))
        service_rev.append(_quarter(label, cell(row, 3), cell(row, 4)))
    return arr, service_rev


def parse_annual_kpis(grid: list[list]) -> AnnualKpis:
    """Parse the "Annual KPIs" sheet.

    Rows are matched on their exact label via config.ANNUAL_LABEL_MAP;
    unknown labels are ignored. Any label containing "pipeline"
    (case-insensitive) sets the open-pipeline scalar, read from the
    achievement column and falling back to the target column.
    """
    metrics: dict[str, AnnualMetric] = {}
    open_pipeline = 0

    for row in _data_rows(grid):
        label = cell_text(row[0])
        key = ANNUAL_LABEL_MAP.get(label)
        if key:
            metrics[key] = AnnualMetric(
                label=label,
                target_fy=coerce_number_or_zero(cell(row, 1)),
                achievement_till_date=coerce_number_or_zero(cell(row, 2)),
                unit=ANNUAL_UNIT_MAP.get(key, ""),
            )
        if PIPELINE_LABEL_FRAGMENT in label.lower():
            open_pipeline = (
                coerce_number_or_zero(cell(row, 2)) or coerce_number_or_zero(cell(row, 1))
            )

    return AnnualKpis(metrics=metrics, open_pipeline=open_pipeline)


def parse_account_owners(grid: list[list]) -> list[OwnerPerformanceRecord]:
    """Parse Account Owner | ARR Achievement | Billing | Collection rows, in sheet order."""
    return [
        OwnerPerformanceRecord(
            name=cell_text(row[0]),
            arr_achievement=coerce_number_or_zero(cell(row, 1)),
            billing=coerce_number_or_zero(cell(row, 2)),
            collection=coerce_number_or_zero(cell(row, 3)),
        )
        for row in _data_rows(grid)
    ]


def parse_weightages(grid: list[list]) -> list[WeightRecord]:
    """Parse Metric Key | Metric Label | Weight rows.

    The label falls back to the key. Weights are not normalised.
    """
    records = []
    for row in _data_rows(grid):
        key = cell_text(row[0])
        label = cell_text(cell(row, 1)) or key
        records.append(WeightRecord(
            key=key,
            label=label,
            weight=coerce_number_or_zero(cell(row, 2)),
        ))
    return records


def parse_rag_metrics(grid: list[list]) -> list[RagMetric]:
    """Parse the "RAG Metrics" sheet (Key | Label | Value, headers in row 0)."""
    records = []
    for row in _data_rows(grid, start=RAG_DATA_START_ROW):
        key = cell_text(row[0])
        records.append(RagMetric(
            key=key,
            label=cell_text(cell(row, 1)) or key,
            value=cell_text(cell(row, 2)).lower(),
        ))
    return records
