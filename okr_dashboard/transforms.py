"""
Aggregator: combine parsed sheets into one Dataset with derived fields.

Pure functions with no side effects. A missing sheet only drops the
fields that depend on it; nothing here raises for data-shape reasons.
"""

import logging

from .config import (
    ARR_LABEL,
    CRORE_UNIT,
    SERVICE_REV_LABEL,
    SHEET_ANNUAL,
    SHEET_ARR_SERVICE_REV,
    SHEET_BILLING,
    SHEET_COLLECTION,
    SHEET_HERO_STORIES,
    SHEET_OWNERS,
    SHEET_QBRS,
    SHEET_RAG,
    SHEET_WEIGHTAGES,
)
from .loaders.sheets import (
    parse_account_owners,
    parse_annual_kpis,
    parse_monthly_sheet,
    parse_quarterly_pair,
    parse_quarterly_sheet,
    parse_rag_metrics,
    parse_weightages,
)
from .loaders.utils import ratio
from .models import (
    AnnualMetric,
    Dataset,
    MonthlyMetric,
    PipelineCoverage,
    QuarterlyMetric,
    Totals,
    WeightRecord,
)

logger = logging.getLogger(__name__)


def compute_totals(records: list[MonthlyMetric]) -> Totals:
    """Sum a monthly series.

    The target sum covers every month; the achievement sum only covers
    months that have been reported.
    """
    total_target = sum(r.target for r in records)
    total_achievement = sum(r.achievement for r in records if r.achievement is not None)
    return Totals(
        total_target=total_target,
        total_achievement=total_achievement,
        achievement_percentage=ratio(total_achievement, total_target),
    )


def derive_annual_metric(label: str, quarters: list[QuarterlyMetric]) -> AnnualMetric | None:
    """Roll a quarterly series up into an annual metric (None if empty)."""
    if not quarters:
        return None
    return AnnualMetric(
        label=label,
        target_fy=sum(q.target for q in quarters),
        achievement_till_date=sum(q.achievement for q in quarters),
        unit=CRORE_UNIT,
    )


def compute_pipeline_coverage(
    open_pipeline: float,
    arr: AnnualMetric | None,
) -> PipelineCoverage:
    """Open pipeline over the ARR still to be achieved.

    Coverage is 0 once the target is met, so the value stays finite.
    """
    if arr is None:
        return PipelineCoverage(open_pipeline=open_pipeline, remaining_target=0, coverage=0)

    remaining = (arr.target_fy or 0) - (arr.achievement_till_date or 0)
    return PipelineCoverage(
        open_pipeline=open_pipeline,
        remaining_target=max(0, remaining),
        coverage=ratio(open_pipeline, remaining),
    )


def weight_total(weights: list[WeightRecord]) -> float:
    """Sum of weights, counting a repeated key once (its last row).

    Reported, never enforced or normalised.
    """
    return sum({w.key: w.weight for w in weights}.values())


def quarterly_percentage(quarters: list[QuarterlyMetric]) -> float:
    """Achievement ratio recomputed from summed values, not averaged per quarter."""
    return ratio(
        sum(q.achievement for q in quarters),
        sum(q.target for q in quarters),
    )


def build_dataset(grids: dict[str, list[list]]) -> Dataset:
    """Run every sheet parser and the aggregations over one workbook.

    Parameters
    ----------
    grids : Sheet name -> row grid, from loaders.read_workbook_grids().

    Returns
    -------
    Dataset. Sheets that are absent leave their fields as None.
    """
    annual_metrics: dict[str, AnnualMetric] = {}
    open_pipeline = 0

    if SHEET_ANNUAL in grids:
        annual = parse_annual_kpis(grids[SHEET_ANNUAL])
        annual_metrics.update(annual.metrics)
        open_pipeline = annual.open_pipeline

    def _series(sheet_name, parser):
        if sheet_name not in grids:
            logger.debug("Sheet '%s' not found, skipping", sheet_name)
            return None
        return tuple(parser(grids[sheet_name]))

    monthly_billing = _series(SHEET_BILLING, parse_monthly_sheet)
    monthly_collection = _series(SHEET_COLLECTION, parse_monthly_sheet)
    quarterly_qbrs = _series(SHEET_QBRS, parse_quarterly_sheet)
    hero_stories = _series(SHEET_HERO_STORIES, parse_quarterly_sheet)
    owners = _series(SHEET_OWNERS, parse_account_owners)
    weightages = _series(SHEET_WEIGHTAGES, parse_weightages)
    rag_metrics = _series(SHEET_RAG, parse_rag_metrics)

    quarterly_arr = quarterly_service_rev = None
    if SHEET_ARR_SERVICE_REV in grids:
        arr_rows, service_rows = parse_quarterly_pair(grids[SHEET_ARR_SERVICE_REV])
        quarterly_arr, quarterly_service_rev = tuple(arr_rows), tuple(service_rows)

        arr = derive_annual_metric(ARR_LABEL, arr_rows)
        if arr is not None:
            annual_metrics["arr"] = arr
        service_rev = derive_annual_metric(SERVICE_REV_LABEL, service_rows)
        if service_rev is not None:
            annual_metrics["serviceRev"] = service_rev

    if weightages is not None:
        keys = [w.key for w in weightages]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            logger.warning("Weightages repeat keys %s, last row wins", duplicates)
        total = weight_total(weightages)
        if total != 100:
            logger.warning("Weightages total %s, expected 100", total)

    return Dataset(
        annual_metrics=annual_metrics,
        pipeline_coverage=compute_pipeline_coverage(open_pipeline, annual_metrics.get("arr")),
        monthly_billing=monthly_billing,
        monthly_collection=monthly_collection,
        quarterly_qbrs=quarterly_qbrs,
        quarterly_hero_stories=hero_stories,
        quarterly_arr=quarterly_arr,
        quarterly_service_rev=quarterly_service_rev,
        account_owner_performance=owners,
        weightages=weightages,
        rag_metrics=rag_metrics,
        billing_totals=compute_totals(monthly_billing) if monthly_billing is not None else None,
        collection_totals=(
            compute_totals(monthly_collection) if monthly_collection is not None else None
        ),
    )
