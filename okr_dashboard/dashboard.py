"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end (app.py). Each
function returns plain dicts or DataFrames suitable for rendering cards,
charts, tables and CSV exports.
"""

import logging

import pandas as pd

from .kpis import (
    achievement_status,
    cumulative,
    get_executive_summary,
    linear_regression,
    moving_average,
    pearson_correlation,
    predict_year_end,
    trend_direction,
)
from .models import Dataset, MonthlyMetric, QuarterlyMetric

logger = logging.getLogger(__name__)

MONTHLY_COLUMNS = [
    "month", "target", "achievement", "percentage", "variance", "status",
    "cumulative_target", "cumulative_achievement",
]
QUARTERLY_COLUMNS = ["quarter", "target", "achievement", "percentage", "status"]


def get_overview(dataset: Dataset) -> dict:
    """Single entry point the app calls to populate the overview cards."""
    return get_executive_summary(dataset)


def get_monthly_frame(records: tuple[MonthlyMetric, ...] | None) -> pd.DataFrame:
    """Monthly series with variance, status and cumulative columns.

    Returns
    -------
    DataFrame with columns:
        month, target, achievement, percentage, variance, status,
        cumulative_target, cumulative_achievement
    """
    if not records:
        return pd.DataFrame(columns=MONTHLY_COLUMNS)

    df = pd.DataFrame([
        {
            "month": r.month,
            "target": r.target,
            "achievement": r.achievement,
            "percentage": r.percentage,
        }
        for r in records
    ])
    for col in ("target", "achievement", "percentage"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df["variance"] = df["achievement"] - df["target"]
    df["status"] = [achievement_status(p) for p in df["percentage"]]
    df["cumulative_target"] = cumulative([r.target for r in records])
    df["cumulative_achievement"] = cumulative([r.achievement for r in records])
    return df[MONTHLY_COLUMNS]


def get_quarterly_frame(records: tuple[QuarterlyMetric, ...] | None) -> pd.DataFrame:
    """Quarterly series with a status column."""
    if not records:
        return pd.DataFrame(columns=QUARTERLY_COLUMNS)

    df = pd.DataFrame([
        {
            "quarter": r.quarter,
            "target": r.target,
            "achievement": r.achievement,
            "percentage": r.percentage,
        }
        for r in records
    ])
    df["status"] = [achievement_status(p) for p in df["percentage"]]
    return df[QUARTERLY_COLUMNS]


def get_owner_frame(dataset: Dataset) -> pd.DataFrame:
    """Account-owner table, in sheet order."""
    columns = ["name", "arr_achievement", "billing", "collection"]
    if not dataset.account_owner_performance:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([
        {
            "name": r.name,
            "arr_achievement": r.arr_achievement,
            "billing": r.billing,
            "collection": r.collection,
        }
        for r in dataset.account_owner_performance
    ])


def get_weightage_frame(dataset: Dataset) -> pd.DataFrame:
    columns = ["key", "label", "weight"]
    if not dataset.weightages:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([
        {"key": key, "label": w.label, "weight": w.weight}
        for key, w in dataset.weight_map.items()
    ])


def get_trend_analysis(dataset: Dataset) -> dict:
    """Billing/collection trend statistics for the analysis page.

    Returns
    -------
    Dict with per-series slope, intercept, direction, moving average,
    best/worst month and year-end projection, plus the billing vs
    collection correlation.
    """
    analysis: dict = {}
    reported: dict[str, list[MonthlyMetric]] = {}

    for name, records in (
        ("billing", dataset.monthly_billing),
        ("collection", dataset.monthly_collection),
    ):
        records = records or ()
        achieved = [r for r in records if r.achievement is not None]
        reported[name] = achieved
        values = [r.achievement for r in achieved]

        slope, intercept = linear_regression(values)
        rated = [r for r in achieved if r.percentage is not None]
        best = max(rated, key=lambda r: r.percentage, default=None)
        worst = min(rated, key=lambda r: r.percentage, default=None)

        analysis[name] = {
            "slope": slope,
            "intercept": intercept,
            "direction": trend_direction(slope),
            "moving_average": moving_average(values),
            "average_rate": (
                sum(r.percentage for r in rated) / len(rated) if rated else None
            ),
            "best_month": best.month if best else None,
            "worst_month": worst.month if worst else None,
            "predicted_year_end": predict_year_end(list(records)),
        }

    billing_values = [r.achievement for r in reported["billing"]]
    collection_values = [r.achievement for r in reported["collection"]][: len(billing_values)]
    analysis["correlation"] = pearson_correlation(billing_values, collection_values)
    return analysis
