"""
KPI computation functions — pure functions with no side effects.

Provides achievement status classification, cumulative series, simple
trend statistics (linear regression, moving average, correlation),
year-end projection and the weighted OKR score. These feed illustrative
trend displays only.
"""

import logging

import numpy as np
import pandas as pd

from .config import STATUS_AMBER_AT, STATUS_GREEN_AT
from .loaders.utils import ratio
from .models import Dataset, MonthlyMetric
from .transforms import quarterly_percentage

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "green": "On Track",
    "amber": "At Risk",
    "red": "Behind",
    "grey": "No Data",
}


def calc_variance(achievement: float | None, target: float) -> tuple[float | None, float | None]:
    """Return (absolute_variance, achievement_ratio).

    Both are None when the achievement is not yet reported; the ratio is
    None when the target is 0.
    """
    if achievement is None:
        return None, None
    absolute = achievement - target
    if target == 0:
        return absolute, None
    return absolute, achievement / target


def achievement_status(percentage: float | None) -> str:
    """Return 'green', 'amber', 'red' or 'grey' for an achievement ratio.

    Logic
    -----
    green  if ratio >= 1.0
    amber  if ratio >= 0.8
    red    otherwise
    grey   when there is no data
    """
    if percentage is None or pd.isna(percentage):
        return "grey"
    if percentage >= STATUS_GREEN_AT:
        return "green"
    if percentage >= STATUS_AMBER_AT:
        return "amber"
    return "red"


def cumulative(values: list[float | None]) -> list[float]:
    """Running total; unreported values add nothing."""
    return pd.Series(values, dtype="float64").fillna(0).cumsum().tolist()


def linear_regression(values: list[float]) -> tuple[float, float]:
    """Least-squares line through (index, value) points.

    Returns (slope, intercept); (0, 0) for no points and a flat line for
    a single point.
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0
    if n == 1:
        return 0.0, float(values[0])
    slope, intercept = np.polyfit(np.arange(n), np.asarray(values, dtype=float), 1)
    return float(slope), float(intercept)


def trend_direction(slope: float) -> str:
    if slope > 0:
        return "Improving"
    if slope < -0.5:
        return "Declining"
    return "Stable"


def moving_average(values: list[float], window: int = 3) -> list[float | None]:
    """Trailing mean over `window` points; None until the window is full."""
    series = pd.Series(values, dtype="float64").rolling(window=window).mean()
    return [None if pd.isna(v) else float(v) for v in series]


def pearson_correlation(x: list[float], y: list[float]) -> float:
    """Pearson r over the common prefix of x and y (0 when undefined)."""
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    xs = np.asarray(x[:n], dtype=float)
    ys = np.asarray(y[:n], dtype=float)
    if xs.std() == 0 or ys.std() == 0:
        return 0.0
    return float(np.corrcoef(xs, ys)[0, 1])


def predict_year_end(records: list[MonthlyMetric], total_months: int = 12) -> float:
    """Project the year-end total at the average reported monthly run rate."""
    achieved = [r.achievement for r in records if r.achievement is not None]
    if not achieved:
        return 0
    total = sum(achieved)
    remaining = total_months - len(achieved)
    return total + (total / len(achieved)) * remaining


def metric_ratios(dataset: Dataset) -> dict[str, float]:
    """Achievement ratio per weightage key, where the dataset can supply one."""
    ratios: dict[str, float] = {}

    for key, metric in dataset.annual_metrics.items():
        ratios[key] = ratio(metric.achievement_till_date, metric.target_fy)
    if dataset.billing_totals is not None:
        ratios["billing"] = dataset.billing_totals.achievement_percentage
    if dataset.collection_totals is not None:
        ratios["collection"] = dataset.collection_totals.achievement_percentage
    if dataset.quarterly_qbrs:
        ratios["qbr"] = quarterly_percentage(dataset.quarterly_qbrs)
    if dataset.quarterly_hero_stories:
        ratios["heroStories"] = quarterly_percentage(dataset.quarterly_hero_stories)
    ratios["pipelineCoverage"] = dataset.pipeline_coverage.coverage

    return ratios


def weighted_score(dataset: Dataset) -> float:
    """Weight-averaged achievement ratio over the Weightages sheet.

    Weights whose metric has no ratio are skipped. The weights are used as
    given, whatever their total.
    """
    if not dataset.weightages:
        return 0
    ratios = metric_ratios(dataset)
    used = [(w.weight, ratios[key]) for key, w in dataset.weight_map.items() if key in ratios]
    total_weight = sum(weight for weight, _ in used)
    if total_weight <= 0:
        return 0
    return sum(weight * r for weight, r in used) / total_weight


def get_executive_summary(dataset: Dataset) -> dict:
    """Return a dict suitable for top-level dashboard cards.

    Returns
    -------
    Dict with structure:
    {
        "annual": {"arr": {"label", "target", "achievement", "percentage", "unit", "status"}, ...},
        "billing": {"target", "achievement", "percentage", "status"},
        "collection": {...},
        "pipeline": {"open_pipeline", "remaining_target", "coverage"},
        "weight_total": 100,
        "weighted_score": 0.71,
    }
    """
    annual = {}
    for key, metric in dataset.annual_metrics.items():
        pct = ratio(metric.achievement_till_date, metric.target_fy)
        annual[key] = {
            "label": metric.label,
            "target": metric.target_fy,
            "achievement": metric.achievement_till_date,
            "percentage": pct,
            "unit": metric.unit,
            "status": achievement_status(pct),
        }

    summary: dict = {"annual": annual}

    for name, totals in (("billing", dataset.billing_totals), ("collection", dataset.collection_totals)):
        if totals is None:
            summary[name] = {"target": None, "achievement": None, "percentage": None, "status": "grey"}
            continue
        summary[name] = {
            "target": totals.total_target,
            "achievement": totals.total_achievement,
            "percentage": totals.achievement_percentage,
            "status": achievement_status(totals.achievement_percentage),
        }

    summary["pipeline"] = {
        "open_pipeline": dataset.pipeline_coverage.open_pipeline,
        "remaining_target": dataset.pipeline_coverage.remaining_target,
        "coverage": dataset.pipeline_coverage.coverage,
    }
    summary["weight_total"] = dataset.weight_total
    summary["weighted_score"] = weighted_score(dataset)
    return summary
