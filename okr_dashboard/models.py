"""
Value records produced by the sheet parsers and the aggregator.

All records are frozen and built fresh on every parse. ``Dataset.to_dict``
renders the camelCase JSON shape the dashboard front end consumes.
"""

from dataclasses import dataclass, field
from typing import NamedTuple


class DatasetKey(NamedTuple):
    """(business function, fiscal year), e.g. ("KAM", "FY26")."""

    function: str
    fiscal_year: str


@dataclass(frozen=True)
class MonthlyMetric:
    month: str
    target: float
    achievement: float | None
    percentage: float | None

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "target": self.target,
            "achievement": self.achievement,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class QuarterlyMetric:
    quarter: str
    target: float
    achievement: float
    percentage: float

    def to_dict(self) -> dict:
        return {
            "quarter": self.quarter,
            "target": self.target,
            "achievement": self.achievement,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class AnnualMetric:
    label: str
    target_fy: float
    achievement_till_date: float
    unit: str

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "targetFY": self.target_fy,
            "achievementTillDate": self.achievement_till_date,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class OwnerPerformanceRecord:
    name: str
    arr_achievement: float
    billing: float
    collection: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "arrAchievement": self.arr_achievement,
            "billing": self.billing,
            "collection": self.collection,
        }


@dataclass(frozen=True)
class WeightRecord:
    key: str
    label: str
    weight: float


@dataclass(frozen=True)
class RagMetric:
    key: str
    label: str
    value: str


@dataclass(frozen=True)
class Totals:
    total_target: float
    total_achievement: float
    achievement_percentage: float

    def to_dict(self) -> dict:
        return {
            "totalTarget": self.total_target,
            "totalAchievement": self.total_achievement,
            "achievementPercentage": self.achievement_percentage,
        }


@dataclass(frozen=True)
class PipelineCoverage:
    open_pipeline: float
    remaining_target: float
    coverage: float

    def to_dict(self) -> dict:
        return {
            "openPipeline": self.open_pipeline,
            "remainingTarget": self.remaining_target,
            "coverage": self.coverage,
        }


@dataclass(frozen=True)
class Dataset:
    """One workbook's worth of parsed records plus derived aggregates.

    A ``None`` sequence means the source sheet was absent; its key is then
    omitted from ``to_dict``. ``annual_metrics`` and ``pipeline_coverage``
    are always present.
    """

    annual_metrics: dict[str, AnnualMetric] = field(default_factory=dict)
    pipeline_coverage: PipelineCoverage = PipelineCoverage(0, 0, 0)
    monthly_billing: tuple[MonthlyMetric, ...] | None = None
    monthly_collection: tuple[MonthlyMetric, ...] | None = None
    quarterly_qbrs: tuple[QuarterlyMetric, ...] | None = None
    quarterly_hero_stories: tuple[QuarterlyMetric, ...] | None = None
    quarterly_arr: tuple[QuarterlyMetric, ...] | None = None
    quarterly_service_rev: tuple[QuarterlyMetric, ...] | None = None
    account_owner_performance: tuple[OwnerPerformanceRecord, ...] | None = None
    weightages: tuple[WeightRecord, ...] | None = None
    rag_metrics: tuple[RagMetric, ...] | None = None
    billing_totals: Totals | None = None
    collection_totals: Totals | None = None

    @property
    def weight_map(self) -> dict[str, WeightRecord]:
        """Weightages by key; a repeated key keeps its last row."""
        return {w.key: w for w in self.weightages or ()}

    @property
    def weight_total(self) -> float:
        """Sum of the served weights. Expected to be 100 but never enforced."""
        return sum(w.weight for w in self.weight_map.values())

    def to_dict(self) -> dict:
        data: dict = {
            "annualMetrics": {k: m.to_dict() for k, m in self.annual_metrics.items()},
        }

        series = [
            ("monthlyBilling", self.monthly_billing),
            ("monthlyCollection", self.monthly_collection),
            ("quarterlyQBRs", self.quarterly_qbrs),
            ("quarterlyHeroStories", self.quarterly_hero_stories),
            ("quarterlyARR", self.quarterly_arr),
            ("quarterlyServiceRev", self.quarterly_service_rev),
            ("accountOwnerPerformance", self.account_owner_performance),
        ]
        for name, records in series:
            if records is not None:
                data[name] = [r.to_dict() for r in records]

        if self.weightages is not None:
            data["weightages"] = {
                key: {"label": w.label, "weight": w.weight} for key, w in self.weight_map.items()
            }
        if self.rag_metrics is not None:
            data["ragMetrics"] = {
                r.key: {"label": r.label, "value": r.value} for r in self.rag_metrics
            }
        if self.billing_totals is not None:
            data["billingTotals"] = self.billing_totals.to_dict()
        if self.collection_totals is not None:
            data["collectionTotals"] = self.collection_totals.to_dict()

        data["pipelineCoverage"] = self.pipeline_coverage.to_dict()
        return data
