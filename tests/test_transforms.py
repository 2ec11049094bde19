"""Tests for the aggregator."""

import json
import logging

import pytest

from conftest import sheet_grid
from okr_dashboard.models import AnnualMetric, MonthlyMetric
from okr_dashboard.transforms import (
    build_dataset,
    compute_pipeline_coverage,
    compute_totals,
    derive_annual_metric,
)

BILLING_ACH = [23, 30, 11, 33, 41, 11, 3, 1, 1, 33, "", ""]
MONTHS = ["Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]


def full_grids():
    return {
        "Annual KPIs": sheet_grid(["Metric", "Target", "Achievement"], [
            ["NDR", 1.2, 1.15],
            ["GDR", 0.95, 0.88],
            ["NPS Score", 30, -11],
            ["Random Metric", 10, 5],
            ["", "", ""],
            ["Open Pipeline as of Date (₹ Cr)", "", 150],
        ]),
        "Monthly Billing": sheet_grid(
            ["Month", "Target", "Achievement"],
            [[m, 25, a] for m, a in zip(MONTHS, BILLING_ACH)],
        ),
        "Quarterly ARR & Service Rev": sheet_grid(
            ["Quarter", "ARR T", "ARR A", "SR T", "SR A"],
            [
                ["Q1", 14.35, 5.2, 32.75, 30.5],
                ["Q2", 14.35, 6.8, 32.75, 31.2],
                ["Q3", 14.35, 4.53, 32.75, 35.8],
                ["Q4", 14.35, 2.5, 32.75, 23.5],
            ],
        ),
        "Weightages": sheet_grid(["Key", "Label", "Weight"], [["arr", "ARR", 60], ["billing", "Billing", 40]]),
    }


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

class TestComputeTotals:
    def test_standard_scenario(self):
        dataset = build_dataset(full_grids())
        totals = dataset.billing_totals
        assert totals.total_target == 300
        assert totals.total_achievement == 187
        assert totals.achievement_percentage == pytest.approx(0.6233, abs=1e-4)

    def test_target_counts_unreported_months(self):
        records = [MonthlyMetric("Apr", 10, None, None), MonthlyMetric("May", 10, 4, 0.4)]
        totals = compute_totals(records)
        assert totals.total_target == 20
        assert totals.total_achievement == 4

    def test_empty(self):
        totals = compute_totals([])
        assert totals.total_target == 0
        assert totals.achievement_percentage == 0


# ---------------------------------------------------------------------------
# Derived annual metrics and pipeline coverage
# ---------------------------------------------------------------------------

class TestDerivedMetrics:
    def test_arr_is_sum_of_quarters(self):
        dataset = build_dataset(full_grids())
        arr = dataset.annual_metrics["arr"]
        assert arr.achievement_till_date == pytest.approx(
            sum(q.achievement for q in dataset.quarterly_arr)
        )
        assert arr.target_fy == pytest.approx(57.4)
        assert arr.label == "ARR INR Cr"
        assert arr.unit == "Cr"

    def test_service_rev_is_sum_of_quarters(self):
        dataset = build_dataset(full_grids())
        assert dataset.annual_metrics["serviceRev"].achievement_till_date == pytest.approx(121.0)

    def test_derive_empty(self):
        assert derive_annual_metric("ARR INR Cr", []) is None

    def test_unknown_annual_label_dropped(self):
        dataset = build_dataset(full_grids())
        assert set(dataset.annual_metrics) == {"ndr", "gdr", "nps", "arr", "serviceRev"}

    def test_pipeline_coverage(self):
        dataset = build_dataset(full_grids())
        coverage = dataset.pipeline_coverage
        assert coverage.open_pipeline == 150
        assert coverage.remaining_target == pytest.approx(57.4 - 19.03)
        assert coverage.coverage == pytest.approx(150 / (57.4 - 19.03))

    def test_coverage_floor_when_target_exceeded(self):
        arr = AnnualMetric("ARR INR Cr", target_fy=50, achievement_till_date=60, unit="Cr")
        coverage = compute_pipeline_coverage(100, arr)
        assert coverage.remaining_target == 0
        assert coverage.coverage == 0

    def test_coverage_without_arr(self):
        coverage = compute_pipeline_coverage(100, None)
        assert coverage.open_pipeline == 100
        assert coverage.remaining_target == 0
        assert coverage.coverage == 0


# ---------------------------------------------------------------------------
# build_dataset
# ---------------------------------------------------------------------------

class TestBuildDataset:
    def test_missing_sheets_omitted(self):
        data = build_dataset({}).to_dict()
        assert data == {
            "annualMetrics": {},
            "pipelineCoverage": {"openPipeline": 0, "remainingTarget": 0, "coverage": 0},
        }

    def test_partial_workbook(self):
        grids = full_grids()
        del grids["Quarterly ARR & Service Rev"]
        data = build_dataset(grids).to_dict()
        assert "arr" not in data["annualMetrics"]
        assert "quarterlyARR" not in data
        assert data["pipelineCoverage"]["openPipeline"] == 150
        assert data["billingTotals"]["totalTarget"] == 300

    def test_wire_keys(self):
        data = build_dataset(full_grids()).to_dict()
        assert data["annualMetrics"]["ndr"] == {
            "label": "NDR", "targetFY": 1.2, "achievementTillDate": 1.15, "unit": "x",
        }
        assert data["monthlyBilling"][-1] == {
            "month": "Mar", "target": 25, "achievement": None, "percentage": None,
        }
        assert data["weightages"]["arr"] == {"label": "ARR", "weight": 60}

    def test_idempotent(self):
        first = json.dumps(build_dataset(full_grids()).to_dict(), sort_keys=True)
        second = json.dumps(build_dataset(full_grids()).to_dict(), sort_keys=True)
        assert first == second

    def test_weight_total_not_enforced(self, caplog):
        grids = full_grids()
        grids["Weightages"] = sheet_grid(["Key", "Label", "Weight"], [["arr", "ARR", 70]])
        with caplog.at_level(logging.WARNING, logger="okr_dashboard.transforms"):
            dataset = build_dataset(grids)
        assert dataset.weight_total == 70
        assert dataset.weightages[0].weight == 70
        assert "expected 100" in caplog.text

    def test_weight_total_100_no_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="okr_dashboard.transforms"):
            dataset = build_dataset(full_grids())
        assert dataset.weight_total == 100
        assert "expected 100" not in caplog.text

    def test_repeated_weight_key_last_row_wins(self, caplog):
        grids = full_grids()
        grids["Weightages"] = sheet_grid(
            ["Key", "Label", "Weight"],
            [["arr", "ARR", 60], ["arr", "ARR", 40], ["billing", "Billing", 60]],
        )
        with caplog.at_level(logging.WARNING, logger="okr_dashboard.transforms"):
            dataset = build_dataset(grids)

        assert dataset.weight_total == 100
        assert dataset.to_dict()["weightages"]["arr"]["weight"] == 40
        assert list(dataset.to_dict()["weightages"]) == ["arr", "billing"]
        assert "repeat keys" in caplog.text
        assert "expected 100" not in caplog.text
