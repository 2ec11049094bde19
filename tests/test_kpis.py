"""Tests for KPI status, trend statistics and the weighted score."""

import pytest

from okr_dashboard.ingest import load_dataset
from okr_dashboard.kpis import (
    achievement_status,
    calc_variance,
    cumulative,
    get_executive_summary,
    linear_regression,
    moving_average,
    pearson_correlation,
    predict_year_end,
    trend_direction,
    weighted_score,
)
from okr_dashboard.models import Dataset, MonthlyMetric, Totals, WeightRecord


# ---------------------------------------------------------------------------
# Status and variance
# ---------------------------------------------------------------------------

class TestAchievementStatus:
    def test_green(self):
        assert achievement_status(1.0) == "green"

    def test_amber(self):
        assert achievement_status(0.8) == "amber"

    def test_red(self):
        assert achievement_status(0.79) == "red"

    def test_no_data(self):
        assert achievement_status(None) == "grey"
        assert achievement_status(float("nan")) == "grey"


class TestCalcVariance:
    def test_reported(self):
        absolute, rate = calc_variance(20, 25)
        assert absolute == -5
        assert rate == pytest.approx(0.8)

    def test_unreported(self):
        assert calc_variance(None, 25) == (None, None)

    def test_zero_target(self):
        assert calc_variance(5, 0) == (5, None)


# ---------------------------------------------------------------------------
# Trend statistics
# ---------------------------------------------------------------------------

class TestTrendStatistics:
    def test_cumulative_skips_unreported(self):
        assert cumulative([1, None, 2]) == [1, 1, 3]

    def test_linear_regression(self):
        slope, intercept = linear_regression([1, 2, 3])
        assert slope == pytest.approx(1)
        assert intercept == pytest.approx(1)

    def test_linear_regression_degenerate(self):
        assert linear_regression([]) == (0.0, 0.0)
        assert linear_regression([7]) == (0.0, 7.0)

    def test_trend_direction(self):
        assert trend_direction(0.2) == "Improving"
        assert trend_direction(-0.2) == "Stable"
        assert trend_direction(-2) == "Declining"

    def test_moving_average(self):
        assert moving_average([1, 2, 3, 4]) == [None, None, 2.0, 3.0]

    def test_correlation(self):
        assert pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_correlation_undefined(self):
        assert pearson_correlation([1], [1]) == 0.0
        assert pearson_correlation([1, 1, 1], [1, 2, 3]) == 0.0

    def test_predict_year_end(self):
        records = [MonthlyMetric("Apr", 25, 10, 0.4), MonthlyMetric("May", 25, 20, 0.8)]
        records += [MonthlyMetric(f"M{i}", 25, None, None) for i in range(10)]
        assert predict_year_end(records) == pytest.approx(180)

    def test_predict_year_end_no_data(self):
        assert predict_year_end([MonthlyMetric("Apr", 25, None, None)]) == 0


# ---------------------------------------------------------------------------
# Weighted score and summary
# ---------------------------------------------------------------------------

class TestWeightedScore:
    def test_weighted_average(self):
        dataset = Dataset(
            weightages=(WeightRecord("billing", "Billing", 50), WeightRecord("collection", "Collection", 50)),
            billing_totals=Totals(100, 50, 0.5),
            collection_totals=Totals(100, 100, 1.0),
        )
        assert weighted_score(dataset) == pytest.approx(0.75)

    def test_unknown_keys_skipped(self):
        dataset = Dataset(
            weightages=(WeightRecord("billing", "Billing", 40), WeightRecord("mystery", "?", 60)),
            billing_totals=Totals(100, 50, 0.5),
        )
        assert weighted_score(dataset) == pytest.approx(0.5)

    def test_repeated_key_counted_once(self):
        dataset = Dataset(
            weightages=(
                WeightRecord("billing", "Billing", 90),
                WeightRecord("billing", "Billing", 50),
                WeightRecord("collection", "Collection", 50),
            ),
            billing_totals=Totals(100, 50, 0.5),
            collection_totals=Totals(100, 100, 1.0),
        )
        assert dataset.weight_total == 100
        assert weighted_score(dataset) == pytest.approx(0.75)

    def test_no_weightages(self):
        assert weighted_score(Dataset()) == 0


class TestExecutiveSummary:
    def test_sample_workbook(self, sample_workbook):
        summary = get_executive_summary(load_dataset(sample_workbook))
        assert summary["billing"]["target"] == 300
        assert summary["billing"]["status"] == "red"
        assert summary["annual"]["nps"]["status"] == "red"
        assert summary["pipeline"]["open_pipeline"] == 150
        assert summary["weight_total"] == 100
        assert 0 < summary["weighted_score"] < 2

    def test_empty_dataset(self):
        summary = get_executive_summary(Dataset())
        assert summary["annual"] == {}
        assert summary["billing"]["status"] == "grey"
        assert summary["weight_total"] == 0
