"""Tests for input workbook discovery."""

from okr_dashboard.discovery import discover_files, parse_dataset_key
from okr_dashboard.models import DatasetKey


class TestParseDatasetKey:
    def test_standard_name(self):
        assert parse_dataset_key("KAM_Dashboard_FY26.xlsx") == DatasetKey("KAM", "FY26")

    def test_case_insensitive(self):
        assert parse_dataset_key("sales_dashboard_fy27.xlsx") == DatasetKey("SALES", "FY27")

    def test_path(self, tmp_path):
        assert parse_dataset_key(tmp_path / "HR_Dashboard_FY25.xlsx") == DatasetKey("HR", "FY25")

    def test_fallback_name(self):
        assert parse_dataset_key("KAM_Dashboard_Input.xlsx") == DatasetKey("KAM", "FY26")

    def test_unrelated_file(self):
        assert parse_dataset_key("notes.xlsx") is None
        assert parse_dataset_key("KAM_Dashboard_FY26.csv") is None


class TestDiscoverFiles:
    def test_finds_patterned_files(self, tmp_path):
        (tmp_path / "KAM_Dashboard_FY26.xlsx").touch()
        (tmp_path / "KAM_Dashboard_FY27.xlsx").touch()
        (tmp_path / "readme.txt").touch()
        files = discover_files(tmp_path)
        assert set(files) == {DatasetKey("KAM", "FY26"), DatasetKey("KAM", "FY27")}
        assert files[DatasetKey("KAM", "FY27")].name == "KAM_Dashboard_FY27.xlsx"

    def test_fallback_only_without_patterned_files(self, tmp_path):
        (tmp_path / "KAM_Dashboard_Input.xlsx").touch()
        assert discover_files(tmp_path) == {
            DatasetKey("KAM", "FY26"): tmp_path / "KAM_Dashboard_Input.xlsx",
        }

        (tmp_path / "KAM_Dashboard_FY27.xlsx").touch()
        assert set(discover_files(tmp_path)) == {DatasetKey("KAM", "FY27")}

    def test_missing_directory(self, tmp_path):
        assert discover_files(tmp_path / "nope") == {}
