"""Data ingestion loaders for the OKR input workbooks."""

from .sheets import AnnualKpis
from .sheets import parse_monthly_sheet, parse_quarterly_sheet, parse_quarterly_pair
from .sheets import parse_annual_kpis, parse_account_owners, parse_weightages
from .sheets import parse_rag_metrics
from .utils import coerce_number_or_zero, coerce_number_or_null
from .workbook import WorkbookReadError, read_workbook_bytes, read_workbook_grids

__all__ = [
    "AnnualKpis",
    "WorkbookReadError",
    "coerce_number_or_null",
    "coerce_number_or_zero",
    "parse_account_owners",
    "parse_annual_kpis",
    "parse_monthly_sheet",
    "parse_quarterly_pair",
    "parse_quarterly_sheet",
    "parse_rag_metrics",
    "parse_weightages",
    "read_workbook_bytes",
    "read_workbook_grids",
]
