"""
Configuration: sheet names, label maps, file discovery, paths, constants.

ANNUAL_LABEL_MAP maps each exact "Annual KPIs" row label to its internal
metric key; ANNUAL_UNIT_MAP gives the display unit for that key.
"""

import os
import re
from pathlib import Path

# ---------------------------------------------------------------------------
# File paths (override with OKR_DASHBOARD_DATA_DIR)
# ---------------------------------------------------------------------------
DATA_DIR = Path(
    os.environ.get("OKR_DASHBOARD_DATA_DIR", Path(__file__).resolve().parent.parent)
)

# {Function}_Dashboard_FY{NN}.xlsx, e.g. KAM_Dashboard_FY26.xlsx
FILE_PATTERN = re.compile(r"^(\w+)_Dashboard_FY(\d+)\.xlsx$", re.IGNORECASE)

# Legacy single-file layout, treated as KAM / FY26
FALLBACK_FILE = "KAM_Dashboard_Input.xlsx"
FALLBACK_FUNCTION = "KAM"
FALLBACK_FY = "FY26"

# Function listed first in every function picker
PRIMARY_FUNCTION = "KAM"

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
SERVER_HOST = os.environ.get("OKR_DASHBOARD_HOST", "0.0.0.0")
SERVER_PORT = int(os.environ.get("OKR_DASHBOARD_PORT", "3001"))

# ---------------------------------------------------------------------------
# Sheet naming contract (case-sensitive)
# ---------------------------------------------------------------------------
SHEET_ANNUAL = "Annual KPIs"
SHEET_BILLING = "Monthly Billing"
SHEET_COLLECTION = "Monthly Collection"
SHEET_QBRS = "Quarterly QBRs"
SHEET_HERO_STORIES = "Hero Stories"
SHEET_ARR_SERVICE_REV = "Quarterly ARR & Service Rev"
SHEET_OWNERS = "Account Owners"
SHEET_WEIGHTAGES = "Weightages"
SHEET_RAG = "RAG Metrics"
SHEET_INSTRUCTIONS = "Instructions"

SHEET_NAMES = [
    SHEET_ANNUAL,
    SHEET_BILLING,
    SHEET_COLLECTION,
    SHEET_QBRS,
    SHEET_HERO_STORIES,
    SHEET_ARR_SERVICE_REV,
    SHEET_OWNERS,
    SHEET_WEIGHTAGES,
]

# Row 0 = title, row 1 = blank, row 2 = headers
DATA_START_ROW = 3

# RAG Metrics sheet has headers in row 0
RAG_DATA_START_ROW = 1

# ---------------------------------------------------------------------------
# Annual KPI registry
# ---------------------------------------------------------------------------
# ARR and Service Rev are derived from the quarterly breakdown sheet.
ANNUAL_LABEL_MAP: dict[str, str] = {
    "NDR": "ndr",
    "GDR": "gdr",
    "NPS Score": "nps",
}

ANNUAL_UNIT_MAP: dict[str, str] = {
    "ndr": "x",
    "gdr": "x",
    "nps": "",
}

PIPELINE_LABEL_FRAGMENT = "pipeline"

ARR_LABEL = "ARR INR Cr"
SERVICE_REV_LABEL = "Service Rev INR Cr"
CRORE_UNIT = "Cr"

# ---------------------------------------------------------------------------
# RAG status
# ---------------------------------------------------------------------------
RAG_VALUES = ("red", "amber", "green")

RAG_DEFAULT_ROWS = [
    ("capabilityAI", "Capability Development in AI", "red"),
    ("accountStrategy", "Account Strategy", "red"),
    ("archDomain", "Architecture & Domain Knowledge", "red"),
]

# Achievement ratio thresholds for status colouring
STATUS_GREEN_AT = 1.0
STATUS_AMBER_AT = 0.8

# ---------------------------------------------------------------------------
# Ingestion / watching
# ---------------------------------------------------------------------------
READ_RETRIES = 3
READ_BACKOFF_SECONDS = 1.0
WATCH_DEBOUNCE_SECONDS = 1.5
WATCH_POLL_SECONDS = 1.0
