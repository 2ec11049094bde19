"""
Shared cell-level helpers for the sheet parsers: numeric coercion,
label normalisation, safe positional access.

Two numeric rules exist on purpose:
    coerce_number_or_zero  blank / junk -> 0   (targets, quarterly values)
    coerce_number_or_null  blank -> None       (monthly achievements)
"""

import math
from typing import Any


def cell(row: list, index: int) -> Any:
    """Return row[index], or "" when the row is too short."""
    if index < len(row):
        return row[index]
    return ""


def is_blank(val: Any) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if val is None:
        return True
    return isinstance(val, str) and not val.strip()


def coerce_number_or_zero(val: Any) -> float:
    """Coerce a cell to a number, returning 0 for blank, non-numeric or
    non-finite values ("inf", NaN).

    Malformed cells never raise: spreadsheets maintained by hand are
    expected to contain stray text.
    """
    if is_blank(val):
        return 0
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        return val if math.isfinite(val) else 0
    if isinstance(val, str):
        try:
            num = float(val.strip())
        except ValueError:
            return 0
        return num if math.isfinite(num) else 0
    return 0


def coerce_number_or_null(val: Any) -> float | None:
    """Like coerce_number_or_zero, but a blank cell yields None.

    None means "not yet reported"; a literal 0 stays 0.
    """
    if is_blank(val):
        return None
    return coerce_number_or_zero(val)


def cell_text(val: Any) -> str:
    """Stripped string form of a label cell."""
    if val is None:
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is not positive."""
    if denominator > 0:
        return numerator / denominator
    return 0
