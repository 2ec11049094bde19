"""Tests for the cell-level coercion helpers."""

import math

import pytest

from okr_dashboard.loaders.utils import (
    cell,
    cell_text,
    coerce_number_or_null,
    coerce_number_or_zero,
    is_blank,
    ratio,
)


# ---------------------------------------------------------------------------
# coerce_number_or_zero
# ---------------------------------------------------------------------------

class TestCoerceNumberOrZero:
    def test_integer(self):
        assert coerce_number_or_zero(42) == 42

    def test_float(self):
        assert coerce_number_or_zero(14.35) == 14.35

    def test_numeric_string(self):
        assert coerce_number_or_zero(" 23.5 ") == 23.5

    def test_negative_string(self):
        assert coerce_number_or_zero("-11") == -11

    def test_empty_string(self):
        assert coerce_number_or_zero("") == 0

    def test_none(self):
        assert coerce_number_or_zero(None) == 0

    def test_junk_text(self):
        assert coerce_number_or_zero("n/a") == 0

    def test_nan(self):
        assert coerce_number_or_zero(float("nan")) == 0

    def test_nan_string(self):
        assert coerce_number_or_zero("nan") == 0

    @pytest.mark.parametrize("raw", ["inf", "Infinity", "-inf", " -Infinity "])
    def test_infinite_string(self, raw):
        assert coerce_number_or_zero(raw) == 0

    def test_infinite_float(self):
        assert coerce_number_or_zero(float("inf")) == 0
        assert coerce_number_or_zero(float("-inf")) == 0

    def test_large_int_kept(self):
        assert coerce_number_or_zero(10**400) == 10**400

    def test_bool(self):
        assert coerce_number_or_zero(True) == 1

    def test_unsupported_type(self):
        assert coerce_number_or_zero(object()) == 0


# ---------------------------------------------------------------------------
# coerce_number_or_null
# ---------------------------------------------------------------------------

class TestCoerceNumberOrNull:
    def test_blank_is_none(self):
        assert coerce_number_or_null("") is None

    def test_whitespace_is_none(self):
        assert coerce_number_or_null("   ") is None

    def test_none_is_none(self):
        assert coerce_number_or_null(None) is None

    def test_literal_zero_stays_zero(self):
        value = coerce_number_or_null(0)
        assert value == 0
        assert value is not None

    def test_number(self):
        assert coerce_number_or_null(33) == 33

    def test_junk_text_is_zero(self):
        assert coerce_number_or_null("tbd") == 0


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_cell_out_of_range(self):
        assert cell(["a"], 3) == ""

    def test_cell_in_range(self):
        assert cell(["a", 2], 1) == 2

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)

    def test_cell_text_integral_float(self):
        assert cell_text(26.0) == "26"

    def test_cell_text_strips(self):
        assert cell_text("  NDR ") == "NDR"

    def test_cell_text_none(self):
        assert cell_text(None) == ""

    def test_ratio(self):
        assert ratio(187, 300) == pytest.approx(0.6233, abs=1e-4)

    def test_ratio_zero_denominator(self):
        value = ratio(5, 0)
        assert value == 0
        assert not math.isinf(value)

    def test_ratio_negative_denominator(self):
        assert ratio(5, -1) == 0
