"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - is_usable: record value classification
    - check_finite: scalar conversion and NaN/Inf rejection
    - check_choice / check_name: argument checks
    - check_columns: query schema check
    - check_min_count: minimum point count
"""

from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from pylinreg.core.exceptions import (
    InsufficientDataError,
    InvalidArgumentError,
    SchemaMismatchError,
    ValidationError,
)
from pylinreg.core.validation import (
    check_choice,
    check_columns,
    check_finite,
    check_min_count,
    check_name,
    is_usable,
)


class TestIsUsable:

    @pytest.mark.parametrize("value", [0, 1, -3.5, np.float64(2.0), np.int32(4), Fraction(1, 3)])
    def test_finite_numbers(self, value):
        assert is_usable(value)

    @pytest.mark.parametrize("value", [
        None, True, False, np.bool_(True), "1.0", b"1", [1.0], Decimal("1.0"),
        float("nan"), float("inf"), -np.inf,
    ])
    def test_rejected(self, value):
        assert not is_usable(value)


class TestCheckFinite:

    def test_int_converted_to_float(self):
        result = check_finite(3, "x")
        assert result == 3.0
        assert isinstance(result, float)

    def test_numpy_scalar(self):
        assert check_finite(np.float32(1.5), "x") == 1.5

    def test_rejects_nan(self):
        with pytest.raises(ValidationError, match="x: must be finite"):
            check_finite(float("nan"), "x")

    def test_rejects_inf(self):
        with pytest.raises(ValidationError, match="y: must be finite"):
            check_finite(np.inf, "y")

    def test_rejects_string(self):
        with pytest.raises(ValidationError, match="expected a real number, got str"):
            check_finite("1.0", "x")

    def test_rejects_bool(self):
        with pytest.raises(ValidationError):
            check_finite(True, "x")


class TestCheckChoice:

    def test_accepts(self):
        assert check_choice("node", ("node", "relationship"), "kind") == "node"

    def test_rejects_with_attributes(self):
        with pytest.raises(InvalidArgumentError, match="kind") as info:
            check_choice("edge", ("node", "relationship"), "kind")
        assert info.value.value == "edge"
        assert info.value.allowed == ("node", "relationship")


class TestCheckName:

    def test_accepts(self):
        assert check_name("time", "independent") == "time"

    @pytest.mark.parametrize("value", ["", None, 3])
    def test_rejects(self, value):
        with pytest.raises(InvalidArgumentError, match="independent"):
            check_name(value, "independent")


class TestCheckColumns:

    def test_superset_ok(self):
        check_columns(("time", "progress", "id"), ("time", "progress"), "model query")

    def test_missing_column(self):
        with pytest.raises(SchemaMismatchError, match=r"missing columns \['progress'\]") as info:
            check_columns(("time", "prog"), ("time", "progress"), "model query")
        assert info.value.expected == ("time", "progress")
        assert info.value.actual == ("time", "prog")

    def test_names_are_case_sensitive(self):
        with pytest.raises(SchemaMismatchError):
            check_columns(("Time", "progress"), ("time", "progress"), "q")


class TestCheckMinCount:

    def test_ok(self):
        check_min_count(2, 2, "slope")

    def test_too_few(self):
        with pytest.raises(InsufficientDataError, match="at least 2 data points, got 1") as info:
            check_min_count(1, 2, "slope")
        assert info.value.count == 1
        assert info.value.required == 2
