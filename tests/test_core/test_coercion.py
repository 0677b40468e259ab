"""Tests for scalar coercion."""

import math

import pytest

from stockpulse.core.coercion import clamp_score, safe_array, safe_number


class TestSafeNumber:
    """Test safe_number conversions."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (72, 72),
            (1.5, 1.5),
            ("72", 72),
            ("72/100", 72100),
            ("$189.84", 189.84),
            ("-3.5%", -3.5),
            ("  42 points", 42),
            ("1,234.5", 1234.5),
        ],
    )
    def test_parses_numeric_prefix(self, value, expected):
        """Non-numeric characters are stripped before parsing."""
        assert safe_number(value) == expected

    @pytest.mark.parametrize(
        "value", [None, "", "N/A", "abc", [], {}, "--", ".", "-"]
    )
    def test_unparseable_yields_zero(self, value):
        """Anything without a numeric prefix is zero."""
        assert safe_number(value) == 0

    def test_numbers_pass_through(self):
        """Ints stay ints, floats stay floats."""
        assert safe_number(7) == 7
        assert isinstance(safe_number(7), int)
        assert safe_number(0.25) == 0.25

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_become_zero(self, value):
        """The result is always finite."""
        assert safe_number(value) == 0

    @pytest.mark.parametrize("value", [10**400, -(10**400)])
    def test_ints_beyond_float_range_become_zero(self, value):
        """Ints too large for a float cannot be checked for finiteness."""
        assert safe_number(value) == 0

    def test_large_ints_within_float_range_pass_through(self):
        assert safe_number(10**300) == 10**300

    def test_booleans_are_not_numbers(self):
        """True is stringified, which holds no digits."""
        assert safe_number(True) == 0
        assert safe_number(False) == 0

    def test_leading_prefix_wins(self):
        """Only the leading numeric prefix is parsed."""
        assert safe_number("12-3") == 12
        assert safe_number("1.2.3") == 1.2

    def test_always_finite(self):
        """Very long digit strings still produce a finite value."""
        assert math.isfinite(safe_number("9" * 400))


class TestSafeArray:
    """Test safe_array filtering."""

    def test_keeps_only_strings_in_order(self):
        assert safe_array(["a", 1, None, "b", {"c": 1}, "c"]) == ["a", "b", "c"]

    def test_tuple_input(self):
        assert safe_array(("x", 2)) == ["x"]

    @pytest.mark.parametrize("value", [None, "abc", 5, {"a": "b"}])
    def test_non_sequences_are_empty(self, value):
        assert safe_array(value) == []

    def test_returns_new_list(self):
        """The input list is never returned or mutated."""
        original = ["a", "b"]
        result = safe_array(original)
        assert result == original
        assert result is not original


class TestClampScore:
    """Test gauge clamping."""

    def test_clamps_to_range(self):
        assert clamp_score("150") == 100.0
        assert clamp_score("-20") == 0.0
        assert clamp_score("55") == 55.0

    def test_garbage_clamps_to_zero(self):
        assert clamp_score("N/A") == 0.0
