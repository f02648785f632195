"""Tests for display formatting."""

import pytest

from quote_mcp.utils.formatting import (
    format_percent_change,
    format_price,
    format_ratio,
    format_short_form,
)


class TestFormatShortForm:
    """Tests for format_short_form function."""

    def test_trillions(self) -> None:
        assert format_short_form(2_980_000_000_000) == "$2.98T"

    def test_billions(self) -> None:
        assert format_short_form(45_000_000_000) == "$45.00B"

    def test_millions(self) -> None:
        assert format_short_form(32_800_000) == "$32.80M"

    def test_below_millions_has_no_suffix(self) -> None:
        """Values under 1e6 render as plain dollars."""
        assert format_short_form(999_999) == "$999999.00"
        assert format_short_form(12.5) == "$12.50"
        assert format_short_form(0) == "$0.00"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1e12, "$1.00T"),
            (1e9, "$1.00B"),
            (1e6, "$1.00M"),
            (1e15, "$1000.00T"),
        ],
    )
    def test_thresholds_inclusive(self, value: float, expected: str) -> None:
        """Each threshold belongs to the larger suffix."""
        assert format_short_form(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (999_999_000, "$1000.00M"),
            (999_999_000_000, "$1000.00B"),
            (999_999.999, "$1000000.00"),
        ],
    )
    def test_tier_chosen_before_rounding(self, value: float, expected: str) -> None:
        """Values just under a threshold stay in the lower tier after rounding."""
        assert format_short_form(value) == expected

    def test_negative_keeps_sign(self) -> None:
        """Sign goes in front of the dollar sign."""
        assert format_short_form(-1_500_000_000) == "-$1.50B"
        assert format_short_form(-3.5) == "-$3.50"

    @pytest.mark.parametrize("value", [None, float("nan"), float("inf"), float("-inf"), "abc", True])
    def test_unavailable(self, value) -> None:
        """None, non-finite and non-numeric -> N/A."""
        assert format_short_form(value) == "N/A"


class TestFormatPrice:
    def test_price(self) -> None:
        assert format_price(191.03) == "$191.03"
        assert format_price(190.2) == "$190.20"

    def test_none(self) -> None:
        assert format_price(None) == "N/A"


class TestFormatPercentChange:
    """Tests for format_percent_change function."""

    def test_gain_has_plus(self) -> None:
        assert format_percent_change(1.14) == "+1.14%"

    def test_loss(self) -> None:
        assert format_percent_change(-0.52) == "-0.52%"

    def test_flat(self) -> None:
        """Zero and rounding-to-zero values have no sign."""
        assert format_percent_change(0) == "0.00%"
        assert format_percent_change(-0.001) == "0.00%"

    def test_none(self) -> None:
        assert format_percent_change(None) == "N/A"


class TestFormatRatio:
    def test_ratio(self) -> None:
        assert format_ratio(32.8) == "32.80"

    def test_nan(self) -> None:
        assert format_ratio(float("nan")) == "N/A"
