"""Tests for normalize module."""

import json

import pytest

from quote_mcp.utils.normalize import (
    canonical_dumps,
    sanitize_nan_inf,
    snapshot_hash,
    to_finite_float,
)


class TestCanonicalDumps:
    """Tests for canonical_dumps function."""

    def test_sorted_keys(self):
        """Keys should be sorted at every level."""
        obj = {"z": 1, "a": 2, "m": {"z": 3, "a": 4}}
        assert canonical_dumps(obj) == '{"a":2,"m":{"a":4,"z":3},"z":1}'

    def test_minimal_separators(self):
        """Output should use minimal separators (no spaces)."""
        result = canonical_dumps({"a": [1, 2, 3]})
        assert result == '{"a":[1,2,3]}'

    def test_unicode_preserved(self):
        """Unicode should be preserved (not escaped)."""
        assert "Nestlé" in canonical_dumps({"name": "Nestlé"})

    def test_rejects_nan(self):
        """Should raise ValueError for NaN (allow_nan=False)."""
        with pytest.raises(ValueError, match="Out of range float values"):
            canonical_dumps({"value": float("nan")})


class TestToFiniteFloat:
    """Tests for to_finite_float, shared by records, resolver and formatters."""

    @pytest.mark.parametrize("value,expected", [(1, 1.0), ("2.5", 2.5), (-3.0, -3.0), (0, 0.0)])
    def test_numbers(self, value, expected) -> None:
        assert to_finite_float(value) == expected

    @pytest.mark.parametrize(
        "value", [None, True, False, "abc", float("nan"), float("inf"), 10**400, [1]]
    )
    def test_rejected(self, value) -> None:
        """Absent, bool, non-numeric, NaN, inf and overflowing ints give None."""
        assert to_finite_float(value) is None


class TestSanitizeNanInf:
    """Tests for sanitize_nan_inf function."""

    def test_nan_and_inf_become_none(self):
        raw = {"pe": float("nan"), "cap": float("inf"), "low": float("-inf"), "ok": 1.5}
        assert sanitize_nan_inf(raw) == {"pe": None, "cap": None, "low": None, "ok": 1.5}

    def test_nested(self):
        """NaN in nested dicts and lists is sanitized."""
        raw = {"market_cap": {"score": float("nan")}, "list": [1.0, float("nan")]}
        result = sanitize_nan_inf(raw)
        assert result["market_cap"]["score"] is None
        assert result["list"] == [1.0, None]

    def test_negative_zero(self):
        """-0.0 becomes 0.0 so it serializes without a sign."""
        assert json.dumps(sanitize_nan_inf({"v": -0.0})) == '{"v": 0.0}'

    def test_bools_and_strings_untouched(self):
        raw = {"confident": True, "method": "heuristic-bucket", "scale": 0}
        assert sanitize_nan_inf(raw) == raw

    def test_output_is_json_safe(self):
        canonical_dumps(sanitize_nan_inf({"a": float("nan"), "b": [float("inf")]}))


class TestSnapshotHash:
    """Tests for snapshot_hash function."""

    def test_length(self, sample_card):
        assert len(snapshot_hash(sample_card)) == 16

    def test_key_order_irrelevant(self):
        assert snapshot_hash({"a": 1, "b": 2}) == snapshot_hash({"b": 2, "a": 1})

    def test_value_change_changes_hash(self, sample_card):
        before = snapshot_hash(sample_card)
        sample_card["price"] = 191.04
        assert snapshot_hash(sample_card) != before

    def test_nan_hashes_like_none(self):
        assert snapshot_hash({"pe": float("nan")}) == snapshot_hash({"pe": None})
