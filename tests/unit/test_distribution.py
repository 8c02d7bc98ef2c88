"""
Unit tests for reward distribution.

Tests cover:
1. Staked-share splits of asset allocations
2. Proportional splits of a reward pool
3. Floor rounding never over-distributes
"""

import pytest

from sealbid.core.auction import Allocation
from sealbid.core.distribution import proportional_split, staked_share


TOKEN = 10**18


class TestStakedShare:
    """Tests for fixed-fraction shares."""

    def test_quarter_share(self):
        summary = staked_share({
            "a": Allocation(4 * TOKEN, 2_000_000, 0),
            "b": Allocation(3, 1, 0),
        })
        assert summary.shares == {"a": TOKEN}
        assert summary.source_total == 4 * TOKEN
        assert summary.remainder == 3 * TOKEN

    def test_refunded_bidders_omitted(self):
        summary = staked_share({"a": Allocation(0, 0, 500)}, 1, 2)
        assert summary.recipients == 0
        assert summary.distributed_total == 0

    def test_floor(self):
        summary = staked_share({"a": Allocation(7, 1, 0)}, 1, 2)
        assert summary.shares == {"a": 3}

    @pytest.mark.parametrize("numerator, denominator", [(1, 0), (-1, 100), (101, 100)])
    def test_bad_fraction(self, numerator, denominator):
        with pytest.raises(ValueError):
            staked_share({}, numerator, denominator)

    def test_json_amounts_are_strings(self):
        summary = staked_share({"a": Allocation(4 * TOKEN, 1, 0)})
        assert summary.to_json_dict() == {"a": str(TOKEN)}


class TestProportionalSplit:
    """Tests for weighted pool splits."""

    def test_even_split(self):
        summary = proportional_split({"a": 1, "b": 1}, 10)
        assert summary.shares == {"a": 5, "b": 5}
        assert summary.remainder == 0

    def test_remainder_reported_not_reassigned(self):
        summary = proportional_split({"a": 1, "b": 1, "c": 1}, 10)
        assert summary.shares == {"a": 3, "b": 3, "c": 3}
        assert summary.distributed_total == 9
        assert summary.stats()["remainder"] == 1

    def test_zero_weight_gets_zero(self):
        summary = proportional_split({"a": 3, "b": 0}, 100)
        assert summary.shares == {"a": 100, "b": 0}

    def test_no_weight(self):
        with pytest.raises(ValueError, match="No weight"):
            proportional_split({"a": 0}, 100)
        with pytest.raises(ValueError, match="No weight"):
            proportional_split({}, 100)

    def test_negative_inputs(self):
        with pytest.raises(ValueError):
            proportional_split({"a": -1, "b": 2}, 100)
        with pytest.raises(ValueError):
            proportional_split({"a": 1}, -1)

    def test_large_values_exact(self):
        pool = 10**30 + 1
        summary = proportional_split({"a": 2, "b": 1}, pool)
        assert summary.shares["a"] == (2 * pool) // 3
        assert summary.distributed_total <= pool


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
