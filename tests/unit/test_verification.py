"""
Unit tests for the verification pass.

Tests cover:
1. Valid results pass with correct totals
2. Each invariant failure is reported with bidder and invariant name
3. Asset tolerance
4. Supply ceiling and raise target checks
5. VerificationError formatting
"""

import pytest

from sealbid.core.auction import (
    Allocation,
    Bid,
    ScaleConfig,
    FixedSupply,
    FixedRaise,
    VerificationError,
    verify_allocations,
)


SCALES = ScaleConfig()
TOKEN = SCALES.asset_scale
PRICE = 500_000


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def bids():
    return [
        Bid("A", 1_000_000, 500_000, 1),
        Bid("B", 2_000_000, 500_000, 2),
        Bid("C", 500_000, 400_000, 1),
    ]


@pytest.fixture
def good_allocations():
    return {
        "B": Allocation(4 * TOKEN, 2_000_000, 0),
        "A": Allocation(2 * TOKEN, 1_000_000, 0),
        "C": Allocation(0, 0, 500_000),
    }


def invariants(report):
    return {v.invariant for v in report.violations}


# =============================================================================
# Passing Results
# =============================================================================


class TestValidResults:
    """Tests for results that satisfy every invariant."""

    def test_passes(self, bids, good_allocations):
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert report.is_valid
        assert report.violations == []

    def test_totals(self, bids, good_allocations):
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert report.total_asset == 6 * TOKEN
        assert report.total_used == 3_000_000
        assert report.total_refunded == 500_000
        assert report.total_payment == 3_500_000

    def test_summary(self, bids, good_allocations):
        summary = verify_allocations(bids, PRICE, good_allocations, SCALES).summary()
        assert summary["violations"] == 0
        assert summary["final_price"] == PRICE

    def test_undersubscribed_refunds_pass(self, bids):
        allocations = {b.address: Allocation(0, 0, b.payment_amount) for b in bids}
        assert verify_allocations(bids, 0, allocations, SCALES).is_valid

    def test_raise_for_violations_noop(self, bids, good_allocations):
        verify_allocations(bids, PRICE, good_allocations, SCALES).raise_for_violations()


# =============================================================================
# Failures
# =============================================================================


class TestViolations:
    """Tests for each invariant failure."""

    def test_conservation(self, bids, good_allocations):
        good_allocations["A"] = Allocation(2 * TOKEN, 1_000_000, 1)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)

        assert not report.is_valid
        assert "conservation" in invariants(report)
        assert "global_conservation" in invariants(report)
        assert any(v.address == "A" for v in report.violations)

    def test_price_consistency(self, bids, good_allocations):
        good_allocations["B"] = Allocation(5 * TOKEN, 2_000_000, 0)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert invariants(report) == {"price_consistency"}
        assert report.violations[0].address == "B"

    def test_asset_within_tolerance(self, bids, good_allocations):
        good_allocations["B"] = Allocation(4 * TOKEN - 1, 2_000_000, 0)
        assert verify_allocations(bids, PRICE, good_allocations, SCALES, asset_tolerance=1).is_valid

    def test_asset_beyond_tolerance(self, bids, good_allocations):
        good_allocations["B"] = Allocation(4 * TOKEN - 2, 2_000_000, 0)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES, asset_tolerance=1)
        assert invariants(report) == {"price_consistency"}

    def test_undersubscribed_with_asset(self, bids):
        allocations = {b.address: Allocation(0, 0, b.payment_amount) for b in bids}
        allocations["C"] = Allocation(TOKEN, 400_000, 100_000)
        report = verify_allocations(bids, 0, allocations, SCALES)
        assert invariants(report) == {"undersubscribed_refund"}

    def test_below_price_gets_asset(self, bids, good_allocations):
        good_allocations["C"] = Allocation(TOKEN, 500_000, 0)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert "below_price_exclusion" in invariants(report)

    def test_missing_allocation(self, bids, good_allocations):
        del good_allocations["C"]
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert "missing_allocation" in invariants(report)

    def test_unknown_bidder(self, bids, good_allocations):
        good_allocations["ghost"] = Allocation(0, 0, 0)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert invariants(report) == {"unknown_bidder"}

    def test_negative_amount(self, bids, good_allocations):
        good_allocations["C"] = Allocation(0, -1, 500_001)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert "non_negative" in invariants(report)

    def test_duplicate_bid(self, good_allocations):
        bids = [Bid("A", 1_000_000, 500_000, 1), Bid("A", 1_000_000, 500_000, 1)]
        report = verify_allocations(bids, PRICE, {"A": good_allocations["A"]}, SCALES)
        assert "unique_bidder" in invariants(report)

    def test_supply_ceiling(self, bids, good_allocations):
        report = verify_allocations(
            bids, PRICE, good_allocations, SCALES, mode=FixedSupply(5 * TOKEN)
        )
        assert invariants(report) == {"supply_ceiling"}

    def test_fill_after_partial_fill(self):
        """A bidder queued behind the marginal one must not pick up its sliver."""
        price = 499_990
        bids = [Bid("M", 5_000_000, price, 9), Bid("N", 5_000_000, price, 1)]
        allocations = {
            "M": Allocation(2_000_124_002_480_049_600, 1_000_042, 3_999_958),
            "N": Allocation(2_000_040_000_800, 1, 4_999_999),
        }
        report = verify_allocations(bids, price, allocations, SCALES)

        assert invariants(report) == {"fill_after_exhaustion"}
        assert report.violations[0].address == "N"

        allocations["N"] = Allocation(0, 0, 5_000_000)
        assert verify_allocations(bids, price, allocations, SCALES).is_valid

    def test_raise_target(self, bids, good_allocations):
        report = verify_allocations(
            bids, PRICE, good_allocations, SCALES, mode=FixedRaise(2_000_000)
        )
        assert invariants(report) == {"raise_target"}


# =============================================================================
# Error Reporting
# =============================================================================


class TestVerificationError:
    """Tests for the raised error."""

    def test_message_names_bidder_and_invariant(self, bids, good_allocations):
        good_allocations["A"] = Allocation(2 * TOKEN, 999_000, 0)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)

        with pytest.raises(VerificationError) as exc_info:
            report.raise_for_violations()

        message = str(exc_info.value)
        assert "[conservation] A" in message
        assert "500000" in message
        assert exc_info.value.report is report

    def test_global_violation_labelled(self, bids, good_allocations):
        good_allocations["A"] = Allocation(2 * TOKEN, 1_000_000, 5)
        report = verify_allocations(bids, PRICE, good_allocations, SCALES)
        assert any(str(v).startswith("[global_conservation] <global>") for v in report.violations)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
