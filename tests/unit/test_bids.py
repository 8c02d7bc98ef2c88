"""
Unit tests for bid intake.

Tests cover:
1. Bid file parsing and record validation
2. Discarding malformed records (never zero-filling)
3. Allow-list and balance-rank priority stages
4. Pipeline purity
"""

import pytest
from pydantic import ValidationError

from sealbid.core.auction import Bid
from sealbid.core.bids import (
    AllowListBoost,
    BalanceRankBoost,
    BidRecord,
    RankTier,
    apply_priority_pipeline,
    format_bids,
    parse_bid_lines,
    read_address_list,
    read_balances,
    read_bids,
)


ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20
CAROL = "0x" + "cc" * 20


# =============================================================================
# Record Model
# =============================================================================


class TestBidRecord:
    """Tests for the pydantic record model."""

    def test_string_integers_parsed(self):
        record = BidRecord(address=ALICE, payment_amount="1000", max_price="10", priority="-3")
        assert record.to_bid() == Bid(ALICE, 1000, 10, -3)

    @pytest.mark.parametrize("value", ["1.5", "1e6", "abc", "", "1_000"])
    def test_non_integer_rejected(self, value):
        with pytest.raises(ValidationError):
            BidRecord(address=ALICE, payment_amount=value, max_price="10", priority="0")

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError):
            BidRecord(address=ALICE, payment_amount="10", max_price="0", priority="0")

    def test_negative_payment_rejected(self):
        with pytest.raises(ValidationError):
            BidRecord(address=ALICE, payment_amount="-1", max_price="10", priority="0")

    def test_missing_priority_rejected(self):
        with pytest.raises(ValidationError):
            BidRecord(address=ALICE, payment_amount="10", max_price="10")


# =============================================================================
# Parsing
# =============================================================================


class TestParseBidLines:
    """Tests for text parsing."""

    def test_well_formed(self):
        parsed = parse_bid_lines([
            f"{ALICE} 1000000 500000 1",
            f"{BOB}   2000000\t500000 2",
        ])
        assert parsed.bids == [Bid(ALICE, 1_000_000, 500_000, 1), Bid(BOB, 2_000_000, 500_000, 2)]
        assert parsed.rejected == []

    def test_blank_and_comment_lines_ignored(self):
        parsed = parse_bid_lines(["", "   ", "# header", f"{ALICE} 1 1 0\n"])
        assert len(parsed.bids) == 1
        assert parsed.rejected == []

    def test_missing_field_discarded_not_zero_filled(self):
        parsed = parse_bid_lines([f"{ALICE} 1000000 500000", f"{BOB} 1 1 0"])

        assert [b.address for b in parsed.bids] == [BOB]
        assert len(parsed.rejected) == 1
        assert parsed.rejected[0].line_number == 1
        assert "priority" in parsed.rejected[0].reason

    def test_bad_values_discarded(self):
        parsed = parse_bid_lines([
            f"{ALICE} 1000000 0 1",       # zero price
            f"{BOB} -5 10 1",             # negative payment
            f"{CAROL} 12.5 10 1",         # not an integer
        ])
        assert parsed.bids == []
        assert [r.line_number for r in parsed.rejected] == [1, 2, 3]

    def test_duplicate_address_keeps_first(self):
        parsed = parse_bid_lines([f"{ALICE} 1 10 0", f"{ALICE} 2 20 0"])
        assert parsed.bids == [Bid(ALICE, 1, 10, 0)]
        assert parsed.rejected[0].reason == "duplicate address"

    def test_extra_fields_rejected(self):
        """A fifth column means the record is not in bid format."""
        parsed = parse_bid_lines([f"{ALICE} 1 10 0 trailing note", f"{BOB} 2 10 0"])

        assert parsed.bids == [Bid(BOB, 2, 10, 0)]
        assert parsed.rejected[0].line_number == 1
        assert parsed.rejected[0].reason == "unexpected extra fields: trailing note"

    def test_large_integers_exact(self):
        big = 10**40 + 7
        parsed = parse_bid_lines([f"{ALICE} {big} 3 0"])
        assert parsed.bids[0].payment_amount == big

    def test_discard_logged(self, caplog):
        with caplog.at_level("WARNING", logger="sealbid"):
            parse_bid_lines([f"{ALICE} 1"])
        assert "Skipping bid line 1" in caplog.text


class TestFiles:
    """Tests for file readers."""

    def test_read_bids_round_trip(self, tmp_path):
        bids = [Bid(ALICE, 1_000_000, 500_000, 1), Bid(BOB, 5, 7, -2)]
        path = tmp_path / "bids.txt"
        path.write_text(format_bids(bids))

        assert read_bids(path).bids == bids

    def test_read_address_list(self, tmp_path):
        path = tmp_path / "engine-users.txt"
        path.write_text(f"# engine users\n{ALICE}\n\n{BOB} extra\n")
        assert read_address_list(path) == [ALICE, BOB]

    def test_read_balances(self, tmp_path):
        path = tmp_path / "balances.txt"
        path.write_text(f"{ALICE} 100\n{BOB} lots\n{CAROL} 50\n")
        assert read_balances(path) == {ALICE: 100, CAROL: 50}


# =============================================================================
# Priority Pipeline
# =============================================================================


@pytest.fixture
def bids():
    return [
        Bid(ALICE, 1_000_000, 500_000, 1),
        Bid(BOB, 1_000_000, 500_000, 1),
        Bid(CAROL, 1_000_000, 500_000, 1),
    ]


class TestAllowListBoost:
    """Tests for allow-list stages."""

    def test_boosts_listed_only(self, bids):
        stage = AllowListBoost(frozenset([BOB]), boost=10)
        out = stage(bids)
        assert [b.priority for b in out] == [1, 11, 1]

    def test_case_insensitive_hex(self, bids):
        stage = AllowListBoost(frozenset([BOB.upper().replace("0X", "0x")]), boost=3)
        assert stage(bids)[1].priority == 4

    def test_opaque_addresses_exact(self):
        stage = AllowListBoost(frozenset(["Alice"]), boost=1)
        out = stage([Bid("alice", 1, 1, 0), Bid("Alice", 1, 1, 0)])
        assert [b.priority for b in out] == [0, 1]

    def test_from_file(self, tmp_path, bids):
        path = tmp_path / "emissaries.txt"
        path.write_text(f"{CAROL}\n")
        stage = AllowListBoost.from_file(path, boost=5)

        assert stage.name == "emissaries"
        assert stage(bids)[2].priority == 6


class TestBalanceRankBoost:
    """Tests for balance-ranked stages."""

    def test_tiers(self, bids):
        stage = BalanceRankBoost(
            balances={ALICE: 10, BOB: 300, CAROL: 200},
            tiers=(RankTier(top=2, boost=5), RankTier(top=1, boost=20)),
        )
        out = stage(bids)
        # BOB ranks first, CAROL second, ALICE third (outside every tier)
        assert [b.priority for b in out] == [1, 21, 6]

    def test_zero_balance_not_ranked(self, bids):
        stage = BalanceRankBoost(balances={ALICE: 0}, tiers=(RankTier(top=5, boost=1),))
        assert stage(bids)[0].priority == 1

    def test_equal_balances_ranked_by_address(self, bids):
        stage = BalanceRankBoost(
            balances={CAROL: 100, ALICE: 100},
            tiers=(RankTier(top=1, boost=1),),
        )
        assert stage.boosts() == {ALICE: 1}


class TestPipeline:
    """Tests for composing stages."""

    def test_stages_compose(self, bids):
        out = apply_priority_pipeline(bids, [
            AllowListBoost(frozenset([ALICE, BOB]), boost=1, name="engine-users"),
            AllowListBoost(frozenset([BOB]), boost=100, name="emissaries"),
        ])
        assert [b.priority for b in out] == [2, 102, 1]

    def test_input_untouched(self, bids):
        before = list(bids)
        apply_priority_pipeline(bids, [AllowListBoost(frozenset([ALICE]), boost=1)])
        assert bids == before

    def test_no_stages(self, bids):
        assert apply_priority_pipeline(bids, []) == bids

    def test_only_priority_changes(self, bids):
        out = apply_priority_pipeline(bids, [AllowListBoost(frozenset([ALICE]), boost=7)])
        assert (out[0].address, out[0].payment_amount, out[0].max_price) == (ALICE, 1_000_000, 500_000)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
