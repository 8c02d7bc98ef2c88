"""
Verification - Independent audit of a clearing result.

Re-derives every invariant from (bids, final_price, allocations) alone, so it
can run against a result loaded from disk as well as one fresh from the
engine. Violations are collected rather than corrected; each names the
bidder and the invariant that broke.

Invariants checked:
- every bid has exactly one allocation, and no allocation lacks a bid
- amounts are non-negative
- used + refunded == payment (per bidder)
- final_price > 0: asset == floor(used * asset_scale / final_price),
  within a fixed asset tolerance
- final_price > 0: bids below the price receive no asset
- final_price == 0: no asset and no used payment
- final_price > 0: in allocation (clearing) order, nobody at or above the
  price receives asset after a partially filled bidder
- sum(used) + sum(refunded) == sum(payment)
- optionally, the supply ceiling or raise target is not exceeded
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from sealbid.core.auction.arithmetic import asset_for_payment, payment_for_asset
from sealbid.core.auction.types import (
    DEFAULT_ASSET_TOLERANCE,
    Allocation,
    Bid,
    ClearingMode,
    ClearingResult,
    FixedRaise,
    FixedSupply,
    ScaleConfig,
)
from sealbid.utils.logger import get_logger

logger = get_logger("verification")


# =============================================================================
# Report Types
# =============================================================================


@dataclass(frozen=True)
class Violation:
    """One broken invariant."""
    invariant: str
    detail: str
    address: Optional[str] = None

    def __str__(self) -> str:
        who = self.address if self.address is not None else "<global>"
        return f"[{self.invariant}] {who}: {self.detail}"


@dataclass
class VerificationReport:
    """Result of auditing a clearing result."""
    final_price: int
    violations: List[Violation] = field(default_factory=list)
    total_payment: int = 0
    total_asset: int = 0
    total_used: int = 0
    total_refunded: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def add(self, invariant: str, detail: str, address: Optional[str] = None) -> None:
        self.violations.append(Violation(invariant=invariant, detail=detail, address=address))

    def summary(self) -> dict:
        return {
            "final_price": self.final_price,
            "total_payment": self.total_payment,
            "total_asset": self.total_asset,
            "total_used": self.total_used,
            "total_refunded": self.total_refunded,
            "violations": len(self.violations),
        }

    def raise_for_violations(self) -> None:
        """Raise VerificationError if any invariant failed."""
        if not self.is_valid:
            raise VerificationError(self)


class VerificationError(Exception):
    """A clearing result failed its audit and must not be persisted."""

    def __init__(self, report: VerificationReport):
        self.report = report
        lines = [f"Clearing verification failed at price {report.final_price}:"]
        lines.extend(f"  {v}" for v in report.violations)
        super().__init__("\n".join(lines))


# =============================================================================
# Audit
# =============================================================================


def _check_bid(
    report: VerificationReport,
    bid: Bid,
    alloc: Allocation,
    final_price: int,
    scales: ScaleConfig,
    asset_tolerance: int,
) -> None:
    address = bid.address

    negatives = [
        name for name in ("asset_amount", "used_payment", "refunded_payment")
        if getattr(alloc, name) < 0
    ]
    for name in negatives:
        report.add("non_negative", f"{name} is {getattr(alloc, name)}", address)
    if negatives:
        return

    if alloc.used_payment + alloc.refunded_payment != bid.payment_amount:
        report.add(
            "conservation",
            f"used {alloc.used_payment} + refunded {alloc.refunded_payment} "
            f"!= payment {bid.payment_amount}",
            address,
        )

    if final_price == 0:
        if alloc.asset_amount != 0 or alloc.used_payment != 0:
            report.add(
                "undersubscribed_refund",
                f"auction failed but asset={alloc.asset_amount} used={alloc.used_payment}",
                address,
            )
        return

    if bid.max_price < final_price and alloc.asset_amount != 0:
        report.add(
            "below_price_exclusion",
            f"max_price {bid.max_price} < final_price {final_price} but asset={alloc.asset_amount}",
            address,
        )

    expected = asset_for_payment(alloc.used_payment, final_price, scales)
    if abs(alloc.asset_amount - expected) > asset_tolerance:
        report.add(
            "price_consistency",
            f"asset {alloc.asset_amount} != floor(used * scale / price) {expected} "
            f"(tolerance {asset_tolerance})",
            address,
        )


def _check_fill_order(
    report: VerificationReport,
    bids_by_address: Mapping[str, Bid],
    final_price: int,
    allocations: Mapping[str, Allocation],
    scales: ScaleConfig,
) -> None:
    """
    Walk allocations in their (clearing) order; once a bidder at or above the
    price pays less than a full fill costs, supply is exhausted and every
    later bidder must get zero asset.
    """
    exhausted_by = None
    for address, alloc in allocations.items():
        bid = bids_by_address.get(address)
        if bid is None or bid.max_price < final_price:
            continue

        if exhausted_by is not None:
            if alloc.asset_amount > 0:
                report.add(
                    "fill_after_exhaustion",
                    f"asset={alloc.asset_amount} after partial fill of {exhausted_by}",
                    address,
                )
            continue

        wanted = asset_for_payment(bid.payment_amount, final_price, scales)
        if alloc.used_payment < payment_for_asset(wanted, final_price, scales):
            exhausted_by = address


def verify_allocations(
    bids: Sequence[Bid],
    final_price: int,
    allocations: Mapping[str, Allocation],
    scales: Optional[ScaleConfig] = None,
    asset_tolerance: int = DEFAULT_ASSET_TOLERANCE,
    mode: Optional[ClearingMode] = None,
) -> VerificationReport:
    """
    Audit allocations against the bids they were computed from.

    Args:
        bids: Bids the clearing ran over
        final_price: Clearing price (0 = undersubscribed)
        allocations: address -> Allocation
        scales: Fixed-point scales (defaults to 6/18 decimals)
        asset_tolerance: Allowed asset deviation from the price relation
        mode: When given, also check the supply ceiling / raise target

    Returns:
        VerificationReport; never raises for invariant failures
    """
    scales = scales or ScaleConfig()
    report = VerificationReport(final_price=final_price)

    if final_price < 0:
        report.add("non_negative", f"final_price is {final_price}")

    seen = {}
    for bid in bids:
        if bid.address in seen:
            report.add("unique_bidder", "address appears in more than one bid", bid.address)
            continue
        seen[bid.address] = bid
        report.total_payment += bid.payment_amount

        alloc = allocations.get(bid.address)
        if alloc is None:
            report.add("missing_allocation", "bid has no allocation", bid.address)
            continue

        report.total_asset += alloc.asset_amount
        report.total_used += alloc.used_payment
        report.total_refunded += alloc.refunded_payment
        _check_bid(report, bid, alloc, final_price, scales, asset_tolerance)

    for address in allocations:
        if address not in seen:
            report.add("unknown_bidder", "allocation has no matching bid", address)

    if final_price > 0:
        _check_fill_order(report, seen, final_price, allocations, scales)

    if report.total_used + report.total_refunded != report.total_payment:
        report.add(
            "global_conservation",
            f"sum used {report.total_used} + sum refunded {report.total_refunded} "
            f"!= sum payment {report.total_payment}",
        )

    if isinstance(mode, FixedSupply) and report.total_asset > mode.units:
        report.add(
            "supply_ceiling",
            f"allocated {report.total_asset} exceeds supply {mode.units}",
        )
    elif isinstance(mode, FixedRaise) and report.total_used > mode.amount:
        report.add(
            "raise_target",
            f"used {report.total_used} exceeds raise target {mode.amount}",
        )

    if report.is_valid:
        logger.info(
            f"Verification passed: price={final_price} asset={report.total_asset} "
            f"used={report.total_used} refunded={report.total_refunded}"
        )
    else:
        for violation in report.violations:
            logger.error(f"Verification failed: {violation}")

    return report


def verify_result(
    bids: Sequence[Bid],
    result: ClearingResult,
    scales: Optional[ScaleConfig] = None,
    asset_tolerance: int = DEFAULT_ASSET_TOLERANCE,
    mode: Optional[ClearingMode] = None,
) -> VerificationReport:
    """Audit a ClearingResult."""
    return verify_allocations(
        bids,
        result.final_price,
        result.allocations,
        scales=scales,
        asset_tolerance=asset_tolerance,
        mode=mode,
    )
