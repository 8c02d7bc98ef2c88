"""
Allocation - Assign asset and refunds once the clearing price is known.

Bids at or above the price are filled in descending (max_price, priority)
order until the supply (or raise target) runs out; the bid that exhausts it
is the marginal bidder and receives only the remainder. Everyone below the
price, or after exhaustion, is fully refunded.

Every asset amount is derived back from the payment actually used, so
asset == floor(used * asset_scale / price) holds exactly. For the marginal
bidder this rounds the remainder down to what whole payment units buy; the
sliver left over (fewer than asset_scale / price + 1 units) stays unsold and
is never offered to the bidders queued behind.
"""

from typing import Dict, Sequence

from sealbid.core.auction.arithmetic import asset_for_payment, payment_for_asset
from sealbid.core.auction.pricing import order_bids
from sealbid.core.auction.types import (
    DEFAULT_DUST_THRESHOLD,
    Allocation,
    Bid,
    ClearingMode,
    ClearingResult,
    FixedRaise,
    FixedSupply,
    ScaleConfig,
)
from sealbid.utils.logger import get_logger

logger = get_logger("allocation")


def _allocate_supply(
    ordered: Sequence[Bid],
    final_price: int,
    units: int,
    scales: ScaleConfig,
    dust_threshold: int,
) -> Dict[str, Allocation]:
    allocations: Dict[str, Allocation] = {}
    remaining = units

    for bid in ordered:
        if bid.max_price < final_price or remaining == 0:
            allocations[bid.address] = Allocation.refund(bid)
            continue

        wanted = asset_for_payment(bid.payment_amount, final_price, scales)
        target = min(wanted, remaining)
        used = payment_for_asset(target, final_price, scales)
        refunded = bid.payment_amount - used

        # Fully filled: floor(payment * asset_scale / price) == target, so the
        # residue can count as used without breaking the price relation
        if target > 0 and target == wanted and 0 < refunded <= dust_threshold:
            used += refunded
            refunded = 0

        # Asset is derived from what was paid; never exceeds target
        granted = asset_for_payment(used, final_price, scales)

        if target < wanted:
            logger.info(
                f"Marginal bidder {bid.address}: granted {granted} of {wanted}, refund {refunded}"
            )
        else:
            logger.debug(f"Filled {bid.address}: asset={granted} used={used}")

        allocations[bid.address] = Allocation(
            asset_amount=granted,
            used_payment=used,
            refunded_payment=refunded,
        )
        # Supply is exhausted at the marginal bidder, rounding sliver included
        remaining = 0 if target < wanted else remaining - granted

    return allocations


def _allocate_raise(
    ordered: Sequence[Bid],
    final_price: int,
    amount: int,
    scales: ScaleConfig,
) -> Dict[str, Allocation]:
    allocations: Dict[str, Allocation] = {}
    remaining = amount

    for bid in ordered:
        if bid.max_price < final_price or remaining == 0:
            allocations[bid.address] = Allocation.refund(bid)
            continue

        used = min(bid.payment_amount, remaining)
        if used < bid.payment_amount:
            logger.info(
                f"Marginal bidder {bid.address}: spends {used} of {bid.payment_amount}"
            )

        allocations[bid.address] = Allocation(
            asset_amount=asset_for_payment(used, final_price, scales),
            used_payment=used,
            refunded_payment=bid.payment_amount - used,
        )
        remaining -= used

    return allocations


def allocate(
    bids: Sequence[Bid],
    final_price: int,
    mode: ClearingMode,
    scales: ScaleConfig,
    dust_threshold: int = DEFAULT_DUST_THRESHOLD,
) -> ClearingResult:
    """
    Compute per-bidder allocations at final_price.

    Args:
        bids: Validated bids with unique addresses
        final_price: Output of find_clearing_price (0 = undersubscribed)
        mode: Supply constraint the price was found for
        scales: Fixed-point scales
        dust_threshold: Largest refund on a fully filled bid treated as
            rounding residue

    Returns:
        ClearingResult with allocations in clearing order
    """
    ordered = order_bids(bids)

    if final_price == 0:
        return ClearingResult(
            final_price=0,
            allocations={bid.address: Allocation.refund(bid) for bid in ordered},
        )

    if isinstance(mode, FixedSupply):
        allocations = _allocate_supply(ordered, final_price, mode.units, scales, dust_threshold)
    elif isinstance(mode, FixedRaise):
        allocations = _allocate_raise(ordered, final_price, mode.amount, scales)
    else:
        raise ValueError(f"Unknown clearing mode: {mode!r}")

    return ClearingResult(final_price=final_price, allocations=allocations)
