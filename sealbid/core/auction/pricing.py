"""
Pricing - Clearing-price search for uniform-price auctions.

Two supply constraints are supported:

FixedSupply(units)
    Every distinct max_price is a candidate. Demand at candidate p is the sum,
    over bids with max_price >= p, of what each bid buys at its own
    max_price. The highest p whose demand covers the supply clears. Bids that
    share a max_price form one demand bucket, so priority never influences
    the price.

FixedRaise(amount)
    Bids are walked in descending (max_price, priority) order accumulating
    payment; the bid whose payment crosses the target sets the price, and
    only the remainder of its payment counts.

Either search returns 0 when the constraint is never met.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from sealbid.core.auction.arithmetic import asset_for_payment
from sealbid.core.auction.types import (
    Bid,
    ClearingMode,
    FixedRaise,
    FixedSupply,
    ScaleConfig,
)
from sealbid.utils.logger import get_logger

logger = get_logger("pricing")


# =============================================================================
# Ordering
# =============================================================================


def order_bids(bids: Sequence[Bid]) -> List[Bid]:
    """
    Sort bids descending by (max_price, priority).

    The sort is stable, so bids equal on both keep their input order.
    """
    return sorted(bids, key=Bid.sort_key)


# =============================================================================
# Demand Curve
# =============================================================================


@dataclass(frozen=True)
class DemandLevel:
    """Aggregate demand at one candidate price."""
    price: int
    bucket_demand: int      # asset demanded by bids at exactly this price
    cumulative_demand: int  # asset demanded by bids at this price or higher
    bid_count: int


def demand_curve(bids: Sequence[Bid], scales: ScaleConfig) -> List[DemandLevel]:
    """
    Build the descending demand curve over distinct max_price values.

    Args:
        bids: Validated bids
        scales: Fixed-point scales

    Returns:
        DemandLevel per distinct price, highest price first
    """
    buckets: Dict[int, int] = defaultdict(int)
    counts: Dict[int, int] = defaultdict(int)

    for bid in bids:
        buckets[bid.max_price] += asset_for_payment(bid.payment_amount, bid.max_price, scales)
        counts[bid.max_price] += 1

    levels = []
    cumulative = 0
    for price in sorted(buckets, reverse=True):
        cumulative += buckets[price]
        levels.append(DemandLevel(
            price=price,
            bucket_demand=buckets[price],
            cumulative_demand=cumulative,
            bid_count=counts[price],
        ))
    return levels


# =============================================================================
# Clearing Price
# =============================================================================


def price_for_supply(bids: Sequence[Bid], units: int, scales: ScaleConfig) -> int:
    """Highest candidate price whose cumulative demand covers units, else 0."""
    for level in demand_curve(bids, scales):
        logger.debug(
            f"price={level.price} bucket={level.bucket_demand} "
            f"cumulative={level.cumulative_demand} supply={units}"
        )
        if level.cumulative_demand >= units:
            return level.price
    return 0


def price_for_raise(bids: Sequence[Bid], amount: int) -> int:
    """max_price of the bid whose payment crosses amount, else 0."""
    raised = 0
    for bid in order_bids(bids):
        raised += min(bid.payment_amount, amount - raised)
        if raised >= amount:
            return bid.max_price
    return 0


def find_clearing_price(
    bids: Sequence[Bid],
    mode: ClearingMode,
    scales: ScaleConfig,
) -> int:
    """
    Find the uniform clearing price.

    Args:
        bids: Validated, non-empty bid list
        mode: FixedSupply or FixedRaise
        scales: Fixed-point scales

    Returns:
        Clearing price in payment units per whole asset unit, 0 if the
        constraint cannot be met
    """
    if isinstance(mode, FixedSupply):
        return price_for_supply(bids, mode.units, scales)
    if isinstance(mode, FixedRaise):
        return price_for_raise(bids, mode.amount)
    raise ValueError(f"Unknown clearing mode: {mode!r}")
