"""
Sealbid Auction Module.

Uniform-price clearing over sealed bids:
- Clearing-price search (fixed supply or fixed raise)
- Allocation with priority tie-breaks for the marginal bidder
- Independent verification of conservation and price consistency
"""

from sealbid.core.auction.types import (
    Bid,
    ScaleConfig,
    FixedSupply,
    FixedRaise,
    ClearingMode,
    Allocation,
    ClearingResult,
    PAYMENT_SCALE,
    ASSET_SCALE,
    DEFAULT_DUST_THRESHOLD,
    DEFAULT_ASSET_TOLERANCE,
)

from sealbid.core.auction.pricing import (
    DemandLevel,
    demand_curve,
    find_clearing_price,
    order_bids,
)

from sealbid.core.auction.allocation import allocate

from sealbid.core.auction.verification import (
    Violation,
    VerificationReport,
    VerificationError,
    verify_allocations,
    verify_result,
)

from sealbid.core.auction.engine import (
    ClearingEngine,
    clear_auction,
    validate_inputs,
)

__all__ = [
    # Types
    "Bid",
    "ScaleConfig",
    "FixedSupply",
    "FixedRaise",
    "ClearingMode",
    "Allocation",
    "ClearingResult",
    "PAYMENT_SCALE",
    "ASSET_SCALE",
    "DEFAULT_DUST_THRESHOLD",
    "DEFAULT_ASSET_TOLERANCE",
    # Pricing
    "DemandLevel",
    "demand_curve",
    "find_clearing_price",
    "order_bids",
    # Allocation
    "allocate",
    # Verification
    "Violation",
    "VerificationReport",
    "VerificationError",
    "verify_allocations",
    "verify_result",
    # Engine
    "ClearingEngine",
    "clear_auction",
    "validate_inputs",
]
