"""
Engine - Single entry point for clearing an auction.

Validates inputs, finds the clearing price, allocates, and (by default)
audits the result before handing it back. A result that fails its audit is
never returned: VerificationError is raised instead.

The engine holds no state between calls; clearing independent auctions in
parallel needs no coordination.
"""

from typing import Iterable, List, Optional

from sealbid.core.auction.allocation import allocate
from sealbid.core.auction.pricing import find_clearing_price
from sealbid.core.auction.types import (
    DEFAULT_ASSET_TOLERANCE,
    DEFAULT_DUST_THRESHOLD,
    Bid,
    ClearingMode,
    ClearingResult,
    FixedRaise,
    FixedSupply,
    ScaleConfig,
)
from sealbid.core.auction.verification import VerificationReport, verify_result
from sealbid.utils.logger import get_logger

logger = get_logger("clearing")


def validate_inputs(bids: Iterable[Bid], mode: ClearingMode) -> List[Bid]:
    """
    Check bids and supply constraint before clearing.

    Returns:
        The bids as a list

    Raises:
        ValueError: empty bid list, degenerate bid, duplicate address,
            or invalid supply constraint
    """
    bids = list(bids)
    if not bids:
        raise ValueError("No bids provided")

    if not isinstance(mode, (FixedSupply, FixedRaise)):
        raise ValueError(f"Unknown clearing mode: {mode!r}")
    valid, err = mode.validate()
    if not valid:
        raise ValueError(f"Invalid supply constraint: {err}")

    seen = set()
    for bid in bids:
        valid, err = bid.validate()
        if not valid:
            raise ValueError(err)
        if bid.address in seen:
            raise ValueError(f"Duplicate bid for address {bid.address}")
        seen.add(bid.address)

    return bids


class ClearingEngine:
    """
    Uniform-price auction clearing.

    Accepts any settings object exposing scales, dust_threshold and
    asset_tolerance (see sealbid.core.config.AuctionSettings).
    """

    def __init__(self, settings=None):
        if settings is None:
            self.scales = ScaleConfig()
            self.dust_threshold = DEFAULT_DUST_THRESHOLD
            self.asset_tolerance = DEFAULT_ASSET_TOLERANCE
        else:
            self.scales = settings.scales
            self.dust_threshold = settings.dust_threshold
            self.asset_tolerance = settings.asset_tolerance

    def clear(
        self,
        bids: Iterable[Bid],
        mode: ClearingMode,
        verify: bool = True,
    ) -> ClearingResult:
        """
        Clear the auction once over a static bid set.

        Args:
            bids: Bids with unique addresses
            mode: FixedSupply or FixedRaise
            verify: Audit the result and raise on any violation

        Returns:
            ClearingResult (final_price == 0 when undersubscribed)

        Raises:
            ValueError: invalid inputs
            VerificationError: the computed result failed its audit
        """
        bids = validate_inputs(bids, mode)

        final_price = find_clearing_price(bids, mode, self.scales)
        if final_price == 0:
            logger.warning(
                f"Auction undersubscribed: {len(bids)} bids never reach {mode}; refunding all"
            )
        else:
            logger.info(f"Clearing price: {final_price} ({mode})")

        result = allocate(bids, final_price, mode, self.scales, self.dust_threshold)

        filled = sum(1 for _ in result.filled())
        logger.info(
            f"Allocated {result.total_asset} asset to {filled}/{len(bids)} bidders, "
            f"used={result.total_used} refunded={result.total_refunded}"
        )

        if verify:
            self.verify(bids, result, mode).raise_for_violations()

        return result

    def verify(
        self,
        bids: Iterable[Bid],
        result: ClearingResult,
        mode: Optional[ClearingMode] = None,
    ) -> VerificationReport:
        """Audit result against bids with this engine's scales and tolerance."""
        return verify_result(
            list(bids),
            result,
            scales=self.scales,
            asset_tolerance=self.asset_tolerance,
            mode=mode,
        )


def clear_auction(
    bids: Iterable[Bid],
    mode: ClearingMode,
    settings=None,
    verify: bool = True,
) -> ClearingResult:
    """Clear an auction with a throwaway ClearingEngine."""
    return ClearingEngine(settings).clear(bids, mode, verify=verify)
