"""
Distribution - Reward splits derived from clearing results.

Manages:
- Staked-share splits (a fixed fraction of each bidder's asset allocation)
- Proportional splits of a fixed reward pool by weight

All splits floor per recipient, so the distributed total never exceeds the
pool; the undistributed remainder is reported, not reassigned.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping

from sealbid.core.auction import Allocation
from sealbid.utils.logger import get_logger

logger = get_logger("distribution")


@dataclass
class DistributionSummary:
    """Per-recipient amounts plus totals."""
    shares: Dict[str, int] = field(default_factory=dict)
    source_total: int = 0       # asset (staked share) or pool size (proportional)
    distributed_total: int = 0

    @property
    def recipients(self) -> int:
        return len(self.shares)

    @property
    def remainder(self) -> int:
        return self.source_total - self.distributed_total

    def to_json_dict(self) -> Dict[str, str]:
        """address -> amount as decimal string"""
        return {address: str(amount) for address, amount in self.shares.items()}

    def stats(self) -> dict:
        return {
            "recipients": self.recipients,
            "source_total": self.source_total,
            "distributed_total": self.distributed_total,
            "remainder": self.remainder,
        }


def staked_share(
    allocations: Mapping[str, Allocation],
    numerator: int = 25,
    denominator: int = 100,
) -> DistributionSummary:
    """
    Give each bidder floor(asset_amount * numerator / denominator).

    Zero shares are omitted. source_total sums the asset of bidders that
    received a share.

    Args:
        allocations: address -> Allocation (asset scale amounts)
        numerator: Share numerator
        denominator: Share denominator
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if numerator < 0 or numerator > denominator:
        raise ValueError(f"share must be within [0, 1], got {numerator}/{denominator}")

    summary = DistributionSummary()
    for address, alloc in allocations.items():
        share = (alloc.asset_amount * numerator) // denominator
        if share > 0:
            summary.shares[address] = share
            summary.source_total += alloc.asset_amount
            summary.distributed_total += share

    logger.info(
        f"Staked share {numerator}/{denominator}: {summary.recipients} recipients, "
        f"{summary.distributed_total} of {summary.source_total}"
    )
    return summary


def proportional_split(weights: Mapping[str, int], total: int) -> DistributionSummary:
    """
    Split total across addresses in proportion to their weights.

    Each address gets floor(weight * total / sum(weights)).

    Raises:
        ValueError: empty or all-zero weights, negative weight or total,
            or a split exceeding total
    """
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    if any(w < 0 for w in weights.values()):
        raise ValueError("weights must be non-negative")

    weight_sum = sum(weights.values())
    if weight_sum == 0:
        raise ValueError("No weight to split over")

    summary = DistributionSummary(source_total=total)
    for address, weight in weights.items():
        share = (weight * total) // weight_sum
        summary.shares[address] = share
        summary.distributed_total += share

    if summary.distributed_total > total:
        raise ValueError(
            f"Distributed {summary.distributed_total} exceeds available {total}"
        )

    logger.info(
        f"Proportional split: {summary.recipients} recipients, "
        f"{summary.distributed_total} of {total} (remainder {summary.remainder})"
    )
    return summary
