"""
Priority pipeline - Adjust bid priorities before clearing.

Each stage is a pure callable taking a bid list and returning a new one;
inputs are never mutated. Stages know about their adjustment source
(allow-list, balance ranking); the clearing engine only ever sees the final
priority values.

0x hex addresses are matched case-insensitively, other addresses exactly.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from sealbid.core.auction.types import Bid
from sealbid.core.bids.source import read_address_list, read_balances
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import is_hex_address

logger = get_logger("priority")


def match_key(address: str) -> str:
    """Normalize an address for list matching."""
    return address.lower() if is_hex_address(address) else address


class PriorityStage(Protocol):
    """A priority adjustment: bids -> bids."""
    name: str

    def __call__(self, bids: Sequence[Bid]) -> List[Bid]:
        ...


# =============================================================================
# Allow-list Boost
# =============================================================================


@dataclass(frozen=True)
class AllowListBoost:
    """
    Add a fixed boost to every listed address.

    Used for engine-user and manually curated allow-lists.
    """
    addresses: frozenset
    boost: int
    name: str = "allow-list"

    def __post_init__(self):
        object.__setattr__(self, "addresses", frozenset(match_key(a) for a in self.addresses))

    @classmethod
    def from_file(cls, path: Union[str, Path], boost: int, name: Optional[str] = None) -> "AllowListBoost":
        return cls(
            addresses=frozenset(read_address_list(path)),
            boost=boost,
            name=name or Path(path).stem,
        )

    def __call__(self, bids: Sequence[Bid]) -> List[Bid]:
        return [
            replace(bid, priority=bid.priority + self.boost)
            if match_key(bid.address) in self.addresses else bid
            for bid in bids
        ]


# =============================================================================
# Balance Rank Boost
# =============================================================================


@dataclass(frozen=True)
class RankTier:
    """Boost for addresses ranked within the top `top` balances."""
    top: int
    boost: int


@dataclass(frozen=True, eq=False)
class BalanceRankBoost:
    """
    Rank holders by balance and boost by tier.

    Holders are ranked descending by balance (address breaks ties); the first
    tier, by ascending `top`, whose cutoff covers a holder's rank applies.
    Zero or negative balances are not ranked.
    """
    balances: Mapping[str, int]
    tiers: Tuple[RankTier, ...]
    name: str = "balance-rank"

    def __post_init__(self):
        object.__setattr__(self, "tiers", tuple(sorted(self.tiers, key=lambda t: t.top)))

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        tiers: Iterable[RankTier],
        name: Optional[str] = None,
    ) -> "BalanceRankBoost":
        return cls(balances=read_balances(path), tiers=tuple(tiers), name=name or Path(path).stem)

    def boosts(self) -> Dict[str, int]:
        """match_key(address) -> boost for every ranked holder that earns one."""
        holders = sorted(
            ((match_key(a), b) for a, b in self.balances.items() if b > 0),
            key=lambda item: (-item[1], item[0]),
        )
        result = {}
        for rank, (key, _) in enumerate(holders):
            for tier in self.tiers:
                if rank < tier.top:
                    result[key] = tier.boost
                    break
        return result

    def __call__(self, bids: Sequence[Bid]) -> List[Bid]:
        boosts = self.boosts()
        return [
            replace(bid, priority=bid.priority + boosts[match_key(bid.address)])
            if match_key(bid.address) in boosts else bid
            for bid in bids
        ]


# =============================================================================
# Pipeline
# =============================================================================


def apply_priority_pipeline(bids: Sequence[Bid], stages: Sequence[PriorityStage]) -> List[Bid]:
    """
    Run priority stages in order.

    Args:
        bids: Input bids (left untouched)
        stages: Adjustment stages

    Returns:
        New bid list with adjusted priorities, same order as input
    """
    current = list(bids)
    for stage in stages:
        adjusted = stage(current)
        changed = sum(1 for before, after in zip(current, adjusted) if before.priority != after.priority)
        logger.info(f"Priority stage '{stage.name}' boosted {changed} bids")
        current = adjusted
    return current
