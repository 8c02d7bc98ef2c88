"""
Bid intake: parsing bid files and adjusting priorities before clearing.
"""

from sealbid.core.bids.source import (
    BidRecord,
    BidParseResult,
    RejectedRecord,
    parse_bid_lines,
    read_bids,
    format_bids,
    read_address_list,
    read_balances,
)

from sealbid.core.bids.priority import (
    PriorityStage,
    AllowListBoost,
    BalanceRankBoost,
    RankTier,
    apply_priority_pipeline,
    match_key,
)

__all__ = [
    "BidRecord",
    "BidParseResult",
    "RejectedRecord",
    "parse_bid_lines",
    "read_bids",
    "format_bids",
    "read_address_list",
    "read_balances",
    "PriorityStage",
    "AllowListBoost",
    "BalanceRankBoost",
    "RankTier",
    "apply_priority_pipeline",
    "match_key",
]
