"""
Auction data model.

Bids, scale configuration, the clearing-mode variant and the immutable
clearing result. All quantities are fixed-point integers:

- payment values (payment_amount, max_price, used/refunded payment) use
  ScaleConfig.payment_scale (6 decimals by default)
- asset values (supply units, asset_amount) use ScaleConfig.asset_scale
  (18 decimals by default)

A price is payment-scale units per whole asset unit.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple, Union

from sealbid.utils.validation import validate_address, validate_amount, validate_price


# =============================================================================
# Constants
# =============================================================================

PAYMENT_SCALE = 10**6
ASSET_SCALE = 10**18

# Refunds at or below this many payment units on a fully filled bid are
# rounding residue and count as used
DEFAULT_DUST_THRESHOLD = 2

# Allowed |asset - floor(used * asset_scale / price)| in asset units
DEFAULT_ASSET_TOLERANCE = 1


# =============================================================================
# Bids
# =============================================================================


@dataclass(frozen=True)
class Bid:
    """
    One sealed order.

    Attributes:
        address: Opaque bidder identifier
        payment_amount: Committed payment (payment scale)
        max_price: Highest acceptable price per whole asset unit
        priority: Tie-break rank among equal max_price, higher first
    """
    address: str
    payment_amount: int
    max_price: int
    priority: int = 0

    def validate(self) -> Tuple[bool, str]:
        """
        Check the bid is usable for clearing.

        Returns:
            (is_valid, error_message)
        """
        for valid, err in (
            validate_address(self.address),
            validate_amount(self.payment_amount, "payment_amount"),
            validate_price(self.max_price),
        ):
            if not valid:
                return False, f"bid {self.address!r}: {err}"

        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            return False, f"bid {self.address!r}: priority must be int"

        return True, ""

    def sort_key(self) -> Tuple[int, int]:
        """Descending clearing order key: (max_price, priority)."""
        return (-self.max_price, -self.priority)


# =============================================================================
# Scales & Modes
# =============================================================================


@dataclass(frozen=True)
class ScaleConfig:
    """Fixed-point bases for payment and asset quantities."""
    payment_scale: int = PAYMENT_SCALE
    asset_scale: int = ASSET_SCALE

    def __post_init__(self):
        if self.payment_scale <= 0 or self.asset_scale <= 0:
            raise ValueError(
                f"Scales must be positive, got payment={self.payment_scale}, asset={self.asset_scale}"
            )


@dataclass(frozen=True)
class FixedSupply:
    """Sell a fixed number of asset units (asset scale)."""
    units: int

    def validate(self) -> Tuple[bool, str]:
        valid, err = validate_amount(self.units, "supply units")
        if valid and self.units == 0:
            return False, "supply units must be positive"
        return valid, err


@dataclass(frozen=True)
class FixedRaise:
    """Raise a fixed amount of payment currency (payment scale)."""
    amount: int

    def validate(self) -> Tuple[bool, str]:
        valid, err = validate_amount(self.amount, "raise amount")
        if valid and self.amount == 0:
            return False, "raise amount must be positive"
        return valid, err


ClearingMode = Union[FixedSupply, FixedRaise]


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class Allocation:
    """What one bidder receives."""
    asset_amount: int = 0
    used_payment: int = 0
    refunded_payment: int = 0

    @classmethod
    def refund(cls, bid: Bid) -> "Allocation":
        """Full refund, nothing allocated."""
        return cls(asset_amount=0, used_payment=0, refunded_payment=bid.payment_amount)

    def to_tuple(self) -> Tuple[int, int, int]:
        return (self.asset_amount, self.used_payment, self.refunded_payment)


@dataclass(frozen=True)
class ClearingResult:
    """
    Outcome of one clearing run.

    final_price == 0 means the auction was undersubscribed and every bidder
    is fully refunded. allocations keeps the clearing sort order.
    """
    final_price: int
    allocations: Mapping[str, Allocation]

    def __post_init__(self):
        # Freeze the mapping so a persisted result cannot drift from its audit
        object.__setattr__(self, "allocations", MappingProxyType(dict(self.allocations)))

    @property
    def successful(self) -> bool:
        return self.final_price > 0

    @property
    def total_asset(self) -> int:
        return sum(a.asset_amount for a in self.allocations.values())

    @property
    def total_used(self) -> int:
        return sum(a.used_payment for a in self.allocations.values())

    @property
    def total_refunded(self) -> int:
        return sum(a.refunded_payment for a in self.allocations.values())

    def filled(self) -> Iterator[Tuple[str, Allocation]]:
        """Bidders that received a non-zero asset amount."""
        for address, alloc in self.allocations.items():
            if alloc.asset_amount > 0:
                yield address, alloc

    def to_dict(self) -> Dict:
        """Plain-data form; integers as decimal strings to keep precision."""
        return {
            "final_price": str(self.final_price),
            "allocations": {
                address: {
                    "asset_amount": str(a.asset_amount),
                    "used_payment": str(a.used_payment),
                    "refunded_payment": str(a.refunded_payment),
                }
                for address, a in self.allocations.items()
            },
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, ClearingResult):
            return NotImplemented
        return (
            self.final_price == other.final_price
            and list(self.allocations.items()) == list(other.allocations.items())
        )

    def __hash__(self) -> int:
        return hash((self.final_price, tuple(self.allocations.items())))
