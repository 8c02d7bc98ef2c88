"""
Bid Source - Read sealed bids from text files.

Format: one bid per line, whitespace separated

    <address> <payment_amount> <max_price> <priority>

Integers are fixed-point in payment scale. Blank lines and lines starting
with '#' are ignored. A record with a missing, extra or non-integer field, a
negative payment, a non-positive max_price, or an address already seen is
discarded and reported; it is never zero-filled.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sealbid.core.auction.types import Bid
from sealbid.utils.logger import get_logger

logger = get_logger("bids")

INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

BID_FIELDS = ("address", "payment_amount", "max_price", "priority")


# =============================================================================
# Record Model
# =============================================================================


class BidRecord(BaseModel):
    """One parsed bid record, validated at the file boundary."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    address: str = Field(min_length=1)
    payment_amount: int = Field(ge=0)
    max_price: int = Field(gt=0)
    priority: int

    @field_validator("payment_amount", "max_price", "priority", mode="before")
    @classmethod
    def parse_integer(cls, value):
        """Accept ints and plain decimal integer strings only."""
        if isinstance(value, bool):
            raise ValueError("must be an integer")
        if isinstance(value, str):
            if not INTEGER_PATTERN.match(value):
                raise ValueError(f"not an integer: {value!r}")
            return int(value, 10)
        if not isinstance(value, int):
            raise ValueError(f"must be an integer, got {type(value).__name__}")
        return value

    def to_bid(self) -> Bid:
        return Bid(
            address=self.address,
            payment_amount=self.payment_amount,
            max_price=self.max_price,
            priority=self.priority,
        )


# =============================================================================
# Parsing
# =============================================================================


@dataclass(frozen=True)
class RejectedRecord:
    """A discarded input line."""
    line_number: int
    raw: str
    reason: str


@dataclass
class BidParseResult:
    """Bids accepted from a source plus the records that were discarded."""
    bids: List[Bid] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_bid_lines(lines: Iterable[str]) -> BidParseResult:
    """
    Parse bid records, discarding malformed ones.

    Args:
        lines: Text lines in bid file format

    Returns:
        BidParseResult with bids in input order
    """
    result = BidParseResult()
    seen = set()

    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        parts = stripped.split()
        if len(parts) < len(BID_FIELDS):
            missing = ", ".join(BID_FIELDS[len(parts):])
            result.rejected.append(RejectedRecord(line_number, stripped, f"missing fields: {missing}"))
            continue
        if len(parts) > len(BID_FIELDS):
            extra = " ".join(parts[len(BID_FIELDS):])
            result.rejected.append(RejectedRecord(line_number, stripped, f"unexpected extra fields: {extra}"))
            continue

        try:
            record = BidRecord(**dict(zip(BID_FIELDS, parts)))
        except ValidationError as e:
            result.rejected.append(RejectedRecord(line_number, stripped, _describe(e)))
            continue

        if record.address in seen:
            result.rejected.append(RejectedRecord(line_number, stripped, "duplicate address"))
            continue

        seen.add(record.address)
        result.bids.append(record.to_bid())

    for rejected in result.rejected:
        logger.warning(f"Skipping bid line {rejected.line_number} ({rejected.reason}): {rejected.raw!r}")
    logger.info(f"Parsed {len(result.bids)} bids, discarded {len(result.rejected)}")

    return result


def read_bids(path: Union[str, Path]) -> BidParseResult:
    """Read and parse a bid file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_bid_lines(f)


def format_bids(bids: Iterable[Bid]) -> str:
    """Render bids back into bid file format."""
    return "".join(
        f"{b.address} {b.payment_amount} {b.max_price} {b.priority}\n" for b in bids
    )


# =============================================================================
# Auxiliary Lists
# =============================================================================


def read_address_list(path: Union[str, Path]) -> List[str]:
    """
    Read an allow-list: first token of each non-blank, non-comment line.
    """
    addresses = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                addresses.append(stripped.split()[0])
    return addresses


def read_balances(path: Union[str, Path]) -> Dict[str, int]:
    """
    Read '<address> <balance>' lines; malformed lines are skipped.
    """
    balances: Dict[str, int] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            parts = stripped.split()
            if len(parts) < 2 or not INTEGER_PATTERN.match(parts[1]):
                logger.warning(f"Skipping balance line {line_number}: {stripped!r}")
                continue
            balances[parts[0]] = int(parts[1], 10)
    return balances
