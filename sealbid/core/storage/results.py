"""
Result Sink - Persist and reload clearing results.

Text format (one allocation per line, integers in their fixed-point scales):

    Final Price: <final_price>

    Allocations:
    <address> <asset_amount> <used_payment> <refunded_payment>

JSON format: ClearingResult.to_dict(), integers as decimal strings.

Writers can audit the result against its bids first and refuse to persist a
result that fails verification.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

from sealbid.core.auction import (
    DEFAULT_ASSET_TOLERANCE,
    Allocation,
    Bid,
    ClearingMode,
    ClearingResult,
    ScaleConfig,
    verify_result,
)
from sealbid.utils.logger import get_logger

logger = get_logger("storage.results")

PRICE_HEADER = "Final Price:"
ALLOCATIONS_HEADER = "Allocations:"


class ResultFormatError(ValueError):
    """A persisted result could not be parsed."""


# =============================================================================
# Writing
# =============================================================================


def format_result(result: ClearingResult) -> str:
    """Render a result in the text format."""
    lines = [f"{PRICE_HEADER} {result.final_price}", "", ALLOCATIONS_HEADER]
    for address, a in result.allocations.items():
        lines.append(f"{address} {a.asset_amount} {a.used_payment} {a.refunded_payment}")
    return "\n".join(lines) + "\n"


def _audit_before_write(
    result: ClearingResult,
    bids: Optional[Sequence[Bid]],
    scales: Optional[ScaleConfig],
    mode: Optional[ClearingMode],
    asset_tolerance: int,
) -> None:
    if bids is None:
        return
    verify_result(bids, result, scales=scales, asset_tolerance=asset_tolerance, mode=mode).raise_for_violations()


def write_result(
    path: Union[str, Path],
    result: ClearingResult,
    bids: Optional[Sequence[Bid]] = None,
    scales: Optional[ScaleConfig] = None,
    mode: Optional[ClearingMode] = None,
    asset_tolerance: int = DEFAULT_ASSET_TOLERANCE,
) -> Path:
    """
    Write a result in the text format.

    Args:
        path: Output file
        result: Clearing result
        bids: When given, the result is verified against them first
        scales: Scales for verification
        mode: Supply constraint for verification
        asset_tolerance: Tolerance for verification

    Returns:
        Path written

    Raises:
        VerificationError: the result failed verification (nothing written)
    """
    _audit_before_write(result, bids, scales, mode, asset_tolerance)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_result(result), encoding="utf-8")
    logger.info(f"Wrote {len(result.allocations)} allocations to {path}")
    return path


def write_result_json(
    path: Union[str, Path],
    result: ClearingResult,
    bids: Optional[Sequence[Bid]] = None,
    scales: Optional[ScaleConfig] = None,
    mode: Optional[ClearingMode] = None,
    asset_tolerance: int = DEFAULT_ASSET_TOLERANCE,
) -> Path:
    """Write a result as JSON; same verification contract as write_result."""
    _audit_before_write(result, bids, scales, mode, asset_tolerance)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    logger.info(f"Wrote {len(result.allocations)} allocations to {path}")
    return path


# =============================================================================
# Reading
# =============================================================================


def _parse_int(token: str, what: str, line_number: int) -> int:
    try:
        value = int(token, 10)
    except ValueError:
        raise ResultFormatError(f"line {line_number}: {what} is not an integer: {token!r}") from None
    if value < 0:
        raise ResultFormatError(f"line {line_number}: {what} is negative: {value}")
    return value


def parse_result_lines(lines: Iterable[str]) -> ClearingResult:
    """
    Parse the text format.

    Raises:
        ResultFormatError: missing headers, malformed or duplicate rows
    """
    final_price: Optional[int] = None
    in_allocations = False
    allocations: Dict[str, Allocation] = {}

    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue

        if final_price is None:
            if not stripped.startswith(PRICE_HEADER):
                raise ResultFormatError(f"line {line_number}: expected '{PRICE_HEADER}'")
            final_price = _parse_int(stripped[len(PRICE_HEADER):].strip(), "final price", line_number)
            continue

        if not in_allocations:
            if stripped != ALLOCATIONS_HEADER:
                raise ResultFormatError(f"line {line_number}: expected '{ALLOCATIONS_HEADER}'")
            in_allocations = True
            continue

        parts = stripped.split()
        if len(parts) != 4:
            raise ResultFormatError(f"line {line_number}: expected 4 fields, got {len(parts)}")
        address = parts[0]
        if address in allocations:
            raise ResultFormatError(f"line {line_number}: duplicate address {address}")
        allocations[address] = Allocation(
            asset_amount=_parse_int(parts[1], "asset_amount", line_number),
            used_payment=_parse_int(parts[2], "used_payment", line_number),
            refunded_payment=_parse_int(parts[3], "refunded_payment", line_number),
        )

    if final_price is None:
        raise ResultFormatError(f"missing '{PRICE_HEADER}' line")
    if not in_allocations:
        raise ResultFormatError(f"missing '{ALLOCATIONS_HEADER}' section")

    return ClearingResult(final_price=final_price, allocations=allocations)


def read_result(path: Union[str, Path]) -> ClearingResult:
    """Read a result in the text format."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_result_lines(f)


def read_result_json(path: Union[str, Path]) -> ClearingResult:
    """Read a result written by write_result_json."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        allocations = {
            address: Allocation(
                asset_amount=int(entry["asset_amount"]),
                used_payment=int(entry["used_payment"]),
                refunded_payment=int(entry["refunded_payment"]),
            )
            for address, entry in data["allocations"].items()
        }
        return ClearingResult(final_price=int(data["final_price"]), allocations=allocations)
    except (KeyError, TypeError, ValueError) as e:
        raise ResultFormatError(f"{path}: malformed result JSON ({e})") from e


def load_result(path: Union[str, Path]) -> ClearingResult:
    """Read a result, picking the format from the file extension."""
    if Path(path).suffix.lower() == ".json":
        return read_result_json(path)
    return read_result(path)
