"""
Input Validation - Sanitization for values crossing the engine boundary.

Provides validation for bid fields and clearing parameters to catch:
- Wrong types (floats, strings where integers are required)
- Negative payments and non-positive prices
- Malformed hex addresses for claim trees

All helpers return (is_valid, error_message) tuples.
"""

import re
from typing import Any, Tuple

# =============================================================================
# Constants
# =============================================================================

# uint256 bound (claim tree leaves are abi-encoded as uint256)
MAX_UINT256 = 2**256 - 1

MIN_AMOUNT = 0
MIN_PRICE = 1

HEX_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_UINT256,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Booleans are rejected even though they subclass int.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a fixed-point amount (non-negative)."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_UINT256)


def validate_price(price: Any, name: str = "max_price") -> Tuple[bool, str]:
    """Validate a fixed-point price (strictly positive)."""
    return validate_integer(price, name, MIN_PRICE, MAX_UINT256)


def validate_address(address: Any) -> Tuple[bool, str]:
    """Validate an opaque bidder address (non-empty, no whitespace)."""
    if not isinstance(address, str):
        return False, f"address must be str, got {type(address).__name__}"

    if not address:
        return False, "address must not be empty"

    if any(c.isspace() for c in address):
        return False, f"address must not contain whitespace: {address!r}"

    return True, ""


def validate_hex_address(address: Any) -> Tuple[bool, str]:
    """Validate a 20-byte 0x-prefixed hex address."""
    if not isinstance(address, str):
        return False, f"address must be str, got {type(address).__name__}"

    if not HEX_ADDRESS_PATTERN.match(address):
        return False, f"address must be 0x followed by 40 hex digits, got {address!r}"

    return True, ""


def is_hex_address(address: str) -> bool:
    """Check whether address looks like a 0x hex address."""
    return bool(HEX_ADDRESS_PATTERN.match(address))
