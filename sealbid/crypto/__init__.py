"""
Hashing and ABI encoding primitives for sealbid.

This module provides:
- Keccak-256 (Ethereum-style) for claim tree leaves and nodes
- Hex conversion helpers
- Static ABI encoding for the leaf types claim trees use

Only static types are supported (address, uint256, bool), which is all an
allocation claim leaf carries.
"""

from typing import Any, Sequence

from Crypto.Hash import keccak

from sealbid.utils.validation import validate_hex_address, validate_integer, MAX_UINT256


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: claim tree leaves and internal nodes.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Hex Helpers
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Decode hex string, with or without 0x prefix."""
    if hex_str.startswith(("0x", "0X")):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# ABI Encoding
# =============================================================================

SUPPORTED_ABI_TYPES = ("address", "uint256", "bool")


def abi_encode_value(abi_type: str, value: Any) -> bytes:
    """
    Encode a single static value into its 32-byte ABI word.

    Args:
        abi_type: One of SUPPORTED_ABI_TYPES
        value: Python value (hex str for address, int or decimal str for
            uint256, bool for bool)

    Returns:
        32-byte big-endian word
    """
    if abi_type == "address":
        valid, err = validate_hex_address(value)
        if not valid:
            raise ValueError(err)
        return hex_to_bytes(value).rjust(32, b"\x00")

    if abi_type == "uint256":
        if isinstance(value, str):
            value = int(value, 10)
        valid, err = validate_integer(value, "uint256", 0, MAX_UINT256)
        if not valid:
            raise ValueError(err)
        return value.to_bytes(32, "big")

    if abi_type == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"bool must be bool, got {type(value).__name__}")
        return int(value).to_bytes(32, "big")

    raise ValueError(f"Unsupported ABI type: {abi_type}")


def abi_encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    ABI-encode a tuple of static values (abi.encode semantics).

    Raises:
        ValueError: on arity mismatch, unsupported types or bad values
    """
    if len(types) != len(values):
        raise ValueError(f"Expected {len(types)} values, got {len(values)}")

    return b"".join(abi_encode_value(t, v) for t, v in zip(types, values))
