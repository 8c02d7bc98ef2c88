"""
Unit tests for hashing and ABI encoding primitives.

Tests cover:
1. Keccak-256 known vectors
2. Hex conversion
3. Static ABI encoding of claim leaf types
"""

import pytest

from sealbid.crypto import (
    abi_encode,
    abi_encode_value,
    bytes_to_hex,
    hex_to_bytes,
    keccak256,
)
from sealbid.utils.validation import MAX_UINT256


class TestKeccak:
    """Tests for Keccak-256."""

    def test_empty_input(self):
        """Ethereum Keccak-256 of empty bytes, not SHA3-256."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_abc(self):
        assert keccak256(b"abc").hex() == (
            "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"
        )

    def test_digest_length(self):
        assert len(keccak256(b"sealbid")) == 32


class TestHex:
    """Tests for hex helpers."""

    def test_round_trip(self):
        data = bytes(range(16))
        assert hex_to_bytes(bytes_to_hex(data)) == data

    def test_prefix_optional(self):
        assert hex_to_bytes("0xff") == hex_to_bytes("ff") == hex_to_bytes("0Xff") == b"\xff"

    def test_lowercase_output(self):
        assert bytes_to_hex(b"\xab\xcd") == "0xabcd"


class TestAbiEncoding:
    """Tests for static ABI encoding."""

    def test_address_left_padded(self):
        word = abi_encode_value("address", "0x" + "11" * 20)
        assert word == b"\x00" * 12 + b"\x11" * 20

    def test_address_checksum_case_accepted(self):
        lower = abi_encode_value("address", "0x" + "ab" * 20)
        upper = abi_encode_value("address", "0x" + "AB" * 20)
        assert lower == upper

    def test_uint256_from_int_and_string(self):
        assert abi_encode_value("uint256", 5) == abi_encode_value("uint256", "5")
        assert abi_encode_value("uint256", 1) == b"\x00" * 31 + b"\x01"

    def test_uint256_bounds(self):
        assert abi_encode_value("uint256", MAX_UINT256) == b"\xff" * 32
        with pytest.raises(ValueError):
            abi_encode_value("uint256", MAX_UINT256 + 1)
        with pytest.raises(ValueError):
            abi_encode_value("uint256", -1)

    def test_bool(self):
        assert abi_encode_value("bool", True)[-1] == 1
        with pytest.raises(ValueError):
            abi_encode_value("bool", 1)

    def test_bad_address(self):
        with pytest.raises(ValueError):
            abi_encode_value("address", "alice")

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported ABI type"):
            abi_encode_value("string", "x")

    def test_tuple_concatenates_words(self):
        encoded = abi_encode(("address", "uint256"), ["0x" + "22" * 20, 7])
        assert len(encoded) == 64
        assert encoded[-1] == 7

    def test_arity_mismatch(self):
        with pytest.raises(ValueError, match="Expected 2 values"):
            abi_encode(("address", "uint256"), ["0x" + "22" * 20])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
