"""
Fixed-point helpers for clearing.

Integer-only; every division floors. Operands are non-negative so floor and
truncation toward zero agree.
"""

from sealbid.core.auction.types import ScaleConfig


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute floor(a * b / denominator) without intermediate rounding.

    Raises:
        ZeroDivisionError: if denominator is zero
        ValueError: on negative operands
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    if a < 0 or b < 0 or denominator < 0:
        raise ValueError(f"mul_div operands must be non-negative, got {a}, {b}, {denominator}")
    return (a * b) // denominator


def asset_for_payment(payment: int, price: int, scales: ScaleConfig) -> int:
    """Asset units a payment buys at price: floor(payment * asset_scale / price)."""
    return mul_div(payment, scales.asset_scale, price)


def payment_for_asset(asset: int, price: int, scales: ScaleConfig) -> int:
    """Payment that asset units cost at price: floor(asset * price / asset_scale)."""
    return mul_div(asset, price, scales.asset_scale)
