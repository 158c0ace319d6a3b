"""Monetary helpers shared by the sale totals computation."""
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple

CENT = Decimal('0.01')
HUNDRED = Decimal('100')

# Largest value a Numeric(12, 2) column holds
MAX_MONEY = Decimal('9999999999.99')


class SaleTotals(NamedTuple):
    """Derived monetary fields of a sale."""
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal


def to_money(value) -> Decimal:
    """
    Convert a DB or user value to a Decimal quantized to cents.

    Floats go through str() so 0.1 stays 0.10 rather than its binary expansion.
    """
    if value is None:
        return Decimal('0.00')
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(subtotal, discount_percentage) -> SaleTotals:
    """
    Derive discount amount and total from a subtotal and a percentage.

    total_amount is computed as subtotal - discount_amount after rounding the
    discount, so the two always reconcile exactly.
    """
    subtotal = to_money(subtotal)
    pct = Decimal(str(discount_percentage or 0))
    discount_amount = to_money(subtotal * pct / HUNDRED)
    return SaleTotals(subtotal, discount_amount, subtotal - discount_amount)
