"""Decimal money helpers.

Prices are NUMERIC(14, 2) and transaction totals NUMERIC(16, 2) in the
database, Decimal in Python. No float.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")

# Largest value a NUMERIC(16, 2) column holds
MAX_TOTAL = Decimal("99999999999999.99")


def to_money(value: Decimal | int | str) -> Decimal:
    """Normalize to a 2-place Decimal: 100000 -> Decimal('100000.00')."""
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Price × quantity, rounded to cents. Computed once at purchase time."""
    return to_money(unit_price * quantity)


def money_to_display(amount: Decimal) -> str:
    """3500000 -> '3,500,000.00', -12 -> '-12.00'."""
    amount = to_money(amount)
    if amount < 0:
        return f"-{-amount:,.2f}"
    return f"{amount:,.2f}"
