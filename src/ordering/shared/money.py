"""Money helpers — all monetary amounts are rounded half-up to 2 decimals."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_money(amount) -> float:
    """Round an amount to cents, half-up (2.675 → 2.68, not banker's rounding)."""
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def amounts_match(left, right) -> bool:
    """True when two amounts are equal to the cent."""
    return abs(round_money(left) - round_money(right)) < 0.005
