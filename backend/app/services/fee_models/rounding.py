from decimal import ROUND_HALF_UP, Decimal


def round_cents(value: Decimal) -> int:
    """Round to the nearest whole cent, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
