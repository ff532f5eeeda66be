from decimal import Decimal

from app.services.fee_models.rounding import round_cents


def calculate(
    base_amount_cents: int,
    basis_points: int,
    fixed_fee_cents: int,
    fee_cap_cents: int | None = None,
) -> tuple[int, int]:
    """Fee added on top of the base amount. Returns ``(fee, total)``."""
    percentage = Decimal(base_amount_cents) * Decimal(basis_points) / Decimal(10000)
    fee = round_cents(percentage) + fixed_fee_cents

    if fee_cap_cents is not None and fee > fee_cap_cents:
        fee = fee_cap_cents

    return fee, base_amount_cents + fee
