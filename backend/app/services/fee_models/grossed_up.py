from decimal import Decimal

from app.services.fee_models.rounding import round_cents


def calculate(
    base_amount_cents: int,
    basis_points: int,
    fixed_fee_cents: int,
    fee_cap_cents: int | None = None,
) -> tuple[int, int]:
    """Total chosen so the merchant nets the base after the gateway's cut.

    ``total = round((base + fixed) / (1 - bp/10000))``. The fee cap does not
    apply in this mode.
    """
    total = round_cents(
        Decimal(base_amount_cents + fixed_fee_cents)
        * Decimal(10000)
        / Decimal(10000 - basis_points)
    )
    return total - base_amount_cents, total
