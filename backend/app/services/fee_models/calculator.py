"""Service fee computation for resident payments.

Two fee modes coexist and are selected per entity kind:

- additive: ``fee = round(base * bp / 10000) + fixed``, ``total = base + fee``,
  with the bank-transfer cap clamping ``fee``.
- grossed-up: ``total = round((base + fixed) / (1 - bp / 10000))``,
  ``fee = total - base``.

All amounts are integer cents. Rounding is half-up.
"""

from dataclasses import dataclass
from enum import Enum

from app.core.config import settings
from app.models.merchant_fee_profile import MerchantFeeProfile
from app.models.payment_instrument import InstrumentType
from app.services.fee_models.factory import FeeMode, get_fee_calculator


class InstrumentClass(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"

    @classmethod
    def from_instrument_type(cls, instrument_type: str) -> "InstrumentClass":
        # Wallet tokens are stored as PAYMENT_CARD instruments.
        if instrument_type == InstrumentType.BANK_ACCOUNT.value:
            return cls.BANK_TRANSFER
        return cls.CARD


@dataclass(frozen=True)
class FeeSchedule:
    card_basis_points: int
    card_fixed_fee_cents: int
    ach_basis_points: int
    ach_fixed_fee_cents: int
    ach_fee_cap_cents: int | None = None
    ach_debit_return_fixed_fee_cents: int = 0
    ach_credit_return_fixed_fee_cents: int = 0
    dispute_fixed_fee_cents: int = 0
    dispute_inquiry_fixed_fee_cents: int = 0

    @classmethod
    def default(cls) -> "FeeSchedule":
        return cls(
            card_basis_points=settings.default_card_basis_points,
            card_fixed_fee_cents=settings.default_card_fixed_fee_cents,
            ach_basis_points=settings.default_ach_basis_points,
            ach_fixed_fee_cents=settings.default_ach_fixed_fee_cents,
            ach_fee_cap_cents=settings.default_ach_fee_cap_cents,
        )

    @classmethod
    def from_profile(cls, profile: MerchantFeeProfile | None) -> "FeeSchedule":
        if profile is None:
            return cls.default()
        return cls(
            card_basis_points=int(profile.basis_points),
            card_fixed_fee_cents=int(profile.fixed_fee),
            ach_basis_points=int(profile.ach_basis_points),
            ach_fixed_fee_cents=int(profile.ach_fixed_fee),
            ach_fee_cap_cents=(
                int(profile.ach_basis_points_fee_limit)
                if profile.ach_basis_points_fee_limit is not None
                else None
            ),
            ach_debit_return_fixed_fee_cents=int(profile.ach_debit_return_fixed_fee or 0),
            ach_credit_return_fixed_fee_cents=int(profile.ach_credit_return_fixed_fee or 0),
            dispute_fixed_fee_cents=int(profile.dispute_fixed_fee or 0),
            dispute_inquiry_fixed_fee_cents=int(profile.dispute_inquiry_fixed_fee or 0),
        )

    def rates_for(self, instrument_class: InstrumentClass) -> tuple[int, int, int | None]:
        """``(basis_points, fixed_fee_cents, fee_cap_cents)`` for the instrument class."""
        if instrument_class == InstrumentClass.BANK_TRANSFER:
            return self.ach_basis_points, self.ach_fixed_fee_cents, self.ach_fee_cap_cents
        return self.card_basis_points, self.card_fixed_fee_cents, None


@dataclass(frozen=True)
class FeeQuote:
    base_amount_cents: int
    fee_cents: int
    total_amount_cents: int
    basis_points: int
    fixed_fee_cents: int
    instrument_class: InstrumentClass
    mode: FeeMode


def compute_fee(
    base_amount_cents: int,
    schedule: FeeSchedule,
    instrument_class: InstrumentClass,
    mode: FeeMode = FeeMode.ADDITIVE,
) -> FeeQuote:
    """Compute the service fee and gross total for a payment.

    Raises ValueError for a negative base amount, a negative fixed fee or basis
    points outside ``[0, 10000)``.
    """
    if base_amount_cents < 0:
        raise ValueError("base_amount_cents must be non-negative")

    basis_points, fixed_fee_cents, fee_cap_cents = schedule.rates_for(instrument_class)
    if not 0 <= basis_points < 10000:
        raise ValueError(f"basis_points must be in [0, 10000), got {basis_points}")
    if fixed_fee_cents < 0:
        raise ValueError("fixed fee must be non-negative")

    calculator = get_fee_calculator(mode)
    if calculator is None:
        raise ValueError(f"Unsupported fee mode: {mode}")

    fee, total = calculator(base_amount_cents, basis_points, fixed_fee_cents, fee_cap_cents)
    return FeeQuote(
        base_amount_cents=base_amount_cents,
        fee_cents=fee,
        total_amount_cents=total,
        basis_points=basis_points,
        fixed_fee_cents=fixed_fee_cents,
        instrument_class=instrument_class,
        mode=mode,
    )
