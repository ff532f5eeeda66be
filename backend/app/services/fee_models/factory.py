from collections.abc import Callable
from enum import Enum

from app.services.fee_models import additive, grossed_up


class FeeMode(str, Enum):
    ADDITIVE = "additive"
    GROSSED_UP = "grossed_up"


# (base_amount_cents, basis_points, fixed_fee_cents, fee_cap_cents) -> (fee, total)
FeeCalculatorFn = Callable[[int, int, int, int | None], tuple[int, int]]

_CALCULATORS: dict[FeeMode, FeeCalculatorFn] = {
    FeeMode.ADDITIVE: additive.calculate,
    FeeMode.GROSSED_UP: grossed_up.calculate,
}


def get_fee_calculator(mode: FeeMode) -> FeeCalculatorFn | None:
    return _CALCULATORS.get(mode)
