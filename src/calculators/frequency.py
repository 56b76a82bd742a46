"""Pay frequency conversions to and from an annual basis."""

from decimal import MAX_EMAX, MIN_EMIN, Decimal, InvalidOperation, localcontext
from enum import Enum


class Frequency(str, Enum):
    """How often a quoted salary is paid."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @classmethod
    def _missing_(cls, value: object) -> "Frequency | None":
        # The pay calculator form labels the annual option "annually".
        if value == "annually":
            return cls.ANNUAL
        return None


PERIODS_PER_YEAR: dict[Frequency, int] = {
    Frequency.WEEKLY: 52,
    Frequency.MONTHLY: 12,
    Frequency.ANNUAL: 1,
}

# Every multiplier in PERIODS_PER_YEAR has at most this many digits.
MAX_PERIOD_DIGITS = 2


def periods_per_year(frequency: Frequency | str) -> int:
    """Return the number of pay periods in a year for a frequency.

    Raises:
        ValueError: If the frequency is not one of weekly, monthly, annual.
    """
    try:
        return PERIODS_PER_YEAR[Frequency(frequency)]
    except ValueError:
        valid = ", ".join(f.value for f in Frequency)
        raise ValueError(f"Invalid pay frequency: {frequency}. Must be one of: {valid}") from None


def _finite(amount: Decimal | int | float) -> Decimal:
    if not isinstance(amount, Decimal):
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def _scale(amount: Decimal, periods: int, multiply: bool) -> Decimal:
    # Precision and exponent range are widened so that multiplying by the
    # period count never rounds or overflows, and dividing the product gives
    # back the input digits.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + MAX_PERIOD_DIGITS)
        ctx.Emax = MAX_EMAX
        ctx.Emin = MIN_EMIN
        return amount * periods if multiply else amount / periods


def to_annual(amount: Decimal | int | float, frequency: Frequency | str) -> Decimal:
    """Convert a per-period amount to an annual amount.

    Non-finite amounts (NaN, infinity) are treated as zero.
    """
    periods = periods_per_year(frequency)
    return _scale(_finite(amount), periods, multiply=True)


def from_annual(amount: Decimal | int | float, frequency: Frequency | str) -> Decimal:
    """Convert an annual amount to a per-period amount.

    Exact inverse of to_annual: from_annual(to_annual(x, f), f) == x for every
    finite x.
    """
    periods = periods_per_year(frequency)
    return _scale(_finite(amount), periods, multiply=False)
