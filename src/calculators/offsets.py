"""Tax offsets applied after income tax and levies are worked out.

Offsets are pluggable: calculate_tax() takes any sequence of objects with a
name and an amount() method. The default set holds only the seniors and
pensioners offset, which is not modelled yet and contributes nothing.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

from src.calculators.models import CalculationInput


class TaxOffset(Protocol):
    """A reduction in the tax payable."""

    name: str

    def amount(
        self, inputs: CalculationInput, taxable_income: Decimal, income_tax: Decimal
    ) -> Decimal:
        ...


class SeniorsOffset:
    """Seniors and pensioners tax offset (SAPTO)."""

    name = "sapto"

    def amount(
        self, inputs: CalculationInput, taxable_income: Decimal, income_tax: Decimal
    ) -> Decimal:
        # TODO: model the SAPTO shade-out once age and pension status are collected
        return Decimal("0")


DEFAULT_OFFSETS: tuple[TaxOffset, ...] = (SeniorsOffset(),)


def total_offsets(
    offsets: Sequence[TaxOffset],
    inputs: CalculationInput,
    taxable_income: Decimal,
    income_tax: Decimal,
) -> Decimal:
    """Sum the offsets; an offset never adds tax, so negative amounts count as zero."""
    total = Decimal("0")
    for offset in offsets:
        total += max(offset.amount(inputs, taxable_income, income_tax), Decimal("0"))
    return total
