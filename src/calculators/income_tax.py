"""Income tax calculator: progressive bracket tables with a per-band breakdown."""

from decimal import Decimal
from typing import NamedTuple

from src.calculators.models import CalculationInput, IncomeTaxTable, Residency
from src.calculators.tax_data import BracketTable, RuleYearData


class BandSlice(NamedTuple):
    """The part of an income taxed within one band."""

    lower: Decimal
    upper: Decimal | None  # None = no cap
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


class IncomeTaxResult(NamedTuple):
    tax: Decimal
    marginal_rate: Decimal
    band_index: int
    reinstatement: Decimal  # withheld as if no tax-free threshold were claimed
    breakdown: tuple[BandSlice, ...]


def find_band(amount: Decimal, table: BracketTable) -> int:
    """Index of the highest band whose lower bound is <= amount.

    An amount exactly on a boundary belongs to the band starting there.
    """
    index = 0
    for i, band in enumerate(table.bands):
        if band.lower > amount:
            break
        index = i
    return index


def reinstatement_charge(amount: Decimal, table: BracketTable) -> Decimal:
    """Tax on the tax-free threshold for a taxpayer who doesn't claim it.

    Charged at the first non-zero band's rate on the lesser of the amount
    and that band's width (16% on up to $26,800 under the stage 3 table).
    """
    for index, band in enumerate(table.bands):
        if band.rate > 0:
            upper = table.upper_bound(index)
            if upper is None:
                return Decimal("0")
            return band.rate * min(amount, upper - band.lower)
    return Decimal("0")


def calculate_income_tax(
    taxable_income: Decimal,
    table: BracketTable,
    reinstate_tax_free_threshold: bool = False,
) -> IncomeTaxResult:
    """Calculate income tax on a taxable amount against one bracket table.

    Args:
        taxable_income: Annual taxable income. Negative amounts are taxed as zero.
        table: The bracket table to apply.
        reinstate_tax_free_threshold: Add the reinstatement charge for a
            resident who does not claim the tax-free threshold.

    Returns:
        IncomeTaxResult with total tax, the marginal rate of the band reached,
        and the per-band breakdown.
    """
    amount = max(taxable_income, Decimal("0"))
    index = find_band(amount, table)
    band = table.bands[index]

    breakdown: list[BandSlice] = []
    for i, current in enumerate(table.bands[: index + 1]):
        upper = table.upper_bound(i)
        taxable = (min(amount, upper) if upper is not None else amount) - current.lower
        breakdown.append(BandSlice(
            lower=current.lower,
            upper=upper,
            rate=current.rate,
            taxable_amount=taxable,
            tax=taxable * current.rate,
        ))

    tax = band.base_tax + (amount - band.lower) * band.rate
    reinstatement = Decimal("0")
    if reinstate_tax_free_threshold:
        reinstatement = reinstatement_charge(amount, table)
        tax += reinstatement

    return IncomeTaxResult(
        tax=max(tax, Decimal("0")),
        marginal_rate=band.rate,
        band_index=index,
        reinstatement=reinstatement,
        breakdown=tuple(breakdown),
    )


def select_bracket_table(inputs: CalculationInput) -> IncomeTaxTable:
    """Pick the one bracket table for a taxpayer.

    Working holiday visa holders use their own table regardless of
    residency; otherwise non-residents use the non-resident table.
    """
    if inputs.on_working_holiday_visa:
        return IncomeTaxTable.WORKING_HOLIDAY
    if inputs.residency is Residency.NON_RESIDENT:
        return IncomeTaxTable.NON_RESIDENT
    return IncomeTaxTable.RESIDENT


def income_tax_for(
    inputs: CalculationInput,
    taxable_income: Decimal,
    rules: RuleYearData,
) -> tuple[IncomeTaxTable, IncomeTaxResult]:
    """Select the taxpayer's table and calculate income tax on it."""
    kind = select_bracket_table(inputs)
    reinstate = kind is IncomeTaxTable.RESIDENT and not inputs.tax_free_threshold_claimed
    return kind, calculate_income_tax(taxable_income, rules.income_tax.table(kind), reinstate)
