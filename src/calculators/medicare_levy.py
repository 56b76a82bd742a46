"""Medicare levy calculator with the low-income phase-in."""

from decimal import Decimal
from typing import NamedTuple

from src.calculators.models import FamilyStatus, LevyReduction, Residency, RuleYear
from src.calculators.tax_data import MedicareLevyTable, get_rule_year


class LevyThresholds(NamedTuple):
    """Low-income thresholds: no levy at or below lower, full rate from upper."""

    lower: Decimal
    upper: Decimal


def levy_thresholds(
    table: MedicareLevyTable,
    family_status: FamilyStatus = FamilyStatus.SINGLE,
    dependants: int = 0,
    sapto_eligible: bool = False,
) -> LevyThresholds:
    """Work out the low-income thresholds for a taxpayer.

    Family thresholds rise by the dependant increment for each dependant
    after the first. The upper threshold is where the phase-in meets the
    full rate, so the levy has no step there.
    """
    if FamilyStatus(family_status) is FamilyStatus.FAMILY:
        lower = table.family_sapto if sapto_eligible else table.family
        lower += max(0, dependants - 1) * table.dependant_increment
    else:
        lower = table.single_sapto if sapto_eligible else table.single
    upper = lower * table.phase_in_rate / (table.phase_in_rate - table.rate)
    return LevyThresholds(lower=lower, upper=upper)


def calculate_medicare_levy(
    taxable_income: Decimal,
    rule_year: RuleYear | str,
    residency: Residency | str = Residency.RESIDENT,
    reduction: LevyReduction | str = LevyReduction.NONE,
    family_status: FamilyStatus | str = FamilyStatus.SINGLE,
    dependants: int = 0,
    sapto_eligible: bool = False,
) -> Decimal:
    """Calculate the annual Medicare levy.

    Non-residents and taxpayers with a full exemption pay nothing. Between
    the low-income thresholds the levy is phased in at the phase-in rate on
    income above the lower threshold; a half exemption halves the result.

    Args:
        taxable_income: Annual taxable income.
        rule_year: Income year, e.g. "2025-26".
        residency: resident or non_resident.
        reduction: none, half or full exemption.
        family_status: single or family.
        dependants: Number of dependants.
        sapto_eligible: Whether the SAPTO thresholds apply.

    Returns:
        The annual levy.
    """
    table = get_rule_year(rule_year).medicare_levy
    residency = Residency(residency)
    reduction = LevyReduction(reduction)
    if residency is Residency.NON_RESIDENT or reduction is LevyReduction.FULL:
        return Decimal("0")

    amount = max(taxable_income, Decimal("0"))
    thresholds = levy_thresholds(table, FamilyStatus(family_status), dependants, sapto_eligible)
    full_rate = amount * table.rate

    if amount <= thresholds.lower:
        levy = Decimal("0")
    elif amount >= thresholds.upper:
        levy = full_rate
    else:
        levy = min(table.phase_in_rate * (amount - thresholds.lower), full_rate)

    if reduction is LevyReduction.HALF:
        levy /= 2
    return levy
