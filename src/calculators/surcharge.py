"""Medicare levy surcharge for taxpayers without private hospital cover."""

from decimal import Decimal

from src.calculators.models import FamilyStatus, Residency, RuleYear
from src.calculators.tax_data import SurchargeTable, get_rule_year


def surcharge_thresholds(
    table: SurchargeTable,
    family_status: FamilyStatus = FamilyStatus.SINGLE,
    dependants: int = 0,
) -> tuple[Decimal, ...]:
    """Tier thresholds for a taxpayer, raised per dependant after the first for families."""
    if FamilyStatus(family_status) is FamilyStatus.FAMILY:
        extra = max(0, dependants - 1) * table.dependant_increment
        return tuple(threshold + extra for threshold in table.family_thresholds)
    return table.single_thresholds


def surcharge_rate(
    income: Decimal, thresholds: tuple[Decimal, ...], rates: tuple[Decimal, ...]
) -> Decimal:
    """Rate of the highest tier whose threshold the income exceeds."""
    rate = Decimal("0")
    for threshold, tier_rate in zip(thresholds, rates):
        if income <= threshold:
            break
        rate = tier_rate
    return rate


def calculate_surcharge(
    income: Decimal,
    rule_year: RuleYear | str,
    residency: Residency | str = Residency.RESIDENT,
    has_private_health: bool = False,
    family_status: FamilyStatus | str = FamilyStatus.SINGLE,
    dependants: int = 0,
) -> Decimal:
    """Calculate the annual Medicare levy surcharge.

    The tier rate applies to the whole income, not just the part above the
    threshold.
    """
    table = get_rule_year(rule_year).surcharge
    if Residency(residency) is Residency.NON_RESIDENT or has_private_health:
        return Decimal("0")

    amount = max(income, Decimal("0"))
    thresholds = surcharge_thresholds(table, FamilyStatus(family_status), dependants)
    return amount * surcharge_rate(amount, thresholds, table.rates)
