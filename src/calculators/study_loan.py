"""Study loan (HELP) compulsory repayment calculator."""

from decimal import Decimal

from src.calculators.models import RuleYear
from src.calculators.tax_data import BandedLoanTable, MarginalLoanSchedule, get_rule_year


def marginal_repayment(income: Decimal, schedule: MarginalLoanSchedule) -> Decimal:
    """Repayment on income above the floor, at the rate of the highest step reached."""
    reached = [step for step in schedule.steps if income > step.lower]
    if not reached:
        return Decimal("0")
    step = reached[-1]
    return step.base + (income - step.lower) * step.rate


def banded_repayment(income: Decimal, table: BandedLoanTable) -> Decimal:
    """Flat rate of the band containing the income, applied to the whole income."""
    for band in table.bands:
        if band.upper is None or income < band.upper:
            return income * band.rate
    return Decimal("0")


def calculate_study_loan_repayment(
    income: Decimal,
    rule_year: RuleYear | str,
    has_study_loan: bool = True,
) -> Decimal:
    """Calculate the annual compulsory study loan repayment.

    The rule year decides the table shape: a marginal schedule on income
    above the repayment threshold, or income bands each with a flat rate on
    the whole income.

    Args:
        income: Annual repayment income (base income, before any levy).
        rule_year: Income year, e.g. "2025-26".
        has_study_loan: No repayment is due without a loan.

    Returns:
        The annual repayment.
    """
    table = get_rule_year(rule_year).study_loan
    if not has_study_loan:
        return Decimal("0")

    amount = max(income, Decimal("0"))
    if isinstance(table, MarginalLoanSchedule):
        return marginal_repayment(amount, table)
    return banded_repayment(amount, table)
