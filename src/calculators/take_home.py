"""Take-home pay calculator: composes income tax, Medicare levy, surcharge and study loan."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from src.calculators.frequency import to_annual
from src.calculators.income_tax import income_tax_for
from src.calculators.medicare_levy import calculate_medicare_levy
from src.calculators.models import CalculationInput, CalculationResult
from src.calculators.offsets import DEFAULT_OFFSETS, TaxOffset, total_offsets
from src.calculators.study_loan import calculate_study_loan_repayment
from src.calculators.surcharge import calculate_surcharge
from src.calculators.tax_data import get_rule_year

logger = logging.getLogger(__name__)


def split_package(
    package: Decimal, super_rate: Decimal, includes_super: bool
) -> tuple[Decimal, Decimal]:
    """Split a quoted salary into base income and employer super.

    Returns:
        (base_income, employer_super). When the package includes super,
        base income is package / (1 + rate/100).
    """
    rate = super_rate / 100
    base_income = package / (1 + rate) if includes_super else package
    return base_income, base_income * rate


def calculate_tax(
    inputs: CalculationInput,
    offsets: Sequence[TaxOffset] = DEFAULT_OFFSETS,
) -> CalculationResult:
    """Calculate annual take-home pay.

    Annualises the salary, splits out employer super, then applies income
    tax, the Medicare levy, the surcharge and any study loan repayment to
    base income. Deductions less offsets are clamped to [0, base income].

    Args:
        inputs: Salary and taxpayer attributes.
        offsets: Tax offsets to apply. Defaults to the (zero-effect) SAPTO hook.

    Returns:
        CalculationResult with the annual breakdown.

    Raises:
        UnknownRuleYearError: If no rules are loaded for inputs.rule_year.
    """
    rules = get_rule_year(inputs.rule_year)

    annual = to_annual(inputs.salary, inputs.pay_frequency)
    base_income, employer_super = split_package(
        annual, inputs.super_rate, inputs.package_includes_super
    )
    # No deductions are modelled, so taxable income is base income.
    taxable_income = base_income

    table, tax = income_tax_for(inputs, taxable_income, rules)
    levy = calculate_medicare_levy(
        taxable_income,
        inputs.rule_year,
        inputs.residency,
        inputs.medicare_reduction,
        inputs.family_status,
        inputs.dependants,
        inputs.sapto_eligible,
    )
    surcharge = calculate_surcharge(
        base_income,
        inputs.rule_year,
        inputs.residency,
        inputs.has_private_health,
        inputs.family_status,
        inputs.dependants,
    )
    study_loan = calculate_study_loan_repayment(
        base_income, inputs.rule_year, inputs.has_study_loan
    )
    offset_total = total_offsets(offsets, inputs, taxable_income, tax.tax)

    deductions = tax.tax + levy + surcharge + study_loan - offset_total
    total_deductions = min(max(deductions, Decimal("0")), base_income)
    take_home = base_income - total_deductions

    logger.debug(
        "%s %s table: base %s, tax %s, levy %s, surcharge %s, loan %s, take-home %s",
        inputs.rule_year.value,
        table.value,
        base_income,
        tax.tax,
        levy,
        surcharge,
        study_loan,
        take_home,
    )

    return CalculationResult(
        rule_year=inputs.rule_year,
        bracket_table=table,
        base_income=base_income,
        employer_super=employer_super,
        taxable_income=taxable_income,
        income_tax=tax.tax,
        medicare_levy=levy,
        surcharge=surcharge,
        study_loan=study_loan,
        offsets=offset_total,
        total_deductions=total_deductions,
        take_home=take_home,
        marginal_rate=tax.marginal_rate,
    )
