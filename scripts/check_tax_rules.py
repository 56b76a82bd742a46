"""Validate the tax rule file and optionally show a take-home breakdown.

Loads every rule year from the configured rule file (TAX_RULES_FILE, default
config/tax_rules.yaml) and reports each table. A bad table exits non-zero.

Usage:
    python scripts/check_tax_rules.py
    python scripts/check_tax_rules.py --income 85000 --year 2025-26
"""

import argparse
import logging
import sys
from decimal import Decimal

from config.settings import settings
from src.calculators.errors import RuleTableError
from src.calculators.models import CalculationInput, RuleYear

logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

# Importing the calculators loads and validates the rule file.
try:
    from src.calculators.take_home import calculate_tax
    from src.calculators.tax_data import RULE_YEARS, BandedLoanTable
except RuleTableError as exc:
    logger.error("%s", exc)
    sys.exit(1)


def describe_rules() -> None:
    """Log a one-line summary of each rule year."""
    for year, data in RULE_YEARS.items():
        loan = data.study_loan
        loan_desc = (
            f"{len(loan.bands)} banded"
            if isinstance(loan, BandedLoanTable)
            else f"{len(loan.steps)}-step marginal"
        )
        logger.info(
            "%s: resident %d bands, non-resident %d, working holiday %d; "
            "levy %s%%; surcharge tiers %d; study loan %s",
            year.value,
            len(data.income_tax.resident.bands),
            len(data.income_tax.non_resident.bands),
            len(data.income_tax.working_holiday.bands),
            data.medicare_levy.rate * 100,
            len(data.surcharge.rates),
            loan_desc,
        )


def print_breakdown(income: Decimal, year: str, has_study_loan: bool) -> None:
    """Print an annual take-home breakdown for a resident single taxpayer."""
    result = calculate_tax(
        CalculationInput(salary=income, rule_year=year, has_study_loan=has_study_loan)
    )
    print(f"\nTake-home for ${income:,} ({year}, {result.bracket_table.value} rates)")
    print("-" * 48)
    for label, value in (
        ("Base income", result.base_income),
        ("Employer super", result.employer_super),
        ("Income tax", result.income_tax),
        ("Medicare levy", result.medicare_levy),
        ("Medicare levy surcharge", result.surcharge),
        ("Study loan", result.study_loan),
        ("Offsets", result.offsets),
        ("Total deductions", result.total_deductions),
        ("Take-home", result.take_home),
    ):
        print(f"  {label:<26} {value:>14,.2f}")
    print(f"  {'Marginal rate':<26} {result.marginal_rate * 100:>13.1f}%")
    print(f"  {'Effective rate':<26} {result.effective_rate:>13.2f}%")


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate tax rule tables")
    parser.add_argument("--income", type=Decimal, default=None, help="Annual salary to break down")
    parser.add_argument(
        "--year",
        choices=[year.value for year in RuleYear],
        default=RuleYear.Y2025_26.value,
        help="Rule year for --income",
    )
    parser.add_argument("--study-loan", action="store_true", help="Include study loan repayment")
    args = parser.parse_args()

    describe_rules()

    if args.income is not None:
        print_breakdown(args.income, args.year, args.study_loan)


if __name__ == "__main__":
    main()
