"""Input and result records for the take-home pay calculation."""

import logging
from decimal import Decimal, InvalidOperation, getcontext
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.calculators.frequency import MAX_PERIOD_DIGITS, Frequency, from_annual

logger = logging.getLogger(__name__)

DEFAULT_SUPER_RATE = Decimal("12")
MAX_SUPER_RATE = Decimal("50")


class RuleYear(str, Enum):
    """Income year whose thresholds and rates apply."""

    Y2024_25 = "2024-25"
    Y2025_26 = "2025-26"


class Residency(str, Enum):
    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"


class LevyReduction(str, Enum):
    """Medicare levy exemption claimed."""

    NONE = "none"
    HALF = "half"
    FULL = "full"


class FamilyStatus(str, Enum):
    SINGLE = "single"
    FAMILY = "family"


class IncomeTaxTable(str, Enum):
    """Which income tax bracket table a calculation used."""

    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"
    WORKING_HOLIDAY = "working_holiday"


def coerce_amount(value: Any, field: str) -> Decimal:
    """Return value as a finite, non-negative Decimal, or zero if it isn't one.

    Amounts too large to annualise within the current decimal context are
    also treated as zero.
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            logger.warning("Non-numeric %s %r treated as zero", field, value)
            return Decimal("0")
    if not amount.is_finite() or amount < 0:
        logger.warning("Invalid %s %s treated as zero", field, amount)
        return Decimal("0")
    if amount and amount.adjusted() > getcontext().Emax - MAX_PERIOD_DIGITS:
        logger.warning("Out-of-range %s %s treated as zero", field, amount)
        return Decimal("0")
    return amount


class CalculationInput(BaseModel):
    """Salary and taxpayer attributes for one take-home calculation.

    Field names are snake_case; the camelCase names used by the pay
    calculator form are accepted as aliases, along with its legacy
    hasStudentLoanDebt flag. Any other key is rejected.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    salary: Decimal
    pay_frequency: Frequency = Field(default=Frequency.ANNUAL, alias="frequency")
    package_includes_super: bool = Field(default=False, alias="includesSuper")
    super_rate: Decimal = Field(default=DEFAULT_SUPER_RATE, alias="superRate")
    rule_year: RuleYear = Field(alias="year")
    residency: Residency = Residency.RESIDENT
    claims_tax_free_threshold: bool = Field(default=True, alias="claimTaxFreeThreshold")
    is_second_job: bool = Field(default=False, alias="isSecondJob")
    on_working_holiday_visa: bool = Field(default=False, alias="onWorkingHolidayVisa")
    has_study_loan: bool = Field(default=False, alias="hasHELP")
    has_private_health: bool = Field(default=False, alias="hasPrivateHealth")
    medicare_reduction: LevyReduction = Field(default=LevyReduction.NONE, alias="medicareReduction")
    family_status: FamilyStatus = Field(default=FamilyStatus.SINGLE, alias="familyStatus")
    dependants: int = Field(default=0, alias="numberOfDependants")
    sapto_eligible: bool = Field(default=False, alias="eligibleForSAPTO")

    @model_validator(mode="before")
    @classmethod
    def fold_study_loan_alias(cls, data: Any) -> Any:
        # The form has carried two flags for the same loan.
        if isinstance(data, dict) and "hasStudentLoanDebt" in data:
            data = dict(data)
            if data.pop("hasStudentLoanDebt") is True:
                data.pop("hasHELP", None)
                data["has_study_loan"] = True
        return data

    @field_validator("salary", mode="before")
    @classmethod
    def coerce_salary(cls, value: Any) -> Decimal:
        return coerce_amount(value, "salary")

    @field_validator("pay_frequency", mode="before")
    @classmethod
    def coerce_pay_frequency(cls, value: Any) -> Any:
        return Frequency(value) if isinstance(value, str) else value

    @field_validator("super_rate", mode="before")
    @classmethod
    def coerce_super_rate(cls, value: Any) -> Decimal:
        rate = coerce_amount(value, "super rate")
        if rate > MAX_SUPER_RATE:
            logger.warning("Super rate %s%% capped at %s%%", rate, MAX_SUPER_RATE)
            return MAX_SUPER_RATE
        return rate

    @field_validator("dependants", mode="before")
    @classmethod
    def coerce_dependants(cls, value: Any) -> int:
        try:
            count = int(value)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Invalid dependant count %r treated as zero", value)
            return 0
        return max(count, 0)

    @property
    def tax_free_threshold_claimed(self) -> bool:
        """A second job never claims the tax-free threshold."""
        return self.claims_tax_free_threshold and not self.is_second_job


class PeriodBreakdown(BaseModel):
    """A calculation result expressed per pay period."""

    model_config = ConfigDict(frozen=True)

    frequency: Frequency
    gross: Decimal
    employer_super: Decimal
    income_tax: Decimal
    medicare_levy: Decimal
    surcharge: Decimal
    study_loan: Decimal
    offsets: Decimal
    total_deductions: Decimal
    take_home: Decimal


class CalculationResult(BaseModel):
    """Annual take-home breakdown produced by calculate_tax()."""

    model_config = ConfigDict(frozen=True)

    rule_year: RuleYear
    bracket_table: IncomeTaxTable
    base_income: Decimal
    employer_super: Decimal
    taxable_income: Decimal
    income_tax: Decimal
    medicare_levy: Decimal
    surcharge: Decimal
    study_loan: Decimal
    offsets: Decimal
    total_deductions: Decimal
    take_home: Decimal
    marginal_rate: Decimal

    @model_validator(mode="after")
    def check_reconciliation(self) -> "CalculationResult":
        if self.total_deductions < 0 or self.total_deductions > self.base_income:
            raise ValueError(
                f"Total deductions {self.total_deductions} outside [0, {self.base_income}]"
            )
        if self.take_home != self.base_income - self.total_deductions:
            raise ValueError("Take-home must equal base income less total deductions")
        return self

    @property
    def effective_rate(self) -> Decimal:
        """Total deductions as a percentage of base income, 2 dp."""
        if self.base_income <= 0:
            return Decimal("0")
        return round(self.total_deductions / self.base_income * 100, 2)

    def per_period(self, frequency: Frequency | str) -> PeriodBreakdown:
        """Express every annual amount per pay period."""
        return PeriodBreakdown(
            frequency=Frequency(frequency),
            gross=from_annual(self.base_income, frequency),
            employer_super=from_annual(self.employer_super, frequency),
            income_tax=from_annual(self.income_tax, frequency),
            medicare_levy=from_annual(self.medicare_levy, frequency),
            surcharge=from_annual(self.surcharge, frequency),
            study_loan=from_annual(self.study_loan, frequency),
            offsets=from_annual(self.offsets, frequency),
            total_deductions=from_annual(self.total_deductions, frequency),
            take_home=from_annual(self.take_home, frequency),
        )
