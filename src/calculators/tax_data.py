"""Australian tax rule tables: income tax bands, Medicare levy, surcharge, study loan.

Tables live in config/tax_rules.yaml, one record per income year. Each record
is parsed into frozen pydantic models whose validators check the tables for
internal consistency. The configured file is loaded into RULE_YEARS when this
module is imported, so a bad table stops the process at start-up rather than
failing a calculation.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from config import load_yaml_config
from config.settings import settings
from src.calculators.errors import RuleTableError, UnknownRuleYearError
from src.calculators.models import IncomeTaxTable, RuleYear

logger = logging.getLogger(__name__)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _check_rate(rate: Decimal) -> Decimal:
    if not Decimal("0") <= rate <= Decimal("1"):
        raise ValueError(f"Rate {rate} must be between 0 and 1")
    return rate


# --- Income tax ---


class TaxBand(_Frozen):
    """A single income tax band."""

    lower: Decimal  # inclusive
    base_tax: Decimal  # tax on income up to lower
    rate: Decimal

    @field_validator("rate")
    @classmethod
    def check_rate(cls, rate: Decimal) -> Decimal:
        return _check_rate(rate)


class BracketTable(_Frozen):
    """Progressive marginal-rate table covering [0, infinity)."""

    bands: tuple[TaxBand, ...]

    @model_validator(mode="after")
    def check_bands(self) -> "BracketTable":
        if not self.bands:
            raise ValueError("Bracket table needs at least one band")
        first = self.bands[0]
        if first.lower != 0 or first.base_tax != 0:
            raise ValueError("First band must start at 0 with no base tax")
        for prev, band in zip(self.bands, self.bands[1:]):
            if band.lower <= prev.lower:
                raise ValueError(
                    f"Band lower bounds must increase ({prev.lower} then {band.lower})"
                )
            expected = prev.base_tax + (band.lower - prev.lower) * prev.rate
            if band.base_tax != expected:
                raise ValueError(
                    f"Band at {band.lower}: base tax {band.base_tax} should be {expected}"
                )
        return self

    def upper_bound(self, index: int) -> Decimal | None:
        """Exclusive upper bound of a band; None for the top band."""
        if index + 1 < len(self.bands):
            return self.bands[index + 1].lower
        return None


class IncomeTaxTables(_Frozen):
    resident: BracketTable
    non_resident: BracketTable
    working_holiday: BracketTable

    @field_validator("resident", "non_resident", "working_holiday", mode="before")
    @classmethod
    def wrap_bands(cls, value: Any) -> Any:
        # The rule file lists bands directly under the table name.
        if isinstance(value, (list, tuple)):
            return {"bands": value}
        return value

    def table(self, kind: IncomeTaxTable) -> BracketTable:
        return getattr(self, IncomeTaxTable(kind).value)


# --- Medicare levy and surcharge ---


class MedicareLevyTable(_Frozen):
    """Medicare levy rate with low-income phase-in thresholds."""

    rate: Decimal
    phase_in_rate: Decimal
    single: Decimal
    family: Decimal
    single_sapto: Decimal
    family_sapto: Decimal
    dependant_increment: Decimal

    @field_validator("rate", "phase_in_rate")
    @classmethod
    def check_rates(cls, rate: Decimal) -> Decimal:
        return _check_rate(rate)

    @model_validator(mode="after")
    def check_thresholds(self) -> "MedicareLevyTable":
        if not Decimal("0") < self.rate < self.phase_in_rate:
            raise ValueError("Phase-in rate must exceed the levy rate")
        for name in ("single", "family", "single_sapto", "family_sapto", "dependant_increment"):
            if getattr(self, name) < 0:
                raise ValueError(f"Medicare levy {name} threshold must be non-negative")
        return self


class SurchargeTable(_Frozen):
    """Medicare levy surcharge tiers.

    Income above thresholds[i] (and not above thresholds[i + 1]) attracts
    rates[i] on the whole income.
    """

    single_thresholds: tuple[Decimal, ...]
    family_thresholds: tuple[Decimal, ...]
    rates: tuple[Decimal, ...]
    dependant_increment: Decimal

    @model_validator(mode="after")
    def check_tiers(self) -> "SurchargeTable":
        if not self.rates:
            raise ValueError("Surcharge table needs at least one tier")
        for name in ("single_thresholds", "family_thresholds"):
            thresholds = getattr(self, name)
            if len(thresholds) != len(self.rates):
                raise ValueError(f"{name} must have one threshold per rate")
            if thresholds[0] <= 0 or any(b <= a for a, b in zip(thresholds, thresholds[1:])):
                raise ValueError(f"{name} must be positive and strictly increasing")
        for rate in self.rates:
            _check_rate(rate)
        if any(b < a for a, b in zip(self.rates, self.rates[1:])):
            raise ValueError("Surcharge rates must not decrease between tiers")
        if self.dependant_increment < 0:
            raise ValueError("Surcharge dependant increment must be non-negative")
        return self


# --- Study loan ---


class LoanStep(_Frozen):
    lower: Decimal
    base: Decimal
    rate: Decimal

    @field_validator("rate")
    @classmethod
    def check_rate(cls, rate: Decimal) -> Decimal:
        return _check_rate(rate)


class MarginalLoanSchedule(_Frozen):
    """Repayment charged at marginal rates on income above a floor."""

    kind: Literal["marginal"]
    steps: tuple[LoanStep, ...]

    @model_validator(mode="after")
    def check_steps(self) -> "MarginalLoanSchedule":
        if not self.steps:
            raise ValueError("Marginal loan schedule needs at least one step")
        if self.steps[0].lower < 0:
            raise ValueError("Loan repayment floor must be non-negative")
        for prev, step in zip(self.steps, self.steps[1:]):
            if step.lower <= prev.lower:
                raise ValueError("Loan step floors must be strictly increasing")
            expected = prev.base + (step.lower - prev.lower) * prev.rate
            if step.base != expected:
                raise ValueError(
                    f"Loan step at {step.lower}: base {step.base} should be {expected}"
                )
        return self


class LoanBand(_Frozen):
    lower: Decimal  # inclusive
    upper: Decimal | None  # exclusive, None = no cap
    rate: Decimal

    @field_validator("rate")
    @classmethod
    def check_rate(cls, rate: Decimal) -> Decimal:
        return _check_rate(rate)


class BandedLoanTable(_Frozen):
    """Repayment at a flat rate on the whole income, chosen by income band."""

    kind: Literal["banded"]
    bands: tuple[LoanBand, ...]

    @model_validator(mode="after")
    def check_bands(self) -> "BandedLoanTable":
        if not self.bands or self.bands[0].lower != 0:
            raise ValueError("Loan bands must start at 0")
        for prev, band in zip(self.bands, self.bands[1:]):
            if prev.upper is None or prev.upper != band.lower:
                raise ValueError(f"Loan bands must be contiguous (gap or overlap at {band.lower})")
        for band in self.bands:
            if band.upper is not None and band.upper <= band.lower:
                raise ValueError(f"Loan band at {band.lower} must have upper > lower")
        if self.bands[-1].upper is not None:
            raise ValueError("Last loan band must be unbounded")
        return self


StudyLoanTable = Annotated[MarginalLoanSchedule | BandedLoanTable, Field(discriminator="kind")]


class RuleYearData(_Frozen):
    """All tax parameters for a single income year."""

    income_tax: IncomeTaxTables
    medicare_levy: MedicareLevyTable
    surcharge: SurchargeTable
    study_loan: StudyLoanTable


# --- Loading ---


def parse_rule_years(raw: Mapping[str, Any]) -> Mapping[RuleYear, RuleYearData]:
    """Validate a rule file's contents.

    Every RuleYear must have exactly one record; unknown year keys are
    rejected rather than ignored.

    Raises:
        RuleTableError: If the file is incomplete or any table is inconsistent.
    """
    years = raw.get("rule_years")
    if not isinstance(years, dict):
        raise RuleTableError("Rule file has no rule_years mapping")

    known = {year.value for year in RuleYear}
    unknown = sorted(set(years) - known)
    if unknown:
        raise RuleTableError(f"Unknown rule years: {', '.join(unknown)}")
    missing = sorted(known - set(years))
    if missing:
        raise RuleTableError(f"Missing rules for: {', '.join(missing)}")

    parsed: dict[RuleYear, RuleYearData] = {}
    for label, data in years.items():
        try:
            parsed[RuleYear(label)] = RuleYearData.model_validate(data)
        except ValidationError as exc:
            raise RuleTableError(f"Invalid rules for {label}: {exc}") from exc
    return MappingProxyType(parsed)


def load_rule_years() -> Mapping[RuleYear, RuleYearData]:
    """Load and validate the configured rule file.

    Raises:
        RuleTableError: If the file cannot be read or fails validation.
    """
    try:
        raw = load_yaml_config(settings.tax_rules_file)
    except (OSError, ValueError) as exc:
        raise RuleTableError(f"Cannot read rule file {settings.tax_rules_file}: {exc}") from exc
    rule_years = parse_rule_years(raw)
    logger.info(
        "Loaded tax rules for %s from %s",
        ", ".join(year.value for year in rule_years),
        settings.tax_rules_file,
    )
    return rule_years


def reload_rule_years() -> Mapping[RuleYear, RuleYearData]:
    """Re-read the configured rule file into RULE_YEARS.

    RULE_YEARS is left unchanged if the file fails validation.
    """
    global RULE_YEARS
    RULE_YEARS = load_rule_years()
    return RULE_YEARS


def get_rule_year(rule_year: RuleYear | str) -> RuleYearData:
    """Return the rules for an income year.

    Raises:
        UnknownRuleYearError: If the year is not a known RuleYear.
    """
    try:
        return RULE_YEARS[RuleYear(rule_year)]
    except ValueError:
        available = ", ".join(sorted(year.value for year in RULE_YEARS))
        raise UnknownRuleYearError(
            f"Unknown tax year: {rule_year}. Available: {available}"
        ) from None


RULE_YEARS: Mapping[RuleYear, RuleYearData] = load_rule_years()
