"""Tests for the individual tax calculators."""

from decimal import Decimal

import pytest

from src.calculators.frequency import Frequency, from_annual, periods_per_year, to_annual
from src.calculators.income_tax import (
    calculate_income_tax,
    income_tax_for,
    reinstatement_charge,
    select_bracket_table,
)
from src.calculators.medicare_levy import calculate_medicare_levy, levy_thresholds
from src.calculators.models import CalculationInput, FamilyStatus, IncomeTaxTable
from src.calculators.study_loan import calculate_study_loan_repayment
from src.calculators.surcharge import calculate_surcharge, surcharge_thresholds
from src.calculators.tax_data import BracketTable, UnknownRuleYearError, get_rule_year


def _resident_table(year: str = "2025-26") -> BracketTable:
    return get_rule_year(year).income_tax.resident


# --- Frequency conversion ---


class TestFrequency:
    def test_weekly(self) -> None:
        assert to_annual(Decimal("1200"), "weekly") == Decimal("62400")

    def test_monthly(self) -> None:
        assert to_annual(Decimal("5000"), Frequency.MONTHLY) == Decimal("60000")

    def test_annual_unchanged(self) -> None:
        assert to_annual(Decimal("60000"), "annual") == Decimal("60000")

    def test_from_annual(self) -> None:
        assert from_annual(Decimal("62400"), "weekly") == Decimal("1200")
        assert from_annual(Decimal("60000"), "monthly") == Decimal("5000")

    def test_round_trip_awkward_amount(self) -> None:
        amount = Decimal("1234.57")
        for frequency in Frequency:
            assert from_annual(to_annual(amount, frequency), frequency) == amount

    def test_non_finite_treated_as_zero(self) -> None:
        assert to_annual(Decimal("NaN"), "weekly") == 0
        assert to_annual(float("inf"), "monthly") == 0
        assert from_annual(Decimal("-Infinity"), "annual") == 0

    def test_unknown_frequency_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid pay frequency"):
            to_annual(Decimal("100"), "fortnightly")
        with pytest.raises(ValueError):
            periods_per_year("daily")

    def test_annually_is_annual(self) -> None:
        assert Frequency("annually") is Frequency.ANNUAL
        assert to_annual(Decimal("60000"), "annually") == Decimal("60000")

    def test_round_trip_full_precision(self) -> None:
        amount = Decimal("9.999999999999999999999999999")
        for frequency in Frequency:
            assert from_annual(to_annual(amount, frequency), frequency) == amount

    def test_annualising_never_overflows(self) -> None:
        amount = Decimal("9E+999999")
        assert to_annual(amount, "weekly") == Decimal("4.68E+1000001")
        assert from_annual(to_annual(amount, "weekly"), "weekly") == amount


# --- Income tax ---


class TestIncomeTax:
    def test_zero_income(self) -> None:
        result = calculate_income_tax(Decimal("0"), _resident_table())
        assert result.tax == 0
        assert result.marginal_rate == 0
        assert result.band_index == 0

    def test_reference_60k(self) -> None:
        """$4,288 + 30% of ($60,000 - $45,000) = $8,788."""
        result = calculate_income_tax(Decimal("60000"), _resident_table())
        assert result.tax == Decimal("8788")
        assert result.marginal_rate == Decimal("0.30")
        assert len(result.breakdown) == 3
        assert sum(s.tax for s in result.breakdown) == result.tax

    def test_boundary_belongs_to_upper_band(self) -> None:
        """$18,200 starts the 16% band; tax there is still nil."""
        result = calculate_income_tax(Decimal("18200"), _resident_table())
        assert result.tax == 0
        assert result.marginal_rate == Decimal("0.16")
        assert result.band_index == 1

    def test_tax_at_each_boundary_equals_base_tax(self) -> None:
        table = _resident_table()
        for index, band in enumerate(table.bands):
            result = calculate_income_tax(band.lower, table)
            assert result.band_index == index
            assert result.tax == band.base_tax

    def test_top_band(self) -> None:
        """$200,000: $51,638 + 45% of $10,000."""
        result = calculate_income_tax(Decimal("200000"), _resident_table())
        assert result.tax == Decimal("56138")
        assert result.breakdown[-1].upper is None
        assert result.breakdown[-1].tax == Decimal("4500")

    def test_negative_income_taxed_as_zero(self) -> None:
        assert calculate_income_tax(Decimal("-1000"), _resident_table()).tax == 0

    def test_reinstatement_without_tax_free_threshold(self) -> None:
        """16% on the first $26,800 when the threshold isn't claimed."""
        table = _resident_table()
        assert reinstatement_charge(Decimal("60000"), table) == Decimal("4288")
        assert reinstatement_charge(Decimal("10000"), table) == Decimal("1600")
        result = calculate_income_tax(Decimal("60000"), table, reinstate_tax_free_threshold=True)
        assert result.tax == Decimal("13076")
        assert result.reinstatement == Decimal("4288")

    def test_non_resident(self) -> None:
        table = get_rule_year("2025-26").income_tax.non_resident
        assert calculate_income_tax(Decimal("60000"), table).tax == Decimal("18000")
        # $40,500 + 37% of $15,000
        assert calculate_income_tax(Decimal("150000"), table).tax == Decimal("46050")

    def test_working_holiday(self) -> None:
        table = get_rule_year("2025-26").income_tax.working_holiday
        result = calculate_income_tax(Decimal("60000"), table)
        # $6,750 + 30% of $15,000
        assert result.tax == Decimal("11250")
        assert result.marginal_rate == Decimal("0.30")


class TestBracketSelection:
    def _input(self, **overrides: object) -> CalculationInput:
        return CalculationInput(salary=Decimal("60000"), rule_year="2025-26", **overrides)

    def test_resident_default(self) -> None:
        assert select_bracket_table(self._input()) is IncomeTaxTable.RESIDENT

    def test_non_resident(self) -> None:
        inputs = self._input(residency="non_resident")
        assert select_bracket_table(inputs) is IncomeTaxTable.NON_RESIDENT

    def test_visa_takes_precedence(self) -> None:
        inputs = self._input(residency="non_resident", on_working_holiday_visa=True)
        assert select_bracket_table(inputs) is IncomeTaxTable.WORKING_HOLIDAY

    def test_second_job_forces_reinstatement(self) -> None:
        inputs = self._input(is_second_job=True)
        kind, result = income_tax_for(inputs, Decimal("60000"), get_rule_year("2025-26"))
        assert kind is IncomeTaxTable.RESIDENT
        assert result.tax == Decimal("13076")

    def test_non_resident_never_reinstated(self) -> None:
        inputs = self._input(residency="non_resident", claims_tax_free_threshold=False)
        _, result = income_tax_for(inputs, Decimal("60000"), get_rule_year("2025-26"))
        assert result.tax == Decimal("18000")
        assert result.reinstatement == 0


# --- Medicare levy ---


class TestMedicareLevy:
    def test_full_rate(self) -> None:
        assert calculate_medicare_levy(Decimal("60000"), "2025-26") == Decimal("1200")

    def test_below_lower_threshold(self) -> None:
        assert calculate_medicare_levy(Decimal("20000"), "2025-26") == 0
        assert calculate_medicare_levy(Decimal("27222"), "2025-26") == 0

    def test_phase_in(self) -> None:
        """10% of income above $27,222."""
        assert calculate_medicare_levy(Decimal("30000"), "2025-26") == Decimal("277.8")

    def test_continuous_at_upper_threshold(self) -> None:
        table = get_rule_year("2025-26").medicare_levy
        thresholds = levy_thresholds(table)
        assert thresholds.upper == Decimal("34027.5")
        phase_in = table.phase_in_rate * (thresholds.upper - thresholds.lower)
        assert phase_in == thresholds.upper * table.rate
        assert calculate_medicare_levy(thresholds.upper, "2025-26") == Decimal("680.55")

    def test_half_and_full_exemption(self) -> None:
        half = calculate_medicare_levy(Decimal("60000"), "2025-26", reduction="half")
        assert half == Decimal("600")
        assert calculate_medicare_levy(Decimal("60000"), "2025-26", reduction="full") == 0

    def test_non_resident_exempt(self) -> None:
        assert calculate_medicare_levy(Decimal("60000"), "2025-26", residency="non_resident") == 0

    def test_family_threshold(self) -> None:
        levy = calculate_medicare_levy(Decimal("50000"), "2025-26", family_status="family")
        # 10% of ($50,000 - $45,907)
        assert levy == Decimal("409.3")

    def test_family_dependants_after_first_raise_threshold(self) -> None:
        table = get_rule_year("2025-26").medicare_levy
        one = levy_thresholds(table, FamilyStatus.FAMILY, dependants=1)
        three = levy_thresholds(table, FamilyStatus.FAMILY, dependants=3)
        assert one.lower == Decimal("45907")
        assert three.lower == Decimal("45907") + 2 * Decimal("4216")
        assert three.upper > one.upper
        levy = calculate_medicare_levy(
            Decimal("50000"), "2025-26", family_status="family", dependants=3
        )
        assert levy == 0

    def test_sapto_thresholds(self) -> None:
        assert calculate_medicare_levy(Decimal("40000"), "2025-26", sapto_eligible=True) == 0
        assert calculate_medicare_levy(Decimal("40000"), "2025-26") == Decimal("800")

    def test_unknown_residency_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_medicare_levy(Decimal("60000"), "2025-26", residency="visitor")


# --- Medicare levy surcharge ---


class TestSurcharge:
    def test_below_threshold(self) -> None:
        assert calculate_surcharge(Decimal("60000"), "2025-26") == 0

    def test_at_threshold_no_surcharge(self) -> None:
        assert calculate_surcharge(Decimal("101000"), "2025-26") == 0

    def test_whole_income_charged(self) -> None:
        assert calculate_surcharge(Decimal("110000"), "2025-26") == Decimal("1100")
        assert calculate_surcharge(Decimal("120000"), "2025-26") == Decimal("1500")
        assert calculate_surcharge(Decimal("200000"), "2025-26") == Decimal("3000")

    def test_private_health_exempt(self) -> None:
        assert calculate_surcharge(Decimal("200000"), "2025-26", has_private_health=True) == 0

    def test_non_resident_exempt(self) -> None:
        assert calculate_surcharge(Decimal("200000"), "2025-26", residency="non_resident") == 0

    def test_family_dependant_increment(self) -> None:
        table = get_rule_year("2025-26").surcharge
        assert surcharge_thresholds(table, FamilyStatus.FAMILY, 3)[0] == Decimal("205000")
        three_dependants = calculate_surcharge(
            Decimal("204000"), "2025-26", family_status="family", dependants=3
        )
        assert three_dependants == 0
        one_dependant = calculate_surcharge(
            Decimal("204000"), "2025-26", family_status="family", dependants=1
        )
        assert one_dependant == Decimal("2040")

    def test_year_specific_thresholds(self) -> None:
        """$100,000 is above the 2024-25 single threshold but not 2025-26."""
        assert calculate_surcharge(Decimal("100000"), "2024-25") == Decimal("1000")
        assert calculate_surcharge(Decimal("100000"), "2025-26") == 0


# --- Study loan ---


class TestStudyLoan:
    def test_no_loan(self) -> None:
        repayment = calculate_study_loan_repayment(
            Decimal("150000"), "2025-26", has_study_loan=False
        )
        assert repayment == 0

    def test_marginal_below_floor(self) -> None:
        assert calculate_study_loan_repayment(Decimal("60000"), "2025-26") == 0
        assert calculate_study_loan_repayment(Decimal("67000"), "2025-26") == 0

    def test_marginal_first_step(self) -> None:
        """15% of income above $67,000."""
        assert calculate_study_loan_repayment(Decimal("80000"), "2025-26") == Decimal("1950")

    def test_marginal_second_step(self) -> None:
        assert calculate_study_loan_repayment(Decimal("125000"), "2025-26") == Decimal("8700")
        # $8,700 + 17% of $25,000
        assert calculate_study_loan_repayment(Decimal("150000"), "2025-26") == Decimal("12950")

    def test_banded_rate_on_whole_income(self) -> None:
        assert calculate_study_loan_repayment(Decimal("60000"), "2024-25") == Decimal("600")
        assert calculate_study_loan_repayment(Decimal("62851"), "2024-25") == Decimal("1257.02")

    def test_banded_band_edges(self) -> None:
        assert calculate_study_loan_repayment(Decimal("54434"), "2024-25") == 0
        assert calculate_study_loan_repayment(Decimal("54435"), "2024-25") == Decimal("544.35")
        assert calculate_study_loan_repayment(Decimal("160000"), "2024-25") == Decimal("16000")

    def test_unknown_year(self) -> None:
        with pytest.raises(UnknownRuleYearError, match="Unknown tax year"):
            calculate_study_loan_repayment(Decimal("60000"), "2099-00")


class TestCrossYear:
    def test_same_income_different_loan_tables(self) -> None:
        old = calculate_study_loan_repayment(Decimal("100000"), "2024-25")
        new = calculate_study_loan_repayment(Decimal("100000"), "2025-26")
        # 5.5% of $100,000 vs 15% of $33,000
        assert old == Decimal("5500")
        assert new == Decimal("4950")
