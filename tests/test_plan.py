"""Tests for the yearly payment plan builder."""

import pytest
from unitlinked_sim_hu import PlanInputs, base_year1_payment, build_yearly_plan, years_from_duration


class TestBuildYearlyPlan:
    def test_indexation_chains(self):
        plan = build_yearly_plan(PlanInputs(years=3, base_year1_payment=120_000, base_annual_index_percent=10))
        assert plan.yearly_payments == pytest.approx([120_000, 132_000, 145_200])
        assert plan.index_effective == [10, 10, 10]
        assert plan.yearly_withdrawals == [0, 0, 0]

    def test_override_restarts_chain(self):
        plan = build_yearly_plan(
            PlanInputs(years=3, base_year1_payment=120_000, base_annual_index_percent=10, payment_by_year={2: 50_000})
        )
        assert plan.yearly_payments == pytest.approx([120_000, 50_000, 55_000])

    def test_per_year_index(self):
        plan = build_yearly_plan(
            PlanInputs(years=3, base_year1_payment=100, base_annual_index_percent=0, index_by_year={3: 50})
        )
        assert plan.yearly_payments == pytest.approx([100, 100, 150])

    def test_year1_override(self):
        plan = build_yearly_plan(PlanInputs(years=2, base_year1_payment=100, payment_by_year={1: 300}))
        assert plan.yearly_payments == pytest.approx([300, 300])

    def test_withdrawals(self):
        plan = build_yearly_plan(PlanInputs(years=3, base_year1_payment=100, withdrawal_by_year={3: 1000}))
        assert plan.yearly_withdrawals == [0, 0, 1000]

    def test_zero_years(self):
        plan = build_yearly_plan(PlanInputs(years=0, base_year1_payment=100))
        assert plan.yearly_payments == []


class TestBaseYear1Payment:
    @pytest.mark.parametrize(
        "frequency, expected",
        [("monthly", 120_000), ("quarterly", 40_000), ("half-yearly", 20_000), ("yearly", 10_000)],
    )
    def test_by_frequency(self, frequency, expected):
        assert base_year1_payment(10_000, frequency) == expected

    def test_keep_yearly_payment(self):
        assert base_year1_payment(10_000, "quarterly", keep_yearly_payment=True) == 120_000


class TestYearsFromDuration:
    @pytest.mark.parametrize(
        "unit, value, expected",
        [("year", 10, 10), ("month", 18, 2), ("month", 12, 1), ("day", 400, 2), ("year", -3, 0)],
    )
    def test_values(self, unit, value, expected):
        assert years_from_duration(unit, value) == expected
