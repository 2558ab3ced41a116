"""Tests for product configuration and variant resolution."""

import pytest
from unitlinked_sim_hu import (
    AgeBandedRiskFee,
    AlfaFortis,
    AllianzEletprogram,
    BonusMode,
    Currency,
    DmPro,
    DurationUnit,
    GeneraliKabalaU91,
    NnMotiva158,
    RedemptionBaseMode,
    SimulationParams,
)
from unitlinked_sim_hu.products import (
    AllianzVariant,
    FortisVariant,
    KabalaVariant,
    MotivaVariant,
    clamp_entry_age,
    estimate_duration_years,
)


def _params(yearly_payment: float = 600_000, years: int = 10, **kwargs) -> SimulationParams:
    return SimulationParams(duration_value=years, yearly_payments=[yearly_payment] * years, **kwargs)


class TestHelpers:
    @pytest.mark.parametrize(
        "unit, value, expected",
        [("year", 10, 10), ("year", 0, 1), ("month", 13, 2), ("day", 366, 2), ("year", 100, 60)],
    )
    def test_estimate_duration_years(self, unit, value, expected):
        p = SimulationParams(duration_unit=unit, duration_value=value)
        assert estimate_duration_years(p, 1, 60) == expected

    def test_clamp_entry_age(self):
        assert clamp_entry_age(80, 16, 70) == 70
        assert clamp_entry_age(10, 16, 70) == 16
        assert clamp_entry_age(None, 16, 70) == 38


class TestDmPro:
    def test_passthrough(self):
        p = _params(upfront_cost_percent=12)
        assert DmPro().configure(p) == p
        assert DmPro().validate(p) == []


class TestAllianz:
    def setup_method(self):
        self.product = AllianzEletprogram()

    def test_standard_defaults(self):
        p = self.product.configure(_params())
        assert p.initial_cost_by_year == {1: 33}
        assert p.admin_fee_monthly_amount == 990
        assert p.asset_based_fee_percent == 1.19
        assert p.bonus_mode == BonusMode.NONE
        assert p.management_fee_value == 0

    def test_eur_monthly_fee(self):
        p = self.product.configure(_params(currency="EUR"))
        assert p.admin_fee_monthly_amount == 3.3

    def test_caller_year1_cost_kept_for_standard(self):
        p = self.product.configure(_params(initial_cost_by_year={1: 20, 2: 10}))
        assert p.initial_cost_by_year == {1: 20, 2: 10}

    def test_bonus_variant(self):
        inputs = _params(product_variant="allianz_bonusz_eletprogram", initial_cost_by_year={1: 20})
        assert self.product.resolve_variant(inputs) == AllianzVariant.BONUS
        p = self.product.configure(inputs)
        assert p.initial_cost_by_year[1] == 79
        assert p.bonus_mode == BonusMode.REFUND_INITIAL_COST

    def test_tax_credit_to_invested(self):
        assert self.product.configure(_params(enable_tax_credit=True)).tax_credit_to_invested_account
        assert not self.product.configure(_params()).tax_credit_to_invested_account

    def test_refund_bonus_in_year_two(self):
        result = self.product.calculate(_params(product_variant="allianz_bonusz_eletprogram"))
        first_year_cost = result.yearly[0].upfront_cost
        assert first_year_cost == pytest.approx(600_000 * 0.79)
        assert result.yearly[1].bonus == pytest.approx(first_year_cost * 0.01)

    def test_opt_out(self):
        inputs = _params(disable_product_defaults=True)
        assert self.product.configure(inputs) == inputs


class TestAlfaFortis:
    def setup_method(self):
        self.product = AlfaFortis()

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({}, FortisVariant.WL02),
            ({"currency": "EUR"}, FortisVariant.WL12),
            ({"currency": "USD"}, FortisVariant.WL22),
            ({"product_variant": "alfa_fortis_wl12"}, FortisVariant.WL12),
            ({"product_variant": "WL-22"}, FortisVariant.WL22),
        ],
    )
    def test_resolve_variant(self, kwargs, expected):
        assert self.product.resolve_variant(SimulationParams(**kwargs)) == expected

    def test_redemption_schedule(self):
        schedule = AlfaFortis.redemption_schedule(16)
        assert schedule[1] == 100
        assert schedule[2] == 3.5
        assert schedule[3] == schedule[8] == 1.95
        assert schedule[9] == schedule[15] == 1.5
        assert schedule[16] == 0

    def test_payments_raised_to_minimum(self):
        p = self.product.configure(_params(200_000))
        assert p.yearly_payments == [300_000] * 10
        assert p.bonus_amount_by_year == pytest.approx({8: 210_000, 15: 135_000, 20: 180_000})

    def test_bonus_uses_smallest_positive_payment(self):
        p = self.product.configure(SimulationParams(duration_value=3, yearly_payments=[500_000, 400_000, 0]))
        assert p.bonus_amount_by_year[8] == pytest.approx(400_000 * 0.70)

    def test_defaults(self):
        p = self.product.configure(_params())
        assert p.initial_cost_by_year == {1: 75, 2: 42, 3: 15}
        assert p.admin_fee_percent_of_payment == 4
        assert p.account_maintenance_monthly_percent == 0.165
        assert p.account_maintenance_start_month == 37
        assert p.redemption_base_mode == RedemptionBaseMode.INVESTED_ONLY
        assert p.product_variant == "alfa_fortis_wl02"

    def test_money_market_maintenance(self):
        p = self.product.configure(_params(2_400, currency="EUR", selected_fund_id="NPE"))
        assert p.account_maintenance_monthly_percent == 0.03
        p = self.product.configure(_params(2_400, currency="USD", selected_fund_id="ALFA_INT_MM_USD"))
        assert p.account_maintenance_monthly_percent == 0.13
        # Money-market fund of the other currency does not qualify
        p = self.product.configure(_params(2_400, currency="USD", selected_fund_id="NPE"))
        assert p.account_maintenance_monthly_percent == 0.165

    def test_tax_credit_always_off(self):
        p = self.product.configure(_params(enable_tax_credit=True, tax_credit_rate_percent=20, disable_product_defaults=True))
        assert not p.enable_tax_credit
        assert p.tax_credit_rate_percent == 0

    def test_opt_out_keeps_payments(self):
        p = self.product.configure(_params(200_000, disable_product_defaults=True))
        assert p.yearly_payments == [200_000] * 10
        assert p.initial_cost_by_year is None

    def test_entry_age_clamped(self):
        assert self.product.configure(_params(insured_entry_age=80)).insured_entry_age == 70

    def test_risk_resolver_from_death_benefit(self):
        p = self.product.configure(_params(risk_insurance_death_benefit_amount=1_000_000))
        assert isinstance(p.risk_fee_resolver, AgeBandedRiskFee)
        assert self.product.configure(_params()).risk_fee_resolver is None

    def test_first_year_surrender_is_zero(self):
        result = self.product.calculate(_params(annual_yield_percent=5))
        assert result.yearly[0].surrender_value == pytest.approx(0, abs=1e-6)
        assert result.yearly[-1].surrender_value > 0

    def test_validate(self):
        errors = self.product.validate(_params(200_000, insured_entry_age=10))
        assert len(errors) == 2
        assert "WL-02" in errors[0]
        assert self.product.validate(_params()) == []


class TestGeneraliKabala:
    def setup_method(self):
        self.product = GeneraliKabalaU91()

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({"product_variant": "generali_kabala_u91_pension"}, KabalaVariant.PENSION),
            ({"product_variant": "nyugdij"}, KabalaVariant.PENSION),
            ({"product_variant": "life"}, KabalaVariant.LIFE),
            ({"enable_tax_credit": True}, KabalaVariant.PENSION),
            ({}, KabalaVariant.LIFE),
        ],
    )
    def test_resolve_variant(self, kwargs, expected):
        assert self.product.resolve_variant(SimulationParams(**kwargs)) == expected

    def test_duration_clamped(self):
        p = self.product.configure(SimulationParams(product_variant="pension", duration_value=60))
        assert p.duration_value == 50
        assert p.duration_unit == DurationUnit.YEAR
        p = self.product.configure(SimulationParams(product_variant="life", duration_unit="month", duration_value=24))
        assert p.duration_value == 15

    def test_initial_cost_table(self):
        table = self.product.initial_cost_by_year(20, KabalaVariant.LIFE)
        assert (table[1], table[2], table[3]) == (80, 50, 20)
        assert table[4] == table[15] == 3
        assert table[16] == 0

    def test_short_pension_initial_cost(self):
        table = self.product.initial_cost_by_year(12, KabalaVariant.PENSION)
        assert (table[1], table[2], table[3]) == (80, 21, 10)

    @pytest.mark.parametrize(
        "payment, expected",
        [(650_000, 5), (500_000, 3), (300_000, 2.5), (240_000, 1.5), (100_000, 0)],
    )
    def test_contribution_bonus_bands(self, payment, expected):
        assert self.product.contribution_bonus_percent(payment) == expected

    def test_wealth_bonus(self):
        assert GeneraliKabalaU91.wealth_bonus_percent_by_year(15) == {}
        assert GeneraliKabalaU91.wealth_bonus_percent_by_year(18) == {16: 0.2, 17: 0.2, 18: 0.2}
        table = GeneraliKabalaU91.wealth_bonus_percent_by_year(22)
        assert table[16] == table[20] == 0.5
        assert table[21] == table[22] == 0.7

    def test_loyalty_credits(self):
        p = _params(240_000, 20)
        credits = self.product.loyalty_credits(p, 20, KabalaVariant.LIFE)
        assert credits == pytest.approx({10: 19_200, 15: 86_400, 20: 134_400})

    def test_loyalty_credits_need_uninterrupted_payment(self):
        payments = [240_000] * 20
        payments[4] = 0
        p = SimulationParams(duration_value=20, yearly_payments=payments)
        assert self.product.loyalty_credits(p, 20, KabalaVariant.LIFE) == {}

    def test_short_pension_loyalty(self):
        p = _params(300_000, 18)
        credits = self.product.loyalty_credits(p, 18, KabalaVariant.PENSION)
        assert credits == pytest.approx({10: 24_000, 15: 108_000, 18: 55_500})

    def test_pension_tax_credit(self):
        p = self.product.configure(_params(product_variant="pension"))
        assert p.enable_tax_credit
        assert p.tax_credit_rate_percent == 20
        assert p.tax_credit_cap_per_year == 130_000
        assert p.tax_credit_yield_percent == 1
        assert p.tax_credit_calendar_posting
        assert p.is_tax_bonus_separate_account
        assert p.currency == Currency.HUF

    def test_life_has_no_tax_credit(self):
        p = self.product.configure(_params(product_variant="life", tax_credit_rate_percent=20))
        assert not p.enable_tax_credit
        assert p.tax_credit_rate_percent == 0

    def test_pension_tax_credit_switched_off(self):
        params = _params(300_000, 20, product_variant="pension", enable_tax_credit=False, disable_product_defaults=True)
        assert not self.product.configure(params).enable_tax_credit
        assert self.product.calculate(params).total_tax_credit == 0

    def test_pension_explicit_zero_rates_kept(self):
        p = self.product.configure(
            _params(product_variant="pension", tax_credit_rate_percent=0, tax_credit_yield_percent=0, tax_credit_cap_per_year=0)
        )
        assert p.enable_tax_credit
        assert p.tax_credit_rate_percent == 0
        assert p.tax_credit_yield_percent == 0
        assert p.tax_credit_cap_per_year == 0

    def test_opt_out_keeps_caller_values(self):
        p = self.product.configure(
            _params(
                300_000,
                60,
                product_variant="pension",
                currency="EUR",
                disable_product_defaults=True,
                initial_cost_by_year={1: 10},
                plus_cost_by_year={5: 1_000},
                tax_credit_rate_percent=15,
            )
        )
        assert p.initial_cost_by_year == {1: 10}
        assert p.plus_cost_by_year == {5: 1_000}
        assert p.bonus_amount_by_year == {}
        assert p.enable_tax_credit
        assert p.tax_credit_rate_percent == 15
        # Always enforced
        assert p.currency == Currency.HUF
        assert p.duration_value == 50
        assert p.duration_unit == DurationUnit.YEAR

    def test_maintenance(self):
        assert self.product.maintenance_percent("GENERALI_PENZPIACI_2016") == 0.16
        assert self.product.maintenance_percent("pénzpiaci 2016") == 0.16
        assert self.product.maintenance_percent(None) == 0.175
        p = self.product.configure(_params())
        assert p.maintenance_start_months() == (37, 37, 1)

    def test_plus_cost_merged(self):
        p = self.product.configure(_params(plus_cost_by_year={5: 1_000}))
        assert 3 not in p.plus_cost_by_year
        assert p.plus_cost_by_year[4] == 6_000
        assert p.plus_cost_by_year[5] == 7_000

    def test_caller_tables_override_defaults(self):
        p = self.product.configure(_params(initial_cost_by_year={1: 10}))
        assert p.initial_cost_by_year[1] == 10
        assert p.initial_cost_by_year[2] == 50

    def test_validate(self):
        assert self.product.validate(_params(product_variant="pension")) == []
        errors = self.product.validate(SimulationParams(product_variant="pension", duration_value=60, insured_entry_age=60))
        assert len(errors) == 2

    def test_calculation_runs(self):
        result = self.product.calculate(_params(300_000, 20, product_variant="pension", annual_yield_percent=4))
        assert len(result.yearly) == 20
        assert result.total_tax_credit > 0
        assert result.total_bonus > 0
        assert result.yearly[-1].ending_tax_bonus_value > 0


class TestNnMotiva:
    def setup_method(self):
        self.product = NnMotiva158()

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({}, MotivaVariant.HUF),
            ({"currency": "EUR"}, MotivaVariant.EUR),
            ({"product_variant": "nn_motiva_168_eur"}, MotivaVariant.EUR),
            ({"product_variant": "nn_motiva_158_huf", "currency": "EUR"}, MotivaVariant.HUF),
        ],
    )
    def test_resolve_variant(self, kwargs, expected):
        assert self.product.resolve_variant(SimulationParams(**kwargs)) == expected

    @pytest.mark.parametrize(
        "duration, year, expected",
        [(10, 1, 10), (20, 1, 30), (15, 1, 20), (15, 2, 15), (15, 3, 15), (15, 4, 3), (30, 1, 30)],
    )
    def test_sales_cost(self, duration, year, expected):
        assert NnMotiva158.sales_cost_percent(duration, year) == expected

    @pytest.mark.parametrize(
        "duration_months, month, expected",
        [(120, 0, 35.9), (120, 6, 41.3), (120, 12, 46.7), (240, 180, 99.5), (240, 240, 100), (240, 300, 100)],
    )
    def test_surrender_payout_curve(self, duration_months, month, expected):
        assert self.product.surrender_payout_percent(duration_months, month) == pytest.approx(expected)

    def test_redemption_table(self):
        table = self.product.redemption_fee_by_year(20)
        assert table[1] == pytest.approx(53.3)
        assert table[20] == 0
        assert all(table[y] >= table[y + 1] for y in range(1, 20))

    def test_defaults(self):
        p = self.product.configure(SimulationParams(duration_value=60, yearly_payments=[600_000] * 60))
        assert p.duration_value == 45
        assert p.risk_insurance_monthly_fee_amount == 142
        assert p.risk_insurance_end_year == 45
        assert p.asset_cost_percent_by_year[1] == 1.7
        assert p.admin_fee_monthly_amount == 1_250
        assert p.tax_credit_cap_per_year == 130_000
        assert p.paid_up_maintenance_fee_monthly_amount == 940
        assert p.redemption_base_mode == RedemptionBaseMode.TOTAL

    def test_eur_variant(self):
        p = self.product.configure(_params(2_400, currency="EUR", frequency="yearly"))
        assert p.product_variant == "nn_motiva_168_eur"
        assert p.admin_fee_monthly_amount == 1.98
        assert p.tax_credit_cap_per_year == 1_625
        assert p.risk_insurance_monthly_fee_amount == 0.36

    def test_minimum_payment(self):
        assert self.product.validate(_params(120_000)) != []
        assert self.product.validate(_params(10_442 * 12)) == []

    def test_tax_credit_to_separate_ledger(self):
        result = self.product.calculate(_params(annual_yield_percent=3))
        assert result.total_tax_credit == pytest.approx(10 * 120_000)
        assert result.yearly[-1].ending_tax_bonus_value > 0
        assert result.total_risk_insurance_cost == pytest.approx(142 * 12 * 10)

    def test_opt_out_keeps_caller_values(self):
        p = self.product.configure(
            SimulationParams(
                duration_value=60,
                yearly_payments=[600_000] * 60,
                disable_product_defaults=True,
                enable_tax_credit=False,
                tax_credit_rate_percent=5,
                initial_cost_by_year={1: 5},
            )
        )
        assert not p.enable_tax_credit
        assert p.tax_credit_rate_percent == 5
        assert p.initial_cost_by_year == {1: 5}
        assert p.admin_fee_monthly_amount == 0
        assert p.asset_cost_percent_by_year == {}
        # Always enforced
        assert p.product_variant == "nn_motiva_158_huf"
        assert p.currency == Currency.HUF
        assert p.duration_value == 45

    def test_opt_out_without_tax_credit(self):
        result = self.product.calculate(_params(disable_product_defaults=True, enable_tax_credit=False))
        assert result.total_tax_credit == 0

    def test_post_term_admin_fee_flagged(self):
        assert any("Lejárat utáni" in note for note in NnMotiva158.APPROXIMATIONS)
