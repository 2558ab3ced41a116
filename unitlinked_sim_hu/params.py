"""Simulation parameters and per-year fee/bonus/tax lookups."""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from unitlinked_sim_hu.risk import RiskFeeContext
from unitlinked_sim_hu.yields import FundMode, PricePoint


class Currency(StrEnum):
    HUF = "HUF"
    EUR = "EUR"
    USD = "USD"


class DurationUnit(StrEnum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


class CalculationMode(StrEnum):
    SIMPLE = "simple"
    CALENDAR = "calendar"


class PaymentFrequency(StrEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


class FeeFrequency(StrEnum):
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"

    @property
    def periods_per_year(self) -> int:
        return 365 if self is FeeFrequency.DAILY else _PERIODS_PER_YEAR[PaymentFrequency(self.value)]


_PERIODS_PER_YEAR = {
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.HALF_YEARLY: 2,
    PaymentFrequency.YEARLY: 1,
}


class FeeValueType(StrEnum):
    PERCENT = "percent"
    AMOUNT = "amount"


class CostBaseMode(StrEnum):
    PAYMENT = "payment"
    AFTER_RISK = "after-risk"


class BonusMode(StrEnum):
    NONE = "none"
    PERCENT_ON_CONTRIBUTION = "percent-on-contribution"
    REFUND_INITIAL_COST = "refund-initial-cost-increasing"


class RedemptionBaseMode(StrEnum):
    INVESTED_ONLY = "invested-only"
    TOTAL = "total"


def finite(value: float | None, default: float = 0.0) -> float:
    """Return value, or default when it is missing, NaN or infinite."""
    if value is None or not math.isfinite(value):
        return default
    return value


def _per_year(table: dict[int, float] | None, year: int, default: float) -> float:
    if table and year in table:
        return finite(table[year])
    return finite(default)


def _plan_value(plan: list[float], year: int) -> float:
    if 1 <= year <= len(plan):
        return max(0.0, finite(plan[year - 1]))
    return 0.0


@dataclass
class SimulationParams:
    """Engine input for one policy projection.

    Plan lists are indexed from policy year 1 (element 0 is year 1). Per-year
    tables are keyed by policy year and fall back to the matching default.
    """

    currency: Currency = Currency.HUF

    # Term
    calculation_mode: CalculationMode = CalculationMode.SIMPLE
    start_date: str | None = None
    reference_year: int | None = None
    duration_unit: DurationUnit = DurationUnit.YEAR
    duration_value: float = 10

    # Yield
    annual_yield_percent: float = 0.0
    fund_mode: FundMode = FundMode.FLAT
    fund_price_series: list[PricePoint] = field(default_factory=list)
    selected_fund_id: str | None = None

    # Payments
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    yearly_payments: list[float] = field(default_factory=list)
    yearly_withdrawals: list[float] = field(default_factory=list)

    # Upfront (acquisition) cost
    upfront_cost_percent: float = 0.0  # year 1 only, used when no table is set
    initial_cost_by_year: dict[int, float] | None = None
    initial_cost_default_percent: float = 0.0
    initial_cost_base_mode: CostBaseMode = CostBaseMode.PAYMENT

    # Management fee sweep
    management_fee_frequency: FeeFrequency = FeeFrequency.YEARLY
    management_fee_value_type: FeeValueType = FeeValueType.PERCENT
    management_fee_value: float = 0.0

    # Ongoing fee layer
    yearly_management_fee_percent: float = 0.0
    yearly_fixed_management_fee_amount: float = 0.0
    management_fee_start_year: int = 1
    management_fee_stop_year: int | None = None  # exclusive
    asset_based_fee_percent: float = 0.0
    asset_cost_percent_by_year: dict[int, float] = field(default_factory=dict)

    plus_cost_by_year: dict[int, float] = field(default_factory=dict)

    # Admin fee
    admin_fee_monthly_amount: float = 0.0  # from year 2
    admin_fee_percent_of_payment: float = 0.0
    admin_fee_percent_by_year: dict[int, float] = field(default_factory=dict)
    admin_fee_base_mode: CostBaseMode = CostBaseMode.PAYMENT

    # Account maintenance (monthly % of value)
    account_maintenance_monthly_percent: float = 0.0
    account_maintenance_percent_by_year: dict[int, float] = field(default_factory=dict)
    account_maintenance_start_month: int = 1
    account_maintenance_client_start_month: int | None = None
    account_maintenance_invested_start_month: int | None = None
    account_maintenance_tax_bonus_start_month: int | None = None

    # Bonuses
    bonus_mode: BonusMode = BonusMode.NONE
    bonus_on_contribution_percent: float = 0.0
    bonus_on_contribution_percent_by_year: dict[int, float] = field(default_factory=dict)
    bonus_from_year: int = 1
    refund_initial_cost_bonus_percent_by_year: dict[int, float] = field(default_factory=dict)
    bonus_credit_on_anniversary_day20: bool = False
    bonus_percent_by_year: dict[int, float] = field(default_factory=dict)  # wealth bonus
    bonus_amount_by_year: dict[int, float] = field(default_factory=dict)

    # Tax credit
    # None: not set by the caller (products may supply a default), off in the engine
    enable_tax_credit: bool | None = None
    tax_credit_rate_percent: float | None = None
    tax_credit_cap_per_year: float | None = None
    tax_credit_start_year: int = 1
    tax_credit_end_year: int | None = None  # None or 0: no end
    tax_credit_limit_by_year: dict[int, float] = field(default_factory=dict)
    tax_credit_amount_by_year: dict[int, float] = field(default_factory=dict)
    is_tax_bonus_separate_account: bool = False
    tax_credit_to_invested_account: bool = False
    tax_credit_yield_percent: float | None = None
    tax_credit_calendar_posting: bool = False

    # Account split
    is_account_split_open: bool = False
    invested_share_by_year: dict[int, float] = field(default_factory=dict)
    invested_share_default_percent: float = 100.0

    # Redemption and partial surrender
    redemption_enabled: bool = False
    redemption_fee_by_year: dict[int, float] = field(default_factory=dict)
    redemption_fee_default_percent: float = 0.0
    redemption_base_mode: RedemptionBaseMode = RedemptionBaseMode.INVESTED_ONLY
    partial_surrender_fee_amount: float = 0.0
    minimum_balance_after_partial_surrender: float = 0.0
    minimum_paid_up_value: float = 0.0

    # Risk insurance
    risk_insurance_enabled: bool = False
    risk_insurance_monthly_fee_amount: float | None = None
    risk_insurance_fee_percent_of_monthly_payment: float = 0.0
    risk_insurance_death_benefit_amount: float = 0.0
    risk_insurance_disability_benefit_amount: float = 0.0
    risk_insurance_annual_index_percent: float = 0.0
    risk_insurance_start_year: int = 1
    risk_insurance_end_year: int | None = None
    insured_entry_age: int = 38
    risk_fee_resolver: Callable[[RiskFeeContext], float] | None = field(default=None, repr=False)

    # Paid-up maintenance
    paid_up_maintenance_fee_monthly_amount: float = 0.0
    paid_up_maintenance_fee_start_month: int = 10

    product_variant: str | None = None
    disable_product_defaults: bool = False

    def __post_init__(self):
        # Accept plain strings (TOML, CLI) for the enumerated fields
        self.currency = Currency(self.currency)
        self.calculation_mode = CalculationMode(self.calculation_mode)
        self.duration_unit = DurationUnit(self.duration_unit)
        self.fund_mode = FundMode(self.fund_mode)
        self.frequency = PaymentFrequency(self.frequency)
        self.initial_cost_base_mode = CostBaseMode(self.initial_cost_base_mode)
        self.admin_fee_base_mode = CostBaseMode(self.admin_fee_base_mode)
        self.management_fee_frequency = FeeFrequency(self.management_fee_frequency)
        self.management_fee_value_type = FeeValueType(self.management_fee_value_type)
        self.bonus_mode = BonusMode(self.bonus_mode)
        self.redemption_base_mode = RedemptionBaseMode(self.redemption_base_mode)

    @property
    def periods_per_year(self) -> int:
        return self.frequency.periods_per_year

    def payment_for_year(self, year: int) -> float:
        return _plan_value(self.yearly_payments, year)

    def withdrawal_for_year(self, year: int) -> float:
        return _plan_value(self.yearly_withdrawals, year)

    def initial_cost_rate(self, year: int) -> float:
        if self.initial_cost_by_year is not None:
            return max(0.0, _per_year(self.initial_cost_by_year, year, self.initial_cost_default_percent)) / 100
        return max(0.0, finite(self.upfront_cost_percent)) / 100 if year == 1 else 0.0

    def admin_fee_percent(self, year: int) -> float:
        return max(0.0, _per_year(self.admin_fee_percent_by_year, year, self.admin_fee_percent_of_payment))

    def asset_fee_percent(self, year: int) -> float:
        return max(0.0, _per_year(self.asset_cost_percent_by_year, year, self.asset_based_fee_percent))

    def account_maintenance_percent(self, year: int) -> float:
        return max(
            0.0,
            _per_year(self.account_maintenance_percent_by_year, year, self.account_maintenance_monthly_percent),
        )

    def invested_share(self, year: int) -> float:
        """Fraction of the net payment credited to the invested ledger."""
        if not self.is_account_split_open:
            return 1.0
        pct = _per_year(self.invested_share_by_year, year, self.invested_share_default_percent)
        return min(100.0, max(0.0, pct)) / 100

    def redemption_fee_percent(self, year: int) -> float:
        if not self.redemption_enabled:
            return 0.0
        pct = _per_year(self.redemption_fee_by_year, year, self.redemption_fee_default_percent)
        return min(100.0, max(0.0, pct))

    def contribution_bonus_rate(self, year: int) -> float:
        if self.bonus_mode != BonusMode.PERCENT_ON_CONTRIBUTION:
            return 0.0
        default = self.bonus_on_contribution_percent if year >= self.bonus_from_year else 0.0
        return max(0.0, _per_year(self.bonus_on_contribution_percent_by_year, year, default)) / 100

    def refund_bonus_percent(self, year: int) -> float:
        return max(0.0, _per_year(self.refund_initial_cost_bonus_percent_by_year, year, year - 1))

    def tax_credit_active(self, year: int) -> bool:
        if not self.enable_tax_credit or year < self.tax_credit_start_year:
            return False
        return not self.tax_credit_end_year or year <= self.tax_credit_end_year

    def tax_credit_year_cap(self, year: int) -> float:
        cap = self.tax_credit_cap_per_year
        if cap is None:
            cap = math.inf if self.enable_tax_credit else 0.0
        limit = self.tax_credit_limit_by_year.get(year)
        return min(max(0.0, cap), limit) if limit is not None else max(0.0, cap)

    def risk_active(self, year: int) -> bool:
        if not self.risk_insurance_enabled or year < self.risk_insurance_start_year:
            return False
        return not self.risk_insurance_end_year or year <= self.risk_insurance_end_year

    def ongoing_fees_active(self, year: int) -> bool:
        if year < self.management_fee_start_year:
            return False
        return not self.management_fee_stop_year or year < self.management_fee_stop_year

    @property
    def has_ledger_specific_maintenance(self) -> bool:
        return any(
            m is not None
            for m in (
                self.account_maintenance_client_start_month,
                self.account_maintenance_invested_start_month,
                self.account_maintenance_tax_bonus_start_month,
            )
        )

    def maintenance_start_months(self) -> tuple[int, int, int]:
        """Start months (client, invested, tax-bonus), falling back to the global start."""
        base = max(1, self.account_maintenance_start_month)
        return tuple(
            max(1, m if m is not None else base)
            for m in (
                self.account_maintenance_client_start_month,
                self.account_maintenance_invested_start_month,
                self.account_maintenance_tax_bonus_start_month,
            )
        )
