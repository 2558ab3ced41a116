"""Daily policy simulation engine."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date

from unitlinked_sim_hu.clock import (
    DAYS_PER_YEAR,
    PolicyClock,
    PolicyPeriod,
    days_in_month,
    format_iso_date,
    format_partial_period_label,
    months_between,
    resolve_start_date,
    round_half_up,
)
from unitlinked_sim_hu.ledger import LedgerAmounts, LedgerBook, LedgerKind
from unitlinked_sim_hu.params import (
    BonusMode,
    CostBaseMode,
    Currency,
    FeeValueType,
    PaymentFrequency,
    RedemptionBaseMode,
    SimulationParams,
    finite,
)
from unitlinked_sim_hu.risk import RiskFeeContext
from unitlinked_sim_hu.yields import YieldResolver, daily_factor

logger = logging.getLogger(__name__)

# Calendar-mode tax credits are posted on this day of the following year
TAX_CREDIT_POSTING_MONTH = 6
TAX_CREDIT_POSTING_DAY = 20

ANNIVERSARY_BONUS_DAY = 20


@dataclass(frozen=True)
class LedgerYear:
    end_balance: float
    interest: float
    cost: float
    asset_based_cost: float
    plus_cost: float
    bonus: float
    wealth_bonus: float


@dataclass(frozen=True)
class YearRow:
    year: int
    period_type: str  # "year" or "partial"
    period_months: int
    period_days: int
    period_label: str
    yearly_payment: float
    total_contributions: float
    interest: float
    cost: float
    upfront_cost: float
    admin_cost: float
    account_maintenance_cost: float
    management_fee_cost: float
    asset_based_cost: float
    plus_cost: float
    bonus: float
    wealth_bonus: float
    tax_credit: float
    withdrawal: float
    risk_insurance_cost: float
    end_balance: float
    ending_invested_value: float
    ending_client_value: float
    ending_tax_bonus_value: float
    surrender_value: float
    surrender_charge: float
    client: LedgerYear
    invested: LedgerYear
    tax_bonus: LedgerYear


@dataclass(frozen=True)
class MonthRow:
    year: int
    month: int
    cumulative_month: int
    payment: float
    upfront_cost: float
    admin_fee_cost: float
    risk_insurance_cost: float
    management_fee_cost: float
    asset_based_cost: float
    plus_cost: float
    bonus: float
    tax_credit: float
    interest: float
    cost_total: float
    end_balance: float
    ending_invested_value: float
    ending_client_value: float
    ending_tax_bonus_value: float


@dataclass(frozen=True)
class SimulationResult:
    currency: Currency
    end_balance: float
    total_contributions: float
    total_costs: float
    total_bonus: float
    total_tax_credit: float
    total_asset_based_cost: float
    total_risk_insurance_cost: float
    total_withdrawals: float
    total_interest_net: float
    yearly: list[YearRow] = field(default_factory=list)
    monthly: list[MonthRow] = field(default_factory=list)

    @property
    def surrender_value(self) -> float:
        """Surrender value at the end of the term (0 for an empty term)."""
        return self.yearly[-1].surrender_value if self.yearly else 0.0


@dataclass
class _YearTotals:
    payment: float = 0.0
    interest: float = 0.0
    cost: float = 0.0
    upfront: float = 0.0
    admin: float = 0.0
    maintenance: float = 0.0
    management: float = 0.0
    asset: float = 0.0
    plus: float = 0.0
    risk: float = 0.0
    bonus: float = 0.0
    wealth_bonus: float = 0.0
    tax_credit: float = 0.0
    planned_tax_credit: float = 0.0
    withdrawal: float = 0.0
    ledger_interest: LedgerAmounts = field(default_factory=LedgerAmounts)
    ledger_cost: LedgerAmounts = field(default_factory=LedgerAmounts)
    ledger_asset: LedgerAmounts = field(default_factory=LedgerAmounts)
    ledger_plus: LedgerAmounts = field(default_factory=LedgerAmounts)
    ledger_bonus: LedgerAmounts = field(default_factory=LedgerAmounts)
    ledger_wealth_bonus: LedgerAmounts = field(default_factory=LedgerAmounts)


@dataclass
class _MonthTotals:
    payment: float = 0.0
    upfront: float = 0.0
    admin: float = 0.0
    risk: float = 0.0
    management: float = 0.0
    asset: float = 0.0
    plus: float = 0.0
    bonus: float = 0.0
    tax_credit: float = 0.0
    interest: float = 0.0
    cost: float = 0.0


# cost category → (year field, month field)
_COST_FIELDS = {
    "upfront": ("upfront", "upfront"),
    "admin": ("admin", "admin"),
    "maintenance": ("maintenance", "admin"),
    "management": ("management", "management"),
    "asset": ("asset", "asset"),
    "plus": ("plus", "plus"),
    "risk": ("risk", "risk"),
}


@dataclass(frozen=True)
class _PendingTaxCredit:
    amount: float
    posting_date: str


class _DailyLoop:
    """Mutable state of one simulation run, advanced one day at a time."""

    def __init__(self, params: SimulationParams):
        self.p = params
        start = resolve_start_date(params.calculation_mode, params.start_date, params.reference_year)
        self.clock = PolicyClock.from_term(start, params.duration_unit, params.duration_value)
        self.book = LedgerBook()
        self.yields = YieldResolver.build(
            finite(params.annual_yield_percent), params.fund_mode, params.fund_price_series
        )
        self.tax_bonus_factor = daily_factor(finite(params.tax_credit_yield_percent))
        self.ppy = params.periods_per_year
        self.months_per_payment = 12 // self.ppy
        self.mgmt_ppy = params.management_fee_frequency.periods_per_year

        self.total_contributions = 0.0
        self.total_costs = 0.0
        self.total_bonus = 0.0
        self.total_tax_credit = 0.0
        self.total_asset_cost = 0.0
        self.total_risk_cost = 0.0
        self.total_withdrawals = 0.0

        self.year = _YearTotals()
        self.month = _MonthTotals()
        self.yearly: list[YearRow] = []
        self.monthly: list[MonthRow] = []
        self.cumulative_month = 0

        self.initial_cost_by_year: dict[int, float] = {}
        self.last_payment_month_index = -1
        self.last_refund_bonus_year = 0
        self.next_management_fee_day = 0.0
        self.pending_tax_credits: list[_PendingTaxCredit] = []

    # ---- bookkeeping -------------------------------------------------

    def _charge(self, kind: str, amount: float, split: LedgerAmounts | None = None) -> None:
        if amount <= 0:
            return
        year_field, month_field = _COST_FIELDS[kind]
        self.total_costs += amount
        self.year.cost += amount
        self.month.cost += amount
        setattr(self.year, year_field, getattr(self.year, year_field) + amount)
        setattr(self.month, month_field, getattr(self.month, month_field) + amount)
        if kind == "risk":
            self.total_risk_cost += amount
        if split is not None:
            self.year.ledger_cost.add(split)
            if kind == "asset":
                self.total_asset_cost += amount
                self.year.ledger_asset.add(split)
            elif kind == "plus":
                self.year.ledger_plus.add(split)

    def _credit_bonus(self, amount: float, wealth: bool = False) -> None:
        credited = self.book.apply_bonus(amount, LedgerKind.INVESTED)
        if credited <= 0:
            return
        self.total_bonus += credited
        self.month.bonus += credited
        if wealth:
            self.year.wealth_bonus += credited
            self.year.ledger_wealth_bonus.invested += credited
        else:
            self.year.bonus += credited
            self.year.ledger_bonus.invested += credited

    def _post_tax_credit(self, amount: float) -> None:
        if amount <= 0:
            return
        if self.p.is_tax_bonus_separate_account or finite(self.p.tax_credit_yield_percent) > 0:
            kind = LedgerKind.TAX_BONUS
        elif self.p.tax_credit_to_invested_account:
            kind = LedgerKind.INVESTED
        else:
            kind = LedgerKind.CLIENT
        credited = self.book.apply_bonus(amount, kind)
        self.total_tax_credit += credited
        self.year.tax_credit += credited
        self.month.tax_credit += credited
        self.year.ledger_bonus.add_to(kind, credited)

    # ---- daily phases ------------------------------------------------

    def _refund_bonus(self, period: PolicyPeriod, today: date) -> None:
        year = period.year
        if (
            self.p.bonus_mode != BonusMode.REFUND_INITIAL_COST
            or year < 2
            or self.clock.is_partial_year(year)
            or self.last_refund_bonus_year == year
        ):
            return
        if self.p.bonus_credit_on_anniversary_day20:
            due = today.month == self.clock.start.month and today.day == ANNIVERSARY_BONUS_DAY
        else:
            due = period.day_of_year == 1
        if not due:
            return
        first_year_cost = self.initial_cost_by_year.get(1, 0.0)
        if first_year_cost > 0:
            self._credit_bonus(first_year_cost * self.p.refund_bonus_percent(year) / 100)
        self.last_refund_bonus_year = year

    def _is_payment_day(self, today: date, months_elapsed: int) -> bool:
        month_index = today.year * 12 + today.month - 1
        due_day = min(self.clock.start.day, days_in_month(today.year, today.month))
        if months_elapsed < 0 or months_elapsed % self.months_per_payment != 0:
            return False
        if today.day != due_day or month_index == self.last_payment_month_index:
            return False
        self.last_payment_month_index = month_index
        return True

    def _payment_amount(self, yearly_payment: float) -> float:
        raw = yearly_payment / self.ppy
        if self.p.frequency != PaymentFrequency.MONTHLY:
            return raw
        if self.p.currency == Currency.HUF:
            return float(round_half_up(raw))
        return round_half_up(raw * 100) / 100

    def _risk_fee(self, year: int, today: date, months_elapsed: int, payment: float, yearly_payment: float) -> float:
        p = self.p
        if not p.risk_active(year):
            return 0.0
        if p.risk_fee_resolver is not None:
            fee = p.risk_fee_resolver(
                RiskFeeContext(
                    current_year=year,
                    current_calendar_year=today.year,
                    months_elapsed=months_elapsed,
                    months_between_payments=self.months_per_payment,
                    payment_per_event=payment,
                    yearly_payment=yearly_payment,
                    duration_years=self.clock.duration_years,
                    insured_entry_age=max(0, p.insured_entry_age),
                )
            )
        else:
            base_monthly = payment if p.frequency == PaymentFrequency.MONTHLY else yearly_payment / 12
            monthly_fee = p.risk_insurance_monthly_fee_amount
            if monthly_fee is None:
                monthly_fee = base_monthly * p.risk_insurance_fee_percent_of_monthly_payment / 100
            years_indexed = max(0, year - p.risk_insurance_start_year)
            indexed = monthly_fee * (1 + p.risk_insurance_annual_index_percent / 100) ** years_indexed
            fee = indexed * self.months_per_payment
        return min(payment, max(0.0, finite(fee)))

    def _payment(self, year: int, today: date, months_elapsed: int) -> None:
        p = self.p
        yearly_payment = p.payment_for_year(year)
        payment = max(0.0, finite(self._payment_amount(yearly_payment)))
        if payment > 0:
            risk = self._risk_fee(year, today, months_elapsed, payment, yearly_payment)
            after_risk = payment - risk

            upfront_base = after_risk if p.initial_cost_base_mode == CostBaseMode.AFTER_RISK else payment
            upfront = min(upfront_base * p.initial_cost_rate(year), payment - risk)
            if upfront > 0:
                self.initial_cost_by_year[year] = self.initial_cost_by_year.get(year, 0.0) + upfront

            admin_base = after_risk if p.admin_fee_base_mode == CostBaseMode.AFTER_RISK else payment
            admin = min(admin_base * p.admin_fee_percent(year) / 100, payment - risk - upfront)

            bonus = payment * p.contribution_bonus_rate(year)
            if bonus > 0:
                self.total_bonus += bonus
                self.year.bonus += bonus
                self.month.bonus += bonus

            self._accrue_tax_credit(year, payment)

            net = payment - risk - upfront - admin + bonus
            self.book.deposit_split(net, p.invested_share(year))

            self._charge("risk", risk)
            self._charge("upfront", upfront)
            self._charge("admin", admin)

        self.total_contributions += payment
        self.year.payment += payment
        self.month.payment += payment

    def _accrue_tax_credit(self, year: int, payment: float) -> None:
        p = self.p
        if not p.tax_credit_active(year):
            return
        cap = p.tax_credit_year_cap(year)
        manual = p.tax_credit_amount_by_year.get(year)
        if manual is not None:
            self.year.planned_tax_credit = min(max(0.0, manual), cap)
        else:
            self.year.planned_tax_credit += payment * finite(p.tax_credit_rate_percent) / 100
        if not p.tax_credit_calendar_posting:
            capped = min(max(0.0, self.year.planned_tax_credit), cap)
            self._post_tax_credit(max(0.0, capped - self.year.tax_credit))

    def _management_fee_sweep(self, day: int) -> None:
        if day < round_half_up(self.next_management_fee_day):
            return
        value = finite(self.p.management_fee_value)
        if value > 0:
            if self.p.management_fee_value_type == FeeValueType.PERCENT:
                rate = 1 - (1 - min(value, 100) / 100) ** (1 / self.mgmt_ppy)
                split = self.book.apply_fee_rate(rate)
            else:
                split = self.book.apply_fee(value / self.mgmt_ppy)
            self._charge("management", split.total, split)
        self.next_management_fee_day += DAYS_PER_YEAR / self.mgmt_ppy

    def _compound(self, today_iso: str) -> None:
        interest = self.book.compound(self.yields.factor_for(today_iso), self.tax_bonus_factor)
        self.year.ledger_interest.add(interest)
        self.year.interest += interest.total
        self.month.interest += interest.total

    def _ongoing_fees(self, year: int) -> None:
        p = self.p
        if not p.ongoing_fees_active(year):
            return
        yearly_rate = min(max(0.0, finite(p.yearly_management_fee_percent)), 100) / 100
        if yearly_rate > 0:
            split = self.book.apply_fee_rate(1 - (1 - yearly_rate) ** (1 / DAYS_PER_YEAR))
            self._charge("management", split.total, split)
        asset_rate = p.asset_fee_percent(year) / 100 / DAYS_PER_YEAR
        if asset_rate > 0:
            split = self.book.apply_fee_rate(min(asset_rate, 1.0))
            self._charge("asset", split.total, split)
        fixed = max(0.0, finite(p.yearly_fixed_management_fee_amount)) / DAYS_PER_YEAR
        if fixed > 0:
            split = self.book.apply_fee(fixed)
            self._charge("management", split.total, split)

    def _month_end(self, year: int, months_elapsed: int) -> None:
        p = self.p
        month_number = months_elapsed + 1

        rate = p.account_maintenance_percent(year) / 100
        if rate > 0 and month_number >= max(1, p.account_maintenance_start_month):
            if p.has_ledger_specific_maintenance:
                client_start, invested_start, tax_bonus_start = p.maintenance_start_months()
                values = self.book.values()
                split = self.book.apply_ledger_fees(
                    LedgerAmounts(
                        client=values.client * rate if month_number >= client_start else 0.0,
                        invested=values.invested * rate if month_number >= invested_start else 0.0,
                        tax_bonus=values.tax_bonus * rate if month_number >= tax_bonus_start else 0.0,
                    )
                )
            else:
                split = self.book.apply_fee_rate(min(rate, 1.0))
            self._charge("maintenance", split.total, split)

        if p.admin_fee_monthly_amount > 0 and year > 1:
            split = self.book.apply_fee(p.admin_fee_monthly_amount)
            self._charge("admin", split.total, split)

        paid_up_fee = max(0.0, finite(p.paid_up_maintenance_fee_monthly_amount))
        if paid_up_fee > 0 and self._is_paid_up(year) and month_number >= max(1, p.paid_up_maintenance_fee_start_month):
            split = self.book.apply_fee(paid_up_fee)
            self._charge("admin", split.total, split)

    def _is_paid_up(self, year: int) -> bool:
        floor = max(0.0, finite(self.p.minimum_paid_up_value))
        return self.p.payment_for_year(year) <= 0 and (floor <= 0 or self.book.total >= floor)

    def _post_calendar_tax_credits(self, today: date, today_iso: str) -> None:
        if not (today.month == TAX_CREDIT_POSTING_MONTH and today.day == TAX_CREDIT_POSTING_DAY):
            return
        due = [c for c in self.pending_tax_credits if c.posting_date == today_iso]
        self.pending_tax_credits = [c for c in self.pending_tax_credits if c.posting_date != today_iso]
        for credit in due:
            self._post_tax_credit(credit.amount)

    def _queue_calendar_tax_credit(self, year: int, today: date) -> None:
        p = self.p
        if not p.tax_credit_active(year):
            return
        cap = p.tax_credit_year_cap(year)
        manual = p.tax_credit_amount_by_year.get(year)
        planned = manual if manual is not None else self.year.planned_tax_credit
        amount = min(max(0.0, planned), cap)
        if amount <= 0:
            return
        before_posting_day = (today.month, today.day) < (TAX_CREDIT_POSTING_MONTH, TAX_CREDIT_POSTING_DAY)
        posting_year = today.year if before_posting_day else today.year + 1
        posting_date = date(posting_year, TAX_CREDIT_POSTING_MONTH, TAX_CREDIT_POSTING_DAY)
        self.pending_tax_credits.append(_PendingTaxCredit(amount, format_iso_date(posting_date)))

    def _withdraw(self, year: int) -> None:
        p = self.p
        planned = p.withdrawal_for_year(year)
        if planned <= 0:
            return
        fee = max(0.0, finite(p.partial_surrender_fee_amount))
        floor = max(0.0, finite(p.minimum_balance_after_partial_surrender))
        total = self.book.total
        allowed = max(0.0, total - floor - fee)
        withdrawn = self.book.apply_withdrawal(min(planned, total, allowed))
        self.total_withdrawals += withdrawn
        self.year.withdrawal = withdrawn
        if withdrawn > 0 and fee > 0:
            applied = min(fee, max(0.0, self.book.total - floor))
            split = self.book.apply_fee(applied)
            self._charge("plus", split.total, split)

    def _close_period(self, period: PolicyPeriod, today: date, partial: bool) -> None:
        p = self.p
        year = period.year
        if not partial:
            if p.tax_credit_calendar_posting:
                self._queue_calendar_tax_credit(year, today)
            self._withdraw(year)
            plus_cost = max(0.0, finite(p.plus_cost_by_year.get(year, 0.0)))
            if plus_cost > 0:
                split = self.book.apply_fee(plus_cost)
                self._charge("plus", split.total, split)
            wealth_pct = max(0.0, finite(p.bonus_percent_by_year.get(year, 0.0)))
            if wealth_pct > 0:
                self._credit_bonus(self.book.total * wealth_pct / 100, wealth=True)
            self._credit_bonus(max(0.0, finite(p.bonus_amount_by_year.get(year, 0.0))), wealth=True)

        values = self.book.values()
        total = values.total
        redemption_rate = p.redemption_fee_percent(year) / 100
        base = values.invested if p.redemption_base_mode == RedemptionBaseMode.INVESTED_ONLY else total
        surrender_charge = base * redemption_rate
        period_days = period.day_of_year if partial else period.length
        y = self.year
        self.yearly.append(
            YearRow(
                year=year,
                period_type="partial" if partial else "year",
                period_months=max(0, math.floor(period_days * 12 / DAYS_PER_YEAR)) if partial else 12,
                period_days=period_days,
                period_label=format_partial_period_label(period_days) if partial else f"{year}. év",
                yearly_payment=y.payment,
                total_contributions=self.total_contributions,
                interest=y.interest,
                cost=y.cost,
                upfront_cost=y.upfront,
                admin_cost=y.admin,
                account_maintenance_cost=y.maintenance,
                management_fee_cost=y.management,
                asset_based_cost=y.asset,
                plus_cost=y.plus,
                bonus=y.bonus,
                wealth_bonus=y.wealth_bonus,
                tax_credit=y.tax_credit,
                withdrawal=y.withdrawal,
                risk_insurance_cost=y.risk,
                end_balance=total,
                ending_invested_value=values.invested,
                ending_client_value=values.client,
                ending_tax_bonus_value=values.tax_bonus,
                surrender_value=total - surrender_charge,
                surrender_charge=surrender_charge,
                client=self._ledger_year(LedgerKind.CLIENT, values.client),
                invested=self._ledger_year(LedgerKind.INVESTED, values.invested),
                tax_bonus=self._ledger_year(LedgerKind.TAX_BONUS, values.tax_bonus),
            )
        )
        self.year = _YearTotals()

    def _ledger_year(self, kind: LedgerKind, end_balance: float) -> LedgerYear:
        y = self.year
        return LedgerYear(
            end_balance=end_balance,
            interest=getattr(y.ledger_interest, kind.value),
            cost=getattr(y.ledger_cost, kind.value),
            asset_based_cost=getattr(y.ledger_asset, kind.value),
            plus_cost=getattr(y.ledger_plus, kind.value),
            bonus=getattr(y.ledger_bonus, kind.value),
            wealth_bonus=getattr(y.ledger_wealth_bonus, kind.value),
        )

    def _close_month(self, year: int, month: int) -> None:
        self.cumulative_month += 1
        m = self.month
        values = self.book.values()
        self.monthly.append(
            MonthRow(
                year=year,
                month=month,
                cumulative_month=self.cumulative_month,
                payment=m.payment,
                upfront_cost=m.upfront,
                admin_fee_cost=m.admin,
                risk_insurance_cost=m.risk,
                management_fee_cost=m.management,
                asset_based_cost=m.asset,
                plus_cost=m.plus,
                bonus=m.bonus,
                tax_credit=m.tax_credit,
                interest=m.interest,
                cost_total=m.cost,
                end_balance=values.total,
                ending_invested_value=values.invested,
                ending_client_value=values.client,
                ending_tax_bonus_value=values.tax_bonus,
            )
        )
        self.month = _MonthTotals()

    def step(self, day: int) -> None:
        period = self.clock.period_for_day(day)
        year = period.year
        today = self.clock.date_at(day)
        today_iso = format_iso_date(today)
        months_elapsed = months_between(self.clock.start, today)
        last_day = day == self.clock.total_days - 1
        month_end = last_day or self.clock.date_at(day + 1).month != today.month

        self._refund_bonus(period, today)
        if self._is_payment_day(today, months_elapsed):
            self._payment(year, today, months_elapsed)
        self._management_fee_sweep(day)
        self._compound(today_iso)
        self._ongoing_fees(year)
        if month_end:
            self._month_end(year, months_elapsed)

        if self.p.tax_credit_calendar_posting and self.pending_tax_credits:
            self._post_calendar_tax_credits(today, today_iso)

        year_end = period.is_full_year and day == period.year_end
        if year_end or last_day:
            self._close_period(period, today, partial=not year_end)
        if month_end:
            self._close_month(year, today.month)

    def run(self) -> SimulationResult:
        logger.debug(
            "Simulating %d days from %s (%d policy years, partial final period: %s)",
            self.clock.total_days,
            self.clock.start,
            self.clock.total_years,
            self.clock.has_partial_final_period,
        )
        for day in range(self.clock.total_days):
            self.step(day)
        end_balance = self.book.total
        net_interest = (
            end_balance
            - self.total_contributions
            - self.total_bonus
            - self.total_tax_credit
            + self.total_costs
            + self.total_withdrawals
        )
        return SimulationResult(
            currency=self.p.currency,
            end_balance=end_balance,
            total_contributions=self.total_contributions,
            total_costs=self.total_costs,
            total_bonus=self.total_bonus,
            total_tax_credit=self.total_tax_credit,
            total_asset_based_cost=self.total_asset_cost,
            total_risk_insurance_cost=self.total_risk_cost,
            total_withdrawals=self.total_withdrawals,
            total_interest_net=net_interest,
            yearly=self.yearly,
            monthly=self.monthly,
        )


def simulate(params: SimulationParams) -> SimulationResult:
    """Run the daily projection of one policy.

    Pure with respect to ``params``: no state survives the call. Malformed
    dates and non-finite amounts fall back to safe defaults instead of
    raising.
    """
    return _DailyLoop(params).run()
