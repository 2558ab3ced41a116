"""Yearly payment and withdrawal plans from a base payment and indexation."""

import math
from dataclasses import dataclass, field

from unitlinked_sim_hu.clock import DAYS_PER_YEAR, round_half_up
from unitlinked_sim_hu.params import DurationUnit, PaymentFrequency


@dataclass
class PlanInputs:
    years: int
    base_year1_payment: float
    base_annual_index_percent: float = 0.0
    # Per-year overrides keyed by policy year (1-based)
    index_by_year: dict[int, float] = field(default_factory=dict)
    payment_by_year: dict[int, float] = field(default_factory=dict)
    withdrawal_by_year: dict[int, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BuiltPlan:
    """Plans indexed from year 1 (element 0 is policy year 1)."""

    index_effective: list[float]
    yearly_payments: list[float]
    yearly_withdrawals: list[float]


def build_yearly_plan(p: PlanInputs) -> BuiltPlan:
    """Expand a base payment into explicit yearly payment/withdrawal arrays.

    Year 1 pays the override or the base payment; each later year pays its
    override, or the previous year's payment raised by that year's index.
    """
    years = max(0, p.years)
    index = [p.index_by_year.get(y, p.base_annual_index_percent) for y in range(1, years + 1)]
    withdrawals = [p.withdrawal_by_year.get(y, 0.0) for y in range(1, years + 1)]

    payments: list[float] = []
    for y in range(1, years + 1):
        if y in p.payment_by_year:
            payments.append(p.payment_by_year[y])
        elif y == 1:
            payments.append(p.base_year1_payment)
        else:
            payments.append(payments[-1] * (1 + index[y - 1] / 100))

    return BuiltPlan(index_effective=index, yearly_payments=payments, yearly_withdrawals=withdrawals)


def base_year1_payment(
    regular_payment: float, frequency: PaymentFrequency, keep_yearly_payment: bool = False
) -> float:
    """Year-1 payment from a regular per-period payment.

    With ``keep_yearly_payment`` the regular amount is treated as monthly
    regardless of the payment frequency.
    """
    if keep_yearly_payment:
        return regular_payment * 12
    return regular_payment * PaymentFrequency(frequency).periods_per_year


def years_from_duration(unit: DurationUnit, value: float) -> int:
    """Number of (possibly partial) policy years a term spans."""
    safe = max(0, round_half_up(value))
    if unit == DurationUnit.MONTH:
        return math.ceil(safe / 12)
    if unit == DurationUnit.DAY:
        return math.ceil(safe / DAYS_PER_YEAR)
    return safe
