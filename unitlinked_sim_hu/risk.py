"""Risk-insurance premium strategies injected into the daily loop."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RiskFeeContext:
    """State passed to a risk-fee resolver on each payment event."""

    current_year: int
    current_calendar_year: int
    months_elapsed: int
    months_between_payments: int
    payment_per_event: float
    yearly_payment: float
    duration_years: int
    insured_entry_age: int


def nearest_key(table: dict[int, float], key: int) -> int:
    """Closest table key; ties go to the lower key."""
    return min(table, key=lambda k: (abs(k - key), k))


def nearest_age_rate(table: dict[int, float], age: int) -> float:
    if not table:
        return 0.0
    return table[nearest_key(table, age)]


@dataclass(frozen=True)
class AgeBandedRiskFee:
    """Death-cover premium from a monthly per-100k rate table keyed by attained age.

    The premium for one payment event covers ``months_between_payments``
    months of cover on ``benefit``.
    """

    rates_per_100k: dict[int, float]
    benefit: float
    age_offset_by_year: bool = True

    def __call__(self, ctx: RiskFeeContext) -> float:
        if self.benefit <= 0:
            return 0.0
        age = ctx.insured_entry_age + (ctx.current_year - 1 if self.age_offset_by_year else 0)
        monthly = nearest_age_rate(self.rates_per_100k, age) * self.benefit / 100_000
        return max(0.0, monthly * ctx.months_between_payments)


def nearest_term_age_rate(table: dict[int, dict[int, float]], term_years: int, age: int) -> float:
    """Look up a term × entry-age rate table by nearest term, then nearest age."""
    if not table:
        return 0.0
    return nearest_age_rate(table[nearest_key(table, term_years)], age)


@dataclass(frozen=True)
class TermAgeBandedRiskFee:
    """Yearly premium rate (% of the annual payment) keyed by term, then entry age.

    Charged pro rata on each payment event. None of the built-in products
    prices risk this way; callers pass it as ``risk_fee_resolver`` for
    products whose premium table is keyed by term and entry age.
    """

    rates_percent: dict[int, dict[int, float]]

    def __call__(self, ctx: RiskFeeContext) -> float:
        rate = nearest_term_age_rate(self.rates_percent, ctx.duration_years, ctx.insured_entry_age)
        return max(0.0, ctx.payment_per_event * rate / 100)
