"""Insurance product definitions.

Each product resolves its variant once, then turns the caller's parameters
into a complete engine input: product defaults (skipped when the caller sets
``disable_product_defaults``) plus settings the product always enforces.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from unitlinked_sim_hu.clock import DAYS_PER_YEAR, round_half_up
from unitlinked_sim_hu.params import (
    BonusMode,
    CostBaseMode,
    Currency,
    DurationUnit,
    FeeFrequency,
    FeeValueType,
    PaymentFrequency,
    RedemptionBaseMode,
    SimulationParams,
)
from unitlinked_sim_hu.risk import AgeBandedRiskFee, RiskFeeContext
from unitlinked_sim_hu.simulation import SimulationResult, simulate

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_AGE = 38


def estimate_duration_years(params: SimulationParams, lo: int = 1, hi: int = 100) -> int:
    """Whole policy years of the term, clamped to a product's allowed range."""
    value = params.duration_value
    if params.duration_unit == DurationUnit.YEAR:
        years = round_half_up(value)
    elif params.duration_unit == DurationUnit.MONTH:
        years = math.ceil(value / 12) if math.isfinite(value) else 0
    else:
        years = math.ceil(value / DAYS_PER_YEAR) if math.isfinite(value) else 0
    return min(hi, max(lo, max(1, years)))


def clamp_entry_age(age: int | None, lo: int, hi: int) -> int:
    return min(hi, max(lo, round_half_up(age if age is not None else DEFAULT_ENTRY_AGE)))


def _merge(defaults: dict[int, float], overrides: dict[int, float] | None) -> dict[int, float]:
    return {**defaults, **(overrides or {})}


def _sum_by_year(*tables: dict[int, float] | None) -> dict[int, float]:
    out: dict[int, float] = {}
    for table in tables:
        for year, amount in (table or {}).items():
            out[year] = out.get(year, 0.0) + max(0.0, amount)
    return out


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _round2(value: float) -> float:
    return round_half_up(value * 100) / 100


def _unset_to(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


_NO_SWEEP: dict[str, Any] = {
    "management_fee_frequency": FeeFrequency.YEARLY,
    "management_fee_value_type": FeeValueType.PERCENT,
    "management_fee_value": 0.0,
    "yearly_management_fee_percent": 0.0,
    "yearly_fixed_management_fee_amount": 0.0,
}

_NO_TAX_CREDIT: dict[str, Any] = {
    "enable_tax_credit": False,
    "tax_credit_rate_percent": 0.0,
    "tax_credit_cap_per_year": 0.0,
    "tax_credit_limit_by_year": {},
    "tax_credit_amount_by_year": {},
    "tax_credit_yield_percent": 0.0,
    "tax_credit_calendar_posting": False,
}


class Product:
    """Base class for insurance products."""

    ID: ClassVar[str] = ""
    LABEL: ClassVar[str] = ""
    INSURER: ClassVar[str] = ""
    # Contract rules the projection does not model, reported alongside results
    APPROXIMATIONS: ClassVar[tuple[str, ...]] = ()

    def resolve_variant(self, params: SimulationParams) -> StrEnum | None:
        return None

    def defaults(self, params: SimulationParams, variant: Any) -> dict[str, Any]:
        """Product default overrides, applied unless the caller opted out."""
        return {}

    def forced(self, params: SimulationParams, variant: Any) -> dict[str, Any]:
        """Overrides applied regardless of ``disable_product_defaults``."""
        return {}

    def configure(self, params: SimulationParams) -> SimulationParams:
        variant = self.resolve_variant(params)
        logger.debug("%s: variant %s", self.ID, variant)
        overrides = {} if params.disable_product_defaults else self.defaults(params, variant)
        overrides.update(self.forced(params, variant))
        return dataclasses.replace(params, **overrides)

    def validate(self, params: SimulationParams) -> list[str]:
        """Check product constraints. Returns list of error messages (empty if valid)."""
        return []

    def calculate(self, params: SimulationParams) -> SimulationResult:
        return simulate(self.configure(params))


class DmPro(Product):
    """Generic calculator: the caller's parameters go to the engine unchanged."""

    ID = "dm-pro"
    LABEL = "DM PRO"
    INSURER = "DM"


# ---------------------------------------------------------------------------
# Allianz Életprogram
# ---------------------------------------------------------------------------


class AllianzVariant(StrEnum):
    STANDARD = "allianz_eletprogram"
    BONUS = "allianz_bonusz_eletprogram"


@dataclass(frozen=True)
class AllianzConfig:
    year1_initial_cost_percent: float
    bonus_mode: BonusMode | None  # None: keep the caller's bonus mode


class AllianzEletprogram(Product):
    ID = "allianz-eletprogram"
    LABEL = "Allianz Életprogram"
    INSURER = "Allianz"

    MONTHLY_FEE: ClassVar[dict[Currency, float]] = {Currency.HUF: 990, Currency.EUR: 3.3}
    ANNUAL_ASSET_FEE_PERCENT: ClassVar[float] = 1.19
    VARIANTS: ClassVar[dict[AllianzVariant, AllianzConfig]] = {
        AllianzVariant.STANDARD: AllianzConfig(33, None),
        AllianzVariant.BONUS: AllianzConfig(79, BonusMode.REFUND_INITIAL_COST),
    }

    def resolve_variant(self, params: SimulationParams) -> AllianzVariant:
        if "bonusz" in (params.product_variant or "").lower():
            return AllianzVariant.BONUS
        return AllianzVariant.STANDARD

    def defaults(self, params: SimulationParams, variant: AllianzVariant) -> dict[str, Any]:
        config = self.VARIANTS[variant]
        initial_cost = dict(params.initial_cost_by_year or {})
        if variant == AllianzVariant.BONUS or 1 not in initial_cost:
            initial_cost[1] = config.year1_initial_cost_percent
        return {
            **_NO_SWEEP,
            "yearly_management_fee_percent": params.yearly_management_fee_percent,
            "initial_cost_by_year": initial_cost,
            "bonus_mode": config.bonus_mode or params.bonus_mode,
            "admin_fee_monthly_amount": self.MONTHLY_FEE.get(params.currency, self.MONTHLY_FEE[Currency.HUF]),
            "asset_based_fee_percent": self.ANNUAL_ASSET_FEE_PERCENT,
            "tax_credit_to_invested_account": bool(params.enable_tax_credit),
        }


# ---------------------------------------------------------------------------
# Alfa Fortis
# ---------------------------------------------------------------------------


class FortisVariant(StrEnum):
    WL02 = "wl02"
    WL12 = "wl12"
    WL22 = "wl22"


@dataclass(frozen=True)
class FortisConfig:
    code: str
    currency: Currency
    min_annual_payment: float
    partial_surrender_fixed_fee: float
    min_balance_after_partial_surrender: float
    min_paid_up_value: float
    bonus_percent_by_year: dict[int, float]
    money_market_fund_ids: tuple[str, ...] = ()
    money_market_maintenance_percent: float | None = None


class AlfaFortis(Product):
    ID = "alfa-fortis"
    LABEL = "Alfa Fortis"
    INSURER = "Alfa"

    MIN_ENTRY_AGE: ClassVar[int] = 16
    MAX_ENTRY_AGE: ClassVar[int] = 70
    INITIAL_COST_BY_YEAR: ClassVar[dict[int, float]] = {1: 75, 2: 42, 3: 15}
    ADMIN_FEE_PERCENT_OF_PAYMENT: ClassVar[float] = 4
    ACCOUNT_MAINTENANCE_MONTHLY_PERCENT: ClassVar[float] = 0.165
    ACCOUNT_MAINTENANCE_START_MONTH: ClassVar[int] = 37
    # Monthly death-cover rate per 100 000 of benefit, by attained age
    DEATH_RATE_BY_AGE: ClassVar[dict[int, float]] = {
        18: 36, 25: 44, 30: 53, 35: 69, 38: 82, 40: 91,
        45: 121, 50: 168, 55: 243, 60: 365, 65: 576, 70: 901,
    }
    VARIANTS: ClassVar[dict[FortisVariant, FortisConfig]] = {
        FortisVariant.WL02: FortisConfig(
            code="WL-02",
            currency=Currency.HUF,
            min_annual_payment=300_000,
            partial_surrender_fixed_fee=2_500,
            min_balance_after_partial_surrender=100_000,
            min_paid_up_value=80_000,
            bonus_percent_by_year={8: 70, 15: 45, 20: 60},
        ),
        FortisVariant.WL12: FortisConfig(
            code="WL-12",
            currency=Currency.EUR,
            min_annual_payment=1_200,
            partial_surrender_fixed_fee=10,
            min_balance_after_partial_surrender=400,
            min_paid_up_value=200,
            bonus_percent_by_year={8: 125, 15: 0, 20: 50},
            money_market_fund_ids=("ALFA_INT_MM_EUR", "NPE"),
            money_market_maintenance_percent=0.03,
        ),
        FortisVariant.WL22: FortisConfig(
            code="WL-22",
            currency=Currency.USD,
            min_annual_payment=1_200,
            partial_surrender_fixed_fee=10,
            min_balance_after_partial_surrender=400,
            min_paid_up_value=200,
            bonus_percent_by_year={8: 125, 15: 0, 20: 50},
            money_market_fund_ids=("ALFA_INT_MM_USD",),
            money_market_maintenance_percent=0.13,
        ),
    }

    def resolve_variant(self, params: SimulationParams) -> FortisVariant:
        normalized = (params.product_variant or "").lower().replace("-", "")
        for variant in (FortisVariant.WL12, FortisVariant.WL22, FortisVariant.WL02):
            if variant.value in normalized:
                return variant
        if params.currency == Currency.EUR:
            return FortisVariant.WL12
        if params.currency == Currency.USD:
            return FortisVariant.WL22
        return FortisVariant.WL02

    @staticmethod
    def redemption_schedule(duration_years: int) -> dict[int, float]:
        schedule = {}
        for year in range(1, max(1, duration_years) + 1):
            if year == 1:
                schedule[year] = 100.0
            elif year == 2:
                schedule[year] = 3.5
            elif year <= 8:
                schedule[year] = 1.95
            elif year <= 15:
                schedule[year] = 1.5
            else:
                schedule[year] = 0.0
        return schedule

    def normalized_payments(self, payments: list[float], config: FortisConfig) -> list[float]:
        """Raise positive yearly payments below the variant minimum to the minimum."""
        out = []
        for planned in payments:
            planned = max(0.0, planned)
            out.append(config.min_annual_payment if 0 < planned < config.min_annual_payment else planned)
        return out

    @staticmethod
    def bonus_amounts(payments: list[float], config: FortisConfig) -> dict[int, float]:
        """Loyalty bonus amounts: a percentage of the smallest positive yearly payment."""
        positive = [p for p in payments if p > 0]
        if not positive:
            return {}
        smallest = min(positive)
        return {year: smallest * pct / 100 for year, pct in config.bonus_percent_by_year.items()}

    def maintenance_percent(self, params: SimulationParams, config: FortisConfig) -> float:
        if config.money_market_maintenance_percent is not None and params.selected_fund_id in config.money_market_fund_ids:
            return config.money_market_maintenance_percent
        return self.ACCOUNT_MAINTENANCE_MONTHLY_PERCENT

    def defaults(self, params: SimulationParams, variant: FortisVariant) -> dict[str, Any]:
        config = self.VARIANTS[variant]
        payments = self.normalized_payments(params.yearly_payments, config)
        return {
            **_NO_SWEEP,
            "yearly_payments": payments,
            "initial_cost_by_year": dict(self.INITIAL_COST_BY_YEAR),
            "initial_cost_default_percent": 0.0,
            "redemption_enabled": True,
            "redemption_fee_by_year": self.redemption_schedule(estimate_duration_years(params)),
            "redemption_fee_default_percent": 0.0,
            "redemption_base_mode": RedemptionBaseMode.INVESTED_ONLY,
            "is_account_split_open": False,
            "is_tax_bonus_separate_account": False,
            "bonus_mode": BonusMode.NONE,
            "bonus_percent_by_year": {},
            "bonus_amount_by_year": self.bonus_amounts(payments, config),
            "asset_based_fee_percent": 0.0,
            "admin_fee_percent_of_payment": self.ADMIN_FEE_PERCENT_OF_PAYMENT,
            "admin_fee_monthly_amount": 0.0,
            "account_maintenance_monthly_percent": self.maintenance_percent(params, config),
            "account_maintenance_start_month": self.ACCOUNT_MAINTENANCE_START_MONTH,
            "partial_surrender_fee_amount": config.partial_surrender_fixed_fee,
            "minimum_balance_after_partial_surrender": config.min_balance_after_partial_surrender,
            "minimum_paid_up_value": config.min_paid_up_value,
        }

    def forced(self, params: SimulationParams, variant: FortisVariant) -> dict[str, Any]:
        resolver = params.risk_fee_resolver
        if params.risk_insurance_death_benefit_amount > 0:
            resolver = AgeBandedRiskFee(self.DEATH_RATE_BY_AGE, params.risk_insurance_death_benefit_amount)
        return {
            **_NO_TAX_CREDIT,
            "product_variant": f"alfa_fortis_{variant.value}",
            "insured_entry_age": clamp_entry_age(params.insured_entry_age, self.MIN_ENTRY_AGE, self.MAX_ENTRY_AGE),
            "risk_fee_resolver": resolver,
        }

    def validate(self, params: SimulationParams) -> list[str]:
        errors = []
        config = self.VARIANTS[self.resolve_variant(params)]
        first = params.payment_for_year(1)
        if first < config.min_annual_payment:
            errors.append(
                f"{config.code}: az első éves befizetés ({first:,.0f}) nem éri el "
                f"a minimumot ({config.min_annual_payment:,.0f})"
            )
        if not self.MIN_ENTRY_AGE <= params.insured_entry_age <= self.MAX_ENTRY_AGE:
            errors.append(
                f"Belépési életkor {params.insured_entry_age} kívül esik a "
                f"{self.MIN_ENTRY_AGE}-{self.MAX_ENTRY_AGE} tartományon"
            )
        return errors


# ---------------------------------------------------------------------------
# Generali Kabala U91
# ---------------------------------------------------------------------------


class KabalaVariant(StrEnum):
    LIFE = "life"
    PENSION = "pension"


@dataclass(frozen=True)
class KabalaConfig:
    product_variant_id: str
    tax_credit_allowed: bool
    min_duration_years: int
    max_duration_years: int
    min_entry_age: int
    max_entry_age: int


def _risk_fee_placeholder(ctx: RiskFeeContext) -> float:
    return GeneraliKabalaU91.RISK_ANNUAL_FEE * max(0, ctx.months_between_payments) / 12


class GeneraliKabalaU91(Product):
    ID = "generali-kabala-u91"
    LABEL = "Generali Kabala (U91)"
    INSURER = "Generali"
    APPROXIMATIONS = (
        "Részleges visszavásárlás 0,3%-os díja (min. 400, max. 3 500 Ft) nincs modellezve",
        "Hűségszámla jóváírás nincs modellezve",
        "Baleseti halál kockázati díja 0 Ft-tal közelítve",
    )

    VARIANTS: ClassVar[dict[KabalaVariant, KabalaConfig]] = {
        KabalaVariant.LIFE: KabalaConfig("generali_kabala_u91_life", False, 15, 85, 15, 85),
        KabalaVariant.PENSION: KabalaConfig("generali_kabala_u91_pension", True, 10, 50, 15, 55),
    }

    DISTRIBUTION_FEE_BY_YEAR: ClassVar[dict[int, float]] = {1: 80, 2: 50, 3: 20}
    DISTRIBUTION_FEE_YEARS_4_15: ClassVar[float] = 3
    # Short pension terms (10-14 years) use reduced year-2 and year-3 fees
    SHORT_PENSION_YEAR2: ClassVar[dict[int, float]] = {10: 3, 11: 12, 12: 21, 13: 30, 14: 40}
    SHORT_PENSION_YEAR3: ClassVar[dict[int, float]] = {10: 3, 11: 6.5, 12: 10, 13: 13.5, 14: 17}
    # (minimum annual payment, contribution bonus %) in descending order
    CONTRIBUTION_BONUS_BANDS: ClassVar[list[tuple[float, float]]] = [
        (650_000, 5), (480_000, 3), (300_000, 2.5), (240_000, 1.5),
    ]
    LOYALTY_CREDIT_PERCENT: ClassVar[dict[int, float]] = {10: 8, 15: 36, 20: 56}
    SHORT_PENSION_LOYALTY_PERCENT: ClassVar[dict[int, float]] = {16: 6.5, 17: 12.5, 18: 18.5, 19: 24.5}
    ADMIN_FEE_MONTHLY_FROM_YEAR4: ClassVar[float] = 500
    MAINTENANCE_PERCENT: ClassVar[float] = 0.175
    MONEY_MARKET_2016_MAINTENANCE_PERCENT: ClassVar[float] = 0.16
    MONEY_MARKET_2016_MARKERS: ClassVar[tuple[str, ...]] = (
        "PENZPIACI_2016", "PÉNZPIACI_2016", "PENZPIACI 2016", "PÉNZPIACI 2016",
        "MONEY_MARKET_2016", "MONEY MARKET 2016",
    )
    MAINTENANCE_REGULAR_START_MONTH: ClassVar[int] = 37
    MAINTENANCE_TAX_BONUS_START_MONTH: ClassVar[int] = 1
    MIN_BALANCE_AFTER_PARTIAL_SURRENDER: ClassVar[float] = 100_000
    RISK_ACCIDENTAL_DEATH_BENEFIT: ClassVar[float] = 100_000
    RISK_ANNUAL_FEE: ClassVar[float] = 0
    TAX_CREDIT_RATE_PERCENT: ClassVar[float] = 20
    TAX_CREDIT_CAP: ClassVar[float] = 130_000
    TAX_CREDIT_YIELD_PERCENT: ClassVar[float] = 1

    def resolve_variant(self, params: SimulationParams) -> KabalaVariant:
        normalized = (params.product_variant or "").lower()
        if "pension" in normalized or "nyugd" in normalized:
            return KabalaVariant.PENSION
        if "life" in normalized or "elet" in normalized:
            return KabalaVariant.LIFE
        return KabalaVariant.PENSION if params.enable_tax_credit else KabalaVariant.LIFE

    def duration_years(self, params: SimulationParams, variant: KabalaVariant) -> int:
        config = self.VARIANTS[variant]
        return estimate_duration_years(params, config.min_duration_years, config.max_duration_years)

    def initial_cost_by_year(self, duration: int, variant: KabalaVariant) -> dict[int, float]:
        short_pension = variant == KabalaVariant.PENSION and 10 <= duration <= 14
        out = {}
        for year in range(1, duration + 1):
            if year == 2 and short_pension:
                out[year] = self.SHORT_PENSION_YEAR2[duration]
            elif year == 3 and short_pension:
                out[year] = self.SHORT_PENSION_YEAR3[duration]
            elif year in self.DISTRIBUTION_FEE_BY_YEAR:
                out[year] = self.DISTRIBUTION_FEE_BY_YEAR[year]
            else:
                out[year] = self.DISTRIBUTION_FEE_YEARS_4_15 if year <= 15 else 0.0
        return out

    def contribution_bonus_percent(self, annual_payment: float) -> float:
        for threshold, pct in self.CONTRIBUTION_BONUS_BANDS:
            if annual_payment >= threshold:
                return pct
        return 0.0

    @staticmethod
    def wealth_bonus_percent_by_year(duration: int) -> dict[int, float]:
        if duration < 16:
            return {}
        if duration <= 19:
            return {year: 0.2 for year in range(16, duration + 1)}
        return {year: 0.5 if year <= 20 else 0.7 for year in range(16, duration + 1)}

    def loyalty_credits(self, params: SimulationParams, duration: int, variant: KabalaVariant) -> dict[int, float]:
        """Loyalty credits for uninterrupted payment, as % of the average net yearly payment."""

        def paid_every_year(until: int) -> bool:
            return all(params.payment_for_year(y) > 0 for y in range(1, until + 1))

        def average_net(first: int, last: int) -> float:
            years = range(first, last + 1)
            net = [max(0.0, params.payment_for_year(y) - params.withdrawal_for_year(y)) for y in years]
            return sum(net) / len(net) if net else 0.0

        out: dict[int, float] = {}
        for year, pct in self.LOYALTY_CREDIT_PERCENT.items():
            if duration < year or not paid_every_year(year):
                continue
            average = average_net(1, year)
            if average > 0:
                out[year] = average * pct / 100
        if variant == KabalaVariant.PENSION and duration in self.SHORT_PENSION_LOYALTY_PERCENT:
            if paid_every_year(duration):
                average = average_net(16, duration)
                if average > 0:
                    pct = self.SHORT_PENSION_LOYALTY_PERCENT[duration]
                    out[duration] = out.get(duration, 0.0) + average * pct / 100
        return out

    def maintenance_percent(self, selected_fund_id: str | None) -> float:
        normalized = (selected_fund_id or "").upper()
        if any(marker in normalized for marker in self.MONEY_MARKET_2016_MARKERS):
            return self.MONEY_MARKET_2016_MAINTENANCE_PERCENT
        return self.MAINTENANCE_PERCENT

    def defaults(self, params: SimulationParams, variant: KabalaVariant) -> dict[str, Any]:
        duration = self.duration_years(params, variant)
        contribution_bonus = {
            year: self.contribution_bonus_percent(params.payment_for_year(year)) for year in range(1, duration + 1)
        }
        admin_plus_cost = {year: self.ADMIN_FEE_MONTHLY_FROM_YEAR4 * 12 for year in range(4, duration + 1)}
        return {
            **_NO_SWEEP,
            "initial_cost_by_year": _merge(self.initial_cost_by_year(duration, variant), params.initial_cost_by_year),
            "initial_cost_default_percent": 0.0,
            "initial_cost_base_mode": CostBaseMode.AFTER_RISK,
            "admin_fee_percent_of_payment": 0.0,
            "admin_fee_base_mode": CostBaseMode.AFTER_RISK,
            "risk_insurance_enabled": True,
            "risk_insurance_monthly_fee_amount": 0.0,
            "risk_insurance_death_benefit_amount": self.RISK_ACCIDENTAL_DEATH_BENEFIT,
            "risk_insurance_start_year": 1,
            "risk_insurance_end_year": 1,
            "risk_fee_resolver": _risk_fee_placeholder,
            "is_account_split_open": False,
            "account_maintenance_monthly_percent": self.maintenance_percent(params.selected_fund_id),
            "account_maintenance_start_month": 1,
            "account_maintenance_client_start_month": self.MAINTENANCE_REGULAR_START_MONTH,
            "account_maintenance_invested_start_month": self.MAINTENANCE_REGULAR_START_MONTH,
            "account_maintenance_tax_bonus_start_month": self.MAINTENANCE_TAX_BONUS_START_MONTH,
            "redemption_enabled": True,
            "redemption_base_mode": RedemptionBaseMode.TOTAL,
            "redemption_fee_by_year": {year: 0.0 for year in range(1, duration + 1)},
            "redemption_fee_default_percent": 0.0,
            "partial_surrender_fee_amount": 0.0,
            "minimum_balance_after_partial_surrender": self.MIN_BALANCE_AFTER_PARTIAL_SURRENDER,
            "plus_cost_by_year": _sum_by_year(admin_plus_cost, params.plus_cost_by_year),
            "bonus_mode": BonusMode.PERCENT_ON_CONTRIBUTION,
            "bonus_on_contribution_percent": 0.0,
            "bonus_on_contribution_percent_by_year": _merge(
                contribution_bonus, params.bonus_on_contribution_percent_by_year
            ),
            "bonus_percent_by_year": _merge(self.wealth_bonus_percent_by_year(duration), params.bonus_percent_by_year),
            "bonus_amount_by_year": _merge(
                self.loyalty_credits(params, duration, variant), params.bonus_amount_by_year
            ),
        }

    def forced(self, params: SimulationParams, variant: KabalaVariant) -> dict[str, Any]:
        config = self.VARIANTS[variant]
        overrides: dict[str, Any] = {
            "currency": Currency.HUF,
            "product_variant": config.product_variant_id,
            "duration_unit": DurationUnit.YEAR,
            "duration_value": self.duration_years(params, variant),
            "insured_entry_age": clamp_entry_age(params.insured_entry_age, config.min_entry_age, config.max_entry_age),
        }
        if not config.tax_credit_allowed:
            overrides.update(_NO_TAX_CREDIT)
            overrides["is_tax_bonus_separate_account"] = False
            return overrides
        # Explicit caller values (False, 0) are kept
        overrides.update(
            enable_tax_credit=_unset_to(params.enable_tax_credit, True),
            tax_credit_rate_percent=_unset_to(params.tax_credit_rate_percent, self.TAX_CREDIT_RATE_PERCENT),
            tax_credit_cap_per_year=_unset_to(params.tax_credit_cap_per_year, self.TAX_CREDIT_CAP),
            tax_credit_yield_percent=_unset_to(params.tax_credit_yield_percent, self.TAX_CREDIT_YIELD_PERCENT),
            tax_credit_calendar_posting=True,
            is_tax_bonus_separate_account=True,
        )
        return overrides

    def validate(self, params: SimulationParams) -> list[str]:
        variant = self.resolve_variant(params)
        config = self.VARIANTS[variant]
        errors = []
        years = estimate_duration_years(params, 1, 1000)
        if not config.min_duration_years <= years <= config.max_duration_years:
            errors.append(
                f"Futamidő {years} év kívül esik a {config.min_duration_years}-"
                f"{config.max_duration_years} éves tartományon"
            )
        if not config.min_entry_age <= params.insured_entry_age <= config.max_entry_age:
            errors.append(
                f"Belépési életkor {params.insured_entry_age} kívül esik a "
                f"{config.min_entry_age}-{config.max_entry_age} tartományon"
            )
        return errors


# ---------------------------------------------------------------------------
# NN Motiva 158 (HUF) / 168 (EUR)
# ---------------------------------------------------------------------------


class MotivaVariant(StrEnum):
    HUF = "nn_motiva_158_huf"
    EUR = "nn_motiva_168_eur"


@dataclass(frozen=True)
class MotivaConfig:
    currency: Currency
    min_monthly_payment: float
    admin_monthly_standard: float
    admin_monthly_annual_payment: float
    admin_monthly_paid_up: float
    accident_death_monthly_fee: float
    tax_credit_cap: float


class NnMotiva158(Product):
    ID = "nn-motiva-158"
    LABEL = "NN Motiva 158"
    INSURER = "NN"
    APPROXIMATIONS = (
        "Rendkívüli befizetések 6%-os értékesítési költsége nincs modellezve",
        "Adójóváírás-gyűjtő számla eszközalapú költsége az általános részvény táblával közelítve",
        "Lejárat utáni adminisztrációs díj (320 Ft / 0,8 EUR) nincs modellezve: a vetítés a lejáratig tart",
    )

    MIN_DURATION_YEARS: ClassVar[int] = 10
    MAX_DURATION_YEARS: ClassVar[int] = 45
    GENERAL_EQUITY_ASSET_COST_PERCENT: ClassVar[float] = 1.7
    TAX_CREDIT_RATE_PERCENT: ClassVar[float] = 20
    # (elapsed month, surrender payout %) points; maturity pays 100 %
    SURRENDER_PAYOUT_POINTS: ClassVar[list[tuple[int, float]]] = [
        (0, 35.9), (12, 46.7), (24, 66.7), (36, 85.0), (60, 90.0), (120, 99.0),
    ]
    VARIANTS: ClassVar[dict[MotivaVariant, MotivaConfig]] = {
        MotivaVariant.HUF: MotivaConfig(
            currency=Currency.HUF,
            min_monthly_payment=10_300 + 142,
            admin_monthly_standard=1_250,
            admin_monthly_annual_payment=790,
            admin_monthly_paid_up=940,
            accident_death_monthly_fee=142,
            tax_credit_cap=130_000,
        ),
        MotivaVariant.EUR: MotivaConfig(
            currency=Currency.EUR,
            min_monthly_payment=0,
            admin_monthly_standard=3.13,
            admin_monthly_annual_payment=1.98,
            admin_monthly_paid_up=2.35,
            accident_death_monthly_fee=0.36,
            tax_credit_cap=1_625,
        ),
    }

    def resolve_variant(self, params: SimulationParams) -> MotivaVariant:
        if params.product_variant == MotivaVariant.EUR:
            return MotivaVariant.EUR
        if params.product_variant == MotivaVariant.HUF:
            return MotivaVariant.HUF
        return MotivaVariant.EUR if params.currency == Currency.EUR else MotivaVariant.HUF

    def duration_years(self, params: SimulationParams) -> int:
        return estimate_duration_years(params, self.MIN_DURATION_YEARS, self.MAX_DURATION_YEARS)

    @staticmethod
    def sales_cost_percent(duration: int, year: int) -> float:
        """Regular-payment sales cost, interpolated between 10- and 20-year terms."""
        t = (min(20, max(10, duration)) - 10) / 10
        if year == 1:
            return _round2(_lerp(10, 30, t))
        if year in (2, 3):
            return _round2(_lerp(10, 20, t))
        return 3.0

    def surrender_payout_percent(self, duration_months: int, elapsed_month: int) -> float:
        maturity = max(120, duration_months)
        m = min(maturity, max(0, elapsed_month))
        points = sorted(self.SURRENDER_PAYOUT_POINTS + [(maturity, 100.0)])
        for (m0, p0), (m1, p1) in zip(points, points[1:]):
            if m <= m1:
                if m1 == m0:
                    return p1
                return _round2(_lerp(p0, p1, (m - m0) / (m1 - m0)))
        return 100.0

    def redemption_fee_by_year(self, duration: int) -> dict[int, float]:
        return {
            year: _round2(max(0.0, 100 - self.surrender_payout_percent(duration * 12, year * 12)))
            for year in range(1, duration + 1)
        }

    def admin_monthly(self, frequency: PaymentFrequency, config: MotivaConfig) -> float:
        if frequency == PaymentFrequency.YEARLY:
            return config.admin_monthly_annual_payment
        return config.admin_monthly_standard

    def defaults(self, params: SimulationParams, variant: MotivaVariant) -> dict[str, Any]:
        config = self.VARIANTS[variant]
        duration = self.duration_years(params)
        years = range(1, duration + 1)
        return {
            **_NO_SWEEP,
            "initial_cost_by_year": _merge(
                {year: self.sales_cost_percent(duration, year) for year in years}, params.initial_cost_by_year
            ),
            "initial_cost_default_percent": 0.0,
            "initial_cost_base_mode": CostBaseMode.PAYMENT,
            "risk_insurance_enabled": True,
            "risk_insurance_monthly_fee_amount": config.accident_death_monthly_fee,
            "risk_insurance_start_year": 1,
            "risk_insurance_end_year": duration,
            "is_account_split_open": True,
            "invested_share_by_year": {year: 100.0 for year in years},
            "invested_share_default_percent": 100.0,
            "asset_based_fee_percent": 0.0,
            "asset_cost_percent_by_year": _merge(
                {year: self.GENERAL_EQUITY_ASSET_COST_PERCENT for year in years}, params.asset_cost_percent_by_year
            ),
            "admin_fee_monthly_amount": self.admin_monthly(params.frequency, config),
            "admin_fee_percent_of_payment": 0.0,
            "account_maintenance_monthly_percent": 0.0,
            "redemption_enabled": True,
            "redemption_base_mode": RedemptionBaseMode.TOTAL,
            "redemption_fee_by_year": _merge(self.redemption_fee_by_year(duration), params.redemption_fee_by_year),
            "redemption_fee_default_percent": 0.0,
            "partial_surrender_fee_amount": 0.0,
            "bonus_mode": BonusMode.NONE,
            "bonus_amount_by_year": {},
            "bonus_percent_by_year": {},
            "enable_tax_credit": True,
            "tax_credit_rate_percent": self.TAX_CREDIT_RATE_PERCENT,
            "tax_credit_cap_per_year": config.tax_credit_cap,
            "tax_credit_start_year": 1,
            "tax_credit_end_year": duration,
            "tax_credit_limit_by_year": {},
            "tax_credit_amount_by_year": {},
            "tax_credit_yield_percent": 0.0,
            "tax_credit_calendar_posting": False,
            "is_tax_bonus_separate_account": True,
            "tax_credit_to_invested_account": False,
            "paid_up_maintenance_fee_monthly_amount": config.admin_monthly_paid_up,
            "paid_up_maintenance_fee_start_month": 1,
        }

    def forced(self, params: SimulationParams, variant: MotivaVariant) -> dict[str, Any]:
        return {
            "currency": self.VARIANTS[variant].currency,
            "product_variant": variant.value,
            "duration_unit": DurationUnit.YEAR,
            "duration_value": self.duration_years(params),
        }

    def validate(self, params: SimulationParams) -> list[str]:
        config = self.VARIANTS[self.resolve_variant(params)]
        minimum = config.min_monthly_payment * 12
        first = params.payment_for_year(1)
        if minimum > 0 and first < minimum:
            return [f"Az első éves befizetés ({first:,.0f}) nem éri el a minimumot ({minimum:,.0f})"]
        return []
