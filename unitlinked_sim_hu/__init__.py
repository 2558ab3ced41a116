"""Unit-Linked Insurance Policy Simulation Package."""

from unitlinked_sim_hu.params import (
    SimulationParams,
    Currency,
    DurationUnit,
    CalculationMode,
    PaymentFrequency,
    FeeFrequency,
    FeeValueType,
    CostBaseMode,
    BonusMode,
    RedemptionBaseMode,
)
from unitlinked_sim_hu.yields import FundMode, PricePoint, YieldResolver
from unitlinked_sim_hu.clock import PolicyClock, PolicyPeriod, DAYS_PER_YEAR
from unitlinked_sim_hu.ledger import Ledger, LedgerAmounts, LedgerBook, LedgerKind
from unitlinked_sim_hu.risk import RiskFeeContext, AgeBandedRiskFee, TermAgeBandedRiskFee
from unitlinked_sim_hu.simulation import (
    simulate,
    SimulationResult,
    YearRow,
    MonthRow,
    LedgerYear,
)
from unitlinked_sim_hu.plan import PlanInputs, BuiltPlan, build_yearly_plan, base_year1_payment, years_from_duration
from unitlinked_sim_hu.products import (
    Product,
    DmPro,
    AllianzEletprogram,
    AlfaFortis,
    GeneraliKabalaU91,
    NnMotiva158,
)
from unitlinked_sim_hu.registry import ProductId, PRODUCTS, UnknownProductError, get_product, calculate
from unitlinked_sim_hu.comparison import TopOffer, rank_products

__all__ = [
    "SimulationParams",
    "Currency",
    "DurationUnit",
    "CalculationMode",
    "PaymentFrequency",
    "FeeFrequency",
    "FeeValueType",
    "CostBaseMode",
    "BonusMode",
    "RedemptionBaseMode",
    "FundMode",
    "PricePoint",
    "YieldResolver",
    "PolicyClock",
    "PolicyPeriod",
    "DAYS_PER_YEAR",
    "Ledger",
    "LedgerAmounts",
    "LedgerBook",
    "LedgerKind",
    "RiskFeeContext",
    "AgeBandedRiskFee",
    "TermAgeBandedRiskFee",
    "simulate",
    "SimulationResult",
    "YearRow",
    "MonthRow",
    "LedgerYear",
    "PlanInputs",
    "BuiltPlan",
    "build_yearly_plan",
    "base_year1_payment",
    "years_from_duration",
    "Product",
    "DmPro",
    "AllianzEletprogram",
    "AlfaFortis",
    "GeneraliKabalaU91",
    "NnMotiva158",
    "ProductId",
    "PRODUCTS",
    "UnknownProductError",
    "get_product",
    "calculate",
    "TopOffer",
    "rank_products",
]
