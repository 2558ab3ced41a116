"""Yield scenarios and multi-scenario execution."""

import dataclasses

from unitlinked_sim_hu.params import SimulationParams
from unitlinked_sim_hu.registry import get_product
from unitlinked_sim_hu.simulation import SimulationResult
from unitlinked_sim_hu.yields import FundMode

SCENARIOS = {
    "pesszimista": {
        "annual_yield_percent": 2.0,
        "fund_mode": FundMode.FLAT,
    },
    "alap": {
        "annual_yield_percent": 5.0,
        "fund_mode": FundMode.FLAT,
    },
    "optimista": {
        "annual_yield_percent": 8.0,
        "fund_mode": FundMode.FLAT,
    },
}


def run_scenarios(
    product_id: str,
    params: SimulationParams,
    scenarios: dict[str, dict] | None = None,
) -> dict[str, SimulationResult]:
    """Project one product under each yield scenario, keeping every other input."""
    product = get_product(product_id)
    if scenarios is None:
        scenarios = SCENARIOS
    return {
        name: product.calculate(dataclasses.replace(params, **overrides))
        for name, overrides in scenarios.items()
    }
