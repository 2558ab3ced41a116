"""Rank products by surrender value for one set of inputs."""

import logging
from dataclasses import dataclass

from unitlinked_sim_hu.params import SimulationParams
from unitlinked_sim_hu.registry import ProductId, get_product
from unitlinked_sim_hu.simulation import SimulationResult

logger = logging.getLogger(__name__)

# The generic calculator is a baseline, not an offer
DEFAULT_COMPARED_PRODUCTS = tuple(p for p in ProductId if p != ProductId.DM_PRO)


@dataclass(frozen=True)
class TopOffer:
    product_id: str
    label: str
    insurer: str
    surrender_value: float
    end_balance: float
    total_contributions: float
    total_costs: float
    ratio_percent: float
    result: SimulationResult


def rank_products(
    params: SimulationParams,
    product_ids: list[str] | None = None,
    top: int | None = None,
) -> list[TopOffer]:
    """Run every product on the same inputs and rank by surrender value (best first)."""
    ids = list(product_ids) if product_ids is not None else list(DEFAULT_COMPARED_PRODUCTS)
    offers = []
    for product_id in ids:
        product = get_product(product_id)
        result = product.calculate(params)
        contributions = result.total_contributions
        surrender = result.surrender_value
        offers.append(
            TopOffer(
                product_id=product.ID,
                label=product.LABEL,
                insurer=product.INSURER,
                surrender_value=surrender,
                end_balance=result.end_balance,
                total_contributions=contributions,
                total_costs=result.total_costs,
                ratio_percent=surrender / contributions * 100 if contributions > 0 else 0.0,
                result=result,
            )
        )
        logger.debug("%s: surrender value %.2f", product.ID, surrender)
    offers.sort(key=lambda o: o.surrender_value, reverse=True)
    return offers[:top] if top is not None else offers
