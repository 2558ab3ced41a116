"""Tests for product registry and comparison ranking."""

import pytest
from unitlinked_sim_hu import (
    PRODUCTS,
    AlfaFortis,
    ProductId,
    SimulationParams,
    UnknownProductError,
    calculate,
    get_product,
    rank_products,
    simulate,
)


def _params(**kwargs) -> SimulationParams:
    return SimulationParams(duration_value=10, yearly_payments=[600_000] * 10, annual_yield_percent=5, **kwargs)


class TestRegistry:
    def test_every_id_registered(self):
        assert set(PRODUCTS) == set(ProductId)
        for product_id, product in PRODUCTS.items():
            assert product.ID == product_id

    def test_get_product(self):
        assert isinstance(get_product("alfa-fortis"), AlfaFortis)

    def test_unknown_product(self):
        with pytest.raises(UnknownProductError, match="nincs-ilyen") as exc_info:
            get_product("nincs-ilyen")
        assert exc_info.value.product_id == "nincs-ilyen"
        assert "dm-pro" in exc_info.value.known_ids

    def test_unknown_product_is_value_error(self):
        with pytest.raises(ValueError):
            calculate("nincs-ilyen", _params())

    def test_calculate_dm_pro_matches_engine(self):
        p = _params(upfront_cost_percent=20)
        assert calculate("dm-pro", p).end_balance == pytest.approx(simulate(p).end_balance)


class TestRankProducts:
    def test_sorted_by_surrender_value(self):
        offers = rank_products(_params())
        values = [o.surrender_value for o in offers]
        assert values == sorted(values, reverse=True)

    def test_dm_pro_excluded_by_default(self):
        ids = {o.product_id for o in rank_products(_params())}
        assert ProductId.DM_PRO not in ids
        assert len(ids) == len(ProductId) - 1

    def test_explicit_ids_and_top(self):
        offers = rank_products(_params(), product_ids=["dm-pro", "allianz-eletprogram"], top=1)
        assert len(offers) == 1
        # No fees at all beats any insurance product
        assert offers[0].product_id == "dm-pro"

    def test_ratio_percent(self):
        offer = rank_products(_params(), product_ids=["dm-pro"])[0]
        assert offer.ratio_percent == pytest.approx(offer.surrender_value / offer.total_contributions * 100)
        assert offer.ratio_percent > 100

    def test_ratio_without_contributions(self):
        offer = rank_products(SimulationParams(duration_value=1), product_ids=["dm-pro"])[0]
        assert offer.total_contributions == 0
        assert offer.ratio_percent == 0

    def test_unknown_id_raises(self):
        with pytest.raises(UnknownProductError):
            rank_products(_params(), product_ids=["nincs-ilyen"])
