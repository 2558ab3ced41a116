"""Daily growth factors for the invested and tax-bonus ledgers."""

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum

from unitlinked_sim_hu.clock import DAYS_PER_YEAR

logger = logging.getLogger(__name__)


class FundMode(StrEnum):
    FLAT = "flat"
    REPLAY = "replay"
    AVERAGED = "averaged"


@dataclass(frozen=True)
class PricePoint:
    date: str  # ISO date
    price: float


def daily_factor(annual_percent: float) -> float:
    """(1 + r)^(1/365) for an annual percentage; 1.0 for unusable input."""
    rate = annual_percent / 100
    if not math.isfinite(rate) or rate <= -1:
        return 1.0
    return (1 + rate) ** (1 / DAYS_PER_YEAR)


def normalize_series(series: list[PricePoint] | None) -> list[PricePoint]:
    """Drop non-positive or non-finite prices and sort by date."""
    if not series:
        return []
    valid = [p for p in series if isinstance(p.date, str) and math.isfinite(p.price) and p.price > 0]
    return sorted(valid, key=lambda p: p.date)


def build_daily_returns(series: list[PricePoint] | None) -> list[float]:
    """Day-over-day simple returns of a fund price series."""
    points = normalize_series(series)
    returns = []
    for prev, curr in zip(points, points[1:]):
        r = curr.price / prev.price - 1
        if math.isfinite(r):
            returns.append(r)
    return returns


def averaged_daily_factor(returns: list[float], fallback: float) -> float:
    """Geometric mean daily factor of a return series."""
    if not returns:
        return fallback
    cumulative = math.prod(1 + r for r in returns)
    if not math.isfinite(cumulative) or cumulative <= 0:
        return fallback
    factor = cumulative ** (1 / len(returns))
    return factor if math.isfinite(factor) and factor > 0 else fallback


@dataclass
class YieldResolver:
    """Per-day factor for the invested ledger.

    In replay mode the factor is the ratio of the day's price to the last
    price seen, and 1.0 on days without a quote. One resolver serves one
    simulation run.
    """

    flat_factor: float
    mode: FundMode = FundMode.FLAT
    averaged_factor: float | None = None
    prices: dict[str, float] = field(default_factory=dict)
    last_price: float | None = None

    @classmethod
    def build(
        cls,
        annual_yield_percent: float,
        mode: FundMode | str = FundMode.FLAT,
        series: list[PricePoint] | None = None,
    ) -> "YieldResolver":
        flat = daily_factor(annual_yield_percent)
        if mode == FundMode.AVERAGED:
            returns = build_daily_returns(series)
            if returns:
                return cls(flat, FundMode.AVERAGED, averaged_factor=averaged_daily_factor(returns, flat))
            logger.debug("Averaged fund mode without usable prices; using flat %.4f%%", annual_yield_percent)
        elif mode == FundMode.REPLAY:
            points = normalize_series(series)
            if len(points) >= 2:
                return cls(
                    flat,
                    FundMode.REPLAY,
                    prices={p.date: p.price for p in points},
                    last_price=points[0].price,
                )
            logger.debug("Replay fund mode needs two prices; using flat %.4f%%", annual_yield_percent)
        return cls(flat)

    def factor_for(self, date_iso: str) -> float:
        if self.mode == FundMode.AVERAGED and self.averaged_factor is not None:
            return self.averaged_factor
        if self.mode == FundMode.REPLAY and self.last_price is not None:
            price = self.prices.get(date_iso)
            if price is None:
                return 1.0
            factor = price / self.last_price
            if not math.isfinite(factor) or factor <= 0:
                return 1.0
            self.last_price = price
            return factor
        return self.flat_factor
