"""
Black-Scholes Pricing
=====================
European option price and Greeks under Black-Scholes.

The surface engine treats this module as an opaque collaborator: the only
entry point it relies on is `compute_metric`, which returns one float per
grid point. Failures here are turned into holes by the sampling layer.

Units:
    theta: per calendar day (annual theta / 365)
    vega, rho: per 1 percentage point (/ 100)
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Union

from scipy.stats import norm

from greeksurface.model.dataset import MetricKind

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


@dataclass
class Greeks:
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass
class BlackScholes:
    """Pricing inputs for a single option."""
    spot_price: float
    strike_price: float
    time_to_expiry: float
    risk_free_rate: float
    volatility: float

    def d1(self) -> float:
        numerator = (
            math.log(self.spot_price / self.strike_price)
            + (self.risk_free_rate + 0.5 * self.volatility ** 2) * self.time_to_expiry
        )
        denominator = self.volatility * math.sqrt(self.time_to_expiry)
        return numerator / denominator

    def d2(self) -> float:
        return self.d1() - self.volatility * math.sqrt(self.time_to_expiry)

    def _discount(self) -> float:
        return math.exp(-self.risk_free_rate * self.time_to_expiry)

    def price(self, option_type: OptionType) -> float:
        d1, d2 = self.d1(), self.d2()
        df = self._discount()
        if option_type == OptionType.CALL:
            return self.spot_price * norm.cdf(d1) - self.strike_price * df * norm.cdf(d2)
        return self.strike_price * df * norm.cdf(-d2) - self.spot_price * norm.cdf(-d1)

    def greeks(self, option_type: OptionType) -> Greeks:
        d1, d2 = self.d1(), self.d2()
        df = self._discount()
        sqrt_t = math.sqrt(self.time_to_expiry)
        pdf_d1 = norm.pdf(d1)

        if option_type == OptionType.CALL:
            delta = norm.cdf(d1)
            carry = -self.risk_free_rate * self.strike_price * df * norm.cdf(d2)
            rho = self.strike_price * self.time_to_expiry * df * norm.cdf(d2) / 100.0
        else:
            delta = norm.cdf(d1) - 1.0
            carry = self.risk_free_rate * self.strike_price * df * norm.cdf(-d2)
            rho = -self.strike_price * self.time_to_expiry * df * norm.cdf(-d2) / 100.0

        gamma = pdf_d1 / (self.spot_price * self.volatility * sqrt_t)
        decay = -self.spot_price * pdf_d1 * self.volatility / (2.0 * sqrt_t)
        theta = (decay + carry) / DAYS_PER_YEAR
        vega = self.spot_price * pdf_d1 * sqrt_t / 100.0

        return Greeks(
            delta=float(delta),
            gamma=float(gamma),
            theta=float(theta),
            vega=float(vega),
            rho=float(rho),
        )

    def implied_volatility(
        self,
        market_price: float,
        option_type: OptionType,
        max_iterations: int = 100,
        tolerance: float = 1e-6,
    ) -> float:
        """
        Newton-Raphson solve for the volatility matching `market_price`.

        Raises:
            ArithmeticError: If vega vanishes or the iteration does not converge.
        """
        vol = 0.2
        trial = BlackScholes(
            self.spot_price, self.strike_price, self.time_to_expiry, self.risk_free_rate, vol
        )
        for _ in range(max_iterations):
            trial.volatility = vol
            diff = trial.price(option_type) - market_price
            if abs(diff) < tolerance:
                return vol

            vega = trial.greeks(option_type).vega * 100.0
            if abs(vega) < 1e-10:
                raise ArithmeticError("Vega too small, cannot converge.")

            vol -= diff / vega
            if vol <= 0.0:
                vol = 0.001

        raise ArithmeticError(f"Implied volatility did not converge in {max_iterations} iterations.")


def compute_metric(
    spot: float,
    strike: float,
    time: float,
    rate: float,
    vol: float,
    option_type: Union[str, OptionType],
    metric: Union[str, MetricKind],
) -> float:
    """Price or one Greek for a single grid point."""
    option_type = OptionType(option_type)
    metric = MetricKind.parse(metric)
    model = BlackScholes(spot, strike, time, rate, vol)
    if metric == MetricKind.PRICE:
        return float(model.price(option_type))
    return float(getattr(model.greeks(option_type), metric.value))
