"""
Dataset Sampling
================
Evaluates the pricing collaborator over a strike x volatility grid and
packs the result into a SurfaceDataset.

A grid point whose computation raises or returns a non-finite number is
stored as a hole (NaN). One bad point never aborts the whole grid.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, Tuple, Union

import numpy as np

from greeksurface.model.dataset import MetricKind, SurfaceDataset
from greeksurface.model.errors import PerPointComputeFailure
from greeksurface.model.pricing import OptionType, compute_metric

logger = logging.getLogger(__name__)

MetricFunction = Callable[[float, float, float, float, float, OptionType, MetricKind], float]


@dataclass
class AxisSampling:
    """Inclusive arithmetic sequence min, min+step, ... <= max."""
    min: float
    max: float
    step: float

    def __post_init__(self) -> None:
        if self.step <= 0:
            raise ValueError(f"Sampling step must be positive, got {self.step}.")
        if self.max < self.min:
            raise ValueError(f"Sampling max ({self.max}) is below min ({self.min}).")

    @property
    def count(self) -> int:
        # Small tolerance so 0.1..0.5 step 0.05 yields 9 samples, not 8
        return int(math.floor((self.max - self.min) / self.step + 1e-9)) + 1

    def values(self) -> Tuple[float, ...]:
        return tuple(float(self.min + i * self.step) for i in range(self.count))


@dataclass
class SamplingParameters:
    strikes: AxisSampling = field(default_factory=lambda: AxisSampling(80.0, 120.0, 5.0))
    volatilities: AxisSampling = field(default_factory=lambda: AxisSampling(0.1, 0.5, 0.05))
    spot: float = 100.0
    time: float = 1.0
    rate: float = 0.05


def _evaluate_point(
    compute: MetricFunction,
    params: SamplingParameters,
    strike: float,
    vol: float,
    option_type: OptionType,
    metric: MetricKind,
    row: int,
    column: int,
) -> float:
    try:
        value = float(compute(params.spot, strike, params.time, params.rate, vol, option_type, metric))
    except Exception as e:  # any collaborator failure is a hole
        raise PerPointComputeFailure(row, column, e) from e
    if not math.isfinite(value):
        raise PerPointComputeFailure(row, column, f"non-finite result {value}")
    return value


def generate_dataset(
    params: SamplingParameters,
    metric: Union[str, MetricKind] = MetricKind.PRICE,
    option_type: Union[str, OptionType] = OptionType.CALL,
    compute: MetricFunction = compute_metric,
) -> SurfaceDataset:
    """
    Samples `compute` over every (volatility, strike) pair.

    Args:
        params: Axis sampling and the fixed pricing inputs.
        metric: Which metric to evaluate.
        option_type: Call or put.
        compute: Pricing collaborator, `compute_metric` by default.

    Returns:
        A dataset whose rows follow volatilities and columns follow strikes.
    """
    metric = MetricKind.parse(metric)
    option_type = OptionType(option_type)
    strikes = params.strikes.values()
    vols = params.volatilities.values()

    grid = np.full((len(vols), len(strikes)), np.nan, dtype=np.float64)
    failures = 0
    for row, vol in enumerate(vols):
        for column, strike in enumerate(strikes):
            try:
                grid[row, column] = _evaluate_point(
                    compute, params, strike, vol, option_type, metric, row, column
                )
            except PerPointComputeFailure as e:
                failures += 1
                logger.debug(str(e))

    if failures:
        logger.warning(f"{failures} of {grid.size} grid points could not be computed and are holes.")

    logger.info(
        f"Sampled {metric.value} ({option_type.value}) on a {len(vols)}x{len(strikes)} grid."
    )
    return SurfaceDataset(grid, strikes, vols, metric)
