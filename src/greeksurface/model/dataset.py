"""
Surface Dataset (Data Model)
============================
Immutable input of one render: a grid of raw metric values sampled over
volatility (rows) x strike (columns), plus the sample axes and the metric.

Classes:
    MetricKind: Which scalar is surfaced (price or a Greek).
    ValueRange: Closed [min, max] interval in any unit.
    SurfaceDataset: The grid container.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)


class MetricKind(str, Enum):
    PRICE = "price"
    DELTA = "delta"
    GAMMA = "gamma"
    THETA = "theta"
    VEGA = "vega"
    RHO = "rho"

    @classmethod
    def parse(cls, value: Union[str, "MetricKind"]) -> "MetricKind":
        """Accepts enum members, values and the legacy 'prices' alias."""
        if isinstance(value, MetricKind):
            return value
        key = str(value).strip().lower()
        if key == "prices":
            key = "price"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown metric kind: {value!r}") from None

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class ValueRange:
    """Closed interval. A zero-width range keeps its bounds; `unit` maps it onto 0."""
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.max < self.min:
            raise ValueError(f"Range max ({self.max}) is below min ({self.min}).")

    @property
    def is_degenerate(self) -> bool:
        return self.max == self.min

    def unit(self, values) -> npt.NDArray[np.float64]:
        """
        Position of `values` inside the range, clipped to [0, 1].

        Operands are halved before subtracting, so the width stays finite even
        when max - min exceeds the largest float.
        """
        half_width = self.max / 2.0 - self.min / 2.0
        if half_width == 0:
            half_width = 0.5
        t = (np.asarray(values, dtype=np.float64) / 2.0 - self.min / 2.0) / half_width
        return np.clip(t, 0.0, 1.0)

    def lerp(self, t: float) -> float:
        """Value at fraction `t` of the range, without overflowing the width."""
        return self.min * (1.0 - t) + self.max * t

    @classmethod
    def of(cls, values: Sequence[float]) -> "ValueRange":
        arr = np.asarray(values, dtype=np.float64)
        finite = arr[np.isfinite(arr)]
        if finite.size == 0:
            raise ValueError("Cannot compute a range without finite values.")
        return cls(float(finite.min()), float(finite.max()))


# The normalized range is a plain ValueRange over normalized cell values
NormalizedRange = ValueRange


@dataclass(frozen=True, eq=False)
class SurfaceDataset:
    """
    Rectangular grid `values[row][col]`.

    Rows follow `volatilities`, columns follow `strikes`. Cells that failed to
    compute are stored as NaN (holes).
    """
    values: npt.NDArray[np.float64]
    strikes: Tuple[float, ...]
    volatilities: Tuple[float, ...]
    metric: MetricKind = MetricKind.PRICE
    hole_count: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64)
        if values.ndim != 2:
            raise ValueError(f"Expected a 2D grid, got shape {values.shape}.")
        strikes = tuple(float(s) for s in self.strikes)
        vols = tuple(float(v) for v in self.volatilities)
        if values.shape != (len(vols), len(strikes)):
            raise ValueError(
                f"Grid shape {values.shape} does not match "
                f"{len(vols)} volatilities x {len(strikes)} strikes."
            )
        # +/-inf are holes just like NaN
        values[~np.isfinite(values)] = np.nan
        values.setflags(write=False)

        object.__setattr__(self, "values", values)
        object.__setattr__(self, "strikes", strikes)
        object.__setattr__(self, "volatilities", vols)
        object.__setattr__(self, "metric", MetricKind.parse(self.metric))
        object.__setattr__(self, "hole_count", int(np.isnan(values).sum()))

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[float]],
        strikes: Sequence[float],
        volatilities: Sequence[float],
        metric: Union[str, MetricKind] = MetricKind.PRICE,
    ) -> "SurfaceDataset":
        """Builds a dataset from nested lists; None cells become holes."""
        grid = [[np.nan if v is None else v for v in row] for row in rows]
        return cls(np.asarray(grid, dtype=np.float64), tuple(strikes), tuple(volatilities), MetricKind.parse(metric))

    @property
    def rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def columns(self) -> int:
        return int(self.values.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.columns

    @property
    def strike_range(self) -> ValueRange:
        return ValueRange(min(self.strikes), max(self.strikes))

    @property
    def volatility_range(self) -> ValueRange:
        return ValueRange(min(self.volatilities), max(self.volatilities))

    def signature(self) -> Tuple:
        """Hashable identity used to skip redundant rebuilds."""
        return (
            self.metric,
            self.strikes,
            self.volatilities,
            self.values.tobytes(),
        )
