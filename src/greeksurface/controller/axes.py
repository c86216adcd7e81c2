"""
Axis Labeler
============
Tick positions/values in real units for the three logical axes, plus the
summary label of each axis.

Ticks are evenly spaced in value space and mapped onto the same visual
extent the mesh builder uses, so tick i of the strike axis sits exactly on
mesh column i * (columns - 1) / (count - 1). Nothing here is interactive;
every rebuild regenerates all ticks and labels.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, List, Tuple

import numpy as np
import pyvista as pv

from greeksurface.config import (
    DEFAULT_TICK_COUNT, HALF_EXTENT, LABEL_DECIMALS, LABEL_OFFSET, SURFACE_HEIGHT,
    TICK_LABEL_OFFSET, TICK_SIZE, VALUE_LABEL_HEIGHT,
)
from greeksurface.model.dataset import MetricKind, ValueRange

logger = logging.getLogger(__name__)

Point3 = Tuple[float, float, float]


class AxisKind(str, Enum):
    STRIKE = "x"
    VALUE = "y"
    VOLATILITY = "z"


@dataclass(frozen=True)
class AxisTick:
    real_value: float
    visual_position: Point3
    axis: AxisKind
    text: str
    label_position: Point3


@dataclass(frozen=True)
class AxisLabel:
    text: str
    position: Point3
    axis: AxisKind


@dataclass
class AxisAnnotations:
    ticks: Dict[AxisKind, List[AxisTick]] = field(default_factory=dict)
    labels: List[AxisLabel] = field(default_factory=list)

    def all_ticks(self) -> List[AxisTick]:
        return [t for axis in AxisKind for t in self.ticks.get(axis, [])]


def format_value(value: float, decimals: int = LABEL_DECIMALS) -> str:
    return f"{value:.{decimals}f}"


class AxisLabeler:
    def __init__(
        self,
        half_extent: float = HALF_EXTENT,
        height: float = SURFACE_HEIGHT,
        volatility_scale: float = 100.0,
    ) -> None:
        self.half_extent = half_extent
        self.height = height
        self.volatility_scale = volatility_scale

    def ticks(self, value_range: ValueRange, axis: AxisKind, count: int = DEFAULT_TICK_COUNT) -> List[AxisTick]:
        """
        Evenly spaced ticks over [range.min, range.max].

        Raises:
            ValueError: If fewer than two ticks are requested.
        """
        if count < 2:
            raise ValueError(f"Tick count must be at least 2, got {count}.")

        h = self.half_extent
        ticks: List[AxisTick] = []
        for i in range(count):
            t = i / (count - 1)
            real = value_range.lerp(t)

            if axis == AxisKind.STRIKE:
                x = -h + t * 2.0 * h
                position = (x, 0.0, -h)
                label_position = (x, -TICK_LABEL_OFFSET, -h)
            elif axis == AxisKind.VALUE:
                y = t * self.height
                position = (-h, y, -h)
                label_position = (-h - LABEL_OFFSET, y, -h)
            else:
                z = -h + t * 2.0 * h
                position = (-h, 0.0, z)
                label_position = (-h, -TICK_LABEL_OFFSET, z)

            ticks.append(AxisTick(
                real_value=float(real),
                visual_position=position,
                axis=axis,
                text=format_value(real),
                label_position=label_position,
            ))
        return ticks

    def summary_labels(
        self,
        strike_range: ValueRange,
        value_range: ValueRange,
        volatility_range: ValueRange,
        metric: MetricKind = MetricKind.PRICE,
    ) -> List[AxisLabel]:
        """One label per axis showing its full span, placed just outside the bounding box."""
        h = self.half_extent + LABEL_OFFSET

        def span(r: ValueRange) -> str:
            return f"{format_value(r.min)}-{format_value(r.max)}"

        return [
            AxisLabel(f"Strike ({span(strike_range)})", (h, 0.0, 0.0), AxisKind.STRIKE),
            AxisLabel(f"{metric.label} ({span(value_range)})", (0.0, VALUE_LABEL_HEIGHT, 0.0), AxisKind.VALUE),
            AxisLabel(f"Vol ({span(volatility_range)})", (0.0, 0.0, h), AxisKind.VOLATILITY),
        ]

    def annotate(
        self,
        strike_range: ValueRange,
        value_range: ValueRange,
        volatility_range: ValueRange,
        metric: MetricKind = MetricKind.PRICE,
        count: int = DEFAULT_TICK_COUNT,
    ) -> AxisAnnotations:
        """
        Ticks and summary labels for a whole surface.

        Volatility ticks are labeled in percent points (volatility_scale),
        the summary label keeps the raw decimal range.
        """
        vol_ticks = ValueRange(
            volatility_range.min * self.volatility_scale,
            volatility_range.max * self.volatility_scale,
        )
        return AxisAnnotations(
            ticks={
                AxisKind.STRIKE: self.ticks(strike_range, AxisKind.STRIKE, count),
                AxisKind.VALUE: self.ticks(value_range, AxisKind.VALUE, count),
                AxisKind.VOLATILITY: self.ticks(vol_ticks, AxisKind.VOLATILITY, count),
            },
            labels=self.summary_labels(strike_range, value_range, volatility_range, metric),
        )


def tick_marks_polydata(ticks: List[AxisTick], size: float = TICK_SIZE) -> pv.PolyData:
    """Small cubes at every tick position, merged into one dataset."""
    if not ticks:
        return pv.PolyData()
    centers = pv.PolyData(np.array([t.visual_position for t in ticks], dtype=np.float64))
    cube = pv.Cube(x_length=size, y_length=size, z_length=size)
    return centers.glyph(geom=cube, scale=False, orient=False)
