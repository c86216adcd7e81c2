"""
Metric Normalization
====================
Per-metric affine rescale applied before the grid-wide min/max rescale.

Each metric has a fixed transform chosen so its typical values land in a
comparable band. The table is keyed by metric name, so a new metric only
needs a `register_transform` call; the mesh builder never changes.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Union

import numpy as np
import numpy.typing as npt
from scipy import ndimage

from greeksurface.model.dataset import MetricKind, SurfaceDataset, ValueRange
from greeksurface.model.errors import DegenerateRangeError, InsufficientGridError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricTransform:
    """normalized = (raw + offset) * scale / divisor"""
    offset: float = 0.0
    scale: float = 1.0
    divisor: float = 1.0

    def apply(self, raw):
        return (raw + self.offset) * self.scale / self.divisor


IDENTITY = MetricTransform()

METRIC_TRANSFORMS: Dict[str, MetricTransform] = {
    MetricKind.PRICE.value: MetricTransform(divisor=40.0),
    MetricKind.DELTA.value: MetricTransform(offset=1.0, divisor=2.0),  # [-1, 1] -> [0, 1]
    MetricKind.GAMMA.value: MetricTransform(scale=10.0),
    MetricKind.THETA.value: MetricTransform(offset=0.5),
    MetricKind.VEGA.value: MetricTransform(scale=2.0),
    MetricKind.RHO.value: MetricTransform(offset=0.5),
}


def _key(kind: Union[str, MetricKind]) -> str:
    if isinstance(kind, MetricKind):
        return kind.value
    key = str(kind).strip().lower()
    return "price" if key == "prices" else key


def register_transform(kind: Union[str, MetricKind], transform: MetricTransform) -> None:
    METRIC_TRANSFORMS[_key(kind)] = transform


def transform_for(kind: Union[str, MetricKind]) -> MetricTransform:
    """Unknown metrics map to the identity transform."""
    return METRIC_TRANSFORMS.get(_key(kind), IDENTITY)


def normalize(raw_value: float, kind: Union[str, MetricKind]) -> float:
    return float(transform_for(kind).apply(float(raw_value)))


def normalize_grid(values: npt.ArrayLike, kind: Union[str, MetricKind]) -> npt.NDArray[np.float64]:
    """Vectorized `normalize`; NaN holes stay NaN."""
    return transform_for(kind).apply(np.asarray(values, dtype=np.float64))


def fill_holes(grid: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Replaces every non-finite cell by its nearest finite neighbour (index space).

    The same filled grid feeds the mesh heights and the texture, so geometry
    and colour always agree on what a hole looks like.
    """
    holes = ~np.isfinite(grid)
    if not holes.any():
        return grid.copy()
    if holes.all():
        raise ValueError("Cannot fill a grid without finite cells.")
    indices = ndimage.distance_transform_edt(holes, return_distances=False, return_indices=True)
    return grid[tuple(indices)]


@dataclass(frozen=True)
class NormalizedGrid:
    """Everything the mesh and the texture derive from one dataset."""
    normalized: npt.NDArray[np.float64]
    filled: npt.NDArray[np.float64]
    hole_mask: npt.NDArray[np.bool_]
    range: ValueRange
    degenerate: bool

    @property
    def unit(self) -> npt.NDArray[np.float64]:
        """Filled values rescaled into [0, 1] against the grid-wide range."""
        return self.range.unit(self.filled)


def normalize_dataset(dataset: SurfaceDataset) -> NormalizedGrid:
    """
    Normalizes a dataset and computes its grid-wide range.

    Raises:
        InsufficientGridError: Grid smaller than 2x2 or without a finite cell.
    """
    rows, columns = dataset.shape
    if rows < 2 or columns < 2:
        raise InsufficientGridError(rows, columns)

    normalized = normalize_grid(dataset.values, dataset.metric)
    hole_mask = ~np.isfinite(normalized)
    if hole_mask.all():
        raise InsufficientGridError(rows, columns, "no finite cells")

    value_range = ValueRange.of(normalized[~hole_mask])
    degenerate = value_range.is_degenerate
    if degenerate:
        # Recoverable: the zero-width range maps every cell to height 0
        logger.warning(str(DegenerateRangeError(value_range.min)))

    hole_count = int(hole_mask.sum())
    if hole_count:
        logger.warning(f"{hole_count} hole(s) in {rows}x{columns} grid, clamped to nearest valid cell.")

    return NormalizedGrid(
        normalized=normalized,
        filled=fill_holes(normalized),
        hole_mask=hole_mask,
        range=value_range,
        degenerate=degenerate,
    )


