"""
Surface Mesh Builder
====================
This module turns a SurfaceDataset into the height-mapped surface and its
wireframe.

Why is this file needed?
------------------------
1. Translation: It converts a grid of raw metric readings into vertex
   positions inside a fixed visual square. Real strike/vol units never reach
   the geometry; they are recovered by the axis labeler.
2. Consistency: Mesh, wireframe and per-vertex colours share one vertex
   array, so they can never drift apart.

Layout:
    x follows the column (strike) index, z follows the row (volatility)
    index, y is the normalized height in [0, SURFACE_HEIGHT].
    Vertex index = row * columns + column.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Tuple

import numpy as np
import numpy.typing as npt
import pyvista as pv

from greeksurface.config import HALF_EXTENT, SURFACE_HEIGHT
from greeksurface.controller.colors import colors_for_grid
from greeksurface.controller.normalization import NormalizedGrid, normalize_dataset
from greeksurface.model.dataset import MetricKind, SurfaceDataset, ValueRange

logger = logging.getLogger(__name__)


@dataclass
class MeshGeometry:
    """Result of one build. Owned by exactly one viewport."""
    metric: MetricKind
    shape: Tuple[int, int]
    points: npt.NDArray[np.float64]       # (rows * columns, 3)
    heights: npt.NDArray[np.float64]      # (rows, columns)
    colors: npt.NDArray[np.uint8]         # (rows * columns, 3)
    normalized_range: ValueRange
    value_range: ValueRange               # raw metric units, finite cells only
    hole_mask: npt.NDArray[np.bool_]
    degenerate: bool
    surface: pv.PolyData
    wireframe: pv.PolyData

    @property
    def n_vertices(self) -> int:
        return int(self.points.shape[0])

    @property
    def hole_count(self) -> int:
        return int(self.hole_mask.sum())

    @property
    def center(self) -> Tuple[float, float, float]:
        """Visual center of the mesh; the camera orbits around it."""
        x_min, y_min, z_min = self.points.min(axis=0)
        x_max, y_max, z_max = self.points.max(axis=0)
        return (
            float((x_min + x_max) / 2.0),
            float((y_min + y_max) / 2.0),
            float((z_min + z_max) / 2.0),
        )


def quad_faces(rows: int, columns: int) -> npt.NDArray[np.int64]:
    """VTK face array of (rows-1)*(columns-1) quads, counter-clockwise seen from +y."""
    r, c = np.meshgrid(np.arange(rows - 1), np.arange(columns - 1), indexing="ij")
    i = (r * columns + c).ravel()
    quads = np.column_stack([
        np.full_like(i, 4),
        i,
        i + columns,
        i + columns + 1,
        i + 1,
    ])
    return quads.ravel()


def grid_lines(rows: int, columns: int) -> npt.NDArray[np.int64]:
    """VTK line array with every horizontal and vertical edge of the grid."""
    index = np.arange(rows * columns).reshape(rows, columns)
    along_rows = np.column_stack([index[:, :-1].ravel(), index[:, 1:].ravel()])
    along_cols = np.column_stack([index[:-1, :].ravel(), index[1:, :].ravel()])
    edges = np.vstack([along_rows, along_cols])
    return np.column_stack([np.full(len(edges), 2), edges]).ravel()


class SurfaceMeshBuilder:
    """Stateless builder; a single instance may be reused for every rebuild."""

    def __init__(self, half_extent: float = HALF_EXTENT, height: float = SURFACE_HEIGHT) -> None:
        self.half_extent = half_extent
        self.height = height

    def build(self, dataset: SurfaceDataset, grid: Optional[NormalizedGrid] = None) -> MeshGeometry:
        """
        Builds the surface and wireframe for `dataset`.

        Args:
            dataset: Source grid.
            grid: Already normalized grid of the same dataset, if the caller has one.

        Raises:
            InsufficientGridError: The grid cannot form a surface.
        """
        # 1. Normalize + grid-wide range (holes excluded, then clamped)
        if grid is None:
            grid = normalize_dataset(dataset)
        rows, columns = dataset.shape

        # 2. Heights in [0, height]
        heights = grid.unit * self.height

        # 3. Fixed visual layout, independent of strike/vol units
        points = self._layout(heights)

        # 4. Surface with texture coordinates and recomputed normals
        surface = pv.PolyData(points, faces=quad_faces(rows, columns))
        surface.active_texture_coordinates = self._texture_coordinates(rows, columns)
        colors = colors_for_grid(grid.filled, grid.range).reshape(-1, 3)
        surface.point_data["colors"] = colors
        surface.point_data["height"] = heights.ravel()
        surface.compute_normals(
            cell_normals=False,
            point_normals=True,
            split_vertices=False,
            inplace=True,
        )

        # 5. Wireframe over the very same vertices
        wireframe = pv.PolyData(points.copy(), lines=grid_lines(rows, columns))

        logger.info(
            f"Built {dataset.metric.value} surface: {rows}x{columns} vertices, "
            f"range [{grid.range.min:.4g}, {grid.range.max:.4g}]."
        )

        return MeshGeometry(
            metric=dataset.metric,
            shape=(rows, columns),
            points=points,
            heights=heights,
            colors=colors,
            normalized_range=grid.range,
            value_range=self._raw_range(dataset, grid),
            hole_mask=grid.hole_mask,
            degenerate=grid.degenerate,
            surface=surface,
            wireframe=wireframe,
        )

    def _layout(self, heights: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        rows, columns = heights.shape
        xs = np.linspace(-self.half_extent, self.half_extent, columns)
        zs = np.linspace(-self.half_extent, self.half_extent, rows)
        x, z = np.meshgrid(xs, zs)  # shape (rows, columns)
        return np.column_stack([x.ravel(), heights.ravel(), z.ravel()]).astype(np.float64)

    @staticmethod
    def _texture_coordinates(rows: int, columns: int) -> npt.NDArray[np.float64]:
        """Each vertex samples the centre of its own texel; image row 0 is the top."""
        u = (np.arange(columns) + 0.5) / columns
        v = 1.0 - (np.arange(rows) + 0.5) / rows
        uu, vv = np.meshgrid(u, v)
        return np.column_stack([uu.ravel(), vv.ravel()])

    @staticmethod
    def _raw_range(dataset: SurfaceDataset, grid: NormalizedGrid) -> ValueRange:
        return ValueRange.of(dataset.values[~grid.hole_mask])
