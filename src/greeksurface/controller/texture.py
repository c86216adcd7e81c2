"""
Grid Texture
Builds the colour raster (one pixel per grid cell) used as the surface skin.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np
import numpy.typing as npt
import pyvista as pv

from greeksurface.controller.colors import colors_for_grid
from greeksurface.controller.normalization import NormalizedGrid, normalize_dataset
from greeksurface.model.dataset import SurfaceDataset

logger = logging.getLogger(__name__)


@dataclass
class RasterImage:
    """RGB pixels, shape (rows, columns, 3); pixel row 0 is grid row 0."""
    pixels: npt.NDArray[np.uint8]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_texture(self) -> pv.Texture:
        texture = pv.Texture(np.ascontiguousarray(self.pixels))
        texture.interpolate = True
        return texture


class GridTexture:
    @staticmethod
    def build(dataset: SurfaceDataset, grid: Optional[NormalizedGrid] = None) -> RasterImage:
        """
        Args:
            dataset: Source grid.
            grid: Already normalized grid of the same dataset, to skip re-normalizing.

        Raises:
            InsufficientGridError: Same rules as the mesh builder.
        """
        if grid is None:
            grid = normalize_dataset(dataset)
        pixels = colors_for_grid(grid.filled, grid.range)
        logger.debug(f"Texture raster {pixels.shape[1]}x{pixels.shape[0]} px.")
        return RasterImage(pixels)
