"""
Scene Guides
Static reference geometry around the surface: bounding box, floor grid and axis lines.
"""
from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pyvista as pv

from greeksurface.config import HALF_EXTENT, SURFACE_HEIGHT


def bounding_box(half_extent: float = HALF_EXTENT, height: float = SURFACE_HEIGHT) -> pv.PolyData:
    """12 edges of the box the surface lives in."""
    box = pv.Box(bounds=(-half_extent, half_extent, 0.0, height, -half_extent, half_extent))
    return box.outline()


def floor_grid(half_extent: float = HALF_EXTENT, divisions: int = 10, y: float = 0.0) -> pv.PolyData:
    """
    Create a grid in the XZ plane spanning the surface footprint.

    Args:
        half_extent: Half of the grid side length.
        divisions: Number of cells along each side.
        y: Height of the grid plane.

    Returns:
        A PyVista PolyData of line cells.
    """
    coords = np.linspace(-half_extent, half_extent, divisions + 1)
    n_lines = 2 * len(coords)

    points = np.empty((n_lines * 2, 3), dtype=float)
    cells = np.empty(n_lines * 3, dtype=int)

    pid, cid = 0, 0
    for x in coords:
        points[pid] = (x, y, -half_extent)
        points[pid + 1] = (x, y, half_extent)
        cells[cid:cid + 3] = (2, pid, pid + 1)
        pid += 2
        cid += 3
    for z in coords:
        points[pid] = (-half_extent, y, z)
        points[pid + 1] = (half_extent, y, z)
        cells[cid:cid + 3] = (2, pid, pid + 1)
        pid += 2
        cid += 3

    return pv.PolyData(points, lines=cells)


def axis_lines(length: float = HALF_EXTENT) -> List[Tuple[pv.PolyData, str]]:
    """X (red), Y (green), Z (blue) from the origin, like a classic axes helper."""
    origin = (0.0, 0.0, 0.0)
    return [
        (pv.Line(origin, (length, 0.0, 0.0)), "red"),
        (pv.Line(origin, (0.0, length, 0.0)), "green"),
        (pv.Line(origin, (0.0, 0.0, length)), "blue"),
    ]
