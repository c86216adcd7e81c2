"""
Color Mapping
Maps a normalized value against a range onto a red (low) -> green (high) hue sweep.
"""
from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np
import numpy.typing as npt
from matplotlib.colors import hsv_to_rgb

from greeksurface.model.dataset import ValueRange

# Hue in [0, 1] turns: 0 = red, 1/3 = green
LOW_HUE: float = 0.0
HIGH_HUE: float = 1.0 / 3.0
SATURATION: float = 1.0
BRIGHTNESS: float = 1.0
HOLE_COLOR = (128, 128, 128)


class RGB(NamedTuple):
    r: int
    g: int
    b: int


def _to_bytes(unit: npt.NDArray[np.float64]) -> npt.NDArray[np.uint8]:
    hsv = np.stack(
        [
            LOW_HUE + unit * (HIGH_HUE - LOW_HUE),
            np.full_like(unit, SATURATION),
            np.full_like(unit, BRIGHTNESS),
        ],
        axis=-1,
    )
    return np.floor(hsv_to_rgb(hsv) * 255.0 + 1e-9).astype(np.uint8)


def color_for(value: float, value_range: ValueRange) -> RGB:
    """
    Single-value colour lookup.

    A zero-width range divides by 1 instead of 0, so every value maps to a
    defined boundary colour. Non-finite values get the neutral hole colour.
    """
    if not math.isfinite(value):
        return RGB(*HOLE_COLOR)
    r, g, b = _to_bytes(value_range.unit(value))
    return RGB(int(r), int(g), int(b))


def colors_for_grid(values: npt.NDArray[np.float64], value_range: ValueRange) -> npt.NDArray[np.uint8]:
    """Vectorized `color_for`: returns an array of shape values.shape + (3,)."""
    values = np.asarray(values, dtype=np.float64)
    finite = np.isfinite(values)
    out = _to_bytes(value_range.unit(np.where(finite, values, value_range.min)))
    out[~finite] = HOLE_COLOR
    return out
