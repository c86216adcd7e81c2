"""Unit tests for the grid colour raster."""
import numpy as np
import pytest

from greeksurface.controller.colors import colors_for_grid
from greeksurface.controller.mesher import SurfaceMeshBuilder
from greeksurface.controller.texture import GridTexture
from greeksurface.model.dataset import SurfaceDataset
from greeksurface.model.errors import InsufficientGridError


def test_one_pixel_per_cell(delta_dataset):
    raster = GridTexture.build(delta_dataset)
    assert (raster.height, raster.width) == delta_dataset.shape
    assert raster.pixels.dtype == np.uint8


def test_extremes_are_red_and_green(price_3x3):
    pixels = GridTexture.build(price_3x3).pixels
    assert tuple(pixels[0, 0]) == (255, 0, 0)
    assert tuple(pixels[2, 2]) == (0, 255, 0)


def test_texture_agrees_with_vertex_colors(price_3x3):
    raster = GridTexture.build(price_3x3)
    geo = SurfaceMeshBuilder().build(price_3x3)
    assert np.array_equal(raster.pixels.reshape(-1, 3), geo.colors)


def test_holes_use_the_mesh_policy():
    ds = SurfaceDataset.from_rows(
        [[1.0, None], [5.0, 9.0]], strikes=[1, 2], volatilities=[0.1, 0.2]
    )
    raster = GridTexture.build(ds)
    geo = SurfaceMeshBuilder().build(ds)
    assert np.array_equal(raster.pixels.reshape(-1, 3), geo.colors)
    assert tuple(raster.pixels[0, 1]) != (128, 128, 128)


def test_degenerate_grid(flat_dataset):
    pixels = GridTexture.build(flat_dataset).pixels
    assert np.all(pixels == pixels[0, 0])


def test_insufficient_grid():
    ds = SurfaceDataset(np.ones((1, 3)), (1.0, 2.0, 3.0), (0.1,))
    with pytest.raises(InsufficientGridError):
        GridTexture.build(ds)


def test_to_texture(price_3x3):
    texture = GridTexture.build(price_3x3).to_texture()
    assert texture.interpolate
    assert texture.dimensions[:2] == (3, 3)
