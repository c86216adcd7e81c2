"""
Unit Tests for the Surface Dataset
==================================
Grid validation, holes and metric parsing.
"""
import math

import numpy as np
import pytest

from greeksurface.model.dataset import MetricKind, SurfaceDataset, ValueRange


class TestMetricKind:
    def test_parse_accepts_values_and_members(self):
        assert MetricKind.parse("gamma") is MetricKind.GAMMA
        assert MetricKind.parse(MetricKind.RHO) is MetricKind.RHO
        assert MetricKind.parse(" Vega ") is MetricKind.VEGA

    def test_parse_prices_alias(self):
        assert MetricKind.parse("prices") is MetricKind.PRICE

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            MetricKind.parse("vanna")

    def test_label(self):
        assert MetricKind.DELTA.label == "Delta"


class TestValueRange:
    def test_unit_of_zero_width_range(self):
        r = ValueRange(5.0, 5.0)
        assert r.is_degenerate
        assert r.unit(5.0) == 0.0
        assert r.unit([4.0, 6.0]).tolist() == [0.0, 1.0]

    def test_unit_of_range_wider_than_float_max(self):
        r = ValueRange(-1.7e308, 1.7e308)
        assert np.isinf(r.max - r.min)
        assert r.unit([-1.7e308, 0.0, 1.7e308]).tolist() == [0.0, 0.5, 1.0]
        assert r.lerp(0.5) == 0.0
        assert r.lerp(1.0) == 1.7e308

    def test_of_ignores_non_finite(self):
        r = ValueRange.of([3.0, np.nan, -1.0, np.inf])
        assert (r.min, r.max) == (-1.0, 3.0)

    def test_of_without_finite_values(self):
        with pytest.raises(ValueError):
            ValueRange.of([np.nan, np.nan])

    def test_inverted_bounds(self):
        with pytest.raises(ValueError):
            ValueRange(2.0, 1.0)


class TestSurfaceDataset:
    def test_shape_follows_axes(self, price_3x3):
        assert price_3x3.shape == (3, 3)
        assert price_3x3.strike_range == ValueRange(90.0, 110.0)
        assert price_3x3.volatility_range.max == pytest.approx(0.3)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            SurfaceDataset(np.zeros((2, 3)), strikes=(1.0, 2.0), volatilities=(0.1, 0.2))

    def test_not_two_dimensional(self):
        with pytest.raises(ValueError):
            SurfaceDataset(np.zeros(3), strikes=(1.0, 2.0, 3.0), volatilities=())

    def test_none_and_inf_become_holes(self):
        ds = SurfaceDataset.from_rows(
            [[1.0, None], [math.inf, 4.0]], strikes=[1, 2], volatilities=[0.1, 0.2]
        )
        assert ds.hole_count == 2
        assert np.isnan(ds.values[0, 1])
        assert np.isnan(ds.values[1, 0])

    def test_values_are_read_only(self, price_3x3):
        with pytest.raises(ValueError):
            price_3x3.values[0, 0] = 42.0

    def test_input_array_is_copied(self):
        raw = np.ones((2, 2))
        ds = SurfaceDataset(raw, strikes=(1.0, 2.0), volatilities=(0.1, 0.2))
        raw[0, 0] = 9.0
        assert ds.values[0, 0] == 1.0

    def test_signature_tracks_content(self, price_3x3):
        same = SurfaceDataset.from_rows(
            [[1, 2, 3], [4, 5, 6], [7, 8, 9]], [90, 100, 110], [0.1, 0.2, 0.3], "price"
        )
        other = SurfaceDataset.from_rows(
            [[1, 2, 3], [4, 5, 6], [7, 8, 10]], [90, 100, 110], [0.1, 0.2, 0.3], "price"
        )
        assert price_3x3.signature() == same.signature()
        assert price_3x3.signature() != other.signature()
