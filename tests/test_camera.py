"""
Unit Tests for the Orbit Camera Rig
===================================
Drag state machine, zoom steps, damping and clamping under hostile input.
"""
import math

import numpy as np
import pytest

from greeksurface.config import CameraLimits, POLAR_EPSILON, SCENE_CENTER
from greeksurface.view.camera import CameraRig, DragState, SphericalCoords


@pytest.fixture
def rig():
    return CameraRig.looking_at((8.0, 2.0, 8.0))


def assert_within_limits(rig):
    low_r, high_r = rig.radius_bounds
    low_phi, high_phi = rig.phi_bounds
    for coords in (rig.current, rig.goal):
        assert low_r <= coords.radius <= high_r
        assert low_phi <= coords.phi <= high_phi
        assert math.isfinite(coords.theta)
    assert all(math.isfinite(v) for v in rig.position)


class TestSphericalCoords:
    def test_offset_round_trip(self):
        coords = SphericalCoords(10.0, 0.3, 1.1)
        back = SphericalCoords.from_offset(coords.to_offset())
        assert back.radius == pytest.approx(10.0)
        assert back.theta == pytest.approx(0.3)
        assert back.phi == pytest.approx(1.1)

    def test_zero_offset(self):
        assert SphericalCoords.from_offset((0.0, 0.0, 0.0)).radius == 0.0


class TestPlacement:
    def test_looking_at_keeps_position(self, rig):
        assert rig.position == pytest.approx((8.0, 2.0, 8.0))
        assert rig.target == SCENE_CENTER

    def test_looking_at_clamps_distance(self):
        far = CameraRig.looking_at((100.0, 0.5, 0.0))
        assert far.current.radius == 20.0

    def test_polar_limits(self):
        low, high = CameraRig().phi_bounds
        assert low >= POLAR_EPSILON
        assert high == pytest.approx(math.pi / 2.0)

    def test_recenter_keeps_offset(self, rig):
        moved = rig.recenter((1.0, 0.0, -1.0))
        assert moved.target == (1.0, 0.0, -1.0)
        assert moved.current == rig.current
        assert rig.recenter(rig.target) is rig


class TestDrag:
    def test_state_machine(self, rig):
        assert rig.state == DragState.IDLE
        rig = rig.pointer_down(10, 10)
        assert rig.state == DragState.DRAGGING
        rig = rig.pointer_up()
        assert rig.state == DragState.IDLE
        assert rig.last_pointer is None

    def test_move_without_press_is_ignored(self, rig):
        assert rig.pointer_move(50, 50) is rig

    def test_drag_rotates_goal(self, rig):
        dragged = rig.pointer_down(0, 0).pointer_move(100, 0)
        assert dragged.goal.theta == pytest.approx(rig.goal.theta - 100 * rig.limits.rotate_speed)
        assert dragged.current == rig.current

    def test_leave_ends_drag(self, rig):
        rig = rig.pointer_down(0, 0).pointer_leave()
        assert rig.state == DragState.IDLE
        assert rig.pointer_move(5, 5) is rig


class TestZoom:
    def test_wheel_steps(self, rig):
        closer = rig.wheel(1.0)
        assert closer.goal.radius == pytest.approx(rig.goal.radius * 0.95)
        further = rig.wheel(-120.0)
        assert further.goal.radius == pytest.approx(rig.goal.radius / 0.95)

    def test_wheel_clamps(self, rig):
        for _ in range(500):
            rig = rig.wheel(1.0)
        assert rig.goal.radius == 5.0
        for _ in range(500):
            rig = rig.wheel(-1.0)
        assert rig.goal.radius == 20.0

    def test_pinch(self, rig):
        assert rig.pinch(2.0).goal.radius == pytest.approx(max(rig.goal.radius / 2.0, 5.0))
        assert rig.pinch(0.0) is rig
        assert rig.pinch(-1.0) is rig

    @pytest.mark.parametrize("delta", [0.0, float("nan"), float("inf")])
    def test_ignored_wheel_input(self, rig, delta):
        assert rig.wheel(delta) is rig


class TestDamping:
    def test_step_approaches_goal(self, rig):
        rig = rig.wheel(1.0)
        start_gap = abs(rig.current.radius - rig.goal.radius)
        stepped = rig.step()
        gap = abs(stepped.current.radius - stepped.goal.radius)
        assert gap == pytest.approx(start_gap * (1 - rig.limits.damping_factor))

    def test_settles_on_goal(self, rig):
        rig = rig.pointer_down(0, 0).pointer_move(40, 25).pointer_up()
        for _ in range(2000):
            rig = rig.step()
        assert rig.current == rig.goal

    def test_without_damping_jumps(self):
        rig = CameraRig.looking_at((8.0, 2.0, 8.0), limits=CameraLimits(enable_damping=False))
        zoomed = rig.wheel(1.0)
        assert zoomed.current == zoomed.goal


def test_clamped_under_adversarial_input():
    rng = np.random.default_rng(1234)
    rig = CameraRig.looking_at((8.0, 2.0, 8.0))
    hostile = [1e12, -1e12, float("nan"), float("inf"), -float("inf"), 0.0]
    for _ in range(3000):
        op = rng.integers(0, 7)
        value = hostile[rng.integers(0, len(hostile))] if rng.random() < 0.3 else rng.normal(0, 500)
        if op == 0:
            rig = rig.pointer_down(value, rng.normal(0, 500))
        elif op == 1:
            rig = rig.pointer_move(value, rng.normal(0, 5000))
        elif op == 2:
            rig = rig.pointer_up()
        elif op == 3:
            rig = rig.wheel(value)
        elif op == 4:
            rig = rig.pinch(value)
        elif op == 5:
            rig = rig.pointer_leave()
        else:
            rig = rig.step()
        assert_within_limits(rig)
