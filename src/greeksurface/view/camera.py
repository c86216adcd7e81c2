"""
Orbit Camera Rig
================
Camera on a sphere around a fixed look-at target, driven by pointer drags
(orbit), wheel/pinch (zoom) and a per-frame damping step.

The rig is an immutable value: every input returns a new rig. The viewport
keeps exactly one and swaps it on each event, so there is no hidden drag
flag or mouse position living in a closure.

Conventions (y is up):
    theta: azimuth around +y, measured from +z towards +x
    phi: polar angle from +y, clamped to [eps, pi - eps] and the configured limits
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
import math
from typing import Optional, Tuple

from greeksurface.config import CameraLimits, POLAR_EPSILON, SCENE_CENTER

Point3 = Tuple[float, float, float]

# Snap threshold for the damped approach
_SETTLE = 1e-6


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class SphericalCoords:
    radius: float
    theta: float
    phi: float

    def to_offset(self) -> Point3:
        sin_phi = math.sin(self.phi)
        return (
            self.radius * sin_phi * math.sin(self.theta),
            self.radius * math.cos(self.phi),
            self.radius * sin_phi * math.cos(self.theta),
        )

    @classmethod
    def from_offset(cls, offset: Point3) -> "SphericalCoords":
        x, y, z = offset
        radius = math.sqrt(x * x + y * y + z * z)
        if radius == 0.0:
            return cls(0.0, 0.0, math.pi / 2.0)
        theta = math.atan2(x, z)
        phi = math.acos(max(-1.0, min(1.0, y / radius)))
        return cls(radius, theta, phi)


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


@dataclass(frozen=True)
class CameraRig:
    limits: CameraLimits = field(default_factory=CameraLimits)
    target: Point3 = SCENE_CENTER
    current: SphericalCoords = SphericalCoords(10.0, math.pi / 4.0, math.pi / 3.0)
    goal: SphericalCoords = SphericalCoords(10.0, math.pi / 4.0, math.pi / 3.0)
    state: DragState = DragState.IDLE
    last_pointer: Optional[Tuple[float, float]] = None

    @classmethod
    def looking_at(
        cls,
        position: Point3,
        target: Point3 = SCENE_CENTER,
        limits: Optional[CameraLimits] = None,
    ) -> "CameraRig":
        """Rig placed at `position`, orbiting `target` (clamped into the limits)."""
        limits = limits or CameraLimits()
        offset = tuple(p - t for p, t in zip(position, target))
        rig = cls(limits=limits, target=tuple(float(t) for t in target))
        coords = rig.clamp(SphericalCoords.from_offset(offset))
        return replace(rig, current=coords, goal=coords)

    # ------------------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------------------

    @property
    def phi_bounds(self) -> Tuple[float, float]:
        low = max(POLAR_EPSILON, self.limits.min_polar_angle)
        high = min(math.pi - POLAR_EPSILON, self.limits.max_polar_angle)
        if high < low:
            high = low
        return low, high

    @property
    def radius_bounds(self) -> Tuple[float, float]:
        low = self.limits.min_distance
        return low, max(low, self.limits.max_distance)

    def clamp(self, coords: SphericalCoords) -> SphericalCoords:
        phi_low, phi_high = self.phi_bounds
        r_low, r_high = self.radius_bounds
        return SphericalCoords(
            radius=min(max(coords.radius, r_low), r_high),
            theta=coords.theta,
            phi=min(max(coords.phi, phi_low), phi_high),
        )

    # ------------------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> "CameraRig":
        if not _finite(x, y):
            return self
        return replace(self, state=DragState.DRAGGING, last_pointer=(x, y))

    def pointer_move(self, x: float, y: float) -> "CameraRig":
        if self.state != DragState.DRAGGING or self.last_pointer is None or not _finite(x, y):
            return self
        dx = x - self.last_pointer[0]
        dy = y - self.last_pointer[1]
        speed = self.limits.rotate_speed
        goal = self.clamp(SphericalCoords(
            radius=self.goal.radius,
            theta=self.goal.theta - dx * speed,
            phi=self.goal.phi - dy * speed,
        ))
        return self._retarget(goal, last_pointer=(x, y))

    def pointer_up(self) -> "CameraRig":
        return replace(self, state=DragState.IDLE, last_pointer=None)

    def pointer_leave(self) -> "CameraRig":
        return self.pointer_up()

    def wheel(self, delta: float) -> "CameraRig":
        """One zoom step per event; delta > 0 zooms in, delta < 0 zooms out."""
        if not _finite(delta) or delta == 0:
            return self
        factor = self.limits.zoom_factor if delta > 0 else 1.0 / self.limits.zoom_factor
        return self._scale_radius(factor)

    def pinch(self, scale: float) -> "CameraRig":
        """Touch pinch; scale > 1 means fingers spread apart (zoom in)."""
        if not _finite(scale) or scale <= 0:
            return self
        return self._scale_radius(1.0 / scale)

    def step(self) -> "CameraRig":
        """Advance one animation frame towards the goal."""
        if self.current == self.goal:
            return self
        if not self.limits.enable_damping:
            return replace(self, current=self.goal)

        k = self.limits.damping_factor
        cur, goal = self.current, self.goal
        nxt = SphericalCoords(
            radius=cur.radius + (goal.radius - cur.radius) * k,
            theta=cur.theta + (goal.theta - cur.theta) * k,
            phi=cur.phi + (goal.phi - cur.phi) * k,
        )
        if (
            abs(nxt.radius - goal.radius) < _SETTLE
            and abs(nxt.theta - goal.theta) < _SETTLE
            and abs(nxt.phi - goal.phi) < _SETTLE
        ):
            nxt = goal
        return replace(self, current=self.clamp(nxt))

    def recenter(self, target: Point3) -> "CameraRig":
        target = tuple(float(t) for t in target)
        if target == self.target:
            return self
        return replace(self, target=target)

    def _scale_radius(self, factor: float) -> "CameraRig":
        goal = self.clamp(replace(self.goal, radius=self.goal.radius * factor))
        return self._retarget(goal)

    def _retarget(self, goal: SphericalCoords, **changes) -> "CameraRig":
        if self.limits.enable_damping:
            return replace(self, goal=goal, **changes)
        return replace(self, goal=goal, current=goal, **changes)

    # ------------------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------------------

    @property
    def position(self) -> Point3:
        ox, oy, oz = self.current.to_offset()
        tx, ty, tz = self.target
        return (tx + ox, ty + oy, tz + oz)
