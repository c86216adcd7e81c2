"""
Configuration & Constants
=========================
This module serves as the central registry for the fixed numbers that
shape the 3D scene and the default tunables of a viewport.

Why is this file needed?
------------------------
1. Consistency: the mesh builder, the axis labeler and the camera all have to
   agree on the same visual extent. Keeping it here means a tick always lands
   on the mesh edge it annotates.
2. Tuning: Hosts override SceneConfig/CameraLimits instead of patching
   constants inside the builders.

Exports:
    VISUAL_EXTENT (float): Side length of the square the surface occupies.
    SURFACE_HEIGHT (float): Vertical extent of a fully normalized surface.
    SceneConfig, CameraLimits: Tunables with defaults.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

# --- Scene geometry ---
VISUAL_EXTENT: float = 10.0
HALF_EXTENT: float = VISUAL_EXTENT / 2.0
SURFACE_HEIGHT: float = 1.0
SCENE_CENTER: Tuple[float, float, float] = (0.0, SURFACE_HEIGHT / 2.0, 0.0)

# --- Axis annotations ---
DEFAULT_TICK_COUNT: int = 5
TICK_SIZE: float = 0.1
TICK_LABEL_OFFSET: float = 0.3
LABEL_OFFSET: float = 0.5
VALUE_LABEL_HEIGHT: float = 3.0
LABEL_DECIMALS: int = 2

# --- Viewport ---
WINDOWED_ASPECT: float = 4.0 / 3.0
FRAME_INTERVAL_MS: int = 16
POLAR_EPSILON: float = 1e-6


@dataclass
class SceneConfig:
    """Visual settings of one mounted viewport."""
    tick_count: int = DEFAULT_TICK_COUNT
    use_texture: bool = True
    surface_opacity: float = 0.8
    surface_specular: float = 0.3
    surface_specular_power: float = 50.0
    wireframe_color: str = "black"
    wireframe_opacity: float = 0.3
    box_color: str = "#888888"
    grid_color: str = "#555555"
    label_color: str = "white"
    background: str = "#111827"
    # Windowed height = width / aspect; None lets the container decide
    windowed_aspect: Optional[float] = WINDOWED_ASPECT
    # Vol ticks are labeled in percent points
    volatility_label_scale: float = 100.0


@dataclass
class CameraLimits:
    """Clamps and speeds of the orbit camera."""
    min_distance: float = 5.0
    max_distance: float = 20.0
    min_polar_angle: float = POLAR_EPSILON
    max_polar_angle: float = math.pi / 2.0
    enable_damping: bool = True
    damping_factor: float = 0.05
    zoom_factor: float = 0.95
    rotate_speed: float = 0.005  # radians per pixel
    fov: float = 45.0
