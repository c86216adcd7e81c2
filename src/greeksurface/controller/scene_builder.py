"""
Scene Composition
=================
Turns a dataset into the list of renderable items of one surface scene.

Why is this file needed?
------------------------
1. Separation: Building items is pure and may fail (InsufficientGridError).
   Attaching them is the viewport's job. Because every item is built before
   anything is attached, a failing build never leaves a half-attached scene.
2. Uniformity: Every renderable (mesh, lines, labels, lights) is described by
   one SceneItem type, so the ownership tree disposes them all the same way.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import numpy.typing as npt
import pyvista as pv

from greeksurface.config import SceneConfig
from greeksurface.controller import guides
from greeksurface.controller.axes import AxisAnnotations, AxisLabeler, tick_marks_polydata
from greeksurface.controller.mesher import MeshGeometry, SurfaceMeshBuilder
from greeksurface.controller.normalization import normalize_dataset
from greeksurface.controller.texture import GridTexture, RasterImage
from greeksurface.model.dataset import SurfaceDataset

logger = logging.getLogger(__name__)


class ItemKind(Enum):
    MESH = "mesh"
    LABELS = "labels"
    LIGHT = "light"


@dataclass
class SceneItem:
    """
    Description of one renderable.

    MESH: `dataset` (+ optional `texture`), `style` goes to add_mesh.
    LABELS: `points` + `texts`, `style` goes to add_point_labels.
    LIGHT: `style` holds pv.Light keyword arguments.
    """
    name: str
    kind: ItemKind
    dataset: Optional[pv.DataSet] = None
    texture: Optional[pv.Texture] = None
    points: Optional[npt.NDArray[np.float64]] = None
    texts: List[str] = field(default_factory=list)
    style: Dict[str, Any] = field(default_factory=dict)

    def release(self) -> None:
        """Drops references to the CPU-side data once the item is detached."""
        self.dataset = None
        self.texture = None
        self.points = None
        self.texts = []


@dataclass
class SurfaceContent:
    """Everything rebuilt on a dataset change."""
    geometry: MeshGeometry
    raster: RasterImage
    annotations: AxisAnnotations
    items: List[SceneItem]


def build_content(
    dataset: SurfaceDataset,
    config: Optional[SceneConfig] = None,
    builder: Optional[SurfaceMeshBuilder] = None,
    labeler: Optional[AxisLabeler] = None,
) -> SurfaceContent:
    """
    Builds mesh, wireframe, texture, ticks and labels for `dataset`.

    Raises:
        InsufficientGridError: The grid cannot form a surface.
    """
    config = config or SceneConfig()
    builder = builder or SurfaceMeshBuilder()
    labeler = labeler or AxisLabeler(volatility_scale=config.volatility_label_scale)

    grid = normalize_dataset(dataset)
    geometry = builder.build(dataset, grid)
    raster = GridTexture.build(dataset, grid)
    annotations = labeler.annotate(
        dataset.strike_range,
        geometry.value_range,
        dataset.volatility_range,
        metric=dataset.metric,
        count=config.tick_count,
    )

    # 1. Surface (texture skin, or per-vertex colours when textures are off)
    surface_style: Dict[str, Any] = {
        "opacity": config.surface_opacity,
        "specular": config.surface_specular,
        "specular_power": config.surface_specular_power,
        "smooth_shading": True,
        "culling": False,
        "show_scalar_bar": False,
    }
    texture = None
    if config.use_texture:
        texture = raster.to_texture()
    else:
        surface_style.update({"scalars": "colors", "rgb": True})

    items = [
        SceneItem("surface", ItemKind.MESH, dataset=geometry.surface, texture=texture, style=surface_style),
        # 2. Wireframe
        SceneItem(
            "wireframe",
            ItemKind.MESH,
            dataset=geometry.wireframe,
            style={
                "color": config.wireframe_color,
                "opacity": config.wireframe_opacity,
                "line_width": 1,
                "lighting": False,
                "pickable": False,
            },
        ),
    ]

    # 3. Ticks + tick labels
    ticks = annotations.all_ticks()
    items.append(SceneItem(
        "tick_marks",
        ItemKind.MESH,
        dataset=tick_marks_polydata(ticks),
        style={"color": "#cccccc", "lighting": False, "pickable": False},
    ))
    items.append(SceneItem(
        "tick_labels",
        ItemKind.LABELS,
        points=np.array([t.label_position for t in ticks], dtype=np.float64),
        texts=[t.text for t in ticks],
        style={"font_size": 10, "text_color": config.label_color},
    ))

    # 4. Axis summary labels
    items.append(SceneItem(
        "axis_labels",
        ItemKind.LABELS,
        points=np.array([label.position for label in annotations.labels], dtype=np.float64),
        texts=[label.text for label in annotations.labels],
        style={"font_size": 16, "text_color": config.label_color},
    ))

    return SurfaceContent(geometry=geometry, raster=raster, annotations=annotations, items=items)


def build_static_items(config: Optional[SceneConfig] = None) -> List[SceneItem]:
    """Light rig and guides; attached once per mount."""
    config = config or SceneConfig()
    items = [
        SceneItem("ambient_light", ItemKind.LIGHT, style={"light_type": "headlight", "intensity": 0.5}),
        SceneItem(
            "point_light",
            ItemKind.LIGHT,
            style={
                "position": (10.0, 10.0, 10.0),
                "focal_point": (0.0, 0.0, 0.0),
                "light_type": "scene light",
                "intensity": 1.0,
                "positional": True,
            },
        ),
        SceneItem(
            "bounding_box",
            ItemKind.MESH,
            dataset=guides.bounding_box(),
            style={"color": config.box_color, "lighting": False, "pickable": False},
        ),
        SceneItem(
            "floor_grid",
            ItemKind.MESH,
            dataset=guides.floor_grid(),
            style={"color": config.grid_color, "opacity": 0.5, "lighting": False, "pickable": False},
        ),
    ]
    for line, color in guides.axis_lines():
        items.append(SceneItem(
            f"axis_{color}",
            ItemKind.MESH,
            dataset=line,
            style={"color": color, "line_width": 2, "lighting": False, "pickable": False},
        ))
    return items
