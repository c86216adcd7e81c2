"""
Viewport Lifecycle
==================
Owns one mounted surface scene: render surface, light rig, scene graph,
camera rig, frame loop, input listeners, resize and fullscreen.

Why is this file needed?
------------------------
1. Single owner: scene graph, camera and listeners belong to exactly one
   ViewportLifecycle. Nothing is shared between instances.
2. Lifecycle: Unmounted -> Mounted -> Disposed. Visual content only changes
   through `set_dataset` while Mounted, and nothing renders after Disposed.
3. Platform independence: all platform calls go through RenderSurface, so
   the lifecycle runs against the pyvista/Qt surface in the app and against a
   recording fake in the tests.

Ordering:
    Rebuilds are synchronous, or deferred to the next idle tick. A deferred
    rebuild still pending when a frame arrives is flushed before that frame
    renders, so a frame never shows a half-attached scene.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Callable, List, Optional, Tuple

from greeksurface.config import CameraLimits, SceneConfig
from greeksurface.controller.axes import AxisLabeler
from greeksurface.controller.mesher import MeshGeometry, SurfaceMeshBuilder
from greeksurface.controller.scene_builder import (
    SceneItem, SurfaceContent, build_content, build_static_items,
)
from greeksurface.model.dataset import SurfaceDataset
from greeksurface.model.errors import InsufficientGridError, LifecycleError, SurfaceError
from greeksurface.view.camera import CameraRig, Point3
from greeksurface.view.scene import SceneGraph

logger = logging.getLogger(__name__)

# Camera starting point, looking at the mesh center
INITIAL_CAMERA_POSITION: Point3 = (8.0, 2.0, 8.0)


class LifecycleState(Enum):
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"
    DISPOSED = "disposed"


class InputEvent(Enum):
    """Events a render surface reports; payload in brackets."""
    POINTER_DOWN = "pointer_down"            # (x, y)
    POINTER_MOVE = "pointer_move"            # (x, y)
    POINTER_UP = "pointer_up"                # ()
    POINTER_LEAVE = "pointer_leave"          # ()
    WHEEL = "wheel"                          # (delta,)
    PINCH = "pinch"                          # (scale,)
    RESIZE = "resize"                        # (width, height) of the container
    FULLSCREEN_CHANGE = "fullscreen_change"  # (is_fullscreen,)


@dataclass
class ViewportState:
    width: int
    height: int
    is_fullscreen: bool = False

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height > 0 else 1.0


@dataclass(frozen=True)
class CameraPose:
    position: Point3
    focal_point: Point3
    view_up: Point3
    view_angle: float
    aspect: float


@dataclass
class RebuildResult:
    """Outcome of `set_dataset`; `ok` is False when nothing could be built."""
    ok: bool
    geometry: Optional[MeshGeometry] = None
    error: Optional[Exception] = None
    deferred: bool = False


class RenderSurface(ABC):
    """Platform side of a viewport (window, GPU resources, timers, input)."""

    @abstractmethod
    def allocate(self) -> Tuple[int, int]:
        """Creates the render target inside its container; returns the container size."""

    @abstractmethod
    def release(self) -> None:
        """Detaches the render target from its container and frees it."""

    @abstractmethod
    def attach(self, item: SceneItem) -> Any:
        """Adds a renderable; returns an opaque handle."""

    @abstractmethod
    def detach(self, handle: Any) -> None:
        """Removes a renderable and releases its graphics resources."""

    @abstractmethod
    def apply_camera(self, pose: CameraPose) -> None: ...

    @abstractmethod
    def set_size(self, width: int, height: int) -> None: ...

    @abstractmethod
    def render(self) -> None: ...

    @abstractmethod
    def start_frame_loop(self, callback: Callable[[], None]) -> None: ...

    @abstractmethod
    def stop_frame_loop(self) -> None: ...

    @abstractmethod
    def add_listener(self, event: InputEvent, callback: Callable[..., None]) -> Any: ...

    @abstractmethod
    def remove_listener(self, handle: Any) -> None: ...

    @abstractmethod
    def request_fullscreen(self) -> None: ...

    @abstractmethod
    def exit_fullscreen(self) -> None: ...

    @abstractmethod
    def schedule_idle(self, callback: Callable[[], None]) -> Any: ...

    @abstractmethod
    def cancel_idle(self, handle: Any) -> None: ...


class ViewportLifecycle:
    def __init__(
        self,
        surface: RenderSurface,
        config: Optional[SceneConfig] = None,
        camera_limits: Optional[CameraLimits] = None,
        on_loading_changed: Optional[Callable[[bool], None]] = None,
        on_fullscreen_changed: Optional[Callable[[bool], None]] = None,
        on_build_failed: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.surface = surface
        self.config = config or SceneConfig()
        self.camera_limits = camera_limits or CameraLimits()

        # --- Host notifications ---
        self._on_loading_changed = on_loading_changed
        self._on_fullscreen_changed = on_fullscreen_changed
        self._on_build_failed = on_build_failed

        # --- Builders ---
        self._builder = SurfaceMeshBuilder()
        self._labeler = AxisLabeler(volatility_scale=self.config.volatility_label_scale)

        # --- State ---
        self.state = LifecycleState.UNMOUNTED
        self.viewport = ViewportState(0, 0)
        self.rig = CameraRig.looking_at(INITIAL_CAMERA_POSITION, limits=self.camera_limits)
        self.scene: Optional[SceneGraph] = None
        self.content: Optional[SurfaceContent] = None
        self.is_loading = False
        self.frame_count = 0

        self._container_size: Tuple[int, int] = (0, 0)
        self._listener_handles: List[Any] = []
        self._pending_dataset: Optional[SurfaceDataset] = None
        self._built_signature: Optional[tuple] = None
        self._idle_handle: Any = None

    # ------------------------------------------------------------------------------
    # Public API: lifecycle
    # ------------------------------------------------------------------------------

    @property
    def is_mounted(self) -> bool:
        return self.state == LifecycleState.MOUNTED

    @property
    def geometry(self) -> Optional[MeshGeometry]:
        return self.content.geometry if self.content else None

    def mount(self) -> None:
        """
        Allocates the render surface, light rig and guides, registers input
        listeners and starts the frame loop.

        Raises:
            LifecycleError: If the viewport is already mounted or disposed.
        """
        if self.state != LifecycleState.UNMOUNTED:
            raise LifecycleError(f"Cannot mount a viewport in state '{self.state.value}'.")

        logger.info("Mounting surface viewport.")
        # 1. Render target
        width, height = self.surface.allocate()
        self._container_size = (width, height)
        self.viewport = self._fit(width, height, is_fullscreen=False)
        self.surface.set_size(self.viewport.width, self.viewport.height)

        # 2. Scene: lights + guides
        self.scene = SceneGraph(self.surface)
        self.scene.attach_all("static", build_static_items(self.config))

        # 3. Input listeners (removed as the exact same set on unmount)
        self._register_listeners()

        # 4. Frame loop
        self.state = LifecycleState.MOUNTED
        self._apply_camera()

        # Dataset handed over before mount is built before the first frame
        if self._pending_dataset is not None:
            self._flush_pending()
        self.surface.start_frame_loop(self.on_frame)

    def unmount(self) -> None:
        """Stops rendering, removes listeners and releases every resource. Idempotent."""
        if self.state == LifecycleState.DISPOSED:
            return
        if self.state == LifecycleState.UNMOUNTED:
            self._pending_dataset = None
            self.state = LifecycleState.DISPOSED
            self._set_loading(False)
            return

        logger.info("Unmounting surface viewport.")
        # Guard first: nothing may rebuild or render past this point
        self.state = LifecycleState.DISPOSED
        self.surface.stop_frame_loop()
        self._cancel_pending()

        for handle in self._listener_handles:
            self.surface.remove_listener(handle)
        self._listener_handles.clear()

        if self.scene is not None:
            self.scene.dispose_all()
        self.content = None
        self._built_signature = None
        self.surface.release()
        self._set_loading(False)

    # ------------------------------------------------------------------------------
    # Public API: content
    # ------------------------------------------------------------------------------

    def set_dataset(self, dataset: SurfaceDataset, defer: bool = False) -> RebuildResult:
        """
        Replaces the visual content with a rebuild from `dataset`.

        Args:
            dataset: New grid.
            defer: Build on the next idle tick (or frame, whichever comes first).

        Returns:
            RebuildResult. A failed build clears the old content and reports
            the error; it never raises into the host.
        """
        if self.state == LifecycleState.DISPOSED:
            logger.warning("Dataset change ignored: viewport is disposed.")
            return RebuildResult(ok=False, error=LifecycleError("Viewport is disposed."))

        if self.state == LifecycleState.UNMOUNTED or defer:
            self._pending_dataset = dataset
            # Busy until the flush; the host gets a repaint in between
            self._set_loading(True)
            if self.is_mounted and self._idle_handle is None:
                self._idle_handle = self.surface.schedule_idle(self._flush_pending)
            return RebuildResult(ok=True, deferred=True)

        self._cancel_pending()
        return self._rebuild(dataset)

    # ------------------------------------------------------------------------------
    # Public API: frame + viewport
    # ------------------------------------------------------------------------------

    def on_frame(self) -> None:
        """One display refresh: flush a pending rebuild, damp the camera, render."""
        if not self.is_mounted:
            return
        if self._pending_dataset is not None:
            self._flush_pending()
        self.rig = self.rig.step()
        self._apply_camera()
        self.surface.render()
        self.frame_count += 1

    def resize(self, container_width: int, container_height: int) -> None:
        """Re-lays out the render target; mesh content is untouched."""
        if not self.is_mounted:
            return
        self._container_size = (int(container_width), int(container_height))
        self.viewport = self._fit(*self._container_size, is_fullscreen=self.viewport.is_fullscreen)
        self.surface.set_size(self.viewport.width, self.viewport.height)
        self._apply_camera()
        logger.debug(f"Viewport resized to {self.viewport.width}x{self.viewport.height}.")

    def toggle_fullscreen(self) -> None:
        """
        Asks the platform to enter/leave fullscreen. The viewport state is only
        updated when the platform reports the change (see on_fullscreen_change).
        """
        if not self.is_mounted:
            return
        if self.viewport.is_fullscreen:
            self.surface.exit_fullscreen()
        else:
            self.surface.request_fullscreen()

    def on_fullscreen_change(self, is_fullscreen: bool) -> None:
        """Reconciles from the platform event, including exits not started here (Escape)."""
        if not self.is_mounted:
            return
        is_fullscreen = bool(is_fullscreen)
        if is_fullscreen == self.viewport.is_fullscreen:
            return
        logger.debug(f"Fullscreen state changed: {is_fullscreen}.")
        self.viewport = self._fit(*self._container_size, is_fullscreen=is_fullscreen)
        self.surface.set_size(self.viewport.width, self.viewport.height)
        self._apply_camera()
        if self._on_fullscreen_changed:
            self._on_fullscreen_changed(is_fullscreen)

    # ------------------------------------------------------------------------------
    # Public API: pointer input
    # ------------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        self.rig = self.rig.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self.rig = self.rig.pointer_move(x, y)

    def pointer_up(self) -> None:
        self.rig = self.rig.pointer_up()

    def pointer_leave(self) -> None:
        self.rig = self.rig.pointer_leave()

    def wheel(self, delta: float) -> None:
        self.rig = self.rig.wheel(delta)

    def pinch(self, scale: float) -> None:
        self.rig = self.rig.pinch(scale)

    @property
    def camera_pose(self) -> CameraPose:
        return CameraPose(
            position=self.rig.position,
            focal_point=self.rig.target,
            view_up=(0.0, 1.0, 0.0),
            view_angle=self.camera_limits.fov,
            aspect=self.viewport.aspect,
        )

    def resource_counts(self) -> dict:
        """Probe for leak checks."""
        return {
            "listeners": len(self._listener_handles),
            "scene_nodes": self.scene.live_count if self.scene else 0,
            "content_nodes": len(self.scene.nodes("content")) if self.scene else 0,
            "pending_rebuilds": int(self._pending_dataset is not None),
        }

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _register_listeners(self) -> None:
        bindings = [
            (InputEvent.POINTER_DOWN, self.pointer_down),
            (InputEvent.POINTER_MOVE, self.pointer_move),
            (InputEvent.POINTER_UP, self.pointer_up),
            (InputEvent.POINTER_LEAVE, self.pointer_leave),
            (InputEvent.WHEEL, self.wheel),
            (InputEvent.PINCH, self.pinch),
            (InputEvent.RESIZE, self.resize),
            (InputEvent.FULLSCREEN_CHANGE, self.on_fullscreen_change),
        ]
        for event, callback in bindings:
            self._listener_handles.append(self.surface.add_listener(event, callback))

    def _fit(self, width: int, height: int, is_fullscreen: bool) -> ViewportState:
        """Fullscreen fills the container; windowed keeps the configured aspect."""
        width, height = max(int(width), 1), max(int(height), 1)
        aspect = self.config.windowed_aspect
        if not is_fullscreen and aspect:
            height = max(int(round(width / aspect)), 1)
        return ViewportState(width, height, is_fullscreen)

    def _apply_camera(self) -> None:
        self.surface.apply_camera(self.camera_pose)

    def _set_loading(self, loading: bool) -> None:
        if loading == self.is_loading:
            return
        self.is_loading = loading
        if self._on_loading_changed:
            self._on_loading_changed(loading)

    def _cancel_pending(self) -> None:
        self._pending_dataset = None
        if self._idle_handle is not None:
            self.surface.cancel_idle(self._idle_handle)
            self._idle_handle = None

    def _flush_pending(self) -> None:
        self._idle_handle = None
        dataset, self._pending_dataset = self._pending_dataset, None
        if dataset is not None and self.is_mounted:
            self._rebuild(dataset)

    def _rebuild(self, dataset: SurfaceDataset) -> RebuildResult:
        self._set_loading(True)
        try:
            signature = dataset.signature()
            if self.content is not None and signature == self._built_signature:
                logger.debug("Dataset unchanged, rebuild skipped.")
                return RebuildResult(ok=True, geometry=self.content.geometry)
            logger.info(f"Rebuilding {dataset.metric.value} surface ({dataset.rows}x{dataset.columns}).")
            result = self._swap_content(dataset)
            self._built_signature = signature if result.ok else None
            return result
        finally:
            self._set_loading(False)

    def _swap_content(self, dataset: SurfaceDataset) -> RebuildResult:
        # 1. Build everything before touching the scene
        try:
            content = build_content(dataset, self.config, self._builder, self._labeler)
        except InsufficientGridError as e:
            logger.error(f"Surface not rendered: {e}")
            return self._fail_build(e)
        except (SurfaceError, ValueError) as e:
            logger.exception(f"Surface build failed: {e}")
            return self._fail_build(e)

        # 2. Swap: dispose the old set, attach the new one
        self.scene.clear_group("content")
        self.scene.attach_all("content", content.items)
        self.content = content

        # 3. Orbit the new mesh center
        self.rig = self.rig.recenter(content.geometry.center)
        self._apply_camera()
        return RebuildResult(ok=True, geometry=content.geometry)

    def _fail_build(self, error: Exception) -> RebuildResult:
        """Nothing partial stays on screen: the old content goes too."""
        self.scene.clear_group("content")
        self.content = None
        if self._on_build_failed:
            self._on_build_failed(error)
        return RebuildResult(ok=False, error=error)
