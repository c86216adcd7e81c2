"""
PyVista Render Surface
======================
RenderSurface implementation on top of pyvistaqt's QtInteractor.

Why is this file needed?
------------------------
1. Platform glue: It maps SceneItems onto plotter actors, point labels and
   lights, and releases their graphics resources on detach.
2. Input: VTK's own interactor style is replaced by vtkInteractorStyleUser
   (which does nothing), and the raw pointer/wheel/pinch events are forwarded
   to the lifecycle, so the CameraRig is the only thing moving the camera.
3. Window events: Container resizes and window-state changes (fullscreen,
   including Escape) are reported back as InputEvents.
"""
from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import pyvista as pv
from PySide6.QtCore import QEvent, QObject, Qt, QTimer
from PySide6.QtWidgets import QVBoxLayout, QWidget
from pyvistaqt import QtInteractor
from vtkmodules.vtkInteractionStyle import vtkInteractorStyleUser

from greeksurface.config import FRAME_INTERVAL_MS
from greeksurface.controller.scene_builder import ItemKind, SceneItem
from greeksurface.view.viewport import CameraPose, InputEvent, RenderSurface

logger = logging.getLogger(__name__)

QWIDGETSIZE_MAX = 16777215


@dataclass
class _AttachedItem:
    kind: ItemKind
    prop: Any
    texture: Optional[pv.Texture] = None


class _WindowEventFilter(QObject):
    """Forwards container resize/window-state events and Escape to the surface."""

    def __init__(self, surface: "PyVistaRenderSurface") -> None:
        super().__init__(surface.container)
        self._surface = surface

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        etype = event.type()
        if watched is self._surface.container:
            if etype == QEvent.Resize:
                size = event.size()
                self._surface.dispatch(InputEvent.RESIZE, size.width(), size.height())
            elif etype == QEvent.WindowStateChange:
                self._surface.dispatch(InputEvent.FULLSCREEN_CHANGE, self._surface.is_fullscreen())
        if etype == QEvent.KeyPress and event.key() == Qt.Key_Escape and self._surface.is_fullscreen():
            self._surface.exit_fullscreen()
            return True
        return False


class PyVistaRenderSurface(RenderSurface):
    def __init__(self, container: QWidget, layout: QVBoxLayout, background: str = "white") -> None:
        self.container = container
        self._layout = layout
        self._background = background
        self.plotter: Optional[QtInteractor] = None

        # --- Listeners registered by the lifecycle ---
        self._handles = itertools.count(1)
        self._listeners: Dict[int, Tuple[InputEvent, Callable[..., None]]] = {}

        # --- Platform hooks owned by the surface itself ---
        self._observer_ids: List[int] = []
        self._event_filter: Optional[_WindowEventFilter] = None
        self._idle_timers: List[QTimer] = []
        self._normal_flags = container.windowFlags()

        # Frame loop, one tick per display refresh
        self._frame_timer = QTimer(container)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_callback: Optional[Callable[[], None]] = None
        self._frame_timer.timeout.connect(self._on_frame_timeout)

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def allocate(self) -> Tuple[int, int]:
        self.plotter = QtInteractor(self.container)
        self._layout.addWidget(self.plotter)

        self.plotter.set_background(self._background)
        self.plotter.remove_all_lights()
        self.plotter.iren.interactor.SetInteractorStyle(vtkInteractorStyleUser())
        self._attach_observers()

        self._event_filter = _WindowEventFilter(self)
        self.container.installEventFilter(self._event_filter)
        self.plotter.installEventFilter(self._event_filter)

        logger.debug("Render surface allocated.")
        return self.container.width(), self.container.height()

    def release(self) -> None:
        self.stop_frame_loop()
        for timer in self._idle_timers:
            timer.stop()
            timer.deleteLater()
        self._idle_timers.clear()

        if self._event_filter is not None:
            self.container.removeEventFilter(self._event_filter)
            if self.plotter is not None:
                self.plotter.removeEventFilter(self._event_filter)
            self._event_filter = None

        if self.plotter is not None:
            for observer in self._observer_ids:
                self.plotter.iren.remove_observer(observer)
            self._observer_ids.clear()

            self._layout.removeWidget(self.plotter)
            self.plotter.close()
            self.plotter.setParent(None)
            self.plotter.deleteLater()
            self.plotter = None
        logger.debug("Render surface released.")

    # ------------------------------------------------------------------------------
    # Scene items
    # ------------------------------------------------------------------------------

    def attach(self, item: SceneItem) -> _AttachedItem:
        if item.kind == ItemKind.LIGHT:
            light = pv.Light(**item.style)
            self.plotter.add_light(light)
            return _AttachedItem(item.kind, light)

        if item.kind == ItemKind.LABELS:
            actor = self.plotter.add_point_labels(
                item.points,
                item.texts,
                show_points=False,
                shape=None,
                always_visible=True,
                reset_camera=False,
                render=False,
                **item.style,
            )
            return _AttachedItem(item.kind, actor)

        actor = self.plotter.add_mesh(
            item.dataset,
            texture=item.texture,
            reset_camera=False,
            render=False,
            **item.style,
        )
        return _AttachedItem(item.kind, actor, item.texture)

    def detach(self, handle: _AttachedItem) -> None:
        if handle.kind == ItemKind.LIGHT:
            self.plotter.renderer.RemoveLight(handle.prop)
            return

        window = self.plotter.render_window
        self.plotter.remove_actor(handle.prop, reset_camera=False, render=False)
        handle.prop.ReleaseGraphicsResources(window)
        if handle.texture is not None:
            handle.texture.ReleaseGraphicsResources(window)

    # ------------------------------------------------------------------------------
    # Camera, size, rendering
    # ------------------------------------------------------------------------------

    def apply_camera(self, pose: CameraPose) -> None:
        camera = self.plotter.camera
        camera.position = pose.position
        camera.focal_point = pose.focal_point
        camera.up = pose.view_up
        camera.view_angle = pose.view_angle
        self.plotter.renderer.ResetCameraClippingRange()

    def set_size(self, width: int, height: int) -> None:
        # The width always follows the layout; only windowed mode pins the height
        if self.is_fullscreen():
            self.plotter.setMinimumHeight(0)
            self.plotter.setMaximumHeight(QWIDGETSIZE_MAX)
        else:
            self.plotter.setFixedHeight(height)

    def render(self) -> None:
        self.plotter.render()

    def start_frame_loop(self, callback: Callable[[], None]) -> None:
        self._frame_callback = callback
        self._frame_timer.start()

    def stop_frame_loop(self) -> None:
        self._frame_timer.stop()
        self._frame_callback = None

    def _on_frame_timeout(self) -> None:
        if self._frame_callback is not None:
            self._frame_callback()

    # ------------------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------------------

    def add_listener(self, event: InputEvent, callback: Callable[..., None]) -> int:
        handle = next(self._handles)
        self._listeners[handle] = (event, callback)
        return handle

    def remove_listener(self, handle: int) -> None:
        self._listeners.pop(handle, None)

    def dispatch(self, event: InputEvent, *payload: Any) -> None:
        for registered, callback in list(self._listeners.values()):
            if registered == event:
                callback(*payload)

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        bindings = [
            ("LeftButtonPressEvent", lambda *_: self.dispatch(InputEvent.POINTER_DOWN, *self._pointer())),
            ("MouseMoveEvent", lambda *_: self.dispatch(InputEvent.POINTER_MOVE, *self._pointer())),
            ("LeftButtonReleaseEvent", lambda *_: self.dispatch(InputEvent.POINTER_UP)),
            ("LeaveEvent", lambda *_: self.dispatch(InputEvent.POINTER_LEAVE)),
            ("MouseWheelForwardEvent", lambda *_: self.dispatch(InputEvent.WHEEL, 1.0)),
            ("MouseWheelBackwardEvent", lambda *_: self.dispatch(InputEvent.WHEEL, -1.0)),
            ("PinchEvent", lambda *_: self.dispatch(InputEvent.PINCH, self._pinch_scale())),
        ]
        for event_name, callback in bindings:
            self._observer_ids.append(iren.add_observer(event_name, callback))

    def _pointer(self) -> Tuple[float, float]:
        """Event position in screen convention (y grows downwards)."""
        x, y = self.plotter.iren.get_event_position()
        return float(x), float(self.plotter.height() - y)

    def _pinch_scale(self) -> float:
        interactor = self.plotter.iren.interactor
        last = interactor.GetLastScale()
        return interactor.GetScale() / last if last else 1.0

    # ------------------------------------------------------------------------------
    # Fullscreen
    # ------------------------------------------------------------------------------

    def is_fullscreen(self) -> bool:
        return bool(self.container.windowState() & Qt.WindowFullScreen)

    def request_fullscreen(self) -> None:
        self._normal_flags = self.container.windowFlags()
        self.container.setWindowFlags(Qt.Window)
        self.container.showFullScreen()

    def exit_fullscreen(self) -> None:
        self.container.setWindowFlags(self._normal_flags)
        self.container.showNormal()

    # ------------------------------------------------------------------------------
    # Idle scheduling
    # ------------------------------------------------------------------------------

    def schedule_idle(self, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self.container)
        timer.setSingleShot(True)
        timer.setInterval(0)

        def fire() -> None:
            self._drop_timer(timer)
            callback()

        timer.timeout.connect(fire)
        self._idle_timers.append(timer)
        timer.start()
        return timer

    def cancel_idle(self, handle: QTimer) -> None:
        handle.stop()
        self._drop_timer(handle)

    def _drop_timer(self, timer: QTimer) -> None:
        if timer in self._idle_timers:
            self._idle_timers.remove(timer)
            timer.deleteLater()
