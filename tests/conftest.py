"""Shared fixtures: a recording render surface and sample datasets."""
from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Set, Tuple

import numpy as np
import pytest

from greeksurface.controller.scene_builder import SceneItem
from greeksurface.model.dataset import MetricKind, SurfaceDataset
from greeksurface.view.viewport import CameraPose, InputEvent, RenderSurface, ViewportLifecycle


class FakeSurface(RenderSurface):
    """In-memory RenderSurface that records every platform call."""

    def __init__(self, size: Tuple[int, int] = (800, 600)) -> None:
        self.container_size = size
        self.allocated = False
        self.released = False
        self.attached: Dict[int, SceneItem] = {}
        self.listeners: Dict[int, Tuple[InputEvent, Callable[..., None]]] = {}
        self.idle: Dict[int, Callable[[], None]] = {}
        self.frame_callback: Callable[[], None] = None
        self.poses: List[CameraPose] = []
        self.sizes: List[Tuple[int, int]] = []
        self.fullscreen_requests: List[str] = []
        self.fail_detach: Set[str] = set()
        self.log: List[str] = []
        self.renders = 0
        self._ids = itertools.count(1)

    # --- RenderSurface ---
    def allocate(self) -> Tuple[int, int]:
        self.allocated = True
        return self.container_size

    def release(self) -> None:
        self.released = True

    def attach(self, item: SceneItem) -> int:
        handle = next(self._ids)
        self.attached[handle] = item
        self.log.append(f"attach:{item.name}")
        return handle

    def detach(self, handle: Any) -> None:
        item = self.attached.pop(handle)
        self.log.append(f"detach:{item.name}")
        if item.name in self.fail_detach:
            raise RuntimeError("graphics context lost")

    def apply_camera(self, pose: CameraPose) -> None:
        self.poses.append(pose)

    def set_size(self, width: int, height: int) -> None:
        self.sizes.append((width, height))

    def render(self) -> None:
        self.renders += 1
        self.log.append("render")

    def start_frame_loop(self, callback: Callable[[], None]) -> None:
        self.frame_callback = callback

    def stop_frame_loop(self) -> None:
        self.frame_callback = None

    def add_listener(self, event: InputEvent, callback: Callable[..., None]) -> int:
        handle = next(self._ids)
        self.listeners[handle] = (event, callback)
        return handle

    def remove_listener(self, handle: Any) -> None:
        del self.listeners[handle]

    def request_fullscreen(self) -> None:
        self.fullscreen_requests.append("enter")

    def exit_fullscreen(self) -> None:
        self.fullscreen_requests.append("exit")

    def schedule_idle(self, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self.idle[handle] = callback
        return handle

    def cancel_idle(self, handle: Any) -> None:
        self.idle.pop(handle, None)

    # --- Test helpers ---
    def fire(self, event: InputEvent, *payload: Any) -> None:
        for registered, callback in list(self.listeners.values()):
            if registered == event:
                callback(*payload)

    def tick(self, frames: int = 1) -> None:
        for _ in range(frames):
            if self.frame_callback is not None:
                self.frame_callback()

    def run_idle(self) -> None:
        pending, self.idle = self.idle, {}
        for callback in pending.values():
            callback()

    def attached_names(self) -> List[str]:
        return [item.name for item in self.attached.values()]


@pytest.fixture
def fake_surface():
    return FakeSurface()


@pytest.fixture
def viewport(fake_surface):
    vp = ViewportLifecycle(fake_surface)
    vp.mount()
    yield vp
    vp.unmount()


@pytest.fixture
def price_3x3():
    """3x3 price grid; rows = vols, columns = strikes."""
    return SurfaceDataset.from_rows(
        [[1, 2, 3], [4, 5, 6], [7, 8, 9]],
        strikes=[90, 100, 110],
        volatilities=[0.1, 0.2, 0.3],
        metric=MetricKind.PRICE,
    )


@pytest.fixture
def flat_dataset():
    return SurfaceDataset(
        np.full((3, 4), 5.0),
        strikes=(90.0, 95.0, 100.0, 105.0),
        volatilities=(0.1, 0.2, 0.3),
        metric=MetricKind.PRICE,
    )


@pytest.fixture
def delta_dataset():
    rng = np.random.default_rng(7)
    values = np.sort(rng.uniform(-1.0, 1.0, size=(5, 6)), axis=1)
    return SurfaceDataset(
        values,
        strikes=tuple(80.0 + 8.0 * i for i in range(6)),
        volatilities=tuple(0.1 + 0.1 * i for i in range(5)),
        metric=MetricKind.DELTA,
    )
