"""
3D Surface Widget (PyVista Wrapper)
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QFrame, QHBoxLayout, QLabel, QPushButton, QStyle, QVBoxLayout, QWidget
)

from greeksurface.config import CameraLimits, SceneConfig
from greeksurface.model.dataset import SurfaceDataset
from greeksurface.view.viewport import RebuildResult, ViewportLifecycle
from greeksurface.view.widgets.render_surface import PyVistaRenderSurface

logger = logging.getLogger(__name__)


class SurfaceViewWidget(QWidget):
    """
    Mountable viewport for one metric surface.

    Signals:
        loading_changed(bool): True from a deferred request until its rebuild finishes (busy label).
        fullscreen_changed(bool): Reconciled fullscreen state, for button styling.
        build_failed(str): The dataset could not form a surface.
    """
    loading_changed = Signal(bool)
    fullscreen_changed = Signal(bool)
    build_failed = Signal(str)

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        config: Optional[SceneConfig] = None,
        camera_limits: Optional[CameraLimits] = None,
    ) -> None:
        super().__init__(parent)
        self.config = config or SceneConfig()

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)
        self.layout_box.setSpacing(0)

        self._setup_overlay_controls()

        # --- Viewport ---
        self._surface = PyVistaRenderSurface(self, self.layout_box, background=self.config.background)
        self.viewport = ViewportLifecycle(
            self._surface,
            config=self.config,
            camera_limits=camera_limits,
            on_loading_changed=self.loading_changed.emit,
            on_fullscreen_changed=self.fullscreen_changed.emit,
            on_build_failed=lambda e: self.build_failed.emit(str(e)),
        )

        self.loading_changed.connect(self._on_loading_changed)
        self.fullscreen_changed.connect(self._on_fullscreen_changed)
        self.build_failed.connect(self._on_build_failed)

        self.viewport.mount()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def set_dataset(self, dataset: SurfaceDataset, title: Optional[str] = None) -> RebuildResult:
        """Schedules a rebuild on the next idle tick (or the next frame)."""
        if title is not None:
            self.lbl_title.setText(title)
        self.lbl_message.setVisible(False)
        return self.viewport.set_dataset(dataset, defer=True)

    def toggle_fullscreen(self) -> None:
        self.viewport.toggle_fullscreen()

    # ------------------------------------------------------------------------------
    # Internal: overlay
    # ------------------------------------------------------------------------------

    def _setup_overlay_controls(self) -> None:
        """Title bar with the fullscreen toggle, plus busy/error messages."""
        self.overlay_widget = QFrame(self)
        self.overlay_widget.setStyleSheet("""
            QFrame { background-color: rgba(0, 0, 0, 120); border: none; }
            QLabel { color: white; font-weight: bold; background: transparent; }
            QPushButton { background-color: rgba(31, 41, 55, 130); border: none; border-radius: 6px; padding: 4px; }
            QPushButton:hover { background-color: rgba(55, 65, 81, 160); }
        """)

        layout = QHBoxLayout(self.overlay_widget)
        layout.setContentsMargins(8, 4, 8, 4)

        self.lbl_title = QLabel("")
        layout.addWidget(self.lbl_title)
        layout.addStretch(1)

        self.lbl_busy = QLabel("Building surface...")
        self.lbl_busy.setVisible(False)
        layout.addWidget(self.lbl_busy)

        self.btn_fullscreen = QPushButton()
        self.btn_fullscreen.setIcon(self.style().standardIcon(QStyle.SP_TitleBarMaxButton))
        self.btn_fullscreen.setToolTip("Enter Fullscreen")
        self.btn_fullscreen.clicked.connect(self.toggle_fullscreen)
        layout.addWidget(self.btn_fullscreen)

        self.layout_box.addWidget(self.overlay_widget)

        self.lbl_message = QLabel("")
        self.lbl_message.setAlignment(Qt.AlignCenter)
        self.lbl_message.setStyleSheet("color: #f87171; padding: 6px;")
        self.lbl_message.setVisible(False)
        self.layout_box.addWidget(self.lbl_message)

    # --- Slots ---
    def _on_loading_changed(self, loading: bool) -> None:
        self.lbl_busy.setVisible(loading)

    def _on_fullscreen_changed(self, is_fullscreen: bool) -> None:
        icon = QStyle.SP_TitleBarNormalButton if is_fullscreen else QStyle.SP_TitleBarMaxButton
        self.btn_fullscreen.setIcon(self.style().standardIcon(icon))
        self.btn_fullscreen.setToolTip("Exit Fullscreen" if is_fullscreen else "Enter Fullscreen")

    def _on_build_failed(self, message: str) -> None:
        self.lbl_message.setText(message)
        self.lbl_message.setVisible(True)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.viewport.unmount()
        event.accept()
