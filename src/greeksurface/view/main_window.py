"""
Main Application Window
=======================
The primary GUI container: a toolbar for the active metric/option type and
the shared 3D surface view.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It turns toolbar selections into SurfaceState changes and hands
   the regenerated dataset to the surface view.
"""
import logging

from PySide6.QtWidgets import QComboBox, QLabel, QMainWindow, QMessageBox, QToolBar
from PySide6.QtGui import QCloseEvent

from greeksurface.model.dataset import MetricKind
from greeksurface.model.pricing import OptionType
from greeksurface.model.state import SurfaceState
from greeksurface.view.widgets.surface_view import SurfaceViewWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Option Greek Surface"


class MainWindow(QMainWindow):
    def __init__(self, state: SurfaceState) -> None:
        super().__init__()
        self.state: SurfaceState = state

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1200, 900)

        # --- 1. TOOLBAR ---
        toolbar = QToolBar("Surface")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        toolbar.addWidget(QLabel(" Metric: "))
        self.cmb_metric = QComboBox()
        for metric in MetricKind:
            self.cmb_metric.addItem(metric.label, metric)
        toolbar.addWidget(self.cmb_metric)

        toolbar.addWidget(QLabel("  Option: "))
        self.cmb_option = QComboBox()
        for option_type in OptionType:
            self.cmb_option.addItem(option_type.value.capitalize(), option_type)
        toolbar.addWidget(self.cmb_option)

        # --- 2. CENTRAL 3D VIEW ---
        self.visualizer = SurfaceViewWidget()
        self.setCentralWidget(self.visualizer)

        # --- SIGNAL CONNECTIONS ---
        self.cmb_metric.currentIndexChanged.connect(self.on_selection_changed)
        self.cmb_option.currentIndexChanged.connect(self.on_selection_changed)
        self.visualizer.build_failed.connect(self.on_build_failed)

        self.refresh_surface()

    def on_selection_changed(self, _index: int) -> None:
        self.state.metric = self.cmb_metric.currentData()
        self.state.option_type = self.cmb_option.currentData()
        self.refresh_surface()

    def refresh_surface(self) -> None:
        """Regenerates the dataset from the state and rebuilds the view."""
        dataset = self.state.to_dataset()
        self.visualizer.set_dataset(dataset, title=self.state.title)

    def on_build_failed(self, message: str) -> None:
        logger.error(f"Surface build failed: {message}")
        QMessageBox.warning(self, VISIBLE_APP_NAME, message)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.visualizer.viewport.unmount()
        event.accept()
