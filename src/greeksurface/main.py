"""
Application Initialization
==========================
This module wires the state, the main window and the Qt event loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the global state (SurfaceState).
2. Instantiates the Main Window (View) with that state.
3. Prevents circular imports by being the orchestrator.
"""
import logging
import sys

from PySide6.QtWidgets import QApplication

from greeksurface.logging_config import setup_logging
from greeksurface.model.state import SurfaceState
from greeksurface.view.main_window import MainWindow, VISIBLE_APP_NAME


def main() -> None:
    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=logging.INFO)

    # 2. Create the Qt Application
    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)

    # 3. Initialize the state
    state = SurfaceState()

    # 4. Initialize the Main Window, passing the state
    window = MainWindow(state)
    window.show()

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
