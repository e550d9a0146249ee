"""Application entry point for the TetraTrack session timer.

Sets up logging, opens the preferences store, loads application state and
shows the main window.
"""

from __future__ import annotations

import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from tetratrack.core.app_state import AppState
from tetratrack.core.logger import setup_logger
from tetratrack.data.storage import Storage
from tetratrack.ui.main_window import MainWindow


def default_db_path() -> Path:
    """Returns the default SQLite path in the current directory."""
    return Path.cwd() / "tetratrack.db"


def main() -> int:
    """Builds the application dependencies and runs the UI loop."""
    setup_logger()
    app = QApplication(sys.argv)

    storage = Storage(default_db_path())
    storage.init_db()

    app_state = AppState()
    app_state.load_from_storage(storage)

    window = MainWindow(app_state=app_state)

    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
