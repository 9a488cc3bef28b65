from __future__ import annotations

import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from glassdash.data import database
from glassdash.ui.main_window import APP_NAME, MainWindow


def main() -> int:
    logging.basicConfig(
        level=os.getenv("GLASSDASH_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    database.initialize()
    logging.getLogger("glassdash.storage").info("Using database at %s", database.get_database_path())

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    window = MainWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
