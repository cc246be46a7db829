from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication


def create_application(argv: Optional[list[str]] = None, log_level: int = logging.INFO) -> QApplication:
    """
    Create the global QApplication and configure logging.

    Parameters
    ----------
    argv:
        Optional command line arguments. Defaults to ``sys.argv``.
    log_level:
        Root logging level; ``JUNCTION_LOG_LEVEL`` overrides it.

    Returns
    -------
    QApplication
        The existing instance when one was already created.
    """

    level_name = os.environ.get("JUNCTION_LOG_LEVEL")
    if level_name:
        log_level = logging.getLevelName(level_name.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QApplication.instance()
    if app is None:
        app = QApplication(argv or sys.argv)

    app.setApplicationName("Junction")
    app.setOrganizationName("Junction")
    return app
