"""
Logging Setup — console + rotating file handler under LOG_DIR.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_configured = False


def configure_logging() -> None:
    """Install handlers on the root logger once per process."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, "server.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    _configured = True
