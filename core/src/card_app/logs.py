from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from card_app.config import AppConfig
from card_app.home import CardAppPaths

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(paths: CardAppPaths, config: AppConfig) -> None:
    """Send all module logs to the console and a rotating file under logs/."""

    file_handler = RotatingFileHandler(
        paths.log_path,
        maxBytes=config.logging.max_size_mb * 1024 * 1024,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    formatter = logging.Formatter(LOG_FORMAT)
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(config.logging.level.upper())
    # Avoid adding duplicate handlers if reconfigured
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        root.addHandler(file_handler)
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)
