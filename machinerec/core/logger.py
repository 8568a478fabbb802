from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .errors import ConfigError
from .settings import default_root

LOGGER_NAME = "machinerec"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

_LOGGER: logging.Logger | None = None


def _handlers(log_path: Path) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    file_handler = RotatingFileHandler(log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    console = logging.StreamHandler(sys.stdout)
    for handler in (file_handler, console):
        handler.setFormatter(formatter)
    return [file_handler, console]


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the application logger writing to ``<log_dir>/app.log`` and stdout.

    The first call wins: *log_dir* (default ``<root>/logs``) is only honoured
    when the logger is not configured yet.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    base = Path(log_dir) if log_dir is not None else default_root() / "logs"
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    for handler in _handlers(base / "app.log"):
        logger.addHandler(handler)

    _LOGGER = logger
    return logger


def parse_level(name: str) -> int:
    """``"warning"`` -> ``logging.WARNING``; unknown names raise ConfigError."""

    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {name}")
    return level
