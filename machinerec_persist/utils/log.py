"""Child loggers for the persistence layer, e.g. ``machinerec.persist.xlsx_store``."""

from __future__ import annotations

import logging
from pathlib import Path

from machinerec.core.logger import get_logger as app_logger

from .paths import LOGS_DIR, ensure_structure


def get_logger(name: str, root: Path | None = None) -> logging.Logger:
    log_dir = ensure_structure(root, subdirs=(LOGS_DIR,))[LOGS_DIR]
    return app_logger(log_dir).getChild(f"persist.{name}")
