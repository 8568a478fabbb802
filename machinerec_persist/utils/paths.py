"""
RESPONSIBILITIES
- Lay out the data root: ``store/`` for the records workbook, ``logs/`` for app.log.
PROCESS OVERVIEW
1. resolve_root() picks the explicit root, else MACHINEREC_ROOT, else ~/MachineRec.
2. ensure_structure() creates the requested sub-directories.
3. store_file_path() places a workbook file name under ``store/``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from machinerec.core.settings import default_root

STORE_DIR = "store"
LOGS_DIR = "logs"


def resolve_root(root: str | os.PathLike[str] | None = None) -> Path:
    if root is None:
        return default_root()
    return Path(root).expanduser().resolve()


def ensure_structure(
    root: str | os.PathLike[str] | None = None,
    *,
    subdirs: Iterable[str] = (STORE_DIR, LOGS_DIR),
) -> dict[str, Path]:
    """Create ``<root>/<name>`` for every requested name and map name -> path."""

    base = resolve_root(root)
    directories = {name: base / name for name in subdirs}
    for directory in directories.values():
        directory.mkdir(parents=True, exist_ok=True)
    return directories


def store_file_path(filename: str, root: str | os.PathLike[str] | None = None) -> Path:
    return ensure_structure(root, subdirs=(STORE_DIR,))[STORE_DIR] / filename
