"""
RESPONSIBILITIES
- Open and save the records workbook via openpyxl without ever leaving a half-written file.
- Guard the workbook against concurrent writers, inside and across processes.
PROCESS OVERVIEW
1. workbook_lock() takes the per-path RLock, then claims ``<workbook>.lock``.
2. load_or_create_workbook() opens the file, or starts an empty workbook.
3. atomic_save() saves next to the target and renames over it.
"""

from __future__ import annotations

import os
import threading
import zipfile
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from machinerec_persist.stores.base_store import StoreAccessError, StoreLockedError

LOCK_TIMEOUT_SEC = 10

_PROCESS_LOCKS: defaultdict[Path, threading.RLock] = defaultdict(threading.RLock)
_PROCESS_LOCKS_GUARD = threading.Lock()


def _process_lock(path: Path) -> threading.RLock:
    with _PROCESS_LOCKS_GUARD:
        return _PROCESS_LOCKS[path]


def lock_file_path(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".lock")


def _claim_lock_file(lock_path: Path) -> int:
    """Create the lock file exclusively and stamp it with our pid."""

    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as exc:
        raise StoreLockedError(f"Workbook appears locked: {lock_path}") from exc
    os.write(fd, str(os.getpid()).encode("ascii"))
    return fd


@contextmanager
def workbook_lock(path: Path, *, timeout: float = LOCK_TIMEOUT_SEC) -> Iterator[None]:
    """Hold the workbook for the current thread.

    A lock file left by someone else is never removed here; it raises
    StoreLockedError until its owner (or an operator) deletes it.
    """

    path = path.resolve()
    thread_lock = _process_lock(path)
    if not thread_lock.acquire(timeout=timeout):
        raise StoreLockedError(f"Timeout acquiring in-process lock for {path}")
    try:
        lock_path = lock_file_path(path)
        fd = _claim_lock_file(lock_path)
        try:
            yield
        finally:
            os.close(fd)
            lock_path.unlink(missing_ok=True)
    finally:
        thread_lock.release()


def atomic_save(workbook: Workbook, path: Path) -> None:
    staging = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(staging)
        os.replace(staging, path)
    except OSError as exc:
        raise StoreAccessError(f"Failed to save workbook {path}: {exc}") from exc


def load_or_create_workbook(path: Path) -> Workbook:
    """Open *path*, or return a new workbook without the default sheet."""

    if not path.exists():
        workbook = Workbook()
        workbook.remove(workbook.active)
        return workbook
    try:
        return load_workbook(path)
    except (OSError, InvalidFileException, KeyError, zipfile.BadZipFile) as exc:
        raise StoreAccessError(f"Failed to load workbook {path}: {exc}") from exc
