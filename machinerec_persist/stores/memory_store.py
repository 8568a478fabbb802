"""
RESPONSIBILITIES
- Process-local SheetStore keeping every grid as a dict of cells.
- Used by tests and dry runs; shares layout rules with the XLSX store.
PROCESS OVERVIEW
1. get_or_create() registers a grid and writes its initial cells once.
2. get/set/append_row operate on the cell dict under the registry guard.
3. exclusive() hands out one re-entrant lock per sheet name.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Sequence

from machinerec.core.coordinates import GridCoordinate
from machinerec.core.schema import Schema
from machinerec_persist.stores.base_store import (
    Grid,
    PersistHealth,
    SheetPredicate,
    SheetStore,
    StoreAccessError,
    StoreLockedError,
)

_LOCK_TIMEOUT = 10


class MemorySheetStore(SheetStore):
    """Dict-backed store; sheet order follows creation order."""

    def __init__(self, schema: Schema, *, logger: logging.Logger | None = None) -> None:
        super().__init__(schema, logger=logger)
        self._sheets: dict[str, dict[tuple[int, int], object]] = {}
        self._sheet_locks: dict[str, threading.RLock] = {}
        self._guard = threading.RLock()

    def get_or_create(self, name: str) -> Grid:
        with self._guard:
            if name not in self._sheets:
                self._sheets[name] = {
                    (coord.row, coord.column): value for coord, value in self.initial_cells(name)
                }
                self.logger.debug("Created sheet %s", name)
        return Grid(name)

    def get(self, grid: Grid, coord: GridCoordinate) -> object:
        with self._guard:
            return self._cells(grid).get((coord.row, coord.column))

    def set(self, grid: Grid, coord: GridCoordinate, value: object) -> None:
        with self._guard:
            cells = self._cells(grid)
            if value is None:
                cells.pop((coord.row, coord.column), None)
            else:
                cells[(coord.row, coord.column)] = value

    def append_row(self, grid: Grid, fields: Sequence[object]) -> None:
        with self._guard:
            cells = self._cells(grid)
            row = max((r for r, _ in cells), default=0) + 1
            for column, value in enumerate(fields, start=1):
                if value is not None:
                    cells[(row, column)] = value

    def list_sheets(self, predicate: SheetPredicate | None = None) -> list[Grid]:
        with self._guard:
            names = list(self._sheets)
        return [Grid(name) for name in names if predicate is None or predicate(name)]

    def reset(self, name: str) -> Grid:
        with self._guard:
            self._sheets[name] = {}
        return Grid(name)

    def read_rows(self, grid: Grid) -> list[list[object]]:
        with self._guard:
            cells = dict(self._cells(grid))
        if not cells:
            return []
        last_row = max(r for r, _ in cells)
        last_col = max(c for _, c in cells)
        return [
            [cells.get((row, column)) for column in range(1, last_col + 1)]
            for row in range(1, last_row + 1)
        ]

    @contextmanager
    def exclusive(self, name: str) -> Iterator[None]:
        with self._guard:
            lock = self._sheet_locks.setdefault(name, threading.RLock())
        if not lock.acquire(timeout=_LOCK_TIMEOUT):
            raise StoreLockedError(f"Timeout acquiring lock for sheet {name}")
        try:
            yield
        finally:
            lock.release()

    def healthcheck(self) -> PersistHealth:
        return PersistHealth(dependencies={}, writable_paths={}, locked_paths=[])

    def _cells(self, grid: Grid) -> dict[tuple[int, int], object]:
        try:
            return self._sheets[grid.name]
        except KeyError as exc:
            raise StoreAccessError(f"Sheet not found: {grid.name}") from exc
