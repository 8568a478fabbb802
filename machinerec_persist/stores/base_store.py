"""
RESPONSIBILITIES
- Define the keyed-grid contract consumed by the submission merger and aggregator.
- Share exceptions, health reporting and first-use sheet layout across stores.
PROCESS OVERVIEW
1. get_or_create(name) -> return the named grid, laying it out on first use only.
2. get/set -> point reads and writes addressed by 1-based GridCoordinate.
3. append_row -> append-only writes for the submission log.
4. list_sheets(predicate) -> discover grids (date sheets) in store order.
5. exclusive(name) -> serialize read-modify-write sequences on one sheet.
6. healthcheck -> verify the backing storage is reachable and unlocked.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Sequence

from machinerec.core.coordinates import GridCoordinate, is_date_sheet_name
from machinerec.core.layout import LOG_COLUMNS, LOG_SHEET_NAME, daily_sheet_cells
from machinerec.core.schema import Schema


class StoreError(RuntimeError):
    """Any failure raised by a sheet store."""


class StoreInitializationError(StoreError):
    """The backing storage (directory, workbook path) cannot be prepared."""


class StoreAccessError(StoreError):
    """Raised when a grid cannot be read or written."""


class StoreLockedError(StoreAccessError):
    """Raised when a target sheet or workbook is locked by another writer."""


@dataclass(slots=True)
class PersistHealth:
    """Outcome of SheetStore.healthcheck(), rendered by the `health` command."""

    dependencies: dict[str, bool]
    writable_paths: dict[str, bool]
    locked_paths: list[str]
    issues: list[str] = field(default_factory=list)

    def is_healthy(self) -> bool:
        """Healthy means no issues, every dependency present and every path writable."""

        return not self.issues and all(self.dependencies.values()) and all(
            self.writable_paths.values()
        )


@dataclass(frozen=True, slots=True)
class Grid:
    """Handle to one named sheet inside a store."""

    name: str


SheetPredicate = Callable[[str], bool]


class SheetStore(ABC):
    """Abstract keyed-grid store shared by the in-memory and XLSX backends."""

    def __init__(self, schema: Schema, *, logger: logging.Logger | None = None) -> None:
        self.schema = schema
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def get_or_create(self, name: str) -> Grid:
        """Return the grid named *name*, creating and laying it out if absent."""

    @abstractmethod
    def get(self, grid: Grid, coord: GridCoordinate) -> object:
        """Return the raw cell value, ``None`` when empty."""

    @abstractmethod
    def set(self, grid: Grid, coord: GridCoordinate, value: object) -> None:
        """Overwrite one cell."""

    @abstractmethod
    def append_row(self, grid: Grid, fields: Sequence[object]) -> None:
        """Append *fields* below the last used row."""

    @abstractmethod
    def list_sheets(self, predicate: SheetPredicate | None = None) -> list[Grid]:
        """Return grids whose names satisfy *predicate*, in store order."""

    @abstractmethod
    def reset(self, name: str) -> Grid:
        """Return an empty grid named *name*, clearing any previous content."""

    @abstractmethod
    def read_rows(self, grid: Grid) -> list[list[object]]:
        """Return every row of *grid* from row 1 to the last used row."""

    @abstractmethod
    def exclusive(self, name: str) -> AbstractContextManager[None]:
        """Hold mutual exclusion over sheet *name*; re-entrant per thread."""

    def batch(self) -> AbstractContextManager[None]:
        """Group many operations into one round trip to the backing storage."""

        return nullcontext()

    @abstractmethod
    def healthcheck(self) -> PersistHealth:
        """Probe the backing storage without modifying any sheet."""

    def initial_cells(self, name: str) -> Iterator[tuple[GridCoordinate, object]]:
        """Cells written when sheet *name* is created; nothing for unknown kinds."""

        if is_date_sheet_name(name):
            yield from daily_sheet_cells(self.schema, name, datetime.now())
        elif name == LOG_SHEET_NAME:
            for column, header in enumerate(LOG_COLUMNS, start=1):
                yield GridCoordinate(1, column), header
