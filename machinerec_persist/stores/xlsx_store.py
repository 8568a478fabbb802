"""
RESPONSIBILITIES
- SheetStore backed by one XLSX workbook under <root>/store via openpyxl.
- Serialize writers with workbook_lock and save atomically when a session ends.
PROCESS OVERVIEW
1. Every operation runs inside a session: lock, load workbook, operate, save if dirty.
2. Sessions nest within the owning thread, so exclusive() groups a whole
   read-modify-write sequence into one locked load/save cycle.
3. batch() opens a shared session whose workbook worker threads may read from.
4. Logical sheet names map to Excel-safe titles (``11/02`` -> ``11／02``).
5. healthcheck() validates directory access and lock availability.
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Sequence, TypeVar

from openpyxl import Workbook
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet

from machinerec.core.coordinates import FIRST_DATA_COLUMN, FIRST_DATA_ROW, GridCoordinate, is_date_sheet_name
from machinerec.core.schema import Schema
from machinerec.core.settings import DEFAULT_WORKBOOK
from machinerec_persist.stores.base_store import (
    Grid,
    PersistHealth,
    SheetPredicate,
    SheetStore,
    StoreAccessError,
    StoreInitializationError,
)
from machinerec_persist.utils.excel_io import (
    atomic_save,
    load_or_create_workbook,
    lock_file_path,
    workbook_lock,
)
from machinerec_persist.utils.log import get_logger
from machinerec_persist.utils.paths import ensure_structure, store_file_path

T = TypeVar("T")

# Characters Excel refuses in sheet titles, swapped for their full-width forms.
_TITLE_ESCAPES: dict[str, str] = {
    "/": "／",
    "\\": "＼",
    "?": "？",
    "*": "＊",
    "[": "［",
    "]": "］",
    ":": "：",
}
_TITLE_UNESCAPES = {v: k for k, v in _TITLE_ESCAPES.items()}


def title_for(name: str) -> str:
    return "".join(_TITLE_ESCAPES.get(ch, ch) for ch in name)


def name_for(title: str) -> str:
    return "".join(_TITLE_UNESCAPES.get(ch, ch) for ch in title)


def _apply(action: Callable[[Workbook], T], workbook: Workbook) -> T:
    try:
        return action(workbook)
    except IllegalCharacterError as exc:
        raise StoreAccessError(f"Value cannot be stored in a worksheet: {exc}") from exc


def _last_used_row(ws: Worksheet) -> int:
    for row_idx in range(ws.max_row, 0, -1):
        if any(cell.value is not None for cell in ws[row_idx]):
            return row_idx
    return 0


class XLSXSheetStore(SheetStore):
    """Workbook-backed store. Locking is per workbook, coarser than per sheet."""

    def __init__(
        self,
        schema: Schema,
        root: Path | str | None = None,
        *,
        workbook: str = DEFAULT_WORKBOOK,
        logger: logging.Logger | None = None,
    ) -> None:
        self._root = Path(root).expanduser().resolve() if root else None
        try:
            super().__init__(schema, logger=logger or get_logger("xlsx_store", self._root))
            self.path = store_file_path(workbook, self._root)
        except OSError as exc:
            raise StoreInitializationError(f"Cannot prepare store directory: {exc}") from exc
        self._state_lock = threading.RLock()
        self._workbook: Workbook | None = None
        self._owner: int | None = None
        self._shared = False
        self._dirty = False

    # Sessions -----------------------------------------------------------------

    @contextmanager
    def _session(self, *, shared: bool = False) -> Iterator[Workbook]:
        with self._state_lock:
            current = self._workbook if self._owner == threading.get_ident() else None
        if current is not None:
            yield current
            return

        with workbook_lock(self.path):
            workbook = load_or_create_workbook(self.path)
            with self._state_lock:
                self._workbook = workbook
                self._owner = threading.get_ident()
                self._shared = shared
                self._dirty = False
            try:
                yield workbook
                if self._dirty:
                    atomic_save(workbook, self.path)
                    self.logger.debug("Saved workbook %s", self.path)
            finally:
                with self._state_lock:
                    self._workbook = None
                    self._owner = None
                    self._shared = False
                    self._dirty = False
                workbook.close()

    def _run(self, action: Callable[[Workbook], T], *, write: bool) -> T:
        with self._state_lock:
            workbook = self._workbook
            reusable = workbook is not None and (
                self._owner == threading.get_ident() or (self._shared and not write)
            )
            if reusable:
                result = _apply(action, workbook)
                if write:
                    self._dirty = True
                return result
        with self._session() as workbook:
            with self._state_lock:
                result = _apply(action, workbook)
                if write:
                    self._dirty = True
                return result

    @contextmanager
    def exclusive(self, name: str) -> Iterator[None]:
        with self._session():
            yield

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Load the workbook once; reads from other threads share it until exit."""

        with self._session(shared=True):
            yield

    # SheetStore API -----------------------------------------------------------

    def get_or_create(self, name: str) -> Grid:
        def _action(workbook: Workbook) -> bool:
            title = title_for(name)
            if title in workbook.sheetnames:
                return False
            ws = workbook.create_sheet(title=title)
            for coord, value in self.initial_cells(name):
                ws.cell(row=coord.row, column=coord.column).value = value
            if is_date_sheet_name(name):
                ws.freeze_panes = ws.cell(row=FIRST_DATA_ROW, column=FIRST_DATA_COLUMN)
            return True

        if self._run(_action, write=True):
            self.logger.info("Created sheet %s in %s", name, self.path.name)
        return Grid(name)

    def get(self, grid: Grid, coord: GridCoordinate) -> object:
        def _action(workbook: Workbook) -> object:
            return self._worksheet(workbook, grid).cell(row=coord.row, column=coord.column).value

        return self._run(_action, write=False)

    def set(self, grid: Grid, coord: GridCoordinate, value: object) -> None:
        def _action(workbook: Workbook) -> None:
            self._worksheet(workbook, grid).cell(row=coord.row, column=coord.column).value = value

        self._run(_action, write=True)

    def append_row(self, grid: Grid, fields: Sequence[object]) -> None:
        def _action(workbook: Workbook) -> None:
            ws = self._worksheet(workbook, grid)
            row = _last_used_row(ws) + 1
            for column, value in enumerate(fields, start=1):
                ws.cell(row=row, column=column).value = value

        self._run(_action, write=True)

    def list_sheets(self, predicate: SheetPredicate | None = None) -> list[Grid]:
        def _action(workbook: Workbook) -> list[str]:
            return [name_for(title) for title in workbook.sheetnames]

        names = self._run(_action, write=False)
        return [Grid(name) for name in names if predicate is None or predicate(name)]

    def reset(self, name: str) -> Grid:
        def _action(workbook: Workbook) -> None:
            title = title_for(name)
            index = None
            if title in workbook.sheetnames:
                index = workbook.sheetnames.index(title)
                workbook.remove(workbook[title])
            workbook.create_sheet(title=title, index=index)

        self._run(_action, write=True)
        return Grid(name)

    def read_rows(self, grid: Grid) -> list[list[object]]:
        def _action(workbook: Workbook) -> list[list[object]]:
            ws = self._worksheet(workbook, grid)
            last = _last_used_row(ws)
            if not last:
                return []
            return [list(values) for values in ws.iter_rows(min_row=1, max_row=last, values_only=True)]

        return self._run(_action, write=False)

    def healthcheck(self) -> PersistHealth:
        issues: list[str] = []
        writable_paths: dict[str, bool] = {}
        locked: list[str] = []

        try:
            ensure_structure(self._root)
        except OSError as exc:
            issues.append(f"Failed to ensure root directories: {exc}")

        target_dir = self.path.parent
        writable_paths[str(target_dir)] = target_dir.exists() and os.access(target_dir, os.W_OK | os.X_OK)
        if lock_file_path(self.path).exists():
            locked.append(str(self.path))
            issues.append(f"Lock file present: {lock_file_path(self.path)}")
        elif self.path.exists():
            try:
                self.list_sheets()
            except StoreAccessError as exc:
                issues.append(str(exc))

        return PersistHealth(
            dependencies={"openpyxl": True},
            writable_paths=writable_paths,
            locked_paths=locked,
            issues=issues,
        )

    # Helpers ------------------------------------------------------------------

    @staticmethod
    def _worksheet(workbook: Workbook, grid: Grid) -> Worksheet:
        title = title_for(grid.name)
        if title not in workbook.sheetnames:
            raise StoreAccessError(f"Sheet not found: {grid.name}")
        return workbook[title]

