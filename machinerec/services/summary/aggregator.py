"""Cross-sheet aggregation of every date sheet into a SummaryGrid."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor

from machinerec.core.coordinates import GridCoordinate, coerce_count, is_date_sheet_name
from machinerec.core.layout import body_coordinates
from machinerec.core.schema import OWNED, RENT, Schema
from machinerec_persist.stores.base_store import Grid, SheetStore, StoreError

from .models import SummaryGrid, SummaryRow

LOGGER = logging.getLogger(__name__)

CellKey = tuple[str, str, str, str]
BodyCell = tuple[str, str, str, str, GridCoordinate]


class Aggregator:
    """Recompute totals from all date sheets; no state survives between runs.

    Cost is O(sheets x machine types x statuses x factories) point reads,
    bounded because there is one sheet per day.
    """

    def __init__(self, schema: Schema, store: SheetStore, *, max_workers: int = 4) -> None:
        self.schema = schema
        self.store = store
        self.max_workers = max(1, max_workers)

    def rebuild_summary(self) -> SummaryGrid:
        with self.store.batch():
            sheets = self.store.list_sheets(is_date_sheet_name)
            if not sheets:
                LOGGER.info("No daily sheets found; summary is empty")
                return SummaryGrid(factories=self.schema.factories)

            cells = list(body_coordinates(self.schema))
            workers = min(self.max_workers, len(sheets))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._read_sheet, grid, cells) for grid in sheets]
                contributions = [future.result() for future in futures]

        totals: dict[CellKey, int | float] = defaultdict(int)
        for contribution in contributions:
            for key, value in contribution.items():
                totals[key] += value

        rows: list[SummaryRow] = []
        for machine_type in self.schema.machine_types:
            for status in self.schema.status_types:
                summary_row = SummaryRow(machine_type=machine_type, status=status)
                for factory in self.schema.factories:
                    summary_row.owned[factory] = totals[(machine_type, status, factory, OWNED)]
                    summary_row.rent[factory] = totals[(machine_type, status, factory, RENT)]
                rows.append(summary_row)

        LOGGER.info("Summary rebuilt from %s daily sheets", len(sheets))
        return SummaryGrid(
            factories=self.schema.factories,
            sheet_names=[grid.name for grid in sheets],
            rows=rows,
        )

    def _read_sheet(self, grid: Grid, cells: list[BodyCell]) -> dict[CellKey, int | float]:
        """Read one sheet's body; unreadable cells contribute zero."""

        values: dict[CellKey, int | float] = {}
        failures = 0
        last_error: StoreError | None = None
        for machine_type, status, factory, ownership, coord in cells:
            try:
                raw = self.store.get(grid, coord)
            except StoreError as exc:
                failures += 1
                last_error = exc
                continue
            count = coerce_count(raw)
            if count:
                values[(machine_type, status, factory, ownership)] = count
        if failures:
            LOGGER.warning(
                "Sheet %s: %s unreadable cells counted as zero (%s)",
                grid.name,
                failures,
                last_error,
            )
        return values
