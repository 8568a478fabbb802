"""Write a SummaryGrid into the summary sheet."""

from __future__ import annotations

from datetime import datetime

from machinerec.core.coordinates import GridCoordinate
from machinerec.core.layout import GENERATED_COORD, SUMMARY_SHEET_NAME, TITLE_COORD, generated_label
from machinerec_persist.stores.base_store import Grid, SheetStore

from .models import SummaryGrid

SUMMARY_TITLE = "Summary Report"
SECTION_TITLE = "Factory Totals (All Days Combined)"
INFO_ROW = 4
SECTION_ROW = 6
HEADER_ROW = 7


def publish_summary(store: SheetStore, summary: SummaryGrid, generated_at: datetime | None = None) -> Grid:
    """Rewrite the summary sheet from scratch and return its handle."""

    with store.exclusive(SUMMARY_SHEET_NAME):
        grid = store.reset(SUMMARY_SHEET_NAME)
        store.set(grid, TITLE_COORD, SUMMARY_TITLE)
        store.set(grid, GENERATED_COORD, generated_label(generated_at))

        if summary.is_empty:
            store.set(grid, GridCoordinate(INFO_ROW, 1), summary.marker)
            return grid

        store.set(grid, GridCoordinate(INFO_ROW, 1), f"Total Daily Sheets: {summary.sheet_count}")
        store.set(grid, GridCoordinate(SECTION_ROW, 1), SECTION_TITLE)
        for offset, values in enumerate([summary.header(), *summary.emit_rows()]):
            for column, value in enumerate(values, start=1):
                if value != "":
                    store.set(grid, GridCoordinate(HEADER_ROW + offset, column), value)
    return grid
