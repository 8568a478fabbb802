from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from machinerec.core.coordinates import GridCoordinate, column_for, row_for
from machinerec.core.layout import SUMMARY_SHEET_NAME
from machinerec.core.schema import Schema
from machinerec.services.submission import SubmissionMerger
from machinerec.services.summary import NO_SHEETS_MARKER, Aggregator, publish_summary
from machinerec_persist.stores.base_store import Grid, StoreAccessError
from machinerec_persist.stores.memory_store import MemorySheetStore
from machinerec_persist.stores.xlsx_store import XLSXSheetStore


def _submit(merger: SubmissionMerger, day: str, factory: str, ownership: str, machine: str, status: str, count: int) -> None:
    merger.apply(
        {
            "date": day,
            "factory": factory,
            "ownership": ownership,
            "machines": [{"type": machine, "statuses": {status: count}}],
        }
    )


class FlakySheetStore(MemorySheetStore):
    """Memory store whose reads fail for selected sheets."""

    def __init__(self, schema: Schema, broken: set[str]) -> None:
        super().__init__(schema)
        self.broken = broken

    def get(self, grid: Grid, coord: GridCoordinate) -> object:
        if grid.name in self.broken:
            raise StoreAccessError(f"cannot read {grid.name}")
        return super().get(grid, coord)


def test_totals_sum_across_date_sheets(schema: Schema, memory_store: MemorySheetStore) -> None:
    merger = SubmissionMerger(schema, memory_store)
    _submit(merger, "2026-02-10", "THHM", "Owned", "Over Lock", "Absent", 3)
    _submit(merger, "2026-02-11", "THHM", "Owned", "Over Lock", "Absent", 5)
    _submit(merger, "2026-02-11", "THKN", "Rent", "Flat Bed", "Breakdown", 2)

    summary = Aggregator(schema, memory_store).rebuild_summary()

    assert summary.sheet_count == 2
    assert summary.sheet_names == ["10/02", "11/02"]
    assert summary.total("Over Lock", "Absent", "THHM", "Owned") == 8
    assert summary.total("Over Lock", "Absent", "THHM", "Rent") == 0
    assert summary.total("Flat Bed", "Breakdown", "THKN", "Rent") == 2
    assert summary.row("Over Lock", "Absent").grand_total == 8
    assert len(summary.rows) == len(schema.machine_types) * len(schema.status_types)


def test_non_date_sheets_are_ignored(schema: Schema, memory_store: MemorySheetStore) -> None:
    grid = memory_store.get_or_create("Notes")
    memory_store.set(grid, GridCoordinate(10, 3), 99)
    merger = SubmissionMerger(schema, memory_store)
    _submit(merger, "2026-02-11", "THHM", "Owned", "Over Lock", "Absent", 1)

    summary = Aggregator(schema, memory_store).rebuild_summary()
    assert summary.sheet_names == ["11/02"]
    assert summary.total("Over Lock", "Absent", "THHM", "Owned") == 1


def test_no_date_sheets_yields_marker(schema: Schema, memory_store: MemorySheetStore) -> None:
    summary = Aggregator(schema, memory_store).rebuild_summary()
    assert summary.is_empty
    assert summary.marker == NO_SHEETS_MARKER
    assert summary.total("Over Lock", "Absent", "THHM", "Owned") == 0


def test_unreadable_sheet_contributes_zero(schema: Schema) -> None:
    store = FlakySheetStore(schema, broken={"12/02"})
    merger = SubmissionMerger(schema, store)
    _submit(merger, "2026-02-11", "THAM", "Owned", "Ringer", "Feeding", 4)
    _submit(merger, "2026-02-12", "THAM", "Owned", "Ringer", "Feeding", 6)

    summary = Aggregator(schema, store, max_workers=2).rebuild_summary()
    assert summary.sheet_count == 2
    assert summary.total("Ringer", "Feeding", "THAM", "Owned") == 4


def test_text_cells_count_as_zero(schema: Schema, memory_store: MemorySheetStore) -> None:
    grid = memory_store.get_or_create("11/02")
    memory_store.set(grid, GridCoordinate(row_for(schema, "Ringer", "Absent"), column_for(schema, "THGI", "Rent")), "x")
    summary = Aggregator(schema, memory_store).rebuild_summary()
    assert summary.total("Ringer", "Absent", "THGI", "Rent") == 0


def test_publish_summary_layout(small_schema: Schema) -> None:
    store = MemorySheetStore(small_schema)
    merger = SubmissionMerger(small_schema, store)
    _submit(merger, "2026-02-11", "F1", "Owned", "Press", "Idle", 2)
    _submit(merger, "2026-02-12", "F2", "Rent", "Lathe", "Setup", 3)
    summary = Aggregator(small_schema, store).rebuild_summary()

    grid = publish_summary(store, summary, generated_at=datetime(2026, 2, 12, 18, 0))
    rows = store.read_rows(grid)

    assert rows[0][0] == "Summary Report"
    assert rows[1][0] == "Generated: 2026-02-12 18:00:00"
    assert rows[3][0] == "Total Daily Sheets: 2"
    assert rows[5][0] == "Factory Totals (All Days Combined)"
    assert rows[6] == ["Machine Type", "Status", "F1 Owned", "F1 Rent", "F2 Owned", "F2 Rent", "TOTAL"]
    assert rows[7][0] == "Press"
    assert rows[8] == [None, "Idle", 2, None, None, None, 2]
    assert rows[9][1] == "Broken"
    assert rows[11][0] == "Lathe"
    assert rows[14] == [None, "Setup", None, None, None, 3, 3]


def test_publish_replaces_previous_summary(small_schema: Schema) -> None:
    store = MemorySheetStore(small_schema)
    stale = store.get_or_create(SUMMARY_SHEET_NAME)
    store.set(stale, GridCoordinate(30, 9), "stale")

    summary = Aggregator(small_schema, store).rebuild_summary()
    grid = publish_summary(store, summary)
    rows = store.read_rows(grid)

    assert rows[3][0] == NO_SHEETS_MARKER
    assert len(rows) == 4
    assert store.get(grid, GridCoordinate(30, 9)) is None


def test_to_dataframe_has_one_row_per_pair(small_schema: Schema) -> None:
    store = MemorySheetStore(small_schema)
    _submit(SubmissionMerger(small_schema, store), "2026-02-11", "F2", "Owned", "Lathe", "Broken", 5)
    frame = Aggregator(small_schema, store).rebuild_summary().to_dataframe()

    assert list(frame.columns)[-1] == "TOTAL"
    assert len(frame) == 6
    hit = frame[(frame["Machine Type"] == "Lathe") & (frame["Status"] == "Broken")]
    assert int(hit["F2 Owned"].iloc[0]) == 5
    assert int(frame["TOTAL"].sum()) == 5


@pytest.mark.parametrize("workers", [1, 4])
def test_workbook_summary_round_trip(schema: Schema, tmp_path: Path, workers: int) -> None:
    store = XLSXSheetStore(schema, tmp_path / "data")
    merger = SubmissionMerger(schema, store)
    _submit(merger, "2026-02-10", "THMM", "Rent", "Head Seal", "Replace", 3)
    _submit(merger, "2026-02-11", "THMM", "Rent", "Head Seal", "Replace", 5)
    _submit(merger, "2026-02-12", "THHM", "Owned", "Bar Tack", "Additional", 1)

    summary = Aggregator(schema, store, max_workers=workers).rebuild_summary()
    publish_summary(store, summary)

    assert summary.total("Head Seal", "Replace", "THMM", "Rent") == 8
    reopened = XLSXSheetStore(schema, tmp_path / "data")
    rows = reopened.read_rows(Grid(SUMMARY_SHEET_NAME))
    assert rows[3][0] == "Total Daily Sheets: 3"
    assert [g.name for g in reopened.list_sheets()][-1] == SUMMARY_SHEET_NAME


def test_non_ascii_digit_sheet_names_are_not_dates(schema: Schema, memory_store: MemorySheetStore) -> None:
    grid = memory_store.get_or_create("١١/٠٢")
    memory_store.set(grid, GridCoordinate(10, 3), 7)

    summary = Aggregator(schema, memory_store).rebuild_summary()
    assert summary.is_empty
