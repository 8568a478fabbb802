"""Fixed cell layout written once when a date sheet is created."""

from __future__ import annotations

from datetime import datetime
from typing import Iterator

from .coordinates import (
    FACTORY_HEADER_ROW,
    OWNERSHIP_HEADER_ROW,
    GridCoordinate,
    column_for,
    coordinate_for,
    machine_header_row,
    row_for,
)
from .schema import OWNERSHIP_KINDS, Schema

LOG_SHEET_NAME = "Submission Log"
SUMMARY_SHEET_NAME = "Summary"
LOG_COLUMNS: tuple[str, ...] = (
    "Timestamp",
    "Date",
    "Factory",
    "Ownership",
    "OperatorName",
    "TotalMachines",
    "RawPayload",
)

TITLE_COORD = GridCoordinate(1, 1)
GENERATED_COORD = GridCoordinate(2, 1)


def generated_label(generated_at: datetime | None = None) -> str:
    stamp = (generated_at or datetime.now()).replace(microsecond=0)
    return f"Generated: {stamp.isoformat(sep=' ')}"


def daily_sheet_cells(
    schema: Schema,
    sheet_name: str,
    generated_at: datetime | None = None,
) -> Iterator[tuple[GridCoordinate, object]]:
    """Yield the header cells of a freshly created date sheet.

    Row 7 carries the factory code over its Owned/Rent pair, row 8 the
    ownership labels, and from row 9 each machine type label (column A) is
    followed by its status labels (column B). Body value cells stay empty.
    """

    yield TITLE_COORD, f"Daily Machine Recording - {sheet_name}"
    yield GENERATED_COORD, generated_label(generated_at)
    for factory in schema.factories:
        yield GridCoordinate(FACTORY_HEADER_ROW, column_for(schema, factory, OWNERSHIP_KINDS[0])), factory
        for ownership in OWNERSHIP_KINDS:
            yield GridCoordinate(OWNERSHIP_HEADER_ROW, column_for(schema, factory, ownership)), ownership
    for machine_type in schema.machine_types:
        yield GridCoordinate(machine_header_row(schema, machine_type), 1), machine_type
        for status in schema.status_types:
            yield GridCoordinate(row_for(schema, machine_type, status), 2), status


def body_coordinates(schema: Schema) -> Iterator[tuple[str, str, str, str, GridCoordinate]]:
    """Yield every value cell of the body as ``(type, status, factory, ownership, coord)``."""

    for machine_type in schema.machine_types:
        for status in schema.status_types:
            for factory in schema.factories:
                for ownership in OWNERSHIP_KINDS:
                    coord = coordinate_for(schema, machine_type, status, factory, ownership)
                    yield machine_type, status, factory, ownership, coord
