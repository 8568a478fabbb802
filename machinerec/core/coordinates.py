"""Mapping between schema members and 1-based sheet cell coordinates.

Every date sheet and the summary share one body layout, so a coordinate can
always be re-derived from ``(machine type, status, factory, ownership)`` and
never needs to be stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .errors import (
    InvalidFactory,
    InvalidMachineType,
    InvalidOwnership,
    InvalidStatus,
    ValidationError,
)
from .schema import OWNED, Schema

FACTORY_HEADER_ROW = 7
OWNERSHIP_HEADER_ROW = 8
FIRST_DATA_ROW = 9
LABEL_COLUMNS = 2
FIRST_DATA_COLUMN = LABEL_COLUMNS + 1

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
DATE_SHEET_PATTERN = re.compile(r"^\d{2}/\d{2}$", re.ASCII)


@dataclass(frozen=True, order=True)
class GridCoordinate:
    row: int
    column: int


def column_for(schema: Schema, factory: str, ownership: str) -> int:
    """Column of the ``(factory, ownership)`` cell; factories own 2-column blocks, Owned first."""

    if not schema.is_factory(factory):
        raise InvalidFactory(f"Invalid factory: {factory}. Must be one of: {', '.join(schema.factories)}")
    if not schema.is_ownership(ownership):
        raise InvalidOwnership(f'Invalid ownership type: {ownership}. Must be "Owned" or "Rent".')
    base = FIRST_DATA_COLUMN + 2 * schema.index_of_factory(factory)
    return base if ownership == OWNED else base + 1


def block_size(schema: Schema) -> int:
    """Rows consumed by one machine type: its header row plus one row per status."""

    return 1 + len(schema.status_types)


def machine_header_row(schema: Schema, machine_type: str) -> int:
    if not schema.is_machine_type(machine_type):
        raise InvalidMachineType(f"Invalid machine type: {machine_type}")
    return FIRST_DATA_ROW + schema.index_of_machine_type(machine_type) * block_size(schema)


def row_for(schema: Schema, machine_type: str, status: str) -> int:
    """Row of the ``(machine type, status)`` pair inside the sheet body."""

    header = machine_header_row(schema, machine_type)
    if not schema.is_status_type(status):
        raise InvalidStatus(f"Invalid status: {status}")
    return header + 1 + schema.index_of_status(status)


def coordinate_for(schema: Schema, machine_type: str, status: str, factory: str, ownership: str) -> GridCoordinate:
    return GridCoordinate(
        row=row_for(schema, machine_type, status),
        column=column_for(schema, factory, ownership),
    )


def body_row_count(schema: Schema) -> int:
    return len(schema.machine_types) * block_size(schema)


def sheet_column_count(schema: Schema) -> int:
    return LABEL_COLUMNS + 2 * len(schema.factories)


def last_body_row(schema: Schema) -> int:
    return FIRST_DATA_ROW + body_row_count(schema) - 1


def parse_submission_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, rejecting other shapes and impossible dates."""

    text = str(value)
    if not DATE_PATTERN.match(text):
        raise ValidationError(f"Invalid date format. Expected YYYY-MM-DD, got: {text}")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid date format. Expected YYYY-MM-DD, got: {text}") from exc


def sheet_name_for_date(value: str | date) -> str:
    """``2026-02-11`` -> ``11/02``."""

    parsed = value if isinstance(value, date) else parse_submission_date(value)
    return f"{parsed.day:02d}/{parsed.month:02d}"


def is_date_sheet_name(name: str) -> bool:
    return bool(DATE_SHEET_PATTERN.match(name))


def coerce_count(value: object) -> int | float:
    """Treat a stored cell value as a count.

    Numbers pass through unchanged; anything else (empty, text, booleans,
    dates) counts as zero. This is the only coercion applied to existing cell
    values, both when merging and when aggregating.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value
