"""Data models used by the summary service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pandas as pd

from machinerec.core.schema import OWNED, RENT

NO_SHEETS_MARKER = "No daily sheets found. Data will appear after first operator submission."
TOTAL_LABEL = "TOTAL"


@dataclass(slots=True)
class SummaryRow:
    """Totals for one ``(machine type, status)`` pair across every date sheet."""

    machine_type: str
    status: str
    owned: dict[str, int | float] = field(default_factory=dict)
    rent: dict[str, int | float] = field(default_factory=dict)

    @property
    def grand_total(self) -> int | float:
        return sum(self.owned.values()) + sum(self.rent.values())

    def value(self, factory: str, ownership: str) -> int | float:
        bucket = self.owned if ownership == OWNED else self.rent
        return bucket.get(factory, 0)


@dataclass(slots=True)
class SummaryGrid:
    """Pure projection of the date sheets; rebuilt from scratch on every run."""

    factories: tuple[str, ...]
    sheet_names: List[str] = field(default_factory=list)
    rows: List[SummaryRow] = field(default_factory=list)

    @property
    def sheet_count(self) -> int:
        return len(self.sheet_names)

    @property
    def is_empty(self) -> bool:
        return not self.sheet_names

    @property
    def marker(self) -> str | None:
        return NO_SHEETS_MARKER if self.is_empty else None

    def row(self, machine_type: str, status: str) -> SummaryRow:
        for candidate in self.rows:
            if candidate.machine_type == machine_type and candidate.status == status:
                return candidate
        raise KeyError(f"{machine_type} / {status}")

    def total(self, machine_type: str, status: str, factory: str, ownership: str) -> int | float:
        if self.is_empty:
            return 0
        return self.row(machine_type, status).value(factory, ownership)

    def header(self) -> list[str]:
        columns = ["Machine Type", "Status"]
        for factory in self.factories:
            columns.append(f"{factory} {OWNED}")
            columns.append(f"{factory} {RENT}")
        columns.append(TOTAL_LABEL)
        return columns

    def emit_rows(self) -> list[list[object]]:
        """Rows laid out like a date sheet body: a type header row, then its status rows.

        Zero totals are emitted as blank cells.
        """

        width = len(self.header())
        emitted: list[list[object]] = []
        current_type: str | None = None
        for summary_row in self.rows:
            if summary_row.machine_type != current_type:
                current_type = summary_row.machine_type
                emitted.append([current_type] + [""] * (width - 1))
            values: list[object] = ["", summary_row.status]
            for factory in self.factories:
                values.append(summary_row.owned.get(factory, 0) or "")
                values.append(summary_row.rent.get(factory, 0) or "")
            values.append(summary_row.grand_total or "")
            emitted.append(values)
        return emitted

    def to_dataframe(self) -> pd.DataFrame:
        """Numeric long-to-wide view: one row per ``(machine type, status)``."""

        records = []
        for summary_row in self.rows:
            record: dict[str, object] = {"Machine Type": summary_row.machine_type, "Status": summary_row.status}
            for factory in self.factories:
                record[f"{factory} {OWNED}"] = summary_row.owned.get(factory, 0)
                record[f"{factory} {RENT}"] = summary_row.rent.get(factory, 0)
            record[TOTAL_LABEL] = summary_row.grand_total
            records.append(record)
        return pd.DataFrame(records, columns=self.header())


__all__ = ["NO_SHEETS_MARKER", "SummaryGrid", "SummaryRow"]
