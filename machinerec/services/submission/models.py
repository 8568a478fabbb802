"""Data models used by the submission service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from machinerec.core.coordinates import sheet_name_for_date

DEFAULT_OPERATOR = "N/A"


@dataclass(slots=True)
class MachineEntry:
    """Counts for one machine type, keyed by status name as submitted."""

    type: str
    statuses: dict[str, int] = field(default_factory=dict)

    def total(self) -> int:
        return sum(self.statuses.values())


@dataclass(slots=True)
class Submission:
    """A validated operator submission. Member names are not yet checked against the schema."""

    date: date
    factory: str
    ownership: str
    machines: List[MachineEntry]
    raw: Mapping[str, Any]
    operator_name: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def sheet_name(self) -> str:
        return sheet_name_for_date(self.date)

    def total_machines(self) -> int:
        """Sum of every submitted count, whether or not the schema knows the status."""

        return sum(entry.total() for entry in self.machines)


@dataclass(slots=True)
class LogEntry:
    """One append-only row of the submission log."""

    timestamp: datetime
    date: str
    factory: str
    ownership: str
    operator_name: str
    total_machines: int
    raw_payload: str

    @classmethod
    def from_submission(cls, submission: Submission, received_at: datetime) -> "LogEntry":
        return cls(
            timestamp=submission.timestamp or received_at,
            date=submission.date.isoformat(),
            factory=submission.factory,
            ownership=submission.ownership,
            operator_name=submission.operator_name or DEFAULT_OPERATOR,
            total_machines=submission.total_machines(),
            raw_payload=json.dumps(submission.raw, ensure_ascii=False, default=str),
        )

    def to_row(self) -> list[object]:
        return [
            self.timestamp.replace(microsecond=0).isoformat(),
            self.date,
            self.factory,
            self.ownership,
            self.operator_name,
            self.total_machines,
            self.raw_payload,
        ]


@dataclass(slots=True)
class Acknowledgement:
    """Outcome of a successfully merged submission."""

    sheet_name: str
    date: str
    factory: str
    ownership: str
    cells_updated: int
    total_machines: int
    skipped: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Data saved successfully for {self.factory} ({self.ownership}) on {self.date}"


__all__ = ["MachineEntry", "Submission", "LogEntry", "Acknowledgement"]
