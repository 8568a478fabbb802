"""Fold validated submissions into their date sheet with additive merge semantics."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from machinerec.core.coordinates import coerce_count, column_for, coordinate_for
from machinerec.core.layout import LOG_SHEET_NAME
from machinerec.core.schema import Schema
from machinerec_persist.stores.base_store import SheetStore

from .models import Acknowledgement, LogEntry, Submission
from .validate import parse_submission

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SubmissionMerger:
    """Validate a payload, add its counts onto the date sheet and log it.

    The whole read-modify-write sequence plus the log append runs under
    ``store.exclusive(sheet_name)`` so overlapping submissions for one date
    never lose updates.
    """

    def __init__(self, schema: Schema, store: SheetStore, *, clock: Clock | None = None) -> None:
        self.schema = schema
        self.store = store
        self._clock = clock or datetime.now

    def apply(self, payload: Any) -> Acknowledgement:
        """Merge *payload*; raises ValidationError before touching the store."""

        submission = parse_submission(payload, self.schema)
        return self.merge(submission)

    def merge(self, submission: Submission) -> Acknowledgement:
        # unknown factory or ownership fails before the sheet is created
        column_for(self.schema, submission.factory, submission.ownership)
        sheet_name = submission.sheet_name
        skipped: list[str] = []
        cells_updated = 0

        with self.store.exclusive(sheet_name):
            grid = self.store.get_or_create(sheet_name)
            for entry in submission.machines:
                if not self.schema.is_machine_type(entry.type):
                    skipped.append(entry.type)
                    LOGGER.warning(
                        "Skipping unknown machine type %r (%s %s %s)",
                        entry.type,
                        submission.factory,
                        submission.ownership,
                        submission.date.isoformat(),
                    )
                    continue
                for status, count in entry.statuses.items():
                    if not self.schema.is_status_type(status):
                        skipped.append(f"{entry.type} / {status}")
                        LOGGER.warning(
                            "Skipping unknown status %r for %s (%s %s %s)",
                            status,
                            entry.type,
                            submission.factory,
                            submission.ownership,
                            submission.date.isoformat(),
                        )
                        continue
                    if count <= 0:
                        continue
                    coord = coordinate_for(
                        self.schema, entry.type, status, submission.factory, submission.ownership
                    )
                    existing = coerce_count(self.store.get(grid, coord))
                    self.store.set(grid, coord, existing + count)
                    cells_updated += 1

            log_entry = LogEntry.from_submission(submission, self._clock())
            with self.store.exclusive(LOG_SHEET_NAME):
                log_grid = self.store.get_or_create(LOG_SHEET_NAME)
                self.store.append_row(log_grid, log_entry.to_row())

        LOGGER.info(
            "Merged submission %s %s %s into %s (%s cells, %s machines)",
            submission.factory,
            submission.ownership,
            submission.date.isoformat(),
            sheet_name,
            cells_updated,
            log_entry.total_machines,
        )
        return Acknowledgement(
            sheet_name=sheet_name,
            date=submission.date.isoformat(),
            factory=submission.factory,
            ownership=submission.ownership,
            cells_updated=cells_updated,
            total_machines=log_entry.total_machines,
            skipped=skipped,
        )
