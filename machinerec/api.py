"""Public API: JSON request handlers and the wired-up recording system."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from machinerec.core.errors import ValidationError
from machinerec.core.schema import Schema, load_schema
from machinerec.core.settings import Settings, load_settings
from machinerec.services.submission import Acknowledgement, SubmissionMerger
from machinerec.services.summary import Aggregator, SummaryGrid, publish_summary
from machinerec_persist.stores.base_store import SheetStore, StoreError
from machinerec_persist.stores.xlsx_store import XLSXSheetStore

LOGGER = logging.getLogger(__name__)

ONLINE_MESSAGE = "Machine Daily Recording System is running."


class SubmissionResponse(BaseModel):
    """Body returned to the operator form."""

    status: Literal["success", "error"]
    message: str


class StatusResponse(BaseModel):
    """Read-only schema / health probe."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["online"] = "online"
    message: str = ONLINE_MESSAGE
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).replace(microsecond=0).isoformat()
    )
    factories: list[str]
    machine_types: list[str] = Field(alias="machineTypes")
    status_types: list[str] = Field(alias="statusTypes")


def _error(message: str) -> dict[str, Any]:
    return SubmissionResponse(status="error", message=message).model_dump()


def handle_submission(body: str | bytes | Mapping[str, Any], merger: SubmissionMerger) -> dict[str, Any]:
    """Parse and merge one submission, always answering with a status/message body."""

    if isinstance(body, (str, bytes, bytearray)):
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Rejected submission with invalid JSON: %s", exc)
            return _error(f"Invalid JSON payload: {exc.msg}")
    else:
        payload = body

    try:
        ack: Acknowledgement = merger.apply(payload)
    except ValidationError as exc:
        LOGGER.warning("Rejected submission: %s", exc.reason)
        return _error(exc.reason)
    except StoreError as exc:
        LOGGER.error("Failed to store submission: %s", exc)
        return _error(f"Storage error: {exc}")
    return SubmissionResponse(status="success", message=ack.message).model_dump()


def handle_status(schema: Schema) -> dict[str, Any]:
    response = StatusResponse(
        factories=list(schema.factories),
        machine_types=list(schema.machine_types),
        status_types=list(schema.status_types),
    )
    return response.model_dump(by_alias=True)


@dataclass
class RecordingSystem:
    """Schema, store and services sharing one configuration."""

    schema: Schema
    store: SheetStore
    merger: SubmissionMerger
    aggregator: Aggregator

    @classmethod
    def create(cls, schema: Schema, store: SheetStore, *, aggregate_workers: int = 4) -> "RecordingSystem":
        return cls(
            schema=schema,
            store=store,
            merger=SubmissionMerger(schema, store),
            aggregator=Aggregator(schema, store, max_workers=aggregate_workers),
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RecordingSystem":
        settings = settings or load_settings()
        schema = load_schema(settings.schema_path)
        store = XLSXSheetStore(schema, settings.root, workbook=settings.workbook)
        return cls.create(schema, store, aggregate_workers=settings.aggregate_workers)

    def submit(self, body: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
        return handle_submission(body, self.merger)

    def status(self) -> dict[str, Any]:
        return handle_status(self.schema)

    def refresh_summary(self, *, publish: bool = True) -> SummaryGrid:
        summary = self.aggregator.rebuild_summary()
        if publish:
            publish_summary(self.store, summary)
            LOGGER.info("Summary sheet updated successfully.")
        return summary
