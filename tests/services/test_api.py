from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from machinerec.api import ONLINE_MESSAGE, RecordingSystem, handle_status, handle_submission
from machinerec.core.coordinates import GridCoordinate, row_for
from machinerec.core.layout import LOG_SHEET_NAME, SUMMARY_SHEET_NAME
from machinerec.core.schema import Schema
from machinerec.core.settings import load_settings
from machinerec.services.submission import SubmissionMerger
from machinerec_persist.stores.base_store import Grid, StoreAccessError
from machinerec_persist.stores.memory_store import MemorySheetStore

PAYLOAD = {
    "date": "2026-02-11",
    "factory": "THHM",
    "ownership": "Owned",
    "operatorName": "Ana",
    "machines": [{"type": "Over Lock", "statuses": {"Absent": 2}}],
}


@pytest.fixture()
def system(schema: Schema, memory_store: MemorySheetStore) -> RecordingSystem:
    return RecordingSystem.create(schema, memory_store, aggregate_workers=2)


def test_handle_submission_success_from_json_text(system: RecordingSystem) -> None:
    response = handle_submission(json.dumps(PAYLOAD), system.merger)
    assert response == {"status": "success", "message": "Data saved successfully for THHM (Owned) on 2026-02-11"}


def test_handle_submission_reports_validation_reason(system: RecordingSystem) -> None:
    response = system.submit({**PAYLOAD, "factory": "XYZZ"})
    assert response["status"] == "error"
    assert response["message"].startswith("Invalid factory: XYZZ.")
    assert system.store.list_sheets() == []


def test_handle_submission_rejects_bad_json(system: RecordingSystem) -> None:
    response = system.submit("{not json")
    assert response["status"] == "error"
    assert response["message"].startswith("Invalid JSON payload:")


def test_handle_submission_rejects_non_object(system: RecordingSystem) -> None:
    response = system.submit(b"[1, 2, 3]")
    assert response == {"status": "error", "message": "Submission must be a JSON object."}


def test_handle_submission_reports_store_failure(schema: Schema) -> None:
    class BrokenStore(MemorySheetStore):
        def set(self, grid: Grid, coord: GridCoordinate, value: object) -> None:
            raise StoreAccessError("disk full")

    merger = SubmissionMerger(schema, BrokenStore(schema))
    response = handle_submission(PAYLOAD, merger)
    assert response == {"status": "error", "message": "Storage error: disk full"}


def test_handle_status_lists_schema(schema: Schema) -> None:
    response = handle_status(schema)
    assert response["status"] == "online"
    assert response["message"] == ONLINE_MESSAGE
    assert response["factories"] == list(schema.factories)
    assert response["machineTypes"] == list(schema.machine_types)
    assert response["statusTypes"] == list(schema.status_types)
    datetime.fromisoformat(response["timestamp"])


def test_refresh_summary_publishes_sheet(system: RecordingSystem, schema: Schema) -> None:
    system.submit(PAYLOAD)
    system.submit({**PAYLOAD, "date": "2026-02-12"})

    summary = system.refresh_summary()
    assert summary.total("Over Lock", "Absent", "THHM", "Owned") == 4
    rows = system.store.read_rows(Grid(SUMMARY_SHEET_NAME))
    assert rows[3][0] == "Total Daily Sheets: 2"


def test_refresh_summary_without_publish_leaves_store(system: RecordingSystem) -> None:
    system.submit(PAYLOAD)
    system.refresh_summary(publish=False)
    assert SUMMARY_SHEET_NAME not in [g.name for g in system.store.list_sheets()]


def test_from_settings_uses_workbook_under_root(tmp_path: Path, schema: Schema) -> None:
    settings = load_settings(root=tmp_path / "rec", workbook="plant.xlsx")
    system = RecordingSystem.from_settings(settings)

    assert system.submit(PAYLOAD)["status"] == "success"
    assert (tmp_path / "rec" / "store" / "plant.xlsx").exists()
    coord = GridCoordinate(row_for(schema, "Over Lock", "Absent"), 3)
    assert system.store.get(Grid("11/02"), coord) == 2
    assert system.store.read_rows(Grid(LOG_SHEET_NAME))[1][4] == "Ana"


def test_control_characters_become_storage_error(tmp_path: Path, schema: Schema) -> None:
    system = RecordingSystem.from_settings(load_settings(root=tmp_path / "rec"))

    response = system.submit({**PAYLOAD, "operatorName": "Ana\x01"})

    assert response["status"] == "error"
    assert response["message"].startswith("Storage error:")
    assert system.store.list_sheets() == []
    assert system.submit(PAYLOAD)["status"] == "success"
