from __future__ import annotations

import faulthandler
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.

from machinerec.core.schema import Schema, load_schema
from machinerec_persist.stores.memory_store import MemorySheetStore
from machinerec_persist.stores.xlsx_store import XLSXSheetStore


@pytest.fixture(autouse=True)
def _isolated_root(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep logs and default stores out of the user's home directory."""

    root = tmp_path_factory.mktemp("machinerec_root")
    monkeypatch.setenv("MACHINEREC_ROOT", str(root))
    monkeypatch.delenv("MACHINEREC_SCHEMA", raising=False)
    monkeypatch.delenv("MACHINEREC_WORKBOOK", raising=False)
    monkeypatch.delenv("MACHINEREC_WORKERS", raising=False)
    return root


@pytest.fixture()
def schema() -> Schema:
    return load_schema()


@pytest.fixture()
def small_schema() -> Schema:
    return Schema(
        factories=("F1", "F2"),
        machine_types=("Press", "Lathe"),
        status_types=("Idle", "Broken", "Setup"),
    )


@pytest.fixture()
def memory_store(schema: Schema) -> MemorySheetStore:
    return MemorySheetStore(schema)


@pytest.fixture()
def xlsx_store(schema: Schema, tmp_path: Path) -> XLSXSheetStore:
    return XLSXSheetStore(schema, tmp_path / "data")
