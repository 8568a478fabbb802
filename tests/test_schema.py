from __future__ import annotations

from pathlib import Path

import pytest

from machinerec.core.errors import ConfigError
from machinerec.core.schema import OWNERSHIP_KINDS, Schema, load_schema


def test_default_schema_matches_packaged_yaml(schema: Schema) -> None:
    assert schema.factories == ("THHM", "THAM", "THGI", "THMM", "THKN")
    assert schema.machine_types[0] == "Over Lock"
    assert schema.machine_types[-1] == "Flat Bed"
    assert len(schema.machine_types) == 9
    assert schema.status_types == (
        "Absent",
        "No Allocation/Idle",
        "Feeding",
        "Line Balancing",
        "Replace",
        "Additional",
        "Breakdown",
    )
    assert schema.ownership_kinds == OWNERSHIP_KINDS == ("Owned", "Rent")


def test_predicates(schema: Schema) -> None:
    assert schema.is_factory("THGI")
    assert not schema.is_factory("XYZZ")
    assert schema.is_ownership("Rent")
    assert not schema.is_ownership("Leased")
    assert schema.is_machine_type("Ringer")
    assert not schema.is_machine_type("ringer")
    assert schema.is_status_type("Feeding")
    assert not schema.is_status_type("Feed")


@pytest.mark.parametrize(
    "field, values",
    [
        ("factories", []),
        ("machine_types", ["A", "B", "A"]),
        ("status_types", ["Idle", " "]),
    ],
)
def test_schema_rejects_empty_blank_or_duplicate_members(field: str, values: list[str]) -> None:
    data = {"factories": ["F1"], "machine_types": ["M1"], "status_types": ["S1"]}
    data[field] = values
    with pytest.raises(ConfigError):
        Schema.from_mapping(data)


def test_schema_is_immutable(small_schema: Schema) -> None:
    with pytest.raises(AttributeError):
        small_schema.factories = ("X",)  # type: ignore[misc]


def test_load_schema_from_custom_yaml(tmp_path: Path) -> None:
    path = tmp_path / "schema.yaml"
    path.write_text(
        "factories: [A1, B2]\nmachine_types: [Loom]\nstatus_types: [Idle, Running]\n",
        encoding="utf-8",
    )
    loaded = load_schema(path)
    assert loaded.factories == ("A1", "B2")
    assert loaded.machine_types == ("Loom",)
    assert loaded.status_types == ("Idle", "Running")


def test_load_schema_missing_keys_and_file(tmp_path: Path) -> None:
    path = tmp_path / "schema.yaml"
    path.write_text("factories: [A1]\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="machine_types"):
        load_schema(path)
    with pytest.raises(ConfigError, match="not found"):
        load_schema(tmp_path / "absent.yaml")
