"""Static enumerations that define the recording grid."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from .errors import ConfigError
from .settings import default_schema_path

OWNED = "Owned"
RENT = "Rent"
OWNERSHIP_KINDS: tuple[str, ...] = (OWNED, RENT)


def _normalize_members(label: str, values: Iterable[Any] | None) -> tuple[str, ...]:
    if values is None or isinstance(values, (str, bytes)):
        raise ConfigError(f"{label} must be a list of names")
    members = tuple(str(value).strip() for value in values)
    if not members:
        raise ConfigError(f"{label} must not be empty")
    if any(not member for member in members):
        raise ConfigError(f"{label} contains a blank entry")
    seen: set[str] = set()
    duplicates: list[str] = []
    for member in members:
        if member in seen and member not in duplicates:
            duplicates.append(member)
        seen.add(member)
    if duplicates:
        raise ConfigError(f"{label} contains duplicates: {', '.join(duplicates)}")
    return members


@dataclass(frozen=True)
class Schema:
    """Ordered factory, machine type and status enumerations.

    Order matters: factory position fixes the column block, machine type and
    status position fix the row. Instances are immutable and are handed to
    every component explicitly.
    """

    factories: tuple[str, ...]
    machine_types: tuple[str, ...]
    status_types: tuple[str, ...]
    ownership_kinds: tuple[str, ...] = OWNERSHIP_KINDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "factories", _normalize_members("factories", self.factories))
        object.__setattr__(self, "machine_types", _normalize_members("machine_types", self.machine_types))
        object.__setattr__(self, "status_types", _normalize_members("status_types", self.status_types))
        if tuple(self.ownership_kinds) != OWNERSHIP_KINDS:
            raise ConfigError("ownership kinds are fixed to Owned/Rent")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Schema":
        missing = [key for key in ("factories", "machine_types", "status_types") if key not in data]
        if missing:
            raise ConfigError(f"Schema missing required keys: {', '.join(missing)}")
        return cls(
            factories=data["factories"],
            machine_types=data["machine_types"],
            status_types=data["status_types"],
        )

    def is_factory(self, value: object) -> bool:
        return value in self.factories

    def is_ownership(self, value: object) -> bool:
        return value in self.ownership_kinds

    def is_machine_type(self, value: object) -> bool:
        return value in self.machine_types

    def is_status_type(self, value: object) -> bool:
        return value in self.status_types

    def index_of_factory(self, factory: str) -> int:
        return self.factories.index(factory)

    def index_of_machine_type(self, machine_type: str) -> int:
        return self.machine_types.index(machine_type)

    def index_of_status(self, status: str) -> int:
        return self.status_types.index(status)


def load_schema(path: str | Path | None = None) -> Schema:
    """Load the schema from YAML, defaulting to the packaged ``schema.yaml``."""

    schema_path = Path(path) if path else default_schema_path()
    if not schema_path.exists():
        raise ConfigError(f"schema file not found: {schema_path}")
    with schema_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"schema file is not valid YAML: {schema_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("schema file must contain a mapping")
    return Schema.from_mapping(data)
