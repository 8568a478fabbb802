from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

ROOT_ENV = "MACHINEREC_ROOT"
SCHEMA_ENV = "MACHINEREC_SCHEMA"
WORKBOOK_ENV = "MACHINEREC_WORKBOOK"
WORKERS_ENV = "MACHINEREC_WORKERS"

DEFAULT_WORKBOOK = "machine_records.xlsx"
DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment.

    Attributes:
        root: Base directory holding ``store/`` and ``logs/``.
        schema_path: YAML file with the factory/machine/status enumerations.
        workbook: File name of the records workbook under ``store/``.
        aggregate_workers: Thread count used when reading date sheets.
    """

    root: Path
    schema_path: Path
    workbook: str = DEFAULT_WORKBOOK
    aggregate_workers: int = DEFAULT_WORKERS

    @property
    def log_dir(self) -> Path:
        return self.root / "logs"


def config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


def default_schema_path() -> Path:
    return config_dir() / "schema.yaml"


def default_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / "MachineRec").resolve()


def _read_env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"Environment variable {key} must be an integer") from exc
    if parsed < 1:
        raise ConfigError(f"Environment variable {key} must be >= 1")
    return parsed


def load_settings(
    *,
    root: str | Path | None = None,
    schema_path: str | Path | None = None,
    workbook: str | None = None,
) -> Settings:
    """Resolve settings, explicit arguments taking precedence over the environment."""

    resolved_root = Path(root).expanduser().resolve() if root else default_root()
    schema_env = os.getenv(SCHEMA_ENV)
    if schema_path:
        resolved_schema = Path(schema_path).expanduser()
    elif schema_env:
        resolved_schema = Path(schema_env).expanduser()
    else:
        resolved_schema = default_schema_path()
    workbook_name = workbook or os.getenv(WORKBOOK_ENV) or DEFAULT_WORKBOOK
    if not workbook_name.lower().endswith(".xlsx"):
        raise ConfigError(f"Workbook name must end with .xlsx: {workbook_name}")
    return Settings(
        root=resolved_root,
        schema_path=resolved_schema,
        workbook=workbook_name,
        aggregate_workers=_read_env_int(WORKERS_ENV, DEFAULT_WORKERS),
    )
