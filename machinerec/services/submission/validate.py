"""Validation layer turning a raw JSON payload into a Submission.

Checks run in a fixed order and the first failure wins, so the caller always
sees the same message for the same payload.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from machinerec.core.coordinates import parse_submission_date
from machinerec.core.errors import InvalidFactory, InvalidOwnership, ValidationError
from machinerec.core.schema import Schema

from .models import MachineEntry, Submission

REQUIRED_FIELDS: tuple[str, ...] = ("date", "factory", "ownership")


def _is_missing(value: object) -> bool:
    """Null, false, zero, NaN and blank strings count as absent; lists and objects do not."""

    if isinstance(value, str):
        return value.strip() == ""
    if value is None or isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or value != value
    return False


def _parse_count(index: int, machine_type: str, status: str, value: object) -> int:
    if value is None:
        return 0
    invalid = ValidationError(
        f"Invalid machine entry at index {index}: count for {machine_type} / {status} "
        f"must be a non-negative integer, got {value!r}"
    )
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise invalid
    if isinstance(value, float):
        if not value.is_integer():
            raise invalid
        value = int(value)
    if value < 0:
        raise invalid
    return value


def _parse_machine(index: int, raw: object) -> MachineEntry:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid machine entry at index {index}: expected an object")
    machine_type = raw.get("type")
    if not isinstance(machine_type, str) or not machine_type.strip():
        raise ValidationError(f"Invalid machine entry at index {index}: missing type")
    statuses = raw.get("statuses")
    if not isinstance(statuses, Mapping):
        raise ValidationError(f"Invalid machine entry at index {index}: statuses must be an object")
    counts = {str(status): _parse_count(index, machine_type, str(status), value) for status, value in statuses.items()}
    return MachineEntry(type=machine_type, statuses=counts)


def _parse_timestamp(value: object) -> datetime | None:
    """Best-effort client timestamp; ``None`` means use the receive time."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def parse_submission(payload: Any, schema: Schema) -> Submission:
    """Validate *payload* and return a Submission, raising ValidationError on the first problem."""

    if not isinstance(payload, Mapping):
        raise ValidationError("Submission must be a JSON object.")

    if any(_is_missing(payload.get(name)) for name in REQUIRED_FIELDS):
        raise ValidationError("Missing required fields: date, factory, and ownership are required.")

    factory = payload["factory"]
    if not schema.is_factory(factory):
        raise InvalidFactory(f"Invalid factory: {factory}. Must be one of: {', '.join(schema.factories)}")

    ownership = payload["ownership"]
    if not schema.is_ownership(ownership):
        raise InvalidOwnership(f'Invalid ownership type: {ownership}. Must be "Owned" or "Rent".')

    parsed_date = parse_submission_date(payload["date"])

    machines_raw = payload.get("machines")
    if not isinstance(machines_raw, list) or not machines_raw:
        raise ValidationError("No machine data provided.")
    machines = [_parse_machine(index, raw) for index, raw in enumerate(machines_raw)]

    operator = payload.get("operatorName")
    operator_name = str(operator).strip() if not _is_missing(operator) else None

    return Submission(
        date=parsed_date,
        factory=factory,
        ownership=ownership,
        machines=machines,
        raw=dict(payload),
        operator_name=operator_name,
        timestamp=_parse_timestamp(payload.get("timestamp")),
    )
