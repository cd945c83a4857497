"""
Row validation and batch reports for staged drilling entries.

Validation is pure with respect to storage: it reads the batch's pending rows
and a fresh reference snapshot, and returns outcomes without writing. Row
problems are returned as data; reference gaps are rolled up into admin
actions that must be resolved before a batch can be committed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

from flask import current_app

from drillops.ingest.contracts import (
    FIELD_DATE,
    FIELD_METERS_DRILLED,
    FIELD_PROJECT,
    FIELD_RIG,
    FIELD_SHIFT,
    get_drilling_field_specs,
    map_row,
)

from .reference import ReferenceDirectory, ReferenceLookup, build_reference_directory, compact_key
from .staging import list_pending

DEFAULT_SAMPLE_ERRORS = 10
DEFAULT_SAMPLE_VALID = 3
NO_PENDING_MESSAGE = "No pending rows found."

ADMIN_ACTION_RIG = "rig"
ADMIN_ACTION_PROJECT = "project"

SHIFT_VALUES = ("Day", "Night")

# Excel stores dates as days since 1899-12-30; 25569 is 1970-01-01.
_EXCEL_EPOCH_OFFSET = 25569
_UNIX_EPOCH = datetime(1970, 1, 1)

# Tried in order after ISO-8601; day-first wins for ambiguous slashes.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%m/%d/%Y %H:%M",
)

_OPTIONAL_FIELDS = tuple(spec for spec in get_drilling_field_specs() if not spec.required)

# Optional numeric field name -> value used when the cell is blank or unparseable.
NUMBER_DEFAULTS: dict[str, float | None] = {
    spec.name: spec.default for spec in _OPTIONAL_FIELDS if spec.kind == "number"
}
TEXT_FIELDS: tuple[str, ...] = tuple(spec.name for spec in _OPTIONAL_FIELDS if spec.kind == "text")
DEFAULT_SHIFT_HOURS: float = NUMBER_DEFAULTS["total_shift_hours"]  # type: ignore[assignment]


@dataclass(frozen=True)
class CanonicalDrillingRecord:
    """A fully coerced drilling entry ready for the operational store."""

    date: date
    shift: str
    rig_id: int
    project_id: int
    meters_drilled: float
    hole_depth: float | None = None
    bit_type: str | None = None
    formation: str | None = None
    mud_type: str | None = None
    total_shift_hours: float = DEFAULT_SHIFT_HOURS
    drilling_hours: float = 0.0
    mechanical_downtime: float = 0.0
    operational_delay: float = 0.0
    weather_downtime: float = 0.0
    safety_downtime: float = 0.0
    waiting_on_parts: float = 0.0
    standby_hours: float = 0.0
    npt_hours: float = 0.0
    fuel_consumed: float | None = None
    consumables_cost: float | None = None
    supervisor_name: str | None = None
    remarks: str | None = None

    def to_entry_kwargs(self) -> dict[str, Any]:
        return dict(vars(self))

    def to_dict(self) -> dict[str, Any]:
        payload = self.to_entry_kwargs()
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True)
class ValidRow:
    staging_id: int
    row_number: int
    record: CanonicalDrillingRecord
    rig_name: str | None = None
    project_name: str | None = None

    is_valid = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "staging_id": self.staging_id,
            "row": self.row_number,
            "date": self.record.date.isoformat(),
            "rig": self.rig_name,
            "project": self.project_name,
            "shift": self.record.shift,
            "meters": self.record.meters_drilled,
        }


@dataclass(frozen=True)
class InvalidRow:
    staging_id: int
    row_number: int
    errors: tuple[str, ...]
    missing_rig: str | None = None
    missing_project: str | None = None

    is_valid = False

    def to_dict(self) -> dict[str, Any]:
        return {"staging_id": self.staging_id, "row": self.row_number, "errors": list(self.errors)}


@dataclass(frozen=True)
class AdminAction:
    """Reference data an operator must create before the batch can commit."""

    type: str
    message: str
    items: tuple[str, ...]
    existing_items: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "items": list(self.items),
            "existing_items": list(self.existing_items),
        }


@dataclass
class ValidationReport:
    """Aggregated outcome of validating every pending row of a batch."""

    batch_id: str
    total_rows: int = 0
    valid: list[ValidRow] = field(default_factory=list)
    invalid: list[InvalidRow] = field(default_factory=list)
    sample_errors: list[InvalidRow] = field(default_factory=list)
    sample_valid: list[ValidRow] = field(default_factory=list)
    admin_actions: list[AdminAction] = field(default_factory=list)
    message: str | None = None

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def error_count(self) -> int:
        return len(self.invalid)

    @property
    def has_admin_actions(self) -> bool:
        return bool(self.admin_actions)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "batch_id": self.batch_id,
            "total_rows": self.total_rows,
            "valid_count": self.valid_count,
            "error_count": self.error_count,
            "sample_errors": [row.to_dict() for row in self.sample_errors],
            "sample_valid": [row.to_dict() for row in self.sample_valid],
            "admin_actions": [action.to_dict() for action in self.admin_actions],
        }
        if self.message:
            payload["message"] = self.message
        return payload


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blank(value: object | None) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _text(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_float(value: object | None) -> float | None:
    if _is_number(value):
        number = float(value)  # type: ignore[arg-type]
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def excel_serial_to_date(serial: float) -> date:
    return (_UNIX_EPOCH + timedelta(days=float(serial) - _EXCEL_EPOCH_OFFSET)).date()


def parse_date(value: object | None) -> date | None:
    """
    Coerce a date cell into a :class:`date`.

    Accepts Excel serial numbers (including numeric strings), ``date`` and
    ``datetime`` values, ISO-8601 text and the formats in ``DATE_FORMATS``.
    Returns ``None`` when nothing matches.
    """

    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    serial = _to_float(value)
    if serial is not None:
        try:
            return excel_serial_to_date(serial)
        except OverflowError:
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_number_or_default(value: object | None, default: float | None) -> float | None:
    """Return ``value`` as a finite float, or ``default`` when blank or unparseable."""

    if _is_blank(value):
        return default
    number = _to_float(value)
    return default if number is None else number


def parse_text(value: object | None) -> str | None:
    text = _text(value)
    return text or None


def normalize_shift(value: object | None) -> str | None:
    token = _text(value).lower()
    for shift in SHIFT_VALUES:
        if token == shift.lower():
            return shift
    return None


def _resolve_reference(
    mapped: Mapping[str, Any],
    field_name: str,
    label: str,
    lookup: ReferenceLookup,
    errors: list[str],
) -> tuple[int | None, str | None]:
    name = _text(mapped.get(field_name))
    if not name:
        errors.append(f"{label} is required")
        return None, None
    entity_id = lookup.resolve(name)
    if entity_id is None:
        errors.append(f'{label} "{name}" not found in Admin')
        return None, name
    return entity_id, None


def validate_row(row, directory: ReferenceDirectory) -> ValidRow | InvalidRow:
    """
    Validate one staged row against the reference snapshot.

    ``row`` needs ``id``, ``row_number`` and ``raw_payload`` attributes. Every
    rule runs so the operator sees all problems at once.
    """

    mapped = map_row(row.raw_payload or {})
    errors: list[str] = []

    raw_date = mapped.get(FIELD_DATE)
    entry_date: date | None = None
    if _is_blank(raw_date):
        errors.append("Date is required")
    else:
        entry_date = parse_date(raw_date)
        if entry_date is None:
            errors.append(f'Invalid Date: "{_text(raw_date)}"')

    rig_id, missing_rig = _resolve_reference(mapped, FIELD_RIG, "Rig", directory.rigs, errors)
    project_id, missing_project = _resolve_reference(
        mapped, FIELD_PROJECT, "Project", directory.projects, errors
    )

    raw_shift = mapped.get(FIELD_SHIFT)
    shift: str | None = None
    if _is_blank(raw_shift):
        errors.append("Shift is required (Day or Night)")
    else:
        shift = normalize_shift(raw_shift)
        if shift is None:
            errors.append(f'Invalid Shift: "{_text(raw_shift)}" (must be Day or Night)')

    meters = _to_float(mapped.get(FIELD_METERS_DRILLED))
    if meters is None:
        errors.append("Meters Drilled is required (number)")

    if errors:
        return InvalidRow(
            staging_id=row.id,
            row_number=row.row_number,
            errors=tuple(errors),
            missing_rig=missing_rig,
            missing_project=missing_project,
        )

    optional: dict[str, Any] = {
        name: parse_number_or_default(mapped.get(name), default) for name, default in NUMBER_DEFAULTS.items()
    }
    for name in TEXT_FIELDS:
        optional[name] = parse_text(mapped.get(name))

    record = CanonicalDrillingRecord(
        date=entry_date,  # type: ignore[arg-type]
        shift=shift,  # type: ignore[arg-type]
        rig_id=rig_id,  # type: ignore[arg-type]
        project_id=project_id,  # type: ignore[arg-type]
        meters_drilled=meters,
        **optional,
    )
    return ValidRow(
        staging_id=row.id,
        row_number=row.row_number,
        record=record,
        rig_name=_text(mapped.get(FIELD_RIG)),
        project_name=_text(mapped.get(FIELD_PROJECT)),
    )


def _distinct_names(names: Iterable[str | None]) -> tuple[str, ...]:
    seen: set[str] = set()
    ordered: list[str] = []
    for name in names:
        if not name:
            continue
        key = compact_key(name)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(name)
    return tuple(ordered)


def build_admin_actions(invalid: Sequence[InvalidRow], directory: ReferenceDirectory) -> list[AdminAction]:
    actions: list[AdminAction] = []
    missing_rigs = _distinct_names(row.missing_rig for row in invalid)
    if missing_rigs:
        actions.append(
            AdminAction(
                type=ADMIN_ACTION_RIG,
                message=(
                    "The following Rig(s) do not exist. "
                    "Please create them in Admin → Rigs before importing:"
                ),
                items=missing_rigs,
                existing_items=directory.rigs.names,
            )
        )
    missing_projects = _distinct_names(row.missing_project for row in invalid)
    if missing_projects:
        actions.append(
            AdminAction(
                type=ADMIN_ACTION_PROJECT,
                message=(
                    "The following Project(s) do not exist. "
                    "Please create them in Admin → Projects before importing:"
                ),
                items=missing_projects,
                existing_items=directory.projects.names,
            )
        )
    return actions


def validate_batch(
    batch_id: str,
    *,
    sample_size: int = DEFAULT_SAMPLE_ERRORS,
    directory: ReferenceDirectory | None = None,
    session=None,
) -> ValidationReport:
    """Validate every pending row of ``batch_id`` against fresh reference data."""

    rows = list_pending(batch_id, session=session)
    if not rows:
        return ValidationReport(batch_id=batch_id, message=NO_PENDING_MESSAGE)

    directory = directory or build_reference_directory(session=session)
    report = ValidationReport(batch_id=batch_id, total_rows=len(rows))
    for row in rows:
        outcome = validate_row(row, directory)
        if isinstance(outcome, ValidRow):
            report.valid.append(outcome)
        else:
            report.invalid.append(outcome)

    report.sample_errors = report.invalid[: max(0, sample_size)]
    report.sample_valid = report.valid[:DEFAULT_SAMPLE_VALID]
    report.admin_actions = build_admin_actions(report.invalid, directory)

    current_app.logger.info(
        "Validated ingest batch",
        extra={
            "ingest_batch_id": batch_id,
            "ingest_row_count": report.total_rows,
            "ingest_valid_count": report.valid_count,
            "ingest_error_count": report.error_count,
            "ingest_admin_actions": len(report.admin_actions),
        },
    )
    return report
