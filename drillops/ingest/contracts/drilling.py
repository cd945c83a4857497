"""Canonical drilling-entry ingest contract.

Uploaders label their columns in many different ways ("Meters Drilled",
"Footage", "Rig #", ...). This module owns the fixed canonical vocabulary and
the ordered keyword table that maps any header onto it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

FIELD_DATE = "date"
FIELD_RIG = "rig"
FIELD_PROJECT = "project"
FIELD_SHIFT = "shift"
FIELD_METERS_DRILLED = "meters_drilled"


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical ingest field."""

    name: str
    label: str
    required: bool = False
    kind: str = "text"  # text | number | date
    # Value stored when an optional cell is blank or unparseable.
    default: Any = None


@dataclass(frozen=True)
class HeaderRule:
    """
    Keyword predicate claiming a header for one canonical field.

    A header matches when it equals one of ``equals`` (if given), contains at
    least one of ``any_of`` (if given) and every keyword in ``all_of``.
    """

    field: str
    any_of: Tuple[str, ...] = ()
    all_of: Tuple[str, ...] = ()
    equals: Tuple[str, ...] = ()

    def matches(self, header: str) -> bool:
        if self.equals and header not in self.equals:
            return False
        if self.any_of and not any(token in header for token in self.any_of):
            return False
        return all(token in header for token in self.all_of)


DRILLING_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(FIELD_DATE, "Date", required=True, kind="date"),
    FieldSpec(FIELD_RIG, "Rig", required=True),
    FieldSpec(FIELD_PROJECT, "Project", required=True),
    FieldSpec(FIELD_SHIFT, "Shift", required=True),
    FieldSpec(FIELD_METERS_DRILLED, "Meters Drilled", required=True, kind="number"),
    FieldSpec("hole_depth", "Hole Depth", kind="number"),
    FieldSpec("bit_type", "Bit Type"),
    FieldSpec("formation", "Formation"),
    FieldSpec("mud_type", "Mud Type"),
    FieldSpec("total_shift_hours", "Total Shift Hours", kind="number", default=12.0),
    FieldSpec("drilling_hours", "Drilling Hours", kind="number", default=0.0),
    FieldSpec("mechanical_downtime", "Mechanical Downtime", kind="number", default=0.0),
    FieldSpec("operational_delay", "Operational Delay", kind="number", default=0.0),
    FieldSpec("weather_downtime", "Weather Downtime", kind="number", default=0.0),
    FieldSpec("safety_downtime", "Safety Downtime", kind="number", default=0.0),
    FieldSpec("waiting_on_parts", "Waiting On Parts", kind="number", default=0.0),
    FieldSpec("standby_hours", "Standby Hours", kind="number", default=0.0),
    FieldSpec("npt_hours", "NPT Hours", kind="number", default=0.0),
    FieldSpec("fuel_consumed", "Fuel Consumed", kind="number"),
    FieldSpec("consumables_cost", "Consumables Cost", kind="number"),
    FieldSpec("supervisor_name", "Supervisor Name"),
    FieldSpec("remarks", "Remarks"),
)

# Evaluated top to bottom; the first rule that matches claims the header.
# The shift marker only claims a bare "Shift" header so "Shift Supervisor"
# or "Shift Notes" fall through to their own fields.
HEADER_RULES: Tuple[HeaderRule, ...] = (
    HeaderRule(FIELD_DATE, any_of=("date",)),
    HeaderRule(FIELD_RIG, any_of=("rig",)),
    HeaderRule(FIELD_PROJECT, any_of=("project", "client", "job")),
    HeaderRule("total_shift_hours", any_of=("total", "hour", "duration"), all_of=("shift",)),
    HeaderRule(FIELD_SHIFT, equals=("shift",)),
    HeaderRule(FIELD_METERS_DRILLED, any_of=("meters", "drilled", "footage")),
    HeaderRule("hole_depth", all_of=("hole", "depth")),
    HeaderRule("bit_type", any_of=("bit",)),
    HeaderRule("formation", any_of=("formation", "lithology")),
    HeaderRule("mud_type", any_of=("mud",)),
    HeaderRule("drilling_hours", all_of=("drilling", "hour")),
    HeaderRule("mechanical_downtime", any_of=("mechanical",)),
    HeaderRule("operational_delay", any_of=("operational",)),
    HeaderRule("weather_downtime", any_of=("weather",)),
    HeaderRule("safety_downtime", any_of=("safety",)),
    HeaderRule("waiting_on_parts", any_of=("waiting", "parts")),
    HeaderRule("standby_hours", any_of=("standby",)),
    HeaderRule("npt_hours", any_of=("npt",)),
    HeaderRule("fuel_consumed", any_of=("fuel",)),
    HeaderRule("consumables_cost", any_of=("consumable", "cost")),
    HeaderRule("supervisor_name", any_of=("supervisor",)),
    HeaderRule("remarks", any_of=("remark", "note", "comment")),
)


def normalize_header(header: object | None) -> str:
    """Lower-case and trim a raw header, dropping a UTF-8 BOM if present."""

    return str(header or "").strip().lstrip("\ufeff").strip().lower()


def match_header(header: object | None) -> str | None:
    """Return the canonical field claimed by ``header`` or ``None``."""

    normalized = normalize_header(header)
    if not normalized:
        return None
    for rule in HEADER_RULES:
        if rule.matches(normalized):
            return rule.field
    return None


def map_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Re-key a raw row by canonical field name.

    Unmatched headers are dropped. When two headers claim the same field the
    later column wins. Missing cells come through as empty strings.
    """

    mapped: dict[str, Any] = {}
    for header, value in raw.items():
        field = match_header(header)
        if field is None:
            continue
        mapped[field] = "" if value is None else value
    return mapped


def get_drilling_field_specs() -> Tuple[FieldSpec, ...]:
    return DRILLING_FIELDS


def get_drilling_required_fields() -> Tuple[str, ...]:
    return tuple(spec.name for spec in DRILLING_FIELDS if spec.required)


def get_drilling_template_headers() -> Tuple[str, ...]:
    return tuple(spec.label for spec in DRILLING_FIELDS)


def missing_required_fields(headers: Iterable[object]) -> list[str]:
    """Return the labels of mandatory fields that no header claims."""

    claimed = {match_header(header) for header in headers}
    return [spec.label for spec in DRILLING_FIELDS if spec.required and spec.name not in claimed]
