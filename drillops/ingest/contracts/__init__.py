"""Canonical ingest contract helpers for spreadsheet adapters."""

from __future__ import annotations

from .drilling import (
    DRILLING_FIELDS,
    FIELD_DATE,
    FIELD_METERS_DRILLED,
    FIELD_PROJECT,
    FIELD_RIG,
    FIELD_SHIFT,
    HEADER_RULES,
    FieldSpec,
    HeaderRule,
    get_drilling_field_specs,
    get_drilling_required_fields,
    get_drilling_template_headers,
    map_row,
    match_header,
    missing_required_fields,
    normalize_header,
)

__all__ = [
    "DRILLING_FIELDS",
    "FIELD_DATE",
    "FIELD_METERS_DRILLED",
    "FIELD_PROJECT",
    "FIELD_RIG",
    "FIELD_SHIFT",
    "HEADER_RULES",
    "FieldSpec",
    "HeaderRule",
    "get_drilling_field_specs",
    "get_drilling_required_fields",
    "get_drilling_template_headers",
    "map_row",
    "match_header",
    "missing_required_fields",
    "normalize_header",
]
