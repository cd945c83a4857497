from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from drillops.ingest.pipeline import (
    InvalidRow,
    ReferenceDirectory,
    ReferenceLookup,
    ValidRow,
    parse_date,
    parse_number_or_default,
    stage_rows,
    validate_batch,
    validate_row,
)
from drillops.models import DrillingEntry, ImportStaging, Rig, StagingRowStatus, db


@pytest.fixture
def directory():
    return ReferenceDirectory(
        rigs=ReferenceLookup.from_pairs("rig", [(1, "Rig 04"), (2, "Rig 03")]),
        projects=ReferenceLookup.from_pairs("project", [(10, "Project Alpha")]),
    )


def _row(payload, row_number=1):
    return SimpleNamespace(id=row_number * 100, row_number=row_number, raw_payload=payload)


def _valid_payload(**overrides):
    payload = {
        "Date": "2026-01-15",
        "Rig": "Rig 04",
        "Project": "Project Alpha",
        "Shift": "day",
        "Meters Drilled": "45.5",
    }
    payload.update(overrides)
    return payload


def test_valid_row_is_coerced_into_canonical_record(directory):
    outcome = validate_row(_row(_valid_payload()), directory)

    assert isinstance(outcome, ValidRow)
    record = outcome.record
    assert record.date == date(2026, 1, 15)
    assert record.shift == "Day"
    assert record.rig_id == 1
    assert record.project_id == 10
    assert record.meters_drilled == 45.5
    assert record.total_shift_hours == 12
    assert outcome.to_dict()["rig"] == "Rig 04"


def test_all_violations_are_collected(directory):
    payload = {"Date": "", "Rig": "", "Project": "", "Shift": "", "Meters Drilled": ""}
    outcome = validate_row(_row(payload, row_number=3), directory)

    assert isinstance(outcome, InvalidRow)
    assert outcome.row_number == 3
    assert outcome.errors == (
        "Date is required",
        "Rig is required",
        "Project is required",
        "Shift is required (Day or Night)",
        "Meters Drilled is required (number)",
    )


def test_invalid_values_produce_specific_messages(directory):
    payload = _valid_payload(Date="not a date", Rig="Rig 09", Project="Site X", Shift="Swing", **{"Meters Drilled": "abc"})
    outcome = validate_row(_row(payload), directory)

    assert outcome.errors == (
        'Invalid Date: "not a date"',
        'Rig "Rig 09" not found in Admin',
        'Project "Site X" not found in Admin',
        'Invalid Shift: "Swing" (must be Day or Night)',
        "Meters Drilled is required (number)",
    )
    assert outcome.missing_rig == "Rig 09"
    assert outcome.missing_project == "Site X"


def test_zero_and_negative_meters_are_accepted(directory):
    assert validate_row(_row(_valid_payload(**{"Meters Drilled": 0})), directory).record.meters_drilled == 0
    assert validate_row(_row(_valid_payload(**{"Meters Drilled": "-2.5"})), directory).record.meters_drilled == -2.5


def test_optional_fields_default_without_invalidating(directory):
    payload = _valid_payload(
        **{
            "Fuel Consumed": "",
            "Mechanical Downtime": "",
            "Drilling Hours": "n/a",
            "Hole Depth": "bad",
            "Total Shift Hours": "",
            "Remarks": "   ",
            "Supervisor Name": " J. Smith ",
            "Consumables Cost": 0,
        }
    )
    record = validate_row(_row(payload), directory).record

    assert record.fuel_consumed is None
    assert record.mechanical_downtime == 0
    assert record.drilling_hours == 0
    assert record.hole_depth is None
    assert record.total_shift_hours == 12
    assert record.remarks is None
    assert record.supervisor_name == "J. Smith"
    assert record.consumables_cost == 0


def test_rig_and_project_resolution_is_case_and_space_insensitive(directory):
    outcome = validate_row(_row(_valid_payload(Rig="rig04", Project=" PROJECT ALPHA ")), directory)
    assert isinstance(outcome, ValidRow)
    assert outcome.record.rig_id == 1


@pytest.mark.parametrize(
    "value, expected",
    [
        (46037, date(2026, 1, 15)),
        (46037.75, date(2026, 1, 15)),
        ("46037", date(2026, 1, 15)),
        (datetime(2026, 1, 15, 8, 30), date(2026, 1, 15)),
        (date(2026, 1, 15), date(2026, 1, 15)),
        ("2026-01-15", date(2026, 1, 15)),
        ("2026-01-15T06:00:00", date(2026, 1, 15)),
        ("15/01/2026", date(2026, 1, 15)),
        ("01/15/2026", date(2026, 1, 15)),
        ("15 Jan 2026", date(2026, 1, 15)),
        ("January 15, 2026", date(2026, 1, 15)),
        ("2026-1-5", date(2026, 1, 5)),
        ("Jan 15 2026", date(2026, 1, 15)),
        ("January 15 2026", date(2026, 1, 15)),
        ("someday", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize(
    "value, default, expected",
    [
        ("", 0.0, 0.0),
        (None, None, None),
        ("12.5", 0.0, 12.5),
        (3, None, 3.0),
        ("x", 12.0, 12.0),
        ("nan", 0.0, 0.0),
        (True, 0.0, 0.0),
    ],
)
def test_parse_number_or_default(value, default, expected):
    assert parse_number_or_default(value, default) == expected


def test_validate_batch_reports_counts_samples_and_admin_actions(reference_data):
    stage_rows(
        "batch-v",
        [
            _valid_payload(),
            _valid_payload(Rig="Rig 99"),
            _valid_payload(Rig="rig 99", Project="Site Zulu"),
            _valid_payload(Shift=""),
        ],
    )

    report = validate_batch("batch-v", sample_size=2)

    assert report.total_rows == 4
    assert report.valid_count == 1
    assert report.error_count == 3
    assert [row.row_number for row in report.sample_errors] == [2, 3]
    assert [row.row_number for row in report.sample_valid] == [1]

    actions = {action.type: action for action in report.admin_actions}
    assert actions["rig"].items == ("Rig 99",)
    assert actions["rig"].existing_items == ("Rig 03", "Rig 04")
    assert actions["project"].items == ("Site Zulu",)
    assert "Admin → Projects" in actions["project"].message


def test_validate_batch_does_not_write(reference_data):
    stage_rows("batch-pure", [_valid_payload(), _valid_payload(Rig="Nope")])

    first = validate_batch("batch-pure").to_dict()
    second = validate_batch("batch-pure").to_dict()

    assert first == second
    assert db.session.scalar(select(func.count(DrillingEntry.id))) == 0
    statuses = db.session.scalars(select(ImportStaging.status).where(ImportStaging.batch_id == "batch-pure")).all()
    assert statuses == [StagingRowStatus.PENDING, StagingRowStatus.PENDING]


def test_validate_batch_reflects_new_reference_data(reference_data):
    stage_rows("batch-fix", [_valid_payload(Rig="Rig 07")])
    assert validate_batch("batch-fix").valid_count == 0

    db.session.add(Rig(name="Rig 07"))
    db.session.commit()

    report = validate_batch("batch-fix")
    assert report.valid_count == 1
    assert report.admin_actions == []


def test_empty_batch_reports_no_pending_rows(app):
    report = validate_batch("nothing-here")

    assert report.total_rows == 0
    assert report.message == "No pending rows found."
    assert report.to_dict()["valid_count"] == 0


def test_optional_defaults_follow_field_specs():
    from drillops.ingest.contracts import DRILLING_FIELDS
    from drillops.ingest.pipeline.validation import NUMBER_DEFAULTS, TEXT_FIELDS, CanonicalDrillingRecord

    optional = {spec.name: spec for spec in DRILLING_FIELDS if not spec.required}

    assert set(NUMBER_DEFAULTS) | set(TEXT_FIELDS) == set(optional)
    assert NUMBER_DEFAULTS["total_shift_hours"] == 12.0
    assert NUMBER_DEFAULTS["npt_hours"] == 0.0
    assert NUMBER_DEFAULTS["fuel_consumed"] is None
    assert CanonicalDrillingRecord.__dataclass_fields__["total_shift_hours"].default == 12.0
