from datetime import date

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from drillops.ingest.errors import CommitError
from drillops.ingest.pipeline import commit_batch, stage_rows
from drillops.models import DrillingEntry, ImportStaging, StagingRowStatus, db


def _payload(**overrides):
    payload = {
        "Date": "2026-01-15",
        "Rig": "Rig 04",
        "Project": "Project Alpha",
        "Shift": "Night",
        "Meters Drilled": 30,
    }
    payload.update(overrides)
    return payload


def _entry_count():
    return db.session.scalar(select(func.count(DrillingEntry.id)))


def _statuses(batch_id):
    stmt = select(ImportStaging.status).where(ImportStaging.batch_id == batch_id).order_by(ImportStaging.row_number)
    return db.session.scalars(stmt).all()


def test_commit_imports_valid_rows_and_flips_status(reference_data):
    stage_rows("batch-ok", [_payload(), _payload(Shift="day", **{"Fuel Consumed": "", "Mechanical Downtime": ""})])

    result = commit_batch("batch-ok", created_by_id=7)

    assert result.success is True
    assert result.committed_count == 2
    assert result.message == "Successfully imported 2 records."
    assert _statuses("batch-ok") == [StagingRowStatus.IMPORTED, StagingRowStatus.IMPORTED]

    entries = db.session.scalars(select(DrillingEntry).order_by(DrillingEntry.id)).all()
    assert [entry.shift for entry in entries] == ["Night", "Day"]
    assert entries[0].date == date(2026, 1, 15)
    assert entries[0].rig_id == reference_data["rigs"]["Rig 04"]
    assert entries[0].status == "Approved"
    assert entries[0].import_batch_id == "batch-ok"
    assert entries[0].created_by_id == 7
    assert entries[1].fuel_consumed is None
    assert entries[1].mechanical_downtime == 0
    assert entries[1].total_shift_hours == 12


def test_commit_refused_while_admin_actions_outstanding(reference_data):
    stage_rows("batch-missing", [_payload(), _payload(Project="Site Zulu")])

    result = commit_batch("batch-missing")

    assert result.success is False
    assert result.message == "Cannot commit — some items need to be created in Admin first."
    assert [action.type for action in result.admin_actions] == ["project"]
    assert result.valid_count == 1
    assert result.error_count == 1
    assert _entry_count() == 0
    assert _statuses("batch-missing") == [StagingRowStatus.PENDING, StagingRowStatus.PENDING]


def test_commit_refused_when_no_row_is_valid(reference_data):
    stage_rows("batch-bad", [_payload(Shift="Swing"), _payload(Date="")])

    result = commit_batch("batch-bad")

    assert result.success is False
    assert result.message == "No valid rows to commit."
    assert result.admin_actions == []
    assert len(result.sample_errors) == 2


def test_commit_leaves_invalid_rows_pending(reference_data):
    stage_rows("batch-mixed", [_payload(), _payload(Shift="")])

    result = commit_batch("batch-mixed")

    assert result.success is True
    assert result.committed_count == 1
    assert result.error_count == 1
    assert _statuses("batch-mixed") == [StagingRowStatus.IMPORTED, StagingRowStatus.PENDING]


def test_recommit_is_a_successful_noop(reference_data):
    stage_rows("batch-twice", [_payload()])
    assert commit_batch("batch-twice").committed_count == 1

    again = commit_batch("batch-twice")

    assert again.success is True
    assert again.committed_count == 0
    assert _entry_count() == 1


def test_storage_failure_rolls_back_everything(reference_data, monkeypatch):
    stage_rows("batch-fail", [_payload(), _payload(Shift="Day")])

    def _explode(ids, *, session=None):
        raise OperationalError("UPDATE import_staging", {}, Exception("disk I/O error"))

    monkeypatch.setattr("drillops.ingest.pipeline.commit.mark_imported", _explode)

    with pytest.raises(CommitError) as excinfo:
        commit_batch("batch-fail")

    assert excinfo.value.batch_id == "batch-fail"
    assert _entry_count() == 0
    assert _statuses("batch-fail") == [StagingRowStatus.PENDING, StagingRowStatus.PENDING]


def test_losing_a_concurrent_commit_imports_nothing(reference_data, monkeypatch):
    stage_rows("batch-race", [_payload(), _payload(Shift="Day")])

    def _other_request_won(ids, *, session=None):
        return 0

    monkeypatch.setattr("drillops.ingest.pipeline.commit.mark_imported", _other_request_won)

    result = commit_batch("batch-race")

    assert result.success is True
    assert result.committed_count == 0
    assert _entry_count() == 0


def test_rows_taken_before_the_lock_import_nothing(reference_data, monkeypatch):
    from drillops.ingest.pipeline import commit as commit_module

    stage_rows("batch-taken", [_payload(), _payload(Shift="Day")])
    real_validate = commit_module.validate_batch

    def _validate_then_other_request_commits(batch_id, **kwargs):
        report = real_validate(batch_id, **kwargs)
        db.session.execute(
            update(ImportStaging)
            .where(ImportStaging.batch_id == batch_id)
            .values(status=StagingRowStatus.IMPORTED)
        )
        db.session.commit()
        return report

    monkeypatch.setattr(commit_module, "validate_batch", _validate_then_other_request_commits)

    result = commit_batch("batch-taken")

    assert result.success is True
    assert result.committed_count == 0
    assert result.message == commit_module.ALREADY_COMMITTED_MESSAGE
    assert _entry_count() == 0
    assert _statuses("batch-taken") == [StagingRowStatus.IMPORTED, StagingRowStatus.IMPORTED]
