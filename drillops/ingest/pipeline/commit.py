"""Transactional promotion of validated staging rows into ``drilling_entries``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from drillops.ingest.errors import CommitError
from drillops.models import DrillingEntry, db

from .staging import lock_pending, mark_imported
from .validation import DEFAULT_SAMPLE_ERRORS, AdminAction, InvalidRow, ValidationReport, validate_batch

IMPORTED_ENTRY_STATUS = "Approved"

ADMIN_ACTIONS_REQUIRED_MESSAGE = "Cannot commit — some items need to be created in Admin first."
NO_VALID_ROWS_MESSAGE = "No valid rows to commit."
NOTHING_PENDING_MESSAGE = "No pending rows to commit."
ALREADY_COMMITTED_MESSAGE = "Batch was committed by another request; nothing imported."


@dataclass
class CommitResult:
    """Outcome of a commit attempt."""

    batch_id: str
    success: bool
    message: str
    committed_count: int = 0
    valid_count: int = 0
    error_count: int = 0
    admin_actions: list[AdminAction] = field(default_factory=list)
    sample_errors: list[InvalidRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "batch_id": self.batch_id,
            "success": self.success,
            "message": self.message,
            "committed_count": self.committed_count,
            "valid_count": self.valid_count,
            "error_count": self.error_count,
        }
        if self.admin_actions:
            payload["admin_actions"] = [action.to_dict() for action in self.admin_actions]
        if self.sample_errors:
            payload["sample_errors"] = [row.to_dict() for row in self.sample_errors]
        return payload


def _refusal(report: ValidationReport, message: str, *, include_actions: bool) -> CommitResult:
    return CommitResult(
        batch_id=report.batch_id,
        success=False,
        message=message,
        valid_count=report.valid_count,
        error_count=report.error_count,
        admin_actions=list(report.admin_actions) if include_actions else [],
        sample_errors=list(report.sample_errors),
    )


def commit_batch(
    batch_id: str,
    *,
    created_by_id: int | None = None,
    sample_size: int = DEFAULT_SAMPLE_ERRORS,
    session=None,
) -> CommitResult:
    """
    Validate ``batch_id`` afresh and import its valid rows in one transaction.

    Refuses while admin actions are outstanding or when no row is valid. Rows
    that fail validation stay pending. On a storage error everything is rolled
    back and :class:`CommitError` is raised.
    """

    session = session or db.session
    report = validate_batch(batch_id, sample_size=sample_size, session=session)

    if report.total_rows == 0:
        return CommitResult(batch_id=batch_id, success=True, message=NOTHING_PENDING_MESSAGE)

    if report.has_admin_actions:
        current_app.logger.info(
            "Ingest commit refused; reference data missing",
            extra={"ingest_batch_id": batch_id, "ingest_admin_actions": len(report.admin_actions)},
        )
        return _refusal(report, ADMIN_ACTIONS_REQUIRED_MESSAGE, include_actions=True)

    if report.valid_count == 0:
        return _refusal(report, NO_VALID_ROWS_MESSAGE, include_actions=False)

    staging_ids = [row.staging_id for row in report.valid]
    try:
        locked = lock_pending(batch_id, staging_ids, session=session)
        if len(locked) != len(staging_ids):
            session.rollback()
            return _lost_race(report)

        session.add_all(
            DrillingEntry(
                **row.record.to_entry_kwargs(),
                status=IMPORTED_ENTRY_STATUS,
                created_by_id=created_by_id,
                import_batch_id=batch_id,
            )
            for row in report.valid
        )
        session.flush()

        updated = mark_imported(staging_ids, session=session)
        if updated != len(staging_ids):
            session.rollback()
            return _lost_race(report)

        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        current_app.logger.exception(
            "Ingest commit failed; transaction rolled back",
            extra={"ingest_batch_id": batch_id, "ingest_row_count": len(staging_ids)},
        )
        raise CommitError(batch_id, str(exc)) from exc

    committed = len(staging_ids)
    current_app.logger.info(
        "Committed ingest batch",
        extra={
            "ingest_batch_id": batch_id,
            "ingest_committed_count": committed,
            "ingest_error_count": report.error_count,
        },
    )
    return CommitResult(
        batch_id=batch_id,
        success=True,
        message=f"Successfully imported {committed} records.",
        committed_count=committed,
        valid_count=report.valid_count,
        error_count=report.error_count,
        sample_errors=list(report.sample_errors),
    )


def _lost_race(report: ValidationReport) -> CommitResult:
    current_app.logger.warning(
        "Ingest commit lost a concurrent race; nothing imported",
        extra={"ingest_batch_id": report.batch_id},
    )
    return CommitResult(
        batch_id=report.batch_id,
        success=True,
        message=ALREADY_COMMITTED_MESSAGE,
        valid_count=report.valid_count,
        error_count=report.error_count,
    )
