"""Batch directory: per-upload aggregates over the staging table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from drillops.models import db
from drillops.models.ingest import ImportStaging, StagingRowStatus

DEFAULT_BATCH_LIMIT = 20

BATCH_STATUS_IMPORTED = "Imported"
BATCH_STATUS_PENDING = "Pending"
BATCH_STATUS_ERROR = "Error"


def derive_batch_status(pending: int, imported: int) -> str:
    """Any imported row wins, then any pending row; otherwise ``Error``."""

    if imported > 0:
        return BATCH_STATUS_IMPORTED
    if pending > 0:
        return BATCH_STATUS_PENDING
    return BATCH_STATUS_ERROR


@dataclass(frozen=True)
class BatchSummary:
    batch_id: str
    total_rows: int
    pending: int
    imported: int
    created_at: datetime | None
    source_filename: str | None
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "total_rows": self.total_rows,
            "pending": self.pending,
            "imported": self.imported,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "source_filename": self.source_filename,
            "status": self.status,
        }


class BatchDirectoryService:
    """Read-only listing of staged batches."""

    def __init__(self, session=None):
        self.session = session or db.session

    def list_batches(self, limit: int = DEFAULT_BATCH_LIMIT) -> list[BatchSummary]:
        """Return the most recent batches, newest first."""

        latest = func.max(ImportStaging.created_at).label("latest_created_at")
        batch_stmt = (
            select(ImportStaging.batch_id, latest, func.max(ImportStaging.source_filename).label("filename"))
            .group_by(ImportStaging.batch_id)
            .order_by(latest.desc(), ImportStaging.batch_id)
            .limit(max(1, int(limit)))
        )
        batch_rows = self.session.execute(batch_stmt).all()
        if not batch_rows:
            return []

        batch_ids = [row.batch_id for row in batch_rows]
        count_stmt = (
            select(ImportStaging.batch_id, ImportStaging.status, func.count(ImportStaging.id))
            .where(ImportStaging.batch_id.in_(batch_ids))
            .group_by(ImportStaging.batch_id, ImportStaging.status)
        )
        counts: dict[str, dict[StagingRowStatus, int]] = {}
        for batch_id, status, count in self.session.execute(count_stmt):
            counts.setdefault(batch_id, {})[status] = int(count)

        summaries: list[BatchSummary] = []
        for row in batch_rows:
            per_status = counts.get(row.batch_id, {})
            pending = per_status.get(StagingRowStatus.PENDING, 0)
            imported = per_status.get(StagingRowStatus.IMPORTED, 0)
            summaries.append(
                BatchSummary(
                    batch_id=row.batch_id,
                    total_rows=sum(per_status.values()),
                    pending=pending,
                    imported=imported,
                    created_at=row.latest_created_at,
                    source_filename=row.filename,
                    status=derive_batch_status(pending, imported),
                )
            )
        return summaries

    def get_batch(self, batch_id: str) -> BatchSummary | None:
        stmt = (
            select(
                ImportStaging.status,
                func.count(ImportStaging.id),
                func.max(ImportStaging.created_at),
                func.max(ImportStaging.source_filename),
            )
            .where(ImportStaging.batch_id == batch_id)
            .group_by(ImportStaging.status)
        )
        rows = self.session.execute(stmt).all()
        if not rows:
            return None
        per_status = {status: int(count) for status, count, _, _ in rows}
        created_at = max((row[2] for row in rows if row[2] is not None), default=None)
        filename = next((row[3] for row in rows if row[3]), None)
        pending = per_status.get(StagingRowStatus.PENDING, 0)
        imported = per_status.get(StagingRowStatus.IMPORTED, 0)
        return BatchSummary(
            batch_id=batch_id,
            total_rows=sum(per_status.values()),
            pending=pending,
            imported=imported,
            created_at=created_at,
            source_filename=filename,
            status=derive_batch_status(pending, imported),
        )
