"""Helpers for staging parsed spreadsheet rows into ``import_staging``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from flask import current_app
from sqlalchemy import select, update

from drillops.models import db
from drillops.models.base import _utcnow
from drillops.models.ingest import ImportStaging, StagingRowStatus

CHUNK_SIZE = 50


@dataclass
class StagingSummary:
    """Outcome statistics for a staging operation."""

    batch_id: str
    rows_staged: int
    chunks_committed: int
    source_filename: str | None = None


def stage_rows(
    batch_id: str,
    rows: Iterable[Mapping[str, object]],
    *,
    chunk_size: int = CHUNK_SIZE,
    uploaded_by_id: int | None = None,
    source_filename: str | None = None,
    session=None,
) -> StagingSummary:
    """
    Stage raw rows for ``batch_id`` in fixed-size chunks.

    Row numbers run sequentially from 1 in input order regardless of the chunk
    size. Each chunk is committed on its own, so a failure part-way leaves the
    earlier chunks staged.
    """

    session = session or db.session
    chunk_size = max(1, int(chunk_size))
    pending: list[ImportStaging] = []
    rows_staged = 0
    chunks_committed = 0

    for index, raw in enumerate(rows):
        pending.append(
            ImportStaging(
                batch_id=batch_id,
                row_number=index + 1,
                raw_payload=dict(raw),
                status=StagingRowStatus.PENDING,
                uploaded_by_id=uploaded_by_id,
                source_filename=source_filename,
            )
        )
        if len(pending) >= chunk_size:
            rows_staged += _commit_chunk(session, pending)
            chunks_committed += 1
            pending = []

    if pending:
        rows_staged += _commit_chunk(session, pending)
        chunks_committed += 1

    current_app.logger.info(
        "Staged ingest rows",
        extra={
            "ingest_batch_id": batch_id,
            "ingest_row_count": rows_staged,
            "ingest_chunks": chunks_committed,
            "ingest_source_filename": source_filename,
        },
    )
    return StagingSummary(
        batch_id=batch_id,
        rows_staged=rows_staged,
        chunks_committed=chunks_committed,
        source_filename=source_filename,
    )


def _commit_chunk(session, chunk: Sequence[ImportStaging]) -> int:
    session.add_all(chunk)
    session.commit()
    return len(chunk)


def list_pending(batch_id: str, *, session=None) -> list[ImportStaging]:
    """Return the batch's pending rows ordered by source row number."""

    session = session or db.session
    stmt = (
        select(ImportStaging)
        .where(ImportStaging.batch_id == batch_id, ImportStaging.status == StagingRowStatus.PENDING)
        .order_by(ImportStaging.row_number)
    )
    return list(session.scalars(stmt))


def lock_pending(batch_id: str, ids: Sequence[int], *, session=None) -> list[int]:
    """
    Lock the given pending rows for the current transaction and return the ids still pending.

    Backends without row locks (SQLite) ignore ``FOR UPDATE``; the conditional
    update in :func:`mark_imported` is the final guard there.
    """

    session = session or db.session
    if not ids:
        return []
    stmt = (
        select(ImportStaging.id)
        .where(
            ImportStaging.batch_id == batch_id,
            ImportStaging.id.in_(list(ids)),
            ImportStaging.status == StagingRowStatus.PENDING,
        )
        .with_for_update()
    )
    return list(session.scalars(stmt))


def mark_imported(ids: Sequence[int], *, session=None) -> int:
    """
    Flip pending rows to ``Imported`` and return how many rows changed.

    Never commits; callers own the transaction.
    """

    session = session or db.session
    if not ids:
        return 0
    stmt = (
        update(ImportStaging)
        .where(ImportStaging.id.in_(list(ids)), ImportStaging.status == StagingRowStatus.PENDING)
        .values(status=StagingRowStatus.IMPORTED, updated_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    return int(result.rowcount or 0)
