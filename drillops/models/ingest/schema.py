"""
SQLAlchemy models for the ingest staging area.

Every parsed spreadsheet row lands here first, tagged with its batch and
source row number, and stays until a commit promotes it into
``drilling_entries``.
"""

from __future__ import annotations

import enum

from sqlalchemy import Enum, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..base import BaseModel, db


class StagingRowStatus(str, enum.Enum):
    """Lifecycle states for a staged row."""

    PENDING = "Pending"
    IMPORTED = "Imported"


class ImportStaging(BaseModel):
    """
    Raw spreadsheet rows staged during an upload.

    Rows keep the original payload verbatim so validation can be re-run
    against fresh reference data. Only the committer moves a row from
    `PENDING` to `IMPORTED`.
    """

    __tablename__ = "import_staging"

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[str] = mapped_column(db.String(64), nullable=False, index=True)
    row_number: Mapped[int] = mapped_column(db.Integer, nullable=False)
    raw_payload: Mapped[dict] = mapped_column(db.JSON, nullable=False)
    status: Mapped[StagingRowStatus] = mapped_column(
        Enum(StagingRowStatus, name="import_staging_status_enum"),
        default=StagingRowStatus.PENDING,
        nullable=False,
        index=True,
    )
    uploaded_by_id: Mapped[int | None] = mapped_column(db.Integer, nullable=True)
    source_filename: Mapped[str | None] = mapped_column(db.String(255), nullable=True)

    __table_args__ = (
        Index("idx_import_staging_batch_status", "batch_id", "status"),
        UniqueConstraint("batch_id", "row_number", name="uq_import_staging_batch_row"),
    )

    def __repr__(self) -> str:
        return f"<ImportStaging batch={self.batch_id} row={self.row_number} status={getattr(self.status, 'value', self.status)}>"
