"""
Ingestion service facade.

The JSON views, CLI commands and worker tasks all drive the pipeline through
``IngestionService`` so upload checks, config lookups and logging stay in one
place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from flask import current_app

from drillops.models import db
from drillops.utils.ingest import (
    get_allowed_extensions,
    get_batch_list_limit,
    get_max_upload_bytes,
    get_sample_error_limit,
    get_staging_chunk_size,
    get_upload_sample_error_limit,
)

from .adapters import SpreadsheetAdapter
from .errors import UnsupportedFileTypeError, UploadTooLargeError
from .pipeline import (
    BatchDirectoryService,
    BatchSummary,
    CommitResult,
    ValidationReport,
    commit_batch,
    stage_rows,
    validate_batch,
)
from .template import build_template_bytes
from .utils import allowed_file


@dataclass
class UploadResult:
    """Outcome of staging an uploaded spreadsheet."""

    batch_id: str
    filename: str
    row_count: int
    validation: ValidationReport

    @property
    def message(self) -> str:
        return f"File processed: {self.row_count} rows staged"

    def to_dict(self) -> dict[str, Any]:
        validation = self.validation.to_dict()
        validation.pop("sample_valid", None)
        return {
            "message": self.message,
            "batch_id": self.batch_id,
            "filename": self.filename,
            "row_count": self.row_count,
            "validation": validation,
        }


class IngestionService:
    """Upload, list, validate and commit drilling-entry batches."""

    def __init__(self, session=None):
        self.session = session or db.session

    def upload(self, content: bytes, filename: str, *, uploaded_by_id: int | None = None) -> UploadResult:
        """
        Parse ``content`` and stage every data row under a new batch id.

        Raises ``SpreadsheetError`` subclasses before anything is staged when
        the file type, size, header row or body is unusable.
        """

        allowed = get_allowed_extensions()
        if not allowed_file(filename, allowed):
            raise UnsupportedFileTypeError(filename, allowed)

        limit = get_max_upload_bytes()
        if len(content) > limit:
            raise UploadTooLargeError(len(content), limit)

        adapter = SpreadsheetAdapter(content, filename)
        rows = adapter.read_rows()

        batch_id = uuid4().hex
        summary = stage_rows(
            batch_id,
            (row.raw for row in rows),
            chunk_size=get_staging_chunk_size(),
            uploaded_by_id=uploaded_by_id,
            source_filename=filename,
            session=self.session,
        )
        validation = validate_batch(
            batch_id,
            sample_size=get_upload_sample_error_limit(),
            session=self.session,
        )
        current_app.logger.info(
            "Ingest upload staged",
            extra={
                "ingest_batch_id": batch_id,
                "ingest_source_filename": filename,
                "ingest_row_count": summary.rows_staged,
                "ingest_rows_skipped_blank": adapter.statistics.rows_skipped_blank,
            },
        )
        return UploadResult(
            batch_id=batch_id,
            filename=filename,
            row_count=summary.rows_staged,
            validation=validation,
        )

    def list_batches(self, limit: int | None = None) -> list[BatchSummary]:
        directory = BatchDirectoryService(self.session)
        return directory.list_batches(limit or get_batch_list_limit())

    def get_batch(self, batch_id: str) -> BatchSummary | None:
        return BatchDirectoryService(self.session).get_batch(batch_id)

    def validate(self, batch_id: str, *, sample_size: int | None = None) -> ValidationReport:
        if sample_size is None:
            sample_size = get_sample_error_limit()
        return validate_batch(batch_id, sample_size=sample_size, session=self.session)

    def commit(self, batch_id: str, *, created_by_id: int | None = None) -> CommitResult:
        return commit_batch(
            batch_id,
            created_by_id=created_by_id,
            sample_size=get_sample_error_limit(),
            session=self.session,
        )

    def build_template(self) -> bytes:
        return build_template_bytes()
