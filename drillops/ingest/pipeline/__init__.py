"""Ingest pipeline stages: staging, reference resolution, validation, commit."""

from __future__ import annotations

from .batches import BatchDirectoryService, BatchSummary, derive_batch_status
from .commit import CommitResult, commit_batch
from .reference import ReferenceDirectory, ReferenceLookup, build_reference_directory
from .staging import StagingSummary, list_pending, mark_imported, stage_rows
from .validation import (
    AdminAction,
    CanonicalDrillingRecord,
    InvalidRow,
    ValidationReport,
    ValidRow,
    parse_date,
    parse_number_or_default,
    validate_batch,
    validate_row,
)

__all__ = [
    "AdminAction",
    "BatchDirectoryService",
    "BatchSummary",
    "CanonicalDrillingRecord",
    "CommitResult",
    "InvalidRow",
    "ReferenceDirectory",
    "ReferenceLookup",
    "StagingSummary",
    "ValidRow",
    "ValidationReport",
    "build_reference_directory",
    "commit_batch",
    "derive_batch_status",
    "list_pending",
    "mark_imported",
    "parse_date",
    "parse_number_or_default",
    "stage_rows",
    "validate_batch",
    "validate_row",
]
