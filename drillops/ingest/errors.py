"""Exception hierarchy for the ingest pipeline.

File-level and storage failures are raised; row-level problems are returned
as data on the validation report and never surface here.
"""

from __future__ import annotations

from typing import Sequence


class IngestError(Exception):
    """Base exception for ingest failures."""


class SpreadsheetError(IngestError):
    """Raised when an uploaded file is rejected before any row is staged."""


class UnsupportedFileTypeError(SpreadsheetError):
    """Raised when the upload extension is not an accepted spreadsheet format."""

    def __init__(self, filename: str | None, allowed: Sequence[str]) -> None:
        allowed_display = ", ".join(f".{ext}" for ext in allowed)
        super().__init__(f"Unsupported file '{filename or ''}'. Only {allowed_display} files are allowed.")
        self.filename = filename
        self.allowed = tuple(allowed)


class UploadTooLargeError(SpreadsheetError):
    """Raised when the upload exceeds the configured size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(
            f"Upload is {size_bytes} bytes which exceeds the {limit_bytes // (1024 * 1024)} MB limit."
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class EmptySpreadsheetError(SpreadsheetError):
    """Raised when the file holds no header row or no data rows."""

    def __init__(self, message: str = "File is empty or has no data rows.") -> None:
        super().__init__(message)


class SpreadsheetHeaderError(SpreadsheetError):
    """Raised when the header row lacks one or more mandatory column meanings."""

    def __init__(self, *, missing: Sequence[str]) -> None:
        super().__init__(
            f"Missing mandatory columns: {', '.join(missing)}. Please use the import template."
        )
        self.missing = tuple(missing)


class CommitError(IngestError):
    """Raised when the commit transaction fails and has been rolled back."""

    def __init__(self, batch_id: str, message: str) -> None:
        super().__init__(f"Commit for batch {batch_id} failed: {message}")
        self.batch_id = batch_id
