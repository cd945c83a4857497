"""Ingest adapters that turn uploaded files into raw rows."""

from __future__ import annotations

from .spreadsheet import (
    DELIMITED_EXTENSIONS,
    WORKBOOK_EXTENSIONS,
    SpreadsheetAdapter,
    SpreadsheetRow,
    SpreadsheetStatistics,
    file_extension,
)

__all__ = [
    "DELIMITED_EXTENSIONS",
    "WORKBOOK_EXTENSIONS",
    "SpreadsheetAdapter",
    "SpreadsheetRow",
    "SpreadsheetStatistics",
    "file_extension",
]
