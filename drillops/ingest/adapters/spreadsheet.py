"""Spreadsheet adapter for drilling-entry ingest.

Reads the first sheet of an ``.xlsx`` workbook or a delimited text file,
treats the first row as the header, enforces the mandatory column meanings
of the drilling contract, and yields JSON-safe raw rows ready for staging.
"""

from __future__ import annotations

import csv
import io
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from drillops.ingest.contracts import missing_required_fields
from drillops.ingest.errors import EmptySpreadsheetError, SpreadsheetError, SpreadsheetHeaderError

WORKBOOK_EXTENSIONS: tuple[str, ...] = ("xlsx", "xlsm")
DELIMITED_EXTENSIONS: tuple[str, ...] = ("csv", "txt", "tsv")
_SNIFF_DELIMITERS = ",;\t|"


@dataclass(frozen=True)
class SpreadsheetRow:
    """A parsed data row keyed by the original header text."""

    row_number: int
    source_line: int
    raw: dict[str, object]


@dataclass
class SpreadsheetStatistics:
    """Accumulated statistics from spreadsheet parsing."""

    rows_processed: int = 0
    rows_skipped_blank: int = 0


def file_extension(filename: str | None) -> str:
    return Path(filename or "").suffix.lower().lstrip(".")


def _sanitize_header(header: object | None) -> str:
    token = "" if header is None else str(header).strip()
    return token.lstrip("\ufeff")


def _json_safe(value: object | None) -> object:
    """Convert a cell value into something the JSON staging column accepts."""

    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time.min:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _row_is_blank(values: Iterable[object]) -> bool:
    return all(value is None or (isinstance(value, str) and value.strip() == "") for value in values)


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


class SpreadsheetAdapter:
    """Reader that enforces the drilling ingest contract on an uploaded file."""

    def __init__(self, content: bytes, filename: str, *, skip_blank_rows: bool = True) -> None:
        self._content = content
        self.filename = filename
        self.skip_blank_rows = skip_blank_rows
        self._header: tuple[str, ...] | None = None
        self.statistics = SpreadsheetStatistics()

    @property
    def header(self) -> tuple[str, ...] | None:
        return self._header

    def read_rows(self) -> list[SpreadsheetRow]:
        """
        Parse the whole file, raising before anything is staged if it is unusable.

        Raises:
            EmptySpreadsheetError: no header row or no non-blank data rows.
            SpreadsheetHeaderError: a mandatory column meaning is missing.
            SpreadsheetError: the file could not be decoded at all.
        """

        records = iter(self._iter_records())
        header_cells = next(records, None)
        if header_cells is None or _row_is_blank(header_cells):
            raise EmptySpreadsheetError()

        header = tuple(_sanitize_header(cell) for cell in header_cells)
        self._header = header

        rows: list[SpreadsheetRow] = []
        for source_line, values in enumerate(records, start=2):
            if self.skip_blank_rows and _row_is_blank(values):
                self.statistics.rows_skipped_blank += 1
                continue
            raw: dict[str, object] = {}
            for column, value in zip(header, values):
                if not column:
                    continue
                raw[column] = _json_safe(value)
            for column in header[len(values):]:
                if column:
                    raw.setdefault(column, "")
            rows.append(SpreadsheetRow(row_number=len(rows) + 1, source_line=source_line, raw=raw))

        if not rows:
            raise EmptySpreadsheetError()

        missing = missing_required_fields(header)
        if missing:
            raise SpreadsheetHeaderError(missing=missing)

        self.statistics.rows_processed = len(rows)
        return rows

    def _iter_records(self) -> Iterator[Sequence[object]]:
        extension = file_extension(self.filename)
        if extension in WORKBOOK_EXTENSIONS:
            return self._iter_workbook()
        return self._iter_delimited()

    def _iter_workbook(self) -> Iterator[Sequence[object]]:
        try:
            workbook = load_workbook(io.BytesIO(self._content), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise SpreadsheetError(f"Unable to read workbook '{self.filename}': {exc}") from exc

        try:
            if not workbook.worksheets:
                return iter(())
            sheet = workbook.worksheets[0]
            records = [tuple(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()
        return iter(records)

    def _iter_delimited(self) -> Iterator[Sequence[object]]:
        text = _decode_text(self._content)
        if not text.strip():
            return iter(())
        sample = text[:4096]
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=_SNIFF_DELIMITERS)
        except csv.Error:
            dialect = csv.excel
        reader = csv.reader(io.StringIO(text, newline=""), dialect)
        return iter([tuple(record) for record in reader])
