from datetime import datetime

import pytest

from drillops.ingest.adapters import SpreadsheetAdapter
from drillops.ingest.errors import EmptySpreadsheetError, SpreadsheetError, SpreadsheetHeaderError

HEADERS = ["Date", "Rig", "Project", "Shift", "Meters Drilled"]


def test_xlsx_rows_are_keyed_by_original_headers(xlsx_factory):
    content = xlsx_factory(
        HEADERS + ["Fuel Consumed"],
        [
            ["2026-01-15", "Rig 04", "Project Alpha", "Day", 45.5, None],
            [datetime(2026, 1, 16), "Rig 03", "Site Bravo", "Night", 30, 120],
        ],
    )
    adapter = SpreadsheetAdapter(content, "shifts.xlsx")
    rows = adapter.read_rows()

    assert [row.row_number for row in rows] == [1, 2]
    assert rows[0].raw["Rig"] == "Rig 04"
    assert rows[0].raw["Fuel Consumed"] == ""
    assert rows[1].raw["Date"] == "2026-01-16"
    assert rows[1].raw["Fuel Consumed"] == 120
    assert adapter.header == tuple(HEADERS + ["Fuel Consumed"])
    assert adapter.statistics.rows_processed == 2


def test_blank_rows_are_skipped_without_gaps_in_numbering(csv_factory):
    content = csv_factory(
        HEADERS,
        [
            ["2026-01-15", "Rig 04", "Project Alpha", "Day", 10],
            ["", "", "", "", ""],
            ["2026-01-16", "Rig 04", "Project Alpha", "Night", 12],
        ],
    )
    adapter = SpreadsheetAdapter(content, "shifts.csv")
    rows = adapter.read_rows()

    assert [row.row_number for row in rows] == [1, 2]
    assert [row.source_line for row in rows] == [2, 4]
    assert adapter.statistics.rows_skipped_blank == 1


def test_csv_and_semicolon_delimited_text_are_supported(csv_factory):
    rows = [["2026-01-15", "Rig 04", "Project Alpha", "Day", "45.5"]]
    comma = SpreadsheetAdapter(csv_factory(HEADERS, rows), "shifts.csv").read_rows()
    semicolon = SpreadsheetAdapter(csv_factory(HEADERS, rows, delimiter=";"), "shifts.txt").read_rows()

    assert comma[0].raw == semicolon[0].raw
    assert comma[0].raw["Meters Drilled"] == "45.5"


def test_missing_mandatory_columns_reject_the_file(csv_factory):
    content = csv_factory(["Date", "Rig", "Shift"], [["2026-01-15", "Rig 04", "Day"]])
    with pytest.raises(SpreadsheetHeaderError) as excinfo:
        SpreadsheetAdapter(content, "shifts.csv").read_rows()

    assert excinfo.value.missing == ("Project", "Meters Drilled")
    assert "Project" in str(excinfo.value)


def test_header_only_file_is_empty(xlsx_factory):
    with pytest.raises(EmptySpreadsheetError):
        SpreadsheetAdapter(xlsx_factory(HEADERS, []), "shifts.xlsx").read_rows()


def test_zero_byte_csv_is_empty():
    with pytest.raises(EmptySpreadsheetError):
        SpreadsheetAdapter(b"", "shifts.csv").read_rows()


def test_corrupt_workbook_raises_spreadsheet_error():
    with pytest.raises(SpreadsheetError):
        SpreadsheetAdapter(b"not a zip archive", "shifts.xlsx").read_rows()
