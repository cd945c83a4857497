"""Downloadable import template for drilling entries."""

from __future__ import annotations

import io

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from drillops.ingest.contracts import get_drilling_template_headers

TEMPLATE_FILENAME = "DrillOps_Import_Template.xlsx"
TEMPLATE_SHEET_TITLE = "Drilling Data"
TEMPLATE_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SAMPLE_ROWS: tuple[tuple[object, ...], ...] = (
    (
        "2026-01-15", "Rig 04", "Project Alpha", "Day", 45.5, 320.0, "PDC", "Sandstone", "WBM",
        12, 9.5, 1.0, 0.5, 0, 0, 0, 0, 1.5, 850, 1200, "J. Smith", "Good progress",
    ),
    (
        "2026-01-15", "Rig 04", "Project Alpha", "Night", 38.0, 358.0, "PDC", "Shale", "WBM",
        12, 8.0, 2.0, 1.0, 0, 0, 1.0, 0, 3.0, 780, 950, "M. Jones", "Bit change at 02:00",
    ),
)

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(fill_type="solid", start_color="1F4E78", end_color="1F4E78")


def build_template_workbook() -> Workbook:
    """Return a workbook with the canonical headers and two sample rows."""

    headers = get_drilling_template_headers()
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = TEMPLATE_SHEET_TITLE
    sheet.append(list(headers))
    for row in SAMPLE_ROWS:
        sheet.append(list(row))

    for index, header in enumerate(headers, start=1):
        cell = sheet.cell(row=1, column=index)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        sheet.column_dimensions[get_column_letter(index)].width = max(12, len(header) + 4)
    sheet.freeze_panes = "A2"
    return workbook


def build_template_bytes() -> bytes:
    buffer = io.BytesIO()
    build_template_workbook().save(buffer)
    return buffer.getvalue()
