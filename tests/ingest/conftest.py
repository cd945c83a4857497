import csv
import io

import pytest
from openpyxl import Workbook

from drillops.models import Project, Rig, db

HEADERS = ["Date", "Rig", "Project", "Shift", "Meters Drilled"]


def build_xlsx(headers, rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_csv(headers, rows, *, delimiter=",") -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter)
    writer.writerow(list(headers))
    for row in rows:
        writer.writerow(list(row))
    return buffer.getvalue().encode("utf-8")


@pytest.fixture
def reference_data(app):
    rigs = [Rig(name="Rig 04"), Rig(name="Rig 03")]
    projects = [Project(name="Project Alpha"), Project(name="Site Bravo")]
    db.session.add_all(rigs + projects)
    db.session.commit()
    return {
        "rigs": {rig.name: rig.id for rig in rigs},
        "projects": {project.name: project.id for project in projects},
    }


@pytest.fixture
def xlsx_factory():
    return build_xlsx


@pytest.fixture
def csv_factory():
    return build_csv


@pytest.fixture
def headers():
    return list(HEADERS)
