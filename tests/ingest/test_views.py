import io

from openpyxl import load_workbook

from drillops.models import DrillingEntry, db


def _post_file(client, content, filename="shifts.xlsx"):
    return client.post(
        "/api/ingest/upload",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


def test_upload_validate_commit_flow(client, reference_data, xlsx_factory, headers):
    content = xlsx_factory(
        headers,
        [
            ["2026-01-15", "Rig 04", "Project Alpha", "Day", 45],
            ["2026-01-15", "Rig 03", "Site Bravo", "Night", 30],
        ],
    )

    upload_resp = _post_file(client, content)
    assert upload_resp.status_code == 200
    upload = upload_resp.get_json()
    assert upload["row_count"] == 2
    assert upload["filename"] == "shifts.xlsx"
    assert upload["validation"]["valid_count"] == 2
    batch_id = upload["batch_id"]

    validate_resp = client.get(f"/api/ingest/batches/{batch_id}/validate")
    assert validate_resp.status_code == 200
    report = validate_resp.get_json()
    assert report["total_rows"] == 2
    assert report["sample_valid"][0]["rig"] == "Rig 04"

    commit_resp = client.post(f"/api/ingest/batches/{batch_id}/commit", json={"created_by_id": 4})
    assert commit_resp.status_code == 200
    assert commit_resp.get_json()["committed_count"] == 2
    assert db.session.query(DrillingEntry).count() == 2

    batches = client.get("/api/ingest/batches").get_json()
    assert batches[0]["batch_id"] == batch_id
    assert batches[0]["status"] == "Imported"


def test_refused_commit_returns_400_with_admin_actions(client, reference_data, xlsx_factory, headers):
    content = xlsx_factory(headers, [["2026-01-15", "Rig 77", "Project Alpha", "Day", 45]])
    batch_id = _post_file(client, content).get_json()["batch_id"]

    resp = client.post(f"/api/ingest/batches/{batch_id}/commit")

    assert resp.status_code == 400
    payload = resp.get_json()
    assert payload["success"] is False
    assert payload["admin_actions"][0]["type"] == "rig"
    assert payload["admin_actions"][0]["items"] == ["Rig 77"]


def test_upload_errors_map_to_400(client, csv_factory):
    missing_file = client.post("/api/ingest/upload", data={}, content_type="multipart/form-data")
    assert missing_file.status_code == 400
    assert missing_file.get_json()["error"] == "No file uploaded"

    bad_type = _post_file(client, b"hello", filename="notes.pdf")
    assert bad_type.status_code == 400

    bad_header = _post_file(client, csv_factory(["Date", "Rig"], [["2026-01-15", "Rig 04"]]), filename="x.csv")
    assert bad_header.status_code == 400
    assert bad_header.get_json()["missing"] == ["Project", "Shift", "Meters Drilled"]


def test_commit_storage_error_returns_500(client, reference_data, xlsx_factory, headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    content = xlsx_factory(headers, [["2026-01-15", "Rig 04", "Project Alpha", "Day", 45]])
    batch_id = _post_file(client, content).get_json()["batch_id"]

    def _explode(ids, *, session=None):
        raise OperationalError("UPDATE import_staging", {}, Exception("locked"))

    monkeypatch.setattr("drillops.ingest.pipeline.commit.mark_imported", _explode)

    resp = client.post(f"/api/ingest/batches/{batch_id}/commit")

    assert resp.status_code == 500
    assert resp.get_json()["batch_id"] == batch_id


def test_template_download(client):
    resp = client.get("/api/ingest/template")

    assert resp.status_code == 200
    assert "DrillOps_Import_Template.xlsx" in resp.headers["Content-Disposition"]
    workbook = load_workbook(io.BytesIO(resp.data))
    sheet = workbook.active
    header = [cell.value for cell in sheet[1]]
    assert len(header) == 22
    assert header[:5] == ["Date", "Rig", "Project", "Shift", "Meters Drilled"]
    assert sheet.max_row == 3


def test_ingest_endpoints_404_when_disabled(client, app):
    app.config["INGEST_ENABLED"] = False

    resp = client.get("/api/ingest/batches")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Ingest is disabled."


def test_worker_health_reports_disabled(client):
    resp = client.get("/api/ingest/worker_health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "disabled", "worker_enabled": False}
