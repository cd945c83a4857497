"""
JSON endpoints for drilling-entry ingest, mounted under ``/api/ingest``.
"""

from __future__ import annotations

import io
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge

from drillops.ingest.celery_app import get_celery_app
from drillops.ingest.errors import CommitError, SpreadsheetError, UploadTooLargeError
from drillops.ingest.service import IngestionService
from drillops.ingest.template import TEMPLATE_FILENAME, TEMPLATE_MIMETYPE
from drillops.ingest.utils import allowed_file, persist_upload
from drillops.utils.ingest import get_allowed_extensions, is_ingest_enabled, is_worker_enabled

ingest_blueprint = Blueprint("ingest", __name__, url_prefix="/api/ingest")


def _json_error(message: str, status: HTTPStatus, **extra):
    payload = {"error": message}
    payload.update(extra)
    return jsonify(payload), status


@ingest_blueprint.before_request
def _ensure_ingest_enabled():
    if not is_ingest_enabled(current_app):
        return _json_error("Ingest is disabled.", HTTPStatus.NOT_FOUND)
    return None


@ingest_blueprint.errorhandler(RequestEntityTooLarge)
def _handle_too_large(exc):
    return _json_error("Uploaded file is too large.", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)


def _uploaded_by_id():
    raw = request.form.get("uploaded_by_id")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _wants_async() -> bool:
    return str(request.args.get("async", "")).strip().lower() in {"1", "true", "yes"}


@ingest_blueprint.route("/upload", methods=["POST"])
def upload():
    file_storage = request.files.get("file")
    if file_storage is None or not file_storage.filename:
        return _json_error("No file uploaded", HTTPStatus.BAD_REQUEST)

    filename = file_storage.filename
    if _wants_async() and is_worker_enabled(current_app):
        allowed = get_allowed_extensions(current_app)
        if not allowed_file(filename, allowed):
            return _json_error(
                f"Only {', '.join('.' + ext for ext in allowed)} files are allowed.", HTTPStatus.BAD_REQUEST
            )
        celery_app = get_celery_app(current_app)
        if celery_app is None:
            return _json_error("Ingest worker is not configured.", HTTPStatus.SERVICE_UNAVAILABLE)
        stored_path = persist_upload(file_storage, current_app)
        async_result = celery_app.send_task(
            "ingest.process_upload",
            kwargs={"file_path": str(stored_path), "filename": filename, "uploaded_by_id": _uploaded_by_id()},
        )
        return jsonify({"status": "queued", "task_id": async_result.id, "filename": filename}), HTTPStatus.ACCEPTED

    try:
        result = IngestionService().upload(file_storage.read(), filename, uploaded_by_id=_uploaded_by_id())
    except UploadTooLargeError as exc:
        return _json_error(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    except SpreadsheetError as exc:
        current_app.logger.info(
            "Ingest upload rejected",
            extra={"ingest_source_filename": filename, "ingest_error": str(exc)},
        )
        missing = list(getattr(exc, "missing", ()))
        if missing:
            return _json_error(str(exc), HTTPStatus.BAD_REQUEST, missing=missing)
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)
    return jsonify(result.to_dict())


@ingest_blueprint.route("/batches", methods=["GET"])
def list_batches():
    limit = request.args.get("limit", type=int)
    batches = IngestionService().list_batches(limit)
    return jsonify([batch.to_dict() for batch in batches])


@ingest_blueprint.route("/batches/<batch_id>/validate", methods=["GET"])
def validate_batch(batch_id: str):
    sample_size = request.args.get("sample_size", type=int)
    report = IngestionService().validate(batch_id, sample_size=sample_size)
    return jsonify(report.to_dict())


@ingest_blueprint.route("/batches/<batch_id>/commit", methods=["POST"])
def commit_batch(batch_id: str):
    payload = request.get_json(silent=True) or {}
    created_by_id = payload.get("created_by_id")
    try:
        result = IngestionService().commit(
            batch_id, created_by_id=created_by_id if isinstance(created_by_id, int) else None
        )
    except CommitError as exc:
        return _json_error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR, batch_id=batch_id)
    status = HTTPStatus.OK if result.success else HTTPStatus.BAD_REQUEST
    return jsonify(result.to_dict()), status


@ingest_blueprint.route("/template", methods=["GET"])
def download_template():
    content = IngestionService().build_template()
    return send_file(
        io.BytesIO(content),
        mimetype=TEMPLATE_MIMETYPE,
        as_attachment=True,
        download_name=TEMPLATE_FILENAME,
    )


@ingest_blueprint.route("/worker_health", methods=["GET"])
def worker_health():
    if not is_worker_enabled(current_app):
        return jsonify({"status": "disabled", "worker_enabled": False})

    celery_app = get_celery_app(current_app)
    task = celery_app.tasks.get("ingest.healthcheck") if celery_app is not None else None
    if task is None:
        return _json_error("Heartbeat task is not registered.", HTTPStatus.SERVICE_UNAVAILABLE, worker_enabled=True)
    try:
        heartbeat = task.apply_async().get(timeout=5)
    except Exception as exc:  # pragma: no cover - broker errors vary by transport
        current_app.logger.warning("Ingest worker heartbeat failed: %s", exc)
        return jsonify({"status": "unreachable", "worker_enabled": True, "error": str(exc)}), HTTPStatus.SERVICE_UNAVAILABLE
    return jsonify({"status": "ok", "worker_enabled": True, "heartbeat": heartbeat})
