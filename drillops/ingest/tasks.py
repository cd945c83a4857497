"""
Ingest Celery tasks.

``ingest.process_upload`` stages a persisted upload out of process; the
result payload matches the upload JSON returned by the web view.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from celery import shared_task
from flask import current_app

from drillops.ingest.errors import SpreadsheetError
from drillops.ingest.service import IngestionService
from drillops.ingest.utils import cleanup_upload


@shared_task(name="ingest.healthcheck", bind=True)
def ingest_healthcheck(self) -> dict[str, Any]:
    """
    Heartbeat task used by worker health checks.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "worker_hostname": self.request.hostname,
    }


@shared_task(name="ingest.process_upload", bind=True)
def process_upload(
    self,
    *,
    file_path: str,
    filename: str,
    uploaded_by_id: int | None = None,
    keep_file: bool = False,
) -> dict[str, Any]:
    """
    Stage a spreadsheet previously written by ``persist_upload``.

    File-level problems are reported in the payload rather than retried; the
    stored upload is removed afterwards unless ``keep_file`` is set.
    """

    path = Path(file_path)
    try:
        content = path.read_bytes()
        result = IngestionService().upload(content, filename, uploaded_by_id=uploaded_by_id)
    except SpreadsheetError as exc:
        current_app.logger.warning(
            "Ingest worker rejected upload",
            extra={"ingest_source_filename": filename, "ingest_error": str(exc)},
        )
        return {"status": "failed", "filename": filename, "error": str(exc)}
    finally:
        if not keep_file:
            cleanup_upload(path)

    payload = result.to_dict()
    payload["status"] = "succeeded"
    payload["task_id"] = self.request.id
    return payload
