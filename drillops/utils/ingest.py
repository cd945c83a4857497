"""
Utility helpers for ingest feature flag and config lookups.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import current_app


def _get_config(app=None):
    if app is not None:
        return app.config
    return current_app.config


def is_ingest_enabled(app=None) -> bool:
    """Return True when the ingest feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("INGEST_ENABLED", False))


def is_worker_enabled(app=None) -> bool:
    config = _get_config(app)
    return bool(config.get("INGEST_WORKER_ENABLED", False))


def get_allowed_extensions(app=None) -> Tuple[str, ...]:
    """Return the accepted upload extensions, lower-case and without dots."""
    config = _get_config(app)
    extensions: Iterable[str] = config.get("INGEST_ALLOWED_EXTENSIONS", ("xlsx", "csv", "txt"))
    return tuple(ext.lower().lstrip(".") for ext in extensions)


def get_staging_chunk_size(app=None) -> int:
    config = _get_config(app)
    return max(1, int(config.get("INGEST_STAGING_CHUNK_SIZE", 50)))


def get_sample_error_limit(app=None) -> int:
    config = _get_config(app)
    return max(0, int(config.get("INGEST_SAMPLE_ERROR_LIMIT", 10)))


def get_upload_sample_error_limit(app=None) -> int:
    config = _get_config(app)
    return max(0, int(config.get("INGEST_UPLOAD_SAMPLE_ERROR_LIMIT", 5)))


def get_batch_list_limit(app=None) -> int:
    config = _get_config(app)
    return max(1, int(config.get("INGEST_BATCH_LIST_LIMIT", 20)))


def get_max_upload_bytes(app=None) -> int:
    config = _get_config(app)
    return int(config.get("INGEST_MAX_UPLOAD_MB", 25)) * 1024 * 1024
