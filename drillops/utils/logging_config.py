"""
Logging setup for the DrillOps Flask application.

Attaches console and rotating-file handlers to ``app.logger`` using the
knobs from ``config.monitoring``. Structured fields passed via ``extra=``
(``ingest_batch_id``, ``ingest_row_count``, ...) are emitted by the JSON
formatter and appended to text lines.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}
_STRUCTURED_PREFIXES = ("ingest_", "app_")


def _structured_fields(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and key.startswith(_STRUCTURED_PREFIXES)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, app_name: str = "DrillOps", app_version: str = "") -> None:
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "app": self.app_name,
        }
        if self.app_version:
            payload["version"] = self.app_version
        payload.update(_structured_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human readable lines with structured fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _structured_fields(record)
        if fields:
            line = f"{line} | " + " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return line


def _build_formatter(app) -> logging.Formatter:
    if str(app.config.get("LOG_FORMAT", "json")).lower() == "json":
        return JSONFormatter(app.config.get("APP_NAME", "DrillOps"), app.config.get("APP_VERSION", ""))
    return TextFormatter()


def setup_logging(app) -> None:
    """Configure ``app.logger`` from the logging config keys."""

    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _build_formatter(app)

    logger = app.logger
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_drillops_handler", False):
            logger.removeHandler(handler)
            handler.close()

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler._drillops_handler = True  # type: ignore[attr-defined]
        logger.addHandler(console_handler)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, app.config.get("LOG_FILE_NAME", "drillops.log")),
            maxBytes=int(app.config.get("LOG_FILE_MAX_BYTES", 10485760)),
            backupCount=int(app.config.get("LOG_FILE_BACKUP_COUNT", 10)),
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler._drillops_handler = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.info(
        "Logging configured",
        extra={"app_log_level": level_name, "app_log_format": app.config.get("LOG_FORMAT", "json")},
    )
