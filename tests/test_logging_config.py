import json
import logging

from flask import Flask

from drillops.utils.logging_config import JSONFormatter, TextFormatter, setup_logging


def _record(**extra):
    record = logging.makeLogRecord(
        {"name": "drillops", "levelname": "INFO", "levelno": logging.INFO, "msg": "Ingest batch staged"}
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_structured_fields():
    formatter = JSONFormatter("DrillOps", "2.0.0")

    payload = json.loads(formatter.format(_record(ingest_batch_id="b-1", ingest_row_count=3, unrelated="x")))

    assert payload["message"] == "Ingest batch staged"
    assert payload["level"] == "INFO"
    assert payload["app"] == "DrillOps"
    assert payload["version"] == "2.0.0"
    assert payload["ingest_batch_id"] == "b-1"
    assert payload["ingest_row_count"] == 3
    assert "unrelated" not in payload


def test_text_formatter_appends_sorted_fields():
    line = TextFormatter().format(_record(ingest_row_count=3, ingest_batch_id="b-1"))

    assert line.endswith("Ingest batch staged | ingest_batch_id=b-1 ingest_row_count=3")


def test_setup_logging_writes_rotating_file(tmp_path):
    app = Flask(__name__)
    app.config.update(
        LOG_LEVEL="INFO",
        LOG_FORMAT="json",
        LOG_DIR=str(tmp_path / "logs"),
        LOG_FILE_NAME="test.log",
        ENABLE_FILE_LOGGING=True,
        ENABLE_CONSOLE_LOGGING=False,
    )

    setup_logging(app)
    app.logger.info("Ingest commit finished", extra={"ingest_committed_count": 2})
    for handler in app.logger.handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "test.log").read_text(encoding="utf-8").splitlines()
    last = json.loads(lines[-1])
    assert last["message"] == "Ingest commit finished"
    assert last["ingest_committed_count"] == 2


def test_setup_logging_replaces_its_own_handlers():
    app = Flask(__name__)
    app.config.update(LOG_LEVEL="DEBUG", LOG_FORMAT="text", ENABLE_FILE_LOGGING=False, ENABLE_CONSOLE_LOGGING=True)

    setup_logging(app)
    setup_logging(app)

    ours = [handler for handler in app.logger.handlers if getattr(handler, "_drillops_handler", False)]
    assert len(ours) == 1
    assert app.logger.level == logging.DEBUG
    assert isinstance(ours[0].formatter, TextFormatter)
