"""
Drilling-entry ingest feature package.

Registers the JSON blueprint, CLI group and optional Celery worker when the
ingest flag is enabled.
"""

from __future__ import annotations

from flask import Flask

from drillops.utils.ingest import is_ingest_enabled, is_worker_enabled

from .celery_app import ensure_celery_app, get_celery_app
from .cli import get_disabled_ingest_group, ingest_cli
from .service import IngestionService, UploadResult
from .views import ingest_blueprint

INGEST_EXTENSION_KEY = "ingest"

__all__ = [
    "INGEST_EXTENSION_KEY",
    "IngestionService",
    "UploadResult",
    "get_celery_app",
    "init_ingest",
]


def _ensure_extension_state(app: Flask) -> dict:
    return app.extensions.setdefault(
        INGEST_EXTENSION_KEY,
        {
            "enabled": False,
            "worker_enabled": False,
            "celery_app": None,
        },
    )


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    command_name = ingest_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(ingest_cli)
    else:
        app.cli.add_command(get_disabled_ingest_group())


def init_ingest(app: Flask) -> None:
    """
    Mount the ingest blueprint and CLI according to configuration.

    State is kept in ``app.extensions['ingest']`` for the CLI and views.
    """
    enabled = is_ingest_enabled(app)
    worker_enabled = is_worker_enabled(app)
    state = _ensure_extension_state(app)
    state.update({"enabled": enabled, "worker_enabled": worker_enabled})

    if ingest_blueprint.name not in app.blueprints:
        app.register_blueprint(ingest_blueprint)

    if not enabled:
        _set_cli(app, enabled=False)
        app.logger.info("Ingest disabled via INGEST_ENABLED flag; endpoints will return 404.")
        return

    if worker_enabled:
        ensure_celery_app(app, state)
    _set_cli(app, enabled=True)
    app.logger.info("Ingest enabled", extra={"ingest_worker_enabled": worker_enabled})
