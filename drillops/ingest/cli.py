"""
CLI commands for drilling-entry ingest.

``flask ingest upload|batches|validate|commit|template`` drive the same
service the JSON views use; ``flask ingest worker`` manages the optional
Celery worker.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional
from uuid import uuid4

import click
from celery import Celery
from celery.exceptions import TimeoutError as CeleryTimeoutError
from flask.cli import ScriptInfo

from drillops.ingest.celery_app import DEFAULT_QUEUE_NAME, get_celery_app
from drillops.ingest.errors import CommitError, SpreadsheetError
from drillops.ingest.service import IngestionService
from drillops.ingest.utils import resolve_upload_directory
from drillops.utils.ingest import is_ingest_enabled


@click.group(name="ingest", invoke_without_command=True)
@click.pass_context
def ingest_cli(ctx):
    """
    Drilling-entry ingest commands.

    Lists recent batches when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_ingest_enabled(app):
        raise click.ClickException("Ingest is disabled via INGEST_ENABLED=false. Enable it to run ingest commands.")
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_batches_command)


def get_disabled_ingest_group() -> click.Group:
    """
    Return a minimal command group that tells the operator ingest is disabled.
    """

    @click.group(name="ingest", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Ingest commands are unavailable because INGEST_ENABLED=false.")

    return disabled_group


def _resolve_celery(app) -> Optional[Celery]:
    celery_app = get_celery_app(app)
    if celery_app is None:
        raise click.ClickException(
            "Ingest Celery app is unavailable. Ensure INGEST_ENABLED=true and the "
            "ingest package initialises before running worker commands."
        )
    return celery_app


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


@ingest_cli.command("upload")
@click.argument("file_path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--uploaded-by", type=int, help="Operator id recorded on the staged rows.")
@click.option(
    "--queue/--inline",
    "queue",
    default=False,
    show_default=True,
    help="Hand the file to the Celery worker instead of staging it in this process.",
)
@click.pass_context
def upload_command(ctx, file_path: Path, uploaded_by: Optional[int], queue: bool):
    """Stage a spreadsheet and print the upload validation summary."""
    if queue:
        info = ctx.ensure_object(ScriptInfo)
        app = info.load_app()
        celery_app = _resolve_celery(app)
        target = resolve_upload_directory(app) / f"{uuid4().hex}{file_path.suffix.lower()}"
        target.write_bytes(file_path.read_bytes())
        async_result = celery_app.send_task(
            "ingest.process_upload",
            kwargs={"file_path": str(target), "filename": file_path.name, "uploaded_by_id": uploaded_by},
        )
        _echo_json({"status": "queued", "task_id": async_result.id, "filename": file_path.name})
        return

    try:
        result = IngestionService().upload(file_path.read_bytes(), file_path.name, uploaded_by_id=uploaded_by)
    except SpreadsheetError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(result.to_dict())


@ingest_cli.command("batches")
@click.option("--limit", type=int, default=None, help="Maximum number of batches to list.")
def list_batches_command(limit: Optional[int] = None):
    """List recent upload batches, newest first."""
    batches = IngestionService().list_batches(limit)
    if not batches:
        click.echo("No batches staged.")
        return
    for batch in batches:
        click.echo(
            f"{batch.batch_id}  {batch.status:<8}  total={batch.total_rows} "
            f"pending={batch.pending} imported={batch.imported}  {batch.source_filename or ''}"
        )


@ingest_cli.command("validate")
@click.argument("batch_id")
@click.option("--sample-size", type=int, default=None, help="Number of sample errors to include.")
def validate_command(batch_id: str, sample_size: Optional[int]):
    """Validate a staged batch against current rigs and projects."""
    report = IngestionService().validate(batch_id, sample_size=sample_size)
    _echo_json(report.to_dict())


@ingest_cli.command("commit")
@click.argument("batch_id")
@click.option("--created-by", type=int, help="Operator id recorded on imported entries.")
def commit_command(batch_id: str, created_by: Optional[int]):
    """Import a batch's valid rows into drilling entries."""
    try:
        result = IngestionService().commit(batch_id, created_by_id=created_by)
    except CommitError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(result.to_dict())
    if not result.success:
        raise click.exceptions.Exit(1)


@ingest_cli.command("template")
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
def template_command(output: Path):
    """Write the import template workbook to OUTPUT."""
    output.write_bytes(IngestionService().build_template())
    click.echo(f"Template written to {output}")


@ingest_cli.group(name="worker")
@click.pass_context
def worker_group(ctx):
    """Manage the ingest background worker."""
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    state = app.extensions.get("ingest", {})
    if not state.get("worker_enabled") and not app.config.get("INGEST_WORKER_ENABLED"):
        click.echo(
            "Warning: INGEST_WORKER_ENABLED is false. Commands will still run, "
            "but enable the flag to surface accurate health status.",
            err=True,
        )


@worker_group.command("run")
@click.option("--loglevel", default="info", show_default=True)
@click.option("--concurrency", type=int, help="Number of worker processes/threads.")
@click.option("--pool", type=str, help="Celery pool implementation (e.g., 'prefork', 'solo', 'threads').")
@click.option("--queues", default=DEFAULT_QUEUE_NAME, show_default=True, help="Comma-separated queue list.")
@click.pass_context
def worker_run(ctx, loglevel: str, concurrency: Optional[int], pool: Optional[str], queues: str):
    """
    Start the Celery worker in the current process.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    celery_app = _resolve_celery(app)

    argv = ["worker", "--loglevel", loglevel, "-Q", queues]
    if concurrency:
        argv.extend(["--concurrency", str(concurrency)])
    if pool:
        argv.extend(["--pool", pool])

    click.echo(f"Starting ingest worker (queues: {queues}, loglevel: {loglevel})")
    try:
        celery_app.worker_main(argv=argv)
    except KeyboardInterrupt:
        click.echo("Worker shutdown requested. Exiting...")


@worker_group.command("ping")
@click.option("--timeout", default=10.0, show_default=True, help="Seconds to wait for a response.")
@click.pass_context
def worker_ping(ctx, timeout: float):
    """
    Validate worker connectivity by executing the heartbeat task.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    celery_app = _resolve_celery(app)
    task = celery_app.tasks.get("ingest.healthcheck")
    if task is None:
        raise click.ClickException("Heartbeat task 'ingest.healthcheck' is not registered.")

    result = task.apply_async()
    try:
        payload = result.get(timeout=timeout)
    except CeleryTimeoutError as exc:
        raise click.ClickException(f"Worker did not respond within {timeout}s") from exc

    _echo_json(payload)
