"""Local synchronous processing command."""

import uuid
from pathlib import Path

import click

from cnabingest.cli.error_handling import handle_domain_error
from cnabingest.domain.errors import ValidationError
from cnabingest.domain.ingestion import IngestionOrchestrator, ProcessingOutcome
from cnabingest.domain.submission import object_key_for, validate_file_name
from cnabingest.domain.validation import MAX_FILE_SIZE
from cnabingest.messaging.storage import LocalDirectoryStorage

DEFAULT_STORAGE_DIR = "~/.cnabingest/objects"


@click.command("process")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False), metavar="FILE")
@click.option(
    "--storage-dir",
    envvar="CNAB_STORAGE_DIR",
    default=DEFAULT_STORAGE_DIR,
    show_default=True,
    help="Directory where the file is stored before processing",
)
@click.pass_context
def process(ctx, file_path: str, storage_dir: str):
    """Ingest a CNAB file immediately, without a queue.

    The file goes through the same validation and persistence as a queued
    upload. Exits with status 1 when the file is rejected.

    Examples:
        cnabingest process CNAB.txt
    """
    db = ctx.obj["db"]
    path = Path(file_path)

    try:
        validate_file_name(path.name)
        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise ValidationError(f"File '{path.name}' exceeds maximum size of {MAX_FILE_SIZE} bytes")
    except ValidationError as e:
        handle_domain_error(ctx, e)
        return

    storage = LocalDirectoryStorage(storage_dir)
    file_id = str(uuid.uuid4())
    key = object_key_for(file_id, path.name)
    storage.put(key, path.read_bytes())
    db.create_file(name=path.name, size=size, object_key=key, file_id=file_id)

    orchestrator = IngestionOrchestrator(db, storage)
    result = orchestrator.process_file(file_id, object_key=key, file_name=path.name)

    click.echo(f"File {file_id}: {result.outcome.value}")
    if result.outcome == ProcessingOutcome.PROCESSED:
        click.echo(
            f"Imported {result.transaction_count} transaction(s) for {result.store_count} store(s)"
        )
        return

    click.echo("\nIssues:", err=True)
    if result.issues:
        for issue in result.issues:
            click.echo(f"  {issue}", err=True)
    else:
        click.echo(f"  {result.error_message}", err=True)
    ctx.exit(1)


def register_commands(cli):
    """Register process command with CLI."""
    cli.add_command(process)
