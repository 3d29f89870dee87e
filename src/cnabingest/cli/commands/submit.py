"""File submission command."""

import dataclasses

import click

from cnabingest.cli.error_handling import handle_domain_error
from cnabingest.domain.errors import DomainError, TransientInfrastructureError
from cnabingest.domain.submission import FileSubmissionService
from cnabingest.messaging.factories import create_queue, create_storage


@click.command("submit")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False), metavar="FILE")
@click.option("--name", help="File name to record (defaults to the file's own name)")
@click.option("--correlation-id", help="Correlation ID to attach (generated if omitted)")
@click.option("--queue-url", envvar="CNAB_QUEUE_URL", help="Processing queue URL")
@click.option("--bucket", envvar="CNAB_BUCKET", help="S3 bucket for uploaded files")
@click.option("--storage-dir", envvar="CNAB_STORAGE_DIR", help="Local directory used instead of S3")
@click.pass_context
def submit(
    ctx,
    file_path: str,
    name: str | None,
    correlation_id: str | None,
    queue_url: str | None,
    bucket: str | None,
    storage_dir: str | None,
):
    """Upload a CNAB file and enqueue it for processing.

    Examples:
        cnabingest submit CNAB.txt
        cnabingest submit export.txt --name CNAB-2024-03.txt
    """
    db = ctx.obj["db"]
    settings = dataclasses.replace(
        ctx.obj["settings"], queue_url=queue_url, bucket=bucket, storage_dir=storage_dir
    )

    try:
        storage = create_storage(settings)
        queue = create_queue(settings.queue_url, settings, "CNAB_QUEUE_URL")
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    service = FileSubmissionService(db, storage, queue)
    try:
        submitted = service.submit(file_path, file_name=name, correlation_id=correlation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    except TransientInfrastructureError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    click.echo(f"Submitted file {submitted.file_id}")
    click.echo(f"Object key: {submitted.object_key}")
    click.echo(f"Correlation ID: {submitted.correlation_id}")


def register_commands(cli):
    """Register submit command with CLI."""
    cli.add_command(submit)
