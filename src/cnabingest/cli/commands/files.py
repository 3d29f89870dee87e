"""File listing commands."""

import click

from cnabingest.domain.entities import FileStatus


@click.command("files")
@click.option(
    "--status",
    type=click.Choice([s.value for s in FileStatus], case_sensitive=False),
    help="Only show files in this status",
)
@click.option("--verbose", "-v", is_flag=True, help="Show rejection messages")
@click.pass_context
def list_files(ctx, status: str | None, verbose: bool):
    """List uploaded files, newest first."""
    db = ctx.obj["db"]

    status_filter = None
    if status is not None:
        status_filter = next(s for s in FileStatus if s.value.lower() == status.lower())

    files = db.list_files(status=status_filter)
    if not files:
        click.echo("No files found.")
        return

    click.echo(f"\n{'ID':36s} | {'Name':30s} | {'Status':10s} | {'Uploaded':19s} | Transactions")
    click.echo("-" * 120)
    for file in files:
        count = db.count_transactions(file_id=file.id)
        uploaded = file.uploaded_at.strftime("%Y-%m-%d %H:%M:%S")
        click.echo(
            f"{file.id:36s} | {file.name[:30]:30s} | {file.status.value:10s} | {uploaded:19s} | {count}"
        )
        if verbose and file.error_message:
            click.echo(f"    {file.error_message}")


def register_commands(cli):
    """Register files command with CLI."""
    cli.add_command(list_files)
