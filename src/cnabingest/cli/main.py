"""Main CLI entry point."""

import click

from cnabingest.config import WorkerSettings
from cnabingest.database.factories import create_database
from cnabingest.utils.logging_setup import configure_logging

# Import and register all commands at module level
from cnabingest.cli.commands import (
    init_db,
    submit,
    process,
    worker,
    files,
    stores,
    transactions,
)


@click.group()
@click.option(
    "--db-url",
    help="SQLAlchemy database URL (overrides CNAB_DB_URL environment variable)",
    envvar="CNAB_DB_URL",
)
@click.option(
    "--log-level",
    help="Logging level (overrides LOG_LEVEL environment variable)",
    envvar="LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_url: str | None, log_level: str | None):
    """cnabingest - CNAB transaction file ingestion.

    Upload fixed-width CNAB files, process them through a queue worker and
    query the resulting store balances and transactions.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = WorkerSettings.from_env()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_database(db_url)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
init_db.register_commands(cli)
submit.register_commands(cli)
process.register_commands(cli)
worker.register_commands(cli)
files.register_commands(cli)
stores.register_commands(cli)
transactions.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
