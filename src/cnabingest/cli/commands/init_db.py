"""Database initialization command."""

import click


@click.command("init-db")
@click.pass_context
def init_db(ctx):
    """Create tables and seed the transaction type table.

    Safe to run more than once; existing rows are left untouched.
    """
    db = ctx.obj["db"]
    db.initialize_schema()

    click.echo("Database initialized.")
    click.echo("\nTransaction types:")
    click.echo("-" * 50)
    for transaction_type in db.list_transaction_types():
        click.echo(
            f"{transaction_type.code} | {transaction_type.description:15s} | "
            f"{transaction_type.nature:8s} | {transaction_type.sign}"
        )


def register_commands(cli):
    """Register init-db command with CLI."""
    cli.add_command(init_db)
