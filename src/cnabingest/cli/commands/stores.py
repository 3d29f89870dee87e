"""Store balance commands."""

import click

from cnabingest.domain.balance import BalanceService


@click.command("stores")
@click.pass_context
def list_stores(ctx):
    """List stores with their balances."""
    db = ctx.obj["db"]
    service = BalanceService(db)

    balances = service.list_store_balances()
    if not balances:
        click.echo("No stores found.")
        return

    click.echo(f"\n{'Store':19s} | {'Owner':14s} | {'Transactions':>12s} | {'Balance':>14s} | ID")
    click.echo("-" * 110)
    for entry in balances:
        click.echo(
            f"{entry.store.name:19s} | {entry.store.owner_name:14s} | "
            f"{entry.transaction_count:12d} | {entry.balance:14,.2f} | {entry.store.id}"
        )


def register_commands(cli):
    """Register stores command with CLI."""
    cli.add_command(list_stores)
