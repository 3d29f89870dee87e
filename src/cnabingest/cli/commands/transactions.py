"""Transaction viewing commands."""

import click

from cnabingest.cli.date_filters import resolve_cli_date_range
from cnabingest.cli.store_resolution import resolve_store_or_exit
from cnabingest.domain.balance import BalanceService


@click.command("transactions")
@click.option("--store", help="Store ID or name")
@click.option("--file", "file_id", help="File ID")
@click.option("--from", "start_date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--to", "end_date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def list_transactions(
    ctx, store: str | None, file_id: str | None, start_date: str | None, end_date: str | None
):
    """View transactions with optional filters.

    Amounts are shown with the sign of their transaction type.

    Examples:
        cnabingest transactions --store "BAR DO JOAO"
        cnabingest transactions --from "last month" --to today
    """
    db = ctx.obj["db"]
    service = BalanceService(db)

    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)
    store_id = resolve_store_or_exit(ctx, db, store) if store else None

    transactions = service.list_transactions(
        store_id=store_id, file_id=file_id, start_date=start, end_date=end
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    stores = {s.id: s.name for s in db.list_stores()}
    types = {t.code: t.description for t in db.list_transaction_types()}

    click.echo(
        f"\n{'Date':10s} | {'Time':8s} | {'Type':13s} | {'Amount':>12s} | "
        f"{'Customer':11s} | {'Card':12s} | Store"
    )
    click.echo("-" * 100)
    for txn in transactions:
        signed = service.sign_lookup.signed_amount(txn.amount, txn.type_code)
        click.echo(
            f"{txn.occurred_on.isoformat():10s} | {txn.occurred_at.strftime('%H:%M:%S'):8s} | "
            f"{types.get(txn.type_code, str(txn.type_code)):13s} | {signed:12,.2f} | "
            f"{txn.customer_id:11s} | {txn.card_id:12s} | {stores.get(txn.store_id, txn.store_id)}"
        )

    total = sum(service.sign_lookup.signed_amount(t.amount, t.type_code) for t in transactions)
    click.echo("-" * 100)
    click.echo(f"{len(transactions)} transaction(s), net {total:,.2f}")


def register_commands(cli):
    """Register transactions command with CLI."""
    cli.add_command(list_transactions)
