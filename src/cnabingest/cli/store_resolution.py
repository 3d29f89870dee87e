"""CLI helpers for store resolution."""

from __future__ import annotations

import click

from cnabingest.database.base import Database
from cnabingest.domain.errors import NotFoundError, ValidationError, store_not_found


def resolve_store(db: Database, store: str) -> str:
    """Resolve a store ID or store name to a store ID.

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the name matches stores of several owners
    """
    found = db.get_store(store)
    if found is not None:
        return found.id

    matches = [s for s in db.list_stores() if s.name.lower() == store.strip().lower()]
    if not matches:
        raise NotFoundError(store_not_found(store))
    if len(matches) > 1:
        owners = ", ".join(s.owner_name for s in matches)
        raise ValidationError(
            f"Store name '{store}' is ambiguous (owners: {owners}). Use the store ID instead."
        )
    return matches[0].id


def resolve_store_or_exit(ctx: click.Context, db: Database, store: str) -> str:
    """Resolve store name or ID, or exit with a CLI error."""
    try:
        return resolve_store(db, store)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
