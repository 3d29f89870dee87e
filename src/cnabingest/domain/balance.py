"""Store balance and transaction query service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from cnabingest.database.base import Database
from cnabingest.domain.entities import StoreBalance, Transaction
from cnabingest.domain.errors import NotFoundError, ValidationError, store_not_found
from cnabingest.domain.sign_lookup import SignLookup


class BalanceService:
    """Service for store balances and transaction listings."""

    def __init__(self, db: Database, sign_lookup: Optional[SignLookup] = None):
        """Initialize balance service.

        Args:
            db: Database instance
            sign_lookup: Sign lookup; one backed by db is created when omitted
        """
        self.db = db
        self.sign_lookup = sign_lookup or SignLookup(db)

    def store_balance(self, store_id: str) -> StoreBalance:
        """Compute a store's balance as the signed sum of its transactions.

        Raises:
            NotFoundError: If the store doesn't exist
        """
        store = self.db.get_store(store_id)
        if store is None:
            raise NotFoundError(store_not_found(store_id))

        transactions = self.db.list_transactions(store_id=store_id)
        balance = sum(
            (self.sign_lookup.signed_amount(t.amount, t.type_code) for t in transactions),
            Decimal("0.00"),
        )
        return StoreBalance(store=store, balance=balance, transaction_count=len(transactions))

    def list_store_balances(self) -> list[StoreBalance]:
        """Return the balance of every store, ordered by store name."""
        return [self.store_balance(store.id) for store in self.db.list_stores()]

    def list_transactions(
        self,
        store_id: Optional[str] = None,
        file_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions, oldest first.

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError(f"Start date {start_date} is after end date {end_date}")
        return self.db.list_transactions(
            store_id=store_id, file_id=file_id, start_date=start_date, end_date=end_date
        )
