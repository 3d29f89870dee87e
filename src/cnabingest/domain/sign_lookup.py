"""Credit/debit classification of transaction types."""

from decimal import Decimal
from typing import Optional

from cnabingest.database.base import Database
from cnabingest.domain.entities import TransactionType
from cnabingest.domain.errors import (
    InvalidSignError,
    UnknownTransactionTypeError,
    invalid_sign,
    unknown_transaction_type,
)


class SignLookup:
    """Maps a transaction type code to +1 (credit) or -1 (debit).

    The transaction type table is the only source of signs; it is read once
    per instance.
    """

    def __init__(self, db: Database):
        """Initialize sign lookup.

        Args:
            db: Database instance
        """
        self.db = db
        self._types: Optional[dict[int, TransactionType]] = None

    def _load(self) -> dict[int, TransactionType]:
        if self._types is None:
            self._types = {t.code: t for t in self.db.list_transaction_types()}
        return self._types

    def codes(self) -> frozenset[int]:
        """Return every known type code."""
        return frozenset(self._load())

    def get_type(self, code: int) -> TransactionType:
        """Return the lookup entry for a code.

        Raises:
            UnknownTransactionTypeError: If the code is not in the lookup
        """
        transaction_type = self._load().get(code)
        if transaction_type is None:
            raise UnknownTransactionTypeError(unknown_transaction_type(code))
        return transaction_type

    def sign(self, code: int) -> int:
        """Return +1 for credit types and -1 for debit types.

        Raises:
            UnknownTransactionTypeError: If the code is not in the lookup
            InvalidSignError: If the stored sign is neither '+' nor '-'
        """
        transaction_type = self.get_type(code)
        if transaction_type.sign == "+":
            return 1
        if transaction_type.sign == "-":
            return -1
        raise InvalidSignError(invalid_sign(code, transaction_type.sign))

    def signed_amount(self, amount: Decimal, code: int) -> Decimal:
        """Return amount multiplied by the type's sign."""
        return amount * self.sign(code)
