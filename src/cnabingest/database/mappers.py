"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay stable
when the database schema changes.
"""

from cnabingest.domain import entities as domain
from cnabingest.database.models import (
    File as ORMFile,
    Store as ORMStore,
    Transaction as ORMTransaction,
    TransactionType as ORMTransactionType,
)


def file_to_domain(orm_file: ORMFile) -> domain.File:
    """Convert SQLAlchemy File model to domain File entity."""
    return domain.File(
        id=orm_file.id,
        name=orm_file.name,
        size=orm_file.size,
        object_key=orm_file.object_key,
        status=domain.FileStatus(orm_file.status),
        error_message=orm_file.error_message,
        uploaded_at=orm_file.uploaded_at,
        processed_at=orm_file.processed_at,
    )


def store_to_domain(orm_store: ORMStore) -> domain.Store:
    """Convert SQLAlchemy Store model to domain Store entity."""
    return domain.Store(
        id=orm_store.id,
        name=orm_store.name,
        owner_name=orm_store.owner_name,
        created_at=orm_store.created_at,
        updated_at=orm_store.updated_at,
    )


def transaction_type_to_domain(orm_type: ORMTransactionType) -> domain.TransactionType:
    """Convert SQLAlchemy TransactionType model to domain TransactionType entity."""
    return domain.TransactionType(
        code=orm_type.code,
        description=orm_type.description,
        nature=orm_type.nature,
        sign=orm_type.sign,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        file_id=orm_transaction.file_id,
        store_id=orm_transaction.store_id,
        type_code=orm_transaction.type_code,
        amount=orm_transaction.amount,
        occurred_on=orm_transaction.occurred_on,
        occurred_at=orm_transaction.occurred_at,
        customer_id=orm_transaction.customer_id,
        card_id=orm_transaction.card_id,
        created_at=orm_transaction.created_at,
    )


def parsed_transaction_to_row(
    parsed: domain.ParsedTransaction, file_id: str, store_id: str
) -> dict:
    """Build an insert row for a parsed transaction."""
    return {
        "file_id": file_id,
        "store_id": store_id,
        "type_code": parsed.type_code,
        "amount": parsed.amount,
        "occurred_on": parsed.occurred_on,
        "occurred_at": parsed.occurred_at,
        "customer_id": parsed.customer_id,
        "card_id": parsed.card_id,
    }
