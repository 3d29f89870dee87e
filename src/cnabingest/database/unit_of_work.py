"""SQLAlchemy unit of work used for the atomic ingestion step."""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import insert
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, sessionmaker

from cnabingest.database.base import UnitOfWork
from cnabingest.database.mappers import parsed_transaction_to_row, store_to_domain
from cnabingest.database.models import File, Store, Transaction
from cnabingest.domain.entities import FileStatus, ParsedTransaction, Store as DomainStore, StoreIdentity
from cnabingest.domain.errors import (
    PersistenceError,
    StoreConflictError,
    TransientInfrastructureError,
    duplicate_store,
)
from cnabingest.domain.file_status import ensure_transition, truncate_error_message

# Failures of the connection rather than of the data; retrying later can succeed.
TRANSIENT_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Raise SQLAlchemy failures as TransientInfrastructureError or PersistenceError."""
    try:
        yield
    except TRANSIENT_ERRORS as e:
        raise TransientInfrastructureError(f"Database unavailable: {e}") from e
    except SQLAlchemyError as e:
        raise PersistenceError(f"Database write failed: {e}") from e


class SQLAlchemyUnitOfWork(UnitOfWork):
    """One session, one database transaction."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session: Session = session_factory()
        self._finished = False

    def find_store(self, identity: StoreIdentity) -> Optional[DomainStore]:
        with translate_errors():
            store = (
                self.session.query(Store)
                .filter(Store.name == identity.name, Store.owner_name == identity.owner_name)
                .first()
            )
        if store is None:
            return None
        return store_to_domain(store)

    def add_store(self, identity: StoreIdentity) -> DomainStore:
        store = Store(name=identity.name, owner_name=identity.owner_name)
        with translate_errors():
            try:
                # Savepoint keeps the outer transaction usable after a unique violation
                with self.session.begin_nested():
                    self.session.add(store)
                    self.session.flush()
            except IntegrityError as e:
                raise StoreConflictError(duplicate_store(identity.name, identity.owner_name)) from e
        return store_to_domain(store)

    def touch_store(self, store_id: str, touched_at: datetime) -> None:
        with translate_errors():
            self.session.query(Store).filter(Store.id == store_id).update(
                {Store.updated_at: touched_at}, synchronize_session=False
            )

    def add_transactions(
        self, file_id: str, transactions: list[tuple[ParsedTransaction, str]]
    ) -> int:
        rows = [
            parsed_transaction_to_row(parsed, file_id=file_id, store_id=store_id)
            for parsed, store_id in transactions
        ]
        if rows:
            with translate_errors():
                self.session.execute(insert(Transaction), rows)
        return len(rows)

    def transition_file(
        self,
        file_id: str,
        expected: FileStatus,
        target: FileStatus,
        error_message: Optional[str] = None,
        processed_at: Optional[datetime] = None,
    ) -> bool:
        ensure_transition(file_id, expected, target)
        values = {File.status: target.value}
        if error_message is not None:
            values[File.error_message] = truncate_error_message(error_message)
        if processed_at is not None:
            values[File.processed_at] = processed_at
        with translate_errors():
            updated = (
                self.session.query(File)
                .filter(File.id == file_id, File.status == expected.value)
                .update(values, synchronize_session=False)
            )
        return updated == 1

    def commit(self) -> None:
        with translate_errors():
            self.session.commit()
        self._finished = True

    def rollback(self) -> None:
        self.session.rollback()
        self._finished = True

    def close(self) -> None:
        try:
            if not self._finished:
                self.session.rollback()
        finally:
            self.session.close()
