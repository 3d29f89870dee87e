"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from cnabingest.domain.entities import (
    File,
    FileStatus,
    ParsedTransaction,
    Store,
    StoreIdentity,
    Transaction,
    TransactionType,
)


class UnitOfWork(ABC):
    """A single atomic persistence scope.

    Everything done through one unit of work commits together or not at all.
    Used as a context manager: leaving the block without commit() rolls back.
    """

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def find_store(self, identity: StoreIdentity) -> Optional[Store]:
        """Find a store by its (name, owner_name) identity."""
        pass

    @abstractmethod
    def add_store(self, identity: StoreIdentity) -> Store:
        """Insert a store inside a savepoint.

        Raises:
            StoreConflictError: If the identity already exists
        """
        pass

    @abstractmethod
    def touch_store(self, store_id: str, touched_at: datetime) -> None:
        """Refresh a reused store's updated_at timestamp."""
        pass

    @abstractmethod
    def add_transactions(
        self, file_id: str, transactions: list[tuple[ParsedTransaction, str]]
    ) -> int:
        """Bulk insert (parsed transaction, store id) pairs. Returns row count."""
        pass

    @abstractmethod
    def transition_file(
        self,
        file_id: str,
        expected: FileStatus,
        target: FileStatus,
        error_message: Optional[str] = None,
        processed_at: Optional[datetime] = None,
    ) -> bool:
        """Move a file from expected to target status.

        Returns:
            False when the file was not in the expected status (no write)
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit everything done in this unit of work."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard everything done in this unit of work."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying session, rolling back if not committed."""
        pass


class Database(ABC):
    """Abstract database interface for cnabingest."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create tables and seed the transaction type lookup."""
        pass

    @abstractmethod
    def unit_of_work(self) -> UnitOfWork:
        """Open a new atomic persistence scope."""
        pass

    # File operations
    @abstractmethod
    def create_file(
        self,
        name: str,
        size: int,
        object_key: str,
        file_id: Optional[str] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> str:
        """Create a file record in Uploaded status. Returns file ID."""
        pass

    @abstractmethod
    def get_file(self, file_id: str) -> Optional[File]:
        """Get file by ID."""
        pass

    @abstractmethod
    def list_files(self, status: Optional[FileStatus] = None) -> list[File]:
        """List files, newest first, optionally filtered by status."""
        pass

    @abstractmethod
    def transition_file(
        self,
        file_id: str,
        expected: FileStatus,
        target: FileStatus,
        error_message: Optional[str] = None,
        processed_at: Optional[datetime] = None,
    ) -> bool:
        """Move a file from expected to target status in its own transaction.

        Returns:
            False when the file was not in the expected status (no write)
        """
        pass

    # Store operations
    @abstractmethod
    def get_store(self, store_id: str) -> Optional[Store]:
        """Get store by ID."""
        pass

    @abstractmethod
    def get_store_by_identity(self, identity: StoreIdentity) -> Optional[Store]:
        """Get store by (name, owner_name)."""
        pass

    @abstractmethod
    def list_stores(self) -> list[Store]:
        """List all stores ordered by name."""
        pass

    # Transaction type operations
    @abstractmethod
    def list_transaction_types(self) -> list[TransactionType]:
        """List the transaction type lookup."""
        pass

    # Transaction operations
    @abstractmethod
    def count_transactions(self, file_id: Optional[str] = None, store_id: Optional[str] = None) -> int:
        """Count transactions, optionally per file or store."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        store_id: Optional[str] = None,
        file_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, oldest first."""
        pass
