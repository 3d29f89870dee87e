"""Domain model entities for cnabingest.

These are pure data classes representing business concepts, independent of
database schema. ORM models are converted into these by the mapper layer.
"""

from dataclasses import dataclass
from datetime import datetime, date, time
from decimal import Decimal
from enum import Enum
from typing import Optional


class FileStatus(str, Enum):
    """Lifecycle of an uploaded file. Processed and Rejected are terminal."""

    UPLOADED = "Uploaded"
    PROCESSING = "Processing"
    PROCESSED = "Processed"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.PROCESSED, FileStatus.REJECTED)


class IssueKind(str, Enum):
    """Tag distinguishing file-level from line-level validation problems."""

    STRUCTURAL = "StructuralError"
    CONTENT = "ContentError"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation problem found in an input file."""

    kind: IssueKind
    message: str
    line_number: Optional[int] = None

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"Line {self.line_number}: {self.message}"


@dataclass(frozen=True)
class File:
    """Uploaded CNAB file domain entity."""

    id: str
    name: str
    size: int
    object_key: str
    status: FileStatus
    error_message: Optional[str]
    uploaded_at: datetime
    processed_at: Optional[datetime]


@dataclass(frozen=True)
class StoreIdentity:
    """Composite key used to deduplicate stores across files."""

    name: str
    owner_name: str


@dataclass(frozen=True)
class Store:
    """Store domain entity."""

    id: str
    name: str
    owner_name: str
    created_at: datetime
    updated_at: datetime

    @property
    def identity(self) -> StoreIdentity:
        return StoreIdentity(name=self.name, owner_name=self.owner_name)


@dataclass(frozen=True)
class TransactionType:
    """Transaction type lookup entry."""

    code: int
    description: str
    nature: str
    sign: str


@dataclass(frozen=True)
class Transaction:
    """Persisted transaction domain entity."""

    id: int
    file_id: str
    store_id: str
    type_code: int
    amount: Decimal
    occurred_on: date
    occurred_at: time
    customer_id: str
    card_id: str
    created_at: datetime


@dataclass(frozen=True)
class ParsedTransaction:
    """Transaction decoded from one CNAB line, not yet persisted."""

    line_number: int
    type_code: int
    occurred_on: date
    occurred_at: time
    amount: Decimal
    customer_id: str
    card_id: str
    store: StoreIdentity


@dataclass(frozen=True)
class StoreBalance:
    """Store with its computed balance."""

    store: Store
    balance: Decimal
    transaction_count: int
