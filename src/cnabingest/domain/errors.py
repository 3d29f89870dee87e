"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class StoreConflictError(ConflictError):
    """A store with the same (name, owner_name) identity already exists."""


class InvalidObjectKeyError(ValidationError):
    """Object key points outside the storage area and can never be read."""


class FileNotFoundInStoreError(NotFoundError):
    """The file record referenced by a processing message does not exist."""


class UnknownTransactionTypeError(NotFoundError):
    """Transaction type code is missing from the lookup table."""


class InvalidSignError(DomainError):
    """Transaction type carries a sign other than '+' or '-'."""


class InvalidStatusTransitionError(RuntimeError):
    """File status change that the state machine does not allow.

    This is a programming error: a message is processed by one consumer at a
    time, so the orchestrator never requests an illegal transition.
    """


class PersistenceError(Exception):
    """Storage failure while persisting a file's records."""


class TransientInfrastructureError(Exception):
    """Network or timeout failure talking to the queue, object store or database.

    Never maps to a rejected file: the message is left for redelivery.
    """


class NotificationDeliveryError(Exception):
    """A notification could not be delivered."""


def file_not_found(file_id: str) -> str:
    """Return message for missing file record."""
    return f"File {file_id} not found"


def store_not_found(store_id: str) -> str:
    """Return message for missing store."""
    return f"Store {store_id} not found"


def unknown_transaction_type(code: int) -> str:
    """Return message for a type code missing from the lookup."""
    return f"Transaction type {code} is not defined"


def invalid_sign(code: int, sign: str) -> str:
    """Return message for a lookup row with a bad sign value."""
    return f"Invalid sign value '{sign}' for transaction type {code}. Must be '+' or '-'"


def duplicate_store(name: str, owner_name: str) -> str:
    """Return message for a store identity that already exists."""
    return f"Store '{name}' owned by '{owner_name}' already exists"


def invalid_status_transition(file_id: str, current: str, target: str) -> str:
    """Return message for a rejected file status change."""
    return f"File {file_id}: cannot move from {current} to {target}"
