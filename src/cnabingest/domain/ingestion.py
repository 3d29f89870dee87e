"""File ingestion: validate, parse and persist one uploaded CNAB file."""

import io
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Callable, Optional

from cnabingest.database.base import Database
from cnabingest.domain.cnab_parser import LineParser, ParseResult
from cnabingest.domain.entities import File, FileStatus, IssueKind, ValidationIssue
from cnabingest.domain.errors import (
    FileNotFoundInStoreError,
    InvalidObjectKeyError,
    PersistenceError,
    TransientInfrastructureError,
    file_not_found,
)
from cnabingest.domain.notifications import NotificationChannel
from cnabingest.domain.reporting import Reporter
from cnabingest.domain.sign_lookup import SignLookup
from cnabingest.domain.store_resolver import StoreResolver
from cnabingest.domain.validation import StructuralValidator
from cnabingest.messaging.storage import ObjectStorage
from cnabingest.utils.logging_setup import context_logger

logger = logging.getLogger(__name__)


class ProcessingOutcome(str, Enum):
    """Terminal result of processing a file."""

    PROCESSED = "Processed"
    REJECTED = "Rejected"


@dataclass
class ProcessingResult:
    """What happened to a file.

    already_terminal is set when the file had finished before this call (a
    duplicate delivery); nothing was written in that case.
    """

    file_id: str
    outcome: ProcessingOutcome
    transaction_count: int = 0
    store_count: int = 0
    issues: list[ValidationIssue] = field(default_factory=list)
    error_message: Optional[str] = None
    already_terminal: bool = False


class IngestionOrchestrator:
    """Drives a file from Uploaded to Processed or Rejected.

    Structural and content problems reject the file. Infrastructure failures
    (storage, database connectivity) raise TransientInfrastructureError and
    leave the file where it was so the message can be redelivered.
    """

    def __init__(
        self,
        db: Database,
        storage: ObjectStorage,
        validator: Optional[StructuralValidator] = None,
        reporter: Optional[Reporter] = None,
        notifier: Optional[NotificationChannel] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        """Initialize ingestion orchestrator.

        Args:
            db: Database instance
            storage: Object storage holding uploaded files
            validator: Structural validator (defaults to 10 MiB, 80-byte lines)
            reporter: Observer for processing events
            notifier: Notification channel; None disables notifications
            clock: Source of the current UTC time
        """
        self.db = db
        self.storage = storage
        self.validator = validator or StructuralValidator()
        self.reporter = reporter or Reporter()
        self.notifier = notifier
        self.clock = clock
        self.store_resolver = StoreResolver(clock=clock)

    def process_file(
        self,
        file_id: str,
        object_key: Optional[str] = None,
        file_name: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> ProcessingResult:
        """Process one file.

        Args:
            file_id: File record ID
            object_key: Storage key; defaults to the key on the file record
            file_name: Original file name, for logging
            correlation_id: Correlation ID carried by the processing message

        Returns:
            ProcessingResult with outcome PROCESSED or REJECTED

        Raises:
            FileNotFoundInStoreError: If no file record exists
            TransientInfrastructureError: If storage or the database is unreachable
            PersistenceError: If the file could not even be marked Rejected
        """
        log = context_logger(logger, correlation_id, file_id)
        started = time.monotonic()

        file = self.db.get_file(file_id)
        if file is None:
            raise FileNotFoundInStoreError(file_not_found(file_id))
        if file.status.is_terminal:
            log.info("File already %s; nothing to do", file.status.value)
            return self._stored_result(file)

        log.info("Processing file '%s'", file_name or file.name)
        bad_key = None
        try:
            data = self._download(object_key or file.object_key)
        except InvalidObjectKeyError as e:
            # Redelivery cannot fix the key, so the file is rejected below
            data, bad_key = b"", e

        if file.status == FileStatus.UPLOADED:
            if not self.db.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSING):
                file = self.db.get_file(file_id)
                if file is None:
                    raise FileNotFoundInStoreError(file_not_found(file_id))
                if file.status.is_terminal:
                    log.info("File finished concurrently as %s", file.status.value)
                    return self._stored_result(file)
        else:
            log.info("Resuming file left in %s", file.status.value)

        if bad_key is not None:
            log.error("Unreadable object key: %s", bad_key)
            issue = ValidationIssue(kind=IssueKind.STRUCTURAL, message=str(bad_key))
            result = self._reject(file_id, str(bad_key), [issue], log)
        else:
            result = self._ingest(file_id, data, log)
        self.reporter.file_processed(result.outcome.value, time.monotonic() - started)
        if not result.already_terminal:
            self._notify(result, correlation_id)
        return result

    def _ingest(self, file_id: str, data: bytes, log: logging.LoggerAdapter) -> ProcessingResult:
        validation = self.validator.validate(io.BytesIO(data))
        if not validation.is_valid:
            log.warning("Structural validation failed with %d issue(s)", len(validation.issues))
            return self._reject(file_id, validation.summary(), validation.issues, log)

        parsed = self._parse(data)
        if not parsed.is_valid:
            log.warning("Content validation failed with %d issue(s)", len(parsed.issues))
            message = "; ".join(str(issue) for issue in parsed.issues)
            return self._reject(file_id, message, parsed.issues, log)

        return self._persist(file_id, parsed, log)

    def _download(self, object_key: str) -> bytes:
        limit = self.validator.max_size + 1
        try:
            with self.storage.open(object_key, max_bytes=limit) as stream:
                return stream.read(limit)
        except OSError as e:
            raise TransientInfrastructureError(f"Failed to read object '{object_key}': {e}") from e

    def _parse(self, data: bytes) -> ParseResult:
        parser = LineParser(today=self.clock().date(), type_codes=SignLookup(self.db).codes())
        return parser.parse_bytes(data)

    def _persist(self, file_id: str, parsed: ParseResult, log: logging.LoggerAdapter) -> ProcessingResult:
        identities = parsed.store_identities
        try:
            with self.db.unit_of_work() as uow:
                store_ids = self.store_resolver.resolve(uow, identities)
                count = uow.add_transactions(
                    file_id, [(txn, store_ids[txn.store]) for txn in parsed.transactions]
                )
                moved = uow.transition_file(
                    file_id,
                    FileStatus.PROCESSING,
                    FileStatus.PROCESSED,
                    processed_at=self.clock(),
                )
                if not moved:
                    uow.rollback()
                else:
                    uow.commit()
        except TransientInfrastructureError:
            log.warning("Database unavailable; file left in Processing for redelivery")
            raise
        except Exception as e:
            log.exception("Persisting transactions failed")
            return self._reject_after_failure(file_id, e, log)

        if not moved:
            return self._concurrent_result(file_id, log)

        log.info("Imported %d transaction(s) for %d store(s)", count, len(identities))
        return ProcessingResult(
            file_id=file_id,
            outcome=ProcessingOutcome.PROCESSED,
            transaction_count=count,
            store_count=len(identities),
        )

    def _reject(
        self,
        file_id: str,
        message: str,
        issues: list[ValidationIssue],
        log: logging.LoggerAdapter,
    ) -> ProcessingResult:
        moved = self.db.transition_file(
            file_id,
            FileStatus.PROCESSING,
            FileStatus.REJECTED,
            error_message=message,
            processed_at=self.clock(),
        )
        if not moved:
            return self._concurrent_result(file_id, log)
        return ProcessingResult(
            file_id=file_id,
            outcome=ProcessingOutcome.REJECTED,
            issues=issues,
            error_message=message,
        )

    def _reject_after_failure(
        self, file_id: str, error: Exception, log: logging.LoggerAdapter
    ) -> ProcessingResult:
        message = f"Failed to persist transactions: {error}"
        try:
            return self._reject(file_id, message, [], log)
        except Exception as e:
            raise PersistenceError(f"Could not mark file {file_id} as Rejected after \"{error}\": {e}") from e

    def _concurrent_result(self, file_id: str, log: logging.LoggerAdapter) -> ProcessingResult:
        file = self.db.get_file(file_id)
        if file is None:
            raise FileNotFoundInStoreError(file_not_found(file_id))
        log.info("File was finished by another consumer as %s", file.status.value)
        return self._stored_result(file)

    def _stored_result(self, file: File) -> ProcessingResult:
        if file.status == FileStatus.PROCESSED:
            return ProcessingResult(
                file_id=file.id,
                outcome=ProcessingOutcome.PROCESSED,
                transaction_count=self.db.count_transactions(file_id=file.id),
                already_terminal=True,
            )
        if file.status == FileStatus.REJECTED:
            return ProcessingResult(
                file_id=file.id,
                outcome=ProcessingOutcome.REJECTED,
                error_message=file.error_message,
                already_terminal=True,
            )
        raise PersistenceError(f"File {file.id} is {file.status.value}, expected a terminal status")

    def _notify(self, result: ProcessingResult, correlation_id: Optional[str]) -> None:
        if self.notifier is None:
            return
        if result.outcome == ProcessingOutcome.PROCESSED:
            self.notifier.notify_processing_completed(
                result.file_id,
                result.outcome.value,
                f"{result.transaction_count} transaction(s) imported for {result.store_count} store(s)",
                correlation_id,
            )
        else:
            self.notifier.notify_processing_failed(
                result.file_id, result.error_message or "", correlation_id
            )
