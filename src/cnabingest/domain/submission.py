"""File upload: store the object, record the file and enqueue processing."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Optional

from cnabingest.database.base import Database
from cnabingest.domain.errors import ValidationError
from cnabingest.domain.validation import MAX_FILE_SIZE
from cnabingest.messaging.messages import CORRELATION_ID_ATTRIBUTE, FileProcessingMessage
from cnabingest.messaging.queue import MessageQueue
from cnabingest.messaging.storage import ObjectStorage
from cnabingest.utils.logging_setup import context_logger

logger = logging.getLogger(__name__)

OBJECT_KEY_PREFIX = "cnab"
ALLOWED_EXTENSION = ".txt"


@dataclass(frozen=True)
class SubmittedFile:
    """Result of a successful submission."""

    file_id: str
    object_key: str
    correlation_id: str


def object_key_for(file_id: str, file_name: str) -> str:
    return f"{OBJECT_KEY_PREFIX}/{file_id}/{file_name}"


def validate_file_name(file_name: str) -> None:
    """Raise ValidationError unless file_name is a bare .txt name."""
    if not file_name or not file_name.strip():
        raise ValidationError("File name is required")
    if "/" in file_name or "\\" in file_name or file_name in (".", ".."):
        raise ValidationError(f"File name '{file_name}' must not contain path separators")
    if not file_name.lower().endswith(ALLOWED_EXTENSION):
        raise ValidationError(f"File '{file_name}' must have a {ALLOWED_EXTENSION} extension")


class FileSubmissionService:
    """Service for accepting CNAB uploads."""

    def __init__(
        self,
        db: Database,
        storage: ObjectStorage,
        queue: MessageQueue,
        max_size: int = MAX_FILE_SIZE,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.db = db
        self.storage = storage
        self.queue = queue
        self.max_size = max_size
        self.clock = clock

    def submit(
        self,
        source: str | Path | bytes,
        file_name: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> SubmittedFile:
        """Submit a file for asynchronous processing.

        Args:
            source: Path of a local file, or the file content
            file_name: Name to record; defaults to the path's name
            correlation_id: Correlation ID; a new one is generated when omitted

        Returns:
            SubmittedFile with the new file ID

        Raises:
            ValidationError: If the name or size is unacceptable
        """
        if isinstance(source, bytes):
            if file_name is None:
                raise ValidationError("File name is required when submitting raw content")
            data = source
        else:
            path = Path(source)
            file_name = file_name or path.name
            if not path.is_file():
                raise ValidationError(f"File not found: {path}")
            if path.stat().st_size > self.max_size:
                raise ValidationError(
                    f"File '{file_name}' exceeds maximum size of {self.max_size} bytes"
                )
            data = path.read_bytes()

        validate_file_name(file_name)
        if not data:
            raise ValidationError(f"File '{file_name}' is empty")
        if len(data) > self.max_size:
            raise ValidationError(f"File '{file_name}' exceeds maximum size of {self.max_size} bytes")

        file_id = str(uuid.uuid4())
        correlation_id = correlation_id or str(uuid.uuid4())
        log = context_logger(logger, correlation_id, file_id)
        key = object_key_for(file_id, file_name)
        uploaded_at = self.clock()

        self.storage.put(key, data)
        self.db.create_file(
            name=file_name, size=len(data), object_key=key, file_id=file_id, uploaded_at=uploaded_at
        )
        message = FileProcessingMessage(
            file_id=file_id,
            object_key=key,
            file_name=file_name,
            uploaded_at=uploaded_at,
            correlation_id=correlation_id,
        )
        self.queue.send(message.to_json(), {CORRELATION_ID_ATTRIBUTE: correlation_id})
        log.info("Submitted '%s' (%d bytes) as %s", file_name, len(data), key)
        return SubmittedFile(file_id=file_id, object_key=key, correlation_id=correlation_id)
