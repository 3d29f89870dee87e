"""Wire format of file processing messages."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cnabingest.utils.date_parser import parse_timestamp

CORRELATION_ID_ATTRIBUTE = "CorrelationId"


class InvalidMessageError(ValueError):
    """Message body is missing, not JSON, or lacks required fields."""


@dataclass(frozen=True)
class FileProcessingMessage:
    """Request to ingest one uploaded file."""

    file_id: str
    object_key: str
    file_name: str
    uploaded_at: Optional[datetime] = None
    correlation_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(
            {
                "fileId": self.file_id,
                "objectKey": self.object_key,
                "fileName": self.file_name,
                "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
                "correlationId": self.correlation_id,
            }
        )

    @classmethod
    def from_json(cls, body: Optional[str], correlation_id: Optional[str] = None) -> "FileProcessingMessage":
        """Decode a message body.

        Args:
            body: Raw message body
            correlation_id: Fallback when the body carries none (message attribute)

        Raises:
            InvalidMessageError: If the body cannot be used
        """
        if not body:
            raise InvalidMessageError("Message body is empty")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidMessageError(f"Message body is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise InvalidMessageError("Message body is not a JSON object")

        missing = [
            key for key in ("fileId", "objectKey", "fileName")
            if not isinstance(payload.get(key), str) or not payload[key]
        ]
        if missing:
            raise InvalidMessageError(f"Message is missing required fields: {', '.join(missing)}")

        try:
            uploaded_at = parse_timestamp(payload.get("uploadedAt"))
        except (TypeError, ValueError) as e:
            raise InvalidMessageError(f"Invalid uploadedAt: {e}") from e

        return cls(
            file_id=payload["fileId"],
            object_key=payload["objectKey"],
            file_name=payload["fileName"],
            uploaded_at=uploaded_at,
            correlation_id=payload.get("correlationId") or correlation_id,
        )
