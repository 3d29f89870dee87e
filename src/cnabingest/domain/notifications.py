"""Processing notifications with bounded retry and a dead-letter fallback."""

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Callable, Optional

from cnabingest.domain.reporting import Reporter
from cnabingest.messaging.queue import MessageQueue
from cnabingest.utils.date_parser import parse_timestamp
from cnabingest.utils.logging_setup import context_logger
from cnabingest.utils.retry import RetryExhaustedError, RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

PROCESSING_COMPLETED = "ProcessingCompleted"
PROCESSING_FAILED = "ProcessingFailed"


class NotificationSender(ABC):
    """Delivers one notification message."""

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> None:
        """Send a message.

        Raises:
            NotificationDeliveryError: If delivery failed
        """
        pass


class LoggingNotificationSender(NotificationSender):
    """Sender that only writes notifications to the log."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info("Notification to %s: %s - %s", recipient, subject, body)


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of a notification after all attempts."""

    notification_id: str
    success: bool
    attempts: int
    error_message: Optional[str] = None


@dataclass
class DeadLetterNotification:
    """Notification that exhausted its attempts, as stored on the DLQ."""

    notification_id: str
    file_id: str
    notification_type: str
    recipient_email: str
    attempt_count: int
    last_attempt_at: datetime
    error_message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(
            {
                "notificationId": self.notification_id,
                "fileId": self.file_id,
                "notificationType": self.notification_type,
                "recipientEmail": self.recipient_email,
                "attemptCount": self.attempt_count,
                "lastAttemptAt": self.last_attempt_at.isoformat(),
                "errorMessage": self.error_message,
                "context": self.context,
            }
        )

    @classmethod
    def from_json(cls, body: Optional[str]) -> "DeadLetterNotification":
        """Decode a DLQ message body.

        Raises:
            ValueError: If the body is empty, not JSON, or lacks required fields
        """
        if not body:
            raise ValueError("Dead-letter message body is empty")
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("Dead-letter message body is not a JSON object")
        for key in ("notificationId", "fileId", "notificationType", "recipientEmail"):
            if not isinstance(payload.get(key), str) or not payload[key]:
                raise ValueError(f"Dead-letter message is missing '{key}'")
        context = payload.get("context") or {}
        if not isinstance(context, dict):
            raise ValueError("Dead-letter message context is not an object")
        return cls(
            notification_id=payload["notificationId"],
            file_id=payload["fileId"],
            notification_type=payload["notificationType"],
            recipient_email=payload["recipientEmail"],
            attempt_count=int(payload.get("attemptCount") or 0),
            last_attempt_at=parse_timestamp(payload.get("lastAttemptAt")) or datetime.now(UTC),
            error_message=payload.get("errorMessage") or "",
            context=context,
        )


def render_message(notification_type: str, file_id: str, context: dict[str, Any]) -> tuple[str, str]:
    """Return (subject, body) for a notification."""
    if notification_type == PROCESSING_FAILED:
        return (
            f"CNAB file {file_id} was rejected",
            f"File {file_id} could not be processed: {context.get('errorMessage') or ''}",
        )
    status = str(context.get("status") or "Processed")
    return (
        f"CNAB file {file_id} {status.lower()}",
        f"File {file_id} finished with status {status}. {context.get('details') or ''}".strip(),
    )


class NotificationChannel:
    """Sends file outcome notifications.

    Each notification gets a first attempt plus policy.max_retries retries
    with exponential backoff. When every attempt fails the notification is
    published to the dead-letter queue and a failed result is returned;
    nothing here raises to the caller.
    """

    def __init__(
        self,
        sender: NotificationSender,
        recipient: str,
        dlq: Optional[MessageQueue] = None,
        policy: RetryPolicy = RetryPolicy(),
        reporter: Optional[Reporter] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.sender = sender
        self.recipient = recipient
        self.dlq = dlq
        self.policy = policy
        self.reporter = reporter or Reporter()
        self.sleep = sleep
        self.clock = clock

    def notify_processing_completed(
        self, file_id: str, status: str, details: str, correlation_id: Optional[str] = None
    ) -> NotificationResult:
        return self._notify(
            file_id,
            PROCESSING_COMPLETED,
            {"status": status, "details": details},
            correlation_id,
        )

    def notify_processing_failed(
        self, file_id: str, error_message: str, correlation_id: Optional[str] = None
    ) -> NotificationResult:
        return self._notify(
            file_id,
            PROCESSING_FAILED,
            {"status": "Rejected", "errorMessage": error_message},
            correlation_id,
        )

    def retry_from_dead_letter(
        self, notification: DeadLetterNotification, correlation_id: Optional[str] = None
    ) -> NotificationResult:
        """Re-send a dead-lettered notification. Never republishes to the DLQ."""
        log = context_logger(logger, correlation_id, notification.file_id)
        log.info("Retrying dead-lettered notification %s", notification.notification_id)
        subject, body = render_message(
            notification.notification_type, notification.file_id, notification.context
        )
        try:
            _, attempts = self._send(
                notification.recipient_email, subject, body, notification.notification_type
            )
        except RetryExhaustedError as e:
            log.error(
                "Dead-lettered notification %s failed after %d attempt(s); requires manual review",
                notification.notification_id,
                e.attempts,
            )
            self.reporter.notification_sent(notification.notification_type, False, e.attempts)
            return NotificationResult(
                notification.notification_id, False, e.attempts, str(e.last_error)
            )
        self.reporter.notification_sent(notification.notification_type, True, attempts)
        return NotificationResult(notification.notification_id, True, attempts)

    def _send(
        self, recipient: str, subject: str, body: str, notification_type: str
    ) -> tuple[None, int]:
        return call_with_retry(
            lambda: self.sender.send(recipient, subject, body),
            self.policy,
            sleep=self.sleep,
            label=f"{notification_type} notification",
        )

    def _notify(
        self,
        file_id: str,
        notification_type: str,
        context: dict[str, Any],
        correlation_id: Optional[str],
    ) -> NotificationResult:
        log = context_logger(logger, correlation_id, file_id)
        notification_id = str(uuid.uuid4())
        subject, body = render_message(notification_type, file_id, context)
        try:
            _, attempts = self._send(self.recipient, subject, body, notification_type)
        except RetryExhaustedError as e:
            log.warning(
                "Notification %s failed after %d attempt(s); publishing to dead-letter queue",
                notification_id,
                e.attempts,
            )
            self._dead_letter(
                DeadLetterNotification(
                    notification_id=notification_id,
                    file_id=file_id,
                    notification_type=notification_type,
                    recipient_email=self.recipient,
                    attempt_count=e.attempts,
                    last_attempt_at=self.clock(),
                    error_message=f"Notification failed after {e.attempts} attempts: {e.last_error}",
                    context=context,
                ),
                correlation_id,
                log,
            )
            self.reporter.notification_sent(notification_type, False, e.attempts)
            return NotificationResult(notification_id, False, e.attempts, str(e.last_error))

        log.info("Notification %s sent after %d attempt(s)", notification_id, attempts)
        self.reporter.notification_sent(notification_type, True, attempts)
        return NotificationResult(notification_id, True, attempts)

    def _dead_letter(
        self,
        notification: DeadLetterNotification,
        correlation_id: Optional[str],
        log: logging.LoggerAdapter,
    ) -> None:
        if self.dlq is None:
            log.error("No dead-letter queue configured; notification %s dropped", notification.notification_id)
            return
        attributes = {"CorrelationId": correlation_id} if correlation_id else None
        try:
            self.dlq.send(notification.to_json(), attributes)
        except Exception:
            log.exception("Failed to publish notification %s to dead-letter queue", notification.notification_id)
