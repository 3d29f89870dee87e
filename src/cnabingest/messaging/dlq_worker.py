"""Periodic retry of dead-lettered notifications."""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from cnabingest.domain.notifications import DeadLetterNotification, NotificationChannel
from cnabingest.domain.reporting import Reporter
from cnabingest.messaging.messages import CORRELATION_ID_ATTRIBUTE
from cnabingest.messaging.queue import MessageQueue, QueueMessage

logger = logging.getLogger(__name__)

DEFAULT_CYCLE_INTERVAL = 60.0
DEFAULT_MAX_MESSAGES = 10
DEFAULT_WAIT_TIME = 20


@dataclass
class DlqCycleSummary:
    success: int = 0
    failure: int = 0


class NotificationDlqWorker:
    """Gives each dead-lettered notification one more round of attempts.

    Every received message is deleted after its retry whatever the outcome;
    failures are logged for manual review.
    """

    def __init__(
        self,
        queue: MessageQueue,
        channel: NotificationChannel,
        reporter: Optional[Reporter] = None,
        interval: float = DEFAULT_CYCLE_INTERVAL,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        wait_time: int = DEFAULT_WAIT_TIME,
    ):
        self.queue = queue
        self.channel = channel
        self.reporter = reporter or Reporter()
        self.interval = interval
        self.max_messages = max_messages
        self.wait_time = wait_time

    def run_cycle(self) -> DlqCycleSummary:
        """Receive one batch from the DLQ and retry every notification in it."""
        summary = DlqCycleSummary()
        try:
            messages = self.queue.receive(max_messages=self.max_messages, wait_time=self.wait_time)
        except Exception:
            logger.exception("Failed to receive from %s", self.queue.name)
            return summary

        for message in messages:
            try:
                if self._retry(message):
                    summary.success += 1
                else:
                    summary.failure += 1
            finally:
                self._delete(message)

        if messages:
            logger.info(
                "DLQ cycle finished: %d succeeded, %d failed", summary.success, summary.failure
            )
        self.reporter.dlq_cycle(summary.success, summary.failure)
        return summary

    def run(self, stop_event: threading.Event) -> None:
        """Run a cycle every interval seconds until the stop event is set."""
        logger.info("Notification DLQ worker started on %s", self.queue.name)
        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Unexpected DLQ worker error")
            stop_event.wait(self.interval)
        logger.info("Notification DLQ worker stopped")

    def _retry(self, message: QueueMessage) -> bool:
        try:
            notification = DeadLetterNotification.from_json(message.body)
        except Exception as e:
            logger.error("Discarding unreadable dead-letter message %s: %s", message.message_id, e)
            return False

        try:
            result = self.channel.retry_from_dead_letter(
                notification, message.attributes.get(CORRELATION_ID_ATTRIBUTE)
            )
        except Exception:
            logger.exception(
                "Retry of notification %s for file %s failed; manual review required",
                notification.notification_id,
                notification.file_id,
            )
            return False
        if not result.success:
            logger.error(
                "Notification %s for file %s still failing; manual review required: %s",
                notification.notification_id,
                notification.file_id,
                result.error_message,
            )
        return result.success

    def _delete(self, message: QueueMessage) -> None:
        try:
            self.queue.delete(message.receipt_handle)
        except Exception:
            logger.exception("Failed to delete dead-letter message %s", message.message_id)
