"""Processing observers.

Services receive a Reporter instead of touching process-wide counters; the
default does nothing, LoggingReporter writes each event to the log.
"""

import logging

logger = logging.getLogger(__name__)


class Reporter:
    """No-op observer of pipeline events."""

    def file_processed(self, outcome: str, duration: float) -> None:
        pass

    def message_handled(self, queue: str, action: str) -> None:
        pass

    def notification_sent(self, notification_type: str, success: bool, attempts: int) -> None:
        pass

    def dlq_cycle(self, success: int, failure: int) -> None:
        pass


class LoggingReporter(Reporter):
    """Reporter that logs every event at DEBUG."""

    def file_processed(self, outcome: str, duration: float) -> None:
        logger.debug("file_processed outcome=%s duration=%.3fs", outcome, duration)

    def message_handled(self, queue: str, action: str) -> None:
        logger.debug("message_handled queue=%s action=%s", queue, action)

    def notification_sent(self, notification_type: str, success: bool, attempts: int) -> None:
        logger.debug(
            "notification_sent type=%s success=%s attempts=%d", notification_type, success, attempts
        )

    def dlq_cycle(self, success: int, failure: int) -> None:
        logger.debug("dlq_cycle success=%d failure=%d", success, failure)
