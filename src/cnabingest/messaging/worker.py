"""Competing-consumer worker for the file processing queue."""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cnabingest.domain.ingestion import IngestionOrchestrator
from cnabingest.domain.reporting import Reporter
from cnabingest.messaging.messages import (
    CORRELATION_ID_ATTRIBUTE,
    FileProcessingMessage,
    InvalidMessageError,
)
from cnabingest.messaging.queue import MessageQueue, QueueMessage
from cnabingest.utils.logging_setup import context_logger

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 10
DEFAULT_VISIBILITY_TIMEOUT = 300
DEFAULT_WAIT_TIME = 20
DEFAULT_EMPTY_QUEUE_DELAY = 5.0


class WorkerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    DISPATCHING = "dispatching"
    PROCESSING = "processing"
    ACK = "ack"
    RETAIN = "retain"
    STOPPED = "stopped"


class MessageAction(str, Enum):
    """What the worker did with a message."""

    DELETED = "deleted"
    POISON = "poison"
    RETAINED = "retained"
    RELEASED = "released"


@dataclass
class BatchSummary:
    received: int = 0
    deleted: int = 0
    retained: int = 0
    released: int = 0
    receive_failed: bool = False


class QueueWorker:
    """Receives processing messages and dispatches them to the orchestrator.

    A message is deleted once its file reaches a terminal status, or when it
    cannot be decoded at all. Any exception from processing leaves the
    message on the queue; it reappears after the visibility timeout.
    """

    def __init__(
        self,
        queue: MessageQueue,
        orchestrator: IngestionOrchestrator,
        reporter: Optional[Reporter] = None,
        stop_event: Optional[threading.Event] = None,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT,
        wait_time: int = DEFAULT_WAIT_TIME,
        empty_queue_delay: float = DEFAULT_EMPTY_QUEUE_DELAY,
    ):
        self.queue = queue
        self.orchestrator = orchestrator
        self.reporter = reporter or Reporter()
        self.stop_event = stop_event or threading.Event()
        self.max_messages = max_messages
        self.visibility_timeout = visibility_timeout
        self.wait_time = wait_time
        self.empty_queue_delay = empty_queue_delay
        self.state = WorkerState.IDLE

    def _transition(self, state: WorkerState) -> bool:
        """Enter state unless a stop was requested. Returns False when stopping."""
        if self.stop_event.is_set():
            return False
        logger.debug("Worker %s -> %s", self.state.value, state.value)
        self.state = state
        return True

    def run_once(self) -> BatchSummary:
        """Receive and handle one batch."""
        summary = BatchSummary()
        if not self._transition(WorkerState.POLLING):
            return summary

        try:
            messages = self.queue.receive(
                max_messages=self.max_messages,
                visibility_timeout=self.visibility_timeout,
                wait_time=self.wait_time,
            )
        except Exception:
            logger.exception("Failed to receive from %s", self.queue.name)
            summary.receive_failed = True
            self.state = WorkerState.IDLE
            return summary

        summary.received = len(messages)
        for index, message in enumerate(messages):
            if not self._transition(WorkerState.DISPATCHING):
                summary.released += self._release(messages[index:])
                break
            action = self.handle_message(message)
            if action in (MessageAction.DELETED, MessageAction.POISON):
                summary.deleted += 1
            else:
                summary.retained += 1

        if self.state != WorkerState.STOPPED:
            self.state = WorkerState.IDLE
        return summary

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Poll until the stop event is set."""
        if stop_event is not None:
            self.stop_event = stop_event
        logger.info("Worker started on %s", self.queue.name)
        while not self.stop_event.is_set():
            try:
                summary = self.run_once()
            except Exception:
                logger.exception("Unexpected worker error")
                summary = BatchSummary(receive_failed=True)
            if summary.received == 0:
                self.stop_event.wait(self.empty_queue_delay)
        self.state = WorkerState.STOPPED
        logger.info("Worker stopped")

    def handle_message(self, message: QueueMessage) -> MessageAction:
        """Process one message and delete or retain it."""
        try:
            request = FileProcessingMessage.from_json(
                message.body, message.attributes.get(CORRELATION_ID_ATTRIBUTE)
            )
        except InvalidMessageError as e:
            logger.error("Discarding unreadable message %s: %s", message.message_id, e)
            self._delete(message)
            self.reporter.message_handled(self.queue.name, MessageAction.POISON.value)
            return MessageAction.POISON

        log = context_logger(logger, request.correlation_id, request.file_id)
        self.state = WorkerState.PROCESSING
        try:
            result = self.orchestrator.process_file(
                request.file_id,
                object_key=request.object_key,
                file_name=request.file_name,
                correlation_id=request.correlation_id,
            )
        except Exception:
            self.state = WorkerState.RETAIN
            log.exception("Processing failed; message %s retained for redelivery", message.message_id)
            self.reporter.message_handled(self.queue.name, MessageAction.RETAINED.value)
            return MessageAction.RETAINED

        self.state = WorkerState.ACK
        log.info("File %s; deleting message %s", result.outcome.value, message.message_id)
        self._delete(message)
        self.reporter.message_handled(self.queue.name, MessageAction.DELETED.value)
        return MessageAction.DELETED

    def _delete(self, message: QueueMessage) -> None:
        try:
            self.queue.delete(message.receipt_handle)
        except Exception:
            # A redelivered message finds its file terminal
            logger.exception("Failed to delete message %s", message.message_id)

    def _release(self, messages: list[QueueMessage]) -> int:
        released = 0
        for message in messages:
            try:
                self.queue.release(message.receipt_handle)
                released += 1
            except Exception:
                logger.exception("Failed to release message %s", message.message_id)
            self.reporter.message_handled(self.queue.name, MessageAction.RELEASED.value)
        self.state = WorkerState.STOPPED
        logger.info("Stop requested; released %d unstarted message(s)", released)
        return released
