"""Message queue interface and its SQS implementation."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from cnabingest.domain.errors import TransientInfrastructureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueMessage:
    """A received message and the handle needed to acknowledge it."""

    message_id: str
    receipt_handle: str
    body: Optional[str]
    attributes: dict[str, str] = field(default_factory=dict)


class MessageQueue(ABC):
    """At-least-once queue with visibility timeouts."""

    name: str = "queue"

    @abstractmethod
    def receive(
        self, max_messages: int = 10, visibility_timeout: int = 300, wait_time: int = 20
    ) -> list[QueueMessage]:
        """Receive up to max_messages, hiding them for visibility_timeout seconds."""
        pass

    @abstractmethod
    def delete(self, receipt_handle: str) -> None:
        """Acknowledge a message so it is never redelivered."""
        pass

    @abstractmethod
    def release(self, receipt_handle: str) -> None:
        """Make a received message visible again immediately."""
        pass

    @abstractmethod
    def send(self, body: str, attributes: Optional[dict[str, str]] = None) -> str:
        """Publish a message. Returns the message ID."""
        pass


class SqsMessageQueue(MessageQueue):
    """Amazon SQS queue.

    botocore failures are raised as TransientInfrastructureError; client-level
    retries are configured on the boto3 client itself.
    """

    def __init__(self, client: Any, queue_url: str, name: Optional[str] = None):
        """Initialize SQS queue.

        Args:
            client: boto3 SQS client
            queue_url: Queue URL
            name: Label used in logs and reports (defaults to the URL's last segment)
        """
        self.client = client
        self.queue_url = queue_url
        self.name = name or queue_url.rstrip("/").rsplit("/", 1)[-1]

    def receive(
        self, max_messages: int = 10, visibility_timeout: int = 300, wait_time: int = 20
    ) -> list[QueueMessage]:
        try:
            response = self.client.receive_message(
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=max_messages,
                VisibilityTimeout=visibility_timeout,
                WaitTimeSeconds=wait_time,
                MessageAttributeNames=["All"],
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to receive from {self.name}: {e}") from e

        messages = []
        for raw in response.get("Messages", []):
            attributes = {
                key: value["StringValue"]
                for key, value in raw.get("MessageAttributes", {}).items()
                if "StringValue" in value
            }
            messages.append(
                QueueMessage(
                    message_id=raw["MessageId"],
                    receipt_handle=raw["ReceiptHandle"],
                    body=raw.get("Body"),
                    attributes=attributes,
                )
            )
        return messages

    def delete(self, receipt_handle: str) -> None:
        try:
            self.client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to delete from {self.name}: {e}") from e

    def release(self, receipt_handle: str) -> None:
        try:
            self.client.change_message_visibility(
                QueueUrl=self.queue_url, ReceiptHandle=receipt_handle, VisibilityTimeout=0
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to release on {self.name}: {e}") from e

    def send(self, body: str, attributes: Optional[dict[str, str]] = None) -> str:
        message_attributes = {
            key: {"DataType": "String", "StringValue": value}
            for key, value in (attributes or {}).items()
        }
        try:
            response = self.client.send_message(
                QueueUrl=self.queue_url,
                MessageBody=body,
                MessageAttributes=message_attributes,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to send to {self.name}: {e}") from e
        logger.debug("Sent message %s to %s", response["MessageId"], self.name)
        return response["MessageId"]
