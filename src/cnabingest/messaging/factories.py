"""Factory functions for queue, storage and notification adapters."""

from typing import Optional

from cnabingest.config import WorkerSettings
from cnabingest.domain.notifications import (
    LoggingNotificationSender,
    NotificationChannel,
    NotificationSender,
)
from cnabingest.domain.reporting import Reporter
from cnabingest.messaging.aws import create_client
from cnabingest.messaging.queue import MessageQueue, SqsMessageQueue
from cnabingest.messaging.ses import SesNotificationSender
from cnabingest.messaging.storage import LocalDirectoryStorage, ObjectStorage, S3ObjectStorage


def create_storage(settings: WorkerSettings) -> ObjectStorage:
    """Create object storage: a local directory if configured, else the S3 bucket.

    Raises:
        ValueError: If neither CNAB_STORAGE_DIR nor CNAB_BUCKET is set
    """
    if settings.storage_dir:
        return LocalDirectoryStorage(settings.storage_dir)
    if settings.bucket:
        client = create_client("s3", settings.aws_region, settings.aws_endpoint_url)
        return S3ObjectStorage(client, settings.bucket)
    raise ValueError("No object storage configured: set CNAB_STORAGE_DIR or CNAB_BUCKET")


def create_queue(queue_url: Optional[str], settings: WorkerSettings, variable: str) -> MessageQueue:
    """Create an SQS queue for a URL.

    Raises:
        ValueError: If the URL is not configured
    """
    if not queue_url:
        raise ValueError(f"No queue configured: set {variable}")
    client = create_client("sqs", settings.aws_region, settings.aws_endpoint_url)
    return SqsMessageQueue(client, queue_url)


def create_notification_sender(settings: WorkerSettings) -> NotificationSender:
    """Create the SES sender when a source address is configured, else a logging sender."""
    if settings.notify_sender:
        client = create_client("ses", settings.aws_region, settings.aws_endpoint_url)
        return SesNotificationSender(client, settings.notify_sender)
    return LoggingNotificationSender()


def create_notification_channel(
    settings: WorkerSettings, reporter: Optional[Reporter] = None
) -> NotificationChannel:
    """Create a notification channel with its optional dead-letter queue."""
    dlq = None
    if settings.notification_dlq_url:
        dlq = create_queue(settings.notification_dlq_url, settings, "CNAB_NOTIFICATION_DLQ_URL")
    return NotificationChannel(
        sender=create_notification_sender(settings),
        recipient=settings.notify_recipient,
        dlq=dlq,
        reporter=reporter,
    )
