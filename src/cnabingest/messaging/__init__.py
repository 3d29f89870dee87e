"""Queue, object storage and AWS adapters.

Workers live in messaging.worker and messaging.dlq_worker; they depend on
domain services and are imported from there directly.
"""

from cnabingest.messaging.messages import FileProcessingMessage, InvalidMessageError
from cnabingest.messaging.queue import MessageQueue, QueueMessage, SqsMessageQueue
from cnabingest.messaging.storage import LocalDirectoryStorage, ObjectStorage, S3ObjectStorage

__all__ = [
    "FileProcessingMessage",
    "InvalidMessageError",
    "MessageQueue",
    "QueueMessage",
    "SqsMessageQueue",
    "ObjectStorage",
    "S3ObjectStorage",
    "LocalDirectoryStorage",
]
