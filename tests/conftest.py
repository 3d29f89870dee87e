"""Shared pytest fixtures for cnabingest tests."""

import io
import tempfile
import os
import uuid
from datetime import datetime, UTC
from typing import Optional

import pytest
from click.testing import CliRunner

from cnabingest.database.factories import create_sqlite_database
from cnabingest.domain.errors import NotificationDeliveryError, TransientInfrastructureError
from cnabingest.domain.ingestion import IngestionOrchestrator
from cnabingest.domain.notifications import NotificationSender
from cnabingest.messaging.queue import MessageQueue, QueueMessage
from cnabingest.messaging.storage import ObjectStorage

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def make_line(
    type_code="3",
    occurred_on="20190301",
    amount="0000014200",
    customer_id="09620676017",
    card_id="4753****3153",
    occurred_at="153453",
    owner_name="JOAO MACEDO",
    store_name="BAR DO JOAO",
) -> str:
    """Build one 80-character CNAB line from field values."""
    line = (
        f"{type_code:1.1s}"
        f"{occurred_on:8.8s}"
        f"{amount:10.10s}"
        f"{customer_id:11.11s}"
        f"{card_id:12.12s}"
        f"{occurred_at:6.6s}"
        f"{owner_name:14.14s}"
        f"{store_name:18.18s}"
    )
    assert len(line) == 80
    return line


def make_file(*lines: str) -> bytes:
    """Join lines into file content with a trailing newline."""
    return ("\n".join(lines) + "\n").encode("ascii")


class InMemoryStorage(ObjectStorage):
    """Object storage backed by a dict."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.fail_reads = False

    def put(self, key: str, data: bytes) -> None:
        self.objects[key] = data

    def open(self, key: str, max_bytes: Optional[int] = None):
        if self.fail_reads:
            raise TransientInfrastructureError("storage unavailable")
        if key not in self.objects:
            raise TransientInfrastructureError(f"no such object {key}")
        return io.BytesIO(self.objects[key])


class FakeQueue(MessageQueue):
    """In-memory queue recording deletes, releases and sends."""

    name = "fake-queue"

    def __init__(self):
        self.pending: list[QueueMessage] = []
        self.deleted: list[str] = []
        self.released: list[str] = []
        self.sent: list[tuple[str, dict]] = []
        self.receive_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self._counter = 0

    def add(self, body: Optional[str], attributes: Optional[dict] = None) -> QueueMessage:
        self._counter += 1
        message = QueueMessage(
            message_id=f"msg-{self._counter}",
            receipt_handle=f"rh-{self._counter}",
            body=body,
            attributes=attributes or {},
        )
        self.pending.append(message)
        return message

    def receive(self, max_messages=10, visibility_timeout=300, wait_time=20):
        if self.receive_error is not None:
            raise self.receive_error
        batch, self.pending = self.pending[:max_messages], self.pending[max_messages:]
        return batch

    def delete(self, receipt_handle: str) -> None:
        self.deleted.append(receipt_handle)

    def release(self, receipt_handle: str) -> None:
        self.released.append(receipt_handle)

    def send(self, body: str, attributes: Optional[dict] = None) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((body, attributes or {}))
        return f"sent-{len(self.sent)}"


class RecordingSender(NotificationSender):
    """Sender that fails a configurable number of times, then succeeds."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise NotificationDeliveryError(f"attempt {self.attempts} failed")
        self.sent.append((recipient, subject, body))


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Fixed clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def fake_queue():
    return FakeQueue()


@pytest.fixture
def orchestrator(temp_db, storage, clock):
    """IngestionOrchestrator over the temporary database and in-memory storage."""
    return IngestionOrchestrator(temp_db, storage, clock=clock)


@pytest.fixture
def upload(temp_db, storage):
    """Store content and create its Uploaded file record. Returns the file ID."""

    def _upload(content: bytes, name: str = "CNAB.txt") -> str:
        file_id = str(uuid.uuid4())
        key = f"cnab/{file_id}/{name}"
        storage.put(key, content)
        return temp_db.create_file(name=name, size=len(content), object_key=key, file_id=file_id)

    return _upload


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()
