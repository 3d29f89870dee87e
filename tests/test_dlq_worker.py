"""Tests for the notification dead-letter worker."""

import json

from cnabingest.domain.notifications import PROCESSING_COMPLETED, NotificationChannel
from cnabingest.domain.reporting import Reporter
from cnabingest.messaging.dlq_worker import NotificationDlqWorker

from conftest import FakeQueue, RecordingSender


def dead_letter(notification_id: str) -> str:
    return json.dumps(
        {
            "notificationId": notification_id,
            "fileId": "file-1",
            "notificationType": PROCESSING_COMPLETED,
            "recipientEmail": "ops@example.com",
            "attemptCount": 3,
            "lastAttemptAt": "2024-06-01T12:00:00+00:00",
            "errorMessage": "failed",
            "context": {"status": "Processed", "details": "1 transaction(s)"},
        }
    )


class FlakySender(RecordingSender):
    """Fails every attempt whose body contains one of the given texts."""

    def __init__(self, failing_texts):
        super().__init__()
        self.failing_texts = failing_texts

    def send(self, recipient, subject, body):
        self.attempts += 1
        if any(failing in body for failing in self.failing_texts):
            raise RuntimeError("smtp refused")
        self.sent.append((recipient, subject, body))


def make_worker(queue, sender):
    channel = NotificationChannel(sender, "ops@example.com", sleep=lambda _: None)
    return NotificationDlqWorker(queue, channel, interval=0)


def test_every_message_is_deleted_once_per_cycle():
    queue = FakeQueue()
    good = queue.add(dead_letter("n-1"))
    bad = queue.add(dead_letter("n-2").replace("1 transaction(s)", "poisoned details"))
    worker = make_worker(queue, FlakySender(["poisoned details"]))

    summary = worker.run_cycle()

    assert (summary.success, summary.failure) == (1, 1)
    assert queue.deleted == [good.receipt_handle, bad.receipt_handle]


def test_unreadable_message_is_deleted_and_counted_as_failure():
    queue = FakeQueue()
    poison = queue.add("not json")
    sender = RecordingSender()

    summary = make_worker(queue, sender).run_cycle()

    assert (summary.success, summary.failure) == (0, 1)
    assert queue.deleted == [poison.receipt_handle]
    assert sender.attempts == 0


def test_receive_failure_returns_empty_summary():
    queue = FakeQueue()
    queue.receive_error = RuntimeError("network down")

    summary = make_worker(queue, RecordingSender()).run_cycle()

    assert (summary.success, summary.failure) == (0, 0)
    assert queue.deleted == []


def test_empty_cycle():
    summary = make_worker(FakeQueue(), RecordingSender()).run_cycle()

    assert (summary.success, summary.failure) == (0, 0)


def test_null_context_status_does_not_stop_the_cycle():
    queue = FakeQueue()
    queue.add(dead_letter("n-1").replace('"status": "Processed"', '"status": null'))
    queue.add(dead_letter("n-2"))
    sender = RecordingSender()

    summary = make_worker(queue, sender).run_cycle()

    assert (summary.success, summary.failure) == (2, 0)
    assert queue.deleted == ["rh-1", "rh-2"]
    assert sender.sent[0][1] == "CNAB file file-1 processed"


class ExplodingReporter(Reporter):
    """Reporter that fails on the first notification it hears about."""

    def __init__(self):
        self.calls = 0

    def notification_sent(self, notification_type, success, attempts):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("reporter backend down")


def test_unexpected_retry_error_still_deletes_every_message():
    queue = FakeQueue()
    queue.add(dead_letter("n-1"))
    queue.add(dead_letter("n-2"))
    channel = NotificationChannel(
        RecordingSender(), "ops@example.com", reporter=ExplodingReporter(), sleep=lambda _: None
    )

    summary = NotificationDlqWorker(queue, channel, interval=0).run_cycle()

    assert (summary.success, summary.failure) == (1, 1)
    assert queue.deleted == ["rh-1", "rh-2"]
