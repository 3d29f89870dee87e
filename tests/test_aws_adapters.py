"""Tests for the SQS, S3 and SES adapters using stub boto3 clients."""

import io

import pytest
from botocore.exceptions import ClientError

from cnabingest.domain.errors import NotificationDeliveryError, TransientInfrastructureError
from cnabingest.messaging.queue import SqsMessageQueue
from cnabingest.messaging.ses import SesNotificationSender
from cnabingest.messaging.storage import LocalDirectoryStorage, S3ObjectStorage

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/cnab-files"


def client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "ServiceUnavailable", "Message": "try later"}}, operation)


class StubClient:
    """Records calls and returns canned responses keyed by method name."""

    def __init__(self, responses=None, errors=None):
        self.calls = []
        self.responses = responses or {}
        self.errors = errors or {}

    def __getattr__(self, name):
        def method(**kwargs):
            self.calls.append((name, kwargs))
            if name in self.errors:
                raise self.errors[name]
            return self.responses.get(name, {})

        return method


class TestSqsMessageQueue:
    def test_name_defaults_to_last_url_segment(self):
        assert SqsMessageQueue(StubClient(), QUEUE_URL).name == "cnab-files"

    def test_receive_maps_messages(self):
        client = StubClient(
            responses={
                "receive_message": {
                    "Messages": [
                        {
                            "MessageId": "m-1",
                            "ReceiptHandle": "rh-1",
                            "Body": "{}",
                            "MessageAttributes": {
                                "CorrelationId": {"DataType": "String", "StringValue": "corr-1"}
                            },
                        }
                    ]
                }
            }
        )
        queue = SqsMessageQueue(client, QUEUE_URL)

        messages = queue.receive(max_messages=10, visibility_timeout=300, wait_time=20)

        assert len(messages) == 1
        assert messages[0].receipt_handle == "rh-1"
        assert messages[0].attributes == {"CorrelationId": "corr-1"}
        name, kwargs = client.calls[0]
        assert name == "receive_message"
        assert kwargs["MaxNumberOfMessages"] == 10
        assert kwargs["VisibilityTimeout"] == 300
        assert kwargs["WaitTimeSeconds"] == 20

    def test_empty_receive(self):
        assert SqsMessageQueue(StubClient(), QUEUE_URL).receive() == []

    def test_release_resets_visibility(self):
        client = StubClient()

        SqsMessageQueue(client, QUEUE_URL).release("rh-1")

        assert client.calls == [
            (
                "change_message_visibility",
                {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1", "VisibilityTimeout": 0},
            )
        ]

    def test_send_with_attributes(self):
        client = StubClient(responses={"send_message": {"MessageId": "m-9"}})

        message_id = SqsMessageQueue(client, QUEUE_URL).send("{}", {"CorrelationId": "corr-1"})

        assert message_id == "m-9"
        _, kwargs = client.calls[0]
        assert kwargs["MessageAttributes"] == {
            "CorrelationId": {"DataType": "String", "StringValue": "corr-1"}
        }

    @pytest.mark.parametrize("method", ["receive_message", "delete_message"])
    def test_client_errors_are_transient(self, method):
        queue = SqsMessageQueue(StubClient(errors={method: client_error(method)}), QUEUE_URL)

        with pytest.raises(TransientInfrastructureError):
            if method == "receive_message":
                queue.receive()
            else:
                queue.delete("rh-1")


class TestS3ObjectStorage:
    def test_open_reads_at_most_max_bytes(self):
        client = StubClient(responses={"get_object": {"Body": io.BytesIO(b"0123456789")}})

        handle = S3ObjectStorage(client, "cnab-uploads").open("cnab/1/CNAB.txt", max_bytes=4)

        assert handle.read() == b"0123"
        assert client.calls[0] == ("get_object", {"Bucket": "cnab-uploads", "Key": "cnab/1/CNAB.txt"})

    def test_put(self):
        client = StubClient()

        S3ObjectStorage(client, "cnab-uploads").put("cnab/1/CNAB.txt", b"data")

        _, kwargs = client.calls[0]
        assert kwargs["Body"] == b"data"
        assert kwargs["ContentType"] == "text/plain"

    def test_download_error_is_transient(self):
        client = StubClient(errors={"get_object": client_error("GetObject")})

        with pytest.raises(TransientInfrastructureError, match="s3://cnab-uploads/key"):
            S3ObjectStorage(client, "cnab-uploads").open("key")


class TestLocalDirectoryStorage:
    def test_put_and_open(self, tmp_path):
        storage = LocalDirectoryStorage(tmp_path)

        storage.put("cnab/1/CNAB.txt", b"content")

        with storage.open("cnab/1/CNAB.txt") as handle:
            assert handle.read() == b"content"
        assert (tmp_path / "cnab" / "1" / "CNAB.txt").exists()

    def test_key_cannot_escape_root(self, tmp_path):
        with pytest.raises(ValueError, match="escapes"):
            LocalDirectoryStorage(tmp_path / "root").put("../outside.txt", b"x")

    def test_missing_object_is_transient(self, tmp_path):
        with pytest.raises(TransientInfrastructureError):
            LocalDirectoryStorage(tmp_path).open("missing.txt")


class TestSesNotificationSender:
    def test_send_email(self):
        client = StubClient(responses={"send_email": {"MessageId": "ses-1"}})

        SesNotificationSender(client, "noreply@example.com").send("ops@example.com", "Subject", "Body")

        name, kwargs = client.calls[0]
        assert name == "send_email"
        assert kwargs["Source"] == "noreply@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["ops@example.com"]}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Body"

    def test_client_error_is_delivery_error(self):
        client = StubClient(errors={"send_email": client_error("SendEmail")})

        with pytest.raises(NotificationDeliveryError):
            SesNotificationSender(client, "noreply@example.com").send("ops@example.com", "S", "B")
