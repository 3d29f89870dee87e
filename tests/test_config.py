"""Tests for environment configuration."""

import pytest

from cnabingest.config import DEFAULT_NOTIFY_RECIPIENT, WorkerSettings


def test_defaults_from_empty_environment():
    settings = WorkerSettings.from_env({})

    assert settings.queue_url is None
    assert settings.bucket is None
    assert settings.notify_recipient == DEFAULT_NOTIFY_RECIPIENT
    assert settings.empty_queue_delay == 5.0
    assert settings.dlq_interval == 60.0


def test_values_from_environment():
    settings = WorkerSettings.from_env(
        {
            "CNAB_DB_URL": "postgresql://localhost/cnab",
            "CNAB_QUEUE_URL": "https://sqs.us-east-1.amazonaws.com/1/cnab-files",
            "CNAB_NOTIFICATION_DLQ_URL": "https://sqs.us-east-1.amazonaws.com/1/cnab-dlq",
            "CNAB_BUCKET": "cnab-uploads",
            "AWS_REGION": "us-east-1",
            "CNAB_NOTIFY_RECIPIENT": "finance@example.com",
            "CNAB_EMPTY_QUEUE_DELAY": "0.5",
            "CNAB_DLQ_INTERVAL": "",
        }
    )

    assert settings.db_url == "postgresql://localhost/cnab"
    assert settings.queue_url.endswith("cnab-files")
    assert settings.notification_dlq_url.endswith("cnab-dlq")
    assert settings.bucket == "cnab-uploads"
    assert settings.aws_region == "us-east-1"
    assert settings.notify_recipient == "finance@example.com"
    assert settings.empty_queue_delay == 0.5
    assert settings.dlq_interval == 60.0


@pytest.mark.parametrize("value, message", [("soon", "must be a number"), ("-1", "must not be negative")])
def test_invalid_numbers(value, message):
    with pytest.raises(ValueError, match=message):
        WorkerSettings.from_env({"CNAB_EMPTY_QUEUE_DELAY": value})
