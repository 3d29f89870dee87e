"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_EMPTY_QUEUE_DELAY = 5.0
DEFAULT_DLQ_INTERVAL = 60.0
DEFAULT_NOTIFY_RECIPIENT = "notifications@cnabingest.local"


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got '{raw}'")
    return value


@dataclass(frozen=True)
class WorkerSettings:
    """Settings shared by the CLI and the workers.

    Unset AWS values leave boto3's own resolution (profile, instance role,
    AWS_DEFAULT_REGION) in charge.
    """

    db_url: Optional[str] = None
    queue_url: Optional[str] = None
    notification_dlq_url: Optional[str] = None
    bucket: Optional[str] = None
    storage_dir: Optional[str] = None
    aws_region: Optional[str] = None
    aws_endpoint_url: Optional[str] = None
    notify_recipient: str = DEFAULT_NOTIFY_RECIPIENT
    notify_sender: Optional[str] = None
    empty_queue_delay: float = DEFAULT_EMPTY_QUEUE_DELAY
    dlq_interval: float = DEFAULT_DLQ_INTERVAL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "WorkerSettings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is malformed
        """
        env = os.environ if env is None else env
        return cls(
            db_url=env.get("CNAB_DB_URL") or None,
            queue_url=env.get("CNAB_QUEUE_URL") or None,
            notification_dlq_url=env.get("CNAB_NOTIFICATION_DLQ_URL") or None,
            bucket=env.get("CNAB_BUCKET") or None,
            storage_dir=env.get("CNAB_STORAGE_DIR") or None,
            aws_region=env.get("AWS_REGION") or None,
            aws_endpoint_url=env.get("AWS_ENDPOINT_URL") or None,
            notify_recipient=env.get("CNAB_NOTIFY_RECIPIENT") or DEFAULT_NOTIFY_RECIPIENT,
            notify_sender=env.get("CNAB_NOTIFY_SENDER") or None,
            empty_queue_delay=_float_env(env, "CNAB_EMPTY_QUEUE_DELAY", DEFAULT_EMPTY_QUEUE_DELAY),
            dlq_interval=_float_env(env, "CNAB_DLQ_INTERVAL", DEFAULT_DLQ_INTERVAL),
        )
