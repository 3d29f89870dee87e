"""boto3 client construction."""

from typing import Any, Optional

import boto3
from botocore.config import Config

# botocore "standard" retry mode: exponential backoff with jitter on
# throttling and transient network errors.
DEFAULT_CLIENT_CONFIG = Config(retries={"mode": "standard", "max_attempts": 5})


def create_client(
    service_name: str,
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    config: Config = DEFAULT_CLIENT_CONFIG,
) -> Any:
    """Create a boto3 client for sqs, s3 or ses.

    Args:
        service_name: AWS service name
        region_name: AWS region; boto3's own resolution applies when None
        endpoint_url: Override endpoint (LocalStack and similar)
        config: botocore client configuration
    """
    return boto3.client(
        service_name,
        region_name=region_name,
        endpoint_url=endpoint_url,
        config=config,
    )
