"""Email delivery through Amazon SES."""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from cnabingest.domain.errors import NotificationDeliveryError
from cnabingest.domain.notifications import NotificationSender

logger = logging.getLogger(__name__)


class SesNotificationSender(NotificationSender):
    """Sends plain-text notification emails with SES send_email."""

    def __init__(self, client: Any, source_address: str):
        """Initialize SES sender.

        Args:
            client: boto3 SES client
            source_address: Verified sender address
        """
        self.client = client
        self.source_address = source_address

    def send(self, recipient: str, subject: str, body: str) -> None:
        try:
            response = self.client.send_email(
                Source=self.source_address,
                Destination={"ToAddresses": [recipient]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise NotificationDeliveryError(f"Failed to send email to {recipient}: {e}") from e
        logger.info("Sent email to %s (message %s)", recipient, response.get("MessageId"))
