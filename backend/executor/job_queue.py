"""SQS job source: long-poll for job messages and delete them once handled."""

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

import boto3

from common.config import settings
from common.logging import get_logger

if TYPE_CHECKING:
    from mypy_boto3_sqs import SQSClient

logger = get_logger(__name__)


@lru_cache
def get_sqs_client() -> "SQSClient":
    """Get cached SQS client."""
    return boto3.client("sqs", region_name=settings.aws_region or None)


@dataclass(frozen=True)
class QueueMessage:
    """A received message: its body plus the handle needed to delete it."""

    message_id: str
    receipt_handle: str
    body: str


class JobQueue:
    """Long-polling consumer for the job request queue."""

    def __init__(self, *, queue_url: str | None = None, sqs_client: "SQSClient | None" = None):
        """Initialize the queue consumer.

        Args:
            queue_url: URL of the request queue. Falls back to
                ``settings.request_queue_url`` when not provided.
            sqs_client: Optional SQS client (for testing). Uses default if not provided.

        Raises:
            RuntimeError: If no queue URL is available.
        """
        self._queue_url = queue_url or settings.request_queue_url
        if not self._queue_url:
            raise RuntimeError("JobQueue requires REQUEST_QUEUE_URL to be set")
        self._sqs = sqs_client or get_sqs_client()

    def receive(self, wait_seconds: int, max_messages: int = 1) -> list[QueueMessage]:
        """Long-poll for up to ``max_messages`` messages.

        Transport errors propagate to the caller.
        """
        response = self._sqs.receive_message(
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
        )
        return [
            QueueMessage(
                message_id=m.get("MessageId", "unknown"),
                receipt_handle=m["ReceiptHandle"],
                body=m.get("Body", ""),
            )
            for m in response.get("Messages", [])
        ]

    def delete(self, message: QueueMessage) -> None:
        """Acknowledge a message so it is not redelivered."""
        self._sqs.delete_message(QueueUrl=self._queue_url, ReceiptHandle=message.receipt_handle)
        logger.debug(f"Deleted message {message.message_id}")
