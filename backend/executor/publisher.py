"""Publish job results to the response queue.

Publishing is fire-and-forget: failures are logged and dropped so that a
broken response channel never affects how the job itself is handled.
"""

import json
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from common.logging import get_logger
from executor.job_queue import get_sqs_client

if TYPE_CHECKING:
    from mypy_boto3_sqs import SQSClient

logger = get_logger(__name__)


class ResultPublisher:
    """Sends ``{"jobId": ..., "result": ...}`` messages to SQS."""

    def __init__(self, *, sqs_client: "SQSClient | None" = None):
        """Initialize the publisher.

        Args:
            sqs_client: Optional SQS client (for testing). Uses default if not provided.
        """
        self._sqs = sqs_client or get_sqs_client()

    def publish(self, response_queue_url: str, job_id: str, result: str) -> bool:
        """Send a result message.

        Args:
            response_queue_url: Queue to publish to.
            job_id: Originating job id (or ``"unknown"``).
            result: Result text; embedded as a JSON string, not re-parsed.

        Returns:
            True if the message was sent, False if it was dropped.
        """
        try:
            body = json.dumps({"jobId": job_id, "result": result}, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize result message for job {job_id}: {e}")
            return False

        try:
            response = self._sqs.send_message(QueueUrl=response_queue_url, MessageBody=body)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to send result message",
                extra={"job_id": job_id, "error": str(e)},
            )
            return False

        logger.info(
            "Published result",
            extra={"job_id": job_id, "message_id": response.get("MessageId")},
        )
        return True
