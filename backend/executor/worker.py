"""
Executor Worker - Processes code submissions from the job queue.

Each message names an artifact in S3 and its language. The worker downloads
the artifact into a private scratch directory, runs it in a sandbox
container, and publishes the outcome to the response queue. Jobs run one at
a time; scale out by running more workers.

A message is deleted only after its result was published from a run that
either printed a ``RESULT:`` line or hit the time limit. Every other outcome
leaves the message on the queue so SQS redelivers it.
"""

import asyncio
import signal
import sys

from botocore.exceptions import BotoCoreError, ClientError

from common.config import settings
from common.logging import configure_logging, get_logger
from executor.codec import decode_result
from executor.errors import UNKNOWN_JOB_ID, WorkerError
from executor.fetcher import ArtifactFetcher, scratch_directory
from executor.job_queue import JobQueue, QueueMessage
from executor.models import JobMessage, ResultEnvelope
from executor.publisher import ResultPublisher
from executor.sandbox import SandboxExecutor

logger = get_logger(__name__)


class ExecutorWorker:
    """
    Worker process that handles code execution jobs.

    Polls the request queue, executes each job in a fresh container and
    reports the result on the response queue.
    """

    def __init__(
        self,
        *,
        job_queue: JobQueue | None = None,
        fetcher: ArtifactFetcher | None = None,
        sandbox: SandboxExecutor | None = None,
        publisher: ResultPublisher | None = None,
        response_queue_url: str | None = None,
        poll_wait_seconds: int | None = None,
    ) -> None:
        """Initialize the worker, building default collaborators from settings.

        Raises:
            RuntimeError: If no response queue URL is available.
        """
        self.response_queue_url = response_queue_url or settings.response_queue_url
        if not self.response_queue_url:
            raise RuntimeError("ExecutorWorker requires RESPONSE_QUEUE_URL to be set")

        self.job_queue = job_queue or JobQueue()
        self.fetcher = fetcher or ArtifactFetcher()
        self.sandbox = sandbox or SandboxExecutor()
        self.publisher = publisher or ResultPublisher()
        self.poll_wait_seconds = (
            poll_wait_seconds if poll_wait_seconds is not None else settings.poll_wait_seconds
        )
        self.running = True

    def install_signal_handlers(self) -> None:
        """Stop after the in-flight job on SIGTERM/SIGINT."""
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum: int, frame: object) -> None:
        """Handle shutdown signals gracefully."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.running = False

    async def process_message(self, message: QueueMessage) -> bool:
        """
        Process a single job message end to end.

        Never raises for a per-job failure: the failure is published and the
        message is left for redelivery.

        Args:
            message: Message received from the job queue.

        Returns:
            True if the message was acknowledged.
        """
        job_id = UNKNOWN_JOB_ID
        try:
            job = JobMessage.from_body(message.body)
            job_id = job.job_id
            logger.info(
                "Received job",
                extra={"job_id": job_id, "language": job.language, "message_id": message.message_id},
            )

            with scratch_directory(job_id) as scratch_dir:
                local_path = await asyncio.to_thread(self.fetcher.fetch, job.artifact_ref, scratch_dir)
                outcome = await self.sandbox.execute(job.language, local_path)

                payload = decode_result(outcome)
                envelope = ResultEnvelope(
                    job_id=job_id,
                    duration_ms=outcome.duration_ms,
                    payload=payload.body,
                )
                await self._publish(job_id, envelope.to_result())

                if payload.succeeded or outcome.timed_out:
                    acknowledged = await self._acknowledge(message)
                else:
                    logger.warning(
                        f"Job {job_id} reported no result, leaving message for redelivery",
                        extra={"job_id": job_id},
                    )
                    acknowledged = False

            logger.info(
                f"Completed job {job_id}",
                extra={
                    "job_id": job_id,
                    "duration_ms": outcome.duration_ms,
                    "timed_out": outcome.timed_out,
                },
            )
            return acknowledged

        except WorkerError as e:
            logger.error(f"{e.prefix} for job {job_id}: {e}", extra={"job_id": job_id})
            await self._publish(job_id, e.to_result())
            return False

        except Exception as e:
            logger.exception(f"Failed to process message {message.message_id}")
            await self._publish(job_id, WorkerError(str(e)).to_result())
            return False

    async def _publish(self, job_id: str, result: str) -> None:
        try:
            await asyncio.to_thread(
                self.publisher.publish, self.response_queue_url, job_id, result
            )
        except Exception:
            # Publishing is fire-and-forget; it must not decide the job's fate
            logger.exception(f"Unexpected error publishing result for job {job_id}")

    async def _acknowledge(self, message: QueueMessage) -> bool:
        try:
            await asyncio.to_thread(self.job_queue.delete, message)
            return True
        except (ClientError, BotoCoreError) as e:
            # Redelivery will publish the result again
            logger.error(f"Failed to delete message {message.message_id}: {e}")
            return False

    async def run(self) -> None:
        """
        Poll the job queue until shut down.

        Poll failures are logged and retried after a short backoff; they
        never stop the loop.
        """
        logger.info("Starting executor in queue mode")

        while self.running:
            try:
                messages = await asyncio.to_thread(
                    self.job_queue.receive, self.poll_wait_seconds, settings.poll_max_messages
                )
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Failed to poll job queue: {e}")
                await asyncio.sleep(settings.poll_error_backoff_seconds)
                continue

            for message in messages:
                await self.process_message(message)

        logger.info("Queue worker shutdown complete")


def main() -> None:
    """Entry point for the executor worker."""
    configure_logging("DEBUG" if settings.debug else settings.log_level)
    logger.info(f"{settings.app_name} starting ({settings.environment})...")

    try:
        settings.require_transport()
        worker = ExecutorWorker()
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)

    worker.install_signal_handlers()

    try:
        asyncio.run(worker.run())
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
    except Exception as e:
        logger.exception(f"Worker crashed: {e}")
        sys.exit(1)

    logger.info("Executor worker stopped")


if __name__ == "__main__":
    main()
