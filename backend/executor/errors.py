"""Exceptions raised while processing a single job.

Each error knows the prefixed, user-visible text that is published to the
response channel in place of an execution result.
"""

# Job id used when the inbound message could not be decoded
UNKNOWN_JOB_ID = "unknown"


class WorkerError(Exception):
    """Base exception for per-job failures."""

    prefix = "Internal Worker Error"

    def to_result(self) -> str:
        """Render the error as the published result string."""
        return f"{self.prefix}: {self}"


class DecodeError(WorkerError):
    """Inbound message could not be decoded into a job."""

    prefix = "Invalid Job Message"


class RetrievalError(WorkerError):
    """Artifact could not be downloaded from storage."""

    prefix = "Artifact Retrieval Error"


class LaunchError(WorkerError):
    """Sandbox container could not be started."""

    prefix = "Container Execution Error"


class UnsupportedLanguageError(LaunchError):
    """Job language has no registered runtime."""

    pass
