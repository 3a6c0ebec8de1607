"""Sandboxed code submission executor.

This package pulls code submissions from a job queue and runs them with:
- One isolated Docker container per job
- A hard wall-clock limit with forced termination
- Combined output capture and ``RESULT:`` line decoding
- Results published to a response queue
"""

from executor.codec import decode_result
from executor.errors import (
    DecodeError,
    LaunchError,
    RetrievalError,
    UnsupportedLanguageError,
    WorkerError,
)
from executor.models import ExecutionOutcome, JobMessage, ResultEnvelope, ResultPayload
from executor.sandbox import LANGUAGE_RUNTIMES, SandboxExecutor

__all__ = [
    "SandboxExecutor",
    "LANGUAGE_RUNTIMES",
    "decode_result",
    "ExecutionOutcome",
    "JobMessage",
    "ResultEnvelope",
    "ResultPayload",
    "WorkerError",
    "DecodeError",
    "RetrievalError",
    "LaunchError",
    "UnsupportedLanguageError",
]
