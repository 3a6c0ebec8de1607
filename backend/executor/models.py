"""Data models for jobs flowing through the worker."""

import json
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from executor.errors import DecodeError


class JobMessage(BaseModel):
    """A job decoded from an inbound queue message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    job_id: str = Field(..., alias="jobId", min_length=1, description="Opaque job identifier")
    artifact_ref: str = Field(
        ..., alias="s3Key", min_length=1, description="Storage key of the submitted code"
    )
    language: str = Field(..., min_length=1, description="Language tag, compared case-insensitively")

    @classmethod
    def from_body(cls, body: str) -> "JobMessage":
        """Decode a raw message body.

        Raises:
            DecodeError: If the body is not valid JSON or misses required fields.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"{e.error_count()} validation error(s): {_first_error(e)}") from e


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{location}: {first.get('msg', 'invalid')}"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Raw result of one sandbox run."""

    raw_output: str
    duration_ms: int
    timed_out: bool = False


@dataclass(frozen=True)
class ResultPayload:
    """Decoded job result as JSON text.

    ``succeeded`` is True when the program reported a ``RESULT:`` line;
    otherwise ``body`` is the ``{"status":"error",...}`` structure.
    """

    body: str
    succeeded: bool


@dataclass(frozen=True)
class ResultEnvelope:
    """Completed job result, ready to be handed to the publisher.

    ``payload`` is JSON text and is embedded as-is, never re-parsed.
    """

    job_id: str
    duration_ms: int
    payload: str

    def to_result(self) -> str:
        """Render as ``{"jobId":...,"executionTimeMs":...,"result":<payload>}``."""
        return (
            f'{{"jobId":{json.dumps(self.job_id)},'
            f'"executionTimeMs":{self.duration_ms},'
            f'"result":{self.payload}}}'
        )
