"""Unit tests for job models."""

import pytest
from pydantic import ValidationError

from executor.errors import DecodeError
from executor.models import JobMessage, ResultEnvelope


class TestJobMessage:
    """Tests for decoding inbound job messages."""

    def test_decodes_wire_format(self):
        """Test decoding of the camelCase queue message body."""
        job = JobMessage.from_body('{"jobId":"job-123","s3Key":"path/file.java","language":"java"}')
        assert job.job_id == "job-123"
        assert job.artifact_ref == "path/file.java"
        assert job.language == "java"

    def test_ignores_unknown_fields(self):
        """Test that extra producer fields do not break decoding."""
        job = JobMessage.from_body(
            '{"jobId":"j1","s3Key":"a/Main.java","language":"java","submittedAt":"2024-01-01"}'
        )
        assert job.job_id == "j1"

    def test_invalid_json_raises_decode_error(self):
        """Test that a non-JSON body is a decode error."""
        with pytest.raises(DecodeError):
            JobMessage.from_body("invalid-json")

    def test_missing_field_raises_decode_error(self):
        """Test that a missing required field is a decode error."""
        with pytest.raises(DecodeError, match="s3Key"):
            JobMessage.from_body('{"jobId":"j1","language":"python"}')

    def test_empty_job_id_rejected(self):
        """Test that the job id must be non-empty."""
        with pytest.raises(DecodeError):
            JobMessage.from_body('{"jobId":"","s3Key":"a.py","language":"python"}')

    def test_is_immutable(self):
        """Test that decoded jobs cannot be modified."""
        job = JobMessage(job_id="j1", artifact_ref="a.py", language="python")
        with pytest.raises(ValidationError):
            job.job_id = "j2"


class TestResultEnvelope:
    """Tests for the published result text."""

    def test_payload_embedded_verbatim(self):
        """Test the completed-job result format."""
        envelope = ResultEnvelope(job_id="job-123", duration_ms=120, payload='{"success":true}')
        assert (
            envelope.to_result()
            == '{"jobId":"job-123","executionTimeMs":120,"result":{"success":true}}'
        )

    def test_job_id_is_json_escaped(self):
        """Test that odd job ids keep the result parseable."""
        envelope = ResultEnvelope(job_id='a"b', duration_ms=0, payload="{}")
        assert envelope.to_result().startswith('{"jobId":"a\\"b",')
