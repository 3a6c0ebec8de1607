"""Pytest configuration and fixtures.

This module sets up test environment variables BEFORE any application
modules are imported, ensuring Settings validation passes in CI.
"""

import os

# Set test environment variables before any imports that might trigger Settings
# This runs at pytest collection time, before test modules are imported
os.environ.setdefault("APP_NAME", "submission-worker-test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("REQUEST_QUEUE_URL", "https://sqs.us-east-1.amazonaws.com/000000000000/requests")
os.environ.setdefault("RESPONSE_QUEUE_URL", "https://sqs.us-east-1.amazonaws.com/000000000000/results")
os.environ.setdefault("ARTIFACT_BUCKET", "test-submissions")
os.environ.setdefault("EXECUTION_TIMEOUT_SECONDS", "90")
os.environ.setdefault("KILL_GRACE_SECONDS", "15")

import sys
from pathlib import Path

import pytest


@pytest.fixture
def python_script(tmp_path):
    """Write a Python program to a file and return a runner argv for it."""

    def _make(source: str) -> list[str]:
        script = tmp_path / "program.py"
        script.write_text(source)
        return [sys.executable, str(script)]

    return _make


@pytest.fixture
def artifact_file(tmp_path) -> Path:
    """A submitted artifact inside its own directory."""
    job_dir = tmp_path / "job"
    job_dir.mkdir()
    path = job_dir / "Main.java"
    path.write_text("class Main {}")
    return path


@pytest.fixture
def mock_env_vars():
    """Fixture providing standard test environment variables."""
    return {
        "APP_NAME": "submission-worker-test",
        "DEBUG": "false",
        "ENVIRONMENT": "testing",
        "AWS_REGION": "us-east-1",
        "REQUEST_QUEUE_URL": "https://sqs.test/requests",
        "RESPONSE_QUEUE_URL": "https://sqs.test/results",
        "ARTIFACT_BUCKET": "test-submissions",
        "EXECUTION_TIMEOUT_SECONDS": "45",
        "KILL_GRACE_SECONDS": "5",
    }
