"""Unit tests for configuration."""

import os
from unittest.mock import patch

import pytest

from common.config import Settings, get_settings


def test_settings_loads_from_env_vars(mock_env_vars):
    """Test that settings load correctly from environment variables."""
    with patch.dict(os.environ, mock_env_vars, clear=True):
        settings = Settings(_env_file=None)
        assert settings.app_name == "submission-worker-test"
        assert settings.debug is False
        assert settings.environment == "testing"
        assert settings.aws_region == "us-east-1"
        assert settings.request_queue_url == "https://sqs.test/requests"
        assert settings.response_queue_url == "https://sqs.test/results"
        assert settings.artifact_bucket == "test-submissions"
        assert settings.execution_timeout_seconds == 45
        assert settings.kill_grace_seconds == 5


def test_settings_has_sensible_defaults():
    """Test that settings work with defaults when env vars are empty."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)
        assert settings.app_name == "Submission Worker"
        assert settings.poll_wait_seconds == 20
        assert settings.poll_max_messages == 1
        assert settings.execution_timeout_seconds == 90
        assert settings.kill_grace_seconds == 15
        assert settings.sandbox_mount_path == "/app"
        assert settings.java_runner_image == "tkoppine/java-runner"
        assert settings.python_runner_image == "tkoppine/python-runner"


def test_require_transport_lists_missing_identifiers():
    """Test that missing queue/bucket identifiers are reported together."""
    with patch.dict(os.environ, {"REQUEST_QUEUE_URL": "https://sqs.test/requests"}, clear=True):
        settings = Settings(_env_file=None)
        with pytest.raises(RuntimeError, match="RESPONSE_QUEUE_URL, ARTIFACT_BUCKET"):
            settings.require_transport()


def test_require_transport_passes_when_configured(mock_env_vars):
    """Test that a fully configured worker passes the startup check."""
    with patch.dict(os.environ, mock_env_vars, clear=True):
        Settings(_env_file=None).require_transport()


def test_get_settings_returns_cached_instance():
    """Test that get_settings returns cached instance."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2
