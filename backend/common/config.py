"""Worker configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Worker settings loaded from environment variables.

    Queue URLs and the artifact bucket have no usable defaults and must be
    provided via environment variables or .env file before the worker starts.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Submission Worker"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # AWS Configuration
    aws_region: str = ""  # AWS region for all services (empty = SDK default chain)

    # Job source and response channel
    request_queue_url: str = ""  # SQS queue delivering job messages
    response_queue_url: str = ""  # SQS queue receiving result envelopes
    poll_wait_seconds: int = 20  # Long-poll wait (SQS maximum)
    poll_max_messages: int = 1  # One job in flight per worker
    poll_error_backoff_seconds: float = 5.0

    # Artifact storage
    artifact_bucket: str = ""  # S3 bucket holding submitted code
    scratch_root: str = ""  # Parent for per-job scratch dirs (empty = system temp)

    # Sandbox
    docker_binary: str = "docker"
    sandbox_mount_path: str = "/app"
    java_runner_image: str = "tkoppine/java-runner"
    python_runner_image: str = "tkoppine/python-runner"
    execution_timeout_seconds: float = 90.0
    kill_grace_seconds: float = 15.0

    def require_transport(self) -> None:
        """Check that the queue and bucket identifiers are configured.

        Raises:
            RuntimeError: If any required identifier is missing.
        """
        missing = [
            name.upper()
            for name in ("request_queue_url", "response_queue_url", "artifact_bucket")
            if not getattr(self, name)
        ]
        if missing:
            raise RuntimeError(f"Worker requires {', '.join(missing)} to be set")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
