"""Download submitted code from S3 into per-job scratch directories."""

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from common.config import settings
from common.logging import get_logger
from executor.errors import RetrievalError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = get_logger(__name__)


@lru_cache
def _get_s3_client() -> "S3Client":
    """Get cached S3 client."""
    return boto3.client("s3", region_name=settings.aws_region or None)


@contextmanager
def scratch_directory(job_id: str, root: str | None = None) -> Iterator[Path]:
    """Create a uniquely named scratch directory and remove it on exit.

    Args:
        job_id: Job the directory belongs to (used in the name only).
        root: Parent directory. Falls back to ``settings.scratch_root``,
            then the system temp directory.
    """
    parent = root or settings.scratch_root or None
    path = Path(tempfile.mkdtemp(prefix=f"submission-{_safe_name(job_id)}-", dir=parent))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
            logger.debug(f"Removed scratch directory {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove scratch directory {path}: {e}")


def _safe_name(value: str) -> str:
    """Keep job ids from escaping the temp dir name."""
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in value)[:64]


class ArtifactFetcher:
    """Retrieves job artifacts from an S3 bucket."""

    def __init__(self, *, bucket: str | None = None, s3_client: "S3Client | None" = None):
        """Initialize the fetcher.

        Args:
            bucket: Bucket holding artifacts. Falls back to ``settings.artifact_bucket``.
            s3_client: Optional S3 client (for testing). Uses default if not provided.
        """
        self._bucket = bucket or settings.artifact_bucket
        self._s3 = s3_client or _get_s3_client()

    def fetch(self, artifact_ref: str, scratch_dir: Path) -> Path:
        """Download an artifact into ``scratch_dir``, keeping its base filename.

        Args:
            artifact_ref: S3 key of the artifact.
            scratch_dir: Job-owned directory to write into.

        Returns:
            Local path of the downloaded file.

        Raises:
            RetrievalError: On any transport or filesystem failure.
        """
        filename = PurePosixPath(artifact_ref).name
        if not filename or filename in (".", ".."):
            raise RetrievalError(f"Artifact key has no filename: {artifact_ref!r}")

        local_path = scratch_dir / filename
        try:
            self._s3.download_file(self._bucket, artifact_ref, str(local_path))
        except (ClientError, BotoCoreError, Boto3Error, OSError) as e:
            raise RetrievalError(f"Failed to download s3://{self._bucket}/{artifact_ref}: {e}") from e

        logger.info(
            "Downloaded artifact",
            extra={"artifact_ref": artifact_ref, "path": str(local_path)},
        )
        return local_path
