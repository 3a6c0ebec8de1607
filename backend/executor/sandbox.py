"""Docker sandbox for running submitted code.

Each artifact runs in a fresh ``docker run --rm`` container with its scratch
directory bind-mounted at a fixed path. Output is drained continuously while
the control task waits, so a chatty program cannot fill the pipe and stall.
When the time limit expires the whole process group and the container are
killed.
"""

import asyncio
import os
import shlex
import signal
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from common.config import settings
from common.logging import get_logger
from executor.errors import LaunchError, UnsupportedLanguageError
from executor.models import ExecutionOutcome

logger = get_logger(__name__)

TIME_LIMIT_EXCEEDED = "Time limit exceeded"
READ_CHUNK_SIZE = 64 * 1024


def _java_command(mount_path: str, filename: str) -> str:
    source = shlex.quote(f"{mount_path}/{filename}")
    unit = shlex.quote(Path(filename).stem)
    return f"javac {source} && java -cp {shlex.quote(mount_path)} {unit}"


def _python_command(mount_path: str, filename: str) -> str:
    return f"python {shlex.quote(f'{mount_path}/{filename}')}"


@dataclass(frozen=True)
class LanguageRuntime:
    """How to run one language inside its runner image."""

    image_setting: str  # Settings attribute holding the image name
    build_command: Callable[[str, str], str]  # (mount_path, filename) -> shell command


# Keyed by lowercase language tag
LANGUAGE_RUNTIMES: dict[str, LanguageRuntime] = {
    "java": LanguageRuntime("java_runner_image", _java_command),
    "python": LanguageRuntime("python_runner_image", _python_command),
}


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


class SandboxExecutor:
    """Runs one artifact at a time inside a language runner container."""

    def __init__(
        self,
        *,
        docker_binary: str | None = None,
        mount_path: str | None = None,
        images: dict[str, str] | None = None,
        timeout_seconds: float | None = None,
        kill_grace_seconds: float | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            docker_binary: Docker CLI to invoke. Defaults to config value.
            mount_path: In-container path for the scratch directory.
            images: Runner image per language tag. Defaults to configured images.
            timeout_seconds: Wall-clock ceiling per run.
            kill_grace_seconds: How long to wait for a killed run to exit.
        """
        self.docker_binary = docker_binary or settings.docker_binary
        self.mount_path = mount_path or settings.sandbox_mount_path
        self.images = images if images is not None else {
            language: getattr(settings, runtime.image_setting)
            for language, runtime in LANGUAGE_RUNTIMES.items()
        }
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.execution_timeout_seconds
        )
        self.kill_grace_seconds = (
            kill_grace_seconds if kill_grace_seconds is not None else settings.kill_grace_seconds
        )

    def build_command(self, language: str, file_path: Path) -> tuple[list[str], str]:
        """Build the ``docker run`` argv for an artifact.

        Returns:
            Tuple of (argv, container name).

        Raises:
            UnsupportedLanguageError: If no runtime is registered for the language.
        """
        key = language.lower()
        runtime = LANGUAGE_RUNTIMES.get(key)
        image = self.images.get(key)
        if runtime is None or not image:
            raise UnsupportedLanguageError(f"Unsupported language: {language}")

        container_name = f"sandbox-{uuid.uuid4().hex[:12]}"
        argv = [
            self.docker_binary,
            "run",
            "--rm",
            "--name",
            container_name,
            "-v",
            f"{file_path.parent.resolve()}:{self.mount_path}",
            image,
            "sh",
            "-c",
            runtime.build_command(self.mount_path, file_path.name),
        ]
        return argv, container_name

    async def execute(self, language: str, file_path: str | Path) -> ExecutionOutcome:
        """Run an artifact and capture its combined output.

        A run that hits the time limit is still a completed execution; its
        output is replaced with a fixed marker.

        Raises:
            UnsupportedLanguageError: Before anything is spawned.
            LaunchError: If the container process cannot be started.
        """
        argv, container_name = self.build_command(language, Path(file_path))
        return await self._run(argv, container_name)

    async def _run(self, argv: list[str], container_name: str) -> ExecutionOutcome:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchError(f"Failed to start sandbox: {e}") from e

        start = time.perf_counter()
        logger.info(
            "Sandbox started",
            extra={"container": container_name, "pid": process.pid},
        )

        # Only the drain task touches `chunks` until it has finished
        chunks: list[bytes] = []
        drain = asyncio.create_task(self._drain(process.stdout, chunks))

        try:
            try:
                await asyncio.wait_for(process.wait(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                duration_ms = _elapsed_ms(start)
                logger.warning(
                    f"Sandbox exceeded {self.timeout_seconds}s, killing",
                    extra={"container": container_name},
                )
                await self._terminate(process, container_name)
                return ExecutionOutcome(
                    raw_output=TIME_LIMIT_EXCEEDED,
                    duration_ms=duration_ms,
                    timed_out=True,
                )

            await drain
            duration_ms = _elapsed_ms(start)
            logger.info(
                "Sandbox finished",
                extra={
                    "container": container_name,
                    "exit_code": process.returncode,
                    "duration_ms": duration_ms,
                },
            )
            return ExecutionOutcome(
                raw_output=b"".join(chunks).decode("utf-8", errors="replace"),
                duration_ms=duration_ms,
            )
        finally:
            if process.returncode is None:
                self._kill_process_group(process)
            if not drain.done():
                drain.cancel()
            await asyncio.gather(drain, return_exceptions=True)

    @staticmethod
    async def _drain(stream: asyncio.StreamReader, chunks: list[bytes]) -> None:
        """Read the merged output stream until EOF."""
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)

    async def _terminate(self, process: asyncio.subprocess.Process, container_name: str) -> None:
        """Kill a timed-out run and wait briefly for it to exit."""
        self._kill_process_group(process)
        await self._stop_container(container_name)
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            logger.error(
                f"Sandbox still running {self.kill_grace_seconds}s after kill",
                extra={"container": container_name, "pid": process.pid},
            )

    @staticmethod
    def _kill_process_group(process: asyncio.subprocess.Process) -> None:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug(f"Process group {process.pid} already gone")

    async def _stop_container(self, container_name: str) -> None:
        """Kill the container itself; the CLI dying does not stop it."""
        try:
            killer = await asyncio.create_subprocess_exec(
                self.docker_binary,
                "kill",
                container_name,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Failed to run docker kill for {container_name}: {e}")
            return

        try:
            await asyncio.wait_for(killer.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            killer.kill()
            await killer.wait()
            logger.warning(f"docker kill timed out for {container_name}")
