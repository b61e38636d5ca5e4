"""External command subprocess management.

Executes the SPARC and swarm CLIs as async subprocesses with optional
timeout enforcement, output streaming to the logs, and structured result
capture. A missing executable or a non-zero exit is reported in the
result, never raised.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of an external command execution.

    Attributes:
        success: True when the command exited with code 0.
        exit_code: Process exit code (-1 for timeout/OS errors).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_seconds: Wall-clock execution time.
    """

    success: bool
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float

    @property
    def error_message(self) -> str:
        """Best available description of a failure."""
        if self.stderr.strip():
            return self.stderr.strip()
        return f"command exited with code {self.exit_code}"


class CommandRunner:
    """Runs external commands as async subprocesses.

    Attributes:
        timeout_seconds: Maximum execution time before the process is
            killed, or None for no limit.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds

    async def run(self, args: Sequence[str]) -> CommandResult:
        """Execute a command and collect its output.

        Args:
            args: Program and arguments. No shell is involved.

        Returns:
            CommandResult with exit code, captured output, and duration.
        """
        start_time = time.monotonic()
        process = None

        try:
            process = await self._start_process(args)
            stdout, stderr = await self._collect_output_with_timeout(process)
            exit_code = process.returncode or 0
        except asyncio.TimeoutError:
            return self._handle_timeout(args, process, start_time)
        except OSError as exc:
            return self._handle_os_error(args, exc, start_time)

        duration = time.monotonic() - start_time
        return self._build_result(args, exit_code, stdout, stderr, duration)

    async def _start_process(
        self, args: Sequence[str]
    ) -> asyncio.subprocess.Process:
        """Launch the subprocess.

        Raises:
            OSError: If the executable cannot be found or started.
        """
        logger.info(
            "Starting command: %s",
            args[0],
            extra={"argv": list(args), "timeout": self.timeout_seconds},
        )

        return await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    async def _collect_output_with_timeout(
        self,
        process: asyncio.subprocess.Process,
    ) -> tuple:
        """Stream and collect process output within the timeout window.

        Returns:
            Tuple of (stdout_text, stderr_text).

        Raises:
            asyncio.TimeoutError: If the process exceeds the timeout.
        """
        stdout_lines: list[str] = []
        stderr_lines: list[str] = []

        async def stream_stdout():
            async for line in self._read_stream(process.stdout):
                stdout_lines.append(line)
                logger.debug("command stdout: %s", line)

        async def stream_stderr():
            async for line in self._read_stream(process.stderr):
                stderr_lines.append(line)
                logger.debug("command stderr: %s", line)

        await asyncio.wait_for(
            self._gather_streams(stream_stdout, stream_stderr, process),
            timeout=self.timeout_seconds,
        )

        return "\n".join(stdout_lines), "\n".join(stderr_lines)

    async def _gather_streams(
        self,
        stdout_reader: Callable,
        stderr_reader: Callable,
        process: asyncio.subprocess.Process,
    ) -> None:
        await asyncio.gather(stdout_reader(), stderr_reader())
        await process.wait()

    async def _read_stream(self, stream: Optional[asyncio.StreamReader]):
        """Yield decoded lines from an async stream."""
        if stream is None:
            return

        while True:
            raw_line = await stream.readline()
            if not raw_line:
                break
            yield raw_line.decode("utf-8", errors="replace").rstrip("\n")

    def _handle_timeout(
        self,
        args: Sequence[str],
        process: Optional[asyncio.subprocess.Process],
        start_time: float,
    ) -> CommandResult:
        """Kill the process and return a timeout failure result."""
        timeout = self.timeout_seconds
        if process is not None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        duration = time.monotonic() - start_time
        logger.error("%s timed out after %ss", args[0], timeout)
        return CommandResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=f"Process timed out after {timeout}s",
            duration_seconds=duration,
        )

    def _handle_os_error(
        self,
        args: Sequence[str],
        exc: OSError,
        start_time: float,
    ) -> CommandResult:
        """Return a failure result for OS-level errors (e.g., missing binary)."""
        duration = time.monotonic() - start_time
        logger.error("Failed to start %s: %s", args[0], exc)
        return CommandResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=f"Failed to start {args[0]}: {exc}",
            duration_seconds=duration,
        )

    def _build_result(
        self,
        args: Sequence[str],
        exit_code: int,
        stdout: str,
        stderr: str,
        duration: float,
    ) -> CommandResult:
        is_success = exit_code == 0

        if is_success:
            logger.info("%s completed successfully in %.1fs", args[0], duration)
        else:
            logger.error(
                "%s failed with exit code %d in %.1fs",
                args[0],
                exit_code,
                duration,
            )

        return CommandResult(
            success=is_success,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )
