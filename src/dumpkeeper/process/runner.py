"""
External process execution.

The dump producer and the gzip compressor talk to the outside world
only through a ProcessRunner, so both can be exercised against a fake
runner without real binaries.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from dumpkeeper.core.exceptions import ProcessError

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 64 * 1024 * 1024
_READ_CHUNK = 64 * 1024
_DISPLAY_TAIL = 4000


@dataclass(frozen=True)
class ProcessOutput:
    """Completed command: exit status plus combined stdout/stderr."""

    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(ABC):
    """Capability interface: run(command, env) -> output."""

    @abstractmethod
    def run(
        self,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> ProcessOutput:
        """
        Run a command to completion.

        Args:
            command: Executable followed by its arguments (no shell)
            env: Variables merged over the current environment

        Returns:
            ProcessOutput with the exit status, which may be non-zero

        Raises:
            ProcessError: If the command cannot be started or its output
                exceeds the buffer cap
        """


class SubprocessRunner(ProcessRunner):
    """
    Runs commands with subprocess.Popen.

    stderr is merged into stdout and read in chunks; once more than
    max_output_bytes have been read the child is killed and a
    ProcessError is raised. No timeout is applied unless configured.
    """

    def __init__(
        self,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        timeout_seconds: float | None = None,
    ):
        self.max_output_bytes = max_output_bytes
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> ProcessOutput:
        if not command:
            raise ProcessError("Empty command", reason="empty_command")

        executable = command[0]
        merged_env = os.environ.copy()
        if env:
            merged_env.update(env)

        logger.debug(f"Running {executable} with {len(command) - 1} argument(s)")

        try:
            proc = subprocess.Popen(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=merged_env,
                shell=False,
            )
        except FileNotFoundError:
            raise ProcessError(
                f"Executable not found: {executable}",
                command=executable,
                reason="not_found",
            ) from None
        except OSError as e:
            raise ProcessError(
                f"Failed to start {executable}: {e}",
                command=executable,
                reason="start_failed",
            ) from e

        chunks: list[bytes] = []
        total = 0
        try:
            assert proc.stdout is not None
            while True:
                chunk = proc.stdout.read(_READ_CHUNK)
                if not chunk:
                    break
                total += len(chunk)
                if total > self.max_output_bytes:
                    proc.kill()
                    proc.wait()
                    raise ProcessError(
                        f"{executable} produced more than {self.max_output_bytes} bytes of output",
                        command=executable,
                        reason="output_limit_exceeded",
                    )
                chunks.append(chunk)
            returncode = proc.wait(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            raise ProcessError(
                f"{executable} did not finish within {self.timeout_seconds}s",
                command=executable,
                reason="timeout",
            ) from None
        finally:
            if proc.stdout is not None:
                proc.stdout.close()

        output = b"".join(chunks).decode("utf-8", errors="replace")
        return ProcessOutput(returncode=returncode, output=output)


def check_output(
    runner: ProcessRunner,
    command: Sequence[str],
    env: Mapping[str, str] | None = None,
) -> ProcessOutput:
    """
    Run a command and raise if it exits non-zero.

    Raises:
        ProcessError: If the command cannot run or exits non-zero
    """
    result = runner.run(command, env)
    if not result.ok:
        executable = command[0] if command else ""
        if result.returncode < 0:
            message = f"{executable} was terminated by signal {-result.returncode}"
        else:
            message = f"{executable} failed with return code {result.returncode}"
        raise ProcessError(
            message,
            command=executable,
            returncode=result.returncode,
            output=tail(result.output),
            reason="nonzero_exit",
        )
    return result


def tail(text: str, limit: int = _DISPLAY_TAIL) -> str:
    """Last `limit` characters of text, for error messages."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]
