"""Run a built curl invocation as a subprocess."""

from __future__ import annotations

import logging
import os
import re
import signal
import subprocess

from curlpad.errors import ExecutionError, RequestTimeout, ToolNotFound

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

# Per stream; larger outputs are treated as a failed run.
MAX_OUTPUT_BYTES = 10 * 1024 * 1024

# Exit status the shell uses for "command not found".
_NOT_FOUND_EXIT = 127
_NOT_FOUND_RE = re.compile(r"curl: (?:command )?not found")


class ProcessOutput:
    """Raw text captured from a finished curl run."""

    __slots__ = ("stdout", "stderr", "returncode")

    def __init__(self, stdout: str, stderr: str, returncode: int = 0) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode

    def __repr__(self) -> str:
        return (
            f"ProcessOutput(returncode={self.returncode}, "
            f"stdout=<{len(self.stdout)} chars>, "
            f"stderr=<{len(self.stderr)} chars>)"
        )


def run_command(
    invocation: str, timeout: float = DEFAULT_TIMEOUT
) -> ProcessOutput:
    """Execute *invocation* through the shell and capture its output.

    The command runs in its own process group so that a timeout kills
    curl as well as the shell wrapping it.

    Args:
        invocation: The full shell command line.
        timeout: Wall-clock limit in seconds.

    Returns:
        A ProcessOutput with decoded stdout and stderr.

    Raises:
        RequestTimeout: If the command runs longer than *timeout*.
        ToolNotFound: If the shell cannot find curl.
        ExecutionError: For any other failure or an oversized output.
    """
    logger.debug("Running: %s", invocation)
    try:
        proc = subprocess.Popen(
            invocation,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        raise ExecutionError(f"Failed to start curl: {exc}") from exc

    try:
        raw_out, raw_err = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        proc.communicate()
        logger.debug("Killed process group %d after %ss", proc.pid, timeout)
        raise RequestTimeout(timeout) from None

    for stream in (raw_out, raw_err):
        if len(stream) > MAX_OUTPUT_BYTES:
            raise ExecutionError(
                f"Output exceeded {MAX_OUTPUT_BYTES} bytes", proc.returncode
            )

    stdout = raw_out.decode("utf-8", errors="replace")
    stderr = raw_err.decode("utf-8", errors="replace")
    logger.debug("curl exited with %d", proc.returncode)

    if proc.returncode != 0:
        if proc.returncode == _NOT_FOUND_EXIT or _NOT_FOUND_RE.search(stderr):
            raise ToolNotFound()
        detail = stderr.strip() or f"exit code {proc.returncode}"
        raise ExecutionError(f"Command failed: {detail}", proc.returncode)

    return ProcessOutput(stdout, stderr, proc.returncode)


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
