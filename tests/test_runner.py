"""Tests for the subprocess runner.

These run small shell commands instead of curl, so no network is needed.
"""

import time
from unittest.mock import patch

import pytest

from curlpad.errors import ExecutionError, RequestTimeout, ToolNotFound
from curlpad.runner import ProcessOutput, run_command


class TestRunCommand:
    """Tests for run_command."""

    def test_captures_stdout_and_stderr(self):
        output = run_command("printf 'out'; printf 'err' 1>&2", timeout=5)
        assert isinstance(output, ProcessOutput)
        assert output.stdout == "out"
        assert output.stderr == "err"
        assert output.returncode == 0

    def test_non_zero_exit_raises_execution_error(self):
        with pytest.raises(ExecutionError, match="Could not resolve") as info:
            run_command("echo 'curl: (6) Could not resolve host' 1>&2; exit 6")
        assert info.value.returncode == 6

    def test_non_zero_exit_without_stderr(self):
        with pytest.raises(ExecutionError, match="exit code 3"):
            run_command("exit 3")

    def test_missing_tool_raises_tool_not_found(self):
        with pytest.raises(ToolNotFound, match="install"):
            run_command("definitely-not-a-real-binary-xyz --version")

    def test_not_found_message(self):
        with pytest.raises(ToolNotFound):
            run_command("echo 'sh: 1: curl: not found' 1>&2; exit 1")

    def test_timeout_raises_and_kills(self):
        start = time.monotonic()
        with pytest.raises(RequestTimeout) as info:
            run_command("sleep 5", timeout=0.3)
        assert time.monotonic() - start < 4
        assert info.value.timeout == 0.3
        assert "0.3 seconds" in str(info.value)

    def test_oversized_output_raises(self):
        with patch("curlpad.runner.MAX_OUTPUT_BYTES", 10):
            with pytest.raises(ExecutionError, match="exceeded"):
                run_command("printf '%s' 0123456789ABCDEF")

    def test_spawn_failure_raises_execution_error(self):
        with patch("curlpad.runner.subprocess.Popen", side_effect=OSError("boom")):
            with pytest.raises(ExecutionError, match="boom"):
                run_command("curl https://example.com")

    def test_invalid_utf8_is_replaced(self):
        output = run_command("printf '\\377ok'")
        assert output.stdout.endswith("ok")
