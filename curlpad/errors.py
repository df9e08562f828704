"""Error taxonomy shared by the parser, runner and orchestrator.

Every error carries a single user-facing message; the entry point prints
it once and exits without a traceback.
"""

from __future__ import annotations


class CurlpadError(Exception):
    """Base class for errors reported to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseFailure(CurlpadError, ValueError):
    """Raised when no URL or no command text can be recovered."""


class ToolNotFound(CurlpadError):
    """Raised when the curl binary is not installed or not in PATH."""

    def __init__(self, tool: str = "curl") -> None:
        super().__init__(
            f"{tool} command not found. "
            f"Please install {tool} to use this feature."
        )
        self.tool = tool


class RequestTimeout(CurlpadError):
    """Raised when curl does not finish within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request timeout after {timeout:g} seconds")
        self.timeout = timeout


class ExecutionError(CurlpadError):
    """Raised for any other non-zero exit or spawn failure."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
