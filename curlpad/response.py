"""Reconstruct an HTTP response from curl's raw output.

curl's output shape depends on verbosity flags, platform and protocol
version, so the status code and the header/body boundary are recovered
through a fixed sequence of fallbacks rather than a single pattern.
"""

from __future__ import annotations

import logging
import re

from requests.structures import CaseInsensitiveDict

from curlpad.builder import STATUS_MARKER

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "Unknown"

STATUS_TEXTS = {
    200: "OK",
    201: "Created",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

_MARKER_RE = re.compile(re.escape(STATUS_MARKER) + r"(\d{3})")
_MARKER_STRIP_RE = re.compile(re.escape(STATUS_MARKER) + r"\d{3}\s*")

# Tried in order: plain then verbose ("< ") form, with then without phrase.
_STATUS_LINE_PATTERNS = (
    re.compile(r"^HTTP/[\d.]+ (\d{3}) (.+?)(?:\r?\n|$)", re.MULTILINE),
    re.compile(r"^HTTP/[\d.]+ (\d{3})(?:\r?\n|$)", re.MULTILINE),
    re.compile(r"< HTTP/[\d.]+ (\d{3}) (.+?)(?:\r?\n|$)", re.MULTILINE),
    re.compile(r"< HTTP/[\d.]+ (\d{3})(?:\r?\n|$)", re.MULTILINE),
)

_THREE_DIGITS = re.compile(r"(\d{3})")
_LINE_SPLIT = re.compile(r"\r?\n")


def status_text_for(code: int) -> str:
    """Return the standard phrase for *code*, or ``"Unknown"``."""
    return STATUS_TEXTS.get(code, UNKNOWN_STATUS)


class ResponseResult:
    """Container for a parsed HTTP response."""

    __slots__ = ("status_code", "status_text", "headers", "body", "error")

    def __init__(
        self,
        status_code: int = 0,
        status_text: str = UNKNOWN_STATUS,
        headers: dict[str, str] | None = None,
        body: str = "",
        error: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body
        self.error = error

    def __repr__(self) -> str:
        return (
            f"ResponseResult(status_code={self.status_code}, "
            f"status_text={self.status_text!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body=<{len(self.body)} chars>)"
        )


def parse_curl_output(stdout: str, stderr: str = "") -> ResponseResult:
    """Parse the output of ``curl -i`` into a ResponseResult.

    Status resolution order:
      1. the ``HTTPSTATUS:<code>`` marker written by ``-w``
      2. a protocol status line (``HTTP/1.1 200 OK``, ``< HTTP/2 200``...)
      3. the first three-digit run on the first line

    The marker wins over a status line even when they disagree, since
    status lines printed for redirects belong to intermediate hops.

    Args:
        stdout: curl's standard output.
        stderr: curl's standard error; used only when stdout is empty
            and stderr carries a status line.

    Returns:
        The parsed ResponseResult. Empty output yields status 0.
    """
    output = stdout.strip()
    if not output and stderr and "HTTP/" in stderr:
        output = stderr.strip()

    if not output:
        return ResponseResult()

    status_code = 0
    status_text = UNKNOWN_STATUS

    marker = _MARKER_RE.search(output)
    if marker:
        status_code = int(marker.group(1))
        status_text = status_text_for(status_code)
        output = _MARKER_STRIP_RE.sub("", output).strip()
        logger.debug("Status %d from marker", status_code)

    if status_code == 0:
        for pattern in _STATUS_LINE_PATTERNS:
            match = pattern.search(output)
            if match:
                status_code = int(match.group(1))
                phrase = match.group(2).strip() if match.lastindex == 2 else ""
                status_text = phrase or status_text_for(status_code)
                logger.debug("Status %d from status line", status_code)
                break

    if status_code == 0:
        first_line = _LINE_SPLIT.split(output, 1)[0]
        match = _THREE_DIGITS.search(first_line)
        if match:
            status_code = int(match.group(1))
            status_text = status_text_for(status_code)
            logger.debug("Status %d from first line", status_code)

    header_section, body = split_headers_and_body(output)

    return ResponseResult(
        status_code=status_code,
        status_text=status_text,
        headers=parse_header_lines(header_section),
        body=_MARKER_STRIP_RE.sub("", body).strip(),
    )


def split_headers_and_body(output: str) -> tuple[str, str]:
    """Split *output* into its header block and body.

    A blank line (CRLF first, then LF) is the boundary. Without one, the
    first non-empty line that has no colon and is not a status line
    starts the body.
    """
    idx = output.find("\r\n\r\n")
    if idx >= 0:
        return output[:idx], output[idx + 4 :]

    idx = output.find("\n\n")
    if idx >= 0:
        return output[:idx], output[idx + 2 :]

    lines = _LINE_SPLIT.split(output)
    header_end = 0
    for i, line in enumerate(lines):
        line = line.strip()
        if line.startswith("HTTP/"):
            continue
        if line and ":" not in line:
            header_end = i
            break
        header_end = i + 1

    return "\n".join(lines[:header_end]), "\n".join(lines[header_end:])


def parse_header_lines(header_section: str) -> dict[str, str]:
    """Parse ``Key: Value`` lines, skipping status lines and colon-less lines."""
    headers: dict[str, str] = {}
    for line in _LINE_SPLIT.split(header_section):
        line = line.strip()
        if line.startswith("HTTP/"):
            continue
        colon_idx = line.find(":")
        if colon_idx == -1:
            continue
        key = line[:colon_idx].strip()
        value = line[colon_idx + 1 :].strip()
        if key:
            headers[key] = value
    return headers
