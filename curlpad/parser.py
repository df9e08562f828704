"""Request file parsing.

Converts the text of a request file into a RequestSpec. Two dialects are
accepted: a JSON object (``url``, ``method``, ``headers``, ``body``) and a
curl command line.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from curlpad.errors import ParseFailure

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"

# -d and --data-binary read a file for an @-prefixed value; --data-raw never does.
DEFAULT_DATA_FLAG = "-d"
LITERAL_DATA_FLAG = "--data-raw"

# A quoted value: same quote on both ends, backslash escapes skipped over.
_QUOTED = r"""(?P<q>["'])(?P<value>(?:\\.|(?!(?P=q))[^\\])*)(?P=q)"""

_URL_PATTERNS = (
    re.compile(r"""['"]https?://[^'"]+['"]""", re.IGNORECASE),
    re.compile(r"""https?://[^\s"']+""", re.IGNORECASE),
)

_METHOD_RE = re.compile(r"-X\s+(\w+)", re.IGNORECASE)

_HEADER_RE = re.compile(r"(?:-H|--header)\s+" + _QUOTED, re.IGNORECASE)

# Order matters: the specific data flags win over -d/--data, quoted over bare.
_BODY_PATTERNS = (
    re.compile(r"(?P<flag>--data-raw|--data-binary)\s+" + _QUOTED, re.IGNORECASE),
    re.compile(r"(?P<flag>-d|--data)\s+" + _QUOTED, re.IGNORECASE),
    re.compile(r"(?P<flag>--data-raw|--data-binary)\s+(?P<value>\S+)", re.IGNORECASE),
    re.compile(r"(?P<flag>-d|--data)\s+(?P<value>\S+)", re.IGNORECASE),
)


class TextBody:
    """A body authored as plain text."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def to_text(self) -> str:
        return self.text


class StructuredBody:
    """A body authored as a JSON value (object, array, number...)."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def to_text(self) -> str:
        return json.dumps(self.value, separators=(",", ":"), ensure_ascii=False)


def classify_body(raw: Any) -> TextBody | StructuredBody | None:
    """Wrap a decoded ``body`` field in the matching body variant."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return TextBody(raw)
    return StructuredBody(raw)


class RequestSpec:
    """Canonical HTTP request, independent of the dialect it came from."""

    __slots__ = ("method", "url", "headers", "body", "data_flag")

    def __init__(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
        data_flag: str = DEFAULT_DATA_FLAG,
    ) -> None:
        if not url:
            raise ParseFailure("Request has no URL.")
        self.method = method or DEFAULT_METHOD
        self.url = url
        self.headers = dict(headers) if headers else {}
        self.body = body
        self.data_flag = data_flag

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestSpec):
            return NotImplemented
        return (
            self.method == other.method
            and self.url == other.url
            and self.headers == other.headers
            and self.body == other.body
            and self.data_flag == other.data_flag
        )

    def __repr__(self) -> str:
        return (
            f"RequestSpec(method={self.method!r}, url={self.url!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body else '<none>'})"
        )


def parse_request(text: str) -> RequestSpec:
    """Parse request file content into a RequestSpec.

    JSON content is tried first when the text starts with ``{`` or ``[``;
    anything that does not decode to an object with a string ``url`` is
    parsed as a curl command instead.

    Args:
        text: The raw request text.

    Returns:
        The parsed RequestSpec.

    Raises:
        ParseFailure: If no URL can be recovered.
    """
    trimmed = text.strip()

    if trimmed.startswith(("{", "[")):
        spec = _parse_structured(trimmed)
        if spec is not None:
            logger.debug("Parsed structured request: %r", spec)
            return spec

    spec = parse_curl_command(trimmed)
    logger.debug("Parsed curl request: %r", spec)
    return spec


def _parse_structured(text: str) -> RequestSpec | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None
    url = data.get("url")
    if not isinstance(url, str) or not url:
        return None

    headers = data.get("headers") or {}
    if not isinstance(headers, dict):
        headers = {}

    body = classify_body(data.get("body"))

    return RequestSpec(
        method=str(data.get("method") or DEFAULT_METHOD),
        url=url,
        headers={str(k): str(v) for k, v in headers.items()},
        body=body.to_text() if body is not None else None,
        data_flag=LITERAL_DATA_FLAG,
    )


def parse_curl_command(command: str) -> RequestSpec:
    """Parse a curl command line into a RequestSpec.

    Line continuations are expected to be joined already. Quoting is
    matched one level deep; escaped quotes are kept verbatim.

    Raises:
        ParseFailure: If the command contains no http(s) URL.
    """
    command = command.strip()
    if command.lower().startswith("curl"):
        command = command[4:].strip()

    command = re.sub(r"\s+", " ", command).strip()

    url = None
    for pattern in _URL_PATTERNS:
        match = pattern.search(command)
        if match:
            url = re.sub(r"""['"]""", "", match.group(0))
            break

    if not url:
        raise ParseFailure(
            "Failed to parse HTTP request. Please check the file format."
        )

    method_match = _METHOD_RE.search(command)
    method = method_match.group(1).upper() if method_match else DEFAULT_METHOD

    headers: dict[str, str] = {}
    for match in _HEADER_RE.finditer(command):
        header_line = match.group("value")
        colon_idx = header_line.find(":")
        if colon_idx <= 0:
            continue
        key = header_line[:colon_idx].strip()
        value = header_line[colon_idx + 1 :].strip()
        headers[key] = value

    body = None
    data_flag = DEFAULT_DATA_FLAG
    for pattern in _BODY_PATTERNS:
        match = pattern.search(command)
        if match:
            body = match.group("value") or None
            flag = match.group("flag").lower()
            if flag.startswith("--data-"):
                data_flag = flag
            break

    return RequestSpec(
        method=method, url=url, headers=headers, body=body, data_flag=data_flag
    )


def load_request_file(filepath: str) -> str:
    """Read and return the contents of a request file.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        return fh.read()
