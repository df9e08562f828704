"""Build the curl invocation for a RequestSpec."""

from __future__ import annotations

import re

from curlpad.parser import DEFAULT_METHOD, RequestSpec

TOOL_NAME = "curl"

# Written by curl's -w after the body; the response parser reads the
# status code back from it.
STATUS_MARKER = "HTTPSTATUS:"

# -i: include headers, -s: no progress, -S: still show errors.
BASE_FLAGS = ("-i", "-s", "-S", f'-w "\\n{STATUS_MARKER}%{{http_code}}"')

_DOUBLE_QUOTE_SPECIALS = re.compile(r'([\\"$`])')
_TOKEN = re.compile(r"\w+")


def quote_double(value: str) -> str:
    """Quote *value* for a double-quoted shell word."""
    return '"' + _DOUBLE_QUOTE_SPECIALS.sub(r"\\\1", value) + '"'


def quote_single(value: str) -> str:
    """Quote *value* for a single-quoted shell word (``'`` -> ``'\\''``)."""
    return "'" + value.replace("'", "'\\''") + "'"


def build_command(spec: RequestSpec) -> str:
    """Return the shell command line that performs *spec* with curl.

    The URL is always the last word.
    """
    parts = [TOOL_NAME, *BASE_FLAGS]

    if spec.method and spec.method != DEFAULT_METHOD:
        method = spec.method
        if not _TOKEN.fullmatch(method):
            method = quote_double(method)
        parts.append(f"-X {method}")

    for key, value in spec.headers.items():
        parts.append(f"-H {quote_double(f'{key}: {value}')}")

    if spec.body:
        parts.append(f"{spec.data_flag} {quote_single(spec.body)}")

    parts.append(quote_double(spec.url))
    return " ".join(parts)
