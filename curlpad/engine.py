"""Execution engine.

Sequences parsing, command building, the timed curl run and response
parsing for one request, then writes the rendered response to a file
beside the request or hands it back for display.
"""

from __future__ import annotations

import logging
import os
import re
import threading
import time
import uuid
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from curlpad.builder import build_command
from curlpad.errors import CurlpadError
from curlpad.formatter import format_response
from curlpad.parser import load_request_file, parse_request
from curlpad.response import ResponseResult, parse_curl_output
from curlpad.runner import DEFAULT_TIMEOUT, ProcessOutput, run_command
from curlpad.sections import (
    RequestSection,
    extract_command,
    find_section,
    find_sections,
    join_command_lines,
)

logger = logging.getLogger(__name__)

Runner = Callable[[str, float], ProcessOutput]

# Request extension -> response extension. .res sorts right after .req.
REQUEST_EXTENSIONS = {"req": "res", "request": "response"}
DEFAULT_RESPONSE_EXTENSION = "response"

EPHEMERAL_SCHEME = "untitled:"


class ExecutionConfig:
    """Settings that control a single execution."""

    __slots__ = ("timeout", "save_file")

    def __init__(
        self, timeout: float = DEFAULT_TIMEOUT, save_file: bool = True
    ) -> None:
        self.timeout = timeout
        self.save_file = save_file


class ExecutionTimings:
    """Thread-safe map of response identity to elapsed seconds ("0.42").

    Unbounded unless *max_entries* is given, in which case the oldest
    entries are evicted first.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()
        self._max_entries = max_entries

    def record(self, identity: str, elapsed: str) -> None:
        with self._lock:
            self._entries[identity] = elapsed
            self._entries.move_to_end(identity)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)

    def get(self, identity: str) -> str | None:
        with self._lock:
            return self._entries.get(identity)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ExecutionOutcome:
    """Container for the result of one executed request."""

    __slots__ = ("identity", "text", "result", "elapsed", "saved")

    def __init__(
        self,
        identity: str,
        text: str,
        result: ResponseResult,
        elapsed: str,
        saved: bool,
    ) -> None:
        self.identity = identity
        self.text = text
        self.result = result
        self.elapsed = elapsed
        self.saved = saved

    @property
    def status_code(self) -> int:
        return self.result.status_code


def is_request_file(path: str) -> bool:
    """Return True for ``.req`` and ``.request`` files."""
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    return ext in REQUEST_EXTENSIONS


def sanitize_title(title: str) -> str:
    """Make a section title safe to use in a file name."""
    return re.sub(r"[^a-zA-Z0-9]", "_", title).lower()


def response_path_for(
    request_path: str, section_title: str | None = None
) -> str:
    """Return the response file path for a request file.

    ``.req`` maps to ``.res``; anything else maps to ``.response``. A
    section title is appended to the base name so each section gets its
    own response file.

    Args:
        request_path: Path to the request file.
        section_title: Optional title of the executed section.

    Returns:
        The response file path.
    """
    directory = os.path.dirname(request_path)
    base, ext = os.path.splitext(os.path.basename(request_path))
    response_ext = REQUEST_EXTENSIONS.get(
        ext.lstrip(".").lower(), DEFAULT_RESPONSE_EXTENSION
    )
    if section_title:
        base = f"{base}_{sanitize_title(section_title)}"
    return os.path.join(directory, f"{base}.{response_ext}")


def unique_response_paths(
    request_path: str, sections: list[RequestSection]
) -> list[str]:
    """Return one response path per section, suffixing clashes with `_2`, `_3`...

    Titles that differ only in punctuation sanitize to the same name; the
    first keeps it and later sections get a numbered suffix.
    """
    paths = []
    taken: set[str] = set()
    for section in sections:
        path = response_path_for(request_path, section.title)
        stem, ext = os.path.splitext(path)
        n = 1
        while path in taken:
            n += 1
            path = f"{stem}_{n}{ext}"
        taken.add(path)
        paths.append(path)
    return paths


def timed_label(identity: str, timings: ExecutionTimings) -> str:
    """Return the display label for a response, e.g. ``(0.42s) api.res``."""
    name = identity
    if not identity.startswith(EPHEMERAL_SCHEME):
        name = os.path.basename(identity)
    elapsed = timings.get(identity)
    if elapsed is None:
        return name
    return f"({elapsed}s) {name}"


def execute_request(
    content: str,
    timeout: float = DEFAULT_TIMEOUT,
    runner: Runner = run_command,
) -> tuple[ResponseResult, float]:
    """Parse, build, run and parse the response for one request.

    Only the curl run is timed.

    Args:
        content: Request text (JSON object or curl command).
        timeout: Timeout in seconds passed to the runner.
        runner: Callable that executes the built command.

    Returns:
        A tuple of (response, elapsed_seconds).

    Raises:
        ParseFailure: If the request cannot be parsed; nothing is run.
        ToolNotFound, RequestTimeout, ExecutionError: From the runner.
    """
    spec = parse_request(content)
    invocation = build_command(spec)

    start = time.perf_counter()
    output = runner(invocation, timeout)
    elapsed = time.perf_counter() - start
    logger.debug("%s %s finished in %.3fs", spec.method, spec.url, elapsed)

    return parse_curl_output(output.stdout, output.stderr), elapsed


def _request_content(document: str, section: RequestSection | None) -> str:
    if section is not None:
        return extract_command(document, section.start_line, section.end_line)
    stripped = document.strip()
    if stripped.startswith(("{", "[")):
        return stripped
    return join_command_lines(document.split("\n"))


def execute_file(
    request_path: str,
    timings: ExecutionTimings,
    config: ExecutionConfig | None = None,
    section: str | RequestSection | None = None,
    runner: Runner = run_command,
    response_path: str | None = None,
) -> ExecutionOutcome:
    """Execute a request file, or one section of it, and deliver the response.

    In save mode the rendered response is written next to the request
    file; otherwise it is only returned, under an ephemeral identity.
    The elapsed time is recorded in *timings* under that identity. On
    failure nothing is written and nothing is recorded.

    Args:
        request_path: Path to the request file.
        timings: Shared store for elapsed times.
        config: Timeout and save settings (defaults if omitted).
        section: Section title or RequestSection to execute instead of
            the whole file.
        runner: Callable that executes the built command.
        response_path: Response file to write instead of the derived one.

    Returns:
        An ExecutionOutcome with the rendered response.
    """
    config = config or ExecutionConfig()
    document = load_request_file(request_path)

    if isinstance(section, str):
        section = find_section(document, section)

    content = _request_content(document, section)
    result, seconds = execute_request(content, config.timeout, runner)
    elapsed = f"{seconds:.2f}"
    text = format_response(result)

    if config.save_file:
        if response_path is None:
            title = section.title if section is not None else None
            response_path = response_path_for(request_path, title)
        identity = os.path.abspath(response_path)
        with open(identity, "w", encoding="utf-8") as fh:
            fh.write(text)
        logger.info("Response saved to %s", identity)
    else:
        identity = f"{EPHEMERAL_SCHEME}{uuid.uuid4().hex[:12]}"

    timings.record(identity, elapsed)

    return ExecutionOutcome(
        identity=identity,
        text=text,
        result=result,
        elapsed=elapsed,
        saved=config.save_file,
    )


def execute_sections(
    request_path: str,
    timings: ExecutionTimings,
    config: ExecutionConfig | None = None,
    max_workers: int = 4,
    runner: Runner = run_command,
) -> list[tuple[str, ExecutionOutcome | Exception]]:
    """Execute every section of a request file concurrently.

    Each section is an independent run; a failing section does not stop
    the others. Every section writes its own response file.

    Returns:
        ``(title, outcome_or_error)`` pairs in document order.
    """
    document = load_request_file(request_path)
    sections = find_sections(document)
    paths = unique_response_paths(request_path, sections)

    def run_one(
        section: RequestSection, path: str
    ) -> ExecutionOutcome | Exception:
        try:
            return execute_file(
                request_path, timings, config, section, runner, response_path=path
            )
        except (CurlpadError, OSError, UnicodeDecodeError) as exc:
            logger.debug("Section %r failed: %s", section.title, exc)
            return exc

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        outcomes = list(pool.map(run_one, sections, paths))

    return [(s.title, o) for s, o in zip(sections, outcomes)]
