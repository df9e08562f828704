"""Split multi-request files into ``## Title`` sections."""

from __future__ import annotations

import re

from curlpad.errors import ParseFailure

_HEADING_RE = re.compile(r"^##\s+(.+)$")
_CONTINUATION_RE = re.compile(r"\\\s*$")
_CURL_RE = re.compile(r"curl\s+.*", re.IGNORECASE)


class RequestSection:
    """One heading-delimited request block. Line numbers are 0-based, inclusive."""

    __slots__ = ("title", "title_line", "start_line", "end_line")

    def __init__(
        self, title: str, title_line: int, start_line: int, end_line: int
    ) -> None:
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "title_line", title_line)
        object.__setattr__(self, "start_line", start_line)
        object.__setattr__(self, "end_line", end_line)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"RequestSection is read-only: cannot set {name!r}")

    def __hash__(self) -> int:
        return hash((self.title, self.title_line, self.start_line, self.end_line))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestSection):
            return NotImplemented
        return (
            self.title == other.title
            and self.title_line == other.title_line
            and self.start_line == other.start_line
            and self.end_line == other.end_line
        )

    def __repr__(self) -> str:
        return (
            f"RequestSection(title={self.title!r}, "
            f"lines={self.start_line}-{self.end_line})"
        )


def find_sections(document: str) -> list[RequestSection]:
    """Return the ``## Title`` sections of *document* in order.

    Each section runs from its heading to the line before the next
    heading; the last one runs to the end of the document. A document
    without headings has no sections.
    """
    lines = document.split("\n")
    headings = []
    for i, line in enumerate(lines):
        match = _HEADING_RE.match(line)
        if match:
            headings.append((i, match.group(1).strip()))

    # Each section ends where the next heading begins.
    ends = [line - 1 for line, _ in headings[1:]] + [len(lines) - 1]
    return [
        RequestSection(title, line, line, end)
        for (line, title), end in zip(headings, ends)
    ]


def find_section(document: str, title: str) -> RequestSection:
    """Return the section whose title matches *title* (case-insensitive).

    Raises:
        ParseFailure: If no section has that title.
    """
    wanted = title.strip().lower()
    for section in find_sections(document):
        if section.title.lower() == wanted:
            return section
    raise ParseFailure(f"No section titled {title!r} found.")


def join_command_lines(lines: list[str]) -> str:
    """Join command lines, dropping blanks, headings and trailing backslashes."""
    cleaned = []
    for line in lines:
        text = line.strip()
        if not text or text.startswith("##"):
            continue
        text = _CONTINUATION_RE.sub("", text).strip()
        if text:
            cleaned.append(text)
    return " ".join(cleaned).strip()


def extract_command(document: str, start_line: int, end_line: int) -> str:
    """Return the curl command found between *start_line* and *end_line*.

    Raises:
        ParseFailure: If the range holds no curl command.
    """
    lines = document.split("\n")[start_line : end_line + 1]
    command = join_command_lines(lines)

    if command.lower().startswith("curl"):
        return command

    match = _CURL_RE.search(command)
    if match:
        return match.group(0)

    raise ParseFailure("No curl command found in the selected section.")
