"""Pretty-printing of response bodies and rendering of full responses."""

from __future__ import annotations

import json
import re

from curlpad.response import ResponseResult

INDENT = "  "

_INTER_TAG_SPACE = re.compile(r">\s+<")
_TAG_BOUNDARY = re.compile(r"(?<=>)(?=<)")
_OPENING_TAG = re.compile(r"<[^!?/>](?:[^>]*[^/>])?>")


def format_body(body: str, content_type: str | None = None) -> str:
    """Return *body* pretty-printed when it is JSON or XML.

    Formatting is best effort: any body that fails to decode or format is
    returned unchanged.

    Args:
        body: The raw response body.
        content_type: The response Content-Type header, if any.

    Returns:
        The formatted body, or *body* itself.
    """
    if not body or not body.strip():
        return body

    trimmed = body.strip()
    content_type = (content_type or "").lower()

    if "application/json" in content_type or _looks_like_json(trimmed):
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            pass
        else:
            return json.dumps(parsed, indent=2, ensure_ascii=False)

    if "xml" in content_type or _looks_like_xml(trimmed):
        try:
            return format_xml(trimmed)
        except ValueError:
            pass

    return body


def _looks_like_json(text: str) -> bool:
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )


def _looks_like_xml(text: str) -> bool:
    return text.startswith("<") and text.endswith(">")


def format_xml(xml: str) -> str:
    """Indent *xml* two spaces per nesting level.

    Whitespace between tags is dropped, then every tag boundary becomes a
    line break. Depth rises after an opening tag and falls before a
    closing tag; a line that opens and closes the same element, a
    self-closing tag, a declaration or a comment leaves it unchanged.

    Raises:
        ValueError: If closing tags outnumber opening ones.
    """
    compressed = _INTER_TAG_SPACE.sub("><", xml).strip()

    lines = []
    depth = 0
    for piece in _TAG_BOUNDARY.split(compressed):
        if piece.startswith("</"):
            depth -= 1
            if depth < 0:
                raise ValueError("Unbalanced closing tag: " + piece)
            lines.append(INDENT * depth + piece)
        elif _OPENING_TAG.match(piece) and "</" not in piece:
            lines.append(INDENT * depth + piece)
            depth += 1
        else:
            lines.append(INDENT * depth + piece)

    return "\n".join(lines)


def format_response(result: ResponseResult) -> str:
    """Render *result* as an HTTP/1.1 response with a formatted body."""
    lines = [f"HTTP/1.1 {result.status_code} {result.status_text}"]
    for key, value in result.headers.items():
        lines.append(f"{key}: {value}")
    head = "\n".join(lines) + "\n\n"

    content_type = result.headers.get("Content-Type")
    return head + format_body(result.body, content_type)
