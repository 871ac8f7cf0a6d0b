"""Turn a free-form model reply into a capped (title, body) pair.

Strategies are tried in order; the last one always returns a value, so a
reply that ignores the requested format degrades the output but never fails
the request.
"""
from __future__ import annotations
import json
import re
from typing import Callable, Optional

from catpost_mediator.common.schema import GenerationResult

TITLE_MAX_CHARS = 120

Strategy = Callable[[str], Optional[tuple[str, str]]]

_FENCE_OPEN = re.compile(r"^\s*```(?:json)?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")
_TITLE_PREFIX = re.compile(r"^\s*Title:\s*", re.IGNORECASE)
_BODY_MARKER = re.compile(r"\n?[ \t]*Body:\s*", re.IGNORECASE)
_TITLE_SECTION = re.compile(r"^\s*Title:[ \t]*(.+)$", re.IGNORECASE | re.MULTILINE)
_BODY_SECTION = re.compile(r"^\s*Body:\s*(.*)", re.IGNORECASE | re.MULTILINE | re.DOTALL)


def strip_code_fence(text: str) -> str:
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def extract_json_object(text: str) -> str:
    """Return the first balanced {...} substring, or "" if none closes."""
    start = text.find("{")
    if start == -1:
        return ""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""


def from_json(text: str) -> Optional[tuple[str, str]]:
    candidate = extract_json_object(text)
    if not candidate:
        return None
    try:
        obj = json.loads(candidate, strict=False)
    except ValueError:
        return None
    if not isinstance(obj, dict):
        return None
    title = obj.get("title") or ""
    body = obj.get("body") or obj.get("text") or ""
    return str(title), str(body)


def from_labels(text: str) -> Optional[tuple[str, str]]:
    title = _TITLE_SECTION.search(text)
    body = _BODY_SECTION.search(text)
    if title is None or body is None:
        return None
    return title.group(1).strip(), body.group(1).strip()


def from_lines(text: str) -> tuple[str, str]:
    cleaned = _TITLE_PREFIX.sub("", text, count=1)
    cleaned = _BODY_MARKER.sub("\n", cleaned, count=1)
    lines = [line for line in cleaned.split("\n") if line.strip()]
    if len(lines) < 2:
        return "", text.strip()
    return lines[0].strip(), "\n".join(lines[1:]).strip()


STRATEGIES: tuple[Strategy, ...] = (from_json, from_labels)


def parse_title_and_body(text: str) -> tuple[str, str]:
    cleaned = strip_code_fence(text or "")
    for strategy in STRATEGIES:
        parsed = strategy(cleaned)
        if parsed is not None:
            return parsed
    return from_lines(cleaned)


def normalize(text: str, max_chars: int) -> GenerationResult:
    """
    Parse and truncate an upstream reply.

    Args:
        text: Raw reply text.
        max_chars: Effective body cap.

    Returns:
        Result with ``len(text) <= max_chars`` and ``len(title) <= 120``.
    """
    title, body = parse_title_and_body(text)
    return GenerationResult(title=title[:TITLE_MAX_CHARS], text=body[: max(0, max_chars)])
