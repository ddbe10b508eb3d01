"""
Helpers for pulling JSON out of loosely formatted LLM output.
"""
import json
from typing import Any, Iterator, Optional


def extract_balanced(text: str, open_char: str, close_char: str, start: int = 0) -> Optional[str]:
    """
    Return the first balanced ``open_char ... close_char`` substring of ``text``
    at or after ``start``.

    Brackets inside JSON string literals are ignored. Returns None when there is
    no opening bracket or it is never closed.
    """
    if not text:
        return None
    start = text.find(open_char, start)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def iter_balanced(text: str, open_char: str, close_char: str) -> Iterator[str]:
    """Yield each balanced substring of ``text`` from left to right."""
    if not text:
        return
    position = 0
    while True:
        start = text.find(open_char, position)
        if start == -1:
            return
        candidate = extract_balanced(text, open_char, close_char, start)
        if candidate is None:
            # Unclosed opener, retry from the next one
            position = start + 1
            continue
        yield candidate
        position = start + len(candidate)


def try_parse_json(text: Optional[str]) -> Any:
    """json.loads that returns None instead of raising."""
    if text is None:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
