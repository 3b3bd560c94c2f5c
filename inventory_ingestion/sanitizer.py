"""
Inventory Ingestion - Text Sanitizer.

Canonical text may be rendered verbatim by the marketplace, so
every free-text value from a feed passes through sanitize_text()
before it is stored.
"""

import re
from typing import Any


MAX_TEXT_LENGTH = 1000

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_text(value: Any, max_length: int = MAX_TEXT_LENGTH) -> str:
    """
    Strip markup-ish content from a feed string.

    Removes angle brackets, the javascript: scheme and inline
    event-handler patterns (onclick=...), trims, and caps length.
    Removal repeats until stable, since stripping one pattern can
    splice a new one together. Non-strings become "".
    """
    if not isinstance(value, str):
        return ""

    text = value
    while True:
        cleaned = _ANGLE_BRACKETS.sub("", text)
        cleaned = _JAVASCRIPT_SCHEME.sub("", cleaned)
        cleaned = _EVENT_HANDLER.sub("", cleaned)
        if cleaned == text:
            break
        text = cleaned

    return text.strip()[:max_length]
