"""
Source Resilience - Redacted Logging.

============================================================
PURPOSE
============================================================
Operational logs must never carry credentials or long
free-text payloads from third-party feeds.

- Keys matching a sensitive term -> "[REDACTED]"
- Long string values -> truncated with "..."
- Nested mappings are redacted recursively

============================================================
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

from core.exceptions import InventoryException

from .config import get_config


REDACTED = "[REDACTED]"


def is_sensitive_key(key: str, terms: Optional[Sequence[str]] = None) -> bool:
    """True if the key contains any sensitive term (case-insensitive)."""
    terms = terms if terms is not None else get_config().sensitive_terms
    lowered = str(key).lower()
    return any(term in lowered for term in terms)


def redact_metadata(
    metadata: Optional[Mapping[str, Any]],
    terms: Optional[Sequence[str]] = None,
    max_length: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Return a copy of metadata safe to log.

    Args:
        metadata: Arbitrary key/value context
        terms: Sensitive key terms (defaults to config)
        max_length: String truncation limit (defaults to config)
    """
    if not metadata:
        return {}

    config = get_config()
    terms = terms if terms is not None else config.sensitive_terms
    max_length = max_length if max_length is not None else config.log_value_max_length

    sanitized: Dict[str, Any] = {}
    for key, value in metadata.items():
        if is_sensitive_key(key, terms):
            sanitized[key] = REDACTED
        else:
            sanitized[key] = _redact_value(value, terms, max_length)

    return sanitized


def _redact_value(value: Any, terms: Sequence[str], max_length: int) -> Any:
    if isinstance(value, Mapping):
        return redact_metadata(value, terms, max_length)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, terms, max_length) for item in value]
    if isinstance(value, str) and len(value) > max_length:
        return value[:max_length] + "..."
    return value


def log_error(
    logger: logging.Logger,
    error: BaseException,
    context: str,
    metadata: Optional[Mapping[str, Any]] = None,
    level: int = logging.ERROR,
) -> Dict[str, Any]:
    """
    Log an error without exposing sensitive data.

    Args:
        logger: Logger to write to
        error: The exception being reported
        context: Where it happened (e.g. "ScreenAdapter.convert")
        metadata: Extra context, redacted before logging
        level: Logging level

    Returns:
        The payload that was logged (useful for tests and summaries)
    """
    code = getattr(error, "code", None)
    if code is None and isinstance(error, InventoryException):
        code = type(error).__name__

    payload = {
        "message": str(error) or type(error).__name__,
        "code": code or "UNKNOWN",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "context": context,
        "metadata": redact_metadata(metadata),
    }

    logger.log(level, f"[SSP Error] {context}: {payload}")
    return payload
