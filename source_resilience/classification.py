"""
Source Resilience - Fetch Failure Classification.

============================================================
PURPOSE
============================================================
Maps a failed source fetch/refresh to a recovery decision.
This module CLASSIFIES only: the caller (transport layer)
owns the actual retry timing.

============================================================
FAILURE CATEGORIES
============================================================
1. NETWORK       - Connection issues, timeouts
                   -> retry after fixed backoff, use cached
2. AUTHENTICATION - 401 / 403 / AUTH_ERROR
                   -> no retry, disable source
3. RATE_LIMIT    - 429
                   -> retry after Retry-After or default, use cached
4. SERVER_ERROR  - 5xx
                   -> retry after backoff, use cached
5. CLIENT_ERROR  - other 4xx
                   -> no retry, ignore this cycle
6. UNKNOWN       - anything else
                   -> single retry, then ignore

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .config import ResilienceConfig, get_config


logger = logging.getLogger(__name__)


# ============================================================
# TAXONOMY
# ============================================================

class FailureCategory(Enum):
    """Standardized source failure categories."""

    NETWORK = "NETWORK"
    AUTHENTICATION = "AUTHENTICATION"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER_ERROR = "SERVER_ERROR"
    CLIENT_ERROR = "CLIENT_ERROR"
    UNKNOWN = "UNKNOWN"


class FallbackAction(Enum):
    """What to do with the source's inventory meanwhile."""

    IGNORE = "ignore"
    USE_CACHED = "use_cached"
    DISABLE_SOURCE = "disable_source"


NETWORK_CODES = frozenset({"NETWORK_ERROR", "TIMEOUT", "ECONNRESET", "ECONNREFUSED", "ETIMEDOUT"})
AUTH_CODES = frozenset({"AUTH_ERROR", "UNAUTHORIZED", "FORBIDDEN"})


# ============================================================
# RECOVERY DECISION
# ============================================================

@dataclass(frozen=True)
class RecoveryDecision:
    """Classified outcome of one failed fetch."""

    category: FailureCategory
    should_retry: bool
    fallback_action: FallbackAction
    error_message: str
    retry_after_seconds: Optional[float] = None
    source_id: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "should_retry": self.should_retry,
            "retry_after_seconds": self.retry_after_seconds,
            "fallback_action": self.fallback_action.value,
            "error_message": self.error_message,
            "source_id": self.source_id,
            "status_code": self.status_code,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.fallback_action.value}: {self.error_message}"


# ============================================================
# CLASSIFICATION
# ============================================================

def classify_fetch_failure(
    error: BaseException,
    source_id: str,
    config: Optional[ResilienceConfig] = None,
    prior_unknown_attempts: int = 0,
) -> RecoveryDecision:
    """
    Classify a source fetch failure.

    Reads duck-typed attributes so that transport exceptions from any
    client library classify the same way: `code`, `status_code` or
    `status`, `headers`, `retry_after_seconds`.

    Args:
        error: The exception raised by the fetch
        source_id: Source that failed
        config: Policy settings (defaults to global config)
        prior_unknown_attempts: Consecutive unclassified failures already
            seen for this source (drives "single retry, then ignore")

    Returns:
        RecoveryDecision
    """
    config = config or get_config()
    message = str(error) or type(error).__name__
    code = _error_code(error)
    status = _status_code(error)

    def decision(category, should_retry, fallback, label, retry_after=None):
        return RecoveryDecision(
            category=category,
            should_retry=should_retry,
            fallback_action=fallback,
            error_message=f"{label} for SSP {source_id}: {message}",
            retry_after_seconds=retry_after if should_retry else None,
            source_id=source_id,
            status_code=status,
        )

    if code in NETWORK_CODES or isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return decision(
            FailureCategory.NETWORK, True, FallbackAction.USE_CACHED,
            "Network error", config.network_retry_seconds,
        )

    if code in AUTH_CODES or status in (401, 403):
        return decision(
            FailureCategory.AUTHENTICATION, False, FallbackAction.DISABLE_SOURCE,
            "Authentication error",
        )

    if status == 429:
        return decision(
            FailureCategory.RATE_LIMIT, True, FallbackAction.USE_CACHED,
            "Rate limited by SSP", _retry_after(error, config),
        )

    if status is not None and status >= 500:
        return decision(
            FailureCategory.SERVER_ERROR, True, FallbackAction.USE_CACHED,
            "Server error", config.server_error_retry_seconds,
        )

    if status is not None and 400 <= status < 500:
        return decision(
            FailureCategory.CLIENT_ERROR, False, FallbackAction.IGNORE,
            "Client error",
        )

    retry_budget_left = prior_unknown_attempts < config.max_unknown_retries
    return decision(
        FailureCategory.UNKNOWN, retry_budget_left, FallbackAction.IGNORE,
        "Unknown error", config.unknown_error_retry_seconds,
    )


# ============================================================
# ATTRIBUTE EXTRACTION
# ============================================================

def _error_code(error: BaseException) -> Optional[str]:
    code = getattr(error, "code", None)
    if code is None:
        return None
    return str(code).upper()


def _status_code(error: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if value is None:
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None


def _retry_after(error: BaseException, config: ResilienceConfig) -> float:
    explicit = getattr(error, "retry_after_seconds", None)
    if explicit is not None:
        try:
            return max(0.0, float(explicit))
        except (TypeError, ValueError):
            pass

    headers = getattr(error, "headers", None)
    if isinstance(headers, Mapping):
        for key, value in headers.items():
            if str(key).lower() != "retry-after":
                continue
            try:
                return max(0.0, float(value))
            except (TypeError, ValueError):
                logger.debug(f"Unparseable Retry-After header: {value!r}")
                break

    return config.rate_limit_default_retry_seconds
