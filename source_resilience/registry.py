"""
Source Resilience - Source Failure Registry.

============================================================
PER-SOURCE FAILURE STATE
============================================================

Tracks fetch outcomes for every SSP feeding the store:
- Auto-registration on first outcome
- Consecutive failure counting
- Last recovery decision
- Disabled flag (set by DISABLE_SOURCE, cleared manually)

============================================================
UNCLASSIFIED FAILURES
============================================================

An unclassified failure is retried once. The registry
remembers consecutive unclassified failures per source so
the second one in a row is classified with no retry.

============================================================
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.clock import ClockFactory, ClockProtocol

from .classification import (
    FailureCategory,
    FallbackAction,
    RecoveryDecision,
    classify_fetch_failure,
)
from .config import ResilienceConfig, get_config
from .redaction import log_error


logger = logging.getLogger(__name__)


# =============================================================
# STATE
# =============================================================

@dataclass
class SourceFailureState:
    """Failure bookkeeping for one source."""
    source_id: str
    consecutive_failures: int = 0
    consecutive_unknown_failures: int = 0
    total_failures: int = 0
    last_decision: Optional[RecoveryDecision] = None
    last_failure_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    disabled: bool = False
    disabled_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "consecutive_failures": self.consecutive_failures,
            "consecutive_unknown_failures": self.consecutive_unknown_failures,
            "total_failures": self.total_failures,
            "last_decision": self.last_decision.to_dict() if self.last_decision else None,
            "last_failure_at": self.last_failure_at.isoformat() if self.last_failure_at else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "disabled": self.disabled,
            "disabled_reason": self.disabled_reason,
        }


# =============================================================
# REGISTRY
# =============================================================

class SourceFailureRegistry:
    """
    Registry of per-source fetch failure state.

    ============================================================
    USAGE
    ============================================================

    ```python
    registry = SourceFailureRegistry()

    decision = registry.record_failure("ssp-a", error)
    if decision.fallback_action is FallbackAction.DISABLE_SOURCE:
        store.remove_by_source("ssp-a")

    registry.record_success("ssp-b")
    registry.is_disabled("ssp-a")  # True after an auth failure
    registry.enable_source("ssp-a")
    ```

    ============================================================
    """

    def __init__(
        self,
        config: Optional[ResilienceConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or get_config()
        self._clock = clock or ClockFactory.get_clock()
        self._states: Dict[str, SourceFailureState] = {}
        self._lock = threading.RLock()

        logger.info("SourceFailureRegistry initialized")

    # =========================================================
    # OUTCOMES
    # =========================================================

    def record_failure(
        self,
        source_id: str,
        error: BaseException,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RecoveryDecision:
        """
        Classify and record a failed fetch for a source.

        Args:
            source_id: Source that failed
            error: The fetch exception
            metadata: Extra context for the log line (redacted)

        Returns:
            The recovery decision
        """
        with self._lock:
            state = self._get_or_register(source_id)

            decision = classify_fetch_failure(
                error,
                source_id,
                config=self._config,
                prior_unknown_attempts=state.consecutive_unknown_failures,
            )

            state.consecutive_failures += 1
            state.total_failures += 1
            state.last_decision = decision
            state.last_failure_at = self._clock.now()

            if decision.category is FailureCategory.UNKNOWN:
                state.consecutive_unknown_failures += 1
            else:
                state.consecutive_unknown_failures = 0

            if decision.fallback_action is FallbackAction.DISABLE_SOURCE and not state.disabled:
                state.disabled = True
                state.disabled_reason = decision.error_message
                logger.warning(f"[{source_id}] Source disabled: {decision.category.value}")

        log_error(
            logger,
            error,
            f"SSP fetch ({decision.category.value})",
            metadata={**(metadata or {}), "source_id": source_id, **decision.to_dict()},
            level=logging.WARNING,
        )
        return decision

    def record_success(self, source_id: str) -> None:
        """Reset failure counters after a successful fetch."""
        with self._lock:
            state = self._get_or_register(source_id)
            if state.consecutive_failures:
                logger.info(
                    f"[{source_id}] Recovered after {state.consecutive_failures} "
                    f"consecutive failures"
                )
            state.consecutive_failures = 0
            state.consecutive_unknown_failures = 0
            state.last_success_at = self._clock.now()

    # =========================================================
    # ENABLE / DISABLE
    # =========================================================

    def is_disabled(self, source_id: str) -> bool:
        with self._lock:
            state = self._states.get(source_id)
            return state is not None and state.disabled

    def disable_source(self, source_id: str, reason: str = "manually disabled") -> None:
        """Disable a source until enable_source is called."""
        with self._lock:
            state = self._get_or_register(source_id)
            state.disabled = True
            state.disabled_reason = reason
        logger.warning(f"[{source_id}] Source disabled: {reason}")

    def enable_source(self, source_id: str) -> bool:
        """
        Re-enable a disabled source.

        Returns:
            True if the source was disabled
        """
        with self._lock:
            state = self._states.get(source_id)
            if state is None or not state.disabled:
                return False
            state.disabled = False
            state.disabled_reason = None
            state.consecutive_failures = 0
            state.consecutive_unknown_failures = 0
        logger.info(f"[{source_id}] Source re-enabled")
        return True

    # =========================================================
    # QUERIES
    # =========================================================

    def get_state(self, source_id: str) -> Optional[SourceFailureState]:
        with self._lock:
            return self._states.get(source_id)

    def get_disabled_sources(self) -> List[str]:
        with self._lock:
            return sorted(sid for sid, state in self._states.items() if state.disabled)

    def get_summary(self) -> Dict[str, Any]:
        """Summary of all tracked sources."""
        with self._lock:
            return {
                "total_sources": len(self._states),
                "disabled_sources": self.get_disabled_sources(),
                "failing_sources": sorted(
                    sid for sid, state in self._states.items()
                    if state.consecutive_failures > 0
                ),
                "sources": {sid: state.to_dict() for sid, state in self._states.items()},
            }

    def _get_or_register(self, source_id: str) -> SourceFailureState:
        state = self._states.get(source_id)
        if state is None:
            state = SourceFailureState(source_id=source_id)
            self._states[source_id] = state
            logger.debug(f"Registered source: {source_id}")
        return state
