"""
Inventory Store - Source Refresh Handler.

============================================================
PURPOSE
============================================================
Glue between the (external) transport that fetches SSP feeds
and the store:

- handle_success(): a feed fetched fine -> ingest its records
- handle_failure(): a fetch failed -> classify, and drop the
  source's inventory when the decision is DISABLE_SOURCE

Retry scheduling stays with the transport; the returned
RefreshOutcome carries the decision it needs.

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from core.exceptions import NoConvertibleRecordsError
from inventory_model.external_record import RawInventoryRecord
from source_resilience.classification import FallbackAction, RecoveryDecision
from source_resilience.redaction import log_error
from source_resilience.registry import SourceFailureRegistry

from .store import BatchReport, InventoryAggregationStore


logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """What happened to one fetch result."""
    source_id: str
    accepted: bool
    report: Optional[BatchReport] = None
    decision: Optional[RecoveryDecision] = None
    removed: int = 0
    failed_records: int = 0
    skipped_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "accepted": self.accepted,
            "report": self.report.to_dict() if self.report else None,
            "decision": self.decision.to_dict() if self.decision else None,
            "removed": self.removed,
            "failed_records": self.failed_records,
            "skipped_reason": self.skipped_reason,
        }


class SourceRefreshHandler:
    """Applies fetch outcomes to the store and the failure registry."""

    def __init__(
        self,
        store: InventoryAggregationStore,
        registry: Optional[SourceFailureRegistry] = None,
    ) -> None:
        self._store = store
        self._registry = registry or SourceFailureRegistry()

    @property
    def registry(self) -> SourceFailureRegistry:
        return self._registry

    def handle_success(self, source_id: str, records: Iterable[RawInventoryRecord]) -> RefreshOutcome:
        """
        Ingest a successfully fetched batch.

        Disabled sources are skipped. A batch where every record fails
        conversion is reported in the outcome, not raised.
        """
        if self._registry.is_disabled(source_id):
            logger.warning(f"[{source_id}] Ignoring refresh from disabled source")
            return RefreshOutcome(
                source_id=source_id,
                accepted=False,
                skipped_reason="source disabled",
            )

        # The fetch itself worked, whatever the content looks like
        self._registry.record_success(source_id)

        try:
            report = self._store.add_inventory(records)
        except NoConvertibleRecordsError as e:
            log_error(
                logger,
                e,
                f"Refresh of {source_id}",
                metadata={"source_id": source_id, "batch_size": e.batch_size},
                level=logging.WARNING,
            )
            return RefreshOutcome(
                source_id=source_id,
                accepted=False,
                failed_records=len(e.failures),
                skipped_reason="no convertible records",
            )

        return RefreshOutcome(
            source_id=source_id,
            accepted=True,
            report=report,
            failed_records=report.failed,
        )

    def handle_failure(self, source_id: str, error: BaseException) -> RefreshOutcome:
        """Classify a failed fetch and apply its fallback action."""
        decision = self._registry.record_failure(source_id, error)

        removed = 0
        if decision.fallback_action is FallbackAction.DISABLE_SOURCE:
            removed = self._store.remove_by_source(source_id)
            logger.warning(f"[{source_id}] Source disabled; removed {removed} entries")
        elif decision.fallback_action is FallbackAction.USE_CACHED:
            logger.info(
                f"[{source_id}] Serving {len(self._store.get_by_source_id(source_id))} cached entries"
            )

        return RefreshOutcome(
            source_id=source_id,
            accepted=False,
            decision=decision,
            removed=removed,
        )
