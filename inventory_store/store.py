"""
Inventory Store - Aggregation Store.

============================================================
RESPONSIBILITY
============================================================
Single source of truth for the marketplace's screen
inventory, local and SSP-sourced alike.

- Converts external batches with per-record isolation
- Merges by identifier (replace on conflict)
- Evicts stale external inventory
- Checks cross-record integrity after each merge
- Pushes the full snapshot to subscribers after each change

============================================================
FAILURE POLICY
============================================================
- One bad record never fails its batch
- A non-empty batch with zero conversions raises
  NoConvertibleRecordsError and leaves the store untouched
- Integrity violations are logged, not enforced
- A raising subscriber never fails a mutation

============================================================
LIFECYCLE
============================================================
One explicit, long-lived instance per process:

    store = InventoryAggregationStore(config, clock, adapter)
    await store.start()       # starts the staleness sweeper
    ...
    await store.shutdown()    # idempotent

Mutations after shutdown raise StoreClosedError.

============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID, uuid4

from core.clock import ClockFactory, ClockProtocol, ensure_utc
from core.exceptions import (
    ConversionFault,
    IntegrityViolation,
    NoConvertibleRecordsError,
    StoreClosedError,
)
from inventory_ingestion.adapter import ScreenAdapter
from inventory_model.external_record import ExternalInventoryRecord, RawInventoryRecord
from inventory_model.screen import Screen
from source_resilience.redaction import log_error

from .config import StoreConfig, get_config
from .events import InventoryEventChannel, Subscriber
from .integrity import IntegrityReport, validate_inventory
from .sweeper import StaleInventorySweeper


logger = logging.getLogger(__name__)


# =============================================================
# RESULT TYPES
# =============================================================

class BatchStatus(str, Enum):
    """Outcome of one add_inventory call."""
    SUCCESS = "success"
    PARTIAL = "partial"
    EMPTY = "empty"


@dataclass
class ConversionFailure:
    """One record that could not be converted."""
    record_ref: Dict[str, Any]
    error: ConversionFault

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": self.record_ref,
            "error": self.error.message,
            "issues": [issue.to_dict() for issue in self.error.issues],
        }


@dataclass
class BatchReport:
    """Result of a single ingestion batch."""
    batch_id: UUID = field(default_factory=uuid4)
    status: BatchStatus = BatchStatus.SUCCESS

    # Counts
    received: int = 0
    converted: int = 0
    added: int = 0
    replaced: int = 0
    duplicates_collapsed: int = 0

    failures: List[ConversionFailure] = field(default_factory=list)
    integrity: Optional[IntegrityReport] = None

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> int:
        return len(self.failures)

    def mark_complete(self, completed_at: datetime) -> None:
        """Mark the batch complete and calculate duration."""
        self.completed_at = completed_at
        if self.started_at:
            self.duration_seconds = (completed_at - self.started_at).total_seconds()
        if self.failures and self.status == BatchStatus.SUCCESS:
            self.status = BatchStatus.PARTIAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "batch_id": str(self.batch_id),
            "status": self.status.value,
            "received": self.received,
            "converted": self.converted,
            "added": self.added,
            "replaced": self.replaced,
            "duplicates_collapsed": self.duplicates_collapsed,
            "failed": self.failed,
            "failures": [f.to_dict() for f in self.failures[:5]],  # Limit for logging
            "integrity": self.integrity.to_dict() if self.integrity else None,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class InventoryStats:
    """Point-in-time inventory counts."""
    total: int
    external: int
    local: int
    by_source_name: Dict[str, int]
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "external": self.external,
            "local": self.local,
            "by_source_name": dict(self.by_source_name),
            "generated_at": self.generated_at.isoformat(),
        }


# =============================================================
# STORE
# =============================================================

class InventoryAggregationStore:
    """
    Canonical inventory keyed by screen id.

    ============================================================
    USAGE
    ============================================================

    ```python
    store = InventoryAggregationStore(config=StoreConfig(), clock=SystemClock())
    store.subscribe(lambda screens: render(screens))

    report = store.add_inventory(feed_records)
    outdoor = [s for s in store.get_all() if s.environment is Environment.OUTDOOR]
    store.remove_by_source("ssp-a")
    ```

    ============================================================
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        clock: Optional[ClockProtocol] = None,
        adapter: Optional[ScreenAdapter] = None,
    ) -> None:
        self._config = config or get_config()
        self._clock = clock or ClockFactory.get_clock()
        self._adapter = adapter or ScreenAdapter(
            clock=self._clock,
            reject_soft_invalid=self._config.reject_soft_invalid,
        )

        # Insertion ordered; replacing an id keeps its position
        self._screens: Dict[str, Screen] = {}
        self._channel: InventoryEventChannel[List[Screen]] = InventoryEventChannel("inventory")
        self._sweeper = StaleInventorySweeper(
            self.sweep_stale,
            interval_seconds=self._config.sweep_interval_seconds,
        )
        self._closed = False

        # Statistics
        self._batches = 0
        self._last_batch: Optional[BatchReport] = None

        logger.info(f"InventoryAggregationStore initialized: {self._config.to_dict()}")

    # =========================================================
    # LIFECYCLE
    # =========================================================

    @property
    def is_running(self) -> bool:
        return not self._closed and self._sweeper.is_running

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def sweeper(self) -> StaleInventorySweeper:
        return self._sweeper

    async def start(self) -> None:
        """Start the background staleness sweep."""
        self._ensure_open("start")
        self._sweeper.start()

    async def shutdown(self) -> None:
        """Stop the sweeper and release subscribers and state. Safe to call twice."""
        if self._closed:
            return

        await self._sweeper.stop()
        self._closed = True
        self._channel.clear()
        count = len(self._screens)
        self._screens.clear()
        logger.info(f"InventoryAggregationStore shut down ({count} entries released)")

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise StoreClosedError(
                f"Cannot {operation}: inventory store is shut down",
                context={"operation": operation},
            )

    # =========================================================
    # MUTATIONS
    # =========================================================

    def add_inventory(self, records: Iterable[RawInventoryRecord]) -> BatchReport:
        """
        Convert and merge a batch of external records.

        Args:
            records: Raw mappings or parsed ExternalInventoryRecords

        Returns:
            BatchReport with per-record failures

        Raises:
            NoConvertibleRecordsError: non-empty batch, nothing converted
            StoreClosedError: store is shut down
        """
        self._ensure_open("add inventory")
        records = list(records)

        report = BatchReport(received=len(records), started_at=self._clock.now())

        if not records:
            logger.warning("add_inventory called with an empty batch")
            report.status = BatchStatus.EMPTY
            report.mark_complete(self._clock.now())
            return report

        converted: Dict[str, Screen] = {}
        for raw in records:
            try:
                screen = self._adapter.convert(raw)
            except ConversionFault as e:
                self._record_failure(report, raw, e)
                continue
            except Exception as e:
                fault = ConversionFault(
                    f"Unexpected conversion error: {e}",
                    context=_record_reference(raw),
                    cause=e,
                )
                self._record_failure(report, raw, fault)
                continue

            if screen.id in converted:
                # Last occurrence wins, at its own position
                del converted[screen.id]
                report.duplicates_collapsed += 1
            converted[screen.id] = screen

        if not converted:
            error = NoConvertibleRecordsError(
                f"None of {len(records)} records could be converted",
                failures=report.failures,
                batch_size=len(records),
            )
            log_error(
                logger,
                error,
                "InventoryAggregationStore.add_inventory",
                metadata={"failures": [f.record_ref for f in report.failures[:5]]},
            )
            raise error

        report.converted = len(converted)
        collisions: List[str] = []
        for screen_id, screen in converted.items():
            existing = self._screens.get(screen_id)
            if existing is not None:
                report.replaced += 1
                conflict = _ownership_conflict(existing, screen)
                if conflict:
                    collisions.append(conflict)
            else:
                report.added += 1
            self._screens[screen_id] = screen

        report.integrity = self._check_integrity(collisions)
        self._notify(changed=True)

        report.mark_complete(self._clock.now())
        self._batches += 1
        self._last_batch = report

        logger.info(
            f"Batch {report.batch_id}: {report.converted}/{report.received} converted "
            f"({report.added} added, {report.replaced} replaced, "
            f"{report.failed} failed, {report.duplicates_collapsed} duplicates collapsed); "
            f"total={len(self._screens)}"
        )
        return report

    def add_local_inventory(self, screens: Iterable[Screen]) -> int:
        """
        Insert directly operated screens, replacing by id.

        Returns:
            Number of screens stored
        """
        self._ensure_open("add local inventory")

        stored = 0
        collisions: List[str] = []
        for screen in screens:
            if screen.is_external:
                logger.warning(f"Skipping externally sourced screen {screen.id} passed as local inventory")
                continue
            existing = self._screens.get(screen.id)
            if existing is not None:
                conflict = _ownership_conflict(existing, screen)
                if conflict:
                    collisions.append(conflict)
            self._screens[screen.id] = screen
            stored += 1

        if stored:
            self._check_integrity(collisions)
            logger.info(f"Stored {stored} local screens; total={len(self._screens)}")
        self._notify(changed=stored > 0)
        return stored

    def remove_by_source(self, source_id: str) -> int:
        """Remove every entry ingested from a source."""
        self._ensure_open("remove by source")
        removed = self._remove_where(lambda s: s.is_external and s.source_id == source_id)
        if removed:
            logger.info(f"[{source_id}] Removed {removed} entries")
        return removed

    def clear_external_only(self) -> int:
        """Remove all SSP-sourced entries, keeping local inventory."""
        self._ensure_open("clear external inventory")
        removed = self._remove_where(lambda s: s.is_external)
        if removed:
            logger.info(f"Cleared {removed} external entries")
        return removed

    def clear_all(self) -> int:
        """Remove every entry."""
        self._ensure_open("clear inventory")
        removed = len(self._screens)
        self._screens.clear()
        if removed:
            logger.info(f"Cleared all {removed} entries")
        self._notify(changed=removed > 0)
        return removed

    def sweep_stale(self) -> int:
        """
        Evict external entries not refreshed within the freshness window.

        An entry whose last_updated is exactly at the cutoff is stale.
        Local entries are never evicted.
        """
        self._ensure_open("sweep stale inventory")
        cutoff = self._clock.now() - timedelta(seconds=self._config.freshness_window_seconds)

        removed = self._remove_where(
            lambda s: s.is_external and ensure_utc(s.source_metadata.last_updated) <= cutoff
        )
        if removed:
            logger.info(f"Evicted {removed} stale external entries (cutoff={cutoff.isoformat()})")
        return removed

    def _remove_where(self, predicate) -> int:
        doomed = [screen_id for screen_id, screen in self._screens.items() if predicate(screen)]
        for screen_id in doomed:
            del self._screens[screen_id]
        self._notify(changed=bool(doomed))
        return len(doomed)

    # =========================================================
    # READS
    # =========================================================

    def get_all(self) -> List[Screen]:
        """Snapshot of every entry."""
        return list(self._screens.values())

    def get_by_origin(self, is_external: bool) -> List[Screen]:
        return [s for s in self._screens.values() if s.is_external == is_external]

    def get_by_source_id(self, source_id: str) -> List[Screen]:
        return [s for s in self._screens.values() if s.is_external and s.source_id == source_id]

    def get_by_id(self, screen_id: str) -> Optional[Screen]:
        return self._screens.get(screen_id)

    def __len__(self) -> int:
        return len(self._screens)

    def __contains__(self, screen_id: object) -> bool:
        return screen_id in self._screens

    def get_stats(self) -> InventoryStats:
        """Totals by origin and by SSP name."""
        by_source_name: Dict[str, int] = {}
        external = 0
        for screen in self._screens.values():
            if screen.is_external:
                external += 1
                name = screen.source_metadata.source_name
                by_source_name[name] = by_source_name.get(name, 0) + 1

        return InventoryStats(
            total=len(self._screens),
            external=external,
            local=len(self._screens) - external,
            by_source_name=by_source_name,
            generated_at=self._clock.now(),
        )

    def validate_integrity(self) -> IntegrityReport:
        """Run the cross-record integrity check over the current inventory."""
        return validate_inventory(self._screens.values())

    def get_health(self) -> Dict[str, Any]:
        """Operational summary."""
        return {
            "closed": self._closed,
            "running": self.is_running,
            "entries": len(self._screens),
            "batches": self._batches,
            "last_batch": self._last_batch.to_dict() if self._last_batch else None,
            "subscribers": self._channel.subscriber_count,
            "subscriber_failures": self._channel.failure_counts(),
            "sweeper": self._sweeper.get_stats(),
        }

    # =========================================================
    # SUBSCRIPTIONS
    # =========================================================

    def subscribe(self, callback: Subscriber) -> None:
        """Receive the full snapshot after every change."""
        self._channel.subscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        return self._channel.unsubscribe(callback)

    # =========================================================
    # INTERNALS
    # =========================================================

    def _notify(self, changed: bool) -> None:
        if not changed and not self._config.notify_on_empty_change:
            return
        self._channel.emit(self.get_all())

    def _check_integrity(self, collisions: Iterable[str] = ()) -> IntegrityReport:
        report = self.validate_integrity()
        # Cross-owner overwrites, invisible to the duplicate scan
        report.errors = list(collisions) + report.errors
        if not report.is_valid:
            log_error(
                logger,
                IntegrityViolation(
                    f"Inventory integrity check failed with {len(report.errors)} errors",
                    violations=report.errors,
                ),
                "InventoryAggregationStore integrity",
                metadata={"errors": report.errors[:10]},
            )
        elif report.warnings:
            logger.debug(f"Integrity warnings: {len(report.warnings)}")
        return report

    def _record_failure(self, report: BatchReport, raw: RawInventoryRecord, error: ConversionFault) -> None:
        reference = _record_reference(raw)
        report.failures.append(ConversionFailure(record_ref=reference, error=error))
        log_error(
            logger,
            error,
            "InventoryAggregationStore.add_inventory",
            metadata=reference,
            level=logging.WARNING,
        )


def _record_reference(raw: Any) -> Dict[str, Any]:
    """Identifying fields of a raw record, for failure reports."""
    if isinstance(raw, ExternalInventoryRecord):
        return raw.reference()
    if isinstance(raw, Mapping):
        venue = raw.get("VenueInfo") or raw.get("venue")
        venue_id = None
        if isinstance(venue, Mapping):
            venue_id = venue.get("VenueId", venue.get("venue_id"))
        return {
            "source_id": raw.get("SSPId", raw.get("source_id")),
            "venue_id": venue_id,
            "request_id": raw.get("RequestId", raw.get("request_id")),
        }
    return {"type": type(raw).__name__}


def _ownership_conflict(existing: Screen, incoming: Screen) -> Optional[str]:
    """Describe an id collision between entries from different owners, if any."""
    existing_owner = existing.source_id if existing.is_external else None
    incoming_owner = incoming.source_id if incoming.is_external else None
    if existing_owner == incoming_owner:
        return None
    return (
        f"Screen id {incoming.id} from {_owner_label(incoming_owner)} "
        f"replaced entry owned by {_owner_label(existing_owner)}"
    )


def _owner_label(owner: Optional[str]) -> str:
    return f"source {owner}" if owner is not None else "local inventory"
