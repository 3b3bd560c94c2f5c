"""
Inventory Store Package.

Aggregated canonical inventory with push notifications.

Modules:
- config: store settings (freshness window, sweep interval, policy)
- events: typed, failure-isolated subscriber channel
- integrity: cross-record invariant check
- store: InventoryAggregationStore and its result types
- sweeper: background staleness sweep task
- refresh: applies fetch outcomes to the store
"""

from .config import StoreConfig, get_config, set_config
from .events import InventoryEventChannel, Subscriber
from .integrity import IntegrityReport, validate_inventory
from .refresh import RefreshOutcome, SourceRefreshHandler
from .store import (
    BatchReport,
    BatchStatus,
    ConversionFailure,
    InventoryAggregationStore,
    InventoryStats,
)
from .sweeper import StaleInventorySweeper


__all__ = [
    # Config
    "StoreConfig",
    "get_config",
    "set_config",
    # Events
    "InventoryEventChannel",
    "Subscriber",
    # Integrity
    "IntegrityReport",
    "validate_inventory",
    # Refresh
    "RefreshOutcome",
    "SourceRefreshHandler",
    # Store
    "BatchReport",
    "BatchStatus",
    "ConversionFailure",
    "InventoryAggregationStore",
    "InventoryStats",
    # Sweeper
    "StaleInventorySweeper",
]
