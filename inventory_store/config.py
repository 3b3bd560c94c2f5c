"""
Inventory Store - Configuration.

============================================================
CONFIGURABLE STORE BEHAVIOR
============================================================

- Freshness window for external inventory
- Staleness sweep interval
- Whether soft-invalid records are dropped or defaulted
- Whether mutations that change nothing still notify

Configuration can be loaded from:
- Default values
- Environment variables
- YAML config file (`store` section)

============================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class StoreConfig:
    """Aggregation store settings. Durations are in seconds."""

    # External entries older than this are evicted by the sweep
    freshness_window_seconds: float = 1800.0

    # Period of the background staleness sweep
    sweep_interval_seconds: float = 300.0

    # Drop records with soft (out-of-range) errors instead of defaulting them
    reject_soft_invalid: bool = False

    # Notify subscribers even when a mutation removed/added nothing
    notify_on_empty_change: bool = False

    def __post_init__(self) -> None:
        if self.freshness_window_seconds <= 0:
            raise ConfigurationError(
                "freshness_window_seconds must be positive",
                config_key="freshness_window_seconds",
                actual_value=self.freshness_window_seconds,
            )
        if self.sweep_interval_seconds <= 0:
            raise ConfigurationError(
                "sweep_interval_seconds must be positive",
                config_key="sweep_interval_seconds",
                actual_value=self.sweep_interval_seconds,
            )

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - INVENTORY_FRESHNESS_WINDOW_SECONDS
        - INVENTORY_SWEEP_INTERVAL_SECONDS
        - INVENTORY_REJECT_SOFT_INVALID
        - INVENTORY_NOTIFY_ON_EMPTY_CHANGE
        """
        kwargs: Dict[str, Any] = {}

        if os.getenv("INVENTORY_FRESHNESS_WINDOW_SECONDS"):
            kwargs["freshness_window_seconds"] = float(os.getenv("INVENTORY_FRESHNESS_WINDOW_SECONDS"))
        if os.getenv("INVENTORY_SWEEP_INTERVAL_SECONDS"):
            kwargs["sweep_interval_seconds"] = float(os.getenv("INVENTORY_SWEEP_INTERVAL_SECONDS"))
        if os.getenv("INVENTORY_REJECT_SOFT_INVALID"):
            kwargs["reject_soft_invalid"] = os.getenv("INVENTORY_REJECT_SOFT_INVALID").lower() in _TRUTHY
        if os.getenv("INVENTORY_NOTIFY_ON_EMPTY_CHANGE"):
            kwargs["notify_on_empty_change"] = os.getenv("INVENTORY_NOTIFY_ON_EMPTY_CHANGE").lower() in _TRUTHY

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "StoreConfig":
        """Load configuration from the `store` section of a YAML file."""
        try:
            import yaml
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

            section = data.get('store', data)
            defaults = cls()
            return cls(
                freshness_window_seconds=float(
                    section.get('freshness_window_seconds', defaults.freshness_window_seconds)
                ),
                sweep_interval_seconds=float(
                    section.get('sweep_interval_seconds', defaults.sweep_interval_seconds)
                ),
                reject_soft_invalid=bool(section.get('reject_soft_invalid', defaults.reject_soft_invalid)),
                notify_on_empty_change=bool(
                    section.get('notify_on_empty_change', defaults.notify_on_empty_change)
                ),
            )

        except Exception as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "freshness_window_seconds": self.freshness_window_seconds,
            "sweep_interval_seconds": self.sweep_interval_seconds,
            "reject_soft_invalid": self.reject_soft_invalid,
            "notify_on_empty_change": self.notify_on_empty_change,
        }


# =============================================================
# GLOBAL CONFIG
# =============================================================


_default_config: Optional[StoreConfig] = None


def get_config() -> StoreConfig:
    """Get the global store configuration."""
    global _default_config
    if _default_config is None:
        _default_config = StoreConfig.from_env()
    return _default_config


def set_config(config: StoreConfig) -> None:
    """Set the global store configuration."""
    global _default_config
    _default_config = config
