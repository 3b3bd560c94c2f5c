"""
Core Module Package.

This package contains the core infrastructure components
that all other inventory packages depend on.

Components:
- clock: Unified, injectable time abstraction
- exceptions: Custom exception hierarchy
"""

from .clock import (
    ClockFactory,
    ClockProtocol,
    MockClock,
    SystemClock,
    ensure_utc,
)
from .exceptions import (
    ConfigurationError,
    ConversionFault,
    IntegrityViolation,
    InventoryException,
    NoConvertibleRecordsError,
    RecordValidationError,
    Severity,
    SourceFetchError,
    StoreClosedError,
    SubscriberError,
)


__all__ = [
    # Clock
    "ClockFactory",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "ensure_utc",
    # Exceptions
    "ConfigurationError",
    "ConversionFault",
    "IntegrityViolation",
    "InventoryException",
    "NoConvertibleRecordsError",
    "RecordValidationError",
    "Severity",
    "SourceFetchError",
    "StoreClosedError",
    "SubscriberError",
]
