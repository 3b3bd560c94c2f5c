"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the inventory pipeline.

- Provides clear exception hierarchy
- Enables specific error handling at isolation seams
- Includes context for debugging (redacted before logging)

============================================================
EXCEPTION HIERARCHY
============================================================
InventoryException (base)
├── ConfigurationError
├── RecordValidationError
├── ConversionFault
│   └── NoConvertibleRecordsError
├── IntegrityViolation
├── SourceFetchError
├── SubscriberError
└── StoreClosedError

============================================================
PROPAGATION
============================================================
- RecordValidationError / ConversionFault never escape a batch
- NoConvertibleRecordsError is the only batch-level raise
- IntegrityViolation and SubscriberError are logged, not raised

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, a source or the store is degraded."""

    CRITICAL = "critical"
    """Critical issue, requires immediate action."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class InventoryException(Exception):
    """
    Base exception for all inventory pipeline errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - recoverable: for error handling decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def requires_immediate_action(self) -> bool:
        """Check if error requires immediate action."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(InventoryException):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_recoverable = False

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# RECORD ERRORS
# ============================================================

class RecordValidationError(InventoryException):
    """
    Field-level structural problem in one external record.

    Carries the issue list produced by the validator. Non-fatal to
    the batch: the store never lets this escape add_inventory.
    """

    default_severity = Severity.LOW

    def __init__(
        self,
        message: str,
        issues: Optional[List[Any]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.issues = list(issues or [])


class ConversionFault(InventoryException):
    """A record remains unconvertible even after sanitization."""

    default_severity = Severity.LOW

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        venue_id: Optional[str] = None,
        issues: Optional[List[Any]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if source_id:
            context["source_id"] = source_id
        if venue_id:
            context["venue_id"] = venue_id

        super().__init__(message, context=context, **kwargs)
        self.source_id = source_id
        self.venue_id = venue_id
        self.issues = list(issues or [])


class NoConvertibleRecordsError(ConversionFault):
    """
    A non-empty batch produced zero canonical screens.

    Distinct from partial failure: signals that a source is producing
    nothing usable.
    """

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        failures: Optional[List[Any]] = None,
        batch_size: int = 0,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        context["batch_size"] = batch_size
        context["failure_count"] = len(failures or [])

        super().__init__(message, context=context, **kwargs)
        self.failures = list(failures or [])
        self.batch_size = batch_size


# ============================================================
# STORE ERRORS
# ============================================================

class IntegrityViolation(InventoryException):
    """A cross-record invariant is broken after a merge."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        violations: Optional[List[str]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        context["violation_count"] = len(violations or [])

        super().__init__(message, context=context, **kwargs)
        self.violations = list(violations or [])


class SubscriberError(InventoryException):
    """An update subscriber raised while being notified."""

    default_severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        subscriber_name: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if subscriber_name:
            context["subscriber"] = subscriber_name

        super().__init__(message, context=context, **kwargs)
        self.subscriber_name = subscriber_name


class StoreClosedError(InventoryException):
    """A mutation was attempted after the store was shut down."""

    default_severity = Severity.MEDIUM
    default_recoverable = False


# ============================================================
# SOURCE ERRORS
# ============================================================

class SourceFetchError(InventoryException):
    """
    A fetch/refresh of an external source failed.

    Raised by the transport layer (outside this pipeline) and
    consumed here for classification only.
    """

    default_severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        retry_after_seconds: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if source_id:
            context["source_id"] = source_id
        if code:
            context["code"] = code
        if status_code is not None:
            context["status_code"] = status_code

        super().__init__(message, context=context, **kwargs)
        self.source_id = source_id
        self.code = code
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds
        self.headers = dict(headers or {})

    def is_rate_limited(self) -> bool:
        """Check if error is due to rate limiting."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        """Check if error is client-side."""
        return self.status_code is not None and 400 <= self.status_code < 500


__all__ = [
    "Severity",
    "InventoryException",
    "ConfigurationError",
    "RecordValidationError",
    "ConversionFault",
    "NoConvertibleRecordsError",
    "IntegrityViolation",
    "SubscriberError",
    "StoreClosedError",
    "SourceFetchError",
]
