"""
Source Resilience Package.

Failure policy for SSP sources feeding the inventory store.

Modules:
- config: retry delays and redaction settings
- classification: fetch failure -> RecoveryDecision
- redaction: sensitive-data-safe error logging
- registry: per-source failure and disabled state

This package classifies failures only; retry scheduling belongs
to the transport that performs the fetch.
"""

from .classification import (
    FailureCategory,
    FallbackAction,
    RecoveryDecision,
    classify_fetch_failure,
)
from .config import DEFAULT_SENSITIVE_TERMS, ResilienceConfig, get_config, set_config
from .redaction import REDACTED, is_sensitive_key, log_error, redact_metadata
from .registry import SourceFailureRegistry, SourceFailureState


__all__ = [
    # Classification
    "FailureCategory",
    "FallbackAction",
    "RecoveryDecision",
    "classify_fetch_failure",
    # Config
    "DEFAULT_SENSITIVE_TERMS",
    "ResilienceConfig",
    "get_config",
    "set_config",
    # Redaction
    "REDACTED",
    "is_sensitive_key",
    "log_error",
    "redact_metadata",
    # Registry
    "SourceFailureRegistry",
    "SourceFailureState",
]
