"""
Source Resilience - Configuration.

============================================================
CONFIGURABLE FAILURE POLICY
============================================================

All backoff values and redaction limits are configurable:
- Retry delays per failure category
- Unclassified-failure retry budget
- Sensitive key terms and log value truncation

Configuration can be loaded from:
- Default values
- Environment variables
- YAML config file

============================================================
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import logging


logger = logging.getLogger(__name__)


DEFAULT_SENSITIVE_TERMS: Tuple[str, ...] = (
    "password",
    "token",
    "key",
    "secret",
    "credential",
    "auth",
)


@dataclass
class ResilienceConfig:
    """
    Failure classification and redaction settings.

    Retry delays are in seconds.
    """
    # Backoff per category
    network_retry_seconds: float = 30.0
    rate_limit_default_retry_seconds: float = 60.0
    server_error_retry_seconds: float = 60.0
    unknown_error_retry_seconds: float = 10.0

    # Unclassified failures: retry this many times, then ignore
    max_unknown_retries: int = 1

    # Redaction
    sensitive_terms: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_SENSITIVE_TERMS)
    log_value_max_length: int = 100

    def __post_init__(self) -> None:
        """Validate settings."""
        for name in (
            "network_retry_seconds",
            "rate_limit_default_retry_seconds",
            "server_error_retry_seconds",
            "unknown_error_retry_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.max_unknown_retries < 0:
            raise ValueError("max_unknown_retries must be >= 0")
        if self.log_value_max_length <= 0:
            raise ValueError("log_value_max_length must be positive")

    @classmethod
    def from_env(cls) -> "ResilienceConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - RESILIENCE_NETWORK_RETRY_SECONDS
        - RESILIENCE_RATE_LIMIT_RETRY_SECONDS
        - RESILIENCE_SERVER_ERROR_RETRY_SECONDS
        - RESILIENCE_UNKNOWN_RETRY_SECONDS
        - RESILIENCE_MAX_UNKNOWN_RETRIES
        - RESILIENCE_LOG_VALUE_MAX_LENGTH
        """
        config = cls()

        if os.getenv("RESILIENCE_NETWORK_RETRY_SECONDS"):
            config.network_retry_seconds = float(os.getenv("RESILIENCE_NETWORK_RETRY_SECONDS"))
        if os.getenv("RESILIENCE_RATE_LIMIT_RETRY_SECONDS"):
            config.rate_limit_default_retry_seconds = float(os.getenv("RESILIENCE_RATE_LIMIT_RETRY_SECONDS"))
        if os.getenv("RESILIENCE_SERVER_ERROR_RETRY_SECONDS"):
            config.server_error_retry_seconds = float(os.getenv("RESILIENCE_SERVER_ERROR_RETRY_SECONDS"))
        if os.getenv("RESILIENCE_UNKNOWN_RETRY_SECONDS"):
            config.unknown_error_retry_seconds = float(os.getenv("RESILIENCE_UNKNOWN_RETRY_SECONDS"))
        if os.getenv("RESILIENCE_MAX_UNKNOWN_RETRIES"):
            config.max_unknown_retries = int(os.getenv("RESILIENCE_MAX_UNKNOWN_RETRIES"))
        if os.getenv("RESILIENCE_LOG_VALUE_MAX_LENGTH"):
            config.log_value_max_length = int(os.getenv("RESILIENCE_LOG_VALUE_MAX_LENGTH"))

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "ResilienceConfig":
        """Load configuration from the `resilience` section of a YAML file."""
        try:
            import yaml
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

            section = data.get('resilience', data)
            defaults = cls()
            return cls(
                network_retry_seconds=section.get('network_retry_seconds', defaults.network_retry_seconds),
                rate_limit_default_retry_seconds=section.get(
                    'rate_limit_default_retry_seconds', defaults.rate_limit_default_retry_seconds
                ),
                server_error_retry_seconds=section.get(
                    'server_error_retry_seconds', defaults.server_error_retry_seconds
                ),
                unknown_error_retry_seconds=section.get(
                    'unknown_error_retry_seconds', defaults.unknown_error_retry_seconds
                ),
                max_unknown_retries=section.get('max_unknown_retries', defaults.max_unknown_retries),
                sensitive_terms=tuple(section.get('sensitive_terms', defaults.sensitive_terms)),
                log_value_max_length=section.get('log_value_max_length', defaults.log_value_max_length),
            )

        except Exception as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "network_retry_seconds": self.network_retry_seconds,
            "rate_limit_default_retry_seconds": self.rate_limit_default_retry_seconds,
            "server_error_retry_seconds": self.server_error_retry_seconds,
            "unknown_error_retry_seconds": self.unknown_error_retry_seconds,
            "max_unknown_retries": self.max_unknown_retries,
            "sensitive_terms": list(self.sensitive_terms),
            "log_value_max_length": self.log_value_max_length,
        }


# =============================================================
# GLOBAL CONFIG
# =============================================================


_default_config: Optional[ResilienceConfig] = None


def get_config() -> ResilienceConfig:
    """Get the global resilience configuration."""
    global _default_config
    if _default_config is None:
        _default_config = ResilienceConfig.from_env()
    return _default_config


def set_config(config: ResilienceConfig) -> None:
    """Set the global resilience configuration."""
    global _default_config
    _default_config = config
