"""
Tests for Fetch Failure Classification.

============================================================
TEST COVERAGE
============================================================
1. Category detection (code, status, exception type)
2. Retry delays and Retry-After handling
3. Fallback actions
4. Unclassified failure retry budget
============================================================
"""

import asyncio

import pytest

from core.exceptions import SourceFetchError
from source_resilience import (
    FailureCategory,
    FallbackAction,
    ResilienceConfig,
    classify_fetch_failure,
)


class _HttpError(Exception):
    """Stand-in for a transport library's HTTP error."""

    def __init__(self, message, status, headers=None):
        super().__init__(message)
        self.status = status
        self.headers = headers or {}


@pytest.fixture
def config():
    return ResilienceConfig()


# ============================================================
# NETWORK
# ============================================================

class TestNetwork:
    """Connectivity failures."""

    def test_network_code(self, config):
        decision = classify_fetch_failure(
            SourceFetchError("reset", code="NETWORK_ERROR"), "alpha", config,
        )
        assert decision.category == FailureCategory.NETWORK
        assert decision.should_retry
        assert decision.retry_after_seconds == 30
        assert decision.fallback_action == FallbackAction.USE_CACHED

    def test_timeout_code_lowercase(self, config):
        decision = classify_fetch_failure(SourceFetchError("slow", code="timeout"), "alpha", config)
        assert decision.category == FailureCategory.NETWORK

    @pytest.mark.parametrize("error", [
        TimeoutError("timed out"),
        asyncio.TimeoutError(),
        ConnectionRefusedError("refused"),
        ConnectionResetError("reset"),
    ])
    def test_builtin_network_exceptions(self, config, error):
        assert classify_fetch_failure(error, "alpha", config).category == FailureCategory.NETWORK


# ============================================================
# AUTHENTICATION
# ============================================================

class TestAuthentication:
    """Credential failures disable the source."""

    @pytest.mark.parametrize("error", [
        SourceFetchError("bad key", code="AUTH_ERROR"),
        SourceFetchError("unauthorized", status_code=401),
        SourceFetchError("forbidden", status_code=403),
        _HttpError("forbidden", status=403),
    ])
    def test_auth_failures(self, config, error):
        decision = classify_fetch_failure(error, "alpha", config)
        assert decision.category == FailureCategory.AUTHENTICATION
        assert not decision.should_retry
        assert decision.retry_after_seconds is None
        assert decision.fallback_action == FallbackAction.DISABLE_SOURCE


# ============================================================
# RATE LIMITING
# ============================================================

class TestRateLimit:
    """429 responses."""

    def test_retry_after_header(self, config):
        error = SourceFetchError("slow down", status_code=429, headers={"Retry-After": "120"})
        decision = classify_fetch_failure(error, "alpha", config)
        assert decision.category == FailureCategory.RATE_LIMIT
        assert decision.retry_after_seconds == 120
        assert decision.fallback_action == FallbackAction.USE_CACHED

    def test_header_lookup_is_case_insensitive(self, config):
        error = _HttpError("slow down", status=429, headers={"retry-after": "15"})
        assert classify_fetch_failure(error, "alpha", config).retry_after_seconds == 15

    def test_explicit_retry_after_wins(self, config):
        error = SourceFetchError(
            "slow down", status_code=429, retry_after_seconds=5, headers={"Retry-After": "120"},
        )
        assert classify_fetch_failure(error, "alpha", config).retry_after_seconds == 5

    @pytest.mark.parametrize("headers", [{}, {"Retry-After": "soon"}])
    def test_default_delay(self, config, headers):
        error = SourceFetchError("slow down", status_code=429, headers=headers)
        assert classify_fetch_failure(error, "alpha", config).retry_after_seconds == 60

    def test_configurable_default(self):
        config = ResilienceConfig(rate_limit_default_retry_seconds=90)
        error = SourceFetchError("slow down", status_code=429)
        assert classify_fetch_failure(error, "alpha", config).retry_after_seconds == 90


# ============================================================
# HTTP STATUS
# ============================================================

class TestHttpStatus:
    """Server and client errors."""

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_server_errors(self, config, status):
        decision = classify_fetch_failure(SourceFetchError("down", status_code=status), "alpha", config)
        assert decision.category == FailureCategory.SERVER_ERROR
        assert decision.should_retry
        assert decision.retry_after_seconds == 60
        assert decision.fallback_action == FallbackAction.USE_CACHED
        assert decision.status_code == status

    @pytest.mark.parametrize("status", [400, 404, 422])
    def test_client_errors(self, config, status):
        decision = classify_fetch_failure(SourceFetchError("bad", status_code=status), "alpha", config)
        assert decision.category == FailureCategory.CLIENT_ERROR
        assert not decision.should_retry
        assert decision.fallback_action == FallbackAction.IGNORE


# ============================================================
# UNCLASSIFIED
# ============================================================

class TestUnknown:
    """Anything else: retry once, then ignore."""

    def test_first_unknown_retries(self, config):
        decision = classify_fetch_failure(ValueError("weird"), "alpha", config)
        assert decision.category == FailureCategory.UNKNOWN
        assert decision.should_retry
        assert decision.retry_after_seconds == 10
        assert decision.fallback_action == FallbackAction.IGNORE

    def test_second_unknown_does_not_retry(self, config):
        decision = classify_fetch_failure(ValueError("weird"), "alpha", config, prior_unknown_attempts=1)
        assert not decision.should_retry
        assert decision.retry_after_seconds is None

    def test_message_and_serialization(self, config):
        decision = classify_fetch_failure(ValueError("weird"), "alpha", config)
        data = decision.to_dict()
        assert data["category"] == "UNKNOWN"
        assert data["fallback_action"] == "ignore"
        assert "alpha" in data["error_message"]
        assert "weird" in str(decision)

    def test_non_numeric_status_ignored(self, config):
        error = _HttpError("odd", status="n/a")
        assert classify_fetch_failure(error, "alpha", config).category == FailureCategory.UNKNOWN
