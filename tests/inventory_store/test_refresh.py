"""
Tests for Source Refresh Handler.

============================================================
TEST COVERAGE
============================================================
1. Successful refreshes
2. Failed fetches and fallback actions
3. Disabled sources
============================================================
"""

import pytest

from core.exceptions import SourceFetchError
from inventory_store import InventoryAggregationStore, SourceRefreshHandler, StoreConfig
from source_resilience import FallbackAction, ResilienceConfig, SourceFailureRegistry


@pytest.fixture
def store(mock_clock, adapter):
    return InventoryAggregationStore(config=StoreConfig(), clock=mock_clock, adapter=adapter)


@pytest.fixture
def handler(store, mock_clock):
    registry = SourceFailureRegistry(config=ResilienceConfig(), clock=mock_clock)
    return SourceRefreshHandler(store, registry)


class TestRefreshSuccess:
    """Successful fetches."""

    def test_ingests_records(self, handler, store, make_record):
        outcome = handler.handle_success("alpha", [make_record(venue_id="V1"), make_record(venue_id="V2")])
        assert outcome.accepted
        assert outcome.report.converted == 2
        assert len(store.get_by_source_id("alpha")) == 2

    def test_all_failed_batch_reported(self, handler, store, make_record):
        bad = make_record()
        del bad["SSPId"]
        outcome = handler.handle_success("alpha", [bad])

        assert not outcome.accepted
        assert outcome.failed_records == 1
        assert outcome.skipped_reason == "no convertible records"
        assert len(store) == 0

    def test_success_clears_failures(self, handler, make_record):
        handler.handle_failure("alpha", SourceFetchError("down", status_code=503))
        handler.handle_success("alpha", [make_record()])
        assert handler.registry.get_state("alpha").consecutive_failures == 0


class TestRefreshFailure:
    """Failed fetches."""

    def test_auth_failure_removes_source(self, handler, store, make_record):
        handler.handle_success("alpha", [make_record("alpha", "V1")])
        handler.handle_success("beta", [make_record("beta", "V1")])

        outcome = handler.handle_failure("alpha", SourceFetchError("denied", status_code=401))

        assert outcome.decision.fallback_action == FallbackAction.DISABLE_SOURCE
        assert outcome.removed == 1
        assert store.get_by_source_id("alpha") == []
        assert len(store.get_by_source_id("beta")) == 1

    def test_server_error_keeps_cache(self, handler, store, make_record):
        handler.handle_success("alpha", [make_record()])
        outcome = handler.handle_failure("alpha", SourceFetchError("down", status_code=503))

        assert outcome.decision.fallback_action == FallbackAction.USE_CACHED
        assert outcome.decision.retry_after_seconds == 60
        assert outcome.removed == 0
        assert len(store) == 1

    def test_client_error_ignored(self, handler, store, make_record):
        handler.handle_success("alpha", [make_record()])
        outcome = handler.handle_failure("alpha", SourceFetchError("gone", status_code=404))
        assert outcome.decision.fallback_action == FallbackAction.IGNORE
        assert len(store) == 1

    def test_outcome_to_dict(self, handler):
        data = handler.handle_failure("alpha", TimeoutError()).to_dict()
        assert data["decision"]["category"] == "NETWORK"
        assert data["accepted"] is False


class TestDisabledSources:
    """Disabled sources are ignored until re-enabled."""

    def test_refresh_from_disabled_source_skipped(self, handler, store, make_record):
        handler.handle_failure("alpha", SourceFetchError("denied", code="AUTH_ERROR"))
        outcome = handler.handle_success("alpha", [make_record()])

        assert not outcome.accepted
        assert outcome.skipped_reason == "source disabled"
        assert len(store) == 0

    def test_reenabled_source_accepted(self, handler, store, make_record):
        handler.handle_failure("alpha", SourceFetchError("denied", status_code=403))
        handler.registry.enable_source("alpha")
        assert handler.handle_success("alpha", [make_record()]).accepted
        assert len(store) == 1
