"""
Tests for Inventory Store Components.

============================================================
TEST COVERAGE
============================================================
1. Event channel
2. Integrity check
3. Staleness sweeper
4. Store configuration
============================================================
"""

import asyncio
from dataclasses import replace
from unittest.mock import Mock

import pytest

from core.exceptions import ConfigurationError
from inventory_model import Coordinates, SourceMetadata
from inventory_store import (
    InventoryEventChannel,
    StaleInventorySweeper,
    StoreConfig,
    validate_inventory,
)


# ============================================================
# EVENT CHANNEL
# ============================================================

class TestEventChannel:
    """Typed, failure-isolated channel."""

    def test_subscribe_is_idempotent(self):
        channel = InventoryEventChannel()
        callback = Mock()
        channel.subscribe(callback)
        channel.subscribe(callback)
        assert channel.subscriber_count == 1

    def test_unsubscribe_by_reference(self):
        channel = InventoryEventChannel()
        callback = Mock()
        channel.subscribe(callback)
        assert channel.unsubscribe(callback)
        assert not channel.unsubscribe(callback)
        assert not channel.unsubscribe(Mock())

    def test_emit_delivers_payload(self):
        channel = InventoryEventChannel()
        first, second = Mock(), Mock()
        channel.subscribe(first)
        channel.subscribe(second)

        assert channel.emit(["payload"]) == 0
        first.assert_called_once_with(["payload"])
        second.assert_called_once_with(["payload"])
        assert channel.emitted_count == 1

    def test_failing_subscriber_does_not_block_others(self, caplog):
        channel = InventoryEventChannel("test")
        received = []

        def broken(_):
            raise ValueError("nope")

        channel.subscribe(broken)
        channel.subscribe(received.append)

        assert channel.emit(1) == 1
        assert channel.emit(2) == 1
        assert received == [1, 2]

        counts = channel.failure_counts()
        assert list(counts.values()) == [2]
        assert "SubscriberError" in caplog.text or "nope" in caplog.text

    def test_lambda_subscribers_counted_separately(self):
        channel = InventoryEventChannel()
        first = lambda _: 1 / 0
        second = lambda _: 1 / 0
        channel.subscribe(first)
        channel.subscribe(second)

        channel.emit(None)
        channel.emit(None)
        channel.unsubscribe(second)
        channel.emit(None)

        assert channel.failure_count(first) == 3
        assert channel.failure_count(second) == 0
        assert list(channel.failure_counts().values()) == [3]
        assert all("<lambda>@" in label for label in channel.failure_counts())

    def test_unsubscribe_during_emit(self):
        channel = InventoryEventChannel()
        calls = []

        def once(payload):
            calls.append(payload)
            channel.unsubscribe(once)

        channel.subscribe(once)
        channel.emit("a")
        channel.emit("b")
        assert calls == ["a"]

    def test_clear(self):
        channel = InventoryEventChannel()
        channel.subscribe(Mock())
        channel.clear()
        assert channel.subscriber_count == 0


# ============================================================
# INTEGRITY
# ============================================================

class TestIntegrity:
    """Cross-record invariant check."""

    def test_clean_inventory(self, adapter, make_record):
        screens = [adapter.convert(make_record(venue_id=v)) for v in ("V1", "V2")]
        report = validate_inventory(screens)
        assert report.is_valid
        assert report.checked == 2
        assert report.warnings == []

    def test_duplicate_ids(self, adapter, make_record):
        screen = adapter.convert(make_record())
        report = validate_inventory([screen, screen])
        assert not report.is_valid
        assert "Duplicate screen id ssp-alpha-V1" in report.errors[0]

    def test_missing_name_is_error(self, adapter, make_record):
        screen = replace(adapter.convert(make_record()), name="")
        assert not validate_inventory([screen]).is_valid

    def test_warnings(self, adapter, make_record, mock_clock):
        screen = replace(
            adapter.convert(make_record()),
            location="",
            coordinates=Coordinates.unknown(),
            source_metadata=SourceMetadata("alpha", "", "req", mock_clock.now()),
        )
        report = validate_inventory([screen])
        assert report.is_valid
        assert len(report.warnings) == 3

    def test_external_without_source_id(self, adapter, make_record, mock_clock):
        screen = replace(
            adapter.convert(make_record()),
            source_metadata=SourceMetadata("", "Alpha SSP", "req", mock_clock.now()),
        )
        assert validate_inventory([screen]).errors == ["External screen ssp-alpha-V1 has no source id"]

    def test_local_screens_not_checked_for_source(self, make_local_screen):
        assert validate_inventory([make_local_screen()]).is_valid


# ============================================================
# SWEEPER
# ============================================================

class TestSweeper:
    """Background sweep task."""

    def test_run_once_isolates_errors(self):
        sweep = Mock(side_effect=[RuntimeError("boom"), 3])
        sweeper = StaleInventorySweeper(sweep, interval_seconds=1)

        assert sweeper.run_once() == 0
        assert sweeper.run_once() == 3

        stats = sweeper.get_stats()
        assert stats["errors"] == 1
        assert stats["runs"] == 1
        assert stats["total_removed"] == 3

    @pytest.mark.asyncio
    async def test_loop_runs_and_survives_errors(self):
        sweep = Mock(side_effect=[RuntimeError("boom")] + [0] * 100)
        sweeper = StaleInventorySweeper(sweep, interval_seconds=0.01)

        sweeper.start()
        assert sweeper.is_running
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert not sweeper.is_running
        assert sweep.call_count >= 2
        assert sweeper.get_stats()["errors"] == 1

    @pytest.mark.asyncio
    async def test_start_twice_single_task(self):
        sweeper = StaleInventorySweeper(Mock(return_value=0), interval_seconds=10)
        sweeper.start()
        task = sweeper._task
        sweeper.start()
        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        sweeper = StaleInventorySweeper(Mock(return_value=0), interval_seconds=10)
        await sweeper.stop()
        assert not sweeper.is_running


# ============================================================
# CONFIGURATION
# ============================================================

class TestStoreConfig:
    """Config loading and validation."""

    def test_defaults(self):
        config = StoreConfig()
        assert config.freshness_window_seconds == 1800
        assert config.sweep_interval_seconds == 300
        assert config.reject_soft_invalid is False
        assert config.notify_on_empty_change is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("INVENTORY_FRESHNESS_WINDOW_SECONDS", "600")
        monkeypatch.setenv("INVENTORY_SWEEP_INTERVAL_SECONDS", "30")
        monkeypatch.setenv("INVENTORY_REJECT_SOFT_INVALID", "true")
        config = StoreConfig.from_env()
        assert config.freshness_window_seconds == 600
        assert config.sweep_interval_seconds == 30
        assert config.reject_soft_invalid is True

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text("store:\n  freshness_window_seconds: 900\n  notify_on_empty_change: true\n")
        config = StoreConfig.from_yaml(path)
        assert config.freshness_window_seconds == 900
        assert config.notify_on_empty_change is True
        assert config.sweep_interval_seconds == 300

    def test_invalid_yaml_values_fall_back(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text("store:\n  freshness_window_seconds: -5\n")
        assert StoreConfig.from_yaml(path).freshness_window_seconds == 1800

    def test_invalid_values_rejected(self):
        with pytest.raises(ConfigurationError):
            StoreConfig(freshness_window_seconds=0)
        with pytest.raises(ConfigurationError):
            StoreConfig(sweep_interval_seconds=-1)

    def test_to_dict(self):
        assert StoreConfig().to_dict()["sweep_interval_seconds"] == 300
