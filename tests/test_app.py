"""
Tests for the application entry point.
"""

import json

import pytest

import app
from core.clock import MockClock
from inventory_store import StoreConfig


@pytest.fixture
def feed_file(tmp_path, make_record):
    bad = make_record(venue_id="V3")
    del bad["SSPId"]
    path = tmp_path / "feed.json"
    path.write_text(json.dumps([make_record(venue_id="V1"), make_record(venue_id="V2"), bad]))
    return path


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    # Keep pytest's log capture handlers in place
    monkeypatch.setattr(app, "setup_logging", lambda *args, **kwargs: None)


class TestRuntime:
    """Composition root."""

    def test_build_runtime_shares_clock(self, mock_clock):
        runtime = app.build_inventory_runtime(StoreConfig(), clock=mock_clock)
        assert runtime.clock is mock_clock
        assert runtime.refresh_handler.registry is runtime.registry
        assert runtime.store.config.freshness_window_seconds == 1800

    def test_separate_runtimes_are_independent(self, make_record):
        first = app.build_inventory_runtime(clock=MockClock())
        second = app.build_inventory_runtime(clock=MockClock())
        first.store.add_inventory([make_record()])
        assert len(second.store) == 0


class TestFeedLoading:
    """Feed file formats."""

    def test_list(self, feed_file):
        assert len(app.load_feed(feed_file)) == 3

    def test_records_object(self, tmp_path, make_record):
        path = tmp_path / "feed.json"
        path.write_text(json.dumps({"records": [make_record()]}))
        assert len(app.load_feed(path)) == 1

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "feed.json"
        path.write_text(json.dumps("nope"))
        with pytest.raises(ValueError):
            app.load_feed(path)


class TestCli:
    """One-shot ingestion."""

    def test_ingests_and_prints_stats(self, feed_file, capsys):
        assert app.main(["--feed", str(feed_file)]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["batch"]["converted"] == 2
        assert output["batch"]["failed"] == 1
        assert output["stats"]["external"] == 2
        assert output["stats"]["by_source_name"] == {"Alpha SSP": 2}
        assert "screens" not in output

    def test_show_screens(self, feed_file, capsys):
        app.main(["--feed", str(feed_file), "--show-screens"])
        output = json.loads(capsys.readouterr().out)
        assert {s["id"] for s in output["screens"]} == {"ssp-alpha-V1", "ssp-alpha-V2"}

    def test_nothing_convertible_exit_code(self, tmp_path, capsys):
        path = tmp_path / "feed.json"
        path.write_text(json.dumps([{"VenueInfo": {}}]))
        assert app.main(["--feed", str(path)]) == 1
        assert "NoConvertibleRecordsError" in capsys.readouterr().out

    def test_missing_feed(self, tmp_path):
        assert app.main(["--feed", str(tmp_path / "missing.json")]) == 1

    def test_yaml_config(self, feed_file, tmp_path, capsys):
        config = tmp_path / "store.yaml"
        config.write_text("store:\n  reject_soft_invalid: true\n")
        assert app.main(["--feed", str(feed_file), "--config", str(config)]) == 0
