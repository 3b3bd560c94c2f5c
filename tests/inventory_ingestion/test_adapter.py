"""
Tests for Screen Adapter.

============================================================
TEST COVERAGE
============================================================
1. Identity and provenance
2. Pricing, rating and spec derivation
3. Defaults for missing and soft-invalid data
4. Rejection policy
5. Text sanitization
============================================================
"""

from datetime import datetime, timezone

import pytest

from core.exceptions import ConversionFault
from inventory_ingestion import (
    InventoryValidator,
    MAX_TEXT_LENGTH,
    ScreenAdapter,
    aspect_ratio_label,
    calculate_pricing,
    calculate_rating,
    resolution_label,
    review_count,
    sanitize_text,
)
from inventory_model import Environment, Orientation, ScreenCategoryId


# ============================================================
# IDENTITY
# ============================================================

class TestIdentity:
    """Ids and source metadata."""

    def test_screen_id(self, adapter, make_record):
        screen = adapter.convert(make_record())
        assert screen.id == "ssp-alpha-V1"
        assert screen.is_external
        assert screen.source_id == "alpha"

    def test_source_metadata(self, adapter, make_record, mock_clock):
        meta = adapter.convert(make_record()).source_metadata
        assert meta.source_name == "Alpha SSP"
        assert meta.original_inventory_id == "req-V1"
        assert meta.last_updated == mock_clock.now()

    def test_feed_timestamp_used_as_last_updated(self, adapter, make_record):
        screen = adapter.convert(make_record(Timestamp="2025-02-28T10:00:00Z"))
        assert screen.source_metadata.last_updated == datetime(2025, 2, 28, 10, tzinfo=timezone.utc)

    def test_missing_request_id_falls_back_to_screen_id(self, adapter, make_record):
        record = make_record()
        del record["RequestId"]
        assert adapter.convert(record).source_metadata.original_inventory_id == "ssp-alpha-V1"

    def test_accepts_validation_result(self, adapter, make_record):
        result = InventoryValidator().validate(make_record())
        assert adapter.convert(result).id == "ssp-alpha-V1"


# ============================================================
# DERIVATION
# ============================================================

class TestDerivation:
    """Pricing, rating and spec labels."""

    def test_pricing_bundles(self, adapter, make_record):
        pricing = adapter.convert(make_record()).pricing
        assert (pricing.hourly.price, pricing.hourly.spots) == (80, 4)
        assert (pricing.daily.price, pricing.daily.spots) == (1280, 64)
        assert (pricing.weekly.price, pricing.weekly.spots) == (8960, 448)
        assert (pricing.monthly.price, pricing.monthly.spots) == (38400, 1920)
        assert pricing.allow_moments
        assert pricing.device_id == "SSP_ssp-alpha-V1"

    def test_calculate_pricing_currency(self):
        assert calculate_pricing(1.0, "x", currency="COP").currency == "COP"

    def test_rating(self, adapter, make_record):
        # 3.5 + 0.5 (impressions) + 0.2 (width) + 0.1 (brightness)
        assert adapter.convert(make_record()).rating == pytest.approx(4.3)

    def test_rating_bonuses(self):
        assert calculate_rating(200_000, 100, 3840, 8000) == pytest.approx(4.8)
        assert calculate_rating(0, 0, 800, 100) == pytest.approx(3.5)
        assert calculate_rating(75_000, 10, 1280, 4000) == pytest.approx(4.0)

    @pytest.mark.parametrize("width,label", [
        (3840, "4K"), (1920, "Full HD"), (1280, "HD"), (800, "SD"),
    ])
    def test_resolution(self, width, label):
        assert resolution_label(width) == label

    @pytest.mark.parametrize("width,height,label", [
        (1920, 1080, "16:9"), (1500, 1000, "3:2"), (1024, 768, "4:3"), (1080, 1920, "1:1"),
    ])
    def test_aspect_ratio(self, width, height, label):
        assert aspect_ratio_label(width, height) == label

    def test_specs(self, adapter, make_record):
        specs = adapter.convert(make_record()).specs
        assert specs.resolution == "Full HD"
        assert specs.brightness == "6000 nits"
        assert specs.orientation == Orientation.LANDSCAPE
        assert specs.pixel_density == 40
        assert (specs.color_depth, specs.refresh_rate, specs.technology) == (24, 60, "LED")

    def test_portrait(self, adapter, make_record):
        screen = adapter.convert(make_record(ScreenInfo={"WidthPixels": 1080, "HeightPixels": 1920}))
        assert screen.specs.orientation == Orientation.PORTRAIT
        assert screen.environment == Environment.INDOOR

    def test_views_and_metrics(self, adapter, make_record):
        screen = adapter.convert(make_record())
        assert (screen.views.daily, screen.views.weekly, screen.views.monthly) == (60000, 420000, 1800000)
        assert screen.metrics.monthly_traffic == 1800000
        assert screen.metrics.average_engagement == 85

    def test_category_and_environment(self, adapter, make_record):
        screen = adapter.convert(make_record())
        assert screen.category.id == ScreenCategoryId.MALL
        assert screen.category.name == "Centro Comercial"
        assert screen.environment == Environment.OUTDOOR

    def test_location(self, adapter, make_record):
        screen = adapter.convert(make_record())
        assert screen.location == "Bogota, Colombia"
        assert screen.location_details.address == "Calle 100 #15-20"
        assert screen.location_details.landmarks == ("Mall X",)
        assert screen.coordinates.lat == pytest.approx(4.65)

    def test_operating_hours(self, adapter, make_record):
        hours = adapter.convert(make_record()).operating_hours
        assert (hours.start, hours.end) == ("06:00", "23:00")
        assert len(hours.days_active) == 7

    def test_availability(self, adapter, make_record):
        assert adapter.convert(make_record()).availability is True
        assert adapter.convert(make_record(AvailabilityInfo={"Status": "Booked"})).availability is False

    def test_reviews_deterministic(self, adapter, make_record):
        first = adapter.convert(make_record()).reviews
        assert first == adapter.convert(make_record()).reviews
        assert 10 <= review_count("anything") <= 59


# ============================================================
# DEFAULTS
# ============================================================

class TestDefaults:
    """Missing and soft-invalid values never reach the screen."""

    def test_scenario_bad_latitude_and_negative_price(self, adapter):
        screen = adapter.convert({
            "SSPId": "A",
            "VenueInfo": {"VenueId": "1", "VenueName": "Mall X"},
            "GeoLocation": {"Latitude": 95},
            "PricingInfo": {"FloorPrice": -5},
        })

        assert screen.id == "ssp-A-1"
        assert screen.price == 10
        assert screen.pricing.hourly.price == 40
        assert not screen.coordinates.is_known
        assert screen.coordinates.lat is None

    def test_scenario_missing_geo_and_pricing(self, adapter):
        screen = adapter.convert({
            "SSPId": "alpha",
            "VenueInfo": {"VenueId": "V9", "VenueName": "Terminal"},
        })

        assert screen.location == "Unknown, Unknown"
        assert screen.price == 10
        assert not screen.coordinates.is_known
        assert screen.location_details.timezone == "America/Bogota"
        assert screen.category.id == ScreenCategoryId.GENERAL
        assert screen.image == "/screens_photos/ssp-default.jpg"
        assert screen.source_metadata.source_name == "Unknown SSP"

    def test_invalid_dimensions_defaulted(self, adapter, make_record):
        screen = adapter.convert(make_record(ScreenInfo={"WidthPixels": 0, "HeightPixels": -1}))
        assert (screen.specs.width, screen.specs.height) == (1920, 1080)

    def test_negative_impressions_defaulted(self, adapter, make_record):
        screen = adapter.convert(make_record(AudienceInfo={"EstimatedDailyImpressions": -100}))
        assert screen.views.daily == 10000


# ============================================================
# REJECTION
# ============================================================

class TestRejection:
    """Only unusable records raise."""

    def test_hard_invalid_raises(self, adapter, make_record):
        record = make_record()
        del record["SSPId"]
        with pytest.raises(ConversionFault) as exc_info:
            adapter.convert(record)
        assert exc_info.value.issues[0].code.value == "MISSING_REQUIRED_FIELD"

    def test_soft_invalid_rejected_under_strict_policy(self, mock_clock, make_record):
        strict = ScreenAdapter(clock=mock_clock, reject_soft_invalid=True)
        with pytest.raises(ConversionFault):
            strict.convert(make_record(PricingInfo={"FloorPrice": -5}))

    def test_identifier_empty_after_sanitization(self, adapter, make_record):
        with pytest.raises(ConversionFault):
            adapter.convert(make_record(venue_id="<>"))

    def test_soft_errors_logged_with_redaction(self, adapter, make_record, caplog):
        with caplog.at_level("WARNING"):
            adapter.convert(make_record(PricingInfo={"FloorPrice": -5}))
        assert "[SSP Error]" in caplog.text
        assert "INVALID_PRICE" in caplog.text


# ============================================================
# SANITIZATION
# ============================================================

class TestSanitization:
    """Free text is stripped of markup."""

    def test_name_sanitized(self, adapter, make_record):
        record = make_record()
        record["VenueInfo"]["VenueName"] = "<img src=x onerror=alert(1)>Mall"
        screen = adapter.convert(record)
        assert "<" not in screen.name and ">" not in screen.name
        assert "onerror=" not in screen.name

    def test_sanitize_text_patterns(self):
        assert sanitize_text("<b>Mall</b>") == "bMall/b"
        assert sanitize_text("JavaScript:alert(1)") == "alert(1)"
        assert sanitize_text("x onclick = steal()") == "x  steal()"
        assert sanitize_text("  padded  ") == "padded"

    def test_spliced_patterns_removed(self):
        assert sanitize_text("jajavascript:vascript:x") == "x"

    def test_length_cap(self):
        assert len(sanitize_text("a" * 5000)) == MAX_TEXT_LENGTH

    def test_non_string(self):
        assert sanitize_text(None) == ""
        assert sanitize_text(42) == ""
