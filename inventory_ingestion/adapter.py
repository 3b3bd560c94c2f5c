"""
Inventory Ingestion - Screen Adapter.

============================================================
RESPONSIBILITY
============================================================
Converts a validated external record into a canonical Screen.

- Consumes only SanitizedInventoryRecord (typed boundary)
- Every value goes through defaults.effective_value() so that
  soft-invalid values retained by the validator never reach
  canonical output
- Derives pricing bundles, rating, resolution and aspect
  ratio from the physical specs
- Sanitizes every free-text field

============================================================
DERIVATION RULES
============================================================
Pricing (floor price F):
  hourly  = F * 4         4 spots
  daily   = hourly * 16   64 spots (16 operating hours)
  weekly  = daily * 7     448 spots
  monthly = daily * 30    1920 spots

Rating: 3.5 base, bonuses for audience, price tier, width
and brightness, clamped to [1.0, 5.0].

============================================================
"""

import hashlib
import logging
from typing import Optional, Union

from core.clock import ClockFactory, ClockProtocol
from core.exceptions import ConversionFault, RecordValidationError
from inventory_model.categories import map_venue_types
from inventory_model.external_record import RawInventoryRecord
from inventory_model.screen import (
    AudienceViews,
    Coordinates,
    Environment,
    LocationDetails,
    OperatingHours,
    Orientation,
    PricingBundle,
    PricingBundles,
    Screen,
    ScreenCategory,
    ScreenSpecs,
    SourceMetadata,
    TrafficMetrics,
    clamp_rating,
)
from source_resilience.redaction import log_error

from .defaults import DEFAULT_AVAILABILITY_STATUS, effective_value
from .sanitizer import sanitize_text
from .types import SanitizedInventoryRecord, ValidationResult
from .validator import InventoryValidator, validate_screen


logger = logging.getLogger(__name__)


SCREEN_ID_PREFIX = "ssp-"
DEVICE_ID_PREFIX = "SSP_"

# Pricing
SPOTS_PER_HOUR = 4
OPERATING_HOURS_PER_DAY = 16
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30

# Rating
BASE_RATING = 3.5


# =============================================================
# DERIVATION HELPERS
# =============================================================

def build_screen_id(source_id: str, venue_id: str) -> str:
    """Canonical id of an external screen."""
    return f"{SCREEN_ID_PREFIX}{source_id}-{venue_id}"


def calculate_pricing(floor_price: float, screen_id: str, currency: str = "USD") -> PricingBundles:
    """Derive the four time-bucketed bundles from a floor price."""
    hourly = floor_price * SPOTS_PER_HOUR
    daily = hourly * OPERATING_HOURS_PER_DAY
    weekly = daily * DAYS_PER_WEEK
    monthly = daily * DAYS_PER_MONTH

    spots_daily = SPOTS_PER_HOUR * OPERATING_HOURS_PER_DAY

    return PricingBundles(
        hourly=PricingBundle(enabled=True, price=hourly, spots=SPOTS_PER_HOUR),
        daily=PricingBundle(enabled=True, price=daily, spots=spots_daily),
        weekly=PricingBundle(enabled=True, price=weekly, spots=spots_daily * DAYS_PER_WEEK),
        monthly=PricingBundle(enabled=True, price=monthly, spots=spots_daily * DAYS_PER_MONTH),
        currency=currency,
        allow_moments=True,
        device_id=f"{DEVICE_ID_PREFIX}{screen_id}",
    )


def calculate_rating(
    daily_impressions: int,
    floor_price: float,
    width: int,
    brightness: float,
) -> float:
    """Quality rating from audience, price tier and panel specs."""
    rating = BASE_RATING

    if daily_impressions > 50_000:
        rating += 0.5
    if daily_impressions > 100_000:
        rating += 0.3
    if floor_price > 50:
        rating += 0.2
    if width >= 1920:
        rating += 0.2
    if brightness >= 5000:
        rating += 0.1

    return round(clamp_rating(rating), 2)


def resolution_label(width: int) -> str:
    if width >= 3840:
        return "4K"
    if width >= 1920:
        return "Full HD"
    if width >= 1280:
        return "HD"
    return "SD"


def aspect_ratio_label(width: int, height: int) -> str:
    ratio = width / height
    if ratio > 1.7:
        return "16:9"
    if ratio > 1.4:
        return "3:2"
    if ratio > 1.2:
        return "4:3"
    return "1:1"


def review_count(screen_id: str) -> int:
    """Stable pseudo review count in [10, 59] for a screen id."""
    digest = hashlib.sha256(screen_id.encode("utf-8")).hexdigest()
    return 10 + int(digest[:8], 16) % 50


# =============================================================
# ADAPTER
# =============================================================

class ScreenAdapter:
    """
    Builds canonical screens from external records.

    ============================================================
    USAGE
    ============================================================
    ```python
    adapter = ScreenAdapter(clock=SystemClock())

    try:
        screen = adapter.convert(raw_record)
    except ConversionFault as e:
        ...  # record rejected, batch continues
    ```
    ============================================================
    """

    def __init__(
        self,
        validator: Optional[InventoryValidator] = None,
        clock: Optional[ClockProtocol] = None,
        reject_soft_invalid: bool = False,
    ) -> None:
        self._validator = validator or InventoryValidator()
        self._clock = clock or ClockFactory.get_clock()
        self._reject_soft_invalid = reject_soft_invalid

    @property
    def validator(self) -> InventoryValidator:
        return self._validator

    def convert(self, record: Union[RawInventoryRecord, ValidationResult]) -> Screen:
        """
        Convert one record to a canonical Screen.

        Args:
            record: Raw mapping, ExternalInventoryRecord or a
                ValidationResult already produced by the validator

        Raises:
            ConversionFault: record rejected or unparseable
        """
        if isinstance(record, ValidationResult):
            result = record
        else:
            result = self._validator.validate(record)
        return self.convert_validated(result)

    def convert_validated(self, result: ValidationResult) -> Screen:
        """Convert a validation result, honoring the rejection policy."""
        data = result.sanitized_data
        if data is None:
            raise ConversionFault("Validation result carries no sanitized data")

        if result.is_rejected(self._reject_soft_invalid):
            cause = RecordValidationError(
                f"Record failed validation: {result.error_codes()}",
                issues=result.errors,
            )
            raise ConversionFault(
                f"Rejected record from SSP {data.source_id or '?'}: "
                f"{', '.join(issue.message for issue in result.errors)}",
                source_id=data.source_id or None,
                venue_id=data.venue_id or None,
                issues=result.errors,
                context={"error_codes": result.error_codes()},
                cause=cause,
            )

        if result.errors:
            log_error(
                logger,
                RecordValidationError("Soft validation errors, defaults applied", issues=result.errors),
                "ScreenAdapter.convert",
                metadata={
                    "source_id": data.source_id,
                    "venue_id": data.venue_id,
                    "errors": {issue.field: issue.code.value for issue in result.errors},
                },
                level=logging.WARNING,
            )

        for warning in result.warnings:
            logger.debug(f"[{data.source_id}] {data.venue_id}: {warning.message}")

        screen = self._build(data)

        check = validate_screen(screen)
        if not check.is_valid:
            logger.error(f"[{data.source_id}] Canonical screen {screen.id} invalid: {check.error_codes()}")
        elif check.warnings:
            logger.debug(f"[{data.source_id}] Canonical screen {screen.id} warnings: {check.warning_codes()}")

        return screen

    # =========================================================
    # CONSTRUCTION
    # =========================================================

    def _build(self, data: SanitizedInventoryRecord) -> Screen:
        source_id = sanitize_text(data.source_id)
        venue_id = sanitize_text(data.venue_id)
        if not source_id or not venue_id:
            raise ConversionFault(
                "Record identifiers are empty after sanitization",
                source_id=data.source_id or None,
                venue_id=data.venue_id or None,
            )

        screen_id = build_screen_id(source_id, venue_id)

        width = effective_value("width", data.width)
        height = effective_value("height", data.height)
        brightness = effective_value("brightness", data.brightness)
        pixel_density = effective_value("pixel_density", data.pixel_density)
        floor_price = effective_value("floor_price", data.floor_price)
        impressions = effective_value("daily_impressions", data.daily_impressions)
        latitude = effective_value("latitude", data.latitude)
        longitude = effective_value("longitude", data.longitude)

        if latitude is not None and longitude is not None:
            coordinates = Coordinates(lat=float(latitude), lng=float(longitude))
        else:
            coordinates = Coordinates.unknown()

        name = sanitize_text(data.venue_name) or effective_value("venue_name", None)
        city = sanitize_text(data.city) or effective_value("city", None)
        country = sanitize_text(data.country) or effective_value("country", None)
        region = sanitize_text(data.region) or effective_value("region", None)
        address = sanitize_text(data.address) or name
        currency = sanitize_text(data.currency) or effective_value("currency", None)
        category_id = map_venue_types(data.venue_types)

        last_updated = data.timestamp or self._clock.now()

        return Screen(
            id=screen_id,
            name=name,
            location=f"{city}, {country}",
            price=floor_price,
            availability=_is_available(data.availability_status),
            image=sanitize_text(data.image_url) or effective_value("image_url", None),
            category=ScreenCategory.from_id(category_id),
            environment=Environment.OUTDOOR if data.is_fixed else Environment.INDOOR,
            specs=ScreenSpecs(
                width=width,
                height=height,
                resolution=resolution_label(width),
                brightness=f"{brightness:g} nits",
                aspect_ratio=aspect_ratio_label(width, height),
                orientation=Orientation.LANDSCAPE if width > height else Orientation.PORTRAIT,
                pixel_density=pixel_density,
            ),
            views=AudienceViews(
                daily=impressions,
                weekly=impressions * DAYS_PER_WEEK,
                monthly=impressions * DAYS_PER_MONTH,
            ),
            rating=calculate_rating(impressions, floor_price, width, brightness),
            reviews=review_count(screen_id),
            coordinates=coordinates,
            pricing=calculate_pricing(floor_price, screen_id, currency),
            metrics=TrafficMetrics(
                daily_traffic=impressions,
                monthly_traffic=impressions * DAYS_PER_MONTH,
            ),
            location_details=LocationDetails(
                address=address,
                city=city,
                region=region,
                country=country,
                coordinates=coordinates,
                timezone=sanitize_text(data.timezone) or effective_value("timezone", None),
                landmarks=(name,),
            ),
            operating_hours=OperatingHours(),
            source_metadata=SourceMetadata(
                source_id=source_id,
                source_name=sanitize_text(data.source_name) or effective_value("source_name", None),
                original_inventory_id=sanitize_text(data.request_id) or screen_id,
                last_updated=last_updated,
                is_external=True,
            ),
        )


def _is_available(status: str) -> bool:
    return status.strip().lower() == DEFAULT_AVAILABILITY_STATUS.lower()
