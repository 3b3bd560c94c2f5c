"""
Inventory Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the validation/conversion layer.

- Validation issue and result types
- The sanitized, fully-populated record handed to the adapter

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Serializable for logging
- The sanitized record is total: every field has a value,
  except coordinates and timestamp which may be unknown

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# =============================================================
# ENUMS
# =============================================================

class IssueSeverity(str, Enum):
    """Severity of a validation issue."""
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    """Machine-readable issue codes."""
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    MISSING_OPTIONAL_FIELD = "MISSING_OPTIONAL_FIELD"
    MISSING_LOCATION_DATA = "MISSING_LOCATION_DATA"
    MISSING_SCREEN_SPECS = "MISSING_SCREEN_SPECS"
    MISSING_PRICING_INFO = "MISSING_PRICING_INFO"
    MISSING_AUDIENCE_INFO = "MISSING_AUDIENCE_INFO"
    MISSING_AVAILABILITY_INFO = "MISSING_AVAILABILITY_INFO"
    MISSING_TIMESTAMP = "MISSING_TIMESTAMP"
    INVALID_COORDINATE = "INVALID_COORDINATE"
    INVALID_DIMENSION = "INVALID_DIMENSION"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_IMPRESSIONS = "INVALID_IMPRESSIONS"
    INVALID_FIELD_TYPE = "INVALID_FIELD_TYPE"
    # Canonical screen checks
    MISSING_SCREEN_ID = "MISSING_SCREEN_ID"
    MISSING_SCREEN_NAME = "MISSING_SCREEN_NAME"
    MISSING_PRICING = "MISSING_PRICING"
    INVALID_COORDINATES = "INVALID_COORDINATES"
    MISSING_SOURCE_ID = "MISSING_SOURCE_ID"
    MISSING_SOURCE_NAME = "MISSING_SOURCE_NAME"
    INVALID_RATING = "INVALID_RATING"


# =============================================================
# VALIDATION RESULT TYPES
# =============================================================

@dataclass(frozen=True)
class ValidationIssue:
    """One field-level finding."""
    field: str
    message: str
    code: IssueCode
    severity: IssueSeverity
    # Hard errors make a record unusable; soft errors are defaulted around
    hard: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "code": self.code.value,
            "severity": self.severity.value,
            "hard": self.hard,
        }


@dataclass(frozen=True)
class SanitizedInventoryRecord:
    """External record after validation, with every default applied."""

    source_id: str
    source_name: str
    request_id: str
    timestamp: Optional[datetime]

    venue_id: str
    venue_name: str
    venue_types: Tuple[str, ...]

    latitude: Optional[float]
    longitude: Optional[float]
    city: str
    region: str
    country: str
    address: str
    timezone: str

    width: int
    height: int
    brightness: float
    pixel_density: float
    is_fixed: bool
    image_url: str

    floor_price: float
    currency: str

    daily_impressions: int

    availability_status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_name": self.source_name,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "venue_types": list(self.venue_types),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "address": self.address,
            "timezone": self.timezone,
            "width": self.width,
            "height": self.height,
            "brightness": self.brightness,
            "pixel_density": self.pixel_density,
            "is_fixed": self.is_fixed,
            "image_url": self.image_url,
            "floor_price": self.floor_price,
            "currency": self.currency,
            "daily_impressions": self.daily_impressions,
            "availability_status": self.availability_status,
        }


@dataclass
class ValidationResult:
    """
    Outcome of validating one record (or one canonical screen).

    is_valid is False when any error exists. has_hard_errors tells
    whether the record is unusable (reject) rather than merely
    out-of-range (default and proceed).
    """
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    sanitized_data: Optional[SanitizedInventoryRecord] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_hard_errors(self) -> bool:
        return any(issue.hard for issue in self.errors)

    def is_rejected(self, reject_soft_invalid: bool = False) -> bool:
        """Whether the record must be dropped under the given policy."""
        if self.has_hard_errors:
            return True
        return reject_soft_invalid and not self.is_valid

    def add_error(self, issue: ValidationIssue) -> None:
        self.errors.append(issue)

    def add_warning(self, issue: ValidationIssue) -> None:
        self.warnings.append(issue)

    def error_codes(self) -> List[str]:
        return [issue.code.value for issue in self.errors]

    def warning_codes(self) -> List[str]:
        return [issue.code.value for issue in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "is_valid": self.is_valid,
            "has_hard_errors": self.has_hard_errors,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
