"""
Inventory Ingestion Package.

Turns loosely structured SSP records into canonical screens.

Modules:
- defaults: declarative field rule table (defaults and checks)
- types: validation issues, results and the sanitized record
- validator: record validation and canonical screen checks
- sanitizer: free-text sanitization
- adapter: sanitized record -> canonical Screen

Flow:
    raw record -> InventoryValidator.validate() -> ValidationResult
               -> ScreenAdapter.convert_validated() -> Screen
"""

from .adapter import (
    ScreenAdapter,
    aspect_ratio_label,
    build_screen_id,
    calculate_pricing,
    calculate_rating,
    resolution_label,
    review_count,
)
from .defaults import (
    FIELD_RULES,
    GROUP_RULES,
    FieldRule,
    GroupRule,
    effective_value,
    get_rule,
    is_missing,
)
from .sanitizer import MAX_TEXT_LENGTH, sanitize_text
from .types import (
    IssueCode,
    IssueSeverity,
    SanitizedInventoryRecord,
    ValidationIssue,
    ValidationResult,
)
from .validator import InventoryValidator, validate_screen


__all__ = [
    # Adapter
    "ScreenAdapter",
    "aspect_ratio_label",
    "build_screen_id",
    "calculate_pricing",
    "calculate_rating",
    "resolution_label",
    "review_count",
    # Defaults
    "FIELD_RULES",
    "GROUP_RULES",
    "FieldRule",
    "GroupRule",
    "effective_value",
    "get_rule",
    "is_missing",
    # Sanitizer
    "MAX_TEXT_LENGTH",
    "sanitize_text",
    # Types
    "IssueCode",
    "IssueSeverity",
    "SanitizedInventoryRecord",
    "ValidationIssue",
    "ValidationResult",
    # Validator
    "InventoryValidator",
    "validate_screen",
]
