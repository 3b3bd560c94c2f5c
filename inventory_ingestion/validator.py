"""
Inventory Ingestion - Validator / Sanitizer.

============================================================
RESPONSIBILITY
============================================================
Per-record structural validation with explicit default
filling, plus the canonical-screen re-check run after
conversion.

- validate(): external record -> ValidationResult with a
  fully populated SanitizedInventoryRecord
- validate_screen(): canonical Screen invariants

============================================================
POLICY
============================================================
- Missing-but-defaultable data  -> warning, default filled
- Missing source id / venue id  -> HARD error, record unusable
- Out-of-range values           -> SOFT error, value retained
                                   in sanitized output
- Values of the wrong type     -> SOFT error, default filled
                                   (HARD for the identifiers)
- Never raises for missing data; only payloads or sections
  that are not mappings raise ConversionFault

All defaults and checks come from defaults.FIELD_RULES.

============================================================
"""

import logging
from datetime import datetime
from typing import Any, Dict, Sequence, Set

from core.clock import ensure_utc
from inventory_model.external_record import MalformedValue, RawInventoryRecord, parse_external_record
from inventory_model.screen import MAX_RATING, MIN_RATING, Screen

from .defaults import FIELD_RULES, GROUP_RULES, FieldRule, GroupRule, is_missing
from .types import (
    IssueCode,
    IssueSeverity,
    SanitizedInventoryRecord,
    ValidationIssue,
    ValidationResult,
)


logger = logging.getLogger(__name__)


class InventoryValidator:
    """
    Validates and sanitizes external inventory records.

    ============================================================
    USAGE
    ============================================================
    ```python
    validator = InventoryValidator()
    result = validator.validate(raw_record)

    if result.is_rejected():
        ...  # hard-invalid, drop
    screen_input = result.sanitized_data
    ```
    ============================================================
    """

    def __init__(
        self,
        field_rules: Sequence[FieldRule] = FIELD_RULES,
        group_rules: Sequence[GroupRule] = GROUP_RULES,
    ) -> None:
        self._field_rules = tuple(field_rules)
        self._group_rules = tuple(group_rules)

    def validate(self, record: RawInventoryRecord) -> ValidationResult:
        """
        Validate one external record.

        Args:
            record: Raw mapping or parsed ExternalInventoryRecord

        Returns:
            ValidationResult with sanitized_data always populated

        Raises:
            ConversionFault: payload could not be parsed at all
        """
        parsed = parse_external_record(record)
        result = ValidationResult()

        # Whole sections missing: one warning each
        missing_groups: Set[str] = set()
        for group_rule in self._group_rules:
            group_value = getattr(parsed, group_rule.group)
            if group_value is None:
                missing_groups.add(group_rule.group)
                result.add_warning(ValidationIssue(
                    field=group_rule.group,
                    message=group_rule.message,
                    code=group_rule.code,
                    severity=IssueSeverity.WARNING,
                ))

        resolved: Dict[str, Any] = {}
        for rule in self._field_rules:
            group_present, value = parsed.lookup(rule.path)

            if isinstance(value, MalformedValue):
                resolved[rule.attr] = rule.default_for(group_present, resolved)
                result.add_error(ValidationIssue(
                    field=rule.path,
                    message=f"Malformed value {value.raw!r:.60}, using default",
                    code=IssueCode.MISSING_REQUIRED_FIELD if rule.required else IssueCode.INVALID_FIELD_TYPE,
                    severity=IssueSeverity.ERROR,
                    hard=rule.required,
                ))
                continue

            if is_missing(value):
                resolved[rule.attr] = rule.default_for(group_present, resolved)

                if rule.required:
                    result.add_error(ValidationIssue(
                        field=rule.path,
                        message=rule.missing_message,
                        code=rule.missing_code,
                        severity=IssueSeverity.ERROR,
                        hard=True,
                    ))
                elif rule.warn_when_missing and rule.group not in missing_groups:
                    result.add_warning(ValidationIssue(
                        field=rule.path,
                        message=rule.missing_message,
                        code=rule.missing_code,
                        severity=IssueSeverity.WARNING,
                    ))
                continue

            if not rule.is_valid(value) and rule.invalid_message:
                # Retained as-is; the adapter substitutes the default
                result.add_error(ValidationIssue(
                    field=rule.path,
                    message=rule.invalid_message,
                    code=rule.invalid_code,
                    severity=IssueSeverity.ERROR,
                ))

            resolved[rule.attr] = _normalize(value)

        result.sanitized_data = SanitizedInventoryRecord(**resolved)

        if result.errors:
            logger.debug(
                f"[{parsed.reference()['source_id']}] record {parsed.venue_id} has "
                f"{len(result.errors)} validation errors: {result.error_codes()}"
            )

        return result


def _normalize(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return value.strip()
    return value


# =============================================================
# CANONICAL SCREEN CHECKS
# =============================================================

def validate_screen(screen: Screen) -> ValidationResult:
    """
    Check canonical-specific invariants of a converted screen.

    Distinct from record validation: this looks at the output shape.
    Callers log violations; they never block insertion.
    """
    result = ValidationResult()

    if not screen.id:
        result.add_error(_issue("id", "Screen ID is required", IssueCode.MISSING_SCREEN_ID))

    if not screen.name:
        result.add_error(_issue("name", "Screen name is required", IssueCode.MISSING_SCREEN_NAME))

    if screen.pricing is None:
        result.add_error(_issue("pricing", "Pricing information is required", IssueCode.MISSING_PRICING))
    elif any(bundle.price < 0 for bundle in screen.pricing.as_tuple()):
        result.add_error(_issue("pricing", "Bundle prices must be non-negative", IssueCode.MISSING_PRICING))

    if not MIN_RATING <= screen.rating <= MAX_RATING:
        result.add_error(_issue("rating", "Rating out of bounds", IssueCode.INVALID_RATING))

    if not screen.coordinates.is_known:
        result.add_warning(_issue(
            "coordinates", "Invalid or missing coordinates",
            IssueCode.INVALID_COORDINATES, IssueSeverity.WARNING,
        ))

    meta = screen.source_metadata
    if meta is not None and meta.is_external:
        if not meta.source_id:
            result.add_error(_issue(
                "source_metadata.source_id", "SSP ID is required for SSP inventory",
                IssueCode.MISSING_SOURCE_ID,
            ))
        if not meta.source_name:
            result.add_warning(_issue(
                "source_metadata.source_name", "SSP name is missing",
                IssueCode.MISSING_SOURCE_NAME, IssueSeverity.WARNING,
            ))

    return result


def _issue(
    field: str,
    message: str,
    code: IssueCode,
    severity: IssueSeverity = IssueSeverity.ERROR,
) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, code=code, severity=severity)
