"""
Input validation functions for dashboard and row source parameters.

All validators raise ValidationError on invalid input. They guard what
callers send (window selectors, fetch limits, new ad rows); rows that come
back from the backend are never validated, only coerced.
"""

import math
from typing import Any, Dict, Optional

from core.config import config
from core.dates import normalize_date
from core.exceptions import ValidationError
from core.filters import WindowSpec, parse_window

MAX_CAMPAIGN_NAME_LENGTH = 255
MAX_WINDOW_DAYS = 366

COUNTER_FIELDS = ("impressions", "clicks", "conversions")


def validate_window(
    value: Optional[str],
    field: str = "window",
    max_days: int = MAX_WINDOW_DAYS
) -> WindowSpec:
    """
    Validate a time range selector value.

    Args:
        value: "all", "7d", "30", ... (None/empty means all)
        field: Field name for error messages
        max_days: Largest accepted window

    Returns:
        Parsed WindowSpec

    Raises:
        ValidationError: If the window is malformed or out of range
    """
    if value is not None and not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    try:
        window = parse_window(value)
    except ValueError:
        raise ValidationError(
            field,
            "Expected 'all' or a number of days such as '7d'",
            value
        )

    if window.is_finite and window.days > max_days:
        raise ValidationError(
            field,
            f"Window cannot exceed {max_days} days",
            value
        )

    return window


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: Optional[int] = None
) -> int:
    """
    Validate a fetch limit.

    Args:
        value: Limit value to validate
        field: Field name for error messages
        min_value: Minimum allowed value
        max_value: Maximum allowed value (default: config.backend.max_limit)

    Returns:
        Validated limit

    Raises:
        ValidationError: If limit is out of range
    """
    max_value = max_value or config.backend.max_limit

    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)

    if value < min_value:
        raise ValidationError(field, f"Must be at least {min_value}", value)

    if value > max_value:
        raise ValidationError(field, f"Cannot exceed {max_value}", value)

    return value


def validate_offset(value: int, field: str = "offset") -> int:
    """Validate a fetch offset (non-negative integer)."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)

    if value < 0:
        raise ValidationError(field, "Cannot be negative", value)

    return value


def _validate_number(data: Dict[str, Any], field: str, integer: bool) -> Any:
    value = data.get(field, 0)
    if value is None:
        return 0

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, "Must be a number", value)

    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(field, "Must be a finite number", value)

    if value < 0:
        raise ValidationError(field, "Cannot be negative", value)

    if integer and isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(field, "Must be a whole number", value)
        value = int(value)

    return value


def validate_ad_row(data: Any) -> Dict[str, Any]:
    """
    Validate a new ad row before it is inserted.

    Args:
        data: Payload with date, campaign_name, impressions, clicks,
              conversions and runrate

    Returns:
        Cleaned payload using the backend's column names, date in
        canonical YYYY-MM-DD form

    Raises:
        ValidationError: If any field is missing or invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("row", "Must be an object", data)

    raw_date = data.get("date")
    if not raw_date:
        raise ValidationError("date", "Date is required")

    canonical = normalize_date(raw_date)
    if canonical is None:
        raise ValidationError("date", "Unrecognised date format", raw_date)

    name = data.get("campaign_name")
    if not name or not isinstance(name, str) or not name.strip():
        raise ValidationError("campaign_name", "Campaign name is required", name)

    name = name.strip()
    if len(name) > MAX_CAMPAIGN_NAME_LENGTH:
        raise ValidationError(
            "campaign_name",
            f"Cannot exceed {MAX_CAMPAIGN_NAME_LENGTH} characters",
            f"{len(name)} characters"
        )

    cleaned = {"date": canonical, "campaign_name": name}
    for field in COUNTER_FIELDS:
        cleaned[field] = _validate_number(data, field, integer=True)
    cleaned["runrate"] = _validate_number(data, "runrate", integer=False)

    return cleaned
