"""
Core library for the Ads Analytics Dashboard.

This package contains the pure data transforms and the row source client
used by web/ and scripts/:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- dates: Date normalization
- platforms: Campaign name -> platform classification
- aggregation: Daily/platform/monthly aggregation
- filters: Time windows and gap filling
- dashboard: Transform interface for the rendering layer
- config: Centralized configuration
"""

# Import in dependency order
from core.exceptions import (
    RowSourceError,
    RowSourceConnectionError,
    RowSourceAPIError,
    RowSourceDataError,
    ValidationError,
)

from core.validators import (
    validate_window,
    validate_limit,
    validate_offset,
    validate_ad_row,
)

from core.dates import (
    normalize_date,
    parse_date,
    to_comparable_date,
)

from core.platforms import classify_platform

from core.aggregation import (
    aggregate_by_date,
    aggregate_by_platform,
    aggregate_by_month,
)

from core.filters import (
    WindowSpec,
    filter_window,
    fill_missing_days,
)

from core.row_source import RowSource, StaticRowSource

from core.config import config

__all__ = [
    # Exceptions
    "RowSourceError",
    "RowSourceConnectionError",
    "RowSourceAPIError",
    "RowSourceDataError",
    "ValidationError",
    # Validators
    "validate_window",
    "validate_limit",
    "validate_offset",
    "validate_ad_row",
    # Dates
    "normalize_date",
    "parse_date",
    "to_comparable_date",
    # Platforms
    "classify_platform",
    # Aggregation
    "aggregate_by_date",
    "aggregate_by_platform",
    "aggregate_by_month",
    # Filters
    "WindowSpec",
    "filter_window",
    "fill_missing_days",
    # Row sources
    "RowSource",
    "StaticRowSource",
    # Config
    "config",
]
