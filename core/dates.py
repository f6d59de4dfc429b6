"""
Date normalization for ad rows.

The `ads` table stores dates as free text, so rows arrive as ISO strings,
locale strings ("Mar 5, 2024") or numeric day/month/year strings with either
order. Everything is reduced to a canonical YYYY-MM-DD key.

Numeric D/M/YYYY strings are disambiguated as follows:
    first > 12, second <= 12  -> day first   (13/03/2024 -> 2024-03-13)
    second > 12, first <= 12  -> month first (03/13/2024 -> 2024-03-13)
    otherwise                 -> day first   (05/03/2024 -> 2024-03-05)
"""
import re
from datetime import date, datetime, time
from typing import Any, Optional

# Tried in order after ISO-8601 fails
DIRECT_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")


def _parse_direct(text: str) -> Optional[date]:
    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso_text)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in DIRECT_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None

    # Calendar fields are taken in local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def _parse_numeric(text: str) -> Optional[date]:
    match = NUMERIC_DATE_RE.match(text)
    if not match:
        return None

    first, second, year = (int(part) for part in match.groups())
    if first > 12 and second <= 12:
        day, month = first, second
    elif second > 12 and first <= 12:
        month, day = first, second
    else:
        day, month = first, second

    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(raw: Any) -> Optional[date]:
    """
    Parse a raw row date into a calendar date.

    Args:
        raw: Date string (or date/datetime) from a row

    Returns:
        Parsed date, or None if no supported format matches
    """
    if isinstance(raw, datetime):
        return (raw.astimezone() if raw.tzinfo else raw).date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    return _parse_direct(text) or _parse_numeric(text)


def normalize_date(raw: Any) -> Optional[str]:
    """
    Normalize a raw row date to canonical YYYY-MM-DD.

    Returns None when the value cannot be parsed; callers group such rows
    by the raw string instead of dropping them.

    Examples:
        >>> normalize_date("2024-03-05")
        '2024-03-05'

        >>> normalize_date("13/03/2024")
        '2024-03-13'

        >>> normalize_date("not-a-date") is None
        True
    """
    parsed = parse_date(raw)
    return parsed.isoformat() if parsed else None


def to_comparable_date(raw: Any) -> Optional[datetime]:
    """Parse like normalize_date, returning local midnight for comparisons."""
    parsed = parse_date(raw)
    if parsed is None:
        return None
    return datetime.combine(parsed, time.min)


def date_key(raw: Any) -> str:
    """Grouping key for a row date: canonical form, else the raw string."""
    normalized = normalize_date(raw)
    if normalized:
        return normalized
    return "" if raw is None else str(raw)
