"""
Derived advertising metrics.

Every ratio is zero-guarded: a zero denominator yields 0, never NaN or
Infinity. Business constants (spend multiplier, conversion value) are passed
in from `core.config.BusinessRules` rather than hard-coded here.
"""
import math
from typing import Any, Optional

from core.config import BusinessRules, config


def coerce_metric(value: Any) -> float:
    """
    Coerce a raw metric value into a finite non-negative number.

    Accepts ints, floats and numeric strings. None, booleans, NaN,
    infinities, negatives and anything unparsable become 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0
        try:
            value = float(value)
        except ValueError:
            return 0
        if value.is_integer():
            value = int(value)
    if not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if value < 0:
        return 0
    return value


def coerce_count(value: Any) -> int:
    """Coerce a raw counter (impressions, clicks, conversions) to an int."""
    return int(coerce_metric(value))


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0.0 when the result would be zero or not finite."""
    if not denominator:
        return 0.0
    result = numerator / denominator * scale
    if result == 0 or not math.isfinite(result):
        return 0.0
    return result


def ctr(clicks: float, impressions: float) -> float:
    """Click-through rate in percent."""
    return safe_ratio(clicks, impressions, 100.0)


def cvr(conversions: float, clicks: float) -> float:
    """Conversion rate in percent."""
    return safe_ratio(conversions, clicks, 100.0)


def roas(conversions: float, spend: float, rules: Optional[BusinessRules] = None) -> float:
    """Return on ad spend: conversions valued at `rules.conversion_value` over spend."""
    rules = rules or config.rules
    return safe_ratio(conversions * rules.conversion_value, spend)


def spend_rate(spent: float, budget: float) -> float:
    """Share of the allocated budget already spent, in percent."""
    return safe_ratio(spent, budget, 100.0)


def spend_from_run_rate(run_rate: float, rules: Optional[BusinessRules] = None) -> float:
    rules = rules or config.rules
    return run_rate * rules.spend_multiplier


def budget_from_run_rate(run_rate: float, rules: Optional[BusinessRules] = None) -> float:
    rules = rules or config.rules
    return run_rate * rules.budget_multiplier
