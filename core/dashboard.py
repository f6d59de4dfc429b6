"""
Transform interface consumed by the rendering layer.

Takes an immutable row snapshot plus the active window and returns
ready-to-render aggregates. Processing order is fixed:

    rows -> aggregate_by_date -> filter_window -> fill_missing_days (finite only)

Platform, budget and campaign views are always computed from the same
snapshot the daily series uses.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from core import aggregation
from core.config import BusinessRules, config
from core.filters import WindowSpec, fill_missing_days, filter_window
from core.models import (
    AdEventRow,
    BudgetSummary,
    CampaignRow,
    DailyAggregate,
    MonthlyBudget,
    PlatformAggregate,
    Totals,
    TotalsTrend,
)
from core.platforms import Rule


def get_daily_series(
    rows: Sequence[AdEventRow],
    window: Optional[WindowSpec] = None,
    rules: Optional[BusinessRules] = None,
    reference_date: Optional[date] = None,
) -> List[DailyAggregate]:
    """
    Daily series for the time chart.

    Args:
        rows: Current row snapshot
        window: Time window (default: all time)
        rules: Business rules (default: config.rules)
        reference_date: Day treated as today (default: date.today())

    Returns:
        Ascending daily aggregates; exactly `window.days` contiguous
        entries for a finite window, one per distinct date otherwise
    """
    window = window or WindowSpec.all()
    series = aggregation.aggregate_by_date(rows, rules)
    series = filter_window(series, window, reference_date)
    if window.is_finite:
        series = fill_missing_days(series, window.days, reference_date)
    return series


def get_platform_summary(
    rows: Sequence[AdEventRow],
    rules: Optional[BusinessRules] = None,
    platform_rules: Optional[Sequence[Rule]] = None,
) -> List[PlatformAggregate]:
    """Per-platform totals in order of first appearance."""
    return list(aggregation.aggregate_by_platform(rows, rules, platform_rules).values())


def get_totals(
    rows: Sequence[AdEventRow],
    rules: Optional[BusinessRules] = None,
) -> Totals:
    """Headline totals: impressions, clicks, conversions, spend, CTR, ROAS."""
    return aggregation.compute_totals(rows, rules)


def get_totals_trend(current: Totals, previous: Optional[Totals]) -> TotalsTrend:
    """
    Compare two totals snapshots for the summary card arrows.

    A metric counts as trending up when it is greater than or equal to the
    previous value; with no previous snapshot everything is up.
    """
    previous = previous or Totals()
    return TotalsTrend(
        spend=current.spend >= previous.spend,
        conversions=current.conversions >= previous.conversions,
        ctr=current.ctr >= previous.ctr,
        roas=current.roas >= previous.roas,
    )


@dataclass(frozen=True)
class BudgetOverview:
    """Everything the budget view renders."""
    summary: BudgetSummary
    platforms: List[PlatformAggregate]
    monthly: List[MonthlyBudget]


def get_budget_overview(
    rows: Sequence[AdEventRow],
    rules: Optional[BusinessRules] = None,
    platform_rules: Optional[Sequence[Rule]] = None,
) -> BudgetOverview:
    """Budget vs spend totals, per platform and per month."""
    rules = rules or config.rules
    platforms = get_platform_summary(rows, rules, platform_rules)
    return BudgetOverview(
        summary=aggregation.compute_budget_summary(platforms),
        platforms=platforms,
        monthly=aggregation.aggregate_by_month(rows, rules),
    )


def get_campaign_table(
    rows: Sequence[AdEventRow],
    rules: Optional[BusinessRules] = None,
    platform_rules: Optional[Sequence[Rule]] = None,
) -> List[CampaignRow]:
    """Campaign table rows with platform, status, budget and CTR."""
    return aggregation.build_campaign_rows(rows, rules, platform_rules)
