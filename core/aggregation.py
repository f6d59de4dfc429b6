"""
Aggregation of ad rows into dashboard datasets.

Every function here is a pure fold over an immutable row snapshot:
the same rows always produce the same result, nothing is cached and no
input is mutated.

Daily ordering: rows whose date parses sort first, ascending by calendar
date; rows with unparsable dates follow, ordered by their raw string.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from core import kpis
from core.config import BusinessRules, config
from core.dates import date_key, parse_date
from core.models import (
    AdEventRow,
    BudgetSummary,
    CampaignRow,
    CampaignStatus,
    DailyAggregate,
    MonthlyBudget,
    Platform,
    PlatformAggregate,
    Totals,
)
from core.platforms import Rule, classify_platform


@dataclass
class _Sums:
    """Running totals for one group."""
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    run_rate: float = 0
    campaigns: Set[str] = field(default_factory=set)

    def add(self, row: AdEventRow) -> None:
        self.impressions += row.impressions
        self.clicks += row.clicks
        self.conversions += row.conversions
        self.run_rate += row.run_rate
        self.campaigns.add(row.campaign_name)


def sort_key(key: str) -> Tuple[int, Optional[date], str]:
    """Total order over grouping keys: parsed dates first, then raw strings."""
    parsed = parse_date(key)
    if parsed is not None:
        return (0, parsed, key)
    return (1, None, key)


def aggregate_by_date(
    rows: Iterable[AdEventRow],
    rules: Optional[BusinessRules] = None,
) -> List[DailyAggregate]:
    """
    Fold rows into one DailyAggregate per canonical date.

    Args:
        rows: Ad rows in any order
        rules: Business rules for spend (default: config.rules)

    Returns:
        Aggregates sorted ascending by date
    """
    rules = rules or config.rules
    groups: Dict[str, _Sums] = defaultdict(_Sums)
    for row in rows:
        groups[date_key(row.date)].add(row)

    return [
        DailyAggregate(
            date=key,
            impressions=sums.impressions,
            clicks=sums.clicks,
            conversions=sums.conversions,
            run_rate=sums.run_rate,
            spend=kpis.spend_from_run_rate(sums.run_rate, rules),
            ctr=kpis.ctr(sums.clicks, sums.impressions),
            cvr=kpis.cvr(sums.conversions, sums.clicks),
        )
        for key, sums in sorted(groups.items(), key=lambda item: sort_key(item[0]))
    ]


def aggregate_by_platform(
    rows: Iterable[AdEventRow],
    rules: Optional[BusinessRules] = None,
    platform_rules: Optional[Sequence[Rule]] = None,
) -> Dict[Platform, PlatformAggregate]:
    """
    Fold rows into one PlatformAggregate per platform tag.

    The mapping keeps the order in which platforms first appear in `rows`.
    """
    rules = rules or config.rules
    groups: Dict[Platform, _Sums] = {}
    for row in rows:
        platform = classify_platform(row.campaign_name, platform_rules)
        if platform not in groups:
            groups[platform] = _Sums()
        groups[platform].add(row)

    return {
        platform: PlatformAggregate(
            platform=platform,
            impressions=sums.impressions,
            clicks=sums.clicks,
            conversions=sums.conversions,
            spend=kpis.spend_from_run_rate(sums.run_rate, rules),
            budget=kpis.budget_from_run_rate(sums.run_rate, rules),
            campaign_count=len(sums.campaigns),
            ctr=kpis.ctr(sums.clicks, sums.impressions),
        )
        for platform, sums in groups.items()
    }


def aggregate_by_month(
    rows: Iterable[AdEventRow],
    rules: Optional[BusinessRules] = None,
) -> List[MonthlyBudget]:
    """
    Fold rows into budget vs spend per calendar month.

    Rows with unparsable dates are grouped under their raw string and
    sorted after every real month.
    """
    rules = rules or config.rules
    run_rates: Dict[str, float] = defaultdict(float)
    for row in rows:
        parsed = parse_date(row.date)
        key = parsed.strftime("%Y-%m") if parsed else date_key(row.date)
        run_rates[key] += row.run_rate

    def month_order(key: str) -> Tuple[int, str]:
        return (0 if parse_date(f"{key}-01") else 1, key)

    return [
        MonthlyBudget(
            month=key,
            budget=kpis.budget_from_run_rate(run_rate, rules),
            spent=kpis.spend_from_run_rate(run_rate, rules),
        )
        for key, run_rate in sorted(run_rates.items(), key=lambda item: month_order(item[0]))
    ]


def compute_totals(
    rows: Iterable[AdEventRow],
    rules: Optional[BusinessRules] = None,
) -> Totals:
    """Sum every row into headline totals with derived ratios."""
    rules = rules or config.rules
    sums = _Sums()
    for row in rows:
        sums.add(row)

    spend = kpis.spend_from_run_rate(sums.run_rate, rules)
    return Totals(
        impressions=sums.impressions,
        clicks=sums.clicks,
        conversions=sums.conversions,
        spend=spend,
        ctr=kpis.ctr(sums.clicks, sums.impressions),
        cvr=kpis.cvr(sums.conversions, sums.clicks),
        roas=kpis.roas(sums.conversions, spend, rules),
    )


def compute_budget_summary(
    platforms: Iterable[PlatformAggregate],
) -> BudgetSummary:
    """Total budget and spend across platform aggregates."""
    total_budget = 0.0
    total_spent = 0.0
    for aggregate in platforms:
        total_budget += aggregate.budget
        total_spent += aggregate.spend
    return BudgetSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        spend_rate=kpis.spend_rate(total_spent, total_budget),
    )


def build_campaign_rows(
    rows: Sequence[AdEventRow],
    rules: Optional[BusinessRules] = None,
    platform_rules: Optional[Sequence[Rule]] = None,
) -> List[CampaignRow]:
    """
    One table row per ad row, in input order.

    Rows without an id are numbered by position (1-based).
    """
    rules = rules or config.rules
    table = []
    for index, row in enumerate(rows):
        is_active = row.run_rate > rules.active_run_rate_threshold
        table.append(CampaignRow(
            id=row.id if row.id is not None else index + 1,
            name=row.campaign_name,
            platform=classify_platform(row.campaign_name, platform_rules),
            status=CampaignStatus.ACTIVE if is_active else CampaignStatus.PAUSED,
            budget=kpis.budget_from_run_rate(row.run_rate, rules),
            spent=kpis.spend_from_run_rate(row.run_rate, rules),
            impressions=row.impressions,
            clicks=row.clicks,
            conversions=row.conversions,
            ctr=kpis.ctr(row.clicks, row.impressions),
        ))
    return table
