"""
Domain models for advertising performance data.

Provides type-safe dataclasses for raw ad rows and for every aggregate the
dashboard renders. All of them are immutable: aggregates are recomputed from
the current row snapshot on every call and have no identity of their own.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from core.config import config
from core.kpis import coerce_count, coerce_metric


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class Platform(str, Enum):
    """Advertising platform tags inferred from campaign names."""
    GOOGLE = "Google"
    META = "Meta"
    FACEBOOK = "Facebook"
    TIKTOK = "TikTok"
    YOUTUBE = "YouTube"
    TWITTER = "Twitter"
    OTHER = "Other"

    @property
    def display_name(self) -> str:
        """Human-readable platform name."""
        return config.platforms.get_display_name(self.value)

    @property
    def color(self) -> str:
        """Chart color for this platform."""
        return config.platforms.get_color(self.value)


class CampaignStatus(str, Enum):
    """Campaign status derived from run rate."""
    ACTIVE = "Active"
    PAUSED = "Paused"


# ═══════════════════════════════════════════════════════════════════════════════
# RAW ROWS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AdEventRow:
    """One campaign-day record as stored in the `ads` table."""
    date: str
    campaign_name: str
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    run_rate: float = 0
    id: Optional[int] = None

    def __post_init__(self):
        # Every construction path gets finite non-negative numbers
        for name in ("impressions", "clicks", "conversions"):
            object.__setattr__(self, name, coerce_count(getattr(self, name)))
        object.__setattr__(self, "run_rate", coerce_metric(self.run_rate))

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> "AdEventRow":
        """
        Create AdEventRow from a backend payload.

        Accepts both the table's snake_case keys and the camelCase keys of
        the seed data. Bad numbers are coerced to 0 instead of raising.
        """
        data = data or {}

        campaign_name = data.get("campaign_name")
        if campaign_name is None:
            campaign_name = data.get("campaignName")

        run_rate = data.get("runrate")
        if run_rate is None:
            run_rate = data.get("runRate", data.get("run_rate"))

        raw_id = data.get("id")
        row_id = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None

        raw_date = data.get("date")

        return cls(
            date="" if raw_date is None else str(raw_date),
            campaign_name="" if campaign_name is None else str(campaign_name),
            impressions=coerce_count(data.get("impressions")),
            clicks=coerce_count(data.get("clicks")),
            conversions=coerce_count(data.get("conversions")),
            run_rate=coerce_metric(run_rate),
            id=row_id,
        )

    def to_api(self) -> Dict[str, Any]:
        """Convert to the backend's column names (without id)."""
        return {
            "date": self.date,
            "campaign_name": self.campaign_name,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "runrate": self.run_rate,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATION RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DailyAggregate:
    """Totals for one canonical date (or one unparsable raw date string)."""
    date: str
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    run_rate: float = 0
    spend: float = 0
    ctr: float = 0.0
    cvr: float = 0.0

    @classmethod
    def empty(cls, date: str) -> "DailyAggregate":
        """Zero-valued record used to fill gaps in a windowed series."""
        return cls(date=date)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "date": self.date,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "run_rate": round(self.run_rate, 2),
            "spend": round(self.spend, 2),
            "ctr": round(self.ctr, 2),
            "cvr": round(self.cvr, 2),
        }


@dataclass(frozen=True)
class PlatformAggregate:
    """Totals for one platform tag."""
    platform: Platform
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend: float = 0
    budget: float = 0
    campaign_count: int = 0
    ctr: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "platform": self.platform.value,
            "name": self.platform.display_name,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "spend": round(self.spend, 2),
            "budget": round(self.budget, 2),
            "campaigns": self.campaign_count,
            "ctr": round(self.ctr, 2),
            "color": self.platform.color,
        }


@dataclass(frozen=True)
class MonthlyBudget:
    """Budget vs spend for one calendar month (YYYY-MM)."""
    month: str
    budget: float = 0
    spent: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "budget": round(self.budget),
            "spent": round(self.spent),
        }


@dataclass(frozen=True)
class BudgetSummary:
    """Budget totals across all platforms."""
    total_budget: float
    total_spent: float
    spend_rate: float

    @property
    def remaining(self) -> float:
        return self.total_budget - self.total_spent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_budget": round(self.total_budget, 2),
            "total_spent": round(self.total_spent, 2),
            "remaining": round(self.remaining, 2),
            "spend_rate": round(self.spend_rate, 1),
        }


@dataclass(frozen=True)
class CampaignRow:
    """One table row on the campaigns view."""
    id: int
    name: str
    platform: Platform
    status: CampaignStatus
    budget: float
    spent: float
    impressions: int
    clicks: int
    conversions: int
    ctr: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "platform": self.platform.value,
            "status": self.status.value,
            "budget": round(self.budget, 2),
            "spent": round(self.spent, 2),
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "ctr": round(self.ctr, 2),
        }


@dataclass(frozen=True)
class Totals:
    """Headline numbers for the summary cards."""
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend: float = 0
    ctr: float = 0.0
    cvr: float = 0.0
    roas: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "spend": round(self.spend, 2),
            "ctr": round(self.ctr, 2),
            "cvr": round(self.cvr, 2),
            "roas": round(self.roas, 2),
        }


@dataclass(frozen=True)
class TotalsTrend:
    """Whether each headline metric went up (or held) versus a previous snapshot."""
    spend: bool
    conversions: bool
    ctr: bool
    roas: bool

    def to_dict(self) -> Dict[str, bool]:
        return {
            "spend": self.spend,
            "conversions": self.conversions,
            "ctr": self.ctr,
            "roas": self.roas,
        }
