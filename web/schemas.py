"""
Pydantic models for the payloads handed to the rendering layer.

Provides type-safe, validated chart and table payloads. Field names follow
the front end's camelCase convention.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# COMMON MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class ChartDataset(BaseModel):
    """Chart dataset (one line/bar series)."""
    label: str
    data: List[float]
    borderColor: str
    backgroundColor: str
    fill: bool = True
    tension: float = 0.3
    borderWidth: int = 2


class TrendFlags(BaseModel):
    """Up (True) or down (False) arrows for the summary cards."""
    spend: bool = True
    conversions: bool = True
    ctr: bool = True
    roas: bool = True


# ═══════════════════════════════════════════════════════════════════════════════
# DAILY SERIES
# ═══════════════════════════════════════════════════════════════════════════════

class DailyPoint(BaseModel):
    """One day of the performance series."""
    date: str = Field(description="Canonical YYYY-MM-DD date (raw string if unparsable)")
    impressions: int
    clicks: int
    conversions: int
    runRate: float
    spend: float
    ctr: float = Field(description="Click-through rate, percent")
    cvr: float = Field(description="Conversion rate, percent")


class DailySeriesResponse(BaseModel):
    """Daily series for the time chart."""
    window: str = Field(description="Selected window: all, 7d, 30d, ...")
    labels: List[str] = Field(description="Date labels (YYYY-MM-DD)")
    points: List[DailyPoint]
    datasets: List[ChartDataset] = Field(description="Chart compatible datasets")


# ═══════════════════════════════════════════════════════════════════════════════
# PLATFORMS
# ═══════════════════════════════════════════════════════════════════════════════

class PlatformItem(BaseModel):
    """Performance of one platform."""
    platform: str
    name: str
    impressions: int
    clicks: int
    conversions: int
    spend: float
    budget: float
    campaigns: int = Field(description="Distinct campaign names")
    ctr: float
    color: str


class PlatformSummaryResponse(BaseModel):
    """Per-platform breakdown for cards and the grouped bar chart."""
    labels: List[str] = Field(description="Platform tags")
    platforms: List[PlatformItem]
    datasets: List[ChartDataset]
    backgroundColor: List[str] = Field(description="Colors for each platform")


# ═══════════════════════════════════════════════════════════════════════════════
# TOTALS
# ═══════════════════════════════════════════════════════════════════════════════

class TotalsResponse(BaseModel):
    """Headline numbers for the summary cards."""
    impressions: int
    clicks: int
    conversions: int
    spend: float
    ctr: float
    cvr: float
    roas: float
    trend: TrendFlags
    fetchedAt: Optional[str] = Field(None, description="Snapshot fetch time (ISO format)")


# ═══════════════════════════════════════════════════════════════════════════════
# BUDGET
# ═══════════════════════════════════════════════════════════════════════════════

class PlatformSpendItem(BaseModel):
    """Allocated vs spent for one platform."""
    platform: str
    allocated: int
    spent: int


class MonthlyBudgetItem(BaseModel):
    """Budget vs spend for one month."""
    month: str = Field(description="YYYY-MM")
    budget: int
    spent: int


class BudgetResponse(BaseModel):
    """Budget overview."""
    totalBudget: float
    totalSpent: float
    remaining: float
    spendRate: float = Field(description="Spent / budget, percent")
    platformSpend: List[PlatformSpendItem]
    budgetMonthly: List[MonthlyBudgetItem]


# ═══════════════════════════════════════════════════════════════════════════════
# CAMPAIGNS
# ═══════════════════════════════════════════════════════════════════════════════

class CampaignItem(BaseModel):
    """One row of the campaigns table."""
    id: int
    name: str
    platform: str
    status: str = Field(description="Active or Paused")
    budget: float
    spent: float
    impressions: int
    clicks: int
    conversions: int
    ctr: float


class CampaignsResponse(BaseModel):
    """Campaigns table."""
    campaigns: List[CampaignItem]
    total: int
