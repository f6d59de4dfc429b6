"""
Dashboard service: the data-loading boundary between the row source and
the pure aggregation core.

The service owns exactly one piece of state, the last fetched row snapshot.
Every view call recomputes its aggregates from that snapshot; changing the
window never refetches. A refresh that completes after a newer refresh has
already been installed is discarded.
"""
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from core import dashboard
from core.config import BusinessRules, config
from core.exceptions import RowSourceError
from core.filters import WindowSpec
from core.models import AdEventRow, DailyAggregate, PlatformAggregate, Totals
from core.observability import Timer, correlation_context, get_logger, metrics
from core.platforms import Rule
from core.resilience import CircuitOpenError
from core.row_source import RowSource
from core.validators import validate_limit, validate_window
from web.schemas import (
    BudgetResponse,
    CampaignsResponse,
    ChartDataset,
    DailySeriesResponse,
    PlatformSummaryResponse,
    TotalsResponse,
)

logger = get_logger(__name__)

SERIES_METRICS = (
    ("impressions", "Impressions"),
    ("clicks", "Clicks"),
    ("conversions", "Conversions"),
    ("run_rate", "Run Rate"),
)

PLATFORM_METRICS = (
    ("impressions", "Impressions", "#2563eb"),
    ("clicks", "Clicks", "#16a34a"),
    ("conversions", "Conversions", "#dc2626"),
)


def _rgba(hex_color: str, alpha: float = 0.1) -> str:
    """Convert #RRGGBB to an rgba() fill color."""
    value = hex_color.lstrip("#")
    if len(value) != 6:
        return hex_color
    red, green, blue = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({red}, {green}, {blue}, {alpha})"


@dataclass(frozen=True)
class RowSnapshot:
    """Immutable result of one fetch."""
    rows: Tuple[AdEventRow, ...] = ()
    fetched_at: Optional[datetime] = None
    sequence: int = 0
    loaded_at: float = field(default=0.0, compare=False)

    @property
    def is_loaded(self) -> bool:
        return self.fetched_at is not None


class DashboardService:
    """
    Loads row snapshots and builds chart/table payloads from them.

    Usage:
        async with AdsApiClient() as client:
            service = DashboardService(client)
            await service.refresh()
            series = await service.get_daily_series("30d")
    """

    def __init__(
        self,
        source: RowSource,
        fetch_limit: Optional[int] = None,
        rules: Optional[BusinessRules] = None,
        platform_rules: Optional[Sequence[Rule]] = None,
        snapshot_ttl_seconds: Optional[int] = None,
    ):
        self.source = source
        self.fetch_limit = validate_limit(fetch_limit or config.backend.fetch_limit)
        self.rules = rules or config.rules
        self.platform_rules = platform_rules
        self.snapshot_ttl_seconds = (
            config.dashboard.snapshot_ttl_seconds
            if snapshot_ttl_seconds is None else snapshot_ttl_seconds
        )

        self._snapshot = RowSnapshot()
        self._previous_totals: Optional[Totals] = None
        self._issued = 0

    @property
    def snapshot(self) -> RowSnapshot:
        return self._snapshot

    # ─── Loading ──────────────────────────────────────────────────────────────

    async def refresh(self) -> RowSnapshot:
        """
        Fetch a new snapshot from the row source.

        On failure the previous snapshot stays in place and the error is
        re-raised for the caller to surface.

        Raises:
            RowSourceError: Fetch failed
            CircuitOpenError: Backend circuit is open
        """
        self._issued += 1
        sequence = self._issued

        with correlation_context():
            metrics.record_call("dashboard_refresh")
            try:
                with Timer("dashboard_refresh", logger):
                    rows = await self.source.fetch_rows(self.fetch_limit, 0)
            except (RowSourceError, CircuitOpenError) as e:
                metrics.record_error(type(e).__name__)
                logger.error(
                    f"Dashboard refresh failed: {e}",
                    extra={"sequence": sequence, "rows_kept": len(self._snapshot.rows)}
                )
                raise

            if sequence < self._snapshot.sequence:
                logger.info(
                    "Discarding stale fetch",
                    extra={"sequence": sequence, "installed": self._snapshot.sequence}
                )
                return self._snapshot

            if self._snapshot.is_loaded:
                self._previous_totals = dashboard.get_totals(self._snapshot.rows, self.rules)

            self._snapshot = RowSnapshot(
                rows=tuple(rows),
                fetched_at=datetime.now(),
                sequence=sequence,
                loaded_at=time.monotonic(),
            )
            logger.info(
                f"Loaded {len(rows)} ad rows",
                extra={"sequence": sequence, "limit": self.fetch_limit}
            )
            return self._snapshot

    def _is_stale(self) -> bool:
        if not self._snapshot.is_loaded:
            return True
        if self.snapshot_ttl_seconds <= 0:
            return False
        return time.monotonic() - self._snapshot.loaded_at > self.snapshot_ttl_seconds

    async def _rows(self) -> Tuple[AdEventRow, ...]:
        """Rows of the current snapshot, refetching when missing or expired."""
        if self._is_stale():
            await self.refresh()
        return self._snapshot.rows

    async def add_row(self, payload: Union[AdEventRow, Dict[str, Any]]) -> AdEventRow:
        """
        Insert a row through the row source, then reload the snapshot.

        Raises:
            TypeError: If the row source cannot insert rows
            ValidationError: If the payload is invalid
        """
        insert = getattr(self.source, "insert_row", None)
        if insert is None:
            raise TypeError(f"{type(self.source).__name__} does not support inserts")

        stored = await insert(payload)
        await self.refresh()
        return stored

    # ─── Views ────────────────────────────────────────────────────────────────

    async def get_daily_series(
        self,
        window: Union[str, WindowSpec, None] = None,
        reference_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Daily performance series for the time chart.

        Args:
            window: WindowSpec or selector value ("all", "7d", "30d", "90d")
            reference_date: Day treated as today (default: date.today())
        """
        if not isinstance(window, WindowSpec):
            window = validate_window(window if window is not None else config.dashboard.default_window)

        rows = await self._rows()
        series = dashboard.get_daily_series(rows, window, self.rules, reference_date)
        return build_daily_series_payload(series, window)

    async def get_platform_summary(self) -> Dict[str, Any]:
        """Per-platform totals for cards and bar charts."""
        rows = await self._rows()
        platforms = dashboard.get_platform_summary(rows, self.rules, self.platform_rules)
        return build_platform_payload(platforms)

    async def get_totals(self) -> Dict[str, Any]:
        """Headline totals with trend arrows versus the previous snapshot."""
        rows = await self._rows()
        totals = dashboard.get_totals(rows, self.rules)
        trend = dashboard.get_totals_trend(totals, self._previous_totals)
        fetched_at = self._snapshot.fetched_at
        return TotalsResponse(
            impressions=totals.impressions,
            clicks=totals.clicks,
            conversions=totals.conversions,
            spend=round(totals.spend, 2),
            ctr=round(totals.ctr, 2),
            cvr=round(totals.cvr, 2),
            roas=round(totals.roas, 2),
            trend=trend.to_dict(),
            fetchedAt=fetched_at.isoformat() if fetched_at else None,
        ).model_dump()

    async def get_budget_overview(self) -> Dict[str, Any]:
        """Budget vs spend totals, per platform and per month."""
        rows = await self._rows()
        overview = dashboard.get_budget_overview(rows, self.rules, self.platform_rules)
        summary = overview.summary
        return BudgetResponse(
            totalBudget=round(summary.total_budget, 2),
            totalSpent=round(summary.total_spent, 2),
            remaining=round(summary.remaining, 2),
            spendRate=round(summary.spend_rate, 1),
            platformSpend=[
                {
                    "platform": p.platform.value,
                    "allocated": round(p.budget),
                    "spent": round(p.spend),
                }
                for p in overview.platforms
            ],
            budgetMonthly=[m.to_dict() for m in overview.monthly],
        ).model_dump()

    async def get_campaigns(self) -> Dict[str, Any]:
        """Campaign table rows."""
        rows = await self._rows()
        table = dashboard.get_campaign_table(rows, self.rules, self.platform_rules)
        return CampaignsResponse(
            campaigns=[row.to_dict() for row in table],
            total=len(table),
        ).model_dump()


# ─── Payload builders ─────────────────────────────────────────────────────────

def build_daily_series_payload(series: List[DailyAggregate], window: WindowSpec) -> Dict[str, Any]:
    """Shape a daily series as labels + points + chart datasets."""
    colors = config.dashboard.series_colors
    datasets = [
        ChartDataset(
            label=label,
            data=[round(getattr(point, attr), 2) for point in series],
            borderColor=colors.get(attr, "#999999"),
            backgroundColor=_rgba(colors.get(attr, "#999999")),
        )
        for attr, label in SERIES_METRICS
    ]
    points = []
    for point in series:
        item = point.to_dict()
        item["runRate"] = item.pop("run_rate")
        points.append(item)

    return DailySeriesResponse(
        window=window.label,
        labels=[point.date for point in series],
        points=points,
        datasets=datasets,
    ).model_dump()


def build_platform_payload(platforms: List[PlatformAggregate]) -> Dict[str, Any]:
    """Shape platform aggregates as cards + grouped bar datasets."""
    datasets = [
        ChartDataset(
            label=label,
            data=[getattr(p, attr) for p in platforms],
            borderColor=color,
            backgroundColor=color,
            fill=False,
            tension=0,
            borderWidth=1,
        )
        for attr, label, color in PLATFORM_METRICS
    ]
    return PlatformSummaryResponse(
        labels=[p.platform.value for p in platforms],
        platforms=[p.to_dict() for p in platforms],
        datasets=datasets,
        backgroundColor=[p.platform.color for p in platforms],
    ).model_dump()
