"""
Pytest configuration and shared fixtures.
"""
import pytest
from datetime import date, timedelta
from typing import Any, Dict, List

from core.models import AdEventRow
from core.observability import metrics

# Fixed "today" so windowed tests never depend on the wall clock
REFERENCE_DATE = date(2024, 3, 31)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with empty in-memory metrics."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def two_rows() -> List[AdEventRow]:
    """Two campaigns on the same day."""
    return [
        AdEventRow(
            date="2024-01-01",
            campaign_name="Google Brand",
            impressions=100,
            clicks=10,
            conversions=1,
            run_rate=5,
        ),
        AdEventRow(
            date="2024-01-01",
            campaign_name="Meta Retarget",
            impressions=50,
            clicks=5,
            conversions=0,
            run_rate=3,
        ),
    ]


@pytest.fixture
def sample_api_rows() -> List[Dict[str, Any]]:
    """Rows as the backend returns them from GET /ads."""
    return [
        {
            "id": 1,
            "date": "2024-03-01",
            "campaign_name": "Google Search Brand",
            "impressions": 1000,
            "clicks": 50,
            "conversions": 5,
            "runrate": 60,
        },
        {
            "id": 2,
            "date": "2024-03-01",
            "campaign_name": "Facebook Lookalike",
            "impressions": 800,
            "clicks": 40,
            "conversions": 2,
            "runrate": 30,
        },
        {
            "id": 3,
            "date": "Mar 2, 2024",
            "campaign_name": "TikTok Spark Ads",
            "impressions": 500,
            "clicks": 25,
            "conversions": 1,
            "runrate": 20,
        },
        {
            "id": 4,
            "date": "15/03/2024",
            "campaign_name": "YouTube Pre-roll",
            "impressions": 2000,
            "clicks": 20,
            "conversions": 0,
            "runrate": 70,
        },
        {
            "id": 5,
            "date": "2024-03-30",
            "campaign_name": "Google Search Brand",
            "impressions": 1200,
            "clicks": 60,
            "conversions": 6,
            "runrate": 65,
        },
    ]


@pytest.fixture
def sample_rows(sample_api_rows) -> List[AdEventRow]:
    return [AdEventRow.from_api(row) for row in sample_api_rows]


@pytest.fixture
def ninety_day_rows() -> List[AdEventRow]:
    """One Google row per day for the 90 days ending on REFERENCE_DATE."""
    start = REFERENCE_DATE - timedelta(days=89)
    return [
        AdEventRow(
            date=(start + timedelta(days=offset)).isoformat(),
            campaign_name="Google Display",
            impressions=100 + offset,
            clicks=10,
            conversions=1,
            run_rate=2,
        )
        for offset in range(90)
    ]
