"""
Tests for scripts/dashboard_report.py
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.observability import metrics
from core.resilience import CircuitBreaker
from core.validators import validate_window
from scripts import dashboard_report


def _backend(rows):
    client = MagicMock()
    client.health = AsyncMock(return_value=True)
    client.count_rows = AsyncMock(return_value=len(rows))
    client.fetch_rows = AsyncMock(return_value=rows)
    client.circuit_breaker = CircuitBreaker()

    client_cls = MagicMock()
    client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
    client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return client_cls


class TestBuildReport:
    """Tests for build_report."""

    @pytest.mark.asyncio
    async def test_report_sections(self, two_rows):
        with patch.object(dashboard_report, "AdsApiClient", _backend(two_rows)):
            report = await dashboard_report.build_report(
                "http://backend:4000", 100, validate_window("all")
            )

        assert report["backend"] == {
            "healthy": True,
            "total_rows": 2,
            "circuit": {"name": "ads_backend", "state": "closed", "failures": 0, "retry_in": 0.0},
        }
        assert report["rows"] == 2
        assert report["totals"]["impressions"] == sum(row.impressions for row in two_rows)
        assert report["series"]["window"] == "all"

    @pytest.mark.asyncio
    async def test_records_timing(self, two_rows):
        with patch.object(dashboard_report, "AdsApiClient", _backend(two_rows)):
            await dashboard_report.build_report("http://backend:4000", 100, validate_window("7d"))

        assert metrics.get_stats()["timing"]["dashboard_report"]["count"] == 1


class TestMain:
    """Tests for argument handling in main."""

    @pytest.fixture(autouse=True)
    def quiet_startup(self):
        with patch.object(dashboard_report, "setup_logging"), \
                patch.object(dashboard_report, "validate_config"):
            yield

    @pytest.mark.parametrize("argv", [
        ["--window", "5000d"],
        ["--window", "weekly"],
        ["--limit", "0"],
    ])
    def test_bad_arguments_never_reach_backend(self, argv, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["dashboard_report.py", *argv])
        client_cls = MagicMock()

        with patch.object(dashboard_report, "AdsApiClient", client_cls):
            assert dashboard_report.main() == 2

        client_cls.assert_not_called()
        assert "Invalid argument" in capsys.readouterr().err
