"""
Tests for core.config module.
"""
import pytest

from core.config import (
    AppConfig,
    BackendConfig,
    ConfigurationError,
    LoggingConfig,
    PlatformConfig,
    BusinessRules,
    config,
    validate_config,
)


class TestDefaults:
    """Default configuration values."""

    def test_business_rules(self):
        rules = BusinessRules()
        assert rules.spend_multiplier == 10.0
        assert rules.budget_multiplier == 20.0
        assert rules.conversion_value == 10.0
        assert rules.active_run_rate_threshold == 55.0

    def test_platform_rule_order(self):
        tags = [tag for _, tag in PlatformConfig().rules]
        assert tags == ["Google", "Meta", "Facebook", "TikTok", "YouTube", "Twitter"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ADS_BACKEND_URL", "https://ads.example.com")
        monkeypatch.setenv("ADS_FETCH_LIMIT", "250")
        backend = BackendConfig()
        assert backend.base_url == "https://ads.example.com"
        assert backend.fetch_limit == 250

    def test_frozen(self):
        with pytest.raises(AttributeError):
            config.rules.spend_multiplier = 1.0


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid(self):
        validate_config(AppConfig(
            backend=BackendConfig(base_url="http://localhost:4000", fetch_limit=1000),
            logging=LoggingConfig(level="INFO", format="text"),
        ))

    def test_bad_url(self):
        with pytest.raises(ConfigurationError, match="ADS_BACKEND_URL"):
            validate_config(AppConfig(
                backend=BackendConfig(base_url="ftp://backend", fetch_limit=1000),
                logging=LoggingConfig(level="INFO", format="text"),
            ))

    def test_collects_every_problem(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config(AppConfig(
                backend=BackendConfig(base_url="", fetch_limit=0),
                rules=BusinessRules(spend_multiplier=-1),
                platforms=PlatformConfig(rules=(("Snap", "Snapchat"),)),
                logging=LoggingConfig(level="LOUD", format="text"),
            ))
        message = str(exc_info.value)
        assert "ADS_BACKEND_URL is required" in message
        assert "ADS_FETCH_LIMIT" in message
        assert "spend_multiplier" in message
        assert "Unknown platform tags" in message
        assert "lower-case" in message
        assert "LOG_LEVEL" in message
