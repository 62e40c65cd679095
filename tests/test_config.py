"""
Configuration Tests
"""

import logging

import pytest

from app.core.config import Settings, validate_required_settings
from app.core.logging_config import LevelColorFormatter, build_logging_config, use_colors
from services.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BOT_TOKEN", "TRAVELPAYOUTS_API_TOKEN", "TRAVELPAYOUTS_AVIASALES", "ENVIRONMENT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


def test_missing_credentials_are_listed():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_settings(_settings())

    assert "BOT_TOKEN" in str(exc_info.value)
    assert "TRAVELPAYOUTS_API_TOKEN" in str(exc_info.value)


def test_one_missing_credential():
    with pytest.raises(ConfigurationError) as exc_info:
        validate_required_settings(_settings(BOT_TOKEN="123:ABC"))

    assert "BOT_TOKEN" not in str(exc_info.value)
    assert "TRAVELPAYOUTS_API_TOKEN" in str(exc_info.value)


def test_complete_configuration_passes():
    validate_required_settings(_settings(BOT_TOKEN="123:ABC", TRAVELPAYOUTS_API_TOKEN="tp"))


def test_fare_token_legacy_variable(monkeypatch):
    monkeypatch.setenv("TRAVELPAYOUTS_AVIASALES", "legacy-token")
    assert _settings().TRAVELPAYOUTS_API_TOKEN == "legacy-token"


def test_defaults():
    current = _settings()
    assert current.SESSION_BACKEND == "memory"
    assert current.SESSION_TTL_SECONDS == 7 * 24 * 3600
    assert current.HTTP_TIMEOUT_SECONDS == 15.0
    assert current.TELEGRAM_WEBHOOK_URL is None


def test_log_level_follows_environment():
    assert _settings(ENVIRONMENT="development").log_level == "DEBUG"
    assert _settings(ENVIRONMENT="production").log_level == "INFO"
    assert _settings(ENVIRONMENT="production", LOG_LEVEL="warning").log_level == "WARNING"


def test_logging_level_and_quiet_loggers_follow_environment():
    config = build_logging_config(config=_settings(ENVIRONMENT="production"))

    assert config["root"]["level"] == "INFO"
    assert config["loggers"]["httpx"]["level"] == "WARNING"
    assert config["loggers"]["aiogram.event"]["level"] == "WARNING"
    assert config["formatters"]["console"]["()"] is logging.Formatter


def test_debug_logging_in_development_shows_handled_updates():
    config = build_logging_config(config=_settings(ENVIRONMENT="development"))

    assert config["root"]["level"] == "DEBUG"
    assert config["loggers"]["aiogram.event"]["level"] == "INFO"
    assert config["loggers"]["httpcore"]["level"] == "WARNING"


def test_explicit_logging_level_wins():
    config = build_logging_config("error", config=_settings(ENVIRONMENT="development"))
    assert config["root"]["level"] == "ERROR"


class _Terminal:
    def isatty(self):
        return True


def test_colors_only_for_development_terminal():
    assert use_colors(_settings(ENVIRONMENT="development"), _Terminal())
    assert not use_colors(_settings(ENVIRONMENT="production"), _Terminal())


def test_colored_level_does_not_leak_into_the_record():
    formatter = LevelColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("bot", logging.WARNING, __file__, 1, "slow", None, None)

    assert formatter.format(record) == "\033[33mWARNING\033[0m slow"
    assert record.levelname == "WARNING"
