"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from cashflow_report.config import Settings, parse_comma_list


def test_parse_comma_list() -> None:
    assert parse_comma_list(None, ["a"]) == ["a"]
    assert parse_comma_list(["x"], ["a"]) == ["x"]
    assert parse_comma_list(" http://a , ,http://b ", []) == ["http://a", "http://b"]


def test_defaults(monkeypatch) -> None:
    for name in ("REPORT_TIMEOUT_SECONDS", "DEFAULT_LOOKBACK_MONTHS", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.report_timeout_seconds == 30.0
    assert settings.default_lookback_months == 6
    assert "http://localhost:5173" in settings.cors_origins


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("REPORT_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("DEFAULT_LOOKBACK_MONTHS", "12")
    monkeypatch.setenv("CORS_ORIGINS", "https://reports.example.com")
    monkeypatch.setenv("ENV", "staging")
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.report_timeout_seconds == 2.5
    assert settings.default_lookback_months == 12
    assert settings.cors_origins == ["https://reports.example.com"]
    assert settings.environment == "staging"


def test_rejects_non_positive_timeout(monkeypatch) -> None:
    monkeypatch.setenv("REPORT_TIMEOUT_SECONDS", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
