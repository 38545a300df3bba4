"""Tests for builder settings loading."""

from pydantic import ValidationError
import pytest

from builder.config import Settings


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/builder")
    monkeypatch.setenv("REDIS_URL", "redis://redis:6379/0")
    monkeypatch.delenv("VERCEL_PUBLISH_TOKEN", raising=False)
    return monkeypatch


def test_reads_environment(env):
    env.setenv("VERCEL_PUBLISH_TOKEN", "tok")
    env.setenv("build_budget_seconds", "120")

    settings = Settings(_env_file=None)

    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.vercel_publish_token == "tok"
    assert settings.build_budget_seconds == 120.0
    assert settings.service_name == "builder"


def test_publishing_disabled_without_token(env):
    assert Settings(_env_file=None).vercel_publish_token is None


def test_log_level_is_normalized(env):
    env.setenv("LOG_LEVEL", " debug ")
    assert Settings(_env_file=None).log_level == "DEBUG"


def test_unknown_log_level_rejected(env):
    env.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError, match="log_level must be one of"):
        Settings(_env_file=None)


def test_database_url_required(env):
    env.delenv("DATABASE_URL")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_durations_must_be_positive(env):
    env.setenv("DEPLOY_POLL_INTERVAL_SECONDS", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
