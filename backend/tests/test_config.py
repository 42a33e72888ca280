"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from app.config import Settings

STRONG_SECRET = "x" * 64


def test_dev_billing_refused_in_production():
    with pytest.raises(ValidationError, match="BILLING_DEV_MODE"):
        Settings(_env_file=None, environment="production", jwt_secret_key=STRONG_SECRET, billing_dev_mode=True)


def test_default_jwt_secret_refused_in_production():
    with pytest.raises(ValidationError, match="JWT_SECRET_KEY"):
        Settings(_env_file=None, environment="production")


def test_default_jwt_secret_warns_in_development():
    with pytest.warns(UserWarning, match="default JWT secret"):
        Settings(_env_file=None, environment="development")


def test_frontend_url_added_to_cors():
    settings = Settings(_env_file=None, jwt_secret_key=STRONG_SECRET, frontend_url="https://shelf.example")
    assert "https://shelf.example" in settings.cors_origins


def test_stripe_configured_needs_key_and_price():
    base = {"_env_file": None, "jwt_secret_key": STRONG_SECRET}
    assert Settings(**base, stripe_secret_key="sk_test", stripe_price_id="").stripe_configured is False
    assert Settings(**base, stripe_secret_key="sk_test", stripe_price_id="price_1").stripe_configured is True


def test_plain_postgres_url_gets_async_driver():
    settings = Settings(_env_file=None, jwt_secret_key=STRONG_SECRET, database_url="postgresql://u:p@db:5432/shelf")
    assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5432/shelf"
