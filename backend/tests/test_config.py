from datetime import timedelta

from pos_app import db
from pos_app.config import DEFAULT_ASYNC_DATABASE_URL, get_settings

# bypasses the lru_cache so each call sees the patched environment
read_settings = get_settings.__wrapped__


def test_engine_uses_configured_url():
    assert db.engine.url.render_as_string(hide_password=False) == get_settings().async_database_url


def test_database_urls(monkeypatch):
    monkeypatch.delenv("ASYNC_DATABASE_URL", raising=False)
    monkeypatch.delenv("ALEMBIC_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = read_settings()
    assert settings.async_database_url == DEFAULT_ASYNC_DATABASE_URL
    assert settings.database_url is None

    monkeypatch.setenv("DATABASE_URL", "postgresql://db/main")
    assert read_settings().database_url == "postgresql://db/main"

    monkeypatch.setenv("ALEMBIC_DB_URL", "postgresql://db/migrations")
    assert read_settings().database_url == "postgresql://db/migrations"


def test_defaults_and_overrides(monkeypatch):
    monkeypatch.setenv("JWT_EXPIRES_IN", "12h")
    monkeypatch.setenv("COOKIE_SECURE", "yes")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.delenv("JWT_SECRET", raising=False)

    settings = read_settings()
    assert settings.jwt_expires_in == timedelta(hours=12)
    assert settings.cookie_secure is True
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.jwt_secret is None
    assert settings.auth_cookie_name == "auth_token"
