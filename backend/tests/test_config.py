"""Tests for settings defaults."""
from sqlalchemy.engine import make_url

from workout_map.config import Settings


def test_default_database_url_uses_declared_driver(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    url = make_url(Settings(_env_file=None).DATABASE_URL)
    assert url.get_backend_name() == "postgresql"
    assert url.get_driver_name() == "psycopg2"


def test_cors_origins_are_split_and_trimmed():
    settings = Settings(_env_file=None, CORS_ORIGINS="http://a.example.com, http://b.example.com,")
    assert settings.get_cors_origins() == ["http://a.example.com", "http://b.example.com"]
