"""
tests/test_config.py -- Settings validation and database URL resolution.

Settings are built directly (not through get_settings()) so the cached
application settings are never touched.
"""

from __future__ import annotations

import pytest

from core.config import Settings
from core.db import build_database_url


class TestAdminToken:
    def test_explicit_token_kept(self) -> None:
        assert Settings(debug=False, admin_token="pinned").admin_token == "pinned"

    def test_debug_generates_token(self, monkeypatch) -> None:
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)
        settings = Settings(debug=True, admin_token="")
        assert settings.admin_token
        assert len(settings.admin_token) >= 24

    def test_production_requires_token(self, monkeypatch) -> None:
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)
        with pytest.raises(ValueError):
            Settings(debug=False, admin_token="")


class TestDefaults:
    def test_defaults(self) -> None:
        settings = Settings(admin_token="x")
        assert settings.cache_ttl_seconds == 300
        assert settings.uploads_dir == "uploads"
        assert settings.db_port == 5432
        assert settings.auto_migrate is True

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_TTL_SECONDS", "0")
        monkeypatch.setenv("UPLOADS_DIR", "/srv/files")
        settings = Settings(admin_token="x")
        assert settings.cache_ttl_seconds == 0
        assert settings.uploads_dir == "/srv/files"

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(admin_token="x", cache_ttl_seconds=-1)


class TestBuildDatabaseUrl:
    def test_database_url_wins(self) -> None:
        settings = Settings(admin_token="x", database_url="sqlite:///tmp.db", db_host="db")
        assert build_database_url(settings) == "sqlite:///tmp.db"

    def test_postgres_from_parts(self) -> None:
        settings = Settings(
            admin_token="x",
            database_url="",
            db_host="db.internal",
            db_port=6543,
            db_user="astra",
            db_password="p@ss",
            db_name="docs",
        )
        url = build_database_url(settings)
        assert url.startswith("postgresql://astra:")
        assert "@db.internal:6543/docs" in url

    def test_sqlite_fallback(self) -> None:
        settings = Settings(admin_token="x", database_url="", db_host="")
        url = build_database_url(settings)
        assert url.startswith("sqlite:///")
        assert url.endswith("astra.db")
