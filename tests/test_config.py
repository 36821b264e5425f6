"""Tests for core/config.py Settings validation.

Covers:
- SECRET_KEY policy: required in production, generated in debug, min length
- Page size consistency
- origins / rate_limit derived properties
- Values read from the environment
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, load_settings
from tests.conftest import TEST_SECRET


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # no stray .env or exported SECRET_KEY from the developer's shell
    monkeypatch.chdir(tmp_path)
    for name in ("SECRET_KEY", "DEBUG", "DATABASE_URL", "ALLOWED_ORIGINS", "JWT_EXPIRE_SECONDS"):
        monkeypatch.delenv(name, raising=False)


class TestSecretKey:
    def test_required_in_production(self):
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            Settings()

    def test_generated_in_debug(self):
        settings = Settings(debug=True)
        assert len(settings.secret_key) >= 32

    def test_short_key_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(secret_key="short")

    def test_explicit_key_kept(self):
        assert Settings(secret_key=TEST_SECRET).secret_key == TEST_SECRET


class TestDerived:
    def test_defaults(self):
        settings = Settings(secret_key=TEST_SECRET)
        assert settings.jwt_expire_seconds == 7 * 24 * 3600
        assert settings.default_page_size == 10
        assert settings.rate_limit == "100/900 seconds"

    def test_origins_split(self):
        settings = Settings(secret_key=TEST_SECRET, allowed_origins=" http://a.test , ,http://b.test")
        assert settings.origins == ["http://a.test", "http://b.test"]

    def test_page_size_above_max_rejected(self):
        with pytest.raises(ValidationError):
            Settings(secret_key=TEST_SECRET, default_page_size=50, max_page_size=20)

    def test_max_page_size_is_capped(self):
        with pytest.raises(ValidationError):
            Settings(secret_key=TEST_SECRET, max_page_size=5000)

    def test_bcrypt_rounds_bounds(self):
        with pytest.raises(ValidationError):
            Settings(secret_key=TEST_SECRET, bcrypt_rounds=3)


class TestEnvironment:
    def test_load_settings_reads_env(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", TEST_SECRET)
        monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
        monkeypatch.setenv("JWT_EXPIRE_SECONDS", "3600")
        settings = load_settings()
        assert settings.database_url == "sqlite:///elsewhere.db"
        assert settings.jwt_expire_seconds == 3600
