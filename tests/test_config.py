"""Tests for Settings and get_settings()."""

import pytest
from pydantic import ValidationError

from fieldcipher.config import Settings, get_settings
from fieldcipher.errors import CryptoKeyError


class TestSettings:
    """Tests for environment-driven settings."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SS_CRYPTO_KEY", "from-env")
        monkeypatch.setenv("SS_CRYPTO_PASSES", "5")
        get_settings.cache_clear()

        settings = get_settings()
        assert settings.key == "from-env"
        assert settings.passes == 5

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SS_CRYPTO_KEY", raising=False)
        monkeypatch.delenv("SS_CRYPTO_PASSES", raising=False)

        settings = Settings(_env_file=None)
        assert settings.key is None
        assert settings.passes == 16
        assert settings.log_level == "WARNING"
        assert settings.log_json is False

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_negative_passes_rejected(self, monkeypatch):
        monkeypatch.setenv("SS_CRYPTO_PASSES", "-1")
        with pytest.raises(ValidationError):
            Settings()

    def test_non_numeric_passes_rejected(self, monkeypatch):
        monkeypatch.setenv("SS_CRYPTO_PASSES", "many")
        with pytest.raises(ValidationError):
            Settings()

    def test_zero_passes_allowed(self):
        assert Settings(key="k", passes=0).passes == 0


class TestResolve:
    """Tests for call-site fallbacks."""

    def test_key_override(self, settings):
        assert settings.resolve_key("other") == "other"

    @pytest.mark.parametrize("blank", [None, "", "  \t"])
    def test_blank_key_falls_back(self, settings, blank):
        assert settings.resolve_key(blank) == "test-key"

    @pytest.mark.parametrize("configured", [None, "", "   "])
    def test_missing_key(self, configured):
        settings = Settings(key=configured, passes=2)
        with pytest.raises(CryptoKeyError, match="SS_CRYPTO_KEY"):
            settings.resolve_key(None)

    def test_passes_override(self, settings):
        assert settings.resolve_passes(7) == 7
        assert settings.resolve_passes(0) == 0

    @pytest.mark.parametrize("unset", [None, -1, -100])
    def test_passes_fall_back(self, settings, unset):
        assert settings.resolve_passes(unset) == 2
