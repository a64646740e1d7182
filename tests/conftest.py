"""Pytest fixtures for FieldCipher tests."""

import logging
import os

import pytest

# Set up test environment variables BEFORE importing fieldcipher
os.environ.setdefault("SS_CRYPTO_KEY", "test-key")
os.environ.setdefault("SS_CRYPTO_PASSES", "2")

from fieldcipher.config import Settings, get_settings
from fieldcipher.service import CryptographyService, get_service

TEST_KEY = "test-key"


@pytest.fixture(autouse=True)
def reset_cached_defaults():
    """Clear cached settings/service and logging setup between tests."""
    get_settings.cache_clear()
    get_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_service.cache_clear()
    root = logging.getLogger("fieldcipher")
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def settings():
    """Explicit settings with a small pass count."""
    return Settings(key=TEST_KEY, passes=2)


@pytest.fixture
def service(settings):
    """Service bound to the test settings."""
    return CryptographyService(settings)


@pytest.fixture
def fixed_ivs(monkeypatch):
    """Replace the IV source with a predictable counter.

    Returns a callable that restarts the sequence, so two encryptions can
    be compared byte for byte.
    """
    import fieldcipher.ciphers as ciphers

    state = {"counter": 0}

    def fake_urandom(n):
        state["counter"] += 1
        return bytes([state["counter"] % 256]) * n

    def reset():
        state["counter"] = 0

    monkeypatch.setattr(ciphers.os, "urandom", fake_urandom)
    return reset
