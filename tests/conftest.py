"""Pytest fixtures and configuration for the test suite

Fixtures:
    - signer: URLSigner with a fixed key and the default ttl disabled
    - ttl_signer: URLSigner with the default 30 minute ttl
    - frozen_clock: patches the signer clock to FROZEN_NOW_MS
    - reset_signer_singleton: clears the settings-backed singleton around a test
"""
import pytest
from unittest.mock import patch

from signedurl.services.signer import URLSigner, reset_url_signer

TEST_KEY = "test-secret-key-for-testing"

# 2023-11-14T22:13:20Z, used as "now" by tests that freeze the clock
FROZEN_NOW_MS = 1_700_000_000_000


@pytest.fixture
def signer():
    """Signer without a default ttl, so per-call expiry options apply."""
    return URLSigner(key=TEST_KEY, ttl=0)


@pytest.fixture
def ttl_signer():
    """Signer with the default 30 minute ttl."""
    return URLSigner(key=TEST_KEY)


@pytest.fixture
def frozen_clock():
    """Freeze the signer clock; yields the mock so tests can move time."""
    with patch("signedurl.services.signer.current_millis", return_value=FROZEN_NOW_MS) as clock:
        yield clock


@pytest.fixture
def reset_signer_singleton():
    reset_url_signer()
    yield
    reset_url_signer()
