"""Shared fixtures for integration tests."""

import pytest

from find_my_expert.config import get_settings


@pytest.fixture(autouse=True)
def require_anthropic_key():
    """Skip live tests unless ANTHROPIC_API_KEY is configured."""
    if not get_settings().anthropic_api_key:
        pytest.skip("ANTHROPIC_API_KEY not set; skipping live model test")


@pytest.fixture
def require_google_key():
    if not get_settings().google_api_key:
        pytest.skip("GOOGLE_API_KEY not set; skipping live image test")
