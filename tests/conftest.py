"""Shared fixtures for the deal intelligence tests.

Provides:
- A fixed reference time so recency, countdown, and today/week checks
  are deterministic
- Settings cache reset so environment overrides take effect per test
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.dealintel.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Clear the cached Settings before and after every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now() -> datetime:
    """Wednesday 2025-06-18 15:00 UTC."""
    return datetime(2025, 6, 18, 15, 0, tzinfo=timezone.utc)
