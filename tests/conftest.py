"""Pytest configuration helpers."""

from __future__ import annotations

from typing import Iterator

import pytest

from aicache.api.deps import get_cache_manager
from aicache.config import get_settings


@pytest.fixture(autouse=True)
def _reset_cached_settings() -> Iterator[None]:
    """Drop process-wide settings and manager so env changes take effect."""
    get_settings.cache_clear()
    get_cache_manager.cache_clear()
    yield
    get_settings.cache_clear()
    get_cache_manager.cache_clear()
