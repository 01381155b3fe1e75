"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import json
import pytest
from pathlib import Path
from typing import Callable

from kvfile.cache.store import PersistentCache


# Fixed start time for the fake clock (epoch seconds)
START_TIME = 1_700_000_000.0


class FakeClock:
    """
    Manually advanced clock for deterministic TTL tests.

    Usage:
        clock = FakeClock()
        cache = PersistentCache(path, clock=clock)
        clock.advance(5)   # five seconds later
    """

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def read_snapshot(path: Path) -> dict:
    """Load the raw JSON document written by a cache."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Path of a snapshot file that does not exist yet."""
    return tmp_path / "cache.json"


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at START_TIME."""
    return FakeClock()


@pytest.fixture
def make_cache(cache_path: Path, clock: FakeClock) -> Callable[..., PersistentCache]:
    """
    Factory fixture to create caches on the shared path and clock.

    The exit hook is disabled so tests never write after they finish.

    Usage:
        def test_something(make_cache):
            cache = make_cache(data={"a": 1})
    """
    def factory(**kwargs) -> PersistentCache:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("flush_at_exit", False)
        return PersistentCache(cache_path, **kwargs)
    return factory


@pytest.fixture
def cache(make_cache) -> PersistentCache:
    """Create a fresh, empty cache."""
    return make_cache()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )

