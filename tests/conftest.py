"""Core test fixtures for the radiocache project."""

from collections.abc import AsyncGenerator, Generator
from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from typer.testing import CliRunner

from radiocache.adapters import InMemoryKeyValueStore
from radiocache.core.cache import CacheConfig, EnhancedCacheService, MockCacheService


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def cache_config() -> CacheConfig:
    """Cache configuration without the background sweep."""
    return CacheConfig(
        namespace="test_cache",
        default_expiry=timedelta(hours=1),
        max_cache_size_bytes=1024 * 1024,
        memory_max_items=100,
        enable_periodic_cleanup=False,
    )


@pytest_asyncio.fixture
async def cache_service(
    store: InMemoryKeyValueStore, cache_config: CacheConfig, clock: FakeClock
) -> AsyncGenerator[EnhancedCacheService, None]:
    service = EnhancedCacheService(store, cache_config, clock=clock)
    yield service
    await service.dispose()


@pytest.fixture
def mock_cache(clock: FakeClock) -> MockCacheService:
    return MockCacheService(clock=clock)


# ---- Test Isolation Fixtures ----


@pytest.fixture
def isolated_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Point configuration at a temporary cache directory.

    Clears every RADIOCACHE_ variable and runs from tmp_path so no .env file
    is picked up.
    """
    import os

    for name in list(os.environ):
        if name.startswith("RADIOCACHE_"):
            monkeypatch.delenv(name)

    cache_dir = tmp_path / "cache"
    monkeypatch.setenv("RADIOCACHE_CACHE_PATH", str(cache_dir))
    monkeypatch.setenv("RADIOCACHE_CACHE__ENABLE_PERIODIC_CLEANUP", "false")
    monkeypatch.chdir(tmp_path)
    yield cache_dir
