"""Pytest configuration and fixtures."""

import os

# Set test environment variables BEFORE importing anything that loads settings
# This ensures tests run with auth disabled and the in-memory store
os.environ["AUTH_REQUIRED"] = "false"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["TRACKING_SECRET"] = "test-tracking-secret"
os.environ["TRACKING_DEFAULT_REDIRECT_URL"] = "https://cms.example.org/"
os.environ["TRACKING_BASE_URL"] = "https://track.example.org"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from engagement_api.config import settings

# Verify settings are correct for tests
assert settings.auth_required is False, "Test setup failed: auth_required should be False"
assert settings.storage_backend == "memory", "Test setup failed: storage_backend should be memory"

# 2025-01-01T12:00:00Z
START_TIME = 1_735_732_800.0


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store():
    from engagement_api.storage import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def codec(clock):
    from engagement_api.core import TokenCodec

    return TokenCodec(settings.tracking_secret, clock=clock)


@pytest.fixture
def verifier(codec, store):
    from engagement_api.core import TokenVerifier

    return TokenVerifier(codec, store)


@pytest.fixture
def revocations(codec, store):
    from engagement_api.core import RevocationService

    return RevocationService(codec, store)


@pytest.fixture
def recorder(store, clock):
    from engagement_api.core import EventRecorder

    return EventRecorder(store, clock=clock)


@pytest.fixture
def aggregator(store, clock):
    from engagement_api.core import SnapshotAggregator

    return SnapshotAggregator(store, clock=clock)


@pytest.fixture
def failing_store():
    """Store whose every operation raises StorageError."""
    from engagement_api.core import StorageError
    from engagement_api.storage import InMemoryStore

    class FailingStore(InMemoryStore):
        def __getattribute__(self, name):
            attr = super().__getattribute__(name)
            if callable(attr) and not name.startswith("_") and name not in ("connect", "ping"):

                async def fail(*args, **kwargs):
                    raise StorageError("connection refused")

                return fail
            return attr

    return FailingStore()


@pytest_asyncio.fixture(scope="function")
async def client(store, clock):
    """Test client for the full app, wired to the in-memory store and fake clock."""
    from engagement_api.api.deps import configure_services
    from engagement_api.main import app

    configure_services(app, store, clock=clock)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def enable_auth():
    """Context manager to enable admin authentication for a test.

    Usage:
        with enable_auth:
            response = await client.post("/admin/tokens/prune")
    """

    class AuthEnabler:
        def __enter__(self):
            object.__setattr__(settings, "auth_required", True)
            return self

        def __exit__(self, *args):
            object.__setattr__(settings, "auth_required", False)

    return AuthEnabler()
