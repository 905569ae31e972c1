"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from msgqueue.api.main import create_app
from msgqueue.config import Settings
from msgqueue.core import ActorRegistry, MessageLifecycleEngine, QueueService
from msgqueue.db.connection import create_session_factory, create_tables, get_test_engine
from msgqueue.ids import SortableIdGenerator
from msgqueue.observability.metrics import MetricsCollector
from msgqueue.storage.memory import (
    InMemoryMessageStore,
    InMemoryQueueDirectory,
    InMemoryStorage,
)

# 2026-01-01T00:00:00Z
START_MS = 1_767_225_600_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = START_MS):
        self.ms = start_ms

    def __call__(self) -> int:
        return self.ms

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.ms += int(seconds * 1000) + ms


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def ids(clock: FakeClock) -> SortableIdGenerator:
    """Create an identifier generator driven by the fake clock."""
    return SortableIdGenerator(clock=clock)


@pytest.fixture
def store() -> InMemoryMessageStore:
    """Create an empty in-memory message store."""
    return InMemoryMessageStore()


@pytest.fixture
def engine(store: InMemoryMessageStore, ids: SortableIdGenerator) -> MessageLifecycleEngine:
    """Create a lifecycle engine over the in-memory store."""
    return MessageLifecycleEngine("test-queue", store, ids)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        storage_backend="memory",
        log_level="DEBUG",
        log_format="console",
        list_page_size=3,
        max_visibility_timeout=3600,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Create a metrics collector with its own registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def queue_service(test_settings: Settings, metrics: MetricsCollector) -> QueueService:
    """Create a queue service on in-memory storage."""
    return QueueService(
        InMemoryQueueDirectory(),
        ActorRegistry(InMemoryStorage().get_store),
        settings=test_settings,
        metrics=metrics,
    )


@pytest_asyncio.fixture
async def sql_session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """Create a session factory for a fresh SQLite database."""
    engine = get_test_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def app(test_settings: Settings, queue_service: QueueService) -> FastAPI:
    """Create a FastAPI app wired to the in-memory queue service."""
    return create_app(settings=test_settings, queue_service=queue_service)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def message_bodies() -> list[str]:
    """Five bodies whose order is easy to check."""
    return ["every", "good", "boy", "does", "fine"]
