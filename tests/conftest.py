"""Shared test fixtures.

The HTTP client runs the real app without its lifespan: app.state gets a
WalletSummaryService wired to in-memory collaborators and the DB session
dependency is replaced by a mock session.
"""

from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.ws_common.database import get_db_session
from src.ws_wallet.application.service import WalletSummaryService
from tests.fakes import InMemorySummaryCache, StubWarehouse, make_db


@pytest.fixture
def db() -> MagicMock:
    return make_db()


@pytest.fixture
def summary_cache() -> InMemorySummaryCache:
    return InMemorySummaryCache()


@pytest.fixture
def warehouse() -> StubWarehouse:
    return StubWarehouse()


@pytest_asyncio.fixture
async def client(summary_cache: InMemorySummaryCache, warehouse: StubWarehouse) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""

    async def _db_session():
        yield make_db()

    app.state.summary_service = WalletSummaryService(cache=summary_cache, source=warehouse)
    app.state.redis = None
    app.dependency_overrides[get_db_session] = _db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
