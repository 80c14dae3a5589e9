"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (StaticPool, so every
   session shares the one connection that holds the data)
2. Tables are created with the same init_db() the app runs at startup
3. get_db is overridden so every request opens a session on that engine
4. The engine is disposed after the test — the database vanishes with it

The connection registry is process-wide, so it is cleared around each test.
"""

import os

os.environ.setdefault("DIRECTLINE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketState

from directline.db.engine import build_engine, get_db, init_db
from directline.main import app
from directline.realtime.connection import LiveConnection
from directline.realtime.registry import connection_registry

TEST_DB_URL = "sqlite+aiosqlite://"


class FakeSocket:
    """Stands in for a Starlette WebSocket: records every pushed frame."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[str] = []
        self.close_code: int | None = None

    async def send_text(self, data: str) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED


@pytest.fixture(autouse=True)
def clean_registry():
    connection_registry.clear()
    yield
    connection_registry.clear()


@pytest_asyncio.fixture()
async def db_engine():
    engine = build_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
    )
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    """A session for calling services directly."""
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def client(db_engine):
    """HTTP client with the app's get_db pointed at the test database."""
    factory = async_sessionmaker(db_engine, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def make_connection():
    """Build LiveConnections over FakeSockets, bound to the app's registry."""

    def _make() -> LiveConnection:
        return LiveConnection(FakeSocket(), connection_registry)

    return _make


@pytest.fixture()
async def alice(client):
    resp = await client.post("/users", json={"name": "Alice", "handle": "555-0001"})
    assert resp.status_code == 200
    return resp.json()


@pytest.fixture()
async def bob(client):
    resp = await client.post("/users", json={"name": "Bob", "handle": "555-0002"})
    assert resp.status_code == 200
    return resp.json()
