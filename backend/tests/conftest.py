"""
Pytest fixtures for stores, seeded products and the HTTP client.

API tests run against both store adapters: the in-memory store and the
SQLAlchemy store on a throwaway SQLite file. Concurrency tests use the
in-memory store, whose row locks make interleavings deterministic.
"""

import os
from typing import AsyncGenerator

# Must be set before the app (and its cached settings) is imported
os.environ.setdefault("OPTIMISTIC_VALIDATION_DELAY_MS", "0")
os.environ.setdefault("PESSIMISTIC_VALIDATION_DELAY_MS", "0")
os.environ.setdefault("STORE_BACKEND", "memory")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.db.session import build_engine, get_store
from app.infrastructure.memory_store import InMemoryInventoryStore
from app.infrastructure.sql_store import SqlAlchemyInventoryStore
from app.services.interfaces.store import InventoryStore, ProductState
from helpers import add_product


@pytest_asyncio.fixture
async def memory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path) -> AsyncGenerator[InventoryStore, None]:
    """Each adapter in turn; the SQL one on a fresh SQLite file."""
    if request.param == "memory":
        yield InMemoryInventoryStore()
        return

    sql_store = SqlAlchemyInventoryStore(build_engine(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}"))
    await sql_store.create_schema()
    yield sql_store
    await sql_store.close()


@pytest_asyncio.fixture
async def product(store: InventoryStore) -> ProductState:
    """Product 1 with 5 units in stock."""
    return await add_product(store, stock=5)


@pytest_asyncio.fixture
async def client(store: InventoryStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the store dependency with the test store."""

    async def override_get_store():
        return store

    app.dependency_overrides[get_store] = override_get_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
