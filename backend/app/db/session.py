"""
Engine and store lifecycle.

The store is created lazily on first use and shared by all requests; each
request then opens its own transactions through it. Routes receive it via
the `get_store` dependency so tests can swap it out.
"""

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import get_settings
from app.core.logging import get_logger
from app.infrastructure.memory_store import InMemoryInventoryStore
from app.infrastructure.sql_store import SqlAlchemyInventoryStore
from app.services.interfaces.store import InventoryStore

logger = get_logger(__name__)

_store: Optional[InventoryStore] = None


def build_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to server databases."""
    settings = get_settings()
    url = url or settings.DATABASE_URL

    kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if make_url(url).get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(url, **kwargs)


def build_store() -> InventoryStore:
    settings = get_settings()
    if settings.STORE_BACKEND == "memory":
        return InMemoryInventoryStore()
    if settings.STORE_BACKEND == "sql":
        return SqlAlchemyInventoryStore(build_engine())
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")


async def get_store() -> InventoryStore:
    """Get or create the shared inventory store."""
    global _store
    if _store is None:
        _store = build_store()
        logger.info("store_created", backend=_store.backend)
    return _store


async def close_store() -> None:
    """Dispose of the store on shutdown."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
