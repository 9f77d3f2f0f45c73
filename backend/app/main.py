"""
Inventory Order API - Main Application Entry Point

A stock-decrement service comparing two concurrency-control strategies:
- Pessimistic row locking (SELECT ... FOR UPDATE)
- Optimistic version checks with bounded, linearly backed-off retries
- One audit row per order outcome, aggregated at /api/orders/stats
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request

from app.core.config import get_settings
from app.core.errors import StoreUnavailableError
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.middleware import RequestLoggingMiddleware
from app.api.responses import failure_response
from app.api.router import api_router
from app.db.session import get_store, close_store
from app.services.product_service import seed_products

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        store=settings.STORE_BACKEND,
        default_strategy=settings.DEFAULT_LOCKING_STRATEGY,
    )

    store = await get_store()
    if settings.CREATE_SCHEMA_ON_STARTUP:
        await store.create_schema()
    await seed_products(store, settings.SEED_PRODUCT_COUNT, settings.RESET_STOCK)
    logger.info("store_ready", backend=store.backend)

    yield

    await close_store()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Inventory orders under pessimistic and optimistic concurrency control",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("store_unavailable", operation=exc.operation, error=str(exc.cause or exc))
    return failure_response(exc.kind)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "store": settings.STORE_BACKEND,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.API_PORT)
