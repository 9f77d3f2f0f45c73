"""
Tests for product endpoints and the product service.
"""

import pytest
from httpx import AsyncClient

from app.core.errors import FailureKind, ReservationError
from app.services.product_service import get_product, reset_inventory, seed_products


@pytest.mark.asyncio
async def test_get_product(client: AsyncClient, product):
    """Get single product by ID with live stock and version."""
    response = await client.get(f"/api/products/{product.id}")
    assert response.status_code == 200
    assert response.json() == {"id": product.id, "name": "Widget", "stock": 5, "version": 1}


@pytest.mark.asyncio
async def test_get_product_not_found(client: AsyncClient):
    """Non-existent product returns 404."""
    response = await client.get("/api/products/99999")
    assert response.status_code == 404
    assert response.json()["kind"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_reset_inventory_endpoint(client: AsyncClient, product):
    """Reset restores stock and version after orders."""
    await client.post("/api/orders/optimistic", json={"productId": product.id, "quantity": 5, "userId": 1})

    response = await client.post("/api/products/reset")
    assert response.status_code == 200
    data = response.json()
    assert data["productsReset"] == 1
    assert data["stock"] == 1000

    product_response = await client.get(f"/api/products/{product.id}")
    assert product_response.json()["stock"] == 1000
    assert product_response.json()["version"] == 1


@pytest.mark.asyncio
async def test_reset_inventory_custom_stock(client: AsyncClient, product):
    response = await client.post("/api/products/reset", json={"stock": 7})
    assert response.status_code == 200
    assert response.json()["stock"] == 7

    product_response = await client.get(f"/api/products/{product.id}")
    assert product_response.json()["stock"] == 7


@pytest.mark.asyncio
async def test_reset_inventory_negative_stock(client: AsyncClient, product):
    response = await client.post("/api/products/reset", json={"stock": -1})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_product_service_not_found(store):
    with pytest.raises(ReservationError) as exc_info:
        await get_product(store, 31337)
    assert exc_info.value.kind is FailureKind.NOT_FOUND


@pytest.mark.asyncio
async def test_reset_inventory_rejects_negative(store, product):
    with pytest.raises(ValueError):
        await reset_inventory(store, -5)


@pytest.mark.asyncio
async def test_seed_products_only_when_empty(store):
    seeded = await seed_products(store, count=2, stock=10)
    assert [p.stock for p in seeded] == [10, 10]

    assert await seed_products(store, count=2, stock=10) == []

    async with store.transaction() as tx:
        assert await tx.count_products() == 2
