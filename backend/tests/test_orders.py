"""
Tests for order endpoints, run against both store adapters.
"""

import pytest
from httpx import AsyncClient

from app.infrastructure.memory_store import InMemoryInventoryStore


@pytest.mark.asyncio
async def test_pessimistic_order(client: AsyncClient, product):
    """Successful pessimistic order returns 201 and the remaining stock."""
    response = await client.post(
        "/api/orders/pessimistic",
        json={"productId": product.id, "quantity": 3, "userId": 11},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["productId"] == product.id
    assert data["quantityOrdered"] == 3
    assert data["stockRemaining"] == 2
    assert data["strategy"] == "pessimistic"
    assert "newVersion" not in data
    assert isinstance(data["orderId"], int)


@pytest.mark.asyncio
async def test_optimistic_order(client: AsyncClient, product):
    """Successful optimistic order also reports the new version."""
    response = await client.post(
        "/api/orders/optimistic",
        json={"productId": product.id, "quantity": 2, "userId": 11},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["stockRemaining"] == 3
    assert data["newVersion"] == 2
    assert data["attempts"] == 1

    product_response = await client.get(f"/api/products/{product.id}")
    assert product_response.json()["version"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", ["pessimistic", "optimistic"])
async def test_order_out_of_stock(client: AsyncClient, product, strategy):
    """Ordering more than available returns 400."""
    response = await client.post(
        f"/api/orders/{strategy}",
        json={"productId": product.id, "quantity": 6, "userId": 11},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "OUT_OF_STOCK"


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", ["pessimistic", "optimistic"])
async def test_order_unknown_product(client: AsyncClient, strategy):
    """Ordering a non-existent product returns 404."""
    response = await client.post(
        f"/api/orders/{strategy}",
        json={"productId": 99999, "quantity": 1, "userId": 11},
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found", "kind": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_order_default_strategy(client: AsyncClient, product):
    """The strategy-less endpoint uses the configured default (pessimistic)."""
    response = await client.post(
        "/api/orders/",
        json={"productId": product.id, "quantity": 1},
    )
    assert response.status_code == 201
    assert response.json()["strategy"] == "pessimistic"


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -2, "three"])
async def test_order_bad_quantity(client: AsyncClient, product, quantity):
    """Non-positive or non-integer quantity is rejected with 422."""
    response = await client.post(
        "/api/orders/pessimistic",
        json={"productId": product.id, "quantity": quantity, "userId": 11},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_order_stats(client: AsyncClient, product):
    """Stats count one audit row per request, grouped by status."""
    await client.post("/api/orders/pessimistic", json={"productId": product.id, "quantity": 4, "userId": 1})
    await client.post("/api/orders/optimistic", json={"productId": product.id, "quantity": 4, "userId": 2})
    await client.post("/api/orders/optimistic", json={"productId": 12345, "quantity": 1, "userId": 3})

    response = await client.get("/api/orders/stats")
    assert response.status_code == 200
    assert response.json() == {
        "totalOrders": 3,
        "successfulOrders": 1,
        "failedOutOfStock": 2,
        "failedConflict": 0,
    }

    # No writes in between: identical counts
    again = await client.get("/api/orders/stats")
    assert again.json() == response.json()


@pytest.mark.asyncio
async def test_store_unavailable_returns_503(client: AsyncClient, store, product):
    """Store outages surface as 503, never as a 409 conflict."""
    if not isinstance(store, InMemoryInventoryStore):
        pytest.skip("outage simulation needs the in-memory store")

    store.configure(available=False)
    response = await client.post(
        "/api/orders/optimistic",
        json={"productId": product.id, "quantity": 1, "userId": 11},
    )
    store.configure(available=True)

    assert response.status_code == 503
    assert response.json()["kind"] == "STORE_UNAVAILABLE"
    assert store.orders == []
