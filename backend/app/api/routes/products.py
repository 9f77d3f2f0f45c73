"""
Product endpoints: current stock and inventory reset.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.api.responses import failure_response
from app.core.config import get_settings
from app.core.errors import ReservationError
from app.db.session import get_store
from app.schemas.product import InventoryReset, InventoryResetResponse, ProductResponse
from app.services.interfaces.store import InventoryStore
from app.services.product_service import get_product, reset_inventory

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("/reset", response_model=InventoryResetResponse)
async def reset_inventory_endpoint(
    reset: Optional[InventoryReset] = None,
    store: InventoryStore = Depends(get_store),
):
    """Reset every product's stock (default RESET_STOCK) and version."""
    stock = reset.stock if reset and reset.stock is not None else get_settings().RESET_STOCK
    products_reset = await reset_inventory(store, stock)
    return InventoryResetResponse(
        message="Product inventory reset successfully.",
        products_reset=products_reset,
        stock=stock,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product_endpoint(
    product_id: int,
    store: InventoryStore = Depends(get_store),
):
    """Get a single product with its live stock and version."""
    try:
        product = await get_product(store, product_id)
    except ReservationError as exc:
        return failure_response(exc.kind)
    return product
