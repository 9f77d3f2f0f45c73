"""
Product lookups and inventory administration.
"""

from typing import Optional

from app.core.config import get_settings
from app.core.errors import FailureKind, ReservationError
from app.core.logging import get_logger
from app.services.interfaces.store import InventoryStore, ProductState

logger = get_logger(__name__)


async def get_product(store: InventoryStore, product_id: int) -> ProductState:
    """Get a single product by ID. Not cached (stock must be current)."""
    async with store.transaction() as tx:
        product = await tx.get_product(product_id)

    if product is None:
        raise ReservationError(FailureKind.NOT_FOUND, product_id)
    return product


async def reset_inventory(store: InventoryStore, stock: Optional[int] = None) -> int:
    """Put every product back to `stock` units (default RESET_STOCK) and version 1."""
    if stock is None:
        stock = get_settings().RESET_STOCK
    if stock < 0:
        raise ValueError(f"stock must be non-negative, got {stock}")

    async with store.transaction() as tx:
        reset = await tx.reset_inventory(stock)

    logger.info("inventory_reset", products=reset, stock=stock)
    return reset


async def seed_products(store: InventoryStore, count: int, stock: int) -> list[ProductState]:
    """Create `count` demo products, only when the products table is empty."""
    async with store.transaction() as tx:
        if count <= 0 or await tx.count_products() > 0:
            return []
        products = [
            await tx.add_product(f"Product {index}", stock)
            for index in range(1, count + 1)
        ]

    logger.info("products_seeded", count=len(products), stock=stock)
    return products
