from app.schemas.order import (
    OrderCreate, OrderResponse, OptimisticOrderResponse, OrderErrorResponse, OrderStatsResponse,
)
from app.schemas.product import ProductResponse, InventoryReset, InventoryResetResponse

__all__ = [
    "OrderCreate", "OrderResponse", "OptimisticOrderResponse", "OrderErrorResponse", "OrderStatsResponse",
    "ProductResponse", "InventoryReset", "InventoryResetResponse",
]
