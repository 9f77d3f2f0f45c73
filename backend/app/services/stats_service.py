"""
Order outcome statistics over the audit table.

Computed fresh on every call with one grouped COUNT; an order still in
flight has not committed its audit row and is simply not counted yet.
"""

from dataclasses import dataclass

from app.core.errors import StoreUnavailableError
from app.core.logging import get_logger
from app.core.metrics import record_store_error
from app.models.order import OrderStatus
from app.services.interfaces.store import InventoryStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrderStats:
    total: int
    success: int
    out_of_stock: int
    conflict: int


async def get_stats(store: InventoryStore) -> OrderStats:
    try:
        async with store.transaction() as tx:
            counts = await tx.count_orders_by_status()
    except StoreUnavailableError:
        record_store_error("stats")
        raise

    stats = OrderStats(
        total=sum(counts.values()),
        success=counts.get(OrderStatus.SUCCESS.value, 0),
        out_of_stock=counts.get(OrderStatus.FAILED_OUT_OF_STOCK.value, 0),
        conflict=counts.get(OrderStatus.FAILED_CONFLICT.value, 0),
    )
    logger.debug("order_stats_computed", total=stats.total)
    return stats
