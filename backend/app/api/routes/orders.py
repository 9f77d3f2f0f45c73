"""
Order endpoints: one per concurrency-control strategy, plus stats.
"""

from typing import Union

from fastapi import APIRouter, Depends, status

from app.api.responses import FAILURE_RESPONSES, failure_response
from app.db.session import get_store
from app.schemas.order import OrderCreate, OrderResponse, OptimisticOrderResponse, OrderStatsResponse
from app.services.interfaces.reservation import LockingStrategy
from app.services.interfaces.store import InventoryStore
from app.services.order_service import (
    OrderFailed,
    OrderResult,
    place_order,
    place_order_optimistic,
    place_order_pessimistic,
)
from app.services.stats_service import get_stats

router = APIRouter(prefix="/orders", tags=["Orders"])


def _order_response(result: OrderResult):
    if isinstance(result, OrderFailed):
        return failure_response(result.kind, result.detail)

    fields = dict(
        order_id=result.order_id,
        product_id=result.product_id,
        quantity_ordered=result.quantity,
        stock_remaining=result.stock_remaining,
        strategy=result.strategy,
        attempts=result.attempts,
    )
    if result.strategy is LockingStrategy.OPTIMISTIC:
        return OptimisticOrderResponse(**fields, new_version=result.version)
    return OrderResponse(**fields)


@router.post(
    "/pessimistic",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses=FAILURE_RESPONSES,
)
async def create_order_pessimistic(
    order: OrderCreate,
    store: InventoryStore = Depends(get_store),
):
    """
    Place an order under a row lock (SELECT ... FOR UPDATE).

    Concurrent orders for the same product wait for each other; a request
    that finds too little stock after waiting fails with 400.
    """
    result = await place_order_pessimistic(store, order.product_id, order.quantity, order.user_id)
    return _order_response(result)


@router.post(
    "/optimistic",
    response_model=OptimisticOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses=FAILURE_RESPONSES,
)
async def create_order_optimistic(
    order: OrderCreate,
    store: InventoryStore = Depends(get_store),
):
    """
    Place an order with a version-checked update.

    Version conflicts are retried with linear backoff up to
    MAX_OPTIMISTIC_RETRIES attempts, then reported as 409.
    """
    result = await place_order_optimistic(store, order.product_id, order.quantity, order.user_id)
    return _order_response(result)


@router.post(
    "/",
    response_model=Union[OptimisticOrderResponse, OrderResponse],
    status_code=status.HTTP_201_CREATED,
    responses=FAILURE_RESPONSES,
)
async def create_order(
    order: OrderCreate,
    store: InventoryStore = Depends(get_store),
):
    """Place an order with the configured DEFAULT_LOCKING_STRATEGY."""
    result = await place_order(store, None, order.product_id, order.quantity, order.user_id)
    return _order_response(result)


@router.get("/stats", response_model=OrderStatsResponse)
async def order_stats(store: InventoryStore = Depends(get_store)):
    """Order counts by audit status, computed fresh on every call."""
    stats = await get_stats(store)
    return OrderStatsResponse(
        total_orders=stats.total,
        successful_orders=stats.success,
        failed_out_of_stock=stats.out_of_stock,
        failed_conflict=stats.conflict,
    )
