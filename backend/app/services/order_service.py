"""
Order placement with two concurrency-control strategies.

CONCURRENCY STRATEGIES
======================

Problem:
  Two clients order the last units of a product at the same time.
  Both read stock=1, both decrement, stock ends at -1 (or a lost update).

Pessimistic (place_order_pessimistic):
  SELECT ... FOR UPDATE serializes every order for the same product.
  No retries; the second request waits for the first to commit and then
  sees its stock. Throughput per product is bounded by lock-hold time.

Optimistic (place_order_optimistic):
  Unlocked read, then UPDATE ... WHERE version = :read_version.
  Zero rows affected means another writer won; the attempt is rolled back,
  its connection released, and after a linear backoff (50ms x attempt)
  a fresh transaction tries again, up to MAX_OPTIMISTIC_RETRIES attempts.

Auditing:
  Every request ends with exactly one row in `orders`.
  - Success: written in the same transaction as the stock change.
  - Failure: written in a new transaction after the failed one rolled
    back. Best effort: if the store is gone the failure is still returned.

Store failures (StoreUnavailableError) are not order outcomes: they
propagate to the caller and are not audited.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from app.core.config import get_settings
from app.core.errors import FailureKind, ReservationError, StoreUnavailableError
from app.core.logging import get_logger
from app.core.metrics import (
    order_latency,
    order_retries,
    record_conflict,
    record_order_outcome,
    record_store_error,
)
from app.models.order import OrderStatus
from app.services.interfaces.reservation import LockingStrategy, ReservationStrategy
from app.services.interfaces.store import InventoryStore
from app.services.strategy_factory import get_reservation_strategy

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class OrderPlaced:
    order_id: int
    product_id: int
    quantity: int
    stock_remaining: int
    version: int
    strategy: LockingStrategy
    attempts: int = 1


@dataclass(frozen=True)
class OrderFailed:
    kind: FailureKind
    status: OrderStatus
    product_id: int
    quantity: int
    strategy: LockingStrategy
    attempts: int = 1
    detail: str = ""
    # None when the failure audit row could not be written
    audit_order_id: Optional[int] = None


OrderResult = Union[OrderPlaced, OrderFailed]


def audit_status_for(kind: FailureKind) -> OrderStatus:
    """
    Audit status recorded for a failure kind.

    NOT_FOUND shares FAILED_OUT_OF_STOCK with OUT_OF_STOCK; callers still
    see the distinct kind.
    """
    if kind in (FailureKind.NOT_FOUND, FailureKind.OUT_OF_STOCK):
        return OrderStatus.FAILED_OUT_OF_STOCK
    if kind is FailureKind.CONFLICT:
        return OrderStatus.FAILED_CONFLICT
    raise ValueError(f"{kind.value} is not an auditable order outcome")


def backoff_delay(attempt: int, base_ms: Optional[int] = None) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based). Linear."""
    if base_ms is None:
        base_ms = get_settings().RETRY_BACKOFF_MS
    return base_ms * attempt / 1000


async def _reserve_and_record(
    store: InventoryStore,
    strategy: ReservationStrategy,
    product_id: int,
    quantity: int,
    user_id: Optional[int],
    attempt: int,
) -> OrderPlaced:
    """One attempt: reservation and SUCCESS audit row commit together or not at all."""
    async with store.transaction() as tx:
        reservation = await strategy.reserve(tx, product_id, quantity)
        order_id = await tx.add_order(
            product_id,
            quantity,
            user_id,
            OrderStatus.SUCCESS.value,
            strategy.name.value,
            attempt,
        )

    return OrderPlaced(
        order_id=order_id,
        product_id=product_id,
        quantity=quantity,
        stock_remaining=reservation.stock_remaining,
        version=reservation.version,
        strategy=strategy.name,
        attempts=attempt,
    )


async def _attempt(
    store: InventoryStore,
    strategy: ReservationStrategy,
    product_id: int,
    quantity: int,
    user_id: Optional[int],
    attempt: int,
) -> OrderPlaced:
    # Shielded so a cancelled request still commits or rolls back its transaction
    try:
        return await asyncio.shield(
            _reserve_and_record(store, strategy, product_id, quantity, user_id, attempt)
        )
    except StoreUnavailableError as exc:
        record_store_error("order")
        logger.error(
            "order_store_unavailable",
            strategy=strategy.name.value,
            product_id=product_id,
            attempt=attempt,
            error=str(exc),
        )
        raise


async def _record_failure(
    store: InventoryStore,
    strategy: ReservationStrategy,
    error: ReservationError,
    quantity: int,
    user_id: Optional[int],
    attempts: int,
) -> OrderFailed:
    status = audit_status_for(error.kind)
    audit_order_id = None
    try:
        async with store.transaction() as tx:
            audit_order_id = await tx.add_order(
                error.product_id,
                quantity,
                user_id,
                status.value,
                strategy.name.value,
                attempts,
            )
    except StoreUnavailableError as exc:
        record_store_error("audit")
        logger.error(
            "order_audit_failed",
            product_id=error.product_id,
            status=status.value,
            error=str(exc),
        )

    logger.info(
        "order_failed",
        strategy=strategy.name.value,
        product_id=error.product_id,
        user_id=user_id,
        quantity=quantity,
        kind=error.kind.value,
        attempts=attempts,
    )
    return OrderFailed(
        kind=error.kind,
        status=status,
        product_id=error.product_id,
        quantity=quantity,
        strategy=strategy.name,
        attempts=attempts,
        detail=error.detail,
        audit_order_id=audit_order_id,
    )


def _observe(result: OrderResult, started: float) -> OrderResult:
    strategy = result.strategy.value
    order_latency.labels(strategy=strategy).observe(time.perf_counter() - started)
    status = OrderStatus.SUCCESS if isinstance(result, OrderPlaced) else result.status
    record_order_outcome(strategy, status.value)
    if isinstance(result, OrderPlaced):
        logger.info(
            "order_placed",
            order_id=result.order_id,
            strategy=strategy,
            product_id=result.product_id,
            quantity=result.quantity,
            stock_remaining=result.stock_remaining,
            attempts=result.attempts,
        )
    return result


def _check_quantity(quantity: int) -> None:
    if quantity <= 0:
        raise ValueError(f"quantity must be a positive integer, got {quantity}")


async def place_order_pessimistic(
    store: InventoryStore,
    product_id: int,
    quantity: int,
    user_id: Optional[int],
    *,
    strategy: Optional[ReservationStrategy] = None,
) -> OrderResult:
    """
    Place an order holding the product row lock for the whole critical section.
    Single attempt; NOT_FOUND and OUT_OF_STOCK are the only failures.

    Raises:
        StoreUnavailableError: the store failed underneath the protocol
    """
    _check_quantity(quantity)
    strategy = strategy or get_reservation_strategy(LockingStrategy.PESSIMISTIC)
    started = time.perf_counter()

    try:
        placed = await _attempt(store, strategy, product_id, quantity, user_id, attempt=1)
    except ReservationError as exc:
        failed = await _record_failure(store, strategy, exc, quantity, user_id, attempts=1)
        return _observe(failed, started)

    return _observe(placed, started)


async def place_order_optimistic(
    store: InventoryStore,
    product_id: int,
    quantity: int,
    user_id: Optional[int],
    *,
    strategy: Optional[ReservationStrategy] = None,
    max_retries: Optional[int] = None,
    sleep: Sleep = asyncio.sleep,
) -> OrderResult:
    """
    Place an order with version-checked updates, retrying version conflicts.

    Each attempt is its own transaction; the previous one is fully rolled
    back and its connection released before `sleep` is awaited.

    Raises:
        StoreUnavailableError: the store failed underneath the protocol
    """
    _check_quantity(quantity)
    strategy = strategy or get_reservation_strategy(LockingStrategy.OPTIMISTIC)
    if max_retries is None:
        max_retries = get_settings().MAX_OPTIMISTIC_RETRIES
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")
    started = time.perf_counter()

    for attempt in range(1, max_retries + 1):
        try:
            placed = await _attempt(store, strategy, product_id, quantity, user_id, attempt)
        except ReservationError as exc:
            if exc.kind is FailureKind.CONFLICT:
                record_conflict(strategy.name.value)
            if exc.kind is not FailureKind.CONFLICT or attempt == max_retries:
                failed = await _record_failure(store, strategy, exc, quantity, user_id, attempt)
                return _observe(failed, started)

            delay = backoff_delay(attempt)
            logger.info(
                "order_retry",
                product_id=product_id,
                attempt=attempt,
                max_retries=max_retries,
                backoff_ms=round(delay * 1000),
                reason="version_conflict",
            )
            order_retries.inc()
            await sleep(delay)
            continue

        return _observe(placed, started)

    # Should not reach here: the last attempt always returns
    raise RuntimeError("optimistic retry loop exited without an outcome")


async def place_order(
    store: InventoryStore,
    strategy_name: Optional[str],
    product_id: int,
    quantity: int,
    user_id: Optional[int],
    **kwargs,
) -> OrderResult:
    """
    Dispatch to the protocol named by `strategy_name` (default from settings).

    `kwargs` are retry options (`max_retries`, `sleep`) and only apply to
    the optimistic protocol.

    Raises:
        TypeError: retry options given for the pessimistic protocol
    """
    strategy = get_reservation_strategy(strategy_name)
    if strategy.name is LockingStrategy.PESSIMISTIC:
        if kwargs:
            raise TypeError(f"pessimistic orders take no retry options, got {sorted(kwargs)}")
        return await place_order_pessimistic(store, product_id, quantity, user_id, strategy=strategy)
    return await place_order_optimistic(store, product_id, quantity, user_id, strategy=strategy, **kwargs)
