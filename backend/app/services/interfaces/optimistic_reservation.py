"""
Optimistic reservation: read without locking, update only if the version held.

  1. SELECT stock, version FROM products WHERE id = :id
  2. validate (other transactions may write the row meanwhile)
  3. UPDATE products SET stock = stock - :q, version = version + 1
     WHERE id = :id AND version = :read_version
  4. rows_affected == 0 -> someone else committed first -> CONFLICT

Retrying a CONFLICT is the caller's job; see order_service.
"""

from app.core.errors import FailureKind, ReservationError
from app.core.logging import get_logger
from app.services.interfaces.reservation import LockingStrategy, Reservation, ReservationStrategy
from app.services.interfaces.store import InventoryTransaction

logger = get_logger(__name__)


class OptimisticReservation(ReservationStrategy):
    """
    Version-checked conditional update, no explicit row lock.

    Use when:
    - Most requests for a product do not overlap
    - Wasted validation work on a lost race is cheaper than queueing
    """

    name = LockingStrategy.OPTIMISTIC

    async def reserve(self, tx: InventoryTransaction, product_id: int, quantity: int) -> Reservation:
        product = await tx.get_product(product_id)

        if product is None:
            raise ReservationError(FailureKind.NOT_FOUND, product_id)

        if product.stock < quantity:
            logger.warning(
                "reservation_out_of_stock",
                strategy=self.name.value,
                product_id=product_id,
                requested=quantity,
                available=product.stock,
            )
            raise ReservationError(
                FailureKind.OUT_OF_STOCK,
                product_id,
                f"Insufficient stock. Requested: {quantity}, Available: {product.stock}",
            )

        # Race window: nothing is locked here
        await self.validator(product_id, quantity)

        updated = await tx.decrement_stock_if_version(product_id, quantity, product.version)
        if updated == 0:
            logger.info(
                "reservation_version_conflict",
                product_id=product_id,
                read_version=product.version,
            )
            raise ReservationError(FailureKind.CONFLICT, product_id)

        return Reservation(
            product_id=product_id,
            quantity=quantity,
            stock_remaining=product.stock - quantity,
            version=product.version + 1,
        )
