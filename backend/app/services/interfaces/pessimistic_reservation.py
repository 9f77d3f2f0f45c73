"""
Pessimistic reservation: lock the product row, then check and decrement.
"""

from app.core.errors import FailureKind, ReservationError
from app.core.logging import get_logger
from app.services.interfaces.reservation import LockingStrategy, Reservation, ReservationStrategy
from app.services.interfaces.store import InventoryTransaction

logger = get_logger(__name__)


class PessimisticReservation(ReservationStrategy):
    """
    SELECT ... FOR UPDATE on the product row before touching stock.

    Concurrent requests for the same product queue behind the lock holder
    and read its committed stock once they get the lock, so a conflict
    cannot happen. The validator runs while the lock is held; the whole
    critical section costs every waiter that long.

    Use when:
    - Contention on a product is high and retries would be wasted work
    - Latency of a queued request is acceptable
    """

    name = LockingStrategy.PESSIMISTIC

    async def reserve(self, tx: InventoryTransaction, product_id: int, quantity: int) -> Reservation:
        product = await tx.get_product(product_id, for_update=True)

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

        await self.validator(product_id, quantity)

        await tx.decrement_stock(product_id, quantity)

        return Reservation(
            product_id=product_id,
            quantity=quantity,
            stock_remaining=product.stock - quantity,
            version=product.version,
        )
