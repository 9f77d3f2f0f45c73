"""
Reservation strategy interface.
Allows swapping between pessimistic and optimistic concurrency control.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable

from app.services.interfaces.store import InventoryTransaction

# (product_id, quantity) -> awaitable; pricing / fraud checks go here
Validator = Callable[[int, int], Awaitable[None]]


class LockingStrategy(str, enum.Enum):
    PESSIMISTIC = "pessimistic"
    OPTIMISTIC = "optimistic"


@dataclass(frozen=True)
class Reservation:
    """Stock successfully taken within the current transaction."""

    product_id: int
    quantity: int
    stock_remaining: int
    version: int


async def no_validation(product_id: int, quantity: int) -> None:
    return None


class ReservationStrategy(ABC):
    """
    Interface for reservation protocols.

    Implementations:
    - PessimisticReservation: SELECT ... FOR UPDATE, then decrement
    - OptimisticReservation: unlocked read, then version-gated update
    """

    name: LockingStrategy

    def __init__(self, validator: Validator = no_validation):
        self.validator = validator

    @abstractmethod
    async def reserve(self, tx: InventoryTransaction, product_id: int, quantity: int) -> Reservation:
        """
        Take `quantity` units of `product_id` inside an already-open transaction.

        Raises:
            ReservationError: NOT_FOUND, OUT_OF_STOCK or (optimistic only) CONFLICT
        """
