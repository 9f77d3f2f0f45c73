"""
Inventory store port (transaction handle interface).

The reservation protocols only ever talk to an InventoryTransaction handed
to them for the duration of one call. Adapters:
- SqlAlchemyInventoryStore: PostgreSQL (or SQLite for local runs)
- InMemoryInventoryStore: in-process emulation for tests and demos
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncContextManager, Optional


@dataclass(frozen=True)
class ProductState:
    """Snapshot of a product row as seen inside one transaction."""

    id: int
    stock: int
    version: int
    name: str = ""


class InventoryTransaction(ABC):
    """One open store transaction. Never retained past the call it was given to."""

    @abstractmethod
    async def get_product(self, product_id: int, *, for_update: bool = False) -> Optional[ProductState]:
        """
        Read a product row.

        With for_update=True this is a row-locking read: it blocks until no
        other transaction holds the row and keeps the lock until this
        transaction ends.
        """

    @abstractmethod
    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        """Decrement stock in place, leaving the version untouched."""

    @abstractmethod
    async def decrement_stock_if_version(self, product_id: int, quantity: int, expected_version: int) -> int:
        """
        Conditional update: decrement stock and bump version by one, only if
        the row's version still equals expected_version.

        Returns:
            Number of affected rows (0 or 1)
        """

    @abstractmethod
    async def add_order(
        self,
        product_id: int,
        quantity: int,
        user_id: Optional[int],
        status: str,
        strategy: str,
        attempts: int = 1,
    ) -> int:
        """Insert an audit row and return its store-assigned id."""

    @abstractmethod
    async def count_orders_by_status(self) -> dict[str, int]:
        pass

    @abstractmethod
    async def add_product(self, name: str, stock: int, product_id: Optional[int] = None) -> ProductState:
        pass

    @abstractmethod
    async def reset_inventory(self, stock: int) -> int:
        """Set every product to `stock` with version 1. Returns rows touched."""

    @abstractmethod
    async def count_products(self) -> int:
        pass


class InventoryStore(ABC):
    """Factory of transactions."""

    backend: str = "abstract"

    @abstractmethod
    def transaction(self) -> AsyncContextManager[InventoryTransaction]:
        """
        Open a transaction.

        Commits on clean exit, rolls back when the block raises, and always
        releases the underlying connection before returning control.
        """

    async def create_schema(self) -> None:
        """Create tables if the backend needs it."""

    async def close(self) -> None:
        pass
