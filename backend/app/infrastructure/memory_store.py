"""
In-process inventory store for development and tests.

Emulates what the reservation protocols rely on from PostgreSQL under
READ COMMITTED:
- plain reads see the latest committed row (or this transaction's own writes)
- FOR UPDATE reads and UPDATEs take a per-row lock held until commit/rollback,
  so a second writer waits and then sees the first writer's committed values
- writes are buffered per transaction and published atomically on commit
- order ids are consumed on insert even if the transaction rolls back

State lives in one process; run a single worker with STORE_BACKEND=memory.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from app.core.errors import StoreUnavailableError
from app.services.interfaces.store import InventoryStore, InventoryTransaction, ProductState


@dataclass
class _ProductRow:
    id: int
    name: str
    stock: int
    version: int = 1
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


@dataclass(frozen=True)
class OrderRecord:
    id: int
    product_id: int
    quantity: int
    user_id: Optional[int]
    status: str
    strategy: str
    attempts: int


class InMemoryTransaction(InventoryTransaction):
    def __init__(self, store: "InMemoryInventoryStore"):
        self._store = store
        self._held: set[int] = set()
        self._writes: dict[int, tuple[int, int]] = {}  # product_id -> (stock, version)
        self._new_products: dict[int, _ProductRow] = {}
        self._orders: list[OrderRecord] = []

    async def _lock(self, product_id: int) -> None:
        if product_id in self._held or product_id in self._new_products:
            return
        await self._store._rows[product_id].lock.acquire()
        self._held.add(product_id)

    def _exists(self, product_id: int) -> bool:
        return product_id in self._store._rows or product_id in self._new_products

    def _current(self, product_id: int) -> ProductState:
        row = self._new_products.get(product_id) or self._store._rows[product_id]
        stock, version = self._writes.get(product_id, (row.stock, row.version))
        return ProductState(id=product_id, stock=stock, version=version, name=row.name)

    def _write(self, product_id: int, stock: int, version: int) -> None:
        if stock < 0:
            raise ValueError(f"stock of product {product_id} would become {stock}")
        self._writes[product_id] = (stock, version)

    async def get_product(self, product_id: int, *, for_update: bool = False) -> Optional[ProductState]:
        await asyncio.sleep(0)
        if not self._exists(product_id):
            return None
        if for_update:
            await self._lock(product_id)
        return self._current(product_id)

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        if not self._exists(product_id):
            return
        await self._lock(product_id)
        current = self._current(product_id)
        self._write(product_id, current.stock - quantity, current.version)

    async def decrement_stock_if_version(self, product_id: int, quantity: int, expected_version: int) -> int:
        if not self._exists(product_id):
            return 0
        # Like PostgreSQL: wait for a concurrent writer, then re-check the predicate
        await self._lock(product_id)
        current = self._current(product_id)
        if current.version != expected_version:
            return 0
        self._write(product_id, current.stock - quantity, current.version + 1)
        return 1

    async def add_order(
        self,
        product_id: int,
        quantity: int,
        user_id: Optional[int],
        status: str,
        strategy: str,
        attempts: int = 1,
    ) -> int:
        if quantity <= 0:
            raise ValueError("order quantity must be positive")
        order = OrderRecord(
            id=self._store._next_order_id(),
            product_id=product_id,
            quantity=quantity,
            user_id=user_id,
            status=status,
            strategy=strategy,
            attempts=attempts,
        )
        self._orders.append(order)
        return order.id

    async def count_orders_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for order in [*self._store.orders, *self._orders]:
            counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    async def add_product(self, name: str, stock: int, product_id: Optional[int] = None) -> ProductState:
        if product_id is None:
            product_id = self._store._next_product_id()
            while self._exists(product_id):
                product_id = self._store._next_product_id()
        elif self._exists(product_id):
            raise ValueError(f"product {product_id} already exists")
        else:
            self._store._product_seq = max(self._store._product_seq, product_id)
        if stock < 0:
            raise ValueError("stock must be non-negative")
        self._new_products[product_id] = _ProductRow(id=product_id, name=name, stock=stock)
        return self._current(product_id)

    async def reset_inventory(self, stock: int) -> int:
        product_ids = sorted({*self._store._rows, *self._new_products})
        for product_id in product_ids:
            await self._lock(product_id)
            self._write(product_id, stock, 1)
        return len(product_ids)

    async def count_products(self) -> int:
        return len({*self._store._rows, *self._new_products})

    def _commit(self) -> None:
        for product_id, row in self._new_products.items():
            self._store._rows[product_id] = row
        for product_id, (stock, version) in self._writes.items():
            row = self._store._rows[product_id]
            row.stock, row.version = stock, version
        self._store.orders.extend(self._orders)
        self._release()

    def _rollback(self) -> None:
        self._release()

    def _release(self) -> None:
        for product_id in self._held:
            self._store._rows[product_id].lock.release()
        self._held.clear()


class InMemoryInventoryStore(InventoryStore):
    """Configurable in-memory store."""

    backend = "memory"

    def __init__(self) -> None:
        self._rows: dict[int, _ProductRow] = {}
        self.orders: list[OrderRecord] = []
        self.available: bool = True
        self.open_transactions: int = 0
        self.transactions_started: int = 0
        self._order_seq = 0
        self._product_seq = 0

    def configure(self, available: bool) -> None:
        """Simulate the store going away (or coming back)."""
        self.available = available

    def put_product(self, product_id: int, stock: int, version: int = 1, name: str = "") -> ProductState:
        """Insert or overwrite a committed product row directly."""
        self._rows[product_id] = _ProductRow(
            id=product_id, name=name or f"Product {product_id}", stock=stock, version=version
        )
        self._product_seq = max(self._product_seq, product_id)
        return self.snapshot(product_id)

    def snapshot(self, product_id: int) -> Optional[ProductState]:
        """Committed state of a product, outside any transaction."""
        row = self._rows.get(product_id)
        if row is None:
            return None
        return ProductState(id=row.id, stock=row.stock, version=row.version, name=row.name)

    def _next_order_id(self) -> int:
        self._order_seq += 1
        return self._order_seq

    def _next_product_id(self) -> int:
        self._product_seq += 1
        return self._product_seq

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTransaction]:
        if not self.available:
            raise StoreUnavailableError("transaction")

        tx = InMemoryTransaction(self)
        self.open_transactions += 1
        self.transactions_started += 1
        try:
            yield tx
        except BaseException:
            tx._rollback()
            raise
        else:
            tx._commit()
        finally:
            self.open_transactions -= 1
