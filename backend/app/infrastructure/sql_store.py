"""
SQLAlchemy implementation of the inventory store.

One AsyncSession per transaction; `session.begin()` commits on clean exit
and rolls back on any exception, and leaving the session block returns the
connection to the pool.

On PostgreSQL the locking read is a real SELECT ... FOR UPDATE. SQLite has
no row locks and ignores FOR UPDATE, and its driver only opens a transaction
on the first write. There the locking read starts with a no-op UPDATE of the
row: that opens the transaction and takes the database write lock, which is
held until commit or rollback. A second locker blocks in SQLite's busy
handler and then reads the committed row, as it would behind a row lock.

Driver and pool failures are re-raised as StoreUnavailableError so they
cannot be mistaken for order outcomes.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import func, select, update
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.errors import StoreUnavailableError
from app.core.logging import get_logger
from app.db.base import Base
from app.models import Order, Product
from app.services.interfaces.store import InventoryStore, InventoryTransaction, ProductState

logger = get_logger(__name__)


class SqlAlchemyTransaction(InventoryTransaction):
    def __init__(self, session: AsyncSession, *, row_locks: bool = True):
        self.session = session
        self.row_locks = row_locks

    async def _take_write_lock(self, product_id: int) -> None:
        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock)
            .execution_options(synchronize_session=False)
        )

    async def get_product(self, product_id: int, *, for_update: bool = False) -> Optional[ProductState]:
        # Column select, not the entity: no identity-map copy to go stale
        query = select(Product.id, Product.stock, Product.version, Product.name).where(
            Product.id == product_id
        )
        if for_update and self.row_locks:
            query = query.with_for_update()
        elif for_update:
            await self._take_write_lock(product_id)

        row = (await self.session.execute(query)).one_or_none()
        if row is None:
            return None
        return ProductState(id=row.id, stock=row.stock, version=row.version, name=row.name)

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )

    async def decrement_stock_if_version(self, product_id: int, quantity: int, expected_version: int) -> int:
        result = await self.session.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.version == expected_version,
            )
            .values(
                stock=Product.stock - quantity,
                version=Product.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def add_order(
        self,
        product_id: int,
        quantity: int,
        user_id: Optional[int],
        status: str,
        strategy: str,
        attempts: int = 1,
    ) -> int:
        order = Order(
            product_id=product_id,
            quantity=quantity,
            user_id=user_id,
            status=status,
            strategy=strategy,
            attempts=attempts,
        )
        self.session.add(order)
        await self.session.flush()
        return order.id

    async def count_orders_by_status(self) -> dict[str, int]:
        result = await self.session.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        )
        return {status: count for status, count in result.all()}

    async def add_product(self, name: str, stock: int, product_id: Optional[int] = None) -> ProductState:
        product = Product(id=product_id, name=name, stock=stock, version=1)
        self.session.add(product)
        await self.session.flush()
        return ProductState(id=product.id, stock=product.stock, version=product.version, name=product.name)

    async def reset_inventory(self, stock: int) -> int:
        result = await self.session.execute(
            update(Product)
            .values(stock=stock, version=1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_products(self) -> int:
        result = await self.session.execute(select(func.count(Product.id)))
        return result.scalar_one()


class SqlAlchemyInventoryStore(InventoryStore):
    backend = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self.row_locks = engine.dialect.name != "sqlite"

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlAlchemyTransaction]:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield SqlAlchemyTransaction(session, row_locks=self.row_locks)
        except sa_exc.IntegrityError:
            # Constraint violations are bugs, not outages
            raise
        except (sa_exc.DBAPIError, sa_exc.TimeoutError, OSError) as e:
            logger.error("store_transaction_failed", error=str(e))
            raise StoreUnavailableError("transaction", e) from e

    async def create_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (sa_exc.DBAPIError, OSError) as e:
            raise StoreUnavailableError("create_schema", e) from e

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        await self.engine.dispose()
