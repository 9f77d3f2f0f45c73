"""
Tests for the store adapters' transaction semantics.
"""

import asyncio

import pytest

from app.core.errors import StoreUnavailableError
from helpers import read_product


@pytest.mark.asyncio
async def test_conditional_update_detects_concurrent_writer(store, product):
    """Two transactions read version 1; only the first conditional update lands."""
    async with store.transaction() as slow:
        seen = await slow.get_product(product.id)

        async with store.transaction() as fast:
            raced = await fast.get_product(product.id)
            assert await fast.decrement_stock_if_version(product.id, 1, raced.version) == 1

        assert await slow.decrement_stock_if_version(product.id, 1, seen.version) == 0

    current = await read_product(store)
    assert (current.stock, current.version) == (4, 2)


@pytest.mark.asyncio
async def test_rollback_discards_writes(store, product):
    with pytest.raises(RuntimeError):
        async with store.transaction() as tx:
            await tx.decrement_stock(product.id, 2)
            await tx.add_order(product.id, 2, 1, "SUCCESS", "pessimistic")
            raise RuntimeError("abort")

    current = await read_product(store)
    assert current.stock == 5
    async with store.transaction() as tx:
        assert await tx.count_orders_by_status() == {}


@pytest.mark.asyncio
async def test_pessimistic_decrement_keeps_version(store, product):
    async with store.transaction() as tx:
        locked = await tx.get_product(product.id, for_update=True)
        await tx.decrement_stock(product.id, 2)
        assert locked.version == 1

    current = await read_product(store)
    assert (current.stock, current.version) == (3, 1)


@pytest.mark.asyncio
async def test_reset_inventory(store, product):
    async with store.transaction() as tx:
        await tx.decrement_stock_if_version(product.id, 5, 1)
        await tx.add_product("Gadget", 1)

    async with store.transaction() as tx:
        assert await tx.reset_inventory(50) == 2
        assert await tx.count_products() == 2

    current = await read_product(store)
    assert (current.stock, current.version) == (50, 1)


@pytest.mark.asyncio
async def test_row_lock_blocks_second_locker(memory_store):
    """A FOR UPDATE read waits until the holder commits, then sees its write."""
    memory_store.put_product(1, stock=5)
    holder_locked = asyncio.Event()
    holder_release = asyncio.Event()

    async def holder():
        async with memory_store.transaction() as tx:
            await tx.get_product(1, for_update=True)
            holder_locked.set()
            await holder_release.wait()
            await tx.decrement_stock(1, 4)

    async def waiter():
        async with memory_store.transaction() as tx:
            return await tx.get_product(1, for_update=True)

    holding = asyncio.create_task(holder())
    await holder_locked.wait()
    waiting = asyncio.create_task(waiter())
    for _ in range(10):
        await asyncio.sleep(0)
    assert not waiting.done()

    holder_release.set()
    await holding
    seen = await waiting
    assert seen.stock == 1


@pytest.mark.asyncio
async def test_order_ids_are_consumed_by_rolled_back_inserts(memory_store):
    with pytest.raises(RuntimeError):
        async with memory_store.transaction() as tx:
            await tx.add_order(1, 1, None, "SUCCESS", "optimistic")
            raise RuntimeError("abort")

    async with memory_store.transaction() as tx:
        order_id = await tx.add_order(1, 1, None, "FAILED_CONFLICT", "optimistic")

    assert order_id == 2
    assert [o.id for o in memory_store.orders] == [2]


@pytest.mark.asyncio
async def test_unavailable_memory_store_raises(memory_store):
    memory_store.configure(available=False)
    with pytest.raises(StoreUnavailableError):
        async with memory_store.transaction():
            pass
