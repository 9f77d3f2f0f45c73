"""
Test doubles for controlling interleavings and backoff.
"""

import asyncio
from typing import Optional

from app.infrastructure.memory_store import InMemoryInventoryStore
from app.services.interfaces.store import InventoryStore, ProductState


class GatedValidator:
    """Validator whose first `hold` calls block until `release` is set."""

    def __init__(self, hold: int = 1):
        self.hold = hold
        self.calls = 0
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, product_id: int, quantity: int) -> None:
        self.calls += 1
        if self.calls <= self.hold:
            self.entered.set()
            await self.release.wait()


class RendezvousValidator:
    """The first `parties` calls all wait until the last of them arrives."""

    def __init__(self, parties: int = 2):
        self.parties = parties
        self.calls = 0
        self.arrived = asyncio.Event()

    async def __call__(self, product_id: int, quantity: int) -> None:
        self.calls += 1
        if self.calls < self.parties:
            await self.arrived.wait()
        elif self.calls == self.parties:
            self.arrived.set()


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self, store: Optional[InMemoryInventoryStore] = None):
        self.store = store
        self.delays: list[float] = []
        self.open_transactions: list[int] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.store is not None:
            self.open_transactions.append(self.store.open_transactions)
        await asyncio.sleep(0)


async def add_product(store: InventoryStore, stock: int, product_id: int = 1) -> ProductState:
    async with store.transaction() as tx:
        return await tx.add_product("Widget", stock, product_id=product_id)


async def read_product(store: InventoryStore, product_id: int = 1) -> Optional[ProductState]:
    async with store.transaction() as tx:
        return await tx.get_product(product_id)


async def settle(store: InMemoryInventoryStore, rounds: int = 50) -> None:
    """Let shielded attempts run until the store has no open transactions."""
    for _ in range(rounds):
        if store.open_transactions == 0:
            return
        await asyncio.sleep(0)
