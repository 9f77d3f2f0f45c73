"""
Infrastructure layer - store adapters.
Keeps business logic clean from implementation details.
"""

from .memory_store import InMemoryInventoryStore
from .sql_store import SqlAlchemyInventoryStore

__all__ = ['InMemoryInventoryStore', 'SqlAlchemyInventoryStore']
