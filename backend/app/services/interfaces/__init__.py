"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .store import InventoryStore, InventoryTransaction, ProductState
from .reservation import LockingStrategy, Reservation, ReservationStrategy
from .pessimistic_reservation import PessimisticReservation
from .optimistic_reservation import OptimisticReservation

__all__ = [
    'InventoryStore', 'InventoryTransaction', 'ProductState',
    'LockingStrategy', 'Reservation', 'ReservationStrategy',
    'PessimisticReservation', 'OptimisticReservation',
]
