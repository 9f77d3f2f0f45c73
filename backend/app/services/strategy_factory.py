"""
Reservation strategy factory.
Configures which concurrency-control protocol serves a request.
"""

from app.core.config import get_settings
from app.services.interfaces.reservation import LockingStrategy, ReservationStrategy
from app.services.interfaces.pessimistic_reservation import PessimisticReservation
from app.services.interfaces.optimistic_reservation import OptimisticReservation
from app.services.validation import simulated_validation


def get_reservation_strategy(name=None) -> ReservationStrategy:
    """
    Build the configured reservation strategy.

    `name` defaults to DEFAULT_LOCKING_STRATEGY. Validation delay comes
    from the per-strategy *_VALIDATION_DELAY_MS setting.

    Raises:
        ValueError: unknown strategy name
    """
    settings = get_settings()
    strategy = LockingStrategy(name or settings.DEFAULT_LOCKING_STRATEGY)

    if strategy is LockingStrategy.PESSIMISTIC:
        return PessimisticReservation(
            validator=simulated_validation(settings.PESSIMISTIC_VALIDATION_DELAY_MS)
        )
    return OptimisticReservation(
        validator=simulated_validation(settings.OPTIMISTIC_VALIDATION_DELAY_MS)
    )
