"""
Simulated order validation (pricing, fraud checks, ...).

The delay is what makes lock-hold cost visible under the pessimistic
strategy and what forces overlapping reads under the optimistic one.
"""

import asyncio

from app.services.interfaces.reservation import Validator, no_validation


def simulated_validation(delay_ms: int) -> Validator:
    """Build a validator that just waits `delay_ms` milliseconds."""
    if delay_ms <= 0:
        return no_validation

    delay = delay_ms / 1000

    async def validate(product_id: int, quantity: int) -> None:
        await asyncio.sleep(delay)

    return validate
