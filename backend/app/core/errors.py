"""
Failure taxonomy for order placement.

Protocols detect NOT_FOUND, OUT_OF_STOCK and CONFLICT locally and raise
ReservationError; the order service turns those into tagged OrderFailed
results. Anything the store itself fails with (lost connection, deadlock
abort, pool timeout) becomes StoreUnavailableError and is never reported
as a CONFLICT.
"""

import enum
from typing import Optional

from fastapi import status


class FailureKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    CONFLICT = "CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


# Exhaustive: every kind has a transport code and a client message
FAILURE_HTTP_STATUS = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.OUT_OF_STOCK: status.HTTP_400_BAD_REQUEST,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

FAILURE_MESSAGES = {
    FailureKind.NOT_FOUND: "Product not found",
    FailureKind.OUT_OF_STOCK: "Insufficient stock",
    FailureKind.CONFLICT: "Failed to place order due to concurrent modification. Please try again.",
    FailureKind.STORE_UNAVAILABLE: "Inventory store unavailable. Please try again later.",
}


class ReservationError(Exception):
    """A reservation protocol rejected the request."""

    def __init__(self, kind: FailureKind, product_id: int, detail: Optional[str] = None):
        self.kind = kind
        self.product_id = product_id
        self.detail = detail or FAILURE_MESSAGES[kind]
        super().__init__(f"{kind.value}: product {product_id}: {self.detail}")


class StoreUnavailableError(Exception):
    """The backing store failed below the level of the protocols."""

    kind = FailureKind.STORE_UNAVAILABLE

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"store unavailable during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
