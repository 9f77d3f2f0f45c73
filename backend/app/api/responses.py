"""
Transport mapping for failure kinds.
"""

from typing import Optional

from fastapi.responses import JSONResponse

from app.core.errors import FAILURE_HTTP_STATUS, FAILURE_MESSAGES, FailureKind
from app.schemas.order import OrderErrorResponse


def failure_response(kind: FailureKind, detail: Optional[str] = None) -> JSONResponse:
    """`{"error": ..., "kind": ...}` with the status code for `kind`."""
    return JSONResponse(
        status_code=FAILURE_HTTP_STATUS[kind],
        content={"error": detail or FAILURE_MESSAGES[kind], "kind": kind.value},
    )


# OpenAPI docs for the failure bodies
FAILURE_RESPONSES = {
    code: {"model": OrderErrorResponse, "description": FAILURE_MESSAGES[kind]}
    for kind, code in FAILURE_HTTP_STATUS.items()
}
