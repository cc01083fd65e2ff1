"""
Fulfillment HTTP API - Error Mapping
====================================
Stable transport mapping from the error taxonomy to status codes.
Each error kind maps to exactly one status; no order id is ever
part of an error body.
"""

from __future__ import annotations

from typing import Any, Optional

from core.errors import (
    CouponRejectedError,
    FulfillmentError,
    InsufficientStockError,
    InvalidItemError,
    NotFoundError,
    PermissionDeniedError,
    TransactionFailure,
    ValidationError,
)
from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse


HTTP_STATUS_BY_ERROR: tuple[tuple[type, int], ...] = (
    (ValidationError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (InsufficientStockError, 409),
    (InvalidItemError, 422),
    (CouponRejectedError, 422),
    (TransactionFailure, 503),
)


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    retryable: bool = False,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
            retryable=retryable,
        ),
    ).to_dict()


def success_response(data: Any) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data).to_dict()


def status_for_error(exc: FulfillmentError) -> int:
    for error_type, status in HTTP_STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def fulfillment_error_response(exc: FulfillmentError) -> tuple[dict[str, Any], int]:
    payload = error_response(
        code=exc.code,
        message=exc.message,
        details=exc.details,
        retryable=exc.retryable,
    )
    return payload, status_for_error(exc)
