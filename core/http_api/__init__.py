"""
Fulfillment HTTP API - Public API
=================================
"""

from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse
from core.http_api.errors import (
    error_response,
    fulfillment_error_response,
    status_for_error,
    success_response,
)

__all__ = [
    "HttpApiErrorBody",
    "HttpApiResponse",
    "error_response",
    "fulfillment_error_response",
    "status_for_error",
    "success_response",
]
