"""
Fulfillment Django Adapter Views
================================
Pass-through HTTP views over the fulfillment engines.

Every view: method check → principal from X-API-KEY → JSON body →
engine call → envelope. FulfillmentErrors map to status codes through
core.http_api.errors; anything else propagates to Django as a 500.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import FulfillmentDependencies, build_dependencies
from core.errors import FulfillmentError, ValidationError
from core.http_api.errors import error_response, fulfillment_error_response, success_response
from core.identity import ANONYMOUS, PERMISSION_COUPON_VALIDATE, Principal, require_permission
from engines.fulfillment.commands import (
    parse_amount,
    parse_goods_receipt,
    parse_order_request,
    parse_purchase_order_request,
    parse_refund_request,
)
from engines.fulfillment.context import ecommerce_context, pos_context

logger = logging.getLogger("fulfillment.orders")

API_KEY_HEADER = "X-API-KEY"

Handler = Callable[..., tuple[Any, int]]


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("body", "Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValidationError("body", "Request body must be a JSON object.")
    return parsed


def _principal_from_request(request: HttpRequest, deps: FulfillmentDependencies) -> Principal:
    api_key = request.headers.get(API_KEY_HEADER)
    if not api_key:
        return ANONYMOUS
    return deps.principals.resolve_api_key(api_key) or ANONYMOUS


def _dispatch(request: HttpRequest, method: str, handler: Handler, **kwargs) -> JsonResponse:
    if request.method != method:
        return _method_not_allowed()

    deps = build_dependencies()
    principal = _principal_from_request(request, deps)
    try:
        body = _parse_json_body(request) if method in ("POST", "PUT") else {}
        data, status = handler(request, body, principal, deps, **kwargs)
    except FulfillmentError as exc:
        payload, status = fulfillment_error_response(exc)
        logger.info(f"{request.method} {request.path} rejected: {exc.code} ({status})")
        return JsonResponse(payload, status=status)
    return JsonResponse(success_response(data), status=status)


# ══════════════════════════════════════════════════════════════
# HANDLERS
# ══════════════════════════════════════════════════════════════

def _submit_pos(request, body, principal, deps):
    result = deps.coordinator.submit(parse_order_request(body), pos_context(principal))
    return result.to_dict(), 201


def _submit_ecommerce(request, body, principal, deps):
    result = deps.coordinator.submit(parse_order_request(body), ecommerce_context(principal))
    return result.to_dict(), 201


def _validate_coupon(request, body, principal, deps, *, code):
    require_permission(principal, PERMISSION_COUPON_VALIDATE)
    raw_amount = request.GET.get("amount")
    if raw_amount in (None, ""):
        raise ValidationError("amount", "amount query parameter is required.")
    validation = deps.coupons.validate(code, parse_amount(raw_amount))
    return validation.to_dict(), 200


def _create_purchase_order(request, body, principal, deps):
    purchase_order = deps.purchasing.create_purchase_order(
        parse_purchase_order_request(body), principal
    )
    return (
        {
            "purchaseOrderId": purchase_order.po_id,
            "status": purchase_order.status,
            "totalAmount": str(purchase_order.total_amount),
        },
        201,
    )


def _receive_goods(request, body, principal, deps, *, po_id):
    result = deps.purchasing.receive_goods(po_id, parse_goods_receipt(body), principal)
    return result.to_dict(), 201


def _required_status(body) -> str:
    status = body.get("status")
    if not isinstance(status, str) or not status.strip():
        raise ValidationError("status", "status is required.")
    return status.strip()


def _update_purchase_order_status(request, body, principal, deps, *, po_id):
    notes = body.get("notes") or ""
    if not isinstance(notes, str):
        raise ValidationError("notes", "notes must be a string.")
    result = deps.purchasing.update_purchase_order_status(
        po_id, _required_status(body), principal, notes=notes.strip()
    )
    return result.to_dict(), 200


def _refund_order(request, body, principal, deps, *, order_id):
    result = deps.orders.refund_order(order_id, parse_refund_request(body), principal)
    return result.to_dict(), 201


def _update_status(request, body, principal, deps, *, order_id):
    order = deps.orders.update_order_status(order_id, _required_status(body), principal)
    return {"orderId": order.order_id, "status": order.status}, 200


# ══════════════════════════════════════════════════════════════
# VIEWS
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def pos_transactions_view(request: HttpRequest) -> JsonResponse:
    return _dispatch(request, "POST", _submit_pos)


@csrf_exempt
def ecommerce_orders_view(request: HttpRequest) -> JsonResponse:
    return _dispatch(request, "POST", _submit_ecommerce)


@csrf_exempt
def coupon_validate_view(request: HttpRequest, code: str) -> JsonResponse:
    return _dispatch(request, "GET", _validate_coupon, code=code)


@csrf_exempt
def purchase_orders_view(request: HttpRequest) -> JsonResponse:
    return _dispatch(request, "POST", _create_purchase_order)


@csrf_exempt
def purchase_order_receive_view(request: HttpRequest, po_id: str) -> JsonResponse:
    return _dispatch(request, "POST", _receive_goods, po_id=po_id)


@csrf_exempt
def purchase_order_status_view(request: HttpRequest, po_id: str) -> JsonResponse:
    return _dispatch(request, "PUT", _update_purchase_order_status, po_id=po_id)


@csrf_exempt
def order_refund_view(request: HttpRequest, order_id: str) -> JsonResponse:
    return _dispatch(request, "POST", _refund_order, order_id=order_id)


@csrf_exempt
def order_status_view(request: HttpRequest, order_id: str) -> JsonResponse:
    return _dispatch(request, "PUT", _update_status, order_id=order_id)
