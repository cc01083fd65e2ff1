"""
Fulfillment Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("pos/transactions", views.pos_transactions_view),
    path("ecommerce/orders", views.ecommerce_orders_view),
    path("coupons/validate/<str:code>", views.coupon_validate_view),
    path("purchase-orders", views.purchase_orders_view),
    path("purchase-orders/<str:po_id>/receive", views.purchase_order_receive_view),
    path("purchase-orders/<str:po_id>/status", views.purchase_order_status_view),
    path("orders/<str:order_id>/refund", views.order_refund_view),
    path("orders/<str:order_id>/status", views.order_status_view),
]
