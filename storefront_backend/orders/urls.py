# orders/urls.py

"""
ORDERS API URLS

Rules:
- Explicit non-PK routes ("checkout", "admin/...") MUST be registered BEFORE
  router URLs, otherwise the router treats them as a <pk>.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from orders.views.admin import (
    AdminCancelOrderView,
    AdminOrderListView,
    AdminOrderStatusView,
    AdminTrackingLookupView,
    AdminTrackingUpdateView,
)
from orders.views.checkout import CheckoutView
from orders.views.customer import OrderViewSet

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="orders-checkout"),
    path("admin/", AdminOrderListView.as_view(), name="orders-admin-list"),
    path(
        "admin/by-tracking/<str:tracking_number>/",
        AdminTrackingLookupView.as_view(),
        name="orders-admin-by-tracking",
    ),
    path(
        "admin/<uuid:order_id>/tracking/",
        AdminTrackingUpdateView.as_view(),
        name="orders-admin-tracking",
    ),
    path(
        "admin/<uuid:order_id>/cancel/",
        AdminCancelOrderView.as_view(),
        name="orders-admin-cancel",
    ),
    path(
        "admin/<uuid:order_id>/status/",
        AdminOrderStatusView.as_view(),
        name="orders-admin-status",
    ),
    path("", include(router.urls)),
]
