# orders/views/customer.py

"""
======================================================
PATH: orders/views/customer.py
======================================================
CUSTOMER ORDER VIEWSET

- list / retrieve: the caller's own orders only
- cancel: the caller's own, not-yet-delivered orders
- tracking: tracking detail of the caller's order
"""

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from customers.services import customer_for_user
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    CancelOrderInputSerializer,
    OrderSerializer,
    TrackingDetailSerializer,
)
from orders.services.exceptions import OrderEngineError
from orders.services.tracking import cancel_order
from orders.views.errors import engine_error_response


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter
    lookup_value_regex = "[0-9a-fA-F-]{32,36}"

    def get_queryset(self):
        customer = customer_for_user(self.request.user)
        return (
            Order.objects.filter(customer=customer)
            .select_related("coupon", "tracking")
            .prefetch_related("items")
        )

    @extend_schema(request=CancelOrderInputSerializer, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = CancelOrderInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = cancel_order(
                order_id=pk,
                actor=customer_for_user(request.user),
                reason=s.validated_data.get("reason", ""),
            )
        except OrderEngineError as exc:
            return engine_error_response(exc)

        order = self.get_queryset().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: TrackingDetailSerializer})
    @action(detail=True, methods=["get"], url_path="tracking")
    def tracking(self, request, pk=None):
        order = self.get_object()
        tracking = getattr(order, "tracking", None)
        if tracking is None:
            return Response({"detail": "Tracking not available yet"}, status=status.HTTP_404_NOT_FOUND)
        return Response(TrackingDetailSerializer(tracking).data)
