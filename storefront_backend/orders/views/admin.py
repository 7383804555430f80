# orders/views/admin.py

"""
======================================================
PATH: orders/views/admin.py
======================================================
STAFF ORDER ENDPOINTS (is_staff only)

    GET  /api/orders/admin/                       all orders (filterable)
    GET  /api/orders/admin/by-tracking/<number>/  lookup by carrier number
    POST /api/orders/admin/<id>/tracking/         status and/or carrier metadata
    POST /api/orders/admin/<id>/cancel/           cancel any order
    POST /api/orders/admin/<id>/status/           lifecycle-validated status change
"""

from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    CancelOrderInputSerializer,
    OrderSerializer,
    OrderStatusInputSerializer,
    TrackingDetailSerializer,
    TrackingUpdateInputSerializer,
)
from orders.services.exceptions import OrderEngineError
from orders.services.tracking import (
    cancel_order,
    get_tracking_by_number,
    update_order_status,
    update_tracking_details,
    update_tracking_status,
)
from orders.views.errors import engine_error_response


def _order_payload(order_id):
    order = (
        Order.objects.select_related("coupon", "tracking")
        .prefetch_related("items")
        .get(pk=order_id)
    )
    return OrderSerializer(order).data


class AdminOrderListView(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    queryset = (
        Order.objects.select_related("coupon", "tracking", "customer")
        .prefetch_related("items")
    )


class AdminTrackingLookupView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(responses={200: TrackingDetailSerializer})
    def get(self, request, tracking_number):
        try:
            tracking = get_tracking_by_number(tracking_number)
        except OrderEngineError as exc:
            return engine_error_response(exc)
        return Response(TrackingDetailSerializer(tracking).data)


class AdminTrackingUpdateView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        request=TrackingUpdateInputSerializer,
        responses={200: TrackingDetailSerializer},
    )
    def post(self, request, order_id):
        s = TrackingUpdateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        metadata = {
            name: data[name]
            for name in TrackingUpdateInputSerializer.METADATA_FIELDS
            if name in data
        }

        try:
            # metadata + status change succeed or fail together
            with transaction.atomic():
                if metadata:
                    tracking = update_tracking_details(order_id=order_id, **metadata)
                if "status" in data:
                    tracking = update_tracking_status(
                        order_id=order_id,
                        status=data["status"],
                        notes=data.get("notes") or None,
                    )
        except OrderEngineError as exc:
            return engine_error_response(exc)

        return Response(TrackingDetailSerializer(tracking).data, status=status.HTTP_200_OK)


class AdminCancelOrderView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(request=CancelOrderInputSerializer, responses={200: OrderSerializer})
    def post(self, request, order_id):
        s = CancelOrderInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = cancel_order(
                order_id=order_id,
                actor=None,
                reason=s.validated_data.get("reason", ""),
            )
        except OrderEngineError as exc:
            return engine_error_response(exc)

        return Response(_order_payload(order.pk), status=status.HTTP_200_OK)


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(request=OrderStatusInputSerializer, responses={200: OrderSerializer})
    def post(self, request, order_id):
        s = OrderStatusInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = update_order_status(
                order_id=order_id,
                status=s.validated_data["status"],
                notes=s.validated_data.get("notes") or None,
            )
        except OrderEngineError as exc:
            return engine_error_response(exc)

        return Response(_order_payload(order.pk), status=status.HTTP_200_OK)
