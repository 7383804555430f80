# orders/views/checkout.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from customers.services import customer_for_user
from orders.serializers import CheckoutInputSerializer, OrderSerializer
from orders.services.checkout_orchestrator import checkout
from orders.services.exceptions import OrderEngineError
from orders.services.pricing import CartSelection, ProductSelection
from orders.views.errors import engine_error_response


class CheckoutView(APIView):
    """
    POST /api/orders/checkout/

    GUARANTEES:
    - Atomic checkout (stock, order, coupon usage, cart, tracking)
    - Online payments verified with the gateway BEFORE stock is touched
    - Totals computed server-side
    """

    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "checkout"

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: OrderSerializer},
        description="Checkout a single product (buy-now) or the caller's whole cart.",
    )
    def post(self, request):
        s = CheckoutInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        if data.get("from_cart"):
            selection = CartSelection()
        else:
            selection = ProductSelection(
                product_id=data["product_id"],
                quantity=data.get("quantity") or 1,
                variation_id=data.get("variation_id"),
            )

        try:
            order = checkout(
                customer=customer_for_user(request.user),
                selection=selection,
                shipping_address_id=data["shipping_address_id"],
                payment_method=data["payment_method"],
                coupon_name=data.get("coupon_name"),
                payment_reference=data.get("payment_reference"),
            )
        except OrderEngineError as exc:
            return engine_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
