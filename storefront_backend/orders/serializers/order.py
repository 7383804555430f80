# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderItem, TrackingDetail


class OrderItemSerializer(serializers.ModelSerializer):
    """Order line (read-only snapshot)."""

    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variation",
            "product_name",
            "quantity",
            "discounted_price",
            "actual_price",
            "line_total",
        ]
        read_only_fields = fields


class TrackingDetailSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingDetail
        fields = [
            "id",
            "order",
            "status",
            "status_history",
            "carrier",
            "tracking_number",
            "tracking_url",
            "estimated_delivery_date",
            "last_updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    Order read model.

    Designed for order history, order detail and checkout responses.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    tracking_status = serializers.SerializerMethodField()
    coupon_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "status",
            "payment_status",
            "payment_method",
            "payment_reference",
            "currency",
            "subtotal_amount",
            "discount_amount",
            "shipping_cost",
            "tax_amount",
            "total_amount",
            "coupon_name",
            "shipping_address",
            "tracking_status",
            "cancellation_reason",
            "cancelled_at",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_tracking_status(self, obj):
        tracking = getattr(obj, "tracking", None)
        return getattr(tracking, "status", None)

    def get_coupon_name(self, obj):
        coupon = getattr(obj, "coupon", None)
        return getattr(coupon, "name", None)
