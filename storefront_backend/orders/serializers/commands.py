# orders/serializers/commands.py

"""
Input serializers: document ONLY what the client is allowed to send.
Totals are never accepted from the client.
"""

from rest_framework import serializers

from orders.models import OrderStatus, PaymentMethod, TrackingStatus


class CheckoutInputSerializer(serializers.Serializer):
    """
    Two modes:
    - buy-now: product_id (+ optional variation_id) + quantity
    - cart:    from_cart=true (every line of the caller's cart)
    """

    from_cart = serializers.BooleanField(required=False, default=False)

    product_id = serializers.UUIDField(required=False, allow_null=True)
    variation_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)

    shipping_address_id = serializers.UUIDField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    payment_reference = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Gateway payment id. Required for every method except cod.",
    )
    coupon_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs.get("from_cart"):
            if attrs.get("product_id"):
                raise serializers.ValidationError("Send either product_id or from_cart, not both.")
        elif not attrs.get("product_id"):
            raise serializers.ValidationError("product_id is required unless from_cart is true.")

        if attrs["payment_method"] != PaymentMethod.CASH_ON_DELIVERY and not (
            attrs.get("payment_reference") or ""
        ).strip():
            raise serializers.ValidationError(
                {"payment_reference": "Required for online payments."}
            )
        return attrs


class CancelOrderInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class TrackingUpdateInputSerializer(serializers.Serializer):
    """Staff tracking update: a status change, carrier metadata, or both."""

    status = serializers.ChoiceField(choices=TrackingStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)

    carrier = serializers.CharField(required=False, allow_blank=True, max_length=120)
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=120)
    tracking_url = serializers.URLField(required=False, allow_blank=True, max_length=500)
    estimated_delivery_date = serializers.DateField(required=False, allow_null=True)

    METADATA_FIELDS = ("carrier", "tracking_number", "tracking_url", "estimated_delivery_date")

    def validate(self, attrs):
        if "status" not in attrs and not any(f in attrs for f in self.METADATA_FIELDS):
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class OrderStatusInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
