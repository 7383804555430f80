# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class OrderItem(models.Model):
    """
    One purchased line.

    Prices are snapshots of the catalog at checkout time. When a variation is
    set it must belong to the line's product.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    variation = models.ForeignKey(
        "catalog.ProductVariation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )

    product_name = models.CharField(max_length=255, blank=True, default="")

    discounted_price = models.DecimalField(max_digits=12, decimal_places=2)
    actual_price = models.DecimalField(max_digits=12, decimal_places=2)

    quantity = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="orders_item_quantity_positive",
            ),
        ]

    def clean(self):
        if self.variation_id and self.variation.product_id != self.product_id:
            raise ValidationError("variation does not belong to product")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.discounted_price) * int(self.quantity)

    def __str__(self):
        return f"{self.product_name or self.product_id} x {self.quantity}"
