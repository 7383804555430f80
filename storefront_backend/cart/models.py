# cart/models.py

"""
CART ITEM MODEL

Purpose:
- Store a customer's storefront cart lines.
- A line points at a variation OR a base product; prices are NOT stored here
  (checkout prices from the catalog at order time and snapshots onto OrderItem).

Rules:
- Quantity must be > 0.
- Catalog deletions null out the reference instead of deleting the line, so
  checkout can see (and report) lines whose product has disappeared.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class CartItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cart_items",
    )

    variation = models.ForeignKey(
        "catalog.ProductVariation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cart_items",
    )
    # Set once a variation is chosen; lets checkout tell "variation deleted"
    # apart from "base product line".
    has_variation = models.BooleanField(default=False, editable=False)

    quantity = models.PositiveIntegerField(default=1, help_text="Must be greater than zero")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="cart_item_quantity_positive",
            ),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

        if self.variation_id and self.product_id and self.variation.product_id != self.product_id:
            raise ValidationError({"variation": "Variation does not belong to product"})

    def save(self, *args, **kwargs):
        if self.variation_id:
            self.has_variation = True
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        target = self.variation or self.product
        return f"{getattr(target, 'name', 'Unavailable item')} x {self.quantity}"
