# catalog/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - stock_count is the inventory counter for the base product.
    - Variations carry their own counters (see ProductVariation).
    - Counters are mutated ONLY through catalog.services.inventory
      (conditional decrement / increment), never by read-modify-write.

    PRICING:
    - discounted_price is what the customer pays.
    - actual_price is the list price (shown struck-through).
    - Both are snapshotted onto OrderItem at checkout.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    sku = models.CharField(max_length=128, unique=True, null=True, blank=True)

    actual_price = models.DecimalField(max_digits=12, decimal_places=2)
    discounted_price = models.DecimalField(max_digits=12, decimal_places=2)

    stock_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_count__gte=0),
                name="catalog_product_stock_non_negative",
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.discounted_price is None or Decimal(self.discounted_price) <= 0:
            raise ValidationError("discounted_price must be greater than zero")

        if self.actual_price is None or Decimal(self.actual_price) <= 0:
            raise ValidationError("actual_price must be greater than zero")
