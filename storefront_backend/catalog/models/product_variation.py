# catalog/models/product_variation.py

import uuid

from django.db import models
from django.db.models import Q


class ProductVariation(models.Model):
    """
    A purchasable variant of a Product (size, colour, pack...).

    Own price + own stock counter. A variation always belongs to exactly one
    parent product; order lines referencing a variation must carry the same
    parent product id.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="variations",
    )

    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=128, unique=True, null=True, blank=True)

    actual_price = models.DecimalField(max_digits=12, decimal_places=2)
    discounted_price = models.DecimalField(max_digits=12, decimal_places=2)

    stock_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["product", "name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_count__gte=0),
                name="catalog_variation_stock_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.product.name} / {self.name}"
