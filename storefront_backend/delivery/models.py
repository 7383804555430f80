# delivery/models.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class DeliveryCharge(models.Model):
    """
    Flat delivery fee per destination postal code.

    A postal code without a row is outside the delivery area.
    """

    postal_code = models.CharField(max_length=20, unique=True)
    area_name = models.CharField(max_length=120, blank=True, default="")

    delivery_charge = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["postal_code"]

    def __str__(self):
        return f"{self.postal_code}: {self.delivery_charge}"
