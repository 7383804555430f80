# coupons/models.py

"""
COUPON MODELS

Coupon:
- Named, time-bounded discount rule (flat amount or percentage).
- minimum_spent: order amount (before discount) must reach it.
- usage_limit_per_person: max usages per customer.
- usage_limit: optional global cap across all customers (NULL = unlimited).

CouponUsage:
- One row per applied coupon, written in the SAME transaction as the order it
  discounted (OneToOne: at most one coupon per order).
- Counting usages happens under a row lock on the coupon (see checkout).
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Coupon(models.Model):
    class ValueType(models.TextChoices):
        AMOUNT = "amount", "Flat amount"
        PERCENTAGE = "percentage", "Percentage"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=64, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")

    value_type = models.CharField(
        max_length=16,
        choices=ValueType.choices,
        default=ValueType.AMOUNT,
    )
    value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    minimum_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    valid_from = models.DateTimeField()
    valid_till = models.DateTimeField()

    usage_limit_per_person = models.PositiveIntegerField(default=1)
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Global usage cap across all customers (empty = unlimited).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name

    def clean(self):
        if self.valid_from and self.valid_till and self.valid_from > self.valid_till:
            raise ValidationError("valid_from must be before valid_till")

        if self.value_type == self.ValueType.PERCENTAGE and Decimal(self.value) > Decimal("100"):
            raise ValidationError("percentage coupons cannot exceed 100")

    def is_active_at(self, moment=None) -> bool:
        moment = moment or timezone.now()
        return self.valid_from <= moment <= self.valid_till


class CouponUsage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.PROTECT,
        related_name="usages",
    )

    customer = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="coupon_usages",
    )

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="coupon_usage",
    )

    used_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-used_at"]
        indexes = [
            models.Index(fields=["coupon", "customer"], name="coupons_usage_coupon_cust_idx"),
        ]

    def __str__(self):
        return f"{self.coupon} used by {self.customer}"
