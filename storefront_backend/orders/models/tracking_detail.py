# orders/models/tracking_detail.py

import uuid

from django.db import models


class TrackingStatus(models.TextChoices):
    ORDER_PLACED = "order_placed", "Order placed"
    PROCESSING = "processing", "Processing"
    READY_TO_SHIP = "ready_to_ship", "Ready to ship"
    SHIPPED = "shipped", "Shipped"
    IN_TRANSIT = "in_transit", "In transit"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    FAILED_DELIVERY = "failed_delivery", "Failed delivery"
    RETURNED = "returned", "Returned"


class TrackingDetail(models.Model):
    """
    Fulfillment tracking record (one per order).

    status_history is APPEND-ONLY:
        [{"status": "...", "timestamp": "<iso8601>", "notes": "..."}, ...]
    Entries are never rewritten or removed. Writers lock the row
    (select_for_update) before appending.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="tracking",
    )

    status = models.CharField(
        max_length=32,
        choices=TrackingStatus.choices,
        default=TrackingStatus.ORDER_PLACED,
    )
    status_history = models.JSONField(default=list, blank=True)

    carrier = models.CharField(max_length=120, blank=True, default="")
    tracking_number = models.CharField(max_length=120, blank=True, default="", db_index=True)
    tracking_url = models.URLField(max_length=500, blank=True, default="")
    estimated_delivery_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    last_updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_updated_at"]

    def __str__(self):
        return f"{self.order_id} | {self.status}"
