# orders/services/tracking.py

"""
======================================================
PATH: orders/services/tracking.py
======================================================
FULFILLMENT TRACKING STATE MACHINE

Owns every write to TrackingDetail and every post-checkout Order.status change.

Rules:
- status_history is append-only; rows are locked (select_for_update) for the
  read-modify-write of the history list.
- Lock order is always Order -> TrackingDetail.
- Each tracking status maps onto exactly one OrderStatus (order_lifecycle);
  the mapped status is written to the order in the same transaction.
- A customer is notified only when the tracking status actually changes.
  Re-submitting the current status is a no-op (ORDER_ENGINE
  TRACKING_DEDUPLICATE_STATUS, default on).
- "returned" is a cancellation: the order's units go back to stock.
- Notifications are scheduled with transaction.on_commit, so a rolled back
  update never notifies anyone.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from catalog.services.inventory import StockLine, inventory_unit_for, release_stock
from notifications.services.dispatcher import (
    EVENT_ORDER_CANCELLED,
    EVENT_TRACKING_UPDATE,
    notify,
)
from orders.models import Order, OrderStatus, PaymentStatus, TrackingDetail, TrackingStatus
from orders.services.exceptions import (
    CheckoutValidationError,
    InvalidOrderTransitionError,
    OrderNotFoundError,
)
from orders.services.order_lifecycle import (
    ORDER_TO_TRACKING_STATUS,
    PRE_SHIPMENT_STATES,
    TERMINAL_STATES,
    order_status_for_tracking,
    validate_cancellation,
    validate_transition,
)

logger = logging.getLogger(__name__)

CLOSED_ORDER_STATES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def _deduplicate_status() -> bool:
    engine = getattr(settings, "ORDER_ENGINE", {}) or {}
    return bool(engine.get("TRACKING_DEDUPLICATE_STATUS", True))


def history_entry(status: str, notes: str | None = None) -> dict:
    return {
        "status": str(status),
        "timestamp": timezone.now().isoformat(),
        "notes": (notes or "").strip(),
    }


def _normalize_tracking_status(status) -> str:
    try:
        return TrackingStatus(str(status or "").strip().lower()).value
    except ValueError as exc:
        raise CheckoutValidationError(f"Unknown tracking status: {status}") from exc


def _lock_order(order_id) -> Order:
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    return order


def _lock_tracking(order: Order) -> TrackingDetail:
    tracking = TrackingDetail.objects.select_for_update().filter(order=order).first()
    if tracking is None:
        tracking = TrackingDetail.objects.create(
            order=order,
            status=TrackingStatus.ORDER_PLACED,
            status_history=[],
        )
    return tracking


def open_tracking(*, order: Order, notes: str = "Order placed") -> TrackingDetail:
    """Initial tracking record for a freshly committed order (one history entry)."""
    return TrackingDetail.objects.create(
        order=order,
        status=TrackingStatus.ORDER_PLACED,
        status_history=[history_entry(TrackingStatus.ORDER_PLACED, notes)],
    )


def _append(tracking: TrackingDetail, status: str, notes: str | None) -> None:
    tracking.status_history = list(tracking.status_history or []) + [history_entry(status, notes)]
    tracking.status = status
    tracking.save(update_fields=["status", "status_history", "last_updated_at"])


def _restock(order: Order) -> None:
    items = list(order.items.select_related("product", "variation"))
    release_stock(
        [
            StockLine(
                unit=inventory_unit_for(product=item.product, variation=item.variation),
                quantity=item.quantity,
            )
            for item in items
        ]
    )


def _set_order_status(order: Order, status: str, *, reason: str = "") -> None:
    order.status = status
    fields = ["status", "updated_at"]

    if status == OrderStatus.CANCELLED:
        order.cancelled_at = order.cancelled_at or timezone.now()
        fields.append("cancelled_at")
        if reason:
            order.cancellation_reason = reason
            fields.append("cancellation_reason")

    if status == OrderStatus.REFUNDED and order.payment_status == PaymentStatus.COMPLETED:
        order.payment_status = PaymentStatus.REFUNDED
        fields.append("payment_status")

    order.save(update_fields=fields)


# ============================================================
# TRACKING STATUS
# ============================================================


@transaction.atomic
def update_tracking_status(*, order_id, status, notes: str | None = None) -> TrackingDetail:
    new_status = _normalize_tracking_status(status)

    order = _lock_order(order_id)
    tracking = _lock_tracking(order)
    previous = tracking.status

    if previous == new_status and _deduplicate_status():
        logger.info(
            "Tracking status unchanged; nothing to do",
            extra={"order_id": str(order.id), "status": new_status},
        )
        return tracking

    if order.status in CLOSED_ORDER_STATES:
        raise InvalidOrderTransitionError(
            f"Order {order.order_no} is {order.status}; tracking can no longer change"
        )

    target_order_status = order_status_for_tracking(new_status)

    if target_order_status == OrderStatus.CANCELLED:
        validate_cancellation(order=order)
        _restock(order)
    elif order.status in TERMINAL_STATES and order.status != target_order_status:
        raise InvalidOrderTransitionError(
            f"Order {order.order_no} is {order.status}; tracking can no longer change"
        )

    _append(tracking, new_status, notes)

    if order.status != target_order_status:
        _set_order_status(order, target_order_status, reason=notes or "")

    logger.info(
        "Tracking status updated",
        extra={
            "order_id": str(order.id),
            "from_status": previous,
            "to_status": new_status,
            "order_status": order.status,
        },
    )

    if previous != new_status:
        notify(
            EVENT_TRACKING_UPDATE,
            order_id=order.id,
            status=new_status,
            notes=notes or "",
        )

    return tracking


@transaction.atomic
def update_tracking_details(
    *,
    order_id,
    carrier: str | None = None,
    tracking_number: str | None = None,
    tracking_url: str | None = None,
    estimated_delivery_date=None,
) -> TrackingDetail:
    """Carrier metadata only. Never touches status or history."""
    order = _lock_order(order_id)
    tracking = _lock_tracking(order)

    updates = {
        "carrier": carrier,
        "tracking_number": tracking_number,
        "tracking_url": tracking_url,
        "estimated_delivery_date": estimated_delivery_date,
    }
    fields = []
    for name, value in updates.items():
        if value is None:
            continue
        setattr(tracking, name, value.strip() if isinstance(value, str) else value)
        fields.append(name)

    if fields:
        tracking.save(update_fields=fields + ["last_updated_at"])

    return tracking


def get_tracking_by_number(tracking_number: str) -> TrackingDetail:
    number = (tracking_number or "").strip()
    tracking = None
    if number:
        tracking = (
            TrackingDetail.objects.select_related("order")
            .filter(tracking_number=number)
            .first()
        )

    if tracking is None:
        raise OrderNotFoundError(f"No shipment with tracking number {number or '?'}")
    return tracking


# ============================================================
# CANCELLATION
# ============================================================


@transaction.atomic
def cancel_order(*, order_id, actor=None, reason: str = "") -> Order:
    """
    Cancel an order and put its units back in stock.

    actor:
    - a CustomerProfile: may only cancel their own orders (others look missing)
    - None: operator / admin cancellation
    """
    order = _lock_order(order_id)

    if actor is not None and order.customer_id != actor.pk:
        raise OrderNotFoundError(f"Order {order_id} not found")

    validate_cancellation(order=order)

    _restock(order)

    reason = (reason or "").strip()
    by = "customer" if actor is not None else "store"
    note = f"Order cancelled by {by}" + (f": {reason}" if reason else "")

    _set_order_status(order, OrderStatus.CANCELLED, reason=reason or note)

    tracking = _lock_tracking(order)
    _append(tracking, TrackingStatus.RETURNED, note)

    logger.info(
        "Order cancelled",
        extra={"order_id": str(order.id), "cancelled_by": by},
    )

    notify(EVENT_ORDER_CANCELLED, order_id=order.id, reason=reason)
    return order


# ============================================================
# ADMIN STATUS CHANGE
# ============================================================


@transaction.atomic
def update_order_status(*, order_id, status, notes: str | None = None) -> Order:
    """
    Direct order status change (staff), validated by the lifecycle table.

    - Fulfillment states are recorded as the matching tracking status, so the
      order and its tracking record move together (history + notification).
    - "cancelled" goes through cancel_order so stock is restored.
    - "refunded" before shipment cancels first (restock, "returned" entry),
      then marks the order refunded.
    """
    try:
        target = OrderStatus(str(status or "").strip().lower()).value
    except ValueError as exc:
        raise CheckoutValidationError(f"Unknown order status: {status}") from exc

    order = _lock_order(order_id)
    validate_transition(order=order, target_status=target)
    previous = order.status

    if target == OrderStatus.CANCELLED:
        return cancel_order(order_id=order.id, actor=None, reason=notes or "")

    if target in ORDER_TO_TRACKING_STATUS:
        update_tracking_status(
            order_id=order.id,
            status=ORDER_TO_TRACKING_STATUS[target],
            notes=notes,
        )
        order.refresh_from_db()
    elif target == OrderStatus.REFUNDED and previous in PRE_SHIPMENT_STATES:
        cancel_order(order_id=order.id, actor=None, reason=notes or "Refunded before shipment")
        order.refresh_from_db()

    if order.status != target:
        _set_order_status(order, target)

    logger.info(
        "Order status updated",
        extra={"order_id": str(order.id), "from_status": previous, "to_status": target},
    )
    return order
