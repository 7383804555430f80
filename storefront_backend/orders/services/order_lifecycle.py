"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed status transitions for Order entities,
and how fulfillment tracking statuses map onto them.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from orders.models import Order, OrderStatus, TrackingStatus
from orders.services.exceptions import InvalidOrderTransitionError, OrderNotCancellableError

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    OrderStatus.DELIVERED,
    OrderStatus.REFUNDED,
}

# Cancellation is refused once the order reached one of these.
NON_CANCELLABLE_STATES = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.SHIPPED: {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: {
        OrderStatus.REFUNDED,
    },
    OrderStatus.REFUNDED: set(),
}

# Exhaustive: every TrackingStatus must appear here.
TRACKING_TO_ORDER_STATUS = {
    TrackingStatus.ORDER_PLACED: OrderStatus.CONFIRMED,
    TrackingStatus.PROCESSING: OrderStatus.PROCESSING,
    TrackingStatus.READY_TO_SHIP: OrderStatus.PROCESSING,
    TrackingStatus.SHIPPED: OrderStatus.SHIPPED,
    TrackingStatus.IN_TRANSIT: OrderStatus.SHIPPED,
    TrackingStatus.OUT_FOR_DELIVERY: OrderStatus.SHIPPED,
    TrackingStatus.FAILED_DELIVERY: OrderStatus.SHIPPED,
    TrackingStatus.DELIVERED: OrderStatus.DELIVERED,
    TrackingStatus.RETURNED: OrderStatus.CANCELLED,
}

# Staff status changes that are really fulfillment steps are recorded as this
# tracking status (each maps back onto the same order status above).
ORDER_TO_TRACKING_STATUS = {
    OrderStatus.CONFIRMED: TrackingStatus.ORDER_PLACED,
    OrderStatus.PROCESSING: TrackingStatus.PROCESSING,
    OrderStatus.SHIPPED: TrackingStatus.SHIPPED,
    OrderStatus.DELIVERED: TrackingStatus.DELIVERED,
}

# Units have not left the store yet.
PRE_SHIPMENT_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(
        from_status=order.status,
        to_status=target_status,
    ):
        raise InvalidOrderTransitionError(
            f"Order {order.order_no} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )


def can_cancel(*, status: str) -> bool:
    return status not in NON_CANCELLABLE_STATES


def validate_cancellation(*, order: Order):
    if not can_cancel(status=order.status):
        raise OrderNotCancellableError(
            f"Order {order.order_no} is {order.status} and cannot be cancelled"
        )


def order_status_for_tracking(tracking_status: str) -> str:
    return TRACKING_TO_ORDER_STATUS[TrackingStatus(tracking_status)]
