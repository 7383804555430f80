# notifications/services/dispatcher.py

"""
======================================================
PATH: notifications/services/dispatcher.py
======================================================
NOTIFICATION DISPATCHER

- notify() is called from inside order transactions; delivery is deferred
  with transaction.on_commit, so rolled back work never notifies anyone.
- Delivery is fire-and-forget: every failure is logged and swallowed.
  A broken mail server must never fail a checkout.
- NOTIFICATIONS["ASYNC"] moves delivery onto a small worker pool.

Events:
- order_placed     -> customer confirmation (email + push), operator alert (email)
- tracking_update  -> customer (email + push)
- order_cancelled  -> customer (email + push), operator alert (email)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from django.conf import settings
from django.core.mail import send_mail
from django.db import connection, transaction
from django.template.loader import render_to_string

from notifications.backends import get_push_backend
from orders.models import Order, TrackingStatus

logger = logging.getLogger(__name__)

EVENT_ORDER_PLACED = "order_placed"
EVENT_TRACKING_UPDATE = "tracking_update"
EVENT_ORDER_CANCELLED = "order_cancelled"

_executor: ThreadPoolExecutor | None = None


def _cfg() -> dict:
    return getattr(settings, "NOTIFICATIONS", {}) or {}


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notifications")
    return _executor


# ============================================================
# PUBLIC API
# ============================================================


def notify(event: str, *, order_id, **context) -> None:
    """Schedule delivery for after the surrounding transaction commits."""
    if event not in HANDLERS:
        raise ValueError(f"Unknown notification event: {event}")

    transaction.on_commit(partial(_dispatch, event, order_id, context))


def _dispatch(event: str, order_id, context: dict) -> None:
    if _cfg().get("ASYNC"):
        _get_executor().submit(_deliver_in_worker, event, order_id, context)
    else:
        deliver(event, order_id, context)


def _deliver_in_worker(event: str, order_id, context: dict) -> None:
    try:
        deliver(event, order_id, context)
    finally:
        connection.close()


def deliver(event: str, order_id, context: dict | None = None) -> None:
    context = context or {}
    try:
        order = Order.objects.select_related("customer", "shipping_address").get(pk=order_id)
        HANDLERS[event](order, context)
    except Exception:
        logger.exception(
            "Notification delivery failed",
            extra={"event": event, "order_id": str(order_id)},
        )


# ============================================================
# CHANNELS
# ============================================================


def _render(template: str, context: dict) -> str:
    return render_to_string(f"notifications/{template}.txt", context).strip()


def _send_email(*, to: list[str], subject: str, template: str, context: dict) -> None:
    recipients = [addr for addr in to if addr]
    if not recipients:
        return
    try:
        send_mail(
            subject=subject,
            message=_render(template, context),
            from_email=_cfg().get("FROM_EMAIL") or settings.DEFAULT_FROM_EMAIL,
            recipient_list=recipients,
            fail_silently=False,
        )
    except Exception:
        logger.exception("Email notification failed", extra={"template": template})


def _send_push(*, token: str, title: str, body: str, data: dict) -> None:
    if not token:
        return
    try:
        get_push_backend().send(token=token, title=title, body=body, data=data)
    except Exception:
        logger.exception("Push notification failed", extra={"title": title})


def _operator_emails() -> list[str]:
    return list(_cfg().get("OPERATOR_EMAILS") or [])


# ============================================================
# EVENT HANDLERS
# ============================================================


def _order_placed(order: Order, context: dict) -> None:
    customer = order.customer
    ctx = {"order": order, "customer": customer, "items": list(order.items.all())}

    _send_email(
        to=[customer.email],
        subject=f"Order {order.order_no} confirmed",
        template="order_placed",
        context=ctx,
    )
    _send_push(
        token=customer.push_token,
        title="Order confirmed",
        body=f"Your order {order.order_no} has been placed.",
        data={"order_id": str(order.id), "event": EVENT_ORDER_PLACED},
    )
    _send_email(
        to=_operator_emails(),
        subject=f"New order {order.order_no}",
        template="new_order_alert",
        context=ctx,
    )


def _tracking_update(order: Order, context: dict) -> None:
    customer = order.customer
    status = context.get("status") or ""
    label = TrackingStatus(status).label if status in TrackingStatus.values else status

    ctx = {
        "order": order,
        "customer": customer,
        "status_label": label,
        "notes": context.get("notes") or "",
    }

    _send_email(
        to=[customer.email],
        subject=f"Order {order.order_no}: {label}",
        template="tracking_update",
        context=ctx,
    )
    _send_push(
        token=customer.push_token,
        title=f"Order {label.lower()}",
        body=f"Your order {order.order_no} is now {label.lower()}.",
        data={"order_id": str(order.id), "event": EVENT_TRACKING_UPDATE, "status": status},
    )


def _order_cancelled(order: Order, context: dict) -> None:
    customer = order.customer
    ctx = {"order": order, "customer": customer, "reason": context.get("reason") or ""}

    _send_email(
        to=[customer.email],
        subject=f"Order {order.order_no} cancelled",
        template="order_cancelled",
        context=ctx,
    )
    _send_push(
        token=customer.push_token,
        title="Order cancelled",
        body=f"Your order {order.order_no} has been cancelled.",
        data={"order_id": str(order.id), "event": EVENT_ORDER_CANCELLED},
    )
    _send_email(
        to=_operator_emails(),
        subject=f"Order {order.order_no} cancelled",
        template="order_cancelled",
        context=ctx,
    )


HANDLERS = {
    EVENT_ORDER_PLACED: _order_placed,
    EVENT_TRACKING_UPDATE: _tracking_update,
    EVENT_ORDER_CANCELLED: _order_cancelled,
}
