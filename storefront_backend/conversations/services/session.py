# conversations/services/session.py

"""
CONVERSATION SESSION SERVICE

handle_event(phone_number, event):
- loads (or opens) the session row under a lock,
- advances it with the pure state machine,
- performs the resulting action (only "place_order" touches the order
  engine: cart checkout, cash on delivery, session's chosen address),
- persists the new state.

A failed checkout leaves the session in CONFIRMING_ORDER so the customer
can retry or cancel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from conversations.models import ConversationSession
from conversations.services.state_machine import (
    ACTION_PLACE_ORDER,
    EVENT_CHECKOUT,
    Event,
    advance,
)
from customers.models import CustomerProfile, ShippingAddress
from orders.models import Order, PaymentMethod
from orders.services.checkout_orchestrator import checkout
from orders.services.exceptions import OrderEngineError
from orders.services.pricing import CartSelection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reply:
    state: str
    action: str
    order: Order | None = None
    error: str = ""


def _lock_session(phone_number: str) -> ConversationSession:
    session, _ = ConversationSession.objects.get_or_create(phone_number=phone_number)
    session = ConversationSession.objects.select_for_update().get(pk=session.pk)

    if session.customer_id is None:
        customer = CustomerProfile.objects.filter(phone=phone_number).first()
        if customer is not None:
            session.customer = customer
    return session


def _default_address_id(customer) -> str | None:
    if customer is None:
        return None
    address = (
        ShippingAddress.objects.filter(customer=customer)
        .order_by("-is_default", "-created_at")
        .values_list("id", flat=True)
        .first()
    )
    return str(address) if address else None


@transaction.atomic
def handle_event(phone_number: str, event: Event) -> Reply:
    phone_number = (phone_number or "").strip()
    session = _lock_session(phone_number)

    if event.kind == EVENT_CHECKOUT and not event.address_id:
        event = Event(kind=EVENT_CHECKOUT, address_id=_default_address_id(session.customer))

    step = advance(session.state, session.context, event)

    order = None
    if step.action == ACTION_PLACE_ORDER:
        if session.customer is None:
            return Reply(state=session.state, action=step.action, error="Session expired. Please start over.")

        try:
            order = checkout(
                customer=session.customer,
                selection=CartSelection(),
                shipping_address_id=step.context.get("address_id"),
                payment_method=PaymentMethod.CASH_ON_DELIVERY,
            )
        except OrderEngineError as exc:
            logger.info(
                "Conversational checkout failed",
                extra={"phone_number": phone_number, "error": str(exc)},
            )
            session.save(update_fields=["customer", "updated_at"])
            return Reply(state=session.state, action=step.action, error=str(exc))

        step_context = {}
    else:
        step_context = step.context

    session.state = step.state
    session.context = step_context
    session.save(update_fields=["customer", "state", "context", "updated_at"])

    return Reply(state=session.state, action=step.action, order=order)
