"""
CONVERSATIONAL CHECKOUT STATE MACHINE

Pure transition function for chat-bot checkout sessions:

    advance(state, context, event) -> Step(state, context, action)

DESIGN PRINCIPLES:
- No database access
- No side effects (the caller performs Step.action)
- Unknown (state, event) pairs keep the session where it is
"""

from __future__ import annotations

from dataclasses import dataclass, field

from conversations.models import ConversationState

# ============================================================
# EVENTS / ACTIONS
# ============================================================

EVENT_VIEW_CART = "view_cart"
EVENT_CHECKOUT = "checkout"
EVENT_SELECT_ADDRESS = "select_address"
EVENT_CONFIRM = "confirm"
EVENT_CANCEL = "cancel"
EVENT_RESET = "reset"

ACTION_SHOW_MENU = "show_menu"
ACTION_SHOW_CART = "show_cart"
ACTION_CHOOSE_ADDRESS = "choose_address"
ACTION_CONFIRM_SUMMARY = "confirm_summary"
ACTION_PLACE_ORDER = "place_order"
ACTION_CANCELLED = "cancelled"
ACTION_INVALID = "invalid"


@dataclass(frozen=True)
class Event:
    kind: str
    address_id: str | None = None


@dataclass(frozen=True)
class Step:
    state: str
    context: dict = field(default_factory=dict)
    action: str = ACTION_INVALID


# ============================================================
# TRANSITIONS
# ============================================================


def _to_confirmation_or_address(event: Event) -> Step:
    if event.address_id:
        return Step(
            state=ConversationState.CONFIRMING_ORDER,
            context={"address_id": str(event.address_id)},
            action=ACTION_CONFIRM_SUMMARY,
        )
    return Step(state=ConversationState.CHOOSING_ADDRESS, action=ACTION_CHOOSE_ADDRESS)


def advance(state: str, context: dict | None, event: Event) -> Step:
    context = dict(context or {})
    stay = Step(state=state, context=context, action=ACTION_INVALID)

    if event.kind == EVENT_RESET:
        return Step(state=ConversationState.IDLE, action=ACTION_SHOW_MENU)

    if state in (ConversationState.IDLE, ConversationState.VIEWING_CART):
        if event.kind == EVENT_VIEW_CART:
            return Step(state=ConversationState.VIEWING_CART, action=ACTION_SHOW_CART)
        if event.kind == EVENT_CHECKOUT:
            return _to_confirmation_or_address(event)
        return stay

    if state == ConversationState.CHOOSING_ADDRESS:
        if event.kind == EVENT_SELECT_ADDRESS and event.address_id:
            return _to_confirmation_or_address(event)
        if event.kind == EVENT_CANCEL:
            return Step(state=ConversationState.VIEWING_CART, action=ACTION_SHOW_CART)
        return stay

    if state == ConversationState.CONFIRMING_ORDER:
        if event.kind == EVENT_CONFIRM and context.get("address_id"):
            # address stays in context until the order is actually placed
            return Step(state=ConversationState.IDLE, context=context, action=ACTION_PLACE_ORDER)
        if event.kind == EVENT_CANCEL:
            return Step(state=ConversationState.IDLE, action=ACTION_CANCELLED)
        return stay

    return Step(state=ConversationState.IDLE, action=ACTION_SHOW_MENU)
