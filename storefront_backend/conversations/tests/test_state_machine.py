# conversations/tests/test_state_machine.py

from django.test import SimpleTestCase

from conversations.models import ConversationState as S
from conversations.services.state_machine import (
    ACTION_CANCELLED,
    ACTION_CHOOSE_ADDRESS,
    ACTION_CONFIRM_SUMMARY,
    ACTION_INVALID,
    ACTION_PLACE_ORDER,
    ACTION_SHOW_CART,
    ACTION_SHOW_MENU,
    Event,
    advance,
)


class StateMachineTests(SimpleTestCase):
    """
    GUARANTEES:
    - Checkout reaches confirmation with or without a preselected address
    - Only a confirmed session with an address places an order
    - Unknown events keep the session where it is
    """

    def test_view_cart_from_idle(self):
        step = advance(S.IDLE, {}, Event("view_cart"))

        self.assertEqual((step.state, step.action), (S.VIEWING_CART, ACTION_SHOW_CART))

    def test_checkout_without_address_asks_for_one(self):
        step = advance(S.VIEWING_CART, {}, Event("checkout"))

        self.assertEqual((step.state, step.action), (S.CHOOSING_ADDRESS, ACTION_CHOOSE_ADDRESS))

    def test_checkout_with_address_goes_to_confirmation(self):
        step = advance(S.VIEWING_CART, {}, Event("checkout", address_id="a-1"))

        self.assertEqual((step.state, step.action), (S.CONFIRMING_ORDER, ACTION_CONFIRM_SUMMARY))
        self.assertEqual(step.context, {"address_id": "a-1"})

    def test_select_address(self):
        step = advance(S.CHOOSING_ADDRESS, {}, Event("select_address", address_id="a-2"))

        self.assertEqual(step.state, S.CONFIRMING_ORDER)
        self.assertEqual(step.context["address_id"], "a-2")

    def test_select_without_id_is_invalid(self):
        step = advance(S.CHOOSING_ADDRESS, {}, Event("select_address"))

        self.assertEqual((step.state, step.action), (S.CHOOSING_ADDRESS, ACTION_INVALID))

    def test_cancel_address_choice_returns_to_cart(self):
        step = advance(S.CHOOSING_ADDRESS, {}, Event("cancel"))

        self.assertEqual((step.state, step.action), (S.VIEWING_CART, ACTION_SHOW_CART))

    def test_confirm_places_order(self):
        step = advance(S.CONFIRMING_ORDER, {"address_id": "a-1"}, Event("confirm"))

        self.assertEqual((step.state, step.action), (S.IDLE, ACTION_PLACE_ORDER))
        self.assertEqual(step.context, {"address_id": "a-1"})

    def test_confirm_without_address_is_invalid(self):
        step = advance(S.CONFIRMING_ORDER, {}, Event("confirm"))

        self.assertEqual((step.state, step.action), (S.CONFIRMING_ORDER, ACTION_INVALID))

    def test_cancel_confirmation(self):
        step = advance(S.CONFIRMING_ORDER, {"address_id": "a-1"}, Event("cancel"))

        self.assertEqual((step.state, step.action), (S.IDLE, ACTION_CANCELLED))
        self.assertEqual(step.context, {})

    def test_reset_from_anywhere(self):
        for state in S:
            step = advance(state, {"address_id": "a-1"}, Event("reset"))
            self.assertEqual((step.state, step.action), (S.IDLE, ACTION_SHOW_MENU))
            self.assertEqual(step.context, {})

    def test_unknown_event_stays(self):
        step = advance(S.VIEWING_CART, {"x": 1}, Event("dance"))

        self.assertEqual((step.state, step.action), (S.VIEWING_CART, ACTION_INVALID))
        self.assertEqual(step.context, {"x": 1})

    def test_input_context_is_not_mutated(self):
        context = {"address_id": "a-1"}

        advance(S.CONFIRMING_ORDER, context, Event("dance"))

        self.assertEqual(context, {"address_id": "a-1"})
