# orders/tests/test_checkout.py

from decimal import Decimal
from unittest import mock

from django.core import mail
from django.db import OperationalError
from django.test import TestCase, override_settings

from cart.models import CartItem
from coupons.models import CouponUsage
from notifications.backends import locmem
from orders.models import Order, OrderItem, OrderStatus, PaymentStatus, TrackingDetail, TrackingStatus
from orders.services.checkout_orchestrator import checkout, commit_order
from orders.services.exceptions import (
    AddressNotFoundError,
    CheckoutRetryableError,
    CheckoutValidationError,
    CouponLimitExceededError,
    InsufficientStockError,
    PaymentNotCompletedError,
    PaymentReferenceReusedError,
    PaymentVerificationFailedError,
    UndeliverableLocationError,
)
from orders.services.pricing import CartSelection, ProductSelection, price_selection
from orders.tests.helpers import (
    add_to_cart,
    make_address,
    make_coupon,
    make_customer,
    make_delivery_charge,
    make_product,
)
from payments.services.myfatoorah import GatewayPaymentStatus, MyFatoorahUnavailable

NOTIFICATIONS_SYNC = {
    "ASYNC": False,
    "PUSH_BACKEND": "notifications.backends.locmem.LocmemPushBackend",
    "OPERATOR_EMAILS": ["ops@storefront.local"],
    "FROM_EMAIL": "orders@storefront.local",
}


def _gateway_status(*, invoice="Paid", transaction="Success", amount="250.00", currency="KWD"):
    return GatewayPaymentStatus(
        reference="PAY-1",
        invoice_status=invoice,
        transaction_status=transaction,
        paid_amount=Decimal(amount) if amount is not None else None,
        paid_currency=currency,
    )


class CheckoutTestBase(TestCase):
    def setUp(self):
        locmem.outbox.clear()
        self.user, self.customer = make_customer()
        self.address = make_address(self.customer, postal_code="12345")
        make_delivery_charge(postal_code="12345", fee="50.00")
        self.product = make_product(name="Linen Shirt", price="100.00", stock=10)

    def _buy_now(self, quantity=2, **kwargs):
        params = dict(
            customer=self.customer,
            selection=ProductSelection(product_id=self.product.id, quantity=quantity),
            shipping_address_id=self.address.id,
            payment_method="cod",
        )
        params.update(kwargs)
        return checkout(**params)


class CheckoutScenarioTests(CheckoutTestBase):
    """
    GUARANTEES:
    - 2 x 100 + 50 shipping -> total 250, stock -2, one "order_placed" entry
    - Order starts confirmed; cash on delivery stays payment pending
    - Price snapshots are stored on the items
    """

    def test_buy_now_scenario(self):
        order = self._buy_now(quantity=2)

        self.assertEqual(order.total_amount, Decimal("250.00"))
        self.assertEqual(order.subtotal_amount, Decimal("200.00"))
        self.assertEqual(order.shipping_cost, Decimal("50.00"))
        self.assertEqual(order.discount_amount, Decimal("0.00"))
        self.assertEqual(order.tax_amount, Decimal("0.00"))
        self.assertEqual(order.status, OrderStatus.CONFIRMED)
        self.assertEqual(order.payment_status, PaymentStatus.PENDING)
        self.assertTrue(order.order_no.startswith("ORD"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 8)

        tracking = TrackingDetail.objects.get(order=order)
        self.assertEqual(tracking.status, TrackingStatus.ORDER_PLACED)
        self.assertEqual(len(tracking.status_history), 1)
        self.assertEqual(tracking.status_history[0]["status"], TrackingStatus.ORDER_PLACED)

    def test_total_invariant_holds(self):
        order = self._buy_now(quantity=3)

        items_total = sum(item.discounted_price * item.quantity for item in order.items.all())
        self.assertEqual(
            order.total_amount,
            items_total - order.discount_amount + order.shipping_cost + order.tax_amount,
        )

    def test_items_snapshot_prices(self):
        order = self._buy_now(quantity=1)

        self.product.discounted_price = Decimal("80.00")
        self.product.save()

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.discounted_price, Decimal("100.00"))
        self.assertEqual(item.actual_price, Decimal("120.00"))
        self.assertEqual(item.product_name, "Linen Shirt")

    def test_cart_checkout_clears_cart(self):
        hat = make_product(name="Hat", price="25.00", stock=4)
        add_to_cart(self.customer, self.product, quantity=1)
        add_to_cart(self.customer, hat, quantity=2)

        order = checkout(
            customer=self.customer,
            selection=CartSelection(),
            shipping_address_id=self.address.id,
            payment_method="cod",
        )

        self.assertEqual(order.total_amount, Decimal("200.00"))
        self.assertEqual(order.items.count(), 2)
        self.assertFalse(CartItem.objects.filter(customer=self.customer).exists())

        hat.refresh_from_db()
        self.assertEqual(hat.stock_count, 2)

    def test_buy_now_keeps_cart(self):
        add_to_cart(self.customer, self.product, quantity=1)

        self._buy_now(quantity=1)

        self.assertEqual(CartItem.objects.filter(customer=self.customer).count(), 1)

    @override_settings(ORDER_ENGINE={"CURRENCY": "KWD", "TAX_RATE": "0.10"})
    def test_tax_is_added_after_discount(self):
        make_coupon(name="FLAT50", value="50.00")

        order = self._buy_now(quantity=2, coupon_name="FLAT50")

        # (200 - 50) * 0.10 = 15; 200 - 50 + 50 + 15 = 215
        self.assertEqual(order.tax_amount, Decimal("15.00"))
        self.assertEqual(order.total_amount, Decimal("215.00"))


class CheckoutValidationTests(CheckoutTestBase):
    def test_unknown_payment_method(self):
        with self.assertRaises(CheckoutValidationError):
            self._buy_now(payment_method="barter")

    def test_missing_address(self):
        with self.assertRaises(CheckoutValidationError):
            self._buy_now(shipping_address_id=None)

    def test_address_of_another_customer(self):
        _, stranger = make_customer(username="stranger", email="s@example.com")
        foreign_address = make_address(stranger)

        with self.assertRaises(AddressNotFoundError):
            self._buy_now(shipping_address_id=foreign_address.id)

    def test_undeliverable_postal_code(self):
        far_away = make_address(self.customer, postal_code="99999")

        with self.assertRaises(UndeliverableLocationError):
            self._buy_now(shipping_address_id=far_away.id)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)
        self.assertFalse(Order.objects.exists())


class CheckoutAtomicityTests(CheckoutTestBase):
    """
    GUARANTEES:
    - A fault anywhere inside the commit leaves no stock change, order,
      coupon usage or cart clearing behind
    - A database conflict surfaces as a retryable error
    """

    def test_fault_after_all_writes_rolls_everything_back(self):
        make_coupon(name="FLAT50", value="50.00")
        add_to_cart(self.customer, self.product, quantity=2)

        with mock.patch(
            "orders.services.checkout_orchestrator.open_tracking",
            side_effect=RuntimeError("injected fault"),
        ):
            with self.assertRaises(RuntimeError):
                checkout(
                    customer=self.customer,
                    selection=CartSelection(),
                    shipping_address_id=self.address.id,
                    payment_method="cod",
                    coupon_name="FLAT50",
                )

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(CouponUsage.objects.exists())
        self.assertEqual(CartItem.objects.filter(customer=self.customer).count(), 1)

    def test_operational_error_is_retryable(self):
        with mock.patch(
            "orders.services.checkout_orchestrator.open_tracking",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(CheckoutRetryableError):
                self._buy_now(quantity=1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)


class NoOversellTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Two buyers priced against the last unit: exactly one order commits
    """

    def test_stale_pricing_cannot_oversell(self):
        self.product.stock_count = 1
        self.product.save()

        _, rival = make_customer(username="rival", email="rival@example.com")
        rival_address = make_address(rival)

        selection = ProductSelection(product_id=self.product.id, quantity=1)
        mine = price_selection(customer=self.customer, selection=selection)
        theirs = price_selection(customer=rival, selection=selection)

        commit_order(
            customer=self.customer,
            pricing=mine,
            address=self.address,
            shipping_cost=Decimal("50.00"),
            tax_amount=Decimal("0.00"),
            payment_method="cod",
        )

        with self.assertRaises(InsufficientStockError):
            commit_order(
                customer=rival,
                pricing=theirs,
                address=rival_address,
                shipping_cost=Decimal("50.00"),
                tax_amount=Decimal("0.00"),
                payment_method="cod",
            )

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 0)
        self.assertEqual(Order.objects.count(), 1)

    def test_second_buyer_is_rejected_up_front(self):
        self.product.stock_count = 1
        self.product.save()

        self._buy_now(quantity=1)

        with self.assertRaises(InsufficientStockError):
            self._buy_now(quantity=1)


class CouponUsageTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Usage row written with the order
    - Per-person and global limits enforced at commit
    """

    def test_usage_is_recorded(self):
        coupon = make_coupon(name="FLAT50", value="50.00")

        order = self._buy_now(quantity=2, coupon_name="FLAT50")

        self.assertEqual(order.discount_amount, Decimal("50.00"))
        self.assertEqual(order.total_amount, Decimal("200.00"))
        self.assertEqual(order.coupon, coupon)
        self.assertTrue(CouponUsage.objects.filter(coupon=coupon, customer=self.customer, order=order).exists())

    def test_per_person_limit(self):
        make_coupon(name="ONCE", value="10.00", usage_limit_per_person=1)

        self._buy_now(quantity=1, coupon_name="ONCE")

        with self.assertRaises(CouponLimitExceededError):
            self._buy_now(quantity=1, coupon_name="ONCE")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 9)
        self.assertEqual(Order.objects.count(), 1)

    def test_global_limit(self):
        make_coupon(name="FIRST1", value="10.00", usage_limit_per_person=5, usage_limit=1)
        _, other = make_customer(username="other", email="other@example.com")
        other_address = make_address(other)

        self._buy_now(quantity=1, coupon_name="FIRST1")

        with self.assertRaises(CouponLimitExceededError):
            checkout(
                customer=other,
                selection=ProductSelection(product_id=self.product.id, quantity=1),
                shipping_address_id=other_address.id,
                payment_method="cod",
                coupon_name="FIRST1",
            )


class OnlinePaymentCheckoutTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Verified payment -> payment_status completed, reference stored
    - Unsettled / unreachable payment aborts BEFORE any stock is touched
    - A payment reference settles at most one order
    """

    @mock.patch("payments.services.verifier.get_payment_status")
    def test_verified_payment_completes_order(self, get_status):
        get_status.return_value = _gateway_status()

        order = self._buy_now(quantity=2, payment_method="card", payment_reference="PAY-1")

        self.assertEqual(order.payment_status, PaymentStatus.COMPLETED)
        self.assertEqual(order.payment_reference, "PAY-1")
        get_status.assert_called_once_with("PAY-1")

    def test_missing_reference_is_invalid(self):
        with self.assertRaises(CheckoutValidationError):
            self._buy_now(payment_method="card")

    @mock.patch("payments.services.verifier.get_payment_status")
    def test_unpaid_invoice_aborts_without_touching_stock(self, get_status):
        get_status.return_value = _gateway_status(invoice="Pending", transaction="InProgress")

        with self.assertRaises(PaymentNotCompletedError):
            self._buy_now(quantity=2, payment_method="card", payment_reference="PAY-1")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)
        self.assertFalse(Order.objects.exists())

    @mock.patch("payments.services.verifier.get_payment_status")
    def test_gateway_outage_aborts(self, get_status):
        get_status.side_effect = MyFatoorahUnavailable("timed out")

        with self.assertRaises(PaymentVerificationFailedError):
            self._buy_now(quantity=2, payment_method="wallet", payment_reference="PAY-1")

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)

    @mock.patch("payments.services.verifier.get_payment_status")
    def test_reference_cannot_be_reused(self, get_status):
        get_status.return_value = _gateway_status()
        self._buy_now(quantity=2, payment_method="card", payment_reference="PAY-1")

        with self.assertRaises(PaymentReferenceReusedError):
            self._buy_now(quantity=2, payment_method="card", payment_reference="PAY-1")

        self.assertEqual(get_status.call_count, 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 8)


@override_settings(NOTIFICATIONS=NOTIFICATIONS_SYNC)
class CheckoutNotificationTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Customer and operators are notified after commit
    - A failed checkout notifies nobody
    - A notification failure never fails the checkout
    """

    def test_customer_and_operators_notified_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self._buy_now(quantity=1)

        recipients = sorted(r for message in mail.outbox for r in message.to)
        self.assertEqual(recipients, ["buyer@example.com", "ops@storefront.local"])
        self.assertIn(order.order_no, mail.outbox[0].subject)

        self.assertEqual(len(locmem.outbox), 1)
        self.assertEqual(locmem.outbox[0]["token"], "token-buyer")

    def test_failed_checkout_notifies_nobody(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InsufficientStockError):
                self._buy_now(quantity=50)

        self.assertEqual(callbacks, [])
        self.assertEqual(mail.outbox, [])

    def test_mail_failure_is_swallowed(self):
        with mock.patch(
            "notifications.services.dispatcher.send_mail",
            side_effect=ConnectionRefusedError("smtp down"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                order = self._buy_now(quantity=1)

        self.assertTrue(Order.objects.filter(pk=order.pk).exists())
        self.assertEqual(len(locmem.outbox), 1)
