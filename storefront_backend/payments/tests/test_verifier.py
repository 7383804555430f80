# payments/tests/test_verifier.py

from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, override_settings

from orders.models import PaymentMethod
from orders.services.exceptions import (
    CheckoutValidationError,
    PaymentMismatchError,
    PaymentNotCompletedError,
    PaymentVerificationFailedError,
)
from payments.services.myfatoorah import GatewayPaymentStatus, MyFatoorahError
from payments.services.verifier import REQUIRES_VERIFICATION, requires_verification, verify_payment


def _status(*, invoice="Paid", transaction="Success", amount="250.000", currency="KWD"):
    return GatewayPaymentStatus(
        reference="PAY-1",
        invoice_status=invoice,
        transaction_status=transaction,
        paid_amount=Decimal(amount) if amount is not None else None,
        paid_currency=currency,
    )


class RequiresVerificationTests(SimpleTestCase):
    def test_table_is_exhaustive(self):
        self.assertEqual(set(REQUIRES_VERIFICATION), set(PaymentMethod))

    def test_cash_on_delivery_is_not_verified(self):
        self.assertFalse(requires_verification("cod"))
        self.assertTrue(requires_verification("card"))
        self.assertTrue(requires_verification("wallet"))

    def test_unknown_method(self):
        with self.assertRaises(CheckoutValidationError):
            requires_verification("barter")


@mock.patch("payments.services.verifier.get_payment_status")
class VerifyPaymentTests(SimpleTestCase):
    """
    GUARANTEES:
    - Only paid invoices with a successful transaction are accepted
    - Strict mode rejects amount / currency mismatches
    - Gateway failures become PaymentVerificationFailedError
    """

    def _verify(self, amount="250.00", currency="kwd"):
        return verify_payment(payment_reference=" PAY-1 ", expected_amount=Decimal(amount), expected_currency=currency)

    def test_paid(self, get_status):
        get_status.return_value = _status()

        verified = self._verify()

        get_status.assert_called_once_with("PAY-1")
        self.assertEqual(verified.reference, "PAY-1")
        self.assertEqual(verified.amount, Decimal("250.00"))
        self.assertEqual(verified.currency, "KWD")

    def test_misspelled_success_is_accepted(self, get_status):
        get_status.return_value = _status(transaction="SUCCSS")

        self.assertEqual(self._verify().reference, "PAY-1")

    def test_unpaid_invoice(self, get_status):
        get_status.return_value = _status(invoice="Pending")

        with self.assertRaises(PaymentNotCompletedError):
            self._verify()

    def test_failed_transaction(self, get_status):
        get_status.return_value = _status(transaction="Failed")

        with self.assertRaises(PaymentNotCompletedError):
            self._verify()

    def test_amount_mismatch(self, get_status):
        get_status.return_value = _status(amount="1.000")

        with self.assertRaises(PaymentMismatchError):
            self._verify()

    def test_currency_mismatch(self, get_status):
        get_status.return_value = _status(currency="USD")

        with self.assertRaises(PaymentMismatchError):
            self._verify()

    @override_settings(PAYMENTS={"STRICT_AMOUNT_CHECK": False})
    def test_mismatch_tolerated_when_strict_check_off(self, get_status):
        get_status.return_value = _status(amount="1.000")

        with self.assertLogs("payments.services.verifier", level="WARNING"):
            verified = self._verify()

        self.assertEqual(verified.amount, Decimal("1.00"))

    def test_gateway_failure(self, get_status):
        get_status.side_effect = MyFatoorahError("boom")

        with self.assertRaises(PaymentVerificationFailedError):
            self._verify()

    def test_blank_reference(self, get_status):
        with self.assertRaises(CheckoutValidationError):
            verify_payment(payment_reference="", expected_amount=Decimal("1.00"), expected_currency="KWD")

        get_status.assert_not_called()
