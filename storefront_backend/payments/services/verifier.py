# payments/services/verifier.py

"""
======================================================
PATH: payments/services/verifier.py
======================================================
PAYMENT VERIFIER (non-cash checkout precondition)

Runs BEFORE the commit transaction. It never writes anything, so a failed
verification needs no compensation: no stock was touched.

A payment is accepted only when:
- the gateway reports invoice status "paid", AND
- the transaction status is "success", AND
- (strict, default on) the paid amount equals the order total and the paid
  currency equals the store currency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from orders.models import PaymentMethod
from orders.services.exceptions import (
    CheckoutValidationError,
    PaymentMismatchError,
    PaymentNotCompletedError,
    PaymentVerificationFailedError,
)
from payments.services.myfatoorah import MyFatoorahError, get_payment_status

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

# Exhaustive: every PaymentMethod must appear here.
REQUIRES_VERIFICATION = {
    PaymentMethod.CASH_ON_DELIVERY: False,
    PaymentMethod.CARD: True,
    PaymentMethod.NET_BANKING: True,
    PaymentMethod.WALLET: True,
}

PAID_INVOICE_STATUSES = {"paid"}
# "succss" is a misspelling the gateway has been seen to return.
SUCCESS_TRANSACTION_STATUSES = {"success", "succss"}


def _money(v) -> Decimal:
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _strict_amount_check() -> bool:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    return bool(payments.get("STRICT_AMOUNT_CHECK", True))


@dataclass(frozen=True)
class VerifiedPayment:
    reference: str
    amount: Decimal
    currency: str


def requires_verification(payment_method) -> bool:
    try:
        return REQUIRES_VERIFICATION[PaymentMethod(payment_method)]
    except ValueError as exc:
        raise CheckoutValidationError(f"Unsupported payment method: {payment_method}") from exc


def verify_payment(*, payment_reference: str, expected_amount, expected_currency: str) -> VerifiedPayment:
    ref = str(payment_reference or "").strip()
    if not ref:
        raise CheckoutValidationError("payment_reference is required for online payments")

    try:
        status = get_payment_status(ref)
    except MyFatoorahError as exc:
        logger.warning(
            "Payment verification call failed",
            extra={"payment_reference": ref, "error": str(exc)},
        )
        raise PaymentVerificationFailedError(
            "Could not verify payment with the gateway. Please try again."
        ) from exc

    invoice_status = status.invoice_status.strip().lower()
    transaction_status = status.transaction_status.strip().lower()

    if (
        invoice_status not in PAID_INVOICE_STATUSES
        or transaction_status not in SUCCESS_TRANSACTION_STATUSES
    ):
        logger.info(
            "Payment not completed",
            extra={
                "payment_reference": ref,
                "invoice_status": status.invoice_status,
                "transaction_status": status.transaction_status,
            },
        )
        raise PaymentNotCompletedError("Payment has not been completed")

    expected_amount = _money(expected_amount)
    expected_currency = (expected_currency or "").strip().upper()
    paid_currency = (status.paid_currency or "").strip().upper()
    paid_amount = _money(status.paid_amount) if status.paid_amount is not None else None

    mismatch = None
    if paid_amount is None or paid_amount != expected_amount:
        mismatch = f"Paid amount {paid_amount} does not match order total {expected_amount}"
    elif paid_currency != expected_currency:
        mismatch = f"Paid currency {paid_currency or '?'} does not match {expected_currency}"

    if mismatch:
        if _strict_amount_check():
            logger.warning(
                "Payment amount/currency mismatch",
                extra={"payment_reference": ref, "detail": mismatch},
            )
            raise PaymentMismatchError(mismatch)

        logger.warning(
            "Payment amount/currency mismatch ignored (strict check disabled)",
            extra={"payment_reference": ref, "detail": mismatch},
        )

    return VerifiedPayment(
        reference=ref,
        amount=paid_amount if paid_amount is not None else expected_amount,
        currency=paid_currency or expected_currency,
    )
