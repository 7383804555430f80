# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn a selection (buy-now product or the whole cart) into a committed Order.

Flow:
    pricing -> delivery quote -> tax -> (non-cash) payment verification
    -> commit transaction -> notifications (after commit)

Commit transaction (all or nothing):
1. Conditional stock decrement per inventory unit (merged + lock ordered).
2. Order + OrderItems (price snapshots).
3. Coupon usage: coupon row locked, per-customer and global usage counted,
   usage row inserted.
4. Cart cleared (cart checkout only).
5. TrackingDetail opened with one "order_placed" entry.

Hard rules:
- Quantities are integer units.
- Money values are computed server-side; the caller never supplies totals.
- total = subtotal - discount + shipping + tax (2dp).
- Payment verification runs BEFORE the transaction; a failed payment never
  touches stock.
- Any failure inside the transaction leaves no stock change, order, coupon
  usage or cart clearing behind.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, OperationalError, transaction

from cart.services import clear_cart
from catalog.services.inventory import StockDecrementError, StockLine, reserve_stock
from coupons.models import Coupon, CouponUsage
from customers.models import ShippingAddress
from notifications.services.dispatcher import EVENT_ORDER_PLACED, notify
from orders.models import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from orders.services.exceptions import (
    AddressNotFoundError,
    CheckoutRetryableError,
    CheckoutValidationError,
    CouponLimitExceededError,
    InsufficientStockError,
    PaymentReferenceReusedError,
)
from orders.services.fulfillment_quote import quote_delivery_fee
from orders.services.pricing import PricingResult, compute_tax, price_selection
from orders.services.tracking import open_tracking
from payments.services.verifier import requires_verification, verify_payment

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _normalize_payment_method(method) -> str:
    m = str(method or "").strip().lower()
    if not m:
        raise CheckoutValidationError("payment_method is required")
    try:
        return PaymentMethod(m).value
    except ValueError as exc:
        raise CheckoutValidationError(f"Unsupported payment method: {method}") from exc


def _currency() -> str:
    engine = getattr(settings, "ORDER_ENGINE", {}) or {}
    return (engine.get("CURRENCY") or "KWD").strip().upper()


def _load_address(*, customer, shipping_address_id) -> ShippingAddress:
    if not shipping_address_id:
        raise CheckoutValidationError("shipping_address_id is required")

    try:
        address = ShippingAddress.objects.filter(
            pk=shipping_address_id,
            customer=customer,
        ).first()
    except (ValueError, DjangoValidationError):
        address = None

    if address is None:
        raise AddressNotFoundError(f"Shipping address {shipping_address_id} not found")
    return address


# ============================================================
# COMMIT TRANSACTION
# ============================================================


def _record_coupon_usage(*, coupon: Coupon, customer, order: Order) -> None:
    # Row lock serializes concurrent redemptions of the same coupon.
    locked = Coupon.objects.select_for_update().get(pk=coupon.pk)

    used_by_customer = CouponUsage.objects.filter(coupon=locked, customer=customer).count()
    if used_by_customer >= int(locked.usage_limit_per_person):
        raise CouponLimitExceededError(
            f"Coupon '{locked.name}' usage limit reached for this customer"
        )

    if locked.usage_limit is not None:
        used_total = CouponUsage.objects.filter(coupon=locked).count()
        if used_total >= int(locked.usage_limit):
            raise CouponLimitExceededError(f"Coupon '{locked.name}' is no longer available")

    CouponUsage.objects.create(coupon=locked, customer=customer, order=order)


@transaction.atomic
def commit_order(
    *,
    customer,
    pricing: PricingResult,
    address: ShippingAddress,
    shipping_cost: Decimal,
    tax_amount: Decimal,
    payment_method: str,
    payment_reference: str | None = None,
    payment_completed: bool = False,
) -> Order:
    try:
        reserve_stock(StockLine(unit=line.unit, quantity=line.quantity) for line in pricing.lines)
    except StockDecrementError as exc:
        raise InsufficientStockError(str(exc)) from exc

    subtotal = _money(pricing.subtotal)
    discount = _money(pricing.discount)
    shipping_cost = _money(shipping_cost)
    tax_amount = _money(tax_amount)

    order = Order.objects.create(
        customer=customer,
        shipping_address=address,
        status=OrderStatus.CONFIRMED,
        payment_status=PaymentStatus.COMPLETED if payment_completed else PaymentStatus.PENDING,
        payment_method=payment_method,
        payment_reference=payment_reference or None,
        coupon=pricing.coupon,
        currency=_currency(),
        subtotal_amount=subtotal,
        discount_amount=discount,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        total_amount=_money(subtotal - discount + shipping_cost + tax_amount),
    )

    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product=line.product,
                variation=line.variation,
                product_name=line.name,
                discounted_price=line.discounted_price,
                actual_price=line.actual_price,
                quantity=line.quantity,
            )
            for line in pricing.lines
        ]
    )

    if pricing.coupon is not None:
        _record_coupon_usage(coupon=pricing.coupon, customer=customer, order=order)

    if pricing.from_cart:
        clear_cart(customer=customer)

    open_tracking(order=order)

    notify(EVENT_ORDER_PLACED, order_id=order.id)
    return order


# ============================================================
# ENTRYPOINT
# ============================================================


def checkout(
    *,
    customer,
    selection,
    shipping_address_id,
    payment_method,
    coupon_name: str | None = None,
    payment_reference: str | None = None,
) -> Order:
    method = _normalize_payment_method(payment_method)
    address = _load_address(customer=customer, shipping_address_id=shipping_address_id)

    pricing = price_selection(customer=customer, selection=selection, coupon_name=coupon_name)
    shipping_cost = quote_delivery_fee(address.postal_code)
    tax_amount = compute_tax(pricing.net_amount)
    total = _money(pricing.net_amount + shipping_cost + tax_amount)

    reference = None
    payment_completed = False
    if requires_verification(method):
        reference = str(payment_reference or "").strip()
        if not reference:
            raise CheckoutValidationError("payment_reference is required for online payments")

        if Order.objects.filter(payment_reference=reference).exists():
            raise PaymentReferenceReusedError("This payment has already been used for another order")

        verified = verify_payment(
            payment_reference=reference,
            expected_amount=total,
            expected_currency=_currency(),
        )
        reference = verified.reference
        payment_completed = True

    try:
        order = commit_order(
            customer=customer,
            pricing=pricing,
            address=address,
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            payment_method=method,
            payment_reference=reference,
            payment_completed=payment_completed,
        )
    except IntegrityError as exc:
        if reference and Order.objects.filter(payment_reference=reference).exists():
            raise PaymentReferenceReusedError(
                "This payment has already been used for another order"
            ) from exc
        raise
    except OperationalError as exc:
        logger.warning(
            "Checkout commit hit a database conflict",
            extra={"customer_id": str(customer.pk), "error": str(exc)},
        )
        raise CheckoutRetryableError("Checkout could not be completed, please retry") from exc

    logger.info(
        "Order committed",
        extra={
            "order_id": str(order.id),
            "order_no": order.order_no,
            "customer_id": str(customer.pk),
            "total_amount": str(order.total_amount),
            "payment_method": method,
        },
    )
    return order
