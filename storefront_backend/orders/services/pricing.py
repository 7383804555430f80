# orders/services/pricing.py

"""
======================================================
PATH: orders/services/pricing.py
======================================================
PRICING & COUPON RESOLVER

Purpose:
- Turn a selection (one product, or the customer's whole cart) into priced
  line items, a subtotal and an optional coupon discount.

Rules:
- Read-only: no stock, coupon usage or cart mutation happens here.
- Prices come from the catalog NOW; the commit transaction snapshots them.
- Stock is pre-checked per line for a fast, friendly failure. The commit
  transaction re-checks atomically (conditional decrement), which is what
  actually prevents overselling.
- Coupon usage limits are enforced at commit time under a row lock, not here.
- Money is Decimal, 2dp, ROUND_HALF_UP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from cart.services import list_cart_lines
from catalog.models import Product, ProductVariation
from catalog.services.inventory import available_stock, inventory_unit_for
from coupons.models import Coupon
from orders.services.exceptions import (
    CheckoutValidationError,
    CouponExpiredError,
    CouponMinimumSpendError,
    CouponNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    ProductNotFoundError,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_int_qty(value) -> int:
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValueError("quantity must be a whole integer unit")


def _engine_setting(key: str, default=None):
    engine = getattr(settings, "ORDER_ENGINE", {}) or {}
    return engine.get(key, default)


# ============================================================
# SELECTIONS (INPUT)
# ============================================================


@dataclass(frozen=True)
class ProductSelection:
    """Buy-now: one product (or one of its variations)."""

    product_id: object
    quantity: int
    variation_id: object = None


@dataclass(frozen=True)
class CartSelection:
    """Checkout every line of the customer's cart."""


# ============================================================
# RESULT (OUTPUT)
# ============================================================


@dataclass(frozen=True)
class PricedLine:
    product: Product
    variation: ProductVariation | None
    quantity: int
    discounted_price: Decimal
    actual_price: Decimal

    @property
    def unit(self):
        return inventory_unit_for(product=self.product, variation=self.variation)

    @property
    def name(self) -> str:
        if self.variation is not None:
            return f"{self.product.name} / {self.variation.name}"
        return self.product.name

    @property
    def line_total(self) -> Decimal:
        return _money(self.discounted_price * self.quantity)


@dataclass(frozen=True)
class PricingResult:
    lines: tuple[PricedLine, ...]
    subtotal: Decimal
    discount: Decimal
    coupon: Coupon | None
    from_cart: bool

    @property
    def net_amount(self) -> Decimal:
        return _money(self.subtotal - self.discount)


# ============================================================
# CATALOG RESOLUTION
# ============================================================


def _load_product(product_id) -> Product:
    try:
        product = Product.objects.filter(pk=product_id, is_active=True).first()
    except (ValueError, DjangoValidationError):
        product = None

    if product is None:
        raise ProductNotFoundError(f"Product {product_id} not found")
    return product


def _load_variation(*, product: Product, variation_id) -> ProductVariation:
    try:
        variation = ProductVariation.objects.filter(
            pk=variation_id,
            product=product,
            is_active=True,
        ).first()
    except (ValueError, DjangoValidationError):
        variation = None

    if variation is None:
        raise ProductNotFoundError(
            f"Variation {variation_id} not found for product {product.name}"
        )
    return variation


def _priced_line(*, product, variation, quantity: int) -> PricedLine:
    unit = inventory_unit_for(product=product, variation=variation)

    available = available_stock(unit)
    if quantity > available:
        raise InsufficientStockError(
            f"Insufficient stock for {unit.name}. "
            f"Available: {available}, Requested: {quantity}"
        )

    return PricedLine(
        product=product,
        variation=variation,
        quantity=quantity,
        discounted_price=_money(unit.discounted_price),
        actual_price=_money(unit.actual_price),
    )


def _validated_quantity(raw) -> int:
    try:
        qty = _to_int_qty(raw)
    except ValueError as exc:
        raise CheckoutValidationError("Quantity must be a whole number.") from exc

    if qty < 1:
        raise CheckoutValidationError("Quantity must be at least 1.")
    return qty


def _price_single(selection: ProductSelection) -> list[PricedLine]:
    qty = _validated_quantity(selection.quantity)
    product = _load_product(selection.product_id)

    variation = None
    if selection.variation_id:
        variation = _load_variation(product=product, variation_id=selection.variation_id)

    return [_priced_line(product=product, variation=variation, quantity=qty)]


def _cart_line_unavailable(line) -> bool:
    if line.product is None or not line.product.is_active:
        return True

    if line.has_variation:
        variation = line.variation
        if variation is None or not variation.is_active:
            return True
        if variation.product_id != line.product_id:
            return True

    return False


def _price_cart(customer) -> list[PricedLine]:
    cart_lines = list_cart_lines(customer=customer)
    if not cart_lines:
        raise EmptyCartError("Cart is empty")

    skip_unavailable = bool(_engine_setting("SKIP_UNAVAILABLE_CART_LINES", False))

    priced: list[PricedLine] = []
    for line in cart_lines:
        if _cart_line_unavailable(line):
            if skip_unavailable:
                logger.warning(
                    "Skipping unavailable cart line",
                    extra={"cart_item_id": str(line.id), "customer_id": str(customer.pk)},
                )
                continue
            raise ProductNotFoundError(
                "A product in your cart is no longer available. "
                "Remove it from the cart and try again."
            )

        priced.append(
            _priced_line(
                product=line.product,
                variation=line.variation if line.has_variation else None,
                quantity=_validated_quantity(line.quantity),
            )
        )

    if not priced:
        raise EmptyCartError("Cart has no available items")

    return priced


# ============================================================
# COUPONS
# ============================================================


def compute_discount(*, coupon: Coupon, amount: Decimal) -> Decimal:
    """
    Flat value or percentage of amount, capped so the net never drops below 0.
    """
    amount = _money(amount)

    if coupon.value_type == Coupon.ValueType.PERCENTAGE:
        discount = _money(amount * Decimal(coupon.value) / Decimal("100"))
    else:
        discount = _money(coupon.value)

    if discount < ZERO:
        discount = ZERO
    return min(discount, amount)


def resolve_coupon(*, coupon_name: str | None, amount: Decimal, now=None) -> tuple[Coupon | None, Decimal]:
    """
    Validate a coupon against the order amount (before discount).

    Returns (coupon, discount); (None, 0.00) when no coupon was supplied.
    """
    name = (coupon_name or "").strip()
    if not name:
        return None, ZERO

    coupon = Coupon.objects.filter(name__iexact=name).first()
    if coupon is None:
        raise CouponNotFoundError(f"Coupon '{name}' is not valid")

    if not coupon.is_active_at(now or timezone.now()):
        raise CouponExpiredError(f"Coupon '{coupon.name}' is expired or not yet active")

    amount = _money(amount)
    minimum = _money(coupon.minimum_spent)
    if amount < minimum:
        raise CouponMinimumSpendError(
            f"Coupon '{coupon.name}' requires a minimum spend of {minimum}"
        )

    return coupon, compute_discount(coupon=coupon, amount=amount)


# ============================================================
# TAX
# ============================================================


def compute_tax(net_amount: Decimal) -> Decimal:
    raw = _engine_setting("TAX_RATE", "0.00") or "0.00"
    try:
        rate = Decimal(str(raw))
    except InvalidOperation:
        rate = ZERO

    if rate <= ZERO:
        return ZERO
    return _money(_money(net_amount) * rate)


# ============================================================
# ENTRYPOINT
# ============================================================


def price_selection(*, customer, selection, coupon_name: str | None = None) -> PricingResult:
    if isinstance(selection, ProductSelection):
        lines = _price_single(selection)
        from_cart = False
    elif isinstance(selection, CartSelection):
        lines = _price_cart(customer)
        from_cart = True
    else:
        raise CheckoutValidationError("Unsupported selection")

    subtotal = _money(sum((line.line_total for line in lines), ZERO))
    coupon, discount = resolve_coupon(coupon_name=coupon_name, amount=subtotal)

    return PricingResult(
        lines=tuple(lines),
        subtotal=subtotal,
        discount=discount,
        coupon=coupon,
        from_cart=from_cart,
    )
