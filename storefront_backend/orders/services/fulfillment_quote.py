# orders/services/fulfillment_quote.py

"""
FULFILLMENT QUOTE RESOLVER

- Delivery fee is a flat amount per destination postal code.
- No configured fee for the postal code = the store does not deliver there.
  That is a hard failure, never a silent zero.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from delivery.models import DeliveryCharge
from orders.services.exceptions import CheckoutValidationError, UndeliverableLocationError

TWOPLACES = Decimal("0.01")


def _normalize_postal_code(postal_code) -> str:
    return str(postal_code or "").strip().upper()


def quote_delivery_fee(postal_code) -> Decimal:
    code = _normalize_postal_code(postal_code)
    if not code:
        raise CheckoutValidationError("Shipping address has no postal code")

    fee = (
        DeliveryCharge.objects.filter(postal_code__iexact=code)
        .values_list("delivery_charge", flat=True)
        .first()
    )
    if fee is None:
        raise UndeliverableLocationError(f"We do not deliver to postal code {code}")

    return Decimal(str(fee)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
