# catalog/services/inventory.py

"""
======================================================
PATH: catalog/services/inventory.py
======================================================
INVENTORY COUNTER ENGINE

Purpose:
- Reserve stock for order lines with an atomic conditional decrement:
      UPDATE ... SET stock_count = stock_count - q
      WHERE id = ... AND stock_count >= q
  Zero rows affected means somebody else got there first (or stock was short).
- Return stock (cancellation) with an atomic increment.

Rules:
- Quantities are integer units (>= 1).
- Counters are never read-modified-written in Python; the database does the
  arithmetic, so two buyers contending for the last unit cannot both succeed.
- Units are locked in a deterministic order (model label, pk) to avoid
  deadlocks between concurrent multi-line checkouts.
- The DB check constraint (stock_count >= 0) is the last line of defence.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F

from catalog.models import Product, ProductVariation

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================


class StockDecrementError(Exception):
    """Conditional decrement matched no row (insufficient or vanished stock)."""

    def __init__(self, *, unit, requested: int):
        self.unit = unit
        self.requested = requested
        name = getattr(unit, "name", None) or "product"
        super().__init__(f"Insufficient stock for {name}. Requested: {requested}")


@dataclass(frozen=True)
class StockLine:
    """One quantity-bound claim against an inventory counter."""

    unit: Product | ProductVariation
    quantity: int


def inventory_unit_for(*, product, variation=None):
    """
    The counter that a line item draws from: the variation when one is set,
    otherwise the base product.
    """
    return variation if variation is not None else product


def available_stock(unit) -> int:
    """Fresh read of the counter (never trust a cached instance)."""
    value = (
        unit.__class__.objects.filter(pk=unit.pk)
        .values_list("stock_count", flat=True)
        .first()
    )
    return int(value or 0)


def _unit_key(unit) -> tuple[str, str]:
    return (unit._meta.label_lower, str(unit.pk))


def merge_stock_lines(lines) -> list[StockLine]:
    """
    Collapse duplicate claims on the same counter and sort them into lock order.
    """
    merged: "OrderedDict[tuple[str, str], StockLine]" = OrderedDict()
    for line in lines:
        qty = int(line.quantity)
        if qty <= 0:
            raise ValueError("quantity must be a whole integer unit >= 1")

        key = _unit_key(line.unit)
        existing = merged.get(key)
        if existing is None:
            merged[key] = StockLine(unit=line.unit, quantity=qty)
        else:
            merged[key] = StockLine(unit=existing.unit, quantity=existing.quantity + qty)

    return [merged[k] for k in sorted(merged)]


def decrement_stock(*, unit, quantity: int) -> None:
    """
    Atomic "subtract if sufficient". Raises StockDecrementError when the
    conditional update affects zero rows.
    """
    qty = int(quantity)
    if qty <= 0:
        raise ValueError("quantity must be a whole integer unit >= 1")

    updated = unit.__class__.objects.filter(
        pk=unit.pk,
        is_active=True,
        stock_count__gte=qty,
    ).update(stock_count=F("stock_count") - qty)

    if updated != 1:
        logger.info(
            "Conditional stock decrement rejected",
            extra={"unit": _unit_key(unit), "requested": qty},
        )
        raise StockDecrementError(unit=unit, requested=qty)


def increment_stock(*, unit, quantity: int) -> None:
    qty = int(quantity)
    if qty <= 0:
        raise ValueError("quantity must be a whole integer unit >= 1")

    unit.__class__.objects.filter(pk=unit.pk).update(stock_count=F("stock_count") + qty)


@transaction.atomic
def reserve_stock(lines) -> list[StockLine]:
    """
    Decrement every line or none of them.

    Runs in (or joins) a transaction: the first rejected decrement raises and
    rolls back every decrement already applied in this block.
    """
    merged = merge_stock_lines(lines)
    for line in merged:
        decrement_stock(unit=line.unit, quantity=line.quantity)
    return merged


@transaction.atomic
def release_stock(lines) -> list[StockLine]:
    """Put reserved units back (order cancellation)."""
    merged = merge_stock_lines(lines)
    for line in merged:
        increment_stock(unit=line.unit, quantity=line.quantity)
    return merged
