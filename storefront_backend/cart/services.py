# cart/services.py

"""
CART STORE (collaborator used by the order engine)

- list_cart_lines(): the customer's lines, with catalog rows pre-joined.
- clear_cart(): delete every line; callers run it inside the checkout
  transaction so a failed checkout leaves the cart untouched.
"""

from __future__ import annotations

from cart.models import CartItem


def list_cart_lines(*, customer) -> list[CartItem]:
    return list(
        CartItem.objects.filter(customer=customer)
        .select_related("product", "variation", "variation__product")
        .order_by("created_at")
    )


def clear_cart(*, customer) -> int:
    deleted, _ = CartItem.objects.filter(customer=customer).delete()
    return deleted
