# customers/services.py

from __future__ import annotations

from customers.models import CustomerProfile


def customer_for_user(user) -> CustomerProfile:
    """The buyer profile behind an authenticated user (opened on first use)."""
    profile, _ = CustomerProfile.objects.get_or_create(
        user=user,
        defaults={
            "name": user.get_full_name() or user.get_username(),
            "email": user.email or "",
        },
    )
    return profile
