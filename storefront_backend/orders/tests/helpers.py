# orders/tests/helpers.py

"""
Shared fixtures for order engine tests (plain functions, no factory library).
"""

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from cart.models import CartItem
from catalog.models import Product, ProductVariation
from coupons.models import Coupon
from customers.models import CustomerProfile, ShippingAddress
from delivery.models import DeliveryCharge

User = get_user_model()


def make_product(*, name="Linen Shirt", price="100.00", actual="120.00", stock=10, **extra):
    return Product.objects.create(
        name=name,
        discounted_price=Decimal(price),
        actual_price=Decimal(actual),
        stock_count=stock,
        **extra,
    )


def make_variation(product, *, name="Large", price="110.00", actual="130.00", stock=5, **extra):
    return ProductVariation.objects.create(
        product=product,
        name=name,
        discounted_price=Decimal(price),
        actual_price=Decimal(actual),
        stock_count=stock,
        **extra,
    )


def make_customer(*, username="buyer", email="buyer@example.com", phone=None):
    user = User.objects.create_user(username=username, email=email, password="pass")
    customer = CustomerProfile.objects.create(
        user=user,
        name=username.title(),
        email=email,
        phone=phone,
        push_token=f"token-{username}",
    )
    return user, customer


def make_address(customer, *, postal_code="12345"):
    return ShippingAddress.objects.create(
        customer=customer,
        name=customer.name,
        phone="+96550000000",
        address_line="Block 1, Street 2, House 3",
        city="Kuwait City",
        postal_code=postal_code,
        is_default=True,
    )


def make_delivery_charge(*, postal_code="12345", fee="50.00"):
    return DeliveryCharge.objects.create(postal_code=postal_code, delivery_charge=Decimal(fee))


def make_coupon(
    *,
    name="SAVE50",
    value="50.00",
    value_type=Coupon.ValueType.AMOUNT,
    minimum_spent="0.00",
    usage_limit_per_person=1,
    usage_limit=None,
    starts_in_days=-1,
    ends_in_days=7,
):
    now = timezone.now()
    return Coupon.objects.create(
        name=name,
        value=Decimal(value),
        value_type=value_type,
        minimum_spent=Decimal(minimum_spent),
        usage_limit_per_person=usage_limit_per_person,
        usage_limit=usage_limit,
        valid_from=now + timedelta(days=starts_in_days),
        valid_till=now + timedelta(days=ends_in_days),
    )


def add_to_cart(customer, product, *, quantity=1, variation=None):
    return CartItem.objects.create(
        customer=customer,
        product=product,
        variation=variation,
        quantity=quantity,
    )
