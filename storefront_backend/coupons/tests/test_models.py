# coupons/tests/test_models.py

from datetime import timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from coupons.models import Coupon
from orders.tests.helpers import make_coupon


class CouponModelTests(TestCase):
    """
    GUARANTEES:
    - The validity window is inclusive on both ends
    - Inverted windows and percentages above 100 are rejected
    """

    def test_window_is_inclusive(self):
        coupon = make_coupon(name="WINDOW")

        self.assertTrue(coupon.is_active_at(coupon.valid_from))
        self.assertTrue(coupon.is_active_at(coupon.valid_till))
        self.assertFalse(coupon.is_active_at(coupon.valid_till + timedelta(seconds=1)))
        self.assertFalse(coupon.is_active_at(coupon.valid_from - timedelta(seconds=1)))

    def test_future_coupon_is_not_active_yet(self):
        coupon = make_coupon(name="SOON", starts_in_days=2, ends_in_days=5)

        self.assertFalse(coupon.is_active_at())

    def test_inverted_window_rejected(self):
        now = timezone.now()
        coupon = Coupon(name="BACKWARDS", value="5.00", valid_from=now, valid_till=now - timedelta(days=1))

        with self.assertRaises(ValidationError):
            coupon.full_clean()

    def test_percentage_over_hundred_rejected(self):
        now = timezone.now()
        coupon = Coupon(
            name="TOOMUCH",
            value="150.00",
            value_type=Coupon.ValueType.PERCENTAGE,
            valid_from=now,
            valid_till=now + timedelta(days=1),
        )

        with self.assertRaises(ValidationError):
            coupon.full_clean()
