# orders/tests/test_pricing.py

from decimal import Decimal

from django.test import TestCase, override_settings

from catalog.models import Product
from coupons.models import Coupon
from orders.services.exceptions import (
    CheckoutValidationError,
    CouponExpiredError,
    CouponMinimumSpendError,
    CouponNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    InvalidCouponError,
    OrderEngineNotFound,
    ProductNotFoundError,
)
from orders.services.pricing import (
    CartSelection,
    ProductSelection,
    compute_discount,
    compute_tax,
    price_selection,
    resolve_coupon,
)
from orders.tests.helpers import (
    add_to_cart,
    make_coupon,
    make_customer,
    make_product,
    make_variation,
)


class SingleProductPricingTests(TestCase):
    """
    GUARANTEES:
    - amount = discounted_price * quantity
    - quantity < 1 is a validation error
    - quantity > available stock is Insufficient-Stock
    - pricing has no side effects
    """

    def setUp(self):
        _, self.customer = make_customer()
        self.product = make_product(price="100.00", stock=10)

    def test_amount_is_price_times_quantity(self):
        result = price_selection(
            customer=self.customer,
            selection=ProductSelection(product_id=self.product.id, quantity=2),
        )

        self.assertEqual(result.subtotal, Decimal("200.00"))
        self.assertEqual(result.discount, Decimal("0.00"))
        self.assertEqual(result.net_amount, Decimal("200.00"))
        self.assertEqual(len(result.lines), 1)
        self.assertFalse(result.from_cart)

    def test_variation_price_is_used(self):
        variation = make_variation(self.product, price="110.00", stock=5)

        result = price_selection(
            customer=self.customer,
            selection=ProductSelection(
                product_id=self.product.id,
                quantity=1,
                variation_id=variation.id,
            ),
        )

        self.assertEqual(result.subtotal, Decimal("110.00"))
        self.assertEqual(result.lines[0].variation, variation)

    def test_variation_of_another_product_is_not_found(self):
        other = make_product(name="Other")
        foreign = make_variation(other)

        with self.assertRaises(ProductNotFoundError):
            price_selection(
                customer=self.customer,
                selection=ProductSelection(
                    product_id=self.product.id,
                    quantity=1,
                    variation_id=foreign.id,
                ),
            )

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(CheckoutValidationError):
            price_selection(
                customer=self.customer,
                selection=ProductSelection(product_id=self.product.id, quantity=0),
            )

    def test_quantity_above_stock_is_rejected(self):
        with self.assertRaises(InsufficientStockError):
            price_selection(
                customer=self.customer,
                selection=ProductSelection(product_id=self.product.id, quantity=11),
            )

    def test_inactive_product_is_not_found(self):
        Product.objects.filter(pk=self.product.pk).update(is_active=False)

        with self.assertRaises(ProductNotFoundError):
            price_selection(
                customer=self.customer,
                selection=ProductSelection(product_id=self.product.id, quantity=1),
            )

    def test_pricing_does_not_touch_stock(self):
        price_selection(
            customer=self.customer,
            selection=ProductSelection(product_id=self.product.id, quantity=3),
        )

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_count, 10)


class CartPricingTests(TestCase):
    """
    GUARANTEES:
    - Empty cart is rejected
    - Every line is priced from the catalog (variation when set)
    - Vanished / deactivated lines fail the checkout by default
    - The tolerant skip only applies when enabled
    """

    def setUp(self):
        _, self.customer = make_customer()
        self.shirt = make_product(name="Shirt", price="100.00", stock=10)
        self.hat = make_product(name="Hat", price="25.00", stock=10)

    def test_empty_cart_is_rejected(self):
        with self.assertRaises(EmptyCartError):
            price_selection(customer=self.customer, selection=CartSelection())

    def test_lines_are_accumulated(self):
        add_to_cart(self.customer, self.shirt, quantity=2)
        add_to_cart(self.customer, self.hat, quantity=1)

        result = price_selection(customer=self.customer, selection=CartSelection())

        self.assertEqual(result.subtotal, Decimal("225.00"))
        self.assertTrue(result.from_cart)
        self.assertEqual(len(result.lines), 2)

    def test_per_line_stock_is_checked(self):
        add_to_cart(self.customer, self.shirt, quantity=11)

        with self.assertRaises(InsufficientStockError):
            price_selection(customer=self.customer, selection=CartSelection())

    def test_deleted_product_fails_checkout(self):
        add_to_cart(self.customer, self.shirt, quantity=1)
        add_to_cart(self.customer, self.hat, quantity=1)
        self.hat.delete()

        with self.assertRaises(OrderEngineNotFound):
            price_selection(customer=self.customer, selection=CartSelection())

    def test_deleted_variation_does_not_fall_back_to_base_product(self):
        large = make_variation(self.shirt, name="Large", price="130.00")
        add_to_cart(self.customer, self.shirt, quantity=1, variation=large)
        large.delete()

        with self.assertRaises(ProductNotFoundError):
            price_selection(customer=self.customer, selection=CartSelection())

    def test_deactivated_product_fails_checkout(self):
        add_to_cart(self.customer, self.shirt, quantity=1)
        Product.objects.filter(pk=self.shirt.pk).update(is_active=False)

        with self.assertRaises(ProductNotFoundError):
            price_selection(customer=self.customer, selection=CartSelection())

    @override_settings(
        ORDER_ENGINE={"CURRENCY": "KWD", "TAX_RATE": "0", "SKIP_UNAVAILABLE_CART_LINES": True}
    )
    def test_unavailable_lines_are_skipped_when_enabled(self):
        add_to_cart(self.customer, self.shirt, quantity=1)
        add_to_cart(self.customer, self.hat, quantity=1)
        self.hat.delete()

        result = price_selection(customer=self.customer, selection=CartSelection())

        self.assertEqual(result.subtotal, Decimal("100.00"))
        self.assertEqual(len(result.lines), 1)

    @override_settings(
        ORDER_ENGINE={"CURRENCY": "KWD", "TAX_RATE": "0", "SKIP_UNAVAILABLE_CART_LINES": True}
    )
    def test_cart_of_only_unavailable_lines_is_empty(self):
        add_to_cart(self.customer, self.hat, quantity=1)
        self.hat.delete()

        with self.assertRaises(EmptyCartError):
            price_selection(customer=self.customer, selection=CartSelection())


class CouponResolutionTests(TestCase):
    """
    GUARANTEES:
    - Unknown coupon is not found; expired / not-yet-valid is rejected
    - amount must reach minimum_spent (499 < 500 rejected, 500 accepted)
    - discount is capped at the amount (flat 50 on 10 -> 10, net 0)
    """

    def test_no_coupon_means_no_discount(self):
        self.assertEqual(resolve_coupon(coupon_name="", amount=Decimal("10")), (None, Decimal("0.00")))

    def test_unknown_coupon(self):
        with self.assertRaises(CouponNotFoundError):
            resolve_coupon(coupon_name="NOPE", amount=Decimal("100"))

    def test_unknown_coupon_is_also_a_coupon_error(self):
        with self.assertRaises(InvalidCouponError):
            resolve_coupon(coupon_name="NOPE", amount=Decimal("100"))

    def test_expired_coupon(self):
        make_coupon(name="OLD", starts_in_days=-10, ends_in_days=-1)

        with self.assertRaises(CouponExpiredError):
            resolve_coupon(coupon_name="OLD", amount=Decimal("100"))

    def test_not_yet_active_coupon(self):
        make_coupon(name="SOON", starts_in_days=1, ends_in_days=10)

        with self.assertRaises(CouponExpiredError):
            resolve_coupon(coupon_name="SOON", amount=Decimal("100"))

    def test_minimum_spend_boundary(self):
        make_coupon(name="MIN500", value="50.00", minimum_spent="500.00")

        with self.assertRaises(CouponMinimumSpendError):
            resolve_coupon(coupon_name="MIN500", amount=Decimal("499.00"))

        coupon, discount = resolve_coupon(coupon_name="MIN500", amount=Decimal("500.00"))
        self.assertEqual(coupon.name, "MIN500")
        self.assertEqual(discount, Decimal("50.00"))

    def test_coupon_name_is_case_insensitive(self):
        make_coupon(name="SAVE50")

        coupon, _ = resolve_coupon(coupon_name="  save50 ", amount=Decimal("100"))
        self.assertEqual(coupon.name, "SAVE50")

    def test_flat_discount_is_capped_at_amount(self):
        coupon = make_coupon(name="FLAT50", value="50.00")

        self.assertEqual(compute_discount(coupon=coupon, amount=Decimal("10.00")), Decimal("10.00"))

    def test_percentage_discount(self):
        coupon = make_coupon(name="TEN", value="10", value_type=Coupon.ValueType.PERCENTAGE)

        self.assertEqual(compute_discount(coupon=coupon, amount=Decimal("199.99")), Decimal("20.00"))

    def test_cart_pricing_applies_coupon(self):
        _, customer = make_customer()
        product = make_product(price="10.00", stock=5)
        make_coupon(name="FLAT50", value="50.00")

        result = price_selection(
            customer=customer,
            selection=ProductSelection(product_id=product.id, quantity=1),
            coupon_name="FLAT50",
        )

        self.assertEqual(result.discount, Decimal("10.00"))
        self.assertEqual(result.net_amount, Decimal("0.00"))


class TaxTests(TestCase):
    def test_default_rate_is_zero(self):
        with override_settings(ORDER_ENGINE={"TAX_RATE": "0.00"}):
            self.assertEqual(compute_tax(Decimal("250.00")), Decimal("0.00"))

    @override_settings(ORDER_ENGINE={"TAX_RATE": "0.05"})
    def test_rate_applies_to_net_amount(self):
        self.assertEqual(compute_tax(Decimal("199.90")), Decimal("10.00"))
