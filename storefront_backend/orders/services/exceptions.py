# orders/services/exceptions.py

"""
ORDER ENGINE ERRORS

Centralized domain errors for checkout, tracking and cancellation.

Families (the HTTP layer maps each family to one status code):
- CheckoutValidationError      -> 400
- OrderEngineNotFound          -> 404
- BusinessRuleError            -> 409
- PaymentError                 -> 502
- CheckoutRetryableError       -> 503
"""


class OrderEngineError(Exception):
    """Base exception for all order engine failures."""


# ============================================================
# VALIDATION
# ============================================================


class CheckoutValidationError(OrderEngineError):
    """Malformed request: bad quantity, missing address, bad payment method..."""


# ============================================================
# NOT FOUND
# ============================================================


class OrderEngineNotFound(OrderEngineError):
    """A referenced record does not exist (or is not visible to the caller)."""


class ProductNotFoundError(OrderEngineNotFound):
    pass


class AddressNotFoundError(OrderEngineNotFound):
    pass


class OrderNotFoundError(OrderEngineNotFound):
    pass


# ============================================================
# BUSINESS RULES / CONFLICTS
# ============================================================


class BusinessRuleError(OrderEngineError):
    """Well-formed request that the current state of the system refuses."""


class InsufficientStockError(BusinessRuleError):
    pass


class EmptyCartError(BusinessRuleError):
    pass


class InvalidCouponError(BusinessRuleError):
    pass


class CouponNotFoundError(OrderEngineNotFound, InvalidCouponError):
    """Unknown coupon name. Reported as not-found."""


class CouponExpiredError(InvalidCouponError):
    pass


class CouponMinimumSpendError(InvalidCouponError):
    pass


class CouponLimitExceededError(InvalidCouponError):
    pass


class UndeliverableLocationError(BusinessRuleError):
    pass


class InvalidOrderTransitionError(BusinessRuleError):
    pass


class OrderNotCancellableError(InvalidOrderTransitionError):
    pass


class PaymentReferenceReusedError(BusinessRuleError):
    pass


# ============================================================
# PAYMENT GATEWAY
# ============================================================


class PaymentError(OrderEngineError):
    """Base for failures reported by (or talking to) the payment gateway."""


class PaymentNotCompletedError(PaymentError):
    pass


class PaymentVerificationFailedError(PaymentError):
    pass


class PaymentMismatchError(PaymentError):
    pass


# ============================================================
# TRANSIENT
# ============================================================


class CheckoutRetryableError(OrderEngineError):
    """Database conflict during commit; nothing was written, retry from pricing."""
