# orders/views/errors.py

"""
ORDER ENGINE ERROR -> HTTP

Every service error family maps to exactly one status code.
Order matters: CouponNotFoundError is both not-found and a coupon rule error,
and must surface as 404.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from orders.services.exceptions import (
    BusinessRuleError,
    CheckoutRetryableError,
    CheckoutValidationError,
    OrderEngineError,
    OrderEngineNotFound,
    PaymentError,
    PaymentMismatchError,
    PaymentNotCompletedError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (CheckoutValidationError, status.HTTP_400_BAD_REQUEST),
    (OrderEngineNotFound, status.HTTP_404_NOT_FOUND),
    (BusinessRuleError, status.HTTP_409_CONFLICT),
    # customer-side payment problems, not gateway failures
    (PaymentNotCompletedError, status.HTTP_402_PAYMENT_REQUIRED),
    (PaymentMismatchError, status.HTTP_409_CONFLICT),
    (PaymentError, status.HTTP_502_BAD_GATEWAY),
    (CheckoutRetryableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def engine_error_response(exc: OrderEngineError) -> Response:
    for error_class, http_status in ERROR_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        http_status = status.HTTP_400_BAD_REQUEST

    logger.info(
        "Order engine request rejected",
        extra={"error": exc.__class__.__name__, "status_code": http_status},
    )
    return Response(
        {"detail": str(exc), "code": exc.__class__.__name__},
        status=http_status,
    )
