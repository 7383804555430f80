from .order import Order, OrderStatus, PaymentMethod, PaymentStatus
from .order_item import OrderItem
from .tracking_detail import TrackingDetail, TrackingStatus

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "TrackingDetail",
    "TrackingStatus",
]
