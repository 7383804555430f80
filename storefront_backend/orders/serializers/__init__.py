from .commands import (
    CancelOrderInputSerializer,
    CheckoutInputSerializer,
    OrderStatusInputSerializer,
    TrackingUpdateInputSerializer,
)
from .order import OrderItemSerializer, OrderSerializer, TrackingDetailSerializer

__all__ = [
    "CancelOrderInputSerializer",
    "CheckoutInputSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "OrderStatusInputSerializer",
    "TrackingDetailSerializer",
    "TrackingUpdateInputSerializer",
]
