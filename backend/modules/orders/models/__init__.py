# backend/modules/orders/models/__init__.py

from .order_models import ACTIVE_STATUSES, Order, OrderItem, OrderStatus, PaymentStatus

__all__ = ["ACTIVE_STATUSES", "Order", "OrderItem", "OrderStatus", "PaymentStatus"]
