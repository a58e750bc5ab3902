# backend/modules/tenants/models/__init__.py

from .tenant_models import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    Tenant,
    User,
    UserRole,
)

__all__ = [
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Tenant",
    "User",
    "UserRole",
]
