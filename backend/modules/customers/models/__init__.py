# backend/modules/customers/models/__init__.py

from .customer_models import Customer, LoyaltyTier, TIER_ORDER

__all__ = ["Customer", "LoyaltyTier", "TIER_ORDER"]
