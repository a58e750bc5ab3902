# backend/modules/loyalty/models/__init__.py

from .loyalty_models import (
    LoyaltyConfig,
    LoyaltyReward,
    LoyaltyTransaction,
    RewardType,
    TransactionType,
)

__all__ = [
    "LoyaltyConfig",
    "LoyaltyReward",
    "LoyaltyTransaction",
    "RewardType",
    "TransactionType",
]
