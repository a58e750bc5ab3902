# backend/modules/promotions/models/__init__.py

from .promotion_models import (
    Campaign,
    CampaignStatus,
    CampaignType,
    Coupon,
    CouponUsage,
    DiscountType,
)

__all__ = [
    "Campaign",
    "CampaignStatus",
    "CampaignType",
    "Coupon",
    "CouponUsage",
    "DiscountType",
]
