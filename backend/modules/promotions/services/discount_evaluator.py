# backend/modules/promotions/services/discount_evaluator.py

"""
Pure coupon validation and campaign applicability rules.

Every rejection is returned as data with a message the customer menu can
show directly; nothing here raises for a business-rule failure.
"""

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Any, Dict, Optional

from modules.customers.models.customer_models import LoyaltyTier

from ..models.promotion_models import CampaignStatus, CampaignType, DiscountType

MSG_NOT_FOUND = "Geçersiz kupon kodu"
MSG_INACTIVE = "Bu kupon artık geçerli değil"
MSG_NOT_STARTED = "Bu kupon henüz aktif değil"
MSG_EXPIRED = "Bu kuponun süresi dolmuş"
MSG_USAGE_LIMIT = "Bu kuponun kullanım limiti dolmuş"
MSG_CUSTOMER_LIMIT = "Bu kuponu daha önce kullandınız"
MSG_CAMPAIGN_INACTIVE = "Bu kampanya şu an aktif değil"
MSG_APPLIED = "Kupon uygulandı!"

_CENT = Decimal("0.01")


def _dec(value) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def format_amount(value: Decimal) -> str:
    """100.00 -> "100", 99.50 -> "99.5" """
    text = f"{value:.2f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def normalize_code(code: str) -> str:
    return "".join(code.split()).upper()


@dataclass
class DiscountTerms:
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Decimal
    max_discount: Optional[Decimal] = None


@dataclass
class CouponValidationResult:
    valid: bool
    message: str
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    min_order_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None

    @classmethod
    def reject(cls, message: str) -> "CouponValidationResult":
        return cls(valid=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        if not self.valid:
            return {"valid": False, "message": self.message}
        return {
            "valid": True,
            "discount_type": self.discount_type.value,
            "discount_value": self.discount_value,
            "min_order_amount": self.min_order_amount,
            "max_discount": self.max_discount,
            "discount_amount": self.discount_amount,
            "message": self.message,
        }


def effective_terms(coupon, campaign=None) -> DiscountTerms:
    """Campaign terms override the coupon's when the coupon is linked"""
    if campaign is not None:
        return DiscountTerms(
            discount_type=(
                DiscountType.PERCENT
                if campaign.type == CampaignType.DISCOUNT_PERCENT
                else DiscountType.AMOUNT
            ),
            discount_value=_dec(campaign.discount_value) or Decimal("0"),
            min_order_amount=_dec(campaign.min_order_amount) or Decimal("0"),
            max_discount=_dec(campaign.max_discount),
        )
    return DiscountTerms(
        discount_type=DiscountType(coupon.discount_type or DiscountType.PERCENT),
        discount_value=_dec(coupon.discount_value) or Decimal("0"),
        min_order_amount=_dec(coupon.min_order_amount) or Decimal("0"),
        max_discount=_dec(coupon.max_discount),
    )


def compute_discount(terms: DiscountTerms, order_total) -> Decimal:
    """Discount never exceeds the order total or, for percent, max_discount"""
    total = _dec(order_total) or Decimal("0")
    if terms.discount_type == DiscountType.PERCENT:
        amount = (total * terms.discount_value / Decimal("100")).quantize(_CENT)
        if terms.max_discount is not None and terms.max_discount > 0:
            amount = min(amount, terms.max_discount)
    else:
        amount = terms.discount_value
    return max(min(amount, total), Decimal("0"))


def validate_coupon(
    coupon,
    order_total=None,
    customer_usage_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CouponValidationResult:
    """
    Run the coupon checks in order and return the first rejection.

    ``customer_usage_count`` is the number of earlier redemptions by the
    requesting customer, or None when the customer is anonymous.
    """
    now = now or datetime.utcnow()

    if coupon is None:
        return CouponValidationResult.reject(MSG_NOT_FOUND)
    if not coupon.is_active:
        return CouponValidationResult.reject(MSG_INACTIVE)
    if coupon.start_date is not None and coupon.start_date > now:
        return CouponValidationResult.reject(MSG_NOT_STARTED)
    if coupon.end_date is not None and coupon.end_date < now:
        return CouponValidationResult.reject(MSG_EXPIRED)
    if coupon.usage_limit > 0 and coupon.used_count >= coupon.usage_limit:
        return CouponValidationResult.reject(MSG_USAGE_LIMIT)
    if (
        customer_usage_count is not None
        and coupon.per_customer_limit > 0
        and customer_usage_count >= coupon.per_customer_limit
    ):
        return CouponValidationResult.reject(MSG_CUSTOMER_LIMIT)

    campaign = coupon.campaign
    if campaign is not None and campaign.status != CampaignStatus.ACTIVE:
        return CouponValidationResult.reject(MSG_CAMPAIGN_INACTIVE)

    terms = effective_terms(coupon, campaign)
    total = _dec(order_total)
    if total is not None and terms.min_order_amount > 0 and total < terms.min_order_amount:
        return CouponValidationResult.reject(
            f"Minimum sipariş tutarı ₺{format_amount(terms.min_order_amount)}"
        )

    return CouponValidationResult(
        valid=True,
        message=MSG_APPLIED,
        discount_type=terms.discount_type,
        discount_value=terms.discount_value,
        min_order_amount=terms.min_order_amount,
        max_discount=terms.max_discount,
        discount_amount=compute_discount(terms, total) if total is not None else None,
    )


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def within_hours(now: datetime, valid_from: Optional[str], valid_to: Optional[str]) -> bool:
    """Inclusive HH:MM window; a window whose start is after its end wraps midnight"""
    if not valid_from or not valid_to:
        return True
    start, end = _parse_hhmm(valid_from), _parse_hhmm(valid_to)
    current = now.time().replace(second=0, microsecond=0)
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def sunday_based_weekday(now: datetime) -> int:
    """0 = Sunday .. 6 = Saturday"""
    return (now.weekday() + 1) % 7


def campaign_applicable(
    campaign,
    now: Optional[datetime] = None,
    customer_tier: Optional[LoyaltyTier] = None,
    is_first_order: Optional[bool] = None,
) -> bool:
    """Whether a campaign can be offered right now to this (optional) customer"""
    now = now or datetime.utcnow()

    if campaign.status != CampaignStatus.ACTIVE:
        return False
    if campaign.start_date is not None and campaign.start_date > now:
        return False
    if campaign.end_date is not None and campaign.end_date < now:
        return False
    if campaign.valid_days and sunday_based_weekday(now) not in campaign.valid_days:
        return False
    if not within_hours(now, campaign.valid_hours_from, campaign.valid_hours_to):
        return False
    if campaign.target_tiers:
        tier = LoyaltyTier(customer_tier or LoyaltyTier.BRONZE)
        if tier.value not in campaign.target_tiers:
            return False
    if campaign.is_first_order_only and is_first_order is False:
        return False
    if campaign.usage_limit > 0 and campaign.used_count >= campaign.usage_limit:
        return False
    return True
