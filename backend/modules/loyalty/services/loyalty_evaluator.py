# backend/modules/loyalty/services/loyalty_evaluator.py

"""
Pure loyalty rules: tiers, accrual and redemption eligibility.

Nothing here touches the database. ``config`` is anything exposing the
LoyaltyConfig attributes (the ORM row or a stand-in in tests) and all
money arithmetic is done with ``Decimal``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from enum import Enum
from typing import Optional, Tuple

from modules.customers.models.customer_models import TIER_ORDER, LoyaltyTier

from ..models.loyalty_models import RewardType


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class RedemptionError(str, Enum):
    INSUFFICIENT_POINTS = "InsufficientPoints"
    TIER_NOT_ELIGIBLE = "TierNotEligible"
    REWARD_EXHAUSTED = "RewardExhausted"
    REWARD_INACTIVE = "RewardInactive"

    @property
    def message(self) -> str:
        return _REDEMPTION_MESSAGES[self]


_REDEMPTION_MESSAGES = {
    RedemptionError.INSUFFICIENT_POINTS: "Yetersiz puan",
    RedemptionError.TIER_NOT_ELIGIBLE: "Bu ödül için üyelik seviyeniz yeterli değil",
    RedemptionError.REWARD_EXHAUSTED: "Ödül kullanım limiti dolmuş",
    RedemptionError.REWARD_INACTIVE: "Bu ödül artık geçerli değil",
}


@dataclass
class AccrualResult:
    points: int
    multiplier: Decimal
    previous_tier: LoyaltyTier
    new_tier: LoyaltyTier
    new_total_spent: Decimal

    @property
    def tier_changed(self) -> bool:
        return self.previous_tier != self.new_tier


def calculate_tier(total_spent, config) -> LoyaltyTier:
    """Tier implied by cumulative spend under ascending thresholds"""
    spent = to_decimal(total_spent)
    if spent >= to_decimal(config.platinum_threshold):
        return LoyaltyTier.PLATINUM
    if spent >= to_decimal(config.gold_threshold):
        return LoyaltyTier.GOLD
    if spent >= to_decimal(config.silver_threshold):
        return LoyaltyTier.SILVER
    return LoyaltyTier.BRONZE


def tier_multiplier(tier: LoyaltyTier, config) -> Decimal:
    multipliers = {
        LoyaltyTier.BRONZE: config.bronze_multiplier,
        LoyaltyTier.SILVER: config.silver_multiplier,
        LoyaltyTier.GOLD: config.gold_multiplier,
        LoyaltyTier.PLATINUM: config.platinum_multiplier,
    }
    value = multipliers.get(LoyaltyTier(tier))
    return to_decimal(value) if value is not None else Decimal("1")


def calculate_accrual(config, current_tier: LoyaltyTier, total_spent, order_total) -> AccrualResult:
    """
    Points earned for a completed order and the customer's resulting tier.

    points = floor(order_total * points_per_spent * multiplier[current_tier]),
    zero when the order is below min_spend_for_points or the program is
    inactive. Spend always accumulates.
    """
    current_tier = LoyaltyTier(current_tier)
    order_total = to_decimal(order_total)
    new_total_spent = to_decimal(total_spent) + order_total

    if config is None:
        return AccrualResult(0, Decimal("1"), current_tier, current_tier, new_total_spent)

    multiplier = tier_multiplier(current_tier, config)
    points = 0
    if config.is_active and order_total >= to_decimal(config.min_spend_for_points):
        raw = order_total * to_decimal(config.points_per_spent) * multiplier
        points = int(raw.to_integral_value(rounding=ROUND_FLOOR))

    return AccrualResult(
        points=max(points, 0),
        multiplier=multiplier,
        previous_tier=current_tier,
        new_tier=calculate_tier(new_total_spent, config),
        new_total_spent=new_total_spent,
    )


def check_redemption(
    points_balance: int,
    tier: LoyaltyTier,
    reward,
    now: Optional[datetime] = None,
) -> Optional[RedemptionError]:
    """First failing eligibility check, or None when the reward can be redeemed"""
    now = now or datetime.utcnow()

    if points_balance < reward.points_cost:
        return RedemptionError.INSUFFICIENT_POINTS
    if LoyaltyTier(tier).rank < LoyaltyTier(reward.min_tier).rank:
        return RedemptionError.TIER_NOT_ELIGIBLE
    if reward.usage_limit > 0 and reward.used_count >= reward.usage_limit:
        return RedemptionError.REWARD_EXHAUSTED
    if not reward.is_active or (reward.valid_until is not None and reward.valid_until < now):
        return RedemptionError.REWARD_INACTIVE
    return None


def reward_value(reward_type: RewardType, value, order_total=None) -> Decimal:
    """Monetary value of a reward against an order total"""
    value = to_decimal(value)
    if RewardType(reward_type) == RewardType.DISCOUNT_PERCENT:
        total = to_decimal(order_total)
        return min((total * value / Decimal("100")).quantize(Decimal("0.01")), total)
    return value


def next_tier(tier: LoyaltyTier, total_spent, config) -> Tuple[Optional[LoyaltyTier], Optional[Decimal]]:
    """The tier above ``tier`` and the spend still needed to reach it"""
    index = TIER_ORDER.index(LoyaltyTier(tier))
    if index == len(TIER_ORDER) - 1:
        return None, None

    upcoming = TIER_ORDER[index + 1]
    threshold = {
        LoyaltyTier.SILVER: config.silver_threshold,
        LoyaltyTier.GOLD: config.gold_threshold,
        LoyaltyTier.PLATINUM: config.platinum_threshold,
    }[upcoming]
    remaining = to_decimal(threshold) - to_decimal(total_spent)
    return upcoming, max(remaining, Decimal("0"))
