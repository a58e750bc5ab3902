# backend/modules/loyalty/schemas/loyalty_schemas.py

"""
Schemas for the loyalty program, rewards and the customer-facing summary.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.customers.models.customer_models import LoyaltyTier

from ..models.loyalty_models import RewardType, TransactionType


# ========== Config ==========

class LoyaltyConfigUpdate(BaseModel):
    """Upsert payload; omitted fields keep their current (or default) value"""
    points_per_spent: Optional[Decimal] = Field(None, ge=0)
    min_spend_for_points: Optional[Decimal] = Field(None, ge=0)
    silver_threshold: Optional[int] = Field(None, ge=0)
    gold_threshold: Optional[int] = Field(None, ge=0)
    platinum_threshold: Optional[int] = Field(None, ge=0)
    bronze_multiplier: Optional[Decimal] = Field(None, ge=1)
    silver_multiplier: Optional[Decimal] = Field(None, ge=1)
    gold_multiplier: Optional[Decimal] = Field(None, ge=1)
    platinum_multiplier: Optional[Decimal] = Field(None, ge=1)
    points_validity_days: Optional[int] = Field(None, ge=0)
    birthday_bonus_points: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class LoyaltyConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    points_per_spent: Decimal
    min_spend_for_points: Decimal
    silver_threshold: int
    gold_threshold: int
    platinum_threshold: int
    bronze_multiplier: Decimal
    silver_multiplier: Decimal
    gold_multiplier: Decimal
    platinum_multiplier: Decimal
    points_validity_days: Optional[int] = None
    birthday_bonus_points: int
    is_active: bool


# ========== Rewards ==========

class RewardBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    reward_type: RewardType
    points_cost: int = Field(..., ge=1)
    value: Decimal = Field(Decimal("0"), ge=0)
    applicable_items: List[int] = []
    min_tier: LoyaltyTier = LoyaltyTier.BRONZE
    usage_limit: int = Field(0, ge=0)
    is_active: bool = True
    valid_until: Optional[datetime] = None

    @model_validator(mode="after")
    def percent_at_most_100(self):
        if self.reward_type == RewardType.DISCOUNT_PERCENT and self.value > 100:
            raise ValueError("Yüzde indirim en fazla 100 olabilir")
        return self


class RewardCreate(RewardBase):
    pass


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    reward_type: Optional[RewardType] = None
    points_cost: Optional[int] = Field(None, ge=1)
    value: Optional[Decimal] = Field(None, ge=0)
    applicable_items: Optional[List[int]] = None
    min_tier: Optional[LoyaltyTier] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    valid_until: Optional[datetime] = None


class RewardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    name: str
    description: Optional[str] = None
    reward_type: RewardType
    points_cost: int
    value: Decimal
    applicable_items: List[int] = []
    min_tier: LoyaltyTier
    usage_limit: int
    used_count: int
    is_active: bool
    valid_until: Optional[datetime] = None


class LoyaltyStats(BaseModel):
    total_customers: int
    total_points_outstanding: int
    avg_points: int
    tier_distribution: Dict[str, int]


# ========== Customer side ==========

class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: TransactionType
    points: int
    balance_after: int
    description: Optional[str] = None
    created_at: datetime


class SummaryReward(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    id: int
    name: str
    description: Optional[str] = None
    points_cost: int
    reward_type: RewardType
    value: Decimal
    min_tier: LoyaltyTier
    can_redeem: bool


class LoyaltySummary(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    points: int
    tier: LoyaltyTier
    total_spent: Decimal
    visit_count: int
    next_tier: Optional[LoyaltyTier] = None
    spend_to_next_tier: Optional[Decimal] = None
    multiplier: Decimal
    recent_transactions: List[TransactionOut]
    available_rewards: List[SummaryReward]
    redeemable_rewards_count: int


class RedeemRequest(BaseModel):
    """The phone identifies the customer; an id, when sent, must belong to that phone"""
    tenant_slug: str = Field(..., min_length=1)
    reward_id: int
    phone: str = Field(..., min_length=1)
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
    order_total: Optional[Decimal] = Field(None, ge=0)


class RedemptionResult(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    success: bool
    error_code: Optional[str] = None
    message: Optional[str] = None
    points_used: int = 0
    new_balance: int
    reward_value: Optional[Decimal] = None


class PointsAdjustment(BaseModel):
    """Manual staff adjustment; negative points subtract"""
    points: int = Field(..., ge=-10000, le=10000)
    reason: str = Field(..., min_length=1, max_length=255)
    as_bonus: bool = False

    @model_validator(mode="after")
    def non_zero(self):
        if self.points == 0:
            raise ValueError("Puan değeri sıfır olamaz")
        return self


class BirthdayBonusRequest(BaseModel):
    # staff may award within the birthday month instead of the exact day
    allow_same_month: bool = False
