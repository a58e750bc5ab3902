# backend/modules/loyalty/models/loyalty_models.py

"""
Loyalty program models
"""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin
from modules.customers.models.customer_models import LoyaltyTier


class RewardType(str, Enum):
    FREE_ITEM = "free_item"
    DISCOUNT_PERCENT = "discount_percent"
    DISCOUNT_AMOUNT = "discount_amount"


class TransactionType(str, Enum):
    EARN = "EARN"
    REDEEM = "REDEEM"
    ADJUSTMENT = "ADJUSTMENT"
    BONUS = "BONUS"


class LoyaltyConfig(Base, TimestampMixin):
    """Per-restaurant loyalty program configuration"""
    __tablename__ = "loyalty_configs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    points_per_spent = Column(Numeric(10, 4), nullable=False, default=1)
    min_spend_for_points = Column(Numeric(10, 2), nullable=False, default=0)

    # Cumulative spend needed for each tier
    silver_threshold = Column(Integer, nullable=False, default=500)
    gold_threshold = Column(Integer, nullable=False, default=1500)
    platinum_threshold = Column(Integer, nullable=False, default=5000)

    bronze_multiplier = Column(Numeric(4, 2), nullable=False, default=1)
    silver_multiplier = Column(Numeric(4, 2), nullable=False, default=1.25)
    gold_multiplier = Column(Numeric(4, 2), nullable=False, default=1.5)
    platinum_multiplier = Column(Numeric(4, 2), nullable=False, default=2)

    points_validity_days = Column(Integer, nullable=True)
    birthday_bonus_points = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<LoyaltyConfig(tenant_id={self.tenant_id}, active={self.is_active})>"


class LoyaltyReward(Base, TenantMixin, TimestampMixin):
    __tablename__ = "loyalty_rewards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    points_cost = Column(Integer, nullable=False)
    reward_type = Column(SQLEnum(RewardType), nullable=False)
    value = Column(Numeric(10, 2), nullable=False, default=0)
    applicable_items = Column(JSON, default=list)
    min_tier = Column(SQLEnum(LoyaltyTier), nullable=False, default=LoyaltyTier.BRONZE)
    # 0 means unlimited
    usage_limit = Column(Integer, nullable=False, default=0)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_until = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<LoyaltyReward(id={self.id}, name='{self.name}', cost={self.points_cost})>"


class LoyaltyTransaction(Base, TenantMixin, TimestampMixin):
    """Ledger entry; points are signed"""
    __tablename__ = "loyalty_transactions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(SQLEnum(TransactionType), nullable=False)
    points = Column(Integer, nullable=False)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    reward_id = Column(Integer, ForeignKey("loyalty_rewards.id", ondelete="SET NULL"), nullable=True)
    description = Column(String(255), nullable=True)
    expires_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", back_populates="loyalty_transactions")
    reward = relationship("LoyaltyReward")
