# backend/modules/promotions/models/promotion_models.py

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
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class CampaignType(str, Enum):
    DISCOUNT_PERCENT = "DISCOUNT_PERCENT"
    DISCOUNT_AMOUNT = "DISCOUNT_AMOUNT"
    BUY_X_GET_Y = "BUY_X_GET_Y"
    FREE_ITEM = "FREE_ITEM"
    BUNDLE = "BUNDLE"


class CampaignStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED = "ENDED"


class DiscountType(str, Enum):
    PERCENT = "percent"
    AMOUNT = "amount"


class Campaign(Base, TenantMixin, TimestampMixin):
    """Marketing campaign; coupons linked to it inherit its discount terms"""
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    type = Column(SQLEnum(CampaignType), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False, default=0)
    min_order_amount = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)
    buy_quantity = Column(Integer, nullable=True)
    get_quantity = Column(Integer, nullable=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    # 0 means unlimited
    usage_limit = Column(Integer, nullable=False, default=0)
    per_customer_limit = Column(Integer, nullable=False, default=0)
    used_count = Column(Integer, nullable=False, default=0)

    applicable_items = Column(JSON, default=list)
    applicable_categories = Column(JSON, default=list)
    target_tiers = Column(JSON, default=list)
    is_first_order_only = Column(Boolean, nullable=False, default=False)
    # 0 = Sunday .. 6 = Saturday
    valid_days = Column(JSON, default=list)
    valid_hours_from = Column(String(5), nullable=True)
    valid_hours_to = Column(String(5), nullable=True)

    is_public = Column(Boolean, nullable=False, default=True)
    status = Column(SQLEnum(CampaignStatus), nullable=False, default=CampaignStatus.DRAFT)

    coupons = relationship("Coupon", back_populates="campaign")

    def __repr__(self):
        return f"<Campaign(id={self.id}, name='{self.name}', status='{self.status}')>"


class Coupon(Base, TenantMixin, TimestampMixin):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    discount_type = Column(SQLEnum(DiscountType), nullable=False, default=DiscountType.PERCENT)
    discount_value = Column(Numeric(10, 2), nullable=False, default=0)
    min_order_amount = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    # 0 means unlimited
    usage_limit = Column(Integer, nullable=False, default=0)
    per_customer_limit = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    campaign = relationship("Campaign", back_populates="coupons")
    usages = relationship("CouponUsage", back_populates="coupon", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_coupon_tenant_code"),)

    def __repr__(self):
        return f"<Coupon(id={self.id}, code='{self.code}')>"


class CouponUsage(Base, TimestampMixin):
    __tablename__ = "coupon_usages"

    id = Column(Integer, primary_key=True, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)

    coupon = relationship("Coupon", back_populates="usages")
