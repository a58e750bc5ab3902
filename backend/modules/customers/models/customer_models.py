# backend/modules/customers/models/customer_models.py

from enum import Enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class LoyaltyTier(str, Enum):
    """Customer loyalty tier levels, lowest first"""
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)


TIER_ORDER = [LoyaltyTier.BRONZE, LoyaltyTier.SILVER, LoyaltyTier.GOLD, LoyaltyTier.PLATINUM]


class Customer(Base, TenantMixin, TimestampMixin):
    """Guest of a restaurant, identified by phone within the tenant"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    birth_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    # Loyalty
    loyalty_points = Column(Integer, nullable=False, default=0)
    loyalty_tier = Column(SQLEnum(LoyaltyTier), nullable=False, default=LoyaltyTier.BRONZE)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)
    visit_count = Column(Integer, nullable=False, default=0)
    last_visit_at = Column(DateTime, nullable=True)
    last_birthday_bonus_year = Column(Integer, nullable=True)

    loyalty_transactions = relationship(
        "LoyaltyTransaction",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="LoyaltyTransaction.id.desc()",
    )

    __table_args__ = (Index("ix_customers_tenant_phone", "tenant_id", "phone"),)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', tier='{self.loyalty_tier}')>"
