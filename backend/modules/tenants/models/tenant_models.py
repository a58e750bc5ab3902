# backend/modules/tenants/models/tenant_models.py

"""
Restaurant (tenant), panel users and SaaS subscriptions
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
from core.mixins import TimestampMixin


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class SubscriptionStatus(str, Enum):
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class Tenant(Base, TimestampMixin):
    """A restaurant using the platform"""
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(63), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    description = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(50), nullable=True)
    district = Column(String(50), nullable=True)
    logo = Column(String(500), nullable=True)
    cover_image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # currency, language, theme.primaryColor, working_hours
    settings = Column(JSON, default=dict)

    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan")
    subscription = relationship(
        "Subscription", back_populates="tenant", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"


class User(Base, TimestampMixin):
    """Panel or console user; SUPER_ADMIN users have no tenant"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.STAFF)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    tenant = relationship("Tenant", back_populates="users")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class SubscriptionPlan(Base, TimestampMixin):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    slug = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    yearly_price = Column(Numeric(10, 2), nullable=False, default=0)
    # -1 means unlimited
    max_orders = Column(Integer, nullable=False, default=-1)
    max_tables = Column(Integer, nullable=False, default=-1)
    max_staff = Column(Integer, nullable=False, default=-1)
    features = Column(JSON, default=list)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, nullable=False)


class Subscription(Base, TimestampMixin):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False)
    status = Column(SQLEnum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.TRIAL)
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    trial_ends_at = Column(DateTime, nullable=True)
    orders_used = Column(Integer, nullable=False, default=0)

    tenant = relationship("Tenant", back_populates="subscription")
    plan = relationship("SubscriptionPlan")
