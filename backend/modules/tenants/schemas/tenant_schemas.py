# backend/modules/tenants/schemas/tenant_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..models.tenant_models import SubscriptionStatus, UserRole


# ========== Auth ==========

class RegisterRequest(BaseModel):
    """Restaurant sign-up"""
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: Optional[str] = None
    restaurant_name: str = Field(..., min_length=2, max_length=100)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Şifreler eşleşmiyor")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: UserRole
    tenant_id: Optional[int] = None


class TenantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
    tenant: Optional[TenantSummary] = None


# ========== Tenant ==========

class TenantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool
    settings: Dict[str, Any] = {}
    created_at: datetime


class PublicTenant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    settings: Dict[str, Any] = {}


# ========== Super admin ==========

class SubscriptionPlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    name: str
    slug: str
    price: Decimal
    yearly_price: Decimal
    max_orders: int
    max_tables: int
    max_staff: int
    features: List[str] = []
    sort_order: int


class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    trial_ends_at: Optional[datetime] = None
    orders_used: int
    plan: SubscriptionPlanOut
    tenant: TenantSummary


class SubscriptionUpdate(BaseModel):
    status: Optional[SubscriptionStatus] = None
    plan_id: Optional[int] = None
    current_period_end: Optional[datetime] = None
    # pushes current_period_end forward from its present value
    extend_days: Optional[int] = Field(None, ge=1, le=3650)


class RestaurantOut(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    id: int
    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    plan: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None
    orders: int
    tables: int
    revenue: Decimal
    created_at: datetime


class RestaurantToggle(BaseModel):
    is_active: bool


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=63, pattern=r"^[a-z0-9-]+$")
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None


# ========== Restaurant settings ==========

class TenantProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    settings: Dict[str, Any] = {}
    is_active: bool
    updated_at: Optional[datetime] = None


class TenantSettingsUpdate(BaseModel):
    """Profile fields; ``settings`` is merged into the stored JSON key by key"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=50)
    district: Optional[str] = Field(None, max_length=50)
    logo: Optional[str] = Field(None, max_length=500)
    cover_image: Optional[str] = Field(None, max_length=500)
    settings: Optional[Dict[str, Any]] = None


class StaffOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    role: UserRole

    @field_validator("role")
    @classmethod
    def panel_role(cls, v: UserRole) -> UserRole:
        if v not in (UserRole.MANAGER, UserRole.STAFF):
            raise ValueError("Personel rolü MANAGER veya STAFF olmalı")
        return v


class PlanUsage(BaseModel):
    plan: str
    status: SubscriptionStatus
    current_period_end: datetime
    trial_ends_at: Optional[datetime] = None
    limits: Dict[str, int]
    usage: Dict[str, int]
    features: List[str] = []
