# backend/modules/customers/schemas/customer_schemas.py

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.customer_models import LoyaltyTier

_PHONE_CHARS = set("+0123456789")


class CustomerSort(str, Enum):
    LAST_VISIT = "last_visit_at"
    TOTAL_SPENT = "total_spent"
    LOYALTY_POINTS = "loyalty_points"
    VISIT_COUNT = "visit_count"


def _clean_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    phone = "".join(value.split())
    if not phone:
        return None
    if not set(phone) <= _PHONE_CHARS or len(phone) < 10:
        raise ValueError("Geçerli bir telefon numarası girin (örn: 5XX XXX XX XX)")
    return phone


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)


class CustomerCreate(CustomerBase):
    """Schema for creating a customer"""
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)


class RecentOrder(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    id: int
    order_number: str
    total: Decimal
    date: datetime


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = None
    loyalty_points: int
    loyalty_tier: LoyaltyTier
    total_spent: Decimal
    visit_count: int
    last_visit_at: Optional[datetime] = None
    created_at: datetime


class CustomerListItem(CustomerOut):
    recent_orders: List[RecentOrder] = []


class CustomerStats(BaseModel):
    total_customers: int
    new_this_month: int
    avg_loyalty_points: int
    total_loyalty_points: int
