# backend/modules/promotions/schemas/promotion_schemas.py

import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.customers.models.customer_models import LoyaltyTier

from ..models.promotion_models import CampaignStatus, CampaignType, DiscountType
from ..services.discount_evaluator import normalize_code

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not _HHMM.match(value):
        raise ValueError("Saat SS:DD biçiminde olmalı")
    return value


def _check_days(days: Optional[List[int]]) -> Optional[List[int]]:
    if days is None:
        return None
    if any(day < 0 or day > 6 for day in days):
        raise ValueError("Geçerli günler 0 (Pazar) ile 6 (Cumartesi) arasında olmalı")
    return sorted(set(days))


MSG_PERCENT_CAP = "Yüzde indirim en fazla 100 olabilir"
MSG_END_BEFORE_START = "Bitiş tarihi başlangıç tarihinden sonra olmalı"


def terms_error(
    is_percent: bool,
    discount_value: Optional[Decimal],
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> Optional[str]:
    """First problem with a discount's terms, checked on create and on merged updates"""
    if is_percent and discount_value is not None and Decimal(str(discount_value)) > 100:
        return MSG_PERCENT_CAP
    if start_date is not None and end_date is not None and end_date <= start_date:
        return MSG_END_BEFORE_START
    return None


# Campaign schemas
class CampaignBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    type: CampaignType
    discount_value: Decimal = Field(..., ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    buy_quantity: Optional[int] = Field(None, ge=1)
    get_quantity: Optional[int] = Field(None, ge=1)
    start_date: datetime
    end_date: Optional[datetime] = None
    usage_limit: int = Field(0, ge=0)
    per_customer_limit: int = Field(0, ge=0)
    applicable_items: List[int] = []
    applicable_categories: List[int] = []
    target_tiers: List[LoyaltyTier] = []
    is_first_order_only: bool = False
    valid_days: List[int] = []
    valid_hours_from: Optional[str] = None
    valid_hours_to: Optional[str] = None
    is_public: bool = True
    status: CampaignStatus = CampaignStatus.DRAFT

    @field_validator("valid_hours_from", "valid_hours_to")
    @classmethod
    def check_hours(cls, v):
        return _check_hhmm(v)

    @field_validator("valid_days")
    @classmethod
    def check_days(cls, v):
        return _check_days(v)


class CampaignCreate(CampaignBase):
    @model_validator(mode="after")
    def check_terms(self):
        error = terms_error(
            self.type == CampaignType.DISCOUNT_PERCENT,
            self.discount_value,
            self.start_date,
            self.end_date,
        )
        if error:
            raise ValueError(error)
        return self


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    type: Optional[CampaignType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    buy_quantity: Optional[int] = Field(None, ge=1)
    get_quantity: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    per_customer_limit: Optional[int] = Field(None, ge=0)
    applicable_items: Optional[List[int]] = None
    applicable_categories: Optional[List[int]] = None
    target_tiers: Optional[List[LoyaltyTier]] = None
    is_first_order_only: Optional[bool] = None
    valid_days: Optional[List[int]] = None
    valid_hours_from: Optional[str] = None
    valid_hours_to: Optional[str] = None
    is_public: Optional[bool] = None
    status: Optional[CampaignStatus] = None

    @field_validator("valid_hours_from", "valid_hours_to")
    @classmethod
    def check_hours(cls, v):
        return _check_hhmm(v)

    @field_validator("valid_days")
    @classmethod
    def check_days(cls, v):
        return _check_days(v)


class CampaignOut(CampaignBase):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    used_count: int
    applicable_items: Optional[List[int]] = []
    applicable_categories: Optional[List[int]] = []
    target_tiers: Optional[List[LoyaltyTier]] = []
    valid_days: Optional[List[int]] = []
    created_at: datetime


class PublicCampaign(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    type: CampaignType
    discount_value: Decimal
    min_order_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None
    end_date: Optional[datetime] = None
    valid_hours_from: Optional[str] = None
    valid_hours_to: Optional[str] = None


# Coupon schemas
class CouponBase(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    campaign_id: Optional[int] = None
    discount_type: DiscountType = DiscountType.PERCENT
    discount_value: Decimal = Field(..., ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: int = Field(0, ge=0)
    per_customer_limit: int = Field(1, ge=0)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_code(v)


class CouponCreate(CouponBase):
    @model_validator(mode="after")
    def check_terms(self):
        error = terms_error(
            self.discount_type == DiscountType.PERCENT,
            self.discount_value,
            self.start_date,
            self.end_date,
        )
        if error:
            raise ValueError(error)
        return self


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=50)
    campaign_id: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    per_customer_limit: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_code(v) if v is not None else v


class CouponOut(CouponBase):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    used_count: int
    start_date: datetime
    campaign_name: Optional[str] = None
    usage_count: int = 0
    created_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    tenant_slug: str = Field(..., min_length=1)
    order_total: Optional[Decimal] = Field(None, ge=0)
    customer_id: Optional[int] = None
