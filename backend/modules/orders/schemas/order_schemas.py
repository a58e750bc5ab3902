# backend/modules/orders/schemas/order_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.order_models import OrderStatus, PaymentStatus


class OrderItemCreate(BaseModel):
    """Prices are looked up on the server; the client sends ids and quantities"""
    menu_item_id: int
    quantity: int = Field(..., ge=1, le=100)
    notes: Optional[str] = Field(None, max_length=500)


class PublicOrderCreate(BaseModel):
    tenant_slug: str = Field(..., min_length=1)
    table_number: Optional[str] = Field(None, max_length=20)
    items: List[OrderItemCreate] = Field(..., min_length=1, max_length=50)
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=1000)
    coupon_code: Optional[str] = Field(None, max_length=50)

    @field_validator("table_number", "customer_phone", "coupon_code")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("Güncellenecek alan yok")
        return self


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    menu_item_id: Optional[int] = None
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    notes: Optional[str] = None


class OrderTableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    number: str
    area: Optional[str] = None


class OrderCustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: Optional[str] = None


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    order_number: str
    table: Optional[OrderTableOut] = None
    customer: Optional[OrderCustomerOut] = None
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    items: List[OrderItemOut] = []
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderTrackingItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    name: str
    quantity: int
    total_price: Decimal


class OrderTrackingOut(BaseModel):
    """What a guest sees when following their order"""
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    order_number: str
    status: OrderStatus
    total: Decimal
    created_at: datetime
    items: List[OrderTrackingItem] = []


class OrderCreatedOut(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: float})

    order_id: int
    order_number: str
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    customer_id: Optional[int] = None
