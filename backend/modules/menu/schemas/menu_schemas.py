# backend/modules/menu/schemas/menu_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.menu_models import StockMovementType


# Category schemas
class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryOut(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_count: int = 0


# Menu item schemas
class MenuItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    category_id: int
    image: Optional[str] = Field(None, max_length=500)
    is_available: bool = True
    preparation_time: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    allergens: List[str] = []
    tags: List[str] = []
    sort_order: int = Field(default=0, ge=0)
    track_stock: bool = False
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_alert: int = Field(default=5, ge=0)
    stock_unit: str = Field(default="adet", max_length=20)


class MenuItemCreate(MenuItemBase):
    pass


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category_id: Optional[int] = None
    image: Optional[str] = Field(None, max_length=500)
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    allergens: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    sort_order: Optional[int] = Field(None, ge=0)
    track_stock: Optional[bool] = None
    low_stock_alert: Optional[int] = Field(None, ge=0)
    stock_unit: Optional[str] = Field(None, max_length=20)


class MenuItemOut(MenuItemBase):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    allergens: Optional[List[str]] = []
    tags: Optional[List[str]] = []
    created_at: datetime


class PublicMenuItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, json_encoders={Decimal: float})

    id: int
    category_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image: Optional[str] = None
    preparation_time: Optional[int] = None
    calories: Optional[int] = None
    allergens: Optional[List[str]] = []
    tags: Optional[List[str]] = []


class PublicCategory(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None


# Stock schemas
class StockMovementCreate(BaseModel):
    """Quantity is a magnitude for OUT and WASTE; IN and ADJUSTMENT keep their sign"""
    menu_item_id: int
    type: StockMovementType = StockMovementType.IN
    quantity: int = Field(..., ge=-100000, le=100000)
    reason: Optional[str] = Field(None, max_length=255)


class StockItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category_name: Optional[str] = None
    stock_quantity: int
    low_stock_alert: int
    stock_unit: str
    is_available: bool
    is_low_stock: bool
    is_out_of_stock: bool


class StockMovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: int
    menu_item_name: Optional[str] = None
    type: StockMovementType
    quantity: int
    previous_stock: int
    new_stock: int
    reason: Optional[str] = None
    order_id: Optional[int] = None
    created_at: datetime


class StockStats(BaseModel):
    total_tracked: int
    low_stock_count: int
    out_of_stock_count: int
